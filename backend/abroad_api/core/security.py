"""
Credential and token primitives.

``CredentialService`` owns password hashing and the one-shot reset and
verification tokens; ``TokenService`` issues and verifies the signed access
and refresh tokens. Both take their configuration explicitly and are
instantiated once at import as ``credential_service`` and ``token_service``.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List, Tuple
import hashlib
import re
import secrets
import uuid

import bcrypt
from jose import JWTError, jwt

from abroad_api.core.config import Settings, settings
from abroad_api.core.exceptions import InvalidTokenError

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

PASSWORD_MIN_LENGTH = 6
PASSWORD_SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 6 characters long, contain at least one "
    "uppercase letter, and at least one special character"
)
NUMERIC_EMAIL_MESSAGE = "Email cannot be in the format of numbers followed by a dot."

_UPPERCASE = re.compile(r"[A-Z]")
_SPECIAL = re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARS) + "]")
_NUMERIC_EMAIL = re.compile(r"^\d+\.?\d*@[a-zA-Z]+\.[a-zA-Z]{2,}$")


def password_policy_errors(password: str) -> List[str]:
    """Return one message per violated rule; empty when the password is acceptable"""
    errors = []
    if len(password or "") < PASSWORD_MIN_LENGTH:
        errors.append("Password must be at least 6 characters long")
    if not _UPPERCASE.search(password or ""):
        errors.append("Password must contain at least one uppercase letter")
    if not _SPECIAL.search(password or ""):
        errors.append("Password must contain at least one special character")
    return errors


def is_numeric_email(email: str) -> bool:
    """Addresses like ``123.45@domain.com`` are rejected at registration"""
    return bool(_NUMERIC_EMAIL.match(email or ""))


class CredentialService:
    """Password hashing plus the one-shot reset/verification tokens"""

    def __init__(self, config: Settings):
        self.rounds = config.BCRYPT_ROUNDS
        self.reset_ttl = timedelta(minutes=config.PASSWORD_RESET_EXPIRE_MINUTES)

    def hash_password(self, plaintext: str) -> str:
        # Bcrypt has a 72 byte limit - truncate password if necessary
        password_bytes = plaintext.encode('utf-8')[:72]
        hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode('utf-8')

    def verify_password(self, plaintext: str, hashed: Optional[str]) -> bool:
        # Google-only students have no stored hash
        if not plaintext or not hashed:
            return False
        password_bytes = plaintext.encode('utf-8')[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed.encode('utf-8'))
        except ValueError:
            return False

    @staticmethod
    def hash_token(raw: str) -> str:
        """SHA-256 hex digest; only this form of a one-shot token is persisted"""
        return hashlib.sha256(raw.encode('utf-8')).hexdigest()

    def issue_reset_token(self) -> Tuple[str, str, datetime]:
        """Return (raw token for the email link, stored hash, absolute expiry)"""
        raw = secrets.token_hex(32)
        return raw, self.hash_token(raw), datetime.utcnow() + self.reset_ttl

    def issue_verification_token(self) -> Tuple[str, str]:
        raw = secrets.token_hex(32)
        return raw, self.hash_token(raw)


class TokenService:
    """Signed HS256 access/refresh tokens carrying the principal id and role"""

    def __init__(self, config: Settings):
        self.secret = config.JWT_SECRET_KEY
        self.algorithm = config.JWT_ALGORITHM
        self.access_ttl = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(hours=config.REFRESH_TOKEN_EXPIRE_HOURS)

    @property
    def refresh_max_age(self) -> int:
        """Cookie max-age in seconds, matching the refresh token lifetime"""
        return int(self.refresh_ttl.total_seconds())

    def _encode(self, principal_id: str, role: Optional[str], token_type: str,
                ttl: timedelta) -> str:
        now = datetime.utcnow()
        claims: Dict[str, Any] = {
            "sub": str(principal_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            # Two tokens issued within the same second must still differ
            "jti": uuid.uuid4().hex,
        }
        if role:
            claims["role"] = role
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def issue_access_token(self, principal_id: str, role: Optional[str] = None) -> str:
        return self._encode(principal_id, role, ACCESS_TOKEN, self.access_ttl)

    def issue_refresh_token(self, principal_id: str, role: Optional[str] = None) -> str:
        return self._encode(principal_id, role, REFRESH_TOKEN, self.refresh_ttl)

    def verify(self, token: str, expected_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
        """
        Check signature, expiry and token type.

        Every failure raises the same InvalidTokenError so callers never learn
        which check rejected the token.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidTokenError()

        if payload.get("type") != expected_type or not payload.get("sub"):
            raise InvalidTokenError()

        return payload


credential_service = CredentialService(settings)
token_service = TokenService(settings)
