"""Google OAuth provider for student sign-in."""

import secrets
from typing import Optional, Dict, Any
from urllib.parse import urlencode

import httpx
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests

from abroad_api.core.config import settings
from abroad_api.core.logging_config import logger


class GoogleOAuthProvider:
    """Handle Google OAuth authentication."""

    GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
    GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
    VALID_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @staticmethod
    def new_state() -> str:
        return secrets.token_urlsafe(24)

    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """Generate Google OAuth authorization URL."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "online",
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{self.GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code_for_tokens(self, code: str) -> Dict[str, Any]:
        """Exchange authorization code for access tokens."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                self.GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
            )
            response.raise_for_status()
            return response.json()

    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        """Get user information from Google."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                self.GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _profile(info: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "google_id": info.get("sub"),
            "email": info.get("email"),
            "email_verified": bool(info.get("email_verified", False)),
            "full_name": info.get("name", ""),
        }

    def verify_id_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify a Google ID token (for frontend Google Sign-In).

        Used when the frontend renders the Google button itself and posts the
        resulting credential to the backend.
        """
        try:
            idinfo = id_token.verify_oauth2_token(
                token,
                google_requests.Request(),
                self.client_id
            )
        except ValueError as e:
            logger.warning(f"[GoogleOAuth] Invalid ID token: {e}")
            return None

        if idinfo.get("iss") not in self.VALID_ISSUERS:
            logger.warning("[GoogleOAuth] Invalid token issuer")
            return None

        return self._profile(idinfo)

    async def authenticate(self, code: str) -> Optional[Dict[str, Any]]:
        """
        Complete OAuth flow: exchange code and get user info.

        Returns the Google profile if successful, None otherwise.
        """
        try:
            tokens = await self.exchange_code_for_tokens(code)
            access_token = tokens.get("access_token")

            if not access_token:
                logger.error("[GoogleOAuth] No access token received from token exchange")
                return None

            return self._profile(await self.get_user_info(access_token))
        except httpx.HTTPStatusError as e:
            logger.error(f"[GoogleOAuth] HTTP error during authentication: {e.response.status_code} - {e.response.text}")
            return None
        except httpx.RequestError as e:
            logger.error(f"[GoogleOAuth] Request error during authentication: {e}")
            return None


# Singleton instance
google_oauth = GoogleOAuthProvider()
