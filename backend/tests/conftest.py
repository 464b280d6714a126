"""
College Abroad API - Test Configuration and Fixtures
"""
import os
import re
from typing import AsyncGenerator, List, Dict, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_abroad.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['SENDGRID_API_KEY'] = ''
os.environ['SMTP_USER'] = ''

from abroad_api.main import app
from abroad_api.core.database import Base, get_db
from abroad_api.core.security import token_service
from abroad_api.models import Admin, Student, Superadmin
from abroad_api.modules.oauth.google_provider import google_oauth
from abroad_api.services.email_service import email_service

fake = Faker()

STRONG_PASSWORD = 'Secret!123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_abroad.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


class MailOutbox:
    """Captures outgoing mail instead of sending it"""

    def __init__(self):
        self.messages: List[Dict[str, str]] = []

    async def send_email(self, to_email, subject, html_content, text_content=None, reply_to=None):
        self.messages.append({
            'to': to_email,
            'subject': subject,
            'html': html_content,
            'text': text_content or '',
            'reply_to': reply_to,
        })
        return True

    def to(self, address: str) -> List[Dict[str, str]]:
        return [m for m in self.messages if m['to'] == address]

    def last_token(self, address: str, route: str) -> str:
        """Pull the raw token out of the newest link for ``route`` sent to ``address``"""
        for message in reversed(self.to(address)):
            match = re.search(rf'{route}/([0-9a-f]+)', message['html'])
            if match:
                return match.group(1)
        raise AssertionError(f'No {route} link sent to {address}')


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


class GoogleAccountStub:
    """Stands in for Google: returns ``profile`` for any code or ID token"""

    def __init__(self):
        self.profile: Optional[Dict[str, object]] = None
        self.codes: List[str] = []
        self.credentials: List[str] = []

    def sign_in_as(self, email: str, google_id: str = 'google-sub-1', verified: bool = True, name: str = 'Asha Rao'):
        self.profile = {
            'google_id': google_id,
            'email': email,
            'email_verified': verified,
            'full_name': name,
        }
        return self.profile

    async def authenticate(self, code: str):
        self.codes.append(code)
        return self.profile

    def verify_id_token(self, token: str):
        self.credentials.append(token)
        return self.profile


@pytest.fixture
def mail_outbox(monkeypatch) -> MailOutbox:
    outbox = MailOutbox()
    monkeypatch.setattr(email_service, 'send_email', outbox.send_email)
    return outbox


@pytest.fixture
def google_account(monkeypatch) -> GoogleAccountStub:
    """Configure Google sign-in without talking to Google"""
    stub = GoogleAccountStub()
    monkeypatch.setattr(google_oauth, 'client_id', 'test-client-id')
    monkeypatch.setattr(google_oauth, 'client_secret', 'test-client-secret')
    monkeypatch.setattr(google_oauth, 'authenticate', stub.authenticate)
    monkeypatch.setattr(google_oauth, 'verify_id_token', stub.verify_id_token)
    return stub


@pytest.fixture
async def client(db_session: AsyncSession, mail_outbox: MailOutbox) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def verified_student(db_session: AsyncSession) -> Student:
    """Create a student who has already verified their email"""
    student = Student(
        name=fake.name(),
        email=fake.unique.email(),
        mobile='9800000001',
        is_verified=True,
        refresh_token='',
        applications=[],
        wishlist=[],
    )
    student.password = STRONG_PASSWORD
    db_session.add(student)
    await db_session.commit()
    return student


@pytest.fixture
async def admin(db_session: AsyncSession) -> Admin:
    """Create an admin (counselor)"""
    admin = Admin(name=fake.unique.user_name(), email=fake.unique.email(), refresh_token='')
    admin.password = STRONG_PASSWORD
    db_session.add(admin)
    await db_session.commit()
    return admin


@pytest.fixture
async def superadmin(db_session: AsyncSession) -> Superadmin:
    """Create a superadmin"""
    superadmin = Superadmin(name=fake.unique.user_name(), email=fake.unique.email(), refresh_token='')
    superadmin.password = STRONG_PASSWORD
    db_session.add(superadmin)
    await db_session.commit()
    return superadmin


def bearer(principal) -> dict:
    """Authorization header carrying a fresh access token for ``principal``"""
    token = token_service.issue_access_token(principal.id, principal.role)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def student_headers(verified_student: Student) -> dict:
    return bearer(verified_student)


@pytest.fixture
def admin_headers(admin: Admin) -> dict:
    return bearer(admin)


@pytest.fixture
def superadmin_headers(superadmin: Superadmin) -> dict:
    return bearer(superadmin)


@pytest.fixture
def make_headers():
    """Build bearer headers for any principal created inside a test"""
    return bearer
