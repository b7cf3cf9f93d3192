"""
Shared test fixtures
The environment is set before the application is imported.
"""
import os
import tempfile
from datetime import datetime, timedelta

_tmp_dir = tempfile.mkdtemp(prefix="bridge-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FILE"] = ""
os.environ["SMS_API_KEY"] = ""
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ.pop("OTP_MOCK_FALLBACK", None)
os.environ.pop("ADMIN_EMAIL", None)

import pytest

from bridge.core.database import Base, SessionLocal, engine
from bridge.core.security import create_access_token, hash_password
from bridge.main import app
from bridge.middleware.rate_limit import career_limiter, otp_send_limiter, otp_verify_limiter, profile_limiter
from bridge.models import User
from bridge.services.otp import InMemoryOtpStore, OtpService, get_otp_service


class FakeClock:
    """Controllable replacement for utcnow"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeSmsSender:
    """Records sends; answers with a fixed provider result"""

    def __init__(self, result=None):
        self.result = result or {"success": True, "message_id": "fake-1"}
        self.sent = []

    def __call__(self, phone, code):
        self.sent.append((phone, code))
        return self.result


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    otp_send_limiter.reset()
    otp_verify_limiter.reset()
    profile_limiter.reset()
    career_limiter.reset()
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def otp_service(otp_store, clock):
    """OTP service with no SMS provider configured (mock mode)"""
    service = OtpService(
        otp_store,
        sender=FakeSmsSender(),
        provider_configured=lambda: False,
        clock=clock,
        allow_mock=True,
    )
    app.dependency_overrides[get_otp_service] = lambda: service
    return service


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(**fields):
        password = fields.pop("password", None)
        if password:
            fields["password_hash"] = hash_password(password)
        fields.setdefault("name", "Test User")
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user(name="Admin", email="admin@example.com", password="adminpass", role="admin")


def _bearer(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def auth_headers():
    """Authorization header for a user"""
    return _bearer


@pytest.fixture
def admin_headers(admin_user):
    return _bearer(admin_user)
