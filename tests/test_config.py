"""
Tests for configuration
"""
import os
import subprocess
import sys

import pytest
from bridge.core.config import Settings, check_settings, settings

GOOD_SECRET = "x" * 40


def make_settings(**overrides):
    values = {
        "ENVIRONMENT": "production",
        "SECRET_KEY": GOOD_SECRET,
        "DATABASE_URL": "postgresql://u:p@db:5432/app",
        "GOOGLE_CLIENT_ID": "",
        "GOOGLE_CLIENT_SECRET": "",
    }
    values.update(overrides)
    return Settings(**values)


def test_settings_loaded():
    """Test that settings are loaded from the test environment"""
    assert settings.APP_NAME
    assert settings.ENVIRONMENT == "test"
    assert settings.database_url.startswith("sqlite")


def test_otp_defaults():
    """OTP constants default to 6 digits, 5 minutes, 3 attempts"""
    fresh = Settings()
    assert fresh.OTP_LENGTH == 6
    assert fresh.OTP_EXPIRY == 300
    assert fresh.OTP_MAX_ATTEMPTS == 3


def test_valid_production_config():
    assert check_settings(make_settings()) == []


def test_missing_secret_key():
    problems = check_settings(make_settings(SECRET_KEY=""))
    assert any("SECRET_KEY" in p for p in problems)


def test_short_secret_key():
    problems = check_settings(make_settings(SECRET_KEY="short"))
    assert any("32 characters" in p for p in problems)


def test_missing_database():
    problems = check_settings(make_settings(DATABASE_URL=None, POSTGRES_USER="", POSTGRES_PASSWORD=""))
    assert any("DATABASE_URL" in p for p in problems)


def test_half_configured_google():
    problems = check_settings(make_settings(GOOGLE_CLIENT_ID="id-only"))
    assert any("GOOGLE_CLIENT_SECRET" in p for p in problems)


def test_unknown_environment():
    problems = check_settings(make_settings(ENVIRONMENT="staging"))
    assert any("ENVIRONMENT" in p for p in problems)


def test_database_url_from_postgres_parts():
    config = make_settings(
        DATABASE_URL=None,
        POSTGRES_USER="bridge",
        POSTGRES_PASSWORD="pw",
        POSTGRES_HOST="db",
        POSTGRES_PORT=5432,
        POSTGRES_DB="bridge",
    )
    assert config.database_url == "postgresql://bridge:pw@db:5432/bridge"


@pytest.mark.parametrize("environment,flag,expected", [
    ("production", None, False),
    ("development", None, True),
    ("test", None, True),
    ("production", True, True),
    ("development", False, False),
])
def test_otp_mock_fallback_gate(environment, flag, expected):
    """Mock OTP delivery is off in production unless explicitly enabled"""
    config = make_settings(ENVIRONMENT=environment, OTP_MOCK_FALLBACK=flag)
    assert config.otp_mock_fallback_enabled is expected


def test_cors_origins_split():
    config = make_settings(CORS_ORIGINS="http://a.test, http://b.test,")
    assert config.cors_origins == ["http://a.test", "http://b.test"]


def test_production_without_database_fails_clearly():
    """Importing the database module with no URL in production names the missing setting"""
    env = {k: v for k, v in os.environ.items() if k != "DATABASE_URL" and not k.startswith("POSTGRES_")}
    env["ENVIRONMENT"] = "production"

    result = subprocess.run(
        [sys.executable, "-c", "import bridge.core.database"],
        env=env,
        capture_output=True,
        text=True,
    )

    assert result.returncode != 0
    assert "RuntimeError" in result.stderr
    assert "DATABASE_URL" in result.stderr
    assert "AttributeError" not in result.stderr
