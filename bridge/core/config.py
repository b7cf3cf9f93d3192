"""
Application Configuration
All settings loaded from environment variables
"""
from pydantic import BaseModel
from typing import List, Optional
import logging
import os
import secrets

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    # ==================== Application ====================
    APP_NAME: str = os.getenv("APP_NAME", "Startup Bridge")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    API_URL: str = os.getenv("API_URL", "http://localhost:5000")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # ==================== Tokens ====================
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    OAUTH_STATE_EXPIRE_MINUTES: int = int(os.getenv("OAUTH_STATE_EXPIRE_MINUTES", "10"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # ==================== Database ====================
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "db")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "startup_bridge")

    # ==================== Google OAuth ====================
    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_CALLBACK_URL: str = os.getenv("GOOGLE_CALLBACK_URL", "http://localhost:5000/auth/google/callback")
    OAUTH_TIMEOUT: float = float(os.getenv("OAUTH_TIMEOUT", "10"))

    # ==================== SMS ====================
    SMS_GATEWAY_DEFAULT: str = os.getenv("SMS_GATEWAY_DEFAULT", "fast2sms")
    SMS_API_KEY: str = os.getenv("SMS_API_KEY", "")
    SMS_API_URL: str = os.getenv("SMS_API_URL", "https://www.fast2sms.com/dev/bulkV2")
    SMS_TIMEOUT: float = float(os.getenv("SMS_TIMEOUT", "10"))

    # ==================== OTP ====================
    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
    OTP_EXPIRY: int = int(os.getenv("OTP_EXPIRY", "300"))
    OTP_MAX_ATTEMPTS: int = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
    # Unset means: allowed outside production, refused in production
    OTP_MOCK_FALLBACK: Optional[bool] = (
        os.getenv("OTP_MOCK_FALLBACK").lower() in ("true", "1", "yes")
        if os.getenv("OTP_MOCK_FALLBACK") is not None
        else None
    )

    # ==================== Phone Validation ====================
    PHONE_REGEX: str = os.getenv("PHONE_REGEX", r"^\+91[6-9]\d{9}$")

    # ==================== Rate Limiting ====================
    RATE_LIMIT_WINDOW: int = int(os.getenv("RATE_LIMIT_WINDOW", "900"))  # 15 minutes
    RATE_LIMIT_OTP_SEND: int = int(os.getenv("RATE_LIMIT_OTP_SEND", "5"))
    RATE_LIMIT_OTP_VERIFY: int = int(os.getenv("RATE_LIMIT_OTP_VERIFY", "10"))
    RATE_LIMIT_PROFILE: int = int(os.getenv("RATE_LIMIT_PROFILE", "20"))
    RATE_LIMIT_CAREER: int = int(os.getenv("RATE_LIMIT_CAREER", "50"))
    RATE_LIMIT_CAREER_WINDOW: int = int(os.getenv("RATE_LIMIT_CAREER_WINDOW", "3600"))  # 1 hour

    # ==================== Careers ====================
    CV_MAX_SIZE: int = int(os.getenv("CV_MAX_SIZE", "5242880"))  # 5MB
    CV_ALLOWED_EXTENSIONS: str = os.getenv("CV_ALLOWED_EXTENSIONS", ".pdf,.doc,.docx")

    # ==================== Logging ====================
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")
    LOG_MAX_SIZE: int = int(os.getenv("LOG_MAX_SIZE", "10485760"))  # 10MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # ==================== CORS ====================
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    CORS_ALLOW_CREDENTIALS: bool = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"

    # ==================== Admin ====================
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrator")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def otp_mock_fallback_enabled(self) -> bool:
        if self.OTP_MOCK_FALLBACK is None:
            return not self.is_production
        return self.OTP_MOCK_FALLBACK

    @property
    def google_oauth_enabled(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)

    @property
    def database_url(self) -> Optional[str]:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_USER and self.POSTGRES_PASSWORD:
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        return None

    @property
    def cv_allowed_extensions(self) -> List[str]:
        return [e.strip().lower() for e in self.CV_ALLOWED_EXTENSIONS.split(",") if e.strip()]

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def check_settings(config: Settings) -> List[str]:
    """
    Validate configuration

    Returns: list of problems (empty when the configuration is usable)
    """
    problems = []

    if config.ENVIRONMENT not in ("development", "production", "test"):
        problems.append(f"ENVIRONMENT must be development, production or test (got {config.ENVIRONMENT!r})")

    if not config.SECRET_KEY:
        problems.append("SECRET_KEY is not set")
    elif len(config.SECRET_KEY) < 32:
        problems.append("SECRET_KEY must be at least 32 characters")

    if not config.database_url:
        problems.append("DATABASE_URL (or POSTGRES_USER/POSTGRES_PASSWORD) is not set")

    if bool(config.GOOGLE_CLIENT_ID) != bool(config.GOOGLE_CLIENT_SECRET):
        problems.append("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set together")

    if not 4 <= config.BCRYPT_ROUNDS <= 31:
        problems.append("BCRYPT_ROUNDS must be between 4 and 31")

    if config.OTP_LENGTH < 4:
        problems.append("OTP_LENGTH must be at least 4")

    if config.OTP_MAX_ATTEMPTS < 1:
        problems.append("OTP_MAX_ATTEMPTS must be at least 1")

    return problems


settings = Settings()

# Outside production an ephemeral signing key keeps local runs working;
# tokens do not survive a restart.
if not settings.SECRET_KEY and not settings.is_production:
    settings.SECRET_KEY = secrets.token_urlsafe(48)
    logger.warning("SECRET_KEY not set, using a random per-process key (%s mode)", settings.ENVIRONMENT)

# Local development falls back to an SQLite file
if not settings.database_url and not settings.is_production:
    settings.DATABASE_URL = "sqlite:///./startup_bridge.db"
