"""
Environment-aware configuration.
Token lifetimes, rate-limit budget, database URL and CORS all come from env
(.env is read if present), with defaults suitable for local development.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///capture.db")
    SQL_ECHO = _env_bool("SQL_ECHO")

    # Signing key for mobile access tokens; falls back to SECRET_KEY when unset
    MOBILE_JWT_SECRET = os.getenv("MOBILE_JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES = timedelta(days=90)
    DEVICE_CODE_EXPIRES = timedelta(minutes=10)
    SESSION_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("SESSION_TOKEN_EXPIRES_SECONDS", "1209600")))

    # Exchange endpoint: attempts per client per window
    EXCHANGE_RATE_LIMIT = int(os.getenv("EXCHANGE_RATE_LIMIT", "5"))
    EXCHANGE_RATE_WINDOW_SECONDS = int(os.getenv("EXCHANGE_RATE_WINDOW_SECONDS", "60"))
    # Number of reverse proxies in front of the app whose X-Forwarded-For is trusted (0 = none)
    TRUSTED_PROXY_HOPS = int(os.getenv("TRUSTED_PROXY_HOPS", "0"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQL_ECHO = _env_bool("SQL_ECHO", "true")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    SECRET_KEY = "test-secret-key-0123456789abcdef-session"
    MOBILE_JWT_SECRET = "test-mobile-secret-0123456789abcdef-access"


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
