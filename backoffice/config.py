import os
from datetime import timedelta


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "DEV")
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URI",
        "postgresql://postgres:postgres@db:5432/billing_db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,   # test connection before use
        "pool_recycle": 1800,    # recycle every 30min
        "pool_size": 5,
        "max_overflow": 10
    }

    # JWT (staff callers)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=8)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Billing engine
    BILLING_TIMEZONE = os.getenv("BILLING_TIMEZONE", "UTC")
    # 'rollover' pushes day 31 of a short month into the next month, 'clamp' pins it to month end
    MONTHLY_DAY_OVERFLOW = os.getenv("MONTHLY_DAY_OVERFLOW", "rollover")
    DEFAULT_TRIAL_DAYS = int(os.getenv("DEFAULT_TRIAL_DAYS", "7"))
    IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "500"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
    LOG_LEVEL = "DEBUG"
