from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Test configuration: in-memory database, no rate limiting.
    """

    TESTING = True
    ENVIRONMENT = "testing"

    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"

    LOG_JSON = False
    LOG_LEVEL = "DEBUG"
    SENTRY_DSN = None
