from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    DEBUG = False
    ENVIRONMENT = "production"

    # MUST be set via environment variable in real production
    SECRET_KEY = BaseConfig.SECRET_KEY
