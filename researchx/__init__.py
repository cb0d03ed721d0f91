"""
Flask application factory for the ResearchX integration service.

Configuration is resolved once here: the Flask config class from APP_ENV and
a read-only Settings object from the environment, which every service
receives from the app rather than reading the environment itself.
"""

import logging

import sentry_sdk
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration

from researchx.cli import register_commands
from researchx.config import ConfigurationError, Settings, get_config
from researchx.config.settings import EXTENSION_KEY as SETTINGS_KEY
from researchx.errors import register_error_handlers
from researchx.extensions import init_extensions
from researchx.logging_config import configure_logging
from researchx.middleware import init_request_id_middleware
from researchx.routes import register_blueprints
from researchx.services import EXTENSION_KEY as PROVIDERS_KEY
from researchx.services import build_providers

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking"""
    sentry_dsn = app.config.get("SENTRY_DSN")

    if sentry_dsn and app.config.get("ENVIRONMENT") == "production":
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment="production",
            send_default_pii=False,
        )
        logger.info("Sentry error tracking initialized")


def create_app(config_name=None, settings=None, providers=None):
    """
    Build the application.

    Args:
        config_name: development, testing or production (defaults to APP_ENV).
        settings: a prebuilt Settings; read from the environment if omitted.
        providers: prebuilt provider clients; built from settings if omitted.
    """
    config = get_config(config_name)

    app = Flask(__name__)
    app.config.from_object(config)

    configure_logging(app.config["LOG_LEVEL"], app.config["LOG_JSON"])

    if settings is None:
        settings = Settings.from_env(environment=app.config["ENVIRONMENT"])
    settings.validate()

    if app.config["ENVIRONMENT"] == "production" and not app.config.get("SECRET_KEY"):
        raise ConfigurationError("SECRET_KEY is required in production")

    app.extensions[SETTINGS_KEY] = settings
    app.extensions[PROVIDERS_KEY] = providers or build_providers(settings)

    init_extensions(app, settings)
    init_request_id_middleware(app)
    register_error_handlers(app)
    register_blueprints(app)
    register_commands(app)
    setup_sentry(app)

    logger.info(f"ResearchX started in {app.config['ENVIRONMENT']} mode")
    return app
