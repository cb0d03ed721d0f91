# researchx/extensions.py
"""
Flask extensions initialization module.
"""

import logging

import redis
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
cors = CORS()

# Per-process fixed window counters unless RATELIMIT_STORAGE_URI says otherwise.
limiter = Limiter(key_func=get_remote_address)

redis_client = None

logger = logging.getLogger(__name__)


def init_extensions(app, settings):
    """Initialize all Flask extensions."""
    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    cors.init_app(
        app,
        origins=app.config.get("CORS_ORIGINS", "*"),
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    limiter.init_app(app)
    if not app.config.get("RATELIMIT_ENABLED", True):
        logger.info("Rate limiting disabled by configuration")
    elif app.config.get("RATELIMIT_STORAGE_URI", "memory://") == "memory://":
        logger.warning("Using in-memory rate limiting storage (per-process counters)")

    init_redis(settings)


def init_redis(settings):
    """Connect the optional Redis client used for settlement locks."""
    global redis_client

    if not settings.redis_url:
        redis_client = None
        return None

    try:
        redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        redis_client.ping()
        logger.info("Redis initialized successfully")
    except redis.ConnectionError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        if settings.is_production:
            raise
        redis_client = None

    return redis_client


def get_redis_client():
    """Get Redis client instance, or None when Redis is not configured."""
    return redis_client
