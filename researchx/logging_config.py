import logging
import logging.config
import sys

from flask import g, has_request_context


class RequestIdFilter(logging.Filter):
    """Stamps the current request's correlation id on every record."""

    def filter(self, record):
        record.request_id = g.get("request_id", "-") if has_request_context() else "-"
        return True


def build_logging_config(level="INFO", json_output=True):
    """Return a dictConfig mapping for the given level and output format."""
    return {
        "version": 1,
        "disable_existing_loggers": False,

        "filters": {
            "request_id": {"()": RequestIdFilter},
        },

        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                "json_ensure_ascii": False,
            },
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_output else "console",
                "filters": ["request_id"],
                "stream": sys.stdout,
            },
        },

        "loggers": {
            "researchx": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "werkzeug": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
        },

        "root": {
            "handlers": ["console"],
            "level": level,
        },
    }


def configure_logging(level="INFO", json_output=True):
    """
    Configure logging for the application.

    Args:
        level (str): Log level name for the application loggers.
        json_output (bool): Emit JSON lines instead of plain console text.
    """
    try:
        logging.config.dictConfig(build_logging_config(level.upper(), json_output))
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        logging.error(f"Failed to configure logging: {e}")
        raise

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured")
    return logger
