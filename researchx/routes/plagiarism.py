import logging

from flask import Blueprint, current_app, g, jsonify

from researchx.config import get_settings
from researchx.errors import (
    ProviderError,
    ProviderUnavailable,
    ServiceNotConfigured,
    error_response,
)
from researchx.extensions import limiter
from researchx.services import get_providers
from researchx.services.plagiarism_service import PlagiarismService
from researchx.validation import json_body, validate_text_input

logger = logging.getLogger(__name__)

plagiarism_bp = Blueprint("plagiarism", __name__, url_prefix="/plagiarism")


def _rate_limit():
    return current_app.config.get("PLAGIARISM_RATE_LIMIT", "100 per 15 minutes")


# Fixed window per client IP on every plagiarism route
limiter.limit(_rate_limit)(plagiarism_bp)


def _service():
    return PlagiarismService(get_settings(), get_providers().plagiarism)


@plagiarism_bp.route("/check", methods=["POST"])
@validate_text_input
def check():
    """
    Standalone plagiarism check.

    Body: ``{text, language?, detailed?}``. Matches are only returned when
    ``detailed`` is requested.
    """
    detailed = bool(json_body().get("detailed", False))

    try:
        result = _service().check(g.validated_text, g.language, detailed=detailed)
        return jsonify(result)

    except ProviderError as e:
        status_code, message, cause = e.status_code, e.message, e
    except ProviderUnavailable as e:
        status_code, message, cause = 500, "No response from plagiarism service", e
    except ServiceNotConfigured as e:
        status_code, message, cause = 500, e.message, e
    except Exception as e:
        status_code, message, cause = 500, "Plagiarism check failed", e

    logger.error(f"Plagiarism check error: {cause}", exc_info=cause)

    extra = {}
    if not get_settings().is_production:
        extra["details"] = str(cause)
    return error_response(message, status_code, **extra)


@plagiarism_bp.route("/status", methods=["GET"])
def status():
    payload, status_code = _service().status()
    return jsonify(payload), status_code
