import logging

from flask import Blueprint, jsonify, request

from researchx.config import get_settings
from researchx.errors import AppError, ProviderError, error_response
from researchx.services import get_providers
from researchx.services.payment_service import PaymentService
from researchx.services.project_store import ProjectStore
from researchx.validation import json_body

logger = logging.getLogger(__name__)

payment_bp = Blueprint("payment", __name__, url_prefix="/payment")

TRUTHY = ("1", "true", "yes")


def _service():
    return PaymentService(get_settings(), get_providers().paystack, store=ProjectStore())


def _failure(error, fallback):
    """Provider and unexpected failures are reported as 500 with the provider's message if any."""
    message = fallback
    if isinstance(error, ProviderError) and error.provider_message:
        message = error.provider_message
    return error_response(message, 500)


@payment_bp.route("/initiate/<project_id>", methods=["GET"])
def initiate(project_id):
    """
    Start a payment for a project and return the hosted payment URL.

    ``?force=true`` replaces a payment that is still in flight.
    """
    service = _service()
    force = request.args.get("force", "").lower() in TRUTHY

    try:
        return jsonify(service.initiate(project_id, force=force))

    except AppError as e:
        service.store.rollback()
        if isinstance(e, ProviderError) or e.status_code >= 500:
            logger.error(f"Payment initiation error for {project_id}: {e.message}", exc_info=True)
            return _failure(e, "Payment initialization failed")
        return jsonify(e.to_dict()), e.status_code

    except Exception as e:
        service.store.rollback()
        logger.error(f"Payment initiation error for {project_id}: {e}", exc_info=True)
        return _failure(e, "Payment initialization failed")


@payment_bp.route("/verify/<project_id>", methods=["POST"])
def verify(project_id):
    """
    Verify a provider reference and settle the project.

    Body: ``{reference}``. Re-posting after an interrupted settlement resumes it.
    """
    service = _service()
    reference = json_body().get("reference")

    try:
        return jsonify(service.verify(project_id, reference))

    except AppError as e:
        service.store.rollback()
        if isinstance(e, ProviderError) or e.status_code >= 500:
            logger.error(f"Payment verification error for {project_id}: {e.message}", exc_info=True)
            return _failure(e, "Payment verification failed")
        return jsonify(e.to_dict()), e.status_code

    except Exception as e:
        service.store.rollback()
        logger.error(f"Payment verification error for {project_id}: {e}", exc_info=True)
        return _failure(e, "Payment verification failed")
