import logging

from flask import Blueprint, jsonify

from researchx.errors import ProviderError, error_response
from researchx.services import get_providers
from researchx.validation import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """
    Create an account with the auth provider.

    Password handling and sessions belong to the provider; this only
    forwards the credentials and relays the created user.
    """
    data = json_body()
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return error_response("Email and password are required", 400)

    client = get_providers().auth
    if not client.configured:
        logger.error("Signup failed: SUPABASE_URL / SUPABASE_ANON_KEY not configured")
        return error_response("Server error", 500)

    try:
        result = client.sign_up(email, password)

    except ProviderError as e:
        logger.warning(f"Signup rejected by auth provider: {e.message}")
        return error_response(e.message, 400)
    except Exception as e:
        logger.error(f"Signup failed: {e}", exc_info=True)
        return error_response("Server error", 500)

    # With email confirmation enabled the provider answers with the bare user,
    # otherwise with a session wrapping it.
    if "access_token" in result:
        response = {
            "success": True,
            "user": result.get("user"),
            "token": result["access_token"],
            "expiresAt": result.get("expires_at"),
        }
    else:
        response = {"success": True, "user": result}

    logger.info("User signed up", extra={"user_id": (response["user"] or {}).get("id")})
    return jsonify(response), 200
