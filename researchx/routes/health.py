import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from researchx.config import get_settings
from researchx.extensions import db

health_bp = Blueprint("health", __name__)


def _check_database():
    start = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "error", "error": str(e)}


def _check_configured(value, name):
    if not value:
        return {"status": "skipped", "reason": f"{name} not set"}
    return {"status": "ok"}


def run_health_checks():
    settings = get_settings()
    checks = {
        "database": _check_database(),
        "paystack": _check_configured(settings.paystack_secret_key, "PAYSTACK_SECRET_KEY"),
        "plagiarism": _check_configured(settings.quetext_api_key, "QUETEXT_API_KEY"),
        "auth": _check_configured(settings.supabase_url and settings.supabase_anon_key,
                                  "SUPABASE_URL/SUPABASE_ANON_KEY"),
    }

    overall = "ok"
    for c in checks.values():
        if c["status"] == "error":
            overall = "degraded"

    return {
        "status": overall,
        "timestamp": int(time.time()),
        "checks": checks,
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
    }


@health_bp.route("/health", methods=["GET"])
def health():
    results = run_health_checks()
    status_code = 503 if results["status"] == "degraded" else 200
    return jsonify(results), status_code
