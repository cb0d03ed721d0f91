from unittest.mock import patch

from researchx import create_app
from researchx.config import ProductionConfig, Settings
from researchx.errors import ConflictError, ProviderError, ValidationError
from researchx.middleware import REQUEST_ID_HEADER


def test_unknown_route_returns_json_404(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Not found"}


def test_app_error_envelope():
    error = ConflictError("Payment already initiated", payload={"paymentReference": "ref"})

    assert error.status_code == 409
    assert error.to_dict() == {
        "success": False,
        "error": "Payment already initiated",
        "paymentReference": "ref",
    }


def test_error_status_defaults():
    assert ValidationError("bad").status_code == 400
    assert ProviderError("upstream").status_code == 502
    assert ProviderError("upstream", status_code=402).status_code == 402


def test_unhandled_exception_outside_production_includes_details(app, client):
    with patch("researchx.routes.health.run_health_checks", side_effect=RuntimeError("disk on fire")):
        response = client.get("/health")

    data = response.get_json()
    assert response.status_code == 500
    assert data["success"] is False
    assert data["error"] == "disk on fire"
    assert "RuntimeError" in data["details"]
    assert "stack" in data


def test_unhandled_exception_in_production_is_generic(monkeypatch, providers):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "prod-secret")
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "sqlite:///:memory:")
    production = Settings(
        environment="production",
        paystack_secret_key="sk_live_mock",
        base_url="https://researchx.example.com",
    )
    app = create_app("production", settings=production, providers=providers)

    with patch("researchx.routes.health.run_health_checks", side_effect=RuntimeError("disk on fire")):
        response = app.test_client().get("/health")

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Something went wrong"}


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})

    assert response.headers[REQUEST_ID_HEADER] == "req-123"


def test_request_id_is_generated(client):
    response = client.get("/health")

    assert response.headers.get(REQUEST_ID_HEADER)


def test_health_reports_checks(client):
    response = client.get("/health")

    data = response.get_json()
    assert response.status_code == 200
    assert data["status"] == "ok"
    assert data["checks"]["database"]["status"] == "ok"
    assert data["checks"]["paystack"] == {"status": "ok"}
    assert data["environment"] == "testing"


def test_provider_errors_are_logged(client, research_text, http_session, provider_response):
    http_session.request.return_value = provider_response(
        {"message": "Monthly quota exceeded"}, status_code=402, reason="Payment Required"
    )

    with patch("researchx.routes.plagiarism.logger") as mock_logger:
        client.post("/plagiarism/check", json={"text": research_text})

    mock_logger.error.assert_called_once()
    assert "Monthly quota exceeded" in mock_logger.error.call_args.args[0]
