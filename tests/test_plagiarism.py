from dataclasses import replace
from unittest.mock import patch

import pytest
import requests

from researchx import create_app
from researchx.config import TestingConfig
from researchx.services import build_providers

pytestmark = pytest.mark.plagiarism


def test_check_rejects_short_text_without_calling_provider(client, http_session):
    """Text under the minimum length never reaches the provider"""
    response = client.post("/plagiarism/check", json={"text": "too short"})

    assert response.status_code == 400
    assert response.get_json() == {
        "success": False,
        "error": "Text must be at least 100 characters long",
    }
    http_session.request.assert_not_called()


def test_check_rejects_text_over_maximum(client, http_session):
    response = client.post("/plagiarism/check", json={"text": "a" * 10001})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Text must be less than 10000 characters"
    http_session.request.assert_not_called()


def test_check_accepts_text_at_bounds(client, http_session, provider_response):
    """Exactly 100 and exactly 10000 characters are both valid"""
    http_session.request.return_value = provider_response({"score": 0, "plagiarism": False})

    assert client.post("/plagiarism/check", json={"text": "a" * 100}).status_code == 200
    assert client.post("/plagiarism/check", json={"text": "a" * 10000}).status_code == 200


@pytest.mark.parametrize("payload", [{}, {"text": 12345}, {"text": ["a" * 200]}])
def test_check_requires_string_text(client, payload):
    response = client.post("/plagiarism/check", json=payload)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Text is required and must be a string"


def test_check_rejects_unsupported_language(client, research_text, http_session):
    response = client.post("/plagiarism/check", json={"text": research_text, "language": "it"})

    assert response.status_code == 400
    assert response.get_json()["error"] == (
        "Unsupported language. Supported languages: en, es, fr, de"
    )
    http_session.request.assert_not_called()


@pytest.mark.parametrize("language", [None, ""])
def test_check_rejects_blank_language(client, research_text, http_session, language):
    """Only a missing language falls back to English"""
    response = client.post("/plagiarism/check", json={"text": research_text, "language": language})

    assert response.status_code == 400
    assert response.get_json()["error"] == (
        "Unsupported language. Supported languages: en, es, fr, de"
    )
    http_session.request.assert_not_called()


def test_check_returns_result_without_matches(client, research_text, http_session, provider_response):
    """A plain check forwards scan=0 and hides matches"""
    http_session.request.return_value = provider_response({
        "score": 12.5,
        "plagiarism": False,
        "warnings": ["Short quotation detected"],
        "matches": [{"url": "https://example.com/paper", "percent": 4}],
    })

    response = client.post("/plagiarism/check", json={"text": research_text})

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "score": 12.5,
        "plagiarism": False,
        "warnings": ["Short quotation detected"],
        "language": "en",
    }

    method, url = http_session.request.call_args.args
    kwargs = http_session.request.call_args.kwargs
    assert method == "POST"
    assert url == "https://api.quetext.com/v1/plagiarism"
    assert kwargs["json"] == {"text": research_text, "language": "en", "scan": 0}
    assert kwargs["headers"]["Authorization"] == "Bearer qt_test_mock"
    assert kwargs["timeout"] == 10


def test_check_detailed_includes_matches(client, research_text, http_session, provider_response):
    matches = [{"url": "https://example.com/paper", "percent": 31}]
    http_session.request.return_value = provider_response({
        "score": 31,
        "plagiarism": True,
        "matches": matches,
    })

    response = client.post(
        "/plagiarism/check",
        json={"text": research_text, "language": "fr", "detailed": True},
    )

    data = response.get_json()
    assert response.status_code == 200
    assert data["matches"] == matches
    assert data["warnings"] == []
    assert data["language"] == "fr"
    assert http_session.request.call_args.kwargs["json"]["scan"] == 1


def test_check_passes_provider_status_and_message_through(client, research_text, http_session, provider_response):
    http_session.request.return_value = provider_response(
        {"message": "Monthly quota exceeded"}, status_code=402, reason="Payment Required"
    )

    response = client.post("/plagiarism/check", json={"text": research_text})

    data = response.get_json()
    assert response.status_code == 402
    assert data["success"] is False
    assert data["error"] == "Monthly quota exceeded"
    assert "details" in data


def test_check_falls_back_to_reason_when_provider_sends_no_message(client, research_text, http_session, provider_response):
    http_session.request.return_value = provider_response(status_code=503, reason="Service Unavailable")

    response = client.post("/plagiarism/check", json={"text": research_text})

    assert response.status_code == 503
    assert response.get_json()["error"] == "API error: Service Unavailable"


def test_check_reports_missing_response(client, research_text, http_session):
    http_session.request.side_effect = requests.ConnectionError("connection refused")

    response = client.post("/plagiarism/check", json={"text": research_text})

    assert response.status_code == 500
    assert response.get_json()["error"] == "No response from plagiarism service"


def test_check_unexpected_failure(client, research_text, providers):
    with patch.object(providers.plagiarism, "check", side_effect=RuntimeError("boom")):
        response = client.post("/plagiarism/check", json={"text": research_text})

    assert response.status_code == 500
    assert response.get_json()["error"] == "Plagiarism check failed"
    assert response.get_json()["details"] == "boom"


def test_check_without_api_key(settings, http_session, research_text):
    unconfigured = replace(settings, quetext_api_key=None)
    app = create_app(
        "testing",
        settings=unconfigured,
        providers=build_providers(unconfigured, session=http_session),
    )

    response = app.test_client().post("/plagiarism/check", json={"text": research_text})

    assert response.status_code == 500
    assert response.get_json()["error"] == "Plagiarism check service is not configured"
    http_session.request.assert_not_called()


def test_status_disabled_without_api_key(settings, http_session):
    unconfigured = replace(settings, quetext_api_key=None)
    app = create_app(
        "testing",
        settings=unconfigured,
        providers=build_providers(unconfigured, session=http_session),
    )

    response = app.test_client().get("/plagiarism/status")

    assert response.status_code == 200
    assert response.get_json() == {
        "service": "plagiarism",
        "status": "disabled",
        "message": "QUETEXT_API_KEY not configured",
    }


def test_status_operational(client, http_session, provider_response):
    http_session.request.return_value = provider_response({"status": "ok", "credits": 420})

    response = client.get("/plagiarism/status")

    data = response.get_json()
    assert response.status_code == 200
    assert data["status"] == "operational"
    assert data["provider"] == "Quetext"
    assert data["api_status"] == {"status": "ok", "credits": 420}
    assert data["limits"] == {
        "max_text_length": 10000,
        "min_text_length": 100,
        "supported_languages": ["en", "es", "fr", "de"],
    }

    method, url = http_session.request.call_args.args
    assert (method, url) == ("GET", "https://api.quetext.com/v1/status")
    assert http_session.request.call_args.kwargs["timeout"] == 5


@pytest.mark.parametrize("failure", ["timeout", "error_status"])
def test_status_unavailable(client, http_session, provider_response, failure):
    if failure == "timeout":
        http_session.request.side_effect = requests.Timeout("timed out")
    else:
        http_session.request.return_value = provider_response({}, status_code=500, reason="Server Error")

    response = client.get("/plagiarism/status")

    assert response.status_code == 503
    assert response.get_json() == {
        "service": "plagiarism",
        "status": "unavailable",
        "error": "Unable to connect to plagiarism service",
    }
    assert http_session.request.call_count == 1


def test_plagiarism_routes_are_rate_limited(monkeypatch, settings, providers):
    """Requests over the window limit get 429, whatever their validity"""
    monkeypatch.setattr(TestingConfig, "RATELIMIT_ENABLED", True)
    monkeypatch.setattr(TestingConfig, "PLAGIARISM_RATE_LIMIT", "2 per 15 minutes")

    app = create_app("testing", settings=settings, providers=providers)
    client = app.test_client()

    assert client.post("/plagiarism/check", json={"text": "short"}).status_code == 400
    assert client.post("/plagiarism/check", json={"text": "short"}).status_code == 400

    response = client.post("/plagiarism/check", json={"text": "short"})

    assert response.status_code == 429
    assert response.get_json() == {
        "success": False,
        "error": "Too many requests, please try again later",
    }
