from decimal import Decimal
from unittest.mock import MagicMock, Mock

import pytest
from faker import Faker

from researchx import create_app
from researchx.config import Settings
from researchx.extensions import db
from researchx.services import build_providers
from researchx.services.project_store import ProjectStore

# Initialize Faker for generating test data
fake = Faker()


# Custom pytest marks for organizing tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "auth: mark test as authentication-related"
    )
    config.addinivalue_line(
        "markers",
        "payment: mark test as payment-related"
    )
    config.addinivalue_line(
        "markers",
        "plagiarism: mark test as plagiarism-check-related"
    )
    config.addinivalue_line(
        "markers",
        "client: mark test as API-consumer-related"
    )


def _provider_response(body=None, status_code=200, reason="OK"):
    """A stand-in for a requests.Response from a provider."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    if body is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def settings():
    """Settings with every provider configured against fake credentials"""
    return Settings(
        environment="testing",
        paystack_secret_key="sk_test_mock",
        quetext_api_key="qt_test_mock",
        supabase_url="https://auth.researchx.test",
        supabase_anon_key="anon_test_mock",
        base_url="https://researchx.test",
    )


@pytest.fixture
def http_session():
    """Shared outbound session; nothing leaves the test process"""
    return MagicMock(name="requests.Session")


@pytest.fixture
def providers(settings, http_session):
    return build_providers(settings, session=http_session)


@pytest.fixture
def app(settings, providers):
    """Create application for testing with an in-memory database"""
    app = create_app("testing", settings=settings, providers=providers)

    with app.app_context():
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return ProjectStore()


@pytest.fixture
def make_project(store):
    """Factory for stored projects with Faker data"""
    def _make(**overrides):
        fields = {
            "id": fake.uuid4(),
            "title": fake.sentence(nb_words=5),
            "price": Decimal("5000.00"),
            "author_id": fake.uuid4(),
            "author_email": fake.email(),
            "status": "pending",
        }
        fields.update(overrides)
        return store.create(**fields)

    return _make


@pytest.fixture
def research_text():
    """Text long enough to pass plagiarism input validation"""
    text = fake.paragraph(nb_sentences=10)
    while len(text) < 150:
        text += " " + fake.paragraph(nb_sentences=5)
    return text[:2000]


@pytest.fixture
def signup_data():
    return {
        "name": fake.name(),
        "email": fake.email(),
        "password": fake.password(length=12),
    }


@pytest.fixture
def provider_response():
    return _provider_response
