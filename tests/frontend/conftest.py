"""
Pytest fixtures for frontend/Flask tests.
"""

import os

import pytest

from src.analytics.interaction_logger import InlineDispatcher, InteractionLogger
from src.analytics.refresh import DashboardService


@pytest.fixture(scope="session", autouse=True)
def set_test_env():
    """Set test environment variables."""
    os.environ["FLASK_SECRET_KEY"] = "test-secret-key"
    os.environ["FLASK_ENV"] = "testing"
    os.environ["MONGODB_URI"] = "mongodb://localhost:27017/job_database_test"


@pytest.fixture
def app():
    """Flask app fixture with test configuration."""
    from frontend.app import app
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret-key"
    return app


@pytest.fixture
def backend(backend_factory, company_tables):
    return backend_factory(company_tables)


@pytest.fixture
def interaction_logger(backend):
    return InteractionLogger(backend, dispatcher=InlineDispatcher())


@pytest.fixture(autouse=True)
def mock_backend(mocker, backend, interaction_logger):
    """
    Route every collaborator of frontend.app to the in-memory backend.

    Event writes run inline so tests can assert on them directly.
    """
    mocker.patch("frontend.app._get_backend", return_value=backend)
    mocker.patch("frontend.app._get_interaction_logger", return_value=interaction_logger)
    mocker.patch("frontend.app._get_dashboard_service", return_value=DashboardService(backend))
    return backend


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def authenticated_client(client, student):
    """Flask test client signed in as a student."""
    with client.session_transaction() as sess:
        sess["actor"] = student.to_session()
    return client


@pytest.fixture
def admin_client(client, admin):
    """Flask test client signed in as an admin."""
    with client.session_transaction() as sess:
        sess["actor"] = admin.to_session()
    return client
