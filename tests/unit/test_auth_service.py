"""
Tests for student authentication.
"""

import pytest
from werkzeug.security import generate_password_hash

from src.common.actors import Actor
from src.common.error_handling import AuthenticationError, AuthorizationError
from src.services.auth_service import LOGIN_FAILED_MESSAGE, AuthService


@pytest.fixture
def backend(backend_factory):
    return backend_factory(
        {
            "users": [
                {"_id": "u1", "email": "e19217@example.com", "password_hash": generate_password_hash("secret")},
                {
                    "_id": "u9",
                    "email": "staff@example.com",
                    "password_hash": generate_password_hash("admin-pass"),
                    "role": "admin",
                },
            ]
        }
    )


@pytest.fixture
def auth(backend):
    return AuthService(backend, email_domain="example.com", admin_emails=["Advisor@Example.com"])


class TestSignIn:
    """Tests for password sign-in by student number."""

    def test_valid_credentials(self, auth):
        actor = auth.sign_in("e19217", "secret")

        assert actor == Actor(id="u1", email="e19217@example.com", role="student")
        assert actor.short_id == "e19217"

    def test_student_id_is_trimmed(self, auth):
        assert auth.sign_in("  e19217 ", "secret").id == "u1"

    def test_wrong_password(self, auth):
        with pytest.raises(AuthenticationError, match=LOGIN_FAILED_MESSAGE):
            auth.sign_in("e19217", "wrong")

    def test_unknown_student(self, auth):
        with pytest.raises(AuthenticationError):
            auth.sign_in("e00000", "secret")

    @pytest.mark.parametrize("student_id,password", [("", "secret"), ("  ", "secret"), ("e19217", "")])
    def test_blank_input(self, auth, student_id, password):
        with pytest.raises(AuthenticationError):
            auth.sign_in(student_id, password)

    def test_backend_failure_is_authentication_error(self, auth, backend):
        backend.fail("users", "query")

        with pytest.raises(AuthenticationError):
            auth.sign_in("e19217", "secret")

    def test_role_from_user_record(self, auth):
        assert auth.sign_in("staff", "admin-pass").role == "admin"


class TestAdminCheck:
    def test_admin_role(self, auth):
        assert auth.is_admin(Actor(id="u9", email="staff@example.com", role="admin"))

    def test_admin_by_configured_email_case_insensitive(self, auth):
        assert auth.is_admin(Actor(id="t", email="advisor@example.com"))

    def test_student_is_not_admin(self, auth):
        assert not auth.is_admin(Actor(id="u1", email="e19217@example.com"))

    def test_anonymous_is_not_admin(self, auth):
        assert not auth.is_admin(None)

    def test_require_admin_raises(self, auth):
        with pytest.raises(AuthorizationError):
            auth.require_admin(Actor(id="u1", email="e19217@example.com"))

    def test_require_admin_returns_actor(self, auth):
        actor = Actor(id="t", email="advisor@example.com")

        assert auth.require_admin(actor) is actor
