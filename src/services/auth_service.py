"""
Student authentication against the users table.

Students sign in with their student number; the stored identifier is
"<student number>@<AUTH_EMAIL_DOMAIN>". Admin access is granted by role
or by listing the identifier in ADMIN_EMAILS.
"""

import logging
from typing import Iterable, Optional

from werkzeug.security import check_password_hash

from src.common.actors import Actor, build_identifier
from src.common.config import Config
from src.common.error_handling import AuthenticationError, AuthorizationError
from src.common.repositories.base import BackendInterface

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "学籍番号またはパスワードが間違っています"


class AuthService:
    """Password sign-in and admin checks."""

    def __init__(
        self,
        backend: BackendInterface,
        email_domain: str = Config.AUTH_EMAIL_DOMAIN,
        admin_emails: Optional[Iterable[str]] = None,
    ):
        self._backend = backend
        self.email_domain = email_domain
        self.admin_emails = {e.lower() for e in (admin_emails if admin_emails is not None else Config.ADMIN_EMAILS)}

    def sign_in(self, student_id: str, password: str) -> Actor:
        """
        Authenticate a student.

        Raises:
            AuthenticationError: unknown student, wrong password or backend failure
        """
        if not student_id or not student_id.strip() or not password:
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)

        email = build_identifier(student_id, self.email_domain)
        try:
            users = self._backend.query(Config.USERS_TABLE, {"email": email}, limit=1)
        except Exception as e:
            logger.error(f"User lookup failed: {e}")
            raise AuthenticationError(LOGIN_FAILED_MESSAGE) from e

        if not users or not check_password_hash(users[0].get("password_hash", ""), password):
            logger.info(f"Failed sign-in for {student_id.strip()}")
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)

        user = users[0]
        actor = Actor(id=str(user["_id"]), email=email, role=user.get("role", "student"))
        logger.info(f"Signed in {actor.short_id} ({actor.role})")
        return actor

    def is_admin(self, actor: Optional[Actor]) -> bool:
        if actor is None:
            return False
        return actor.is_admin_role or actor.email.lower() in self.admin_emails

    def require_admin(self, actor: Optional[Actor]) -> Actor:
        """
        Raises:
            AuthorizationError: actor is missing or not an admin
        """
        if not self.is_admin(actor):
            raise AuthorizationError("Admin privileges required")
        return actor
