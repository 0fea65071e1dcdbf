"""
Services used by the web frontend.

Each service receives the backend by injection.
"""

from src.services.auth_service import AuthService, LOGIN_FAILED_MESSAGE
from src.services.bookmark_service import BookmarkService
from src.services.company_service import CompanyTableService

__all__ = [
    "AuthService",
    "LOGIN_FAILED_MESSAGE",
    "BookmarkService",
    "CompanyTableService",
]
