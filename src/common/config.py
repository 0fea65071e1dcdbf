"""
Configuration loader for the job database application.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [part.strip().lower() for part in value.split(",") if part.strip()]


class Config:
    """
    Centralized configuration for the web app, logger and reporter.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "job_database")

    # ===== Collections =====
    COMPANIES_TABLE: str = "companies"
    COMPANY_STATS_TABLE: str = "company_stats"
    EMPLOYMENT_STATS_TABLE: str = "employment_statistics"
    VIEW_LOGS_TABLE: str = "view_logs"
    COLUMN_SELECTIONS_TABLE: str = "column_selections"
    SORT_OPERATIONS_TABLE: str = "sort_operations"
    FILTER_OPERATIONS_TABLE: str = "filter_operations"
    BOOKMARKS_TABLE: str = "bookmarks"
    USERS_TABLE: str = "users"

    # ===== Flask / Auth =====
    FLASK_SECRET_KEY: str = os.getenv("FLASK_SECRET_KEY", "")
    # Students log in with their student number; the identifier is
    # "<student number>@<AUTH_EMAIL_DOMAIN>"
    AUTH_EMAIL_DOMAIN: str = os.getenv("AUTH_EMAIL_DOMAIN", "example.com")
    ADMIN_EMAILS: List[str] = _split_csv(os.getenv("ADMIN_EMAILS", ""))

    # ===== Analytics =====
    # Change notifications arriving within this window trigger one refresh
    REFRESH_DEBOUNCE_SECONDS: float = float(os.getenv("REFRESH_DEBOUNCE_SECONDS", "1.0"))
    REPORT_TIMEZONE: str = os.getenv("REPORT_TIMEZONE", "Asia/Tokyo")
    JOBS_PAGE_NAME: str = "jobs"

    # ===== Logging =====
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "MONGODB_URI": cls.MONGODB_URI,
            "FLASK_SECRET_KEY": cls.FLASK_SECRET_KEY,
        }

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.REFRESH_DEBOUNCE_SECONDS < 0:
            raise ValueError("REFRESH_DEBOUNCE_SECONDS must not be negative")

        if cls.LOG_FORMAT not in ("simple", "json"):
            raise ValueError(f"LOG_FORMAT must be 'simple' or 'json', got '{cls.LOG_FORMAT}'")

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  MongoDB: {'✓ Configured' if cls.MONGODB_URI else '✗ Missing'}
  Database: {cls.MONGODB_DATABASE}
  Flask secret: {'✓ Configured' if cls.FLASK_SECRET_KEY else '✗ Missing (random per process)'}
  Auth email domain: {cls.AUTH_EMAIL_DOMAIN}
  Admin accounts: {len(cls.ADMIN_EMAILS)}
  Refresh debounce: {cls.REFRESH_DEBOUNCE_SECONDS}s
  Report timezone: {cls.REPORT_TIMEZONE}
  Logging: {cls.LOG_LEVEL} ({cls.LOG_FORMAT})
        """.strip()
