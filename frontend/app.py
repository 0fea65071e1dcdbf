"""
Flask application for the student Job Database.

Provides:
- Student login by student number
- Company table with column selection, sorting, unknown-value filters
  and bookmarks (HTMX partial updates)
- Interaction logging for every table action and page view
- Admin analytics dashboard

Stack: Flask + HTMX + Tailwind CSS (CDN)
"""

import json
import logging
import os
import sys
from datetime import datetime
from functools import wraps
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, render_template, request, session, url_for
from pydantic import ValidationError

# Load environment variables
load_dotenv()

# Import version (from parent directory)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
try:
    from version import __version__
    APP_VERSION = __version__
except ImportError:
    APP_VERSION = "dev"

from src.analytics.interaction_logger import InteractionLogger
from src.analytics.refresh import DashboardService
from src.common.actors import Actor
from src.common.config import Config
from src.common.error_handling import (
    AuthenticationError,
    DataUnavailableError,
    UnknownFilterError,
)
from src.common.logger import setup_logging
from src.common.repositories import BackendInterface, get_backend
from src.services import AuthService, BookmarkService, CompanyTableService, LOGIN_FAILED_MESSAGE
from src.table.columns import COMPANY_NAME_COLUMN, SELECTABLE_COLUMNS
from src.table.filters import FILTER_RULES, SHOW_ONLY_BOOKMARKS, apply_filters
from src.table.sorting import sort_rows
from src.table.view_state import ViewState
from frontend.schemas import LoginForm, ViewEndRequest

app = Flask(__name__)

setup_logging(Config.LOG_LEVEL, Config.LOG_FORMAT)
logger = logging.getLogger(__name__)

# Session configuration
flask_secret_key = Config.FLASK_SECRET_KEY

if not flask_secret_key:
    if os.getenv("FLASK_ENV") == "production":
        raise RuntimeError(
            "CRITICAL: FLASK_SECRET_KEY not set. "
            "Sessions would be invalidated on every restart."
        )
    logger.warning("FLASK_SECRET_KEY not set. Generating random key (sessions will not persist between restarts)")
    flask_secret_key = os.urandom(24).hex()

app.secret_key = flask_secret_key

# Cookie security settings
app.config["SESSION_COOKIE_HTTPONLY"] = True
is_production = os.getenv("FLASK_ENV") == "production"
app.config["SESSION_COOKIE_SECURE"] = is_production
app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
app.config["PERMANENT_SESSION_LIFETIME"] = 60 * 60 * 24 * 7  # 7 days

SESSION_ACTOR = "actor"
SESSION_VIEW_STATE = "view_state"
SESSION_VIEW_STARTED_AT = "view_started_at"

NO_MATCHING_ROWS_MESSAGE = "該当する企業データがありません"
DATA_UNAVAILABLE_MESSAGE = "企業データを取得できませんでした"


@app.context_processor
def inject_version():
    """Inject version info into all templates."""
    return {"version": APP_VERSION}


# ============================================================================
# Collaborators (patched in tests)
# ============================================================================

_interaction_logger: Optional[InteractionLogger] = None
_dashboard_service: Optional[DashboardService] = None


def _get_backend() -> BackendInterface:
    return get_backend()


def _get_interaction_logger() -> InteractionLogger:
    global _interaction_logger
    if _interaction_logger is None:
        _interaction_logger = InteractionLogger(_get_backend(), page=Config.JOBS_PAGE_NAME)
    return _interaction_logger


def _get_dashboard_service() -> DashboardService:
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService(_get_backend())
        _dashboard_service.start()
    return _dashboard_service


def _get_auth_service() -> AuthService:
    return AuthService(_get_backend())


# ============================================================================
# Authentication
# ============================================================================

def current_actor() -> Optional[Actor]:
    return Actor.from_session(session.get(SESSION_ACTOR))


def login_required(f):
    """
    Decorator to require authentication for routes.

    For API routes (/api/*): Returns JSON 401 if not authenticated
    For page routes: Redirects to login page if not authenticated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_actor() is None:
            if request.path.startswith("/api/"):
                return jsonify({"error": "Not authenticated"}), 401
            return redirect(url_for("login_page"))
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """
    Decorator for admin-only routes.

    A signed-in non-admin is signed out and sent back to the login page.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return redirect(url_for("login_page"))
        if not _get_auth_service().is_admin(actor):
            logger.warning(f"Non-admin {actor.short_id} requested {request.path}; signing out")
            session.clear()
            return redirect(url_for("login_page"))
        return f(*args, **kwargs)
    return decorated_function


@app.route("/login", methods=["GET", "POST"])
def login_page():
    """Handle login page and authentication."""
    if request.method == "GET":
        return render_template("login.html", error=None)

    try:
        form = LoginForm(
            student_id=request.form.get("student_id", "").strip(),
            password=request.form.get("password", ""),
        )
        actor = _get_auth_service().sign_in(form.student_id, form.password)
    except (ValidationError, AuthenticationError):
        return render_template("login.html", error=LOGIN_FAILED_MESSAGE), 401

    session.clear()
    session[SESSION_ACTOR] = actor.to_session()
    session.permanent = True
    return redirect(url_for("jobs_page"))


@app.route("/logout", methods=["GET", "POST"])
def logout():
    """Handle logout."""
    session.clear()
    return redirect(url_for("login_page"))


# ============================================================================
# Company table
# ============================================================================

def _load_view_state(actor: Actor) -> ViewState:
    return ViewState.from_dict(actor, _get_interaction_logger(), session.get(SESSION_VIEW_STATE))


def _save_view_state(state: ViewState) -> None:
    session[SESSION_VIEW_STATE] = state.to_dict()


def _coerce_company_id(value: str) -> Any:
    return int(value) if value.isdigit() else value


def _table_context(state: ViewState) -> dict:
    """Fetch, merge, filter and sort rows for rendering."""
    backend = _get_backend()
    bookmarks = BookmarkService(backend).list_for(state.actor)

    try:
        rows = CompanyTableService(backend).load_rows()
        unavailable = False
    except DataUnavailableError as e:
        logger.error(f"Company table unavailable: {e}")
        rows = []
        unavailable = True

    visible = sort_rows(apply_filters(rows, state.filters, bookmarks), state.sort)

    return {
        "rows": visible,
        "bookmarks": bookmarks,
        "selected_columns": state.selected_columns,
        "sort": state.sort,
        "filters": state.filters,
        "filter_rules": FILTER_RULES,
        "show_only_bookmarks_key": SHOW_ONLY_BOOKMARKS,
        "selectable_columns": SELECTABLE_COLUMNS,
        "name_column": COMPANY_NAME_COLUMN,
        "unavailable": unavailable,
        "empty_message": DATA_UNAVAILABLE_MESSAGE if unavailable else NO_MATCHING_ROWS_MESSAGE,
    }


def _render_table(state: ViewState):
    return render_template("partials/job_table.html", **_table_context(state))


@app.route("/")
@login_required
def index():
    return redirect(url_for("jobs_page"))


@app.route("/jobs")
@login_required
def jobs_page():
    """Company table page. Starts a page view for the interaction log."""
    actor = current_actor()
    state = _load_view_state(actor)
    view = _get_interaction_logger().log_view_start(actor)
    session[SESSION_VIEW_STARTED_AT] = view.started_at.isoformat()
    _save_view_state(state)
    return render_template("jobs.html", actor=actor, **_table_context(state))


@app.route("/partials/job-table")
@login_required
def job_table_partial():
    return _render_table(_load_view_state(current_actor()))


@app.route("/jobs/columns/<path:name>", methods=["POST"])
@login_required
def toggle_column(name: str):
    state = _load_view_state(current_actor())
    state.toggle_column(name)
    _save_view_state(state)
    return _render_table(state)


@app.route("/jobs/sort/<path:key>", methods=["POST"])
@login_required
def request_sort(key: str):
    state = _load_view_state(current_actor())
    state.request_sort(key)
    _save_view_state(state)
    return _render_table(state)


@app.route("/jobs/filters/<name>", methods=["POST"])
@login_required
def toggle_filter(name: str):
    state = _load_view_state(current_actor())
    try:
        state.toggle_filter(name)
    except UnknownFilterError:
        return jsonify({"error": f"Unknown filter: {name}"}), 400
    _save_view_state(state)
    return _render_table(state)


@app.route("/jobs/bookmarks/<company_id>", methods=["POST"])
@login_required
def toggle_bookmark(company_id: str):
    actor = current_actor()
    service = BookmarkService(_get_backend())
    service.toggle(actor, _coerce_company_id(company_id), service.list_for(actor))
    return _render_table(_load_view_state(actor))


@app.route("/api/view-end", methods=["POST"])
@login_required
def view_end():
    """
    Page-exit beacon.

    navigator.sendBeacon posts text/plain, so the body is parsed manually.
    Always answers 204; a missing or malformed view is only logged.
    """
    actor = current_actor()
    started_raw = session.pop(SESSION_VIEW_STARTED_AT, None)
    if not started_raw:
        logger.debug(f"View-end without a started view for {actor.short_id}")
        return "", 204

    try:
        payload = json.loads(request.get_data(as_text=True) or "{}")
        body = ViewEndRequest(**payload)
        started_at = datetime.fromisoformat(started_raw)
    except (json.JSONDecodeError, TypeError, ValidationError, ValueError) as e:
        logger.warning(f"Malformed view-end beacon from {actor.short_id}: {e}")
        return "", 204

    _get_interaction_logger().log_view_end(actor, started_at, body.scroll_depth)
    return "", 204


# ============================================================================
# Admin dashboard
# ============================================================================

@app.route("/admin/dashboard")
@admin_required
def admin_dashboard():
    report = _get_dashboard_service().get_report()
    return render_template("admin_dashboard.html", report=report)


@app.route("/admin/dashboard/report.json")
@admin_required
def admin_dashboard_report():
    return jsonify(_get_dashboard_service().get_report().to_dict())


@app.route("/health", methods=["GET"])
def public_health_check():
    """Public health endpoint. No authentication required."""
    return jsonify({"status": "healthy", "version": APP_VERSION})


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    port = int(os.getenv("FLASK_PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "true").lower() == "true"

    logger.info(Config.summary())
    logger.info(f"Starting Job Database UI on http://localhost:{port}")

    app.run(host="0.0.0.0", port=port, debug=debug)
