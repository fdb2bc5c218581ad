
# middleware/auth.py
from functools import wraps
from flask import (
    Blueprint, redirect, url_for, session, flash, current_app, g
)

from domain.models.user import AdminContext
from middleware.errors import PermissionDeniedError
from services.auth_service import ensure_default_users

auth_bp = Blueprint("auth", __name__, url_prefix="/admin")

@auth_bp.before_app_request
def _seed_default_users_once():
    # store a flag on the app object so it persists across requests
    if not current_app.config.get("_DEFAULT_USERS_SEEDED", False):
        try:
            ensure_default_users()
        except Exception as exc:
            current_app.logger.warning("ensure_default_users failed: %s", exc)
        current_app.config["_DEFAULT_USERS_SEEDED"] = True


def current_admin() -> AdminContext | None:
    """Explicit admin context for the current request (None when logged out)."""
    return AdminContext.from_session(session)


def login_required(view_func):
    """Decorator that requires a logged-in admin (session['username'])."""
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        context = current_admin()
        if context is None:
            flash("Please log in to continue.", "warning")
            return redirect(url_for("auth.login"))
        g.admin = context
        return view_func(*args, **kwargs)
    return wrapper


def editor_required(view_func):
    """Decorator for views that write member data (ADMIN / SUPERADMIN)."""
    @wraps(view_func)
    @login_required
    def wrapper(*args, **kwargs):
        if not g.admin.can_edit:
            raise PermissionDeniedError(details={"role": g.admin.role.value})
        return view_func(*args, **kwargs)
    return wrapper
