# routes/auth.py
from urllib.parse import urlparse

from flask import (
    render_template, request, redirect,
    url_for, session, flash
)

from services.auth_service import authenticate
from middleware.auth import auth_bp


def _safe_next(target: str | None) -> str | None:
    """Only allow relative redirects back into this app."""
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/"):
        return None
    return target


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """Render login form and handle authentication."""
    if request.method == "POST":
        username = (request.form.get("username") or "").strip()
        password = request.form.get("password") or ""

        user = authenticate(username, password)
        if not user:
            flash("Invalid username or password.", "danger")
            return render_template("login.html", username=username), 401

        # Minimal session payload; AdminContext is rebuilt from it per request
        session.clear()
        session["username"] = user["username"]
        session["role"] = user.get("role")
        flash(f"Welcome, {session['username']}!", "success")
        return redirect(_safe_next(request.args.get("next")) or url_for("admin.dashboard"))

    return render_template("login.html")


@auth_bp.route("/logout", methods=["POST", "GET"])
def logout():
    """Log out current user and redirect to login page."""
    session.clear()
    flash("You have been logged out.", "info")
    return redirect(url_for("auth.login"))
