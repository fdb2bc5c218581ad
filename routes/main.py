# routes/main.py
"""Landing page: sends members to the RUT login and admins to the dashboard."""

from flask import Blueprint, render_template

from config import settings

main_bp = Blueprint("main", __name__)

@main_bp.route("/")
def show_home():
    """Render the public landing page."""

    return render_template("main.html", org_name=settings.ORG_NAME)
