"""System endpoints (health check and stats)."""

from flask import Blueprint, jsonify

from config.database import mongodb
from middleware.auth import login_required
from services.member_service import fetch_dashboard_stats

system_bp = Blueprint("system", __name__)


@system_bp.route("/health", methods=["GET"])
def health_check():
    """Simple health-check route without authentication."""
    try:
        mongodb.client.admin.command("ping")
        db_status = "ok"
    except Exception as e:  # pragma: no cover - best effort
        db_status = f"error: {str(e)}"

    return jsonify({
        "status": "ok",
        "database": db_status,
    }), 200


@system_bp.route("/stats", methods=["GET"])
@login_required
def get_stats():
    """Return member counts as JSON."""
    stats = fetch_dashboard_stats()
    return jsonify({
        "status": "ok",
        "members": stats,
        "message": "Successfully retrieved statistics",
    }), 200
