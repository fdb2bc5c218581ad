import os
import importlib
import logging
import pkgutil

from flask import Blueprint, Flask

from config import settings
from repositories.member_repository import MemberRepository


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app() -> Flask:
    """Flask application factory."""
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["MAX_CONTENT_LENGTH"] = settings.UPLOADS_MAX_MB * 1024 * 1024
    _configure_logging(app)

    """Registration of error handlers."""
    from middleware.handlers import register_error_handlers
    register_error_handlers(app)

    # Unique RUT / token indexes back the importer's create-vs-update decision
    try:
        MemberRepository().ensure_indexes()
    except Exception as exc:
        # Continue startup even if the database is unavailable (e.g., tests)
        app.logger.warning("Could not ensure member indexes: %s", exc)

    # Auto-register all blueprints defined in routes/*.py
    from routes import __path__ as routes_path

    for _, module_name, _ in pkgutil.iter_modules(routes_path):
        module = importlib.import_module(f"routes.{module_name}")
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if isinstance(obj, Blueprint) and obj.name not in app.blueprints:
                app.register_blueprint(obj)

    return app


# at bottom of app.py
if __name__ == "__main__":
    from os import getenv

    app = create_app()
    cert, key = getenv("CERT_PATH"), getenv("KEY_PATH")
    app.run(
        host="0.0.0.0",
        port=int(getenv("PORT", 3000)),
        debug=getenv("FLASK_DEBUG", "0") == "1",
        use_reloader=False,  # <- important
        ssl_context=(cert, key) if cert and key else None,
    )
