import os

def env_bool(key, default=False):
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes", "on")

def env_int(key, default):
    try:
        return int(os.getenv(key, default))
    except (TypeError, ValueError):
        return default

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
IMPORT_DRY_RUN = env_bool("IMPORT_DRY_RUN")
UPLOADS_MAX_MB = env_int("UPLOADS_MAX_MB", 10)

ORG_NAME = os.getenv("ORG_NAME", "FENATS")
DEFAULT_AFFILIATE = os.getenv("DEFAULT_AFFILIATE", "FENATS OCTAVA")
DEFAULT_IMPORT_SOURCE = os.getenv("DEFAULT_IMPORT_SOURCE", "Carga Excel")

# Base for QR / verification links; request host is used when unset
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
