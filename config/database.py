# config/database.py
from __future__ import annotations

import os
from typing import Optional
from urllib.parse import quote_plus

from pymongo import MongoClient
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from middleware.errors import ConfigurationError, DatabaseConnectionError


def _build_mongo_uri() -> str:
    """
    Build the MongoDB URI.
    Precedence:
      1. TEST_MONGODB_URI (for CI/tests)
      2. MONGODB_URI (full connection string)
      3. Individual parts: DB_USER / DB_PASSWORD / DB_HOST / DB_NAME
    """
    # 1. CI/Test override
    test_uri = os.getenv("TEST_MONGODB_URI")
    if test_uri:
        return test_uri

    # 2. Full URI override
    uri = os.getenv("MONGODB_URI")
    if uri:
        return uri

    # 3. Build from components
    user = os.getenv("DB_USER", "").strip()
    pwd = os.getenv("DB_PASSWORD", "").strip()
    host = os.getenv("DB_HOST", "").strip()
    dbname = os.getenv("DB_NAME", "membership_registry").strip()

    if not (user and pwd and host):
        raise ConfigurationError(
            "Missing Mongo credentials. Set TEST_MONGODB_URI, MONGODB_URI or "
            "DB_USER/DB_PASSWORD/DB_HOST (and optionally DB_NAME)."
        )

    return (
        f"mongodb+srv://{user}:{quote_plus(pwd)}@{host}/{dbname}"
        f"?retryWrites=true&w=majority&appName=Cluster0&tls=true"
    )



class MongoConnection:
    """
    Singleton MongoDB client & DB accessor.
    - Holds a single pooled client for the process.
    - Offers helpers to get the DB and its collections.
    """

    _instance: Optional["MongoConnection"] = None

    def __new__(cls) -> "MongoConnection":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._init_client()
            cls._instance = instance
        return cls._instance

    def _init_client(self) -> None:
        uri = _build_mongo_uri()
        tls = os.getenv("MONGODB_TLS", "auto").lower()
        use_tls = uri.startswith("mongodb+srv://") if tls == "auto" else tls in ("1", "true", "yes", "on")
        self._client = MongoClient(uri, server_api=ServerApi("1"), tls=use_tls)
        # Fail fast if credentials/URI are wrong
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            raise DatabaseConnectionError(details={"reason": str(exc)}) from exc

        # Default DB name (from URI path or DB_NAME env)
        self._db_name = os.getenv("DB_NAME", "membership_registry")

    @property
    def client(self) -> MongoClient:
        """Return the shared MongoClient instance."""
        return self._client

    def db(self):
        """Return the default database handle."""
        return self._client[self._db_name]

    def collection(self, name: str):
        """Return a collection handle from the default DB."""
        return self.db()[name]

    def close(self) -> None:
        """Close the client and reset the singleton (used in tests/shutdown)."""
        if getattr(self, "_client", None) is not None:
            self._client.close()
        type(self)._instance = None


# Module-level singleton accessor
mongodb = MongoConnection()


