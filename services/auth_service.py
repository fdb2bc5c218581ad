# services/auth_service.py
import json
import logging
import os
from typing import Optional, Dict, Any

from werkzeug.security import generate_password_hash, check_password_hash

from domain.models.user import AdminContext, AdminRole, User
from middleware.errors import PermissionDeniedError
from repositories.users_repository import UserRepository

logger = logging.getLogger(__name__)


def authenticate(username: str, password: str) -> Optional[Dict[str, Any]]:
    """Return user doc if username/password are valid and the account is active; otherwise None."""
    repo = UserRepository()
    user = repo.get_by_username(username)
    if not user or not user.is_active:
        return None
    if not check_password_hash(user.password_hash, password):
        return None
    return user.model_dump(exclude={"password_hash"})


def register_user(username: str, password: str, **extra) -> str:
    """Create a new user with a hashed password. Raises on duplicate username."""
    repo = UserRepository()
    if repo.get_by_username(username):
        raise ValueError("Username already exists")
    pw_hash = generate_password_hash(password)
    user = User(username=username, password_hash=pw_hash, **extra)
    return repo.create(user)


def change_password(username: str, new_password: str) -> bool:
    """Set a new password for an existing user. Returns True if updated."""
    repo = UserRepository()
    user = repo.get_by_username(username)
    if not user:
        return False
    pw_hash = generate_password_hash(new_password)
    return repo.update(user.id, {"password_hash": pw_hash}) == 1


def require_editor(context: Optional[AdminContext]) -> AdminContext:
    """Raise unless ``context`` belongs to a role allowed to write member data."""
    if context is None or not context.can_edit:
        raise PermissionDeniedError(
            details={"role": context.role.value if context else None}
        )
    return context


def _load_admin_users_from_env() -> list[dict[str, Any]]:
        """
        Returns a list of account dicts (username, password, role, email) from env:
          1) ADMIN_USERS (JSON array of {"username","password","role","email"})
          2) SUPERADMIN_USER + SUPERADMIN_PASSWORD (+ SUPERADMIN_EMAIL)
        """
        users: list[dict[str, Any]] = []

        # 1) ADMIN_USERS as JSON string
        raw_json = os.getenv("ADMIN_USERS")
        if raw_json:
            try:
                data = json.loads(raw_json)
                for item in data:
                    u = (item.get("username") or "").strip()
                    p = item.get("password")
                    if u and p is not None:
                        users.append(
                            {
                                "username": u,
                                "password": p,
                                "role": item.get("role") or AdminRole.ADMIN.value,
                                "email": item.get("email") or None,
                            }
                        )
            except json.JSONDecodeError as e:
                logger.error("Failed to parse ADMIN_USERS JSON: %s", e)

        # 2) Superadmin pair
        u = (os.getenv("SUPERADMIN_USER") or "").strip()
        p = os.getenv("SUPERADMIN_PASSWORD")
        if u and p is not None:
            users.append(
                {
                    "username": u,
                    "password": p,
                    "role": AdminRole.SUPERADMIN.value,
                    "email": os.getenv("SUPERADMIN_EMAIL") or None,
                }
            )

        # Deduplicate by username, keep the first occurrence
        seen = set()
        deduped: list[dict[str, Any]] = []
        for item in users:
            if item["username"] not in seen:
                seen.add(item["username"])
                deduped.append(item)
        return deduped


def ensure_default_users() -> None:
    """Idempotently create the configured admin users with hashed passwords."""
    repo = UserRepository()
    for item in _load_admin_users_from_env():
        if repo.get_by_username(item["username"]):
            continue
        try:
            role = AdminRole(str(item["role"]).upper())
        except ValueError:
            role = AdminRole.VIEWER
        repo.create(
            User(
                username=item["username"],
                password_hash=generate_password_hash(item["password"]),
                email=item["email"],
                role=role,
            )
        )
        logger.info("Seeded admin user %s (%s)", item["username"], role.value)
