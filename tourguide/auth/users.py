from __future__ import annotations

import time
import uuid
from typing import Any

import bcrypt

from ..errors import InteractionError

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(username: str, record: dict[str, Any]) -> dict[str, Any]:
    return {"id": record["id"], "username": username, "role": record["role"]}


def _seed_users() -> None:
    """Pre-seed demo users on import."""
    _users["user"] = {
        "id": "u-user",
        "password_hash": _hash_password("user123"),
        "role": "user",
        "created_at": time.time(),
    }
    _users["admin"] = {
        "id": "u-admin",
        "password_hash": _hash_password("admin123"),
        "role": "admin",
        "created_at": time.time(),
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return _public(username, record)
    return None


def register(username: str, password: str) -> dict[str, Any]:
    """Create a ``user``-role account. Raises if the name is taken."""
    if username in _users:
        raise InteractionError("Username already taken")
    _users[username] = {
        "id": f"u-{uuid.uuid4().hex[:12]}",
        "password_hash": _hash_password(password),
        "role": "user",
        "created_at": time.time(),
    }
    return _public(username, _users[username])


def get_users() -> list[dict[str, Any]]:
    return [
        {**_public(name, record), "created_at": record["created_at"]}
        for name, record in _users.items()
    ]


_seed_users()
