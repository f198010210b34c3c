from __future__ import annotations

from fastapi import Depends, HTTPException, Request


def get_current_user(request: Request) -> dict | None:
    """Session user (``{id, username, role}``), or ``None`` when anonymous."""
    return request.session.get("user")


def get_current_user_id(user: dict | None = Depends(get_current_user)) -> str | None:
    return user["id"] if user else None


def require_user(user: dict | None = Depends(get_current_user)) -> dict:
    """Raise 401 unless a user is logged in."""
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: dict = Depends(require_user)) -> dict:
    """Raise 403 for logged-in users without the admin role."""
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
