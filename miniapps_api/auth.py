from __future__ import annotations

from fastapi import Header, HTTPException

from miniapps_api.settings import get_settings


async def require_user_id(
    x_user_email: str | None = Header(default=None, alias="X-User-Email"),
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
) -> str:
    """Resolve the tenant key for the request.

    The shell authenticates the user and forwards the email with the shared
    backend secret; every row in the database is scoped by this value.
    """
    settings = get_settings()
    if not x_backend_token or x_backend_token != settings.backend_session_secret:
        raise HTTPException(status_code=401, detail="Invalid backend token")
    email = (x_user_email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=401, detail="Missing user email")
    if settings.allowed_emails and email not in settings.allowed_emails:
        raise HTTPException(status_code=403, detail="User not allowed")
    return email
