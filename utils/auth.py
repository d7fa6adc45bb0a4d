"""Shared-credential HTTP Basic guard for the admin routes."""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from utils.settings import AdminSettings

_basic = HTTPBasic(auto_error=False, realm="Farm admin")


def _matches(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic),
) -> None:
    """Reject the request unless it carries the configured credential pair.

    Skipped entirely when the app runs in local-only mode.
    """
    settings: AdminSettings = request.app.state.settings
    if settings.local_only:
        return

    # Compare both parts even when the first one fails, to keep timing uniform.
    valid = False
    if credentials is not None and settings.auth_configured:
        user_ok = _matches(credentials.username, settings.admin_username)
        password_ok = _matches(credentials.password, settings.admin_password)
        valid = user_ok and password_ok

    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": 'Basic realm="Farm admin"'},
        )
