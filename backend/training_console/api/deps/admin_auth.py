from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException, status

from training_console.config import load_settings


def require_admin_token(x_admin_token: str | None = Header(None)) -> str | None:
    """Guard admin routes; returns the presented token, used as the acting admin id."""
    settings = load_settings()
    if settings.admin_auth_disabled:
        return x_admin_token
    if x_admin_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing admin token",
        )
    if not secrets.compare_digest(x_admin_token, settings.admin_access_token or ""):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin token",
        )
    return x_admin_token


AdminAuth = Depends(require_admin_token)
