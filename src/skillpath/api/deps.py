"""Shared request dependencies."""

from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> UUID:
    """Return the authenticated actor forwarded by the upstream gateway.

    Requests without a valid identity are rejected before any handler runs.
    """

    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user identity") from exc
