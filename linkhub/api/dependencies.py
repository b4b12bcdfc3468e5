"""Shared FastAPI dependencies."""

import uuid

from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: str = Header(None)) -> uuid.UUID:
    """Caller identity from the X-User-Id header (set by the auth gateway)."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id")
