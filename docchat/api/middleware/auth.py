"""
Authentication Middleware for FastAPI.

Resolves the project a request acts on. Three credentials are accepted:

- ``X-Project-Key``: the project's public API key; the request ``Origin``
  must be one of the project's domains
- ``Authorization: Bearer <token>`` where the token is a project token
- ``Authorization: Bearer <jwt>`` for a Supabase user together with
  ``X-Project-Id``; the user must be a member of the project's team
"""

from typing import Optional
from urllib.parse import urlparse
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
import logging

from ...auth.supabase_client import verify_token
from ...db.models import Project
from ...services.access import (
    get_project,
    resolve_project_by_public_key,
    resolve_project_by_token,
    user_can_access_project,
)
from ...services.users import ensure_user
from ..dependencies import get_db

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def origin_host(origin: Optional[str]) -> Optional[str]:
    """Extract the host name from an ``Origin`` or ``Referer`` header."""
    if not origin:
        return None
    parsed = urlparse(origin if "//" in origin else f"//{origin}")
    return parsed.hostname


async def get_current_project(
    authorization: Optional[str] = Header(None),
    x_project_key: Optional[str] = Header(None),
    x_project_id: Optional[str] = Header(None),
    origin: Optional[str] = Header(None),
    referer: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Project:
    """
    Dependency returning the project the request is authorized for.

    Raises:
        HTTPException: 401 for missing or invalid credentials, 403 when the
            credentials are valid but not for this project, 404 when the
            requested project does not exist
    """
    # Public API key, restricted to the project's domains
    if x_project_key:
        project = resolve_project_by_public_key(db, x_project_key)
        if project is None:
            raise _unauthorized("Invalid project key")

        host = origin_host(origin or referer)
        if not project.allows_domain(host):
            logger.warning(f"Project key used from unauthorized origin: {host}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This domain is not allowed to use the project key",
            )
        return project

    if not authorization:
        raise _unauthorized("Missing authorization header")

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format. Use: Bearer <token>")

    token = parts[1]

    # Project token
    project = resolve_project_by_token(db, token)
    if project is not None:
        return project

    # Supabase user session
    try:
        user_info = verify_token(token)
    except ValueError as e:
        logger.error(f"User authentication unavailable: {e}")
        user_info = None

    if not user_info:
        raise _unauthorized("Invalid or expired token")

    if not x_project_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Project-Id header is required for user sessions",
        )

    ensure_user(db, user_info)

    if get_project(db, x_project_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {x_project_id} not found",
        )

    project = user_can_access_project(db, user_info["id"], x_project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this project's team",
        )

    return project
