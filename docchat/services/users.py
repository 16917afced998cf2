"""
User Profile Service

Keeps ``public.users`` in step with Supabase auth users. The database does
this with the ``on_auth_user_created`` trigger; this covers users created
before the trigger existed or in databases without the ``auth`` schema.
"""

import logging
import uuid
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..db.models import User

logger = logging.getLogger(__name__)


def ensure_user(session: Session, user_info: Dict[str, Any]) -> User:
    """
    Return the profile row for an authenticated user, creating it if missing.

    Args:
        session: SQLAlchemy session
        user_info: Dict with ``id``, ``email`` and optional ``user_metadata``
            as returned by ``verify_token``

    Returns:
        The User row
    """
    user_id = uuid.UUID(str(user_info["id"]))
    user = session.get(User, user_id)
    if user is not None:
        return user

    metadata = user_info.get("user_metadata") or {}
    email = metadata.get("email") or user_info.get("email")
    if not email:
        raise ValueError(f"User {user_id} has no email address")

    user = User(
        id=user_id,
        email=email,
        full_name=metadata.get("full_name"),
        avatar_url=metadata.get("avatar_url"),
    )
    session.add(user)
    session.commit()

    logger.info(f"Created user profile for {user_id}")
    return user
