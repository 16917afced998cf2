"""
Project Access Service

Resolves which project a request is acting on and whether a user may act on
it. The predicates mirror the row-level security policies, for requests
served through a connection that bypasses RLS.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..db.models import Membership, MembershipType, Project, Token

logger = logging.getLogger(__name__)


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def get_project(session: Session, project_id) -> Optional[Project]:
    project_uuid = _as_uuid(project_id)
    if project_uuid is None:
        return None
    return session.get(Project, project_uuid)


def resolve_project_by_public_key(session: Session, public_api_key: str) -> Optional[Project]:
    """
    Find the project owning a public API key.

    The project's domains are loaded so the caller can check the request
    origin with ``Project.allows_domain``.
    """
    if not public_api_key:
        return None
    return session.scalars(
        select(Project)
        .options(selectinload(Project.domains))
        .where(Project.public_api_key == public_api_key)
    ).first()


def resolve_project_by_token(session: Session, token_value: str) -> Optional[Project]:
    """Find the project a private access token belongs to."""
    if not token_value:
        return None
    token = session.scalars(select(Token).where(Token.value == token_value)).first()
    if token is None:
        logger.info("Unknown project token")
        return None
    return token.project


def is_team_member(
    session: Session,
    user_id,
    team_id,
    member_type: Optional[MembershipType] = None,
) -> bool:
    """
    Check whether a user holds a membership in a team.

    Args:
        session: SQLAlchemy session
        user_id: User UUID
        team_id: Team UUID
        member_type: Require this membership type (any type if None)
    """
    user_uuid = _as_uuid(user_id)
    team_uuid = _as_uuid(team_id)
    if user_uuid is None or team_uuid is None:
        return False

    stmt = select(Membership.id).where(
        Membership.user_id == user_uuid,
        Membership.team_id == team_uuid,
    )
    if member_type is not None:
        stmt = stmt.where(Membership.type == member_type)

    return session.execute(stmt.limit(1)).first() is not None


def user_can_access_project(
    session: Session,
    user_id,
    project_id,
    member_type: Optional[MembershipType] = None,
) -> Optional[Project]:
    """
    Return the project if the user is a member of its team, else None.
    """
    project = get_project(session, project_id)
    if project is None:
        return None
    if not is_team_member(session, user_id, project.team_id, member_type):
        return None
    return project
