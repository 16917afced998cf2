"""Database module for docchat."""

from .base import Base
from .session import engine, SessionLocal, get_db
from .models import (
    EMBEDDING_DIMENSION,
    Domain,
    File,
    FileSection,
    Membership,
    MembershipType,
    Project,
    Team,
    Token,
    User,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "EMBEDDING_DIMENSION",
    "Domain",
    "File",
    "FileSection",
    "Membership",
    "MembershipType",
    "Project",
    "Team",
    "Token",
    "User",
]
