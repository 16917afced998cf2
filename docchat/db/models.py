"""SQLAlchemy database models for teams, projects and indexed files."""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

# text-embedding-ada-002 vectors
EMBEDDING_DIMENSION = 1536

# Identity columns are bigint on PostgreSQL; SQLite only autoincrements INTEGER keys.
IdentityKey = BigInteger().with_variant(Integer(), "sqlite")
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MembershipType(str, enum.Enum):
    """Role of a user inside a team."""

    VIEWER = "viewer"
    ADMIN = "admin"


class User(Base):
    """
    Public profile of an authenticated user.

    The primary key is the id of the matching ``auth.users`` row; that foreign
    key lives in the Supabase ``auth`` schema and is created by the migration.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    has_completed_onboarding: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    memberships: Mapped[List["Membership"]] = relationship(
        "Membership",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Team(Base):
    """Teams data."""
    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_personal: Mapped[bool | None] = mapped_column(Boolean, default=False, server_default=false())
    stripe_customer_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    stripe_price_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    billing_cycle_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    # Relationships
    projects: Mapped[List["Project"]] = relationship(
        "Project",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    memberships: Mapped[List["Membership"]] = relationship(
        "Membership",
        back_populates="team",
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, slug={self.slug})>"


class Project(Base):
    """Projects within a team."""
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    public_api_key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    github_repo: Mapped[str | None] = mapped_column(Text, nullable=True)
    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_starter: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    # Relationships
    team: Mapped["Team"] = relationship("Team", back_populates="projects")
    domains: Mapped[List["Domain"]] = relationship(
        "Domain",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tokens: Mapped[List["Token"]] = relationship(
        "Token",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    files: Mapped[List["File"]] = relationship(
        "File",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def allows_domain(self, host: str | None) -> bool:
        """
        Check whether requests from ``host`` may use the public API key.

        Args:
            host: Host name taken from the request origin, with or without port

        Returns:
            True if the host matches one of the project's domains
        """
        if not host:
            return False
        host = host.strip().lower().split(":", 1)[0]
        return any(domain.name.lower() == host for domain in self.domains)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, slug={self.slug}, team_id={self.team_id})>"


class Membership(Base):
    """Memberships of a user in a team."""
    __tablename__ = "memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False, index=True)
    type: Mapped[MembershipType] = mapped_column(
        Enum(
            MembershipType,
            name="membership_type",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships")
    team: Mapped["Team"] = relationship("Team", back_populates="memberships")

    def __repr__(self) -> str:
        return f"<Membership(user_id={self.user_id}, team_id={self.team_id}, type={self.type.value})>"


class Domain(Base):
    """Domains associated to a project."""
    __tablename__ = "domains"

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True, autoincrement=True)
    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    project: Mapped["Project"] = relationship("Project", back_populates="domains")

    def __repr__(self) -> str:
        return f"<Domain(id={self.id}, name={self.name})>"


class Token(Base):
    """Tokens associated to a project."""
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True, autoincrement=True)
    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="tokens")

    def __repr__(self) -> str:
        # Never print the token value
        return f"<Token(id={self.id}, project_id={self.project_id})>"


class File(Base):
    """
    Source document indexed for a project.

    A file is identified within its project by ``path``; its content lives in
    the ``file_sections`` rows.
    """
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    project: Mapped["Project"] = relationship("Project", back_populates="files")
    sections: Mapped[List["FileSection"]] = relationship(
        "FileSection",
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FileSection.id",
    )

    __table_args__ = (
        Index("ix_files_project_path", "project_id", "path"),
    )

    def __repr__(self) -> str:
        return f"<File(id={self.id}, path={self.path})>"


class FileSection(Base):
    """Chunk of a file with its embedding."""
    __tablename__ = "file_sections"

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True, autoincrement=True)
    file_id: Mapped[int] = mapped_column(
        IdentityKey,
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    embedding: Mapped[Any] = mapped_column(Vector(EMBEDDING_DIMENSION), nullable=True)

    file: Mapped["File"] = relationship("File", back_populates="sections")

    def __repr__(self) -> str:
        return f"<FileSection(id={self.id}, file_id={self.file_id}, tokens={self.token_count})>"
