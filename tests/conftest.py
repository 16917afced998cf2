"""Pytest configuration and shared fixtures."""

import uuid
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from docchat.db.base import Base
from docchat.db.models import (
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
from docchat.rag.config import SearchConfig


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def engine():
    """In-memory SQLite engine with foreign keys enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = Session(engine)
    yield session
    session.close()


@pytest.fixture
def config():
    return SearchConfig(
        match_threshold=0.5,
        match_count=10,
        min_content_length=30,
        section_max_chars=2000,
    )


@pytest.fixture
def make_embedding():
    """Build a full-size embedding from its leading components (rest are zero)."""
    def _make(*leading):
        values = [0.0] * EMBEDDING_DIMENSION
        for i, value in enumerate(leading):
            values[i] = float(value)
        return values
    return _make


@pytest.fixture
def fake_embedding_service(config, make_embedding):
    """Embedding service stand-in that maps every text to the first axis."""
    service = MagicMock()
    service.config = config
    service.embed_batch.side_effect = lambda texts: [make_embedding(1.0) for _ in texts]
    service.get_query_embedding.side_effect = lambda query: make_embedding(1.0)
    service.count_tokens.side_effect = lambda text: len(text.split())
    return service


@pytest.fixture
def seed(db_session):
    """
    Two teams with one project each.

    ``owner`` is an admin of team A, ``viewer`` a viewer of team A and
    ``outsider`` only belongs to team B.
    """
    owner = User(id=uuid.uuid4(), email="owner@example.com", full_name="Owner")
    viewer = User(id=uuid.uuid4(), email="viewer@example.com")
    outsider = User(id=uuid.uuid4(), email="outsider@example.com")
    db_session.add_all([owner, viewer, outsider])
    db_session.flush()

    team_a = Team(slug="team-a", name="Team A", created_by=owner.id)
    team_b = Team(slug="team-b", name="Team B", created_by=outsider.id)
    db_session.add_all([team_a, team_b])
    db_session.flush()

    project_a = Project(
        slug="docs",
        name="Docs",
        public_api_key="pk_team_a",
        team_id=team_a.id,
        created_by=owner.id,
    )
    project_b = Project(
        slug="docs",
        name="Other docs",
        public_api_key="pk_team_b",
        team_id=team_b.id,
        created_by=outsider.id,
    )
    db_session.add_all([project_a, project_b])
    db_session.flush()

    db_session.add_all([
        Membership(user_id=owner.id, team_id=team_a.id, type=MembershipType.ADMIN),
        Membership(user_id=viewer.id, team_id=team_a.id, type=MembershipType.VIEWER),
        Membership(user_id=outsider.id, team_id=team_b.id, type=MembershipType.ADMIN),
        Domain(name="docs.example.com", project_id=project_a.id),
        Token(value="tok_team_a", project_id=project_a.id, created_by=owner.id),
    ])
    db_session.commit()

    return SimpleNamespace(
        owner=owner,
        viewer=viewer,
        outsider=outsider,
        team_a=team_a,
        team_b=team_b,
        project_a=project_a,
        project_b=project_b,
    )


@pytest.fixture
def add_section(db_session):
    """Store a section (creating its file on first use) and return it."""
    files = {}

    def _add(project, path, content, embedding, token_count=None):
        key = (project.id, path)
        if key not in files:
            file = File(project_id=project.id, path=path)
            db_session.add(file)
            db_session.flush()
            files[key] = file

        section = FileSection(
            file_id=files[key].id,
            content=content,
            token_count=token_count,
            embedding=embedding,
        )
        db_session.add(section)
        db_session.commit()
        return section

    return _add
