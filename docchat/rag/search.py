"""
Semantic Section Search

Finds the file sections whose stored embeddings are most similar to a query
embedding.

Similarity is the dot product of the stored and query vectors. OpenAI
embeddings are normalized to length 1, so this ranks exactly like cosine
similarity while being cheaper to compute. pgvector's ``<#>`` operator
returns the *negative* inner product, so it is negated to get similarity and
used as-is (ascending) for ordering.

On PostgreSQL the whole search runs as one pgvector query. Other dialects
(SQLite during tests and local development) load the candidate sections and
rank them in process with numpy; both paths return the same results.
"""

import logging
import math
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

import numpy as np
from pgvector.sqlalchemy import Vector
from sqlalchemy import Select, bindparam, func, select, text
from sqlalchemy.orm import Session

from ..db.models import EMBEDDING_DIMENSION, File, FileSection
from .config import SearchConfig

logger = logging.getLogger(__name__)


@dataclass
class SectionMatch:
    """A file section returned by a similarity search."""
    path: str
    content: str
    token_count: Optional[int]
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SectionCandidate(NamedTuple):
    """A stored section considered for in-process ranking."""
    id: int
    path: str
    content: Optional[str]
    token_count: Optional[int]
    embedding: Optional[Sequence[float]]


def validate_embedding(embedding: Sequence[float], dimension: int = EMBEDDING_DIMENSION) -> None:
    """
    Validate that an embedding can be compared with stored section embeddings.

    Raises:
        ValueError: If the embedding is empty, has the wrong dimension, or
            contains non-numeric or non-finite values
    """
    if embedding is None or len(embedding) == 0:
        raise ValueError("Embedding must not be empty")

    if len(embedding) != dimension:
        raise ValueError(
            f"Embedding dimension mismatch: expected {dimension}, got {len(embedding)}"
        )

    for i, value in enumerate(embedding):
        if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
            raise ValueError(f"Non-numeric value at embedding index {i}")
        if not math.isfinite(float(value)):
            raise ValueError(f"Non-finite value at embedding index {i}")


def validate_search_params(
    match_threshold: float,
    match_count: int,
    min_content_length: int,
) -> None:
    """
    Validate the scalar search parameters.

    Raises:
        ValueError: If any parameter has the wrong type or is out of range
    """
    if not _is_number(match_threshold) or not math.isfinite(float(match_threshold)):
        raise ValueError("match_threshold must be a finite number")
    if not _is_integer(match_count):
        raise ValueError("match_count must be an integer")
    if match_count < 1:
        raise ValueError("match_count must be at least 1")
    if not _is_integer(min_content_length):
        raise ValueError("min_content_length must be an integer")
    if min_content_length < 0:
        raise ValueError("min_content_length must not be negative")


def _is_number(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float, np.number))


def _is_integer(value) -> bool:
    # bool is an int subclass
    return not isinstance(value, bool) and isinstance(value, (int, np.integer))


def rank_sections(
    query_embedding: Sequence[float],
    candidates: Iterable[SectionCandidate],
    match_threshold: float,
    match_count: int,
    min_content_length: int,
) -> List[SectionMatch]:
    """
    Rank candidate sections against a query embedding.

    Args:
        query_embedding: Query vector
        candidates: Sections to score
        match_threshold: Sections must score strictly above this similarity
        match_count: Maximum number of matches to return
        min_content_length: Minimum content length in characters

    Returns:
        Matches ordered by descending similarity, ties by section id
    """
    query = np.asarray(query_embedding, dtype=float)

    scored = []
    for candidate in candidates:
        # NULL content or embedding never matches, as in SQL
        if candidate.content is None or candidate.embedding is None:
            continue
        if len(candidate.content) < min_content_length:
            continue

        similarity = float(np.dot(np.asarray(candidate.embedding, dtype=float), query))
        if similarity > match_threshold:
            scored.append((similarity, candidate))

    scored.sort(key=lambda item: (-item[0], item[1].id))

    return [
        SectionMatch(
            path=candidate.path,
            content=candidate.content,
            token_count=candidate.token_count,
            similarity=similarity,
        )
        for similarity, candidate in scored[:match_count]
    ]


def build_match_query(
    embedding: Sequence[float],
    match_threshold: float,
    match_count: int,
    min_content_length: int,
    project_id: Optional[uuid.UUID] = None,
) -> Select:
    """
    Build the pgvector query for a section search.

    Returns:
        Select producing (path, content, token_count, similarity) rows
    """
    distance = FileSection.embedding.max_inner_product(embedding)
    similarity = distance * -1

    stmt = (
        select(
            File.path,
            FileSection.content,
            FileSection.token_count,
            similarity.label("similarity"),
        )
        .select_from(FileSection)
        .join(File, FileSection.file_id == File.id)
        .where(func.length(FileSection.content) >= min_content_length)
        .where(similarity > match_threshold)
    )

    if project_id is not None:
        stmt = stmt.where(File.project_id == project_id)

    return stmt.order_by(distance, FileSection.id).limit(match_count)


_MATCH_FUNCTION_QUERY = text(
    "select path, content, token_count, similarity "
    "from match_file_sections("
    "CAST(:embedding AS vector), :match_threshold, :match_count, :min_content_length)"
).bindparams(bindparam("embedding", type_=Vector(EMBEDDING_DIMENSION)))


def call_match_file_sections(
    session: Session,
    embedding: Sequence[float],
    match_threshold: float,
    match_count: int,
    min_content_length: int,
) -> List[SectionMatch]:
    """
    Run a search through the ``match_file_sections`` database function.

    Only available on PostgreSQL databases migrated with the initial schema.
    """
    validate_embedding(embedding)
    validate_search_params(match_threshold, match_count, min_content_length)

    rows = session.execute(
        _MATCH_FUNCTION_QUERY,
        {
            "embedding": list(embedding),
            "match_threshold": float(match_threshold),
            "match_count": int(match_count),
            "min_content_length": int(min_content_length),
        },
    ).all()

    return [
        SectionMatch(
            path=row.path,
            content=row.content,
            token_count=row.token_count,
            similarity=float(row.similarity),
        )
        for row in rows
    ]


class SectionSearchService:
    """Similarity search over stored file sections."""

    def __init__(self, session: Session, config: Optional[SearchConfig] = None):
        """
        Initialize search service.

        Args:
            session: SQLAlchemy session bound to the sections database
            config: Search configuration (defaults to environment)
        """
        if config is None:
            from .config import get_search_config
            config = get_search_config()

        self.session = session
        self.config = config

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    def match_file_sections(
        self,
        embedding: Sequence[float],
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None,
        min_content_length: Optional[int] = None,
        project_id: Optional[uuid.UUID] = None,
    ) -> List[SectionMatch]:
        """
        Find the sections most similar to ``embedding``.

        Args:
            embedding: Query embedding
            match_threshold: Minimum similarity (exclusive); config default if None
            match_count: Maximum number of results; config default if None
            min_content_length: Minimum section length; config default if None
            project_id: Restrict the search to one project's files

        Returns:
            Matches ordered by descending similarity, joined with file paths

        Raises:
            ValueError: If the embedding or parameters are invalid
        """
        if match_threshold is None:
            match_threshold = self.config.match_threshold
        if match_count is None:
            match_count = self.config.match_count
        if min_content_length is None:
            min_content_length = self.config.min_content_length

        validate_embedding(embedding, self.config.embedding_dimension)
        validate_search_params(match_threshold, match_count, min_content_length)

        logger.info(
            "Section search: threshold=%.3f, count=%d, min_length=%d, project=%s",
            match_threshold, match_count, min_content_length, project_id,
        )

        if self.dialect == "postgresql":
            matches = self._match_in_database(
                embedding, match_threshold, match_count, min_content_length, project_id
            )
        else:
            matches = self._match_in_process(
                embedding, match_threshold, match_count, min_content_length, project_id
            )

        logger.info(f"Section search returned {len(matches)} matches")
        return matches

    def _match_in_database(
        self,
        embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        min_content_length: int,
        project_id: Optional[uuid.UUID],
    ) -> List[SectionMatch]:
        stmt = build_match_query(
            list(embedding), match_threshold, match_count, min_content_length, project_id
        )
        return [
            SectionMatch(
                path=row.path,
                content=row.content,
                token_count=row.token_count,
                similarity=float(row.similarity),
            )
            for row in self.session.execute(stmt)
        ]

    def _match_in_process(
        self,
        embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        min_content_length: int,
        project_id: Optional[uuid.UUID],
    ) -> List[SectionMatch]:
        stmt = (
            select(
                FileSection.id,
                File.path,
                FileSection.content,
                FileSection.token_count,
                FileSection.embedding,
            )
            .select_from(FileSection)
            .join(File, FileSection.file_id == File.id)
            .where(FileSection.embedding.is_not(None))
            .where(func.length(FileSection.content) >= min_content_length)
        )
        if project_id is not None:
            stmt = stmt.where(File.project_id == project_id)

        candidates = [
            SectionCandidate(row.id, row.path, row.content, row.token_count, row.embedding)
            for row in self.session.execute(stmt)
        ]
        logger.debug(f"Ranking {len(candidates)} candidate sections in process")

        return rank_sections(
            embedding, candidates, match_threshold, match_count, min_content_length
        )
