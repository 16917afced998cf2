"""
File Indexer

Stores a project's documents as ``files`` rows and their embedded
``file_sections``. Re-indexing a path replaces all of its sections.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..db.models import File, FileSection, utcnow
from .chunker import MarkdownSectionSplitter
from .config import SearchConfig
from .embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


class FileIndexer:
    """Splits, embeds and stores files for a project."""

    def __init__(
        self,
        session: Session,
        embedding_service: EmbeddingService,
        config: Optional[SearchConfig] = None,
    ):
        """
        Initialize indexer.

        Args:
            session: SQLAlchemy session
            embedding_service: Service used to embed sections
            config: Search configuration (defaults to the embedding service's)
        """
        self.session = session
        self.embedding_service = embedding_service
        self.config = config or embedding_service.config
        self.splitter = MarkdownSectionSplitter(
            self.config,
            token_counter=embedding_service.count_tokens,
        )

    def get_file(self, project_id: uuid.UUID, path: str) -> Optional[File]:
        return self.session.scalars(
            select(File).where(File.project_id == project_id, File.path == path)
        ).first()

    def index_file(
        self,
        project_id: uuid.UUID,
        path: str,
        content: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> File:
        """
        Index (or re-index) a document.

        Args:
            project_id: Project owning the file
            path: Path of the file within the project
            content: Markdown content
            meta: Optional metadata stored on the file

        Returns:
            The File row with its new sections
        """
        if not path:
            raise ValueError("File path must not be empty")

        sections = self.splitter.split(content)
        embeddings = self.embedding_service.embed_batch([s.content for s in sections])

        file = self.get_file(project_id, path)
        if file is None:
            file = File(project_id=project_id, path=path)
            self.session.add(file)
            logger.info(f"Indexing new file: {path}")
        else:
            self.session.execute(delete(FileSection).where(FileSection.file_id == file.id))
            self.session.expire(file, ["sections"])
            logger.info(f"Re-indexing file: {path}")

        file.meta = meta
        file.updated_at = utcnow()
        self.session.flush()

        for section, embedding in zip(sections, embeddings):
            self.session.add(
                FileSection(
                    file_id=file.id,
                    content=section.content,
                    token_count=section.token_count,
                    embedding=embedding,
                )
            )

        self.session.commit()
        self.session.refresh(file)

        logger.info(f"Stored {len(sections)} sections for {path}")
        return file

    def remove_file(self, project_id: uuid.UUID, path: str) -> bool:
        """
        Delete a file and its sections.

        Returns:
            True if the file existed
        """
        file = self.get_file(project_id, path)
        if file is None:
            return False

        self.session.delete(file)
        self.session.commit()
        logger.info(f"Removed file: {path}")
        return True
