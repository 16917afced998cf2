"""
FastAPI Dependencies

Provides dependency injection for database sessions and search services.
"""

from typing import Generator
from sqlalchemy.orm import Session
from fastapi import Depends

from ..db.session import SessionLocal
from ..rag.config import SearchConfig, get_search_config
from ..rag.embedding_service import EmbeddingService
from ..rag.search import SectionSearchService


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields SQLAlchemy session and ensures cleanup.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Cached instances
_config_instance: SearchConfig | None = None
_embedding_service_instance: EmbeddingService | None = None


def get_config() -> SearchConfig:
    """Get cached search configuration"""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_search_config()
    return _config_instance


def get_embedding_service(config: SearchConfig = Depends(get_config)) -> EmbeddingService:
    """Get cached embedding service (reused across requests)"""
    global _embedding_service_instance
    if _embedding_service_instance is None:
        _embedding_service_instance = EmbeddingService(config)
    return _embedding_service_instance


def get_search_service(
    db: Session = Depends(get_db),
    config: SearchConfig = Depends(get_config),
) -> SectionSearchService:
    """
    Section search dependency.

    Usage:
        @router.post("/sections/match")
        def match(service: SectionSearchService = Depends(get_search_service)):
            service.match_file_sections(...)
    """
    return SectionSearchService(db, config)
