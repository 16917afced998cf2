"""
Sections Router

Semantic search endpoints over a project's indexed file sections.
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ..schemas import (
    MatchSectionsRequest,
    MatchSectionsResponse,
    SearchParams,
    SearchSectionsRequest,
    SectionMatchResponse,
)
from ..dependencies import get_embedding_service, get_search_service
from ..middleware.auth import get_current_project
from ...db.models import Project
from ...rag.embedding_service import EmbeddingService
from ...rag.search import SectionSearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_search(
    service: SectionSearchService,
    project: Project,
    embedding,
    params: SearchParams,
) -> MatchSectionsResponse:
    max_count = service.config.max_match_count
    if params.match_count is not None and params.match_count > max_count:
        raise ValueError(f"match_count must not exceed {max_count}")

    matches = service.match_file_sections(
        embedding,
        match_threshold=params.match_threshold,
        match_count=params.match_count,
        min_content_length=params.min_content_length,
        project_id=project.id,
    )

    return MatchSectionsResponse(
        success=True,
        project_id=str(project.id),
        matches=[SectionMatchResponse(**m.to_dict()) for m in matches],
        matches_count=len(matches),
    )


@router.post("/sections/match", response_model=MatchSectionsResponse)
async def match_sections(
    request: MatchSectionsRequest,
    project: Project = Depends(get_current_project),
    service: SectionSearchService = Depends(get_search_service),
):
    """
    Find the project's sections most similar to a query embedding.

    **Parameters:**
    - `embedding`: Query embedding (must match the stored dimension)
    - `match_threshold`: Minimum similarity, exclusive
    - `match_count`: Maximum number of sections to return
    - `min_content_length`: Ignore sections shorter than this

    **Returns:**
    - Matching sections ordered by descending similarity, each with the
      path of its file
    """
    logger.info(f"Section match for project {project.id}")
    return _run_search(service, project, request.embedding, request)


@router.post("/sections/search", response_model=MatchSectionsResponse)
async def search_sections(
    request: SearchSectionsRequest,
    project: Project = Depends(get_current_project),
    service: SectionSearchService = Depends(get_search_service),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    """
    Embed a text query and find the project's most similar sections.

    **Parameters:**
    - `query`: Search query (1-2000 characters)
    - `match_threshold`, `match_count`, `min_content_length`: as for
      `/sections/match`
    """
    logger.info(f"Section search for project {project.id}: {request.query[:100]}")

    if not request.query.strip():
        raise ValueError("Search query cannot be empty")

    try:
        embedding = embedding_service.get_query_embedding(request.query)
    except ValueError:
        raise
    except Exception as e:
        logger.error(f"Query embedding failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Embedding service is currently unavailable",
        )

    return _run_search(service, project, embedding, request)
