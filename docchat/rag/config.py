"""
Search System Configuration

Centralized configuration for the semantic search components:
- Embedding model settings
- Section splitting parameters
- Default and maximum retrieval parameters
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..db.models import EMBEDDING_DIMENSION


class SearchConfig(BaseSettings):
    """Configuration for section indexing and search."""

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Embedding Model
    embedding_model: str = Field(
        default="text-embedding-ada-002",
        description="LiteLLM model name used for embeddings"
    )
    embedding_dimension: int = Field(
        default=EMBEDDING_DIMENSION,
        description="Dimension of embedding vectors (must match file_sections.embedding)"
    )
    embedding_batch_size: int = Field(
        default=64,
        description="Number of sections embedded per API call"
    )
    embedding_api_key: Optional[str] = Field(
        default=None,
        description="API key passed to the embedding provider"
    )

    # Section splitting
    section_max_chars: int = Field(
        default=2000,
        description="Maximum characters per section before splitting on paragraphs"
    )

    # Retrieval
    match_threshold: float = Field(
        default=0.5,
        description="Default minimum similarity for a section to match"
    )
    match_count: int = Field(
        default=10,
        description="Default number of sections to return"
    )
    max_match_count: int = Field(
        default=50,
        description="Upper bound on match_count accepted by the API"
    )
    min_content_length: int = Field(
        default=30,
        description="Default minimum section length in characters"
    )


def get_search_config() -> SearchConfig:
    """Get search configuration from environment."""
    return SearchConfig()
