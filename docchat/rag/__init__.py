"""
Semantic search over file sections.

Components:
- config: search and embedding settings
- embedding_service: generates embeddings through LiteLLM
- chunker: splits Markdown files into sections
- indexer: stores files and embedded sections
- search: similarity search over stored sections
"""

from .config import SearchConfig, get_search_config
from .search import SectionMatch, SectionSearchService

__all__ = ["SearchConfig", "get_search_config", "SectionMatch", "SectionSearchService"]
