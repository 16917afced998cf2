"""
Embedding Service

Generates vector embeddings for file sections and search queries through
LiteLLM, so any provider LiteLLM supports can be configured by model name.

Default model: text-embedding-ada-002
- 1536-dimensional embeddings (matches file_sections.embedding)
- Vectors are normalized to length 1, so dot product == cosine similarity
"""

import logging
from typing import List, Optional

import litellm

from .config import SearchConfig

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Service for generating text embeddings."""

    def __init__(self, config: SearchConfig):
        """
        Initialize embedding service.

        Args:
            config: Search configuration
        """
        self.config = config
        self.model_name = config.embedding_model
        self.batch_size = config.embedding_batch_size
        self.dimension = config.embedding_dimension

        logger.info(f"Embedding model: {self.model_name} ({self.dimension} dims)")

    def _embed(self, texts: List[str]) -> List[List[float]]:
        kwargs = {}
        if self.config.embedding_api_key:
            kwargs["api_key"] = self.config.embedding_api_key

        # Newlines degrade embedding quality for OpenAI models
        inputs = [t.replace("\n", " ") for t in texts]
        response = litellm.embedding(model=self.model_name, input=inputs, **kwargs)

        embeddings = [item["embedding"] for item in response.data]
        if len(embeddings) != len(texts):
            raise ValueError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} inputs"
            )

        for embedding in embeddings:
            if len(embedding) != self.dimension:
                raise ValueError(
                    f"Embedding dimension mismatch: expected {self.dimension}, got {len(embedding)}"
                )

        return embeddings

    def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return self._embed([text])[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors, in input order
        """
        if not texts:
            return []

        logger.info(f"Embedding {len(texts)} texts in batches of {self.batch_size}")

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            embeddings.extend(self._embed(texts[i:i + self.batch_size]))

        return embeddings

    def get_query_embedding(self, query: str) -> List[float]:
        """
        Generate embedding for a search query.

        Args:
            query: Search query text

        Returns:
            Query embedding vector
        """
        return self.embed_text(query)

    def count_tokens(self, text: str) -> int:
        """
        Count tokens in ``text`` for the embedding model.

        Returns:
            Token count (rough 4-characters-per-token estimate if the
            tokenizer is unavailable)
        """
        try:
            return litellm.token_counter(model=self.model_name, text=text)
        except Exception:
            # Fallback: rough estimate (4 chars = 1 token)
            return len(text) // 4


def get_embedding_service(config: Optional[SearchConfig] = None) -> EmbeddingService:
    """
    Get embedding service instance.

    Args:
        config: Search configuration (optional, will load from env if not provided)

    Returns:
        EmbeddingService instance
    """
    if config is None:
        from .config import get_search_config
        config = get_search_config()

    return EmbeddingService(config)
