"""Vector search capability.

This module defines the search port used by the pipeline and a Qdrant
implementation that isolates sectors through a payload filter.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from rag_assistant.config import QdrantConfig, get_settings
from rag_assistant.core.types import FragmentResult

logger = logging.getLogger(__name__)


class VectorSearcher(ABC):
    """Ranks stored fragments by similarity to a query vector."""

    @abstractmethod
    async def search(
        self,
        vector: List[float],
        namespace: str,
        limit: int,
        min_score: float,
    ) -> List[FragmentResult]:
        """Search one namespace.

        Args:
            vector: Query embedding
            namespace: Sector partition to search; never widened implicitly
            limit: Maximum number of fragments
            min_score: Minimum similarity threshold

        Returns:
            Fragments ordered by descending similarity, possibly empty
        """
        pass


class QdrantVectorSearcher(VectorSearcher):
    """Searcher backed by a Qdrant collection.

    Every point carries its sector in the payload field named by
    ``QdrantConfig.namespace_key``.
    """

    def __init__(
        self,
        config: Optional[QdrantConfig] = None,
        client: Optional[Any] = None,
    ):
        """Initialize the searcher.

        Args:
            config: Qdrant connection configuration
            client: Pre-initialized AsyncQdrantClient (for testing)
        """
        self.config = config or get_settings().qdrant
        self._client = client
        self._initialized = client is not None

    def _ensure_initialized(self):
        """Lazy initialization of Qdrant client."""
        if not self._initialized:
            from qdrant_client import AsyncQdrantClient

            logger.info(f"Connecting to Qdrant: {self.config.url}")
            self._client = AsyncQdrantClient(url=self.config.url, api_key=self.config.api_key)
            self._initialized = True

    def _namespace_filter(self, namespace: str):
        from qdrant_client.models import FieldCondition, Filter, MatchValue

        return Filter(
            must=[
                FieldCondition(
                    key=self.config.namespace_key,
                    match=MatchValue(value=namespace),
                )
            ]
        )

    async def search(
        self,
        vector: List[float],
        namespace: str,
        limit: int,
        min_score: float,
    ) -> List[FragmentResult]:
        """Search the sector's fragments in Qdrant."""
        self._ensure_initialized()

        response = await self._client.query_points(
            collection_name=self.config.collection_name,
            query=vector,
            query_filter=self._namespace_filter(namespace),
            limit=limit,
            score_threshold=min_score,
            with_payload=True,
        )

        fragments = []
        for point in response.points:
            payload = point.payload or {}
            fragments.append(
                FragmentResult(
                    id=str(point.id),
                    content=payload.get("content", ""),
                    similarity=float(point.score),
                    source_id=str(payload.get("source_id", "")),
                    metadata=payload.get("metadata") or {},
                )
            )

        logger.debug(f"Qdrant returned {len(fragments)} fragments for namespace {namespace}")
        return fragments


def create_vector_searcher(config: Optional[QdrantConfig] = None) -> VectorSearcher:
    """Build the configured vector searcher."""
    return QdrantVectorSearcher(config=config)
