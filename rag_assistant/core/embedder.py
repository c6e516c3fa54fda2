"""Embedding capability for query vectorization.

This module defines the embedding port used by the pipeline and a
sentence-transformers implementation of it.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import numpy as np

from rag_assistant.config import EmbeddingConfig, get_settings

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Converts text into a dense vector.

    Failures propagate to the caller: without a vector no retrieval is
    possible, so there is no fallback at this boundary.
    """

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        pass


class SentenceTransformerEmbedder(Embedder):
    """Embedder backed by a sentence-transformers model."""

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        model: Optional[Any] = None,
    ):
        """Initialize the embedder.

        Args:
            config: Embedding configuration
            model: Pre-loaded model (for testing)
        """
        self.config = config or get_settings().embedding
        self._model = model
        self._initialized = model is not None
        self._lock = threading.Lock()

    def _ensure_initialized(self):
        """Lazy initialization of the model."""
        with self._lock:
            if self._initialized:
                return
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading embedding model: {self.config.model_name}")
            self._model = SentenceTransformer(self.config.model_name)
            self._initialized = True
            logger.info(f"Embedding model loaded. Dimensions: {self.config.dimensions}")

    async def embed(self, text: str) -> List[float]:
        """Generate a normalized embedding for a text.

        Args:
            text: Input text to embed

        Returns:
            Embedding as a list of floats
        """
        # Model loading and encoding are CPU-bound; run them in executor to not block
        loop = asyncio.get_event_loop()
        if not self._initialized:
            await loop.run_in_executor(None, self._ensure_initialized)

        # Truncate if too long
        words = text.split()
        if len(words) > self.config.max_tokens:
            text = " ".join(words[:self.config.max_tokens])

        embedding = await loop.run_in_executor(
            None,
            lambda: self._model.encode(
                text,
                convert_to_numpy=True,
                normalize_embeddings=True,
            ),
        )
        return np.asarray(embedding, dtype=np.float32).tolist()


def create_embedder(config: Optional[EmbeddingConfig] = None) -> Embedder:
    """Build the configured embedder."""
    return SentenceTransformerEmbedder(config=config)
