"""Error taxonomy for the RAG query pipeline.

Only validation and embedding failures escape the orchestrator; every other
error type here is raised by a collaborator and absorbed by a fallback stage.
"""

from typing import Any, Dict, List, Optional


class RagError(Exception):
    """Base class for pipeline errors."""


class RagValidationError(RagError, ValueError):
    """Raised when a query input is malformed.

    Surfaced to callers as a client error (4xx-equivalent) before any
    capability call is made.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class EmbeddingError(RagError):
    """Raised when the embedding capability returns an unusable vector."""


class LLMServiceError(RagError):
    """Raised when an LLM provider call fails."""


class StructuredOutputError(LLMServiceError):
    """Raised when model output does not validate against the requested schema."""
