"""Grounded RAG assistant.

Answers questions from per-sector documentation by retrieving fragments,
generating a structured answer and scoring it with LLM judges.
"""

from rag_assistant.services.rag_service import RagOrchestrator, create_rag_orchestrator
from rag_assistant.core.types import RagQueryInput, RagQueryOutput, RagResponseType
from rag_assistant.exceptions import RagError, RagValidationError, EmbeddingError

__version__ = "1.0.0"

__all__ = [
    "RagOrchestrator",
    "create_rag_orchestrator",
    "RagQueryInput",
    "RagQueryOutput",
    "RagResponseType",
    "RagError",
    "RagValidationError",
    "EmbeddingError",
]
