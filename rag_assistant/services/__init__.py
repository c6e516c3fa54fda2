"""Service layer for the RAG assistant."""

from rag_assistant.services.rag_service import (
    STATIC_ERROR_RESPONSE,
    PipelineStage,
    RagOrchestrator,
    create_rag_orchestrator,
)

__all__ = [
    "STATIC_ERROR_RESPONSE",
    "PipelineStage",
    "RagOrchestrator",
    "create_rag_orchestrator",
]
