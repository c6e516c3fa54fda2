"""Core RAG components.

This module provides the core functionality for:
- Capability ports (embedding, vector search, LLM generation)
- Query expansion
- Prompt construction
- Response generation
- Answer evaluation
"""

from rag_assistant.core.embedder import Embedder, SentenceTransformerEmbedder, create_embedder
from rag_assistant.core.retrieval import VectorSearcher, QdrantVectorSearcher, create_vector_searcher
from rag_assistant.core.llm import LLMClient, OpenAIClient, AnthropicClient, create_llm_client
from rag_assistant.core.query_processor import QueryProcessor
from rag_assistant.core.prompts import PromptBuilder
from rag_assistant.core.generator import ResponseGenerator, STATIC_FALLBACK_RESPONSE
from rag_assistant.core.evaluator import RagEvaluator
from rag_assistant.core.fallback import with_fallback

__all__ = [
    # Embedder
    "Embedder",
    "SentenceTransformerEmbedder",
    "create_embedder",
    # Retrieval
    "VectorSearcher",
    "QdrantVectorSearcher",
    "create_vector_searcher",
    # LLM
    "LLMClient",
    "OpenAIClient",
    "AnthropicClient",
    "create_llm_client",
    # Pipeline stages
    "QueryProcessor",
    "PromptBuilder",
    "ResponseGenerator",
    "STATIC_FALLBACK_RESPONSE",
    "RagEvaluator",
    "with_fallback",
]
