"""Configuration management for the RAG assistant."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional
from functools import lru_cache


@dataclass
class QdrantConfig:
    """Qdrant vector store configuration."""
    url: str = "http://qdrant:6333"
    api_key: Optional[str] = None
    collection_name: str = "fragments"
    namespace_key: str = "sector_id"  # payload field that partitions sectors


@dataclass
class EmbeddingConfig:
    """Embedding model configuration."""
    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    dimensions: int = 384
    max_tokens: int = 512


@dataclass
class GenerationConfig:
    """LLM generation configuration."""
    provider: str = "openai"  # openai, anthropic
    model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.3
    timeout_s: float = 60.0
    max_retries: int = 2

    # API keys
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None


@dataclass
class RagConfig:
    """Query expansion and fallback parameters."""
    expansion_word_threshold: int = 10
    max_expanded_length: int = 500
    expansion_max_tokens: int = 100
    fallback_max_tokens: int = 256


@dataclass
class EvaluationConfig:
    """LLM-as-judge configuration."""
    enabled: bool = True
    pass_threshold: float = 0.6
    temperature: float = 0.1
    max_tokens: int = 512


@dataclass
class Settings:
    """Main application settings."""
    app_name: str = "RAG Assistant"
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    qdrant: QdrantConfig = field(default_factory=QdrantConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    rag: RagConfig = field(default_factory=RagConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {"1", "true", "yes"}


@lru_cache()
def get_settings() -> Settings:
    """Get application settings from environment."""
    return Settings(
        debug=_env_flag("DEBUG", False),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        qdrant=QdrantConfig(
            url=os.getenv("QDRANT_URL", QdrantConfig.url),
            api_key=os.getenv("QDRANT_API_KEY"),
            collection_name=os.getenv("QDRANT_COLLECTION", QdrantConfig.collection_name),
        ),
        embedding=EmbeddingConfig(
            model_name=os.getenv("EMBEDDING_MODEL", EmbeddingConfig.model_name),
        ),
        generation=GenerationConfig(
            provider=os.getenv("LLM_PROVIDER", GenerationConfig.provider).strip().lower(),
            model=os.getenv("LLM_MODEL", GenerationConfig.model),
            temperature=float(os.getenv("LLM_TEMPERATURE", str(GenerationConfig.temperature))),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", str(GenerationConfig.max_tokens))),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        ),
        evaluation=EvaluationConfig(
            enabled=_env_flag("RAG_EVALUATION_ENABLED", True),
        ),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding the pipeline.

    Args:
        level: Log level name; defaults to the LOG_LEVEL setting
    """
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
