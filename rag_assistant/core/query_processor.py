"""Query preprocessing and expansion.

Short queries produce generic embeddings that miss relevant fragments, so
they are enriched with synonyms and related terms by the LLM before
embedding. Descriptive queries are passed through untouched.
"""

import logging
from typing import Optional

from rag_assistant.config import GenerationConfig, RagConfig, get_settings
from rag_assistant.core.fallback import with_fallback
from rag_assistant.core.llm import LLMClient
from rag_assistant.core.prompts import PromptBuilder

logger = logging.getLogger(__name__)


def word_count(query: str) -> int:
    """Number of whitespace-delimited words."""
    return len(query.split())


class QueryProcessor:
    """Service for expanding short queries.

    Expansion is best-effort: any failure returns the original query.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        config: Optional[RagConfig] = None,
        generation_config: Optional[GenerationConfig] = None,
    ):
        """Initialize the query processor.

        Args:
            llm_client: LLM used to produce the enriched query
            prompt_builder: Prompt renderer
            config: Expansion thresholds
            generation_config: Source of the sampling temperature
        """
        settings = get_settings()
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or settings.rag
        self.generation_config = generation_config or settings.generation

    def needs_expansion(self, query: str) -> bool:
        return word_count(query) < self.config.expansion_word_threshold

    async def expand(self, query: str) -> str:
        """Return an enriched query, or the original one.

        Args:
            query: Raw user query

        Returns:
            Expanded text when the query is short and expansion succeeded,
            otherwise ``query`` unchanged
        """
        if not self.needs_expansion(query):
            logger.debug("Query is descriptive enough, skipping expansion")
            return query

        async def _expand() -> str:
            text = await self.llm_client.generate(
                prompt=self.prompt_builder.build_expansion_prompt(query),
                max_tokens=self.config.expansion_max_tokens,
                temperature=self.generation_config.temperature,
            )
            expanded = text.strip()
            if not expanded:
                raise ValueError("expanded query is empty")
            if len(expanded) >= self.config.max_expanded_length:
                raise ValueError(f"expanded query too long ({len(expanded)} chars)")
            return expanded

        expanded = await with_fallback("Query expansion", _expand, lambda _: query)
        if expanded != query:
            logger.info(f"Expanded query: {query[:50]!r} -> {expanded[:50]!r}...")
        return expanded
