"""Response generation using LLM.

This module turns a prompt into an answer with a two-tier strategy
(structured, then plain text) and produces the no-context fallback answer.
"""

import logging
from typing import Optional

from rag_assistant.config import GenerationConfig, RagConfig, get_settings
from rag_assistant.core.fallback import with_fallback
from rag_assistant.core.llm import LLMClient
from rag_assistant.core.prompts import PromptBuilder
from rag_assistant.core.types import (
    AnswerResult,
    PlainTextAnswer,
    StructuredAnswer,
    StructuredResponse,
)

logger = logging.getLogger(__name__)

STATIC_FALLBACK_RESPONSE = (
    "I don't have information about that in the current documentation. "
    "Please contact HR or your manager for more specific guidance."
)


class ResponseGenerator:
    """Service for generating answers using LLM.

    ``generate_answer`` always yields an answer as long as one of its two
    generator calls succeeds; ``generate_fallback`` never fails.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        config: Optional[GenerationConfig] = None,
        rag_config: Optional[RagConfig] = None,
    ):
        """Initialize the generator.

        Args:
            llm_client: Pre-configured LLM client
            prompt_builder: Prompt renderer for the fallback prompt
            config: Generation configuration
            rag_config: Source of the fallback token budget
        """
        settings = get_settings()
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or settings.generation
        self.rag_config = rag_config or settings.rag

    async def _generate_structured(self, prompt: str) -> AnswerResult:
        value = await self.llm_client.generate_structured(
            prompt=prompt,
            schema=StructuredResponse,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return StructuredAnswer(value=value)

    async def _generate_plain(self, prompt: str) -> AnswerResult:
        text = await self.llm_client.generate(
            prompt=prompt,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return PlainTextAnswer(text=text)

    async def generate_answer(self, prompt: str) -> AnswerResult:
        """Generate an answer for a context-bearing prompt.

        Tries schema-validated output first and degrades to plain text with
        the same prompt and configuration.

        Args:
            prompt: Answer prompt built from retrieved fragments

        Returns:
            StructuredAnswer or PlainTextAnswer

        Raises:
            Exception: Whatever the plain-text call raised, if both tiers fail
        """
        logger.debug(f"Generating answer (prompt: {len(prompt)} chars)")
        return await with_fallback(
            "Structured generation",
            lambda: self._generate_structured(prompt),
            lambda _: self._generate_plain(prompt),
        )

    async def generate_fallback(self, query: str, sector_name: Optional[str] = None) -> str:
        """Generate an empathetic answer when nothing was retrieved.

        Args:
            query: User question
            sector_name: Display name of the sector, if known

        Returns:
            LLM-written response, or a static apology if the call fails
        """
        prompt = self.prompt_builder.build_fallback_prompt(query, sector_name)

        async def _generate() -> str:
            text = await self.llm_client.generate(
                prompt=prompt,
                max_tokens=self.rag_config.fallback_max_tokens,
                temperature=self.config.temperature,
            )
            if not text.strip():
                raise ValueError("empty fallback response")
            return text

        return await with_fallback(
            "Fallback generation", _generate, lambda _: STATIC_FALLBACK_RESPONSE,
        )
