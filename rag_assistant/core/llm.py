"""LLM capability port and provider clients.

This module defines the generation interface the pipeline depends on and
thin adapters for the OpenAI and Anthropic APIs.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from rag_assistant.config import GenerationConfig, get_settings
from rag_assistant.exceptions import LLMServiceError, StructuredOutputError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)

SCHEMA_INSTRUCTIONS = """

OUTPUT FORMAT:
Respond with a single JSON object that conforms to this JSON schema. Do not add any text outside the JSON object.
{schema}"""


def extract_json(text: str) -> str:
    """Extract a JSON object from model output.

    Handles markdown code fences and prose surrounding the object.

    Args:
        text: Raw model output

    Returns:
        The most likely JSON substring (the stripped input if none is found)
    """
    trimmed = text.strip()

    fenced = _FENCE_RE.search(trimmed)
    if fenced:
        return fenced.group(1).strip()

    first, last = trimmed.find("{"), trimmed.rfind("}")
    if first != -1 and last > first:
        return trimmed[first:last + 1]

    return trimmed


def parse_structured_output(text: str, schema: Type[M]) -> M:
    """Parse model output into ``schema``.

    Raises:
        StructuredOutputError: If the text is not valid JSON for the schema
    """
    try:
        return schema.model_validate_json(extract_json(text))
    except ValidationError as e:
        raise StructuredOutputError(
            f"Output does not match {schema.__name__}: {e.error_count()} validation error(s)"
        ) from e


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    model: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ) -> str:
        """Generate unconstrained text."""
        pass

    async def generate_structured(
        self,
        prompt: str,
        schema: Type[M],
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ) -> M:
        """Generate output validated against a pydantic schema.

        Args:
            prompt: Task prompt
            schema: Pydantic model the output must satisfy
            max_tokens: Output token budget
            temperature: Sampling temperature

        Returns:
            Validated schema instance

        Raises:
            StructuredOutputError: If the output fails validation
            LLMServiceError: If the provider call fails
        """
        schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
        text = await self._generate_json_text(
            prompt + SCHEMA_INSTRUCTIONS.format(schema=schema_json),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return parse_structured_output(text, schema)

    async def _generate_json_text(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Provider hook for JSON-constrained generation."""
        return await self.generate(prompt, max_tokens=max_tokens, temperature=temperature)


class OpenAIClient(LLMClient):
    """OpenAI API client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        max_retries: int = 2,
        client: Optional[Any] = None,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Chat model name
            timeout: Per-request timeout in seconds
            max_retries: SDK-level retries
            client: Pre-configured AsyncOpenAI client (for testing)
        """
        self.model = model
        if client is None:
            from openai import AsyncOpenAI
            client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self.client = client

    async def _complete(self, prompt: str, max_tokens: int, temperature: float, **extra) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
                **extra,
            )
        except Exception as e:
            raise LLMServiceError(f"OpenAI request failed: {e}") from e
        return response.choices[0].message.content or ""

    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ) -> str:
        """Generate using OpenAI."""
        return await self._complete(prompt, max_tokens, temperature)

    async def _generate_json_text(self, prompt: str, max_tokens: int, temperature: float) -> str:
        return await self._complete(
            prompt, max_tokens, temperature, response_format={"type": "json_object"},
        )


class AnthropicClient(LLMClient):
    """Anthropic API client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-3-5-haiku-latest",
        timeout: float = 60.0,
        max_retries: int = 2,
        client: Optional[Any] = None,
    ):
        """Initialize Anthropic client."""
        self.model = model
        if client is None:
            from anthropic import AsyncAnthropic
            client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self.client = client

    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ) -> str:
        """Generate using Anthropic."""
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise LLMServiceError(f"Anthropic request failed: {e}") from e
        return "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )


def create_llm_client(config: Optional[GenerationConfig] = None) -> LLMClient:
    """Build the configured provider client.

    Raises:
        ValueError: If the provider is unknown or its API key is missing
    """
    config = config or get_settings().generation

    if config.provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OpenAI API key not configured")
        client: LLMClient = OpenAIClient(
            api_key=config.openai_api_key,
            model=config.model,
            timeout=config.timeout_s,
            max_retries=config.max_retries,
        )
    elif config.provider == "anthropic":
        if not config.anthropic_api_key:
            raise ValueError("Anthropic API key not configured")
        client = AnthropicClient(
            api_key=config.anthropic_api_key,
            model=config.model,
            timeout=config.timeout_s,
            max_retries=config.max_retries,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {config.provider}")

    logger.info(f"Initialized {config.provider} client with model {config.model}")
    return client
