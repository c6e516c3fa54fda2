"""LLM-as-judge evaluation of generated answers.

Two dimensions are scored independently and concurrently:

1. Faithfulness: is the answer grounded in the retrieved context?
2. Relevancy: does the answer address the user's question?

Each judge returns a score in [0, 1], a PASS/FAIL status and a short
reasoning. A failing judge yields an UNKNOWN score for its own dimension
and never affects the other one.
"""

import asyncio
import logging
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field

from rag_assistant.config import EvaluationConfig, get_settings
from rag_assistant.core.fallback import describe_error, with_fallback
from rag_assistant.core.llm import LLMClient
from rag_assistant.core.prompts import PromptBuilder
from rag_assistant.core.types import EvaluationScore, EvaluationStatus, RagEvaluationResult
from rag_assistant.exceptions import StructuredOutputError

logger = logging.getLogger(__name__)


class JudgeVerdict(BaseModel):
    """Raw judge output; UNKNOWN is reserved for failures."""
    score: float = Field(..., ge=0.0, le=1.0)
    status: Literal["PASS", "FAIL"]
    reasoning: str


class RagEvaluator:
    """Scores answers with faithfulness and relevancy judges."""

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        config: Optional[EvaluationConfig] = None,
    ):
        """Initialize the evaluator.

        Args:
            llm_client: LLM used as judge
            prompt_builder: Prompt renderer
            config: Judge thresholds and sampling settings
        """
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or get_settings().evaluation

    async def _judge(self, prompt: str) -> EvaluationScore:
        verdict = await self.llm_client.generate_structured(
            prompt=prompt,
            schema=JudgeVerdict,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        # The judge decides the status; a verdict that contradicts its own score is unusable.
        expected = "PASS" if verdict.score >= self.config.pass_threshold else "FAIL"
        if verdict.status != expected:
            raise StructuredOutputError(
                f"status {verdict.status} inconsistent with score {verdict.score:.2f}"
            )
        return EvaluationScore(
            score=verdict.score,
            status=EvaluationStatus(verdict.status),
            reasoning=verdict.reasoning,
        )

    async def _safe_judge(self, dimension: str, prompt: str) -> EvaluationScore:
        return await with_fallback(
            f"{dimension} evaluation",
            lambda: self._judge(prompt),
            lambda e: EvaluationScore.failed(describe_error(e)),
        )

    async def evaluate_faithfulness(
        self, query: str, response: str, context: Sequence[str]
    ) -> EvaluationScore:
        prompt = self.prompt_builder.build_faithfulness_prompt(
            query, response, context, threshold=self.config.pass_threshold,
        )
        return await self._safe_judge("Faithfulness", prompt)

    async def evaluate_relevancy(self, query: str, response: str) -> EvaluationScore:
        prompt = self.prompt_builder.build_relevancy_prompt(
            query, response, threshold=self.config.pass_threshold,
        )
        return await self._safe_judge("Relevancy", prompt)

    async def evaluate(
        self,
        query: str,
        response: str,
        context: Sequence[str],
    ) -> RagEvaluationResult:
        """Evaluate an answer on both dimensions.

        Args:
            query: The user's question
            response: The generated answer text
            context: Contents of the fragments the answer was built from

        Returns:
            Both scores; a failed dimension has status UNKNOWN
        """
        faithfulness, relevancy = await asyncio.gather(
            self.evaluate_faithfulness(query, response, context),
            self.evaluate_relevancy(query, response),
        )
        result = RagEvaluationResult(faithfulness=faithfulness, relevancy=relevancy)
        logger.info(
            f"Evaluation: faithfulness={faithfulness.status.value} ({faithfulness.score:.2f}), "
            f"relevancy={relevancy.status.value} ({relevancy.score:.2f})"
        )
        return result
