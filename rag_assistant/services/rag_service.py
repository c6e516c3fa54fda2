"""RAG query orchestration.

This module sequences the complete query pipeline:
validation -> embedding -> expansion -> search -> generation -> evaluation.
"""

import logging
import time
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from rag_assistant.config import Settings, get_settings
from rag_assistant.core.embedder import Embedder, create_embedder
from rag_assistant.core.evaluator import RagEvaluator
from rag_assistant.core.fallback import with_fallback
from rag_assistant.core.generator import ResponseGenerator
from rag_assistant.core.llm import LLMClient, create_llm_client
from rag_assistant.core.prompts import PromptBuilder
from rag_assistant.core.query_processor import QueryProcessor
from rag_assistant.core.retrieval import VectorSearcher, create_vector_searcher
from rag_assistant.core.types import (
    FragmentResult,
    OutputMetadata,
    RagEvaluationResult,
    RagQueryInput,
    RagQueryOutput,
    RagResponseType,
    StructuredAnswer,
    validate_query_input,
)
from rag_assistant.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

STATIC_ERROR_RESPONSE = (
    "Sorry, something went wrong while answering your question. "
    "Please try again in a few minutes."
)


class PipelineStage(str, Enum):
    """States of a query, in execution order."""
    VALIDATING = "validating"
    EMBEDDING = "embedding"
    EXPANDING = "expanding"
    SEARCHING = "searching"
    NO_CONTEXT = "no_context"
    GENERATING = "generating"
    EVALUATING = "evaluating"
    DONE = "done"
    FAILED = "failed"  # search or both generation tiers failed


class RagOrchestrator:
    """Runs RAG queries against injected capability clients.

    Holds no per-request state, so a single instance can serve concurrent
    callers. Only validation and embedding errors escape ``execute_query``;
    every later stage degrades to a best-effort result.
    """

    def __init__(
        self,
        embedder: Embedder,
        searcher: VectorSearcher,
        llm_client: LLMClient,
        query_processor: Optional[QueryProcessor] = None,
        generator: Optional[ResponseGenerator] = None,
        evaluator: Optional[RagEvaluator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the orchestrator.

        Args:
            embedder: Embedding capability
            searcher: Vector search capability
            llm_client: Generation capability shared by all LLM stages
            query_processor: Query expansion service
            generator: Answer generation service
            evaluator: LLM-as-judge service
            prompt_builder: Prompt renderer
            settings: Application settings
        """
        self.settings = settings or get_settings()
        self.embedder = embedder
        self.searcher = searcher
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.query_processor = query_processor or QueryProcessor(
            llm_client,
            prompt_builder=self.prompt_builder,
            config=self.settings.rag,
            generation_config=self.settings.generation,
        )
        self.generator = generator or ResponseGenerator(
            llm_client,
            prompt_builder=self.prompt_builder,
            config=self.settings.generation,
            rag_config=self.settings.rag,
        )
        self.evaluator = evaluator or RagEvaluator(
            llm_client,
            prompt_builder=self.prompt_builder,
            config=self.settings.evaluation,
        )

    def _enter(self, stage: PipelineStage, query: str = "") -> None:
        logger.debug(f"[{stage.value}] {query[:50]}")

    async def _embed(self, text: str) -> List[float]:
        vector = await self.embedder.embed(text)
        vector = list(vector) if vector is not None else []
        if not vector:
            raise EmbeddingError("Failed to generate query embedding")
        return vector

    async def _evaluate(
        self,
        query: str,
        response: str,
        fragments: Sequence[FragmentResult],
    ) -> Optional[RagEvaluationResult]:
        if not self.settings.evaluation.enabled:
            return None

        evaluation = await with_fallback(
            "Evaluation",
            lambda: self.evaluator.evaluate(query, response, [f.content for f in fragments]),
            lambda _: None,
        )
        if evaluation is None or evaluation.all_unknown:
            return None
        return evaluation

    def _metadata(self, retrieved: int, used: int) -> OutputMetadata:
        return OutputMetadata(
            model=self.settings.generation.model,
            temperature=self.settings.generation.temperature,
            fragments_retrieved=retrieved,
            fragments_used=used,
        )

    def _error_output(self, request: RagQueryInput, retrieved: int) -> RagQueryOutput:
        self._enter(PipelineStage.FAILED, request.query)
        return RagQueryOutput(
            response=STATIC_ERROR_RESPONSE,
            response_type=RagResponseType.ERROR,
            sources=[],
            conversation_id=request.conversation_id,
            metadata=self._metadata(retrieved, 0),
        )

    async def execute_query(
        self, data: Union[RagQueryInput, Mapping[str, Any]]
    ) -> RagQueryOutput:
        """Answer a query from the sector's documentation.

        Args:
            data: Query input, as a model or a mapping of its fields

        Returns:
            RagQueryOutput with answer, sources and optional evaluation;
            a failed search or generation yields an ERROR output with a
            static response instead of an exception

        Raises:
            RagValidationError: If the input is malformed (before any capability call)
            EmbeddingError: If the embedder returns an empty vector
            Exception: Any error raised by the embedder, unchanged
        """
        start_time = time.time()

        self._enter(PipelineStage.VALIDATING)
        request = validate_query_input(data)

        self._enter(PipelineStage.EMBEDDING, request.query)
        query_vector = await self._embed(request.query)

        self._enter(PipelineStage.EXPANDING, request.query)
        search_query = await self.query_processor.expand(request.query)
        search_vector = query_vector
        if search_query != request.query:
            search_vector = await self._embed(search_query)

        self._enter(PipelineStage.SEARCHING, search_query)
        # None marks a failed search; an empty list is a valid NO_CONTEXT outcome
        fragments = await with_fallback(
            "Vector search",
            lambda: self.searcher.search(
                search_vector,
                request.sector_id,
                request.max_results,
                request.min_similarity,
            ),
            lambda _: None,
        )
        if fragments is None:
            return self._error_output(request, retrieved=0)

        if not fragments:
            self._enter(PipelineStage.NO_CONTEXT, request.query)
            response = await self.generator.generate_fallback(request.query, request.sector_name)
            logger.info(f"No context for query: {request.query[:50]}... (sector {request.sector_id})")
            return RagQueryOutput(
                response=response,
                response_type=RagResponseType.NO_CONTEXT,
                sources=[],
                conversation_id=request.conversation_id,
                metadata=self._metadata(0, 0),
            )

        self._enter(PipelineStage.GENERATING, request.query)
        prompt = self.prompt_builder.build_answer_prompt(
            request.query,
            fragments,
            prompt_type=request.prompt_type,
            conversation_history=request.conversation_history,
        )
        answer = await with_fallback(
            "Answer generation",
            lambda: self.generator.generate_answer(prompt),
            lambda _: None,
        )
        if answer is None:
            return self._error_output(request, retrieved=len(fragments))

        self._enter(PipelineStage.EVALUATING, request.query)
        evaluation = await self._evaluate(request.query, answer.text, fragments)

        self._enter(PipelineStage.DONE, request.query)
        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Query processed: {request.query[:50]}... "
            f"({len(fragments)} sources, structured={isinstance(answer, StructuredAnswer)}, "
            f"{latency_ms:.0f}ms)"
        )

        return RagQueryOutput(
            response=answer.text,
            response_type=RagResponseType.ANSWER,
            structured=answer.value if isinstance(answer, StructuredAnswer) else None,
            sources=list(fragments),
            conversation_id=request.conversation_id,
            evaluation=evaluation,
            metadata=self._metadata(len(fragments), len(fragments)),
        )


def create_rag_orchestrator(settings: Optional[Settings] = None) -> RagOrchestrator:
    """Wire an orchestrator with the configured provider adapters."""
    settings = settings or get_settings()
    return RagOrchestrator(
        embedder=create_embedder(settings.embedding),
        searcher=create_vector_searcher(settings.qdrant),
        llm_client=create_llm_client(settings.generation),
        settings=settings,
    )
