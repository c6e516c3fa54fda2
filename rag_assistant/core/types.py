"""Request-scoped data model for the RAG query pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rag_assistant.exceptions import RagValidationError

DEFAULT_MAX_RESULTS = 5
MAX_RESULTS_LIMIT = 10
DEFAULT_MIN_SIMILARITY = 0.55


class RagResponseType(str, Enum):
    """Kind of answer returned to the caller."""
    ANSWER = "ANSWER"
    NO_CONTEXT = "NO_CONTEXT"
    ERROR = "ERROR"


class PromptType(str, Enum):
    """Assistant persona used for the answer prompt."""
    ONBOARDING = "onboarding"
    POLICY = "policy"
    PROCEDURE = "procedure"
    GENERAL = "general"


class SectionType(str, Enum):
    """Rendering hint for a section of a structured answer."""
    INFO = "info"
    STEPS = "steps"
    WARNING = "warning"
    TIP = "tip"


class EvaluationStatus(str, Enum):
    """Outcome of a single judge call."""
    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


# ==================== Input ====================

class RagQueryInput(BaseModel):
    """Validated query request.

    Out-of-range values are rejected rather than clamped.
    """
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    sector_id: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1, le=MAX_RESULTS_LIMIT)
    min_similarity: float = Field(default=DEFAULT_MIN_SIMILARITY, ge=0.0, le=1.0)

    sector_name: Optional[str] = None
    conversation_history: List[str] = Field(default_factory=list)
    prompt_type: PromptType = PromptType.ONBOARDING

    @field_validator("query", "sector_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


def validate_query_input(data: Union[RagQueryInput, Mapping[str, Any]]) -> RagQueryInput:
    """Validate raw input into a RagQueryInput.

    Args:
        data: A RagQueryInput instance or a mapping of its fields

    Returns:
        Validated input

    Raises:
        RagValidationError: If any field is missing, blank or out of range
    """
    if isinstance(data, RagQueryInput):
        payload = data.model_dump()
    elif isinstance(data, Mapping):
        payload = dict(data)
    else:
        raise RagValidationError(f"Invalid query input: expected a mapping, got {type(data).__name__}")
    try:
        return RagQueryInput.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        summary = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise RagValidationError(f"Invalid query input: {summary}", errors) from e


# ==================== Retrieval ====================

@dataclass(frozen=True)
class FragmentResult:
    """A fragment returned by vector search."""
    id: str
    content: str
    similarity: float
    source_id: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "similarity": self.similarity,
            "source_id": self.source_id,
            "metadata": dict(self.metadata),
        }


# ==================== Generation ====================

class ResponseSection(BaseModel):
    """A titled block of a structured answer."""
    title: str = Field(..., description="Section title")
    content: str = Field(..., description="Section content (supports markdown)")
    type: SectionType = Field(
        ...,
        description=(
            'Section type: "info" for general information, "steps" for procedures, '
            '"warning" for important notes, "tip" for helpful advice'
        ),
    )


class StructuredResponse(BaseModel):
    """Schema the answer generator asks the model to fill."""
    summary: str = Field(
        ..., min_length=1,
        description="Brief 1-2 sentence answer directly addressing the question",
    )
    sections: List[ResponseSection] = Field(
        ..., min_length=1,
        description="Detailed information organized into logical sections",
    )
    key_points: Optional[List[str]] = Field(
        default=None, description="Key takeaways as bullet points",
    )
    related_topics: Optional[List[str]] = Field(
        default=None, description="Related topics the user might want to explore",
    )


@dataclass(frozen=True)
class StructuredAnswer:
    """Answer that validated against StructuredResponse."""
    value: StructuredResponse

    @property
    def text(self) -> str:
        return self.value.summary


@dataclass(frozen=True)
class PlainTextAnswer:
    """Answer produced by unconstrained generation."""
    text: str


AnswerResult = Union[StructuredAnswer, PlainTextAnswer]


# ==================== Evaluation ====================

class EvaluationScore(BaseModel):
    """Score for one evaluation dimension."""
    score: float = Field(..., ge=0.0, le=1.0)
    status: EvaluationStatus
    reasoning: str

    @classmethod
    def failed(cls, cause: str) -> "EvaluationScore":
        return cls(score=0.0, status=EvaluationStatus.UNKNOWN, reasoning=f"Evaluation failed: {cause}")


@dataclass
class RagEvaluationResult:
    """Faithfulness and relevancy scores for one answer."""
    faithfulness: EvaluationScore
    relevancy: EvaluationScore

    @property
    def all_unknown(self) -> bool:
        return (
            self.faithfulness.status == EvaluationStatus.UNKNOWN
            and self.relevancy.status == EvaluationStatus.UNKNOWN
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "faithfulness": self.faithfulness.model_dump(mode="json"),
            "relevancy": self.relevancy.model_dump(mode="json"),
        }


# ==================== Output ====================

@dataclass
class OutputMetadata:
    """Generation settings and retrieval counts for a response."""
    model: str
    temperature: float
    fragments_retrieved: int
    fragments_used: int


@dataclass
class RagQueryOutput:
    """Terminal result of a RAG query."""
    response: str
    response_type: RagResponseType
    sources: List[FragmentResult]
    metadata: OutputMetadata
    structured: Optional[StructuredResponse] = None
    conversation_id: Optional[str] = None
    evaluation: Optional[RagEvaluationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "response": self.response,
            "response_type": self.response_type.value,
            "structured": self.structured.model_dump(mode="json") if self.structured else None,
            "sources": [s.to_dict() for s in self.sources],
            "conversation_id": self.conversation_id,
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
            "metadata": {
                "model": self.metadata.model,
                "temperature": self.metadata.temperature,
                "fragments_retrieved": self.metadata.fragments_retrieved,
                "fragments_used": self.metadata.fragments_used,
            },
        }
