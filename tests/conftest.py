"""Pytest fixtures for RAG assistant tests."""

import hashlib
import json
from typing import Dict, List, Optional, Union

import pytest

from rag_assistant.config import Settings
from rag_assistant.core.embedder import Embedder
from rag_assistant.core.llm import LLMClient
from rag_assistant.core.retrieval import VectorSearcher
from rag_assistant.core.types import FragmentResult
from rag_assistant.services.rag_service import RagOrchestrator

STRUCTURED_ANSWER = {
    "summary": "Employees get 22 vacation days per year.",
    "sections": [
        {"title": "Allowance", "content": "22 days per calendar year.", "type": "info"},
        {"title": "How to request", "content": "1. Open the HR portal\n2. Submit", "type": "steps"},
    ],
    "key_points": ["22 days", "Request 15 days in advance"],
    "related_topics": ["Public holidays"],
}

DEFAULT_REPLIES: Dict[str, Union[str, Exception]] = {
    "expansion": "vacation days policy annual leave paid time off holidays",
    "faithfulness": '{"score": 0.9, "status": "PASS", "reasoning": "All claims are grounded."}',
    "relevancy": '{"score": 0.8, "status": "PASS", "reasoning": "Answers the question."}',
    "fallback": "I'm sorry, I couldn't find documentation about that. Please ask HR.",
    "structured": json.dumps(STRUCTURED_ANSWER),
    "plain": "You have 22 vacation days per year.",
}


def fake_vector(text: str) -> List[float]:
    """Deterministic 8-dimensional vector for a text."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [b / 255 for b in digest[:8]]


class FakeEmbedder(Embedder):
    """Embedder returning hash-derived vectors and recording inputs."""

    def __init__(self):
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return fake_vector(text)


class FakeSearcher(VectorSearcher):
    """Searcher returning canned fragments and recording queries."""

    def __init__(self, fragments: Optional[List[FragmentResult]] = None):
        self.fragments = fragments or []
        self.calls: List[dict] = []

    async def search(self, vector, namespace, limit, min_score):
        self.calls.append(
            {"vector": vector, "namespace": namespace, "limit": limit, "min_score": min_score}
        )
        return list(self.fragments)


class ScriptedLLMClient(LLMClient):
    """LLM double that picks a reply from the kind of prompt it receives.

    A reply that is an exception instance is raised instead of returned.
    """

    model = "fake-model"

    def __init__(self, **replies: Union[str, Exception]):
        self.replies = {**DEFAULT_REPLIES, **replies}
        self.calls: List[dict] = []

    @staticmethod
    def classify(prompt: str) -> str:
        if "query expansion assistant" in prompt:
            return "expansion"
        if "FAITHFULNESS" in prompt:
            return "faithfulness"
        if "RELEVANCY" in prompt:
            return "relevancy"
        if "NO relevant documents" in prompt:
            return "fallback"
        if "OUTPUT FORMAT" in prompt:
            return "structured"
        return "plain"

    def kinds(self) -> List[str]:
        return [c["kind"] for c in self.calls]

    async def generate(self, prompt, max_tokens=1024, temperature=0.3):
        kind = self.classify(prompt)
        self.calls.append(
            {"kind": kind, "prompt": prompt, "max_tokens": max_tokens, "temperature": temperature}
        )
        reply = self.replies[kind]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def fragments():
    """Two retrieved fragments from one sector."""
    return [
        FragmentResult(
            id="frag-1",
            content="Employees are entitled to 22 vacation days per calendar year.",
            similarity=0.82,
            source_id="src-handbook",
            metadata={"page": 4},
        ),
        FragmentResult(
            id="frag-2",
            content="Vacation requests must be submitted 15 days in advance via the HR portal.",
            similarity=0.71,
            source_id="src-handbook",
        ),
    ]


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def searcher(fragments):
    return FakeSearcher(fragments)


@pytest.fixture
def llm():
    return ScriptedLLMClient()


@pytest.fixture
def orchestrator(embedder, searcher, llm, settings):
    return RagOrchestrator(embedder=embedder, searcher=searcher, llm_client=llm, settings=settings)
