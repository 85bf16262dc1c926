"""
Pytest Configuration and Fixtures.

Providers are replaced by deterministic in-process fakes so the graph,
metrics and RAG flow can be exercised without network access.
"""

import re
from typing import Any

import pytest

from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.vector_store import EmbeddingIndex
from energygraph.utils.llm_factory import ProviderError
from energygraph.workspace import GraphWorkspace


# ============================================================================
# Fake Providers
# ============================================================================

# One embedding axis per keyword, plus a constant axis so no vector is zero
KEYWORDS = (
    "blackout",
    "outage",
    "storm",
    "solar",
    "subsidy",
    "renewable",
    "transmission",
    "policy",
)


def keyword_vector(text: str) -> list[float]:
    """Bag-of-keywords embedding: counts per keyword, then a bias term."""
    words = re.findall(r"[a-z]+", text.lower())
    counts = [float(sum(1 for w in words if w.startswith(k))) for k in KEYWORDS]
    return counts + [0.1]


class FakeProvider:
    """
    Deterministic embed/generate pair that records every call.

    Args:
        answer: Text returned by ``generate``
        fail_embed_after: Raise ProviderError once this many embeddings succeeded
        fail_generate: Raise ProviderError on every ``generate`` call
    """

    def __init__(
        self,
        answer: str = "Generated answer.",
        fail_embed_after: int | None = None,
        fail_generate: bool = False,
    ) -> None:
        self.answer = answer
        self.fail_embed_after = fail_embed_after
        self.fail_generate = fail_generate
        self.embed_calls: list[str] = []
        self.prompts: list[str] = []

    async def embed(self, text: str) -> list[float]:
        if self.fail_embed_after is not None and len(self.embed_calls) >= self.fail_embed_after:
            raise ProviderError("Embedding error: quota exceeded")
        self.embed_calls.append(text)
        return keyword_vector(text)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail_generate:
            raise ProviderError("GPT error: service unavailable")
        return self.answer

    @property
    def call_count(self) -> int:
        return len(self.embed_calls) + len(self.prompts)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def failing_provider() -> FakeProvider:
    """Provider whose every call fails."""
    return FakeProvider(fail_embed_after=0, fail_generate=True)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store() -> GraphStore:
    return GraphStore()


@pytest.fixture
def index(store: GraphStore) -> EmbeddingIndex:
    """Embedding index bound to the ``store`` fixture."""
    return EmbeddingIndex(store)


@pytest.fixture
def workspace(provider: FakeProvider) -> GraphWorkspace:
    return GraphWorkspace(embed=provider.embed, generate=provider.generate)


# ============================================================================
# Record Fixtures
# ============================================================================

@pytest.fixture
def sample_papers() -> list[dict[str, Any]]:
    return [
        {
            "id": "arxiv_demo_1",
            "title": "Cascading failures in power grids with high renewable penetration",
            "summary": (
                "This paper studies how increased wind and solar generation can change "
                "the propagation of disturbances and cause cascading outages."
            ),
            "published": "2021-03-15T00:00:00Z",
        }
    ]


@pytest.fixture
def sample_events() -> list[dict[str, Any]]:
    return [
        {
            "external_id": "event_demo_1",
            "name": "2021 monsoon storm blackout",
            "description": (
                "Widespread outages in the coastal region due to transmission tower "
                "failure and flooding."
            ),
            "start_time": "2021-07-12T02:00:00Z",
            "end_time": "2021-07-12T10:00:00Z",
            "region": "Tamil Nadu",
            "asset_type": "Transmission",
            "severity": 0.9,
        }
    ]


@pytest.fixture
def sample_policies() -> list[dict[str, Any]]:
    return [
        {
            "external_id": "policy_demo_1",
            "name": "Solar rooftop subsidy phase II",
            "description": (
                "Capital subsidy for residential rooftop PV with performance-based "
                "incentives for high performance."
            ),
            "jurisdiction": "India",
            "start_date": "2020-01-01",
            "end_date": "2025-12-31",
            "category": "Subsidy",
        }
    ]


@pytest.fixture
def blackout_paper() -> dict[str, Any]:
    """A paper whose title triggers the MENTIONS_EVENT heuristic."""
    return {
        "id": "arxiv_blackout",
        "title": "Blackout restoration after extreme weather",
        "summary": "Restoration sequencing for transmission networks.",
        "published": "2022-05-01T00:00:00Z",
    }
