"""
Graph Workspace - one owned graph, its index and everything derived from it.

The workspace is the surface a presentation layer talks to: ingest, reset,
answer, summarize, and read the graph, metrics and timeline. The store and
index are created here and handed to each component explicitly.
"""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from energygraph.agents.rag import DEFAULT_TOP_K, RAGOrchestrator
from energygraph.agents.schemas import NodeSummary, RAGAnswer
from energygraph.ingestion.linker import DEFAULT_LINK_RULES, LinkRule
from energygraph.ingestion.pipeline import IngestionPipeline
from energygraph.ingestion.schemas import (
    EventRecord,
    IngestionReport,
    PaperRecord,
    PolicyRecord,
    load_records,
)
from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.graph_visualizer import GraphData, build_graph_data
from energygraph.knowledge.metrics import MetricEngine
from energygraph.knowledge.schemas import MetricSnapshot
from energygraph.knowledge.timeline_builder import TimelineBuilder, TimelineItem
from energygraph.knowledge.vector_store import EmbeddingIndex
from energygraph.utils.llm_factory import EmbedFn, GenerateFn
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)

RecordInput = str | Sequence[Any] | None


class IngestionResult(BaseModel):
    """Outcome of ``GraphWorkspace.ingest``: run counts plus the new metrics."""

    report: IngestionReport
    metrics: MetricSnapshot
    node_count: int
    edge_count: int


class GraphWorkspace:
    """
    Owns a GraphStore and EmbeddingIndex and keeps derived state in sync.

    Metrics are rebuilt after every ingestion (successful or aborted) and
    every reset. Selection and answer state is cleared by ``reset``.

    Usage:
        workspace = GraphWorkspace(embed=client.embed, generate=client.generate)
        await workspace.ingest(papers_json, events_json, policies_json, rebuild=True)
        result = await workspace.answer("Why are some regions high-risk?")
    """

    def __init__(
        self,
        embed: EmbedFn,
        generate: GenerateFn,
        top_k: int = DEFAULT_TOP_K,
        embed_concurrency: int = 1,
        link_rules: Sequence[LinkRule] = DEFAULT_LINK_RULES,
    ) -> None:
        self.graph_store = GraphStore()
        self.embedding_index = EmbeddingIndex(self.graph_store)
        self.metric_engine = MetricEngine(self.graph_store)

        self.pipeline = IngestionPipeline(
            self.graph_store,
            self.embedding_index,
            embed=embed,
            link_rules=link_rules,
            embed_concurrency=embed_concurrency,
        )
        self.rag = RAGOrchestrator(
            self.graph_store,
            self.embedding_index,
            embed=embed,
            generate=generate,
            default_top_k=top_k,
        )
        self.timeline_builder = TimelineBuilder(self.graph_store)

        self.selected_entity_id: str | None = None
        self.last_answer: RAGAnswer | None = None
        self.last_summary: NodeSummary | None = None

    @property
    def metrics(self) -> MetricSnapshot:
        return self.metric_engine.snapshot

    def reset(self) -> MetricSnapshot:
        """Clear the graph, the index and all derived state together."""
        self.graph_store.reset()
        self.embedding_index.reset()
        self.selected_entity_id = None
        self.last_answer = None
        self.last_summary = None
        return self.metric_engine.refresh()

    async def ingest(
        self,
        papers: RecordInput = None,
        events: RecordInput = None,
        policies: RecordInput = None,
        rebuild: bool = False,
    ) -> IngestionResult:
        """
        Validate the three collections and ingest them.

        Args:
            papers: Paper records (JSON text, dicts or PaperRecord)
            events: Event records
            policies: Policy records
            rebuild: Reset the workspace before ingesting

        Raises:
            RecordValidationError: If any collection is malformed (nothing is changed)
            ProviderError: If embedding fails (partial graph is kept)
        """
        paper_records = load_records(papers, PaperRecord, "Papers")
        event_records = load_records(events, EventRecord, "Events")
        policy_records = load_records(policies, PolicyRecord, "Policies")

        if rebuild:
            self.reset()

        try:
            report = await self.pipeline.run(paper_records, event_records, policy_records)
        finally:
            self.metric_engine.refresh()

        return IngestionResult(
            report=report,
            metrics=self.metrics,
            node_count=self.graph_store.entity_count(),
            edge_count=self.graph_store.relationship_count(),
        )

    async def answer(self, question: str, k: int | None = None) -> RAGAnswer:
        result = await self.rag.answer(question, k)
        self.last_answer = result
        return result

    async def summarize(self, entity_id: str) -> NodeSummary:
        """Summarize a node and mark it as the current selection."""
        summary = await self.rag.summarize(entity_id)
        self.selected_entity_id = entity_id
        self.last_summary = summary
        return summary

    def timeline(self) -> list[TimelineItem]:
        return self.timeline_builder.build()

    def graph_data(self) -> GraphData:
        return build_graph_data(self.graph_store.snapshot(), self.metrics)
