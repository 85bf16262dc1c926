"""
Ingestion Pipeline - records to graph and embeddings.

Stages run strictly in order: papers, events, policies, derived links.
Each record is embedded, upserted with its embedding, and linked to its
location. The first provider failure aborts the run; whatever was applied
before it stays in place.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import count
from typing import Any

from energygraph.ingestion.linker import DEFAULT_LINK_RULES, LinkRule, infer_links
from energygraph.ingestion.schemas import (
    EventRecord,
    IngestionReport,
    PaperRecord,
    PolicyRecord,
)
from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.schemas import EntityKind, RelationKind, make_entity_id
from energygraph.knowledge.vector_store import EmbeddingIndex
from energygraph.utils.llm_factory import EmbedFn, ProviderError
from energygraph.utils.logger import LogContext, get_logger

logger = get_logger(__name__)

_run_ids = count(1)


# ============================================================================
# Canonical text
# ============================================================================

def paper_text(record: PaperRecord) -> str:
    return f"{record.title} - {record.summary}"


def event_text(record: EventRecord) -> str:
    return (
        f"{record.name}. {record.description}. "
        f"Region: {record.region or 'unknown'}. "
        f"Asset: {record.asset_type or 'unknown'}."
    )


def policy_text(record: PolicyRecord) -> str:
    return (
        f"{record.name}. {record.description}. "
        f"Jurisdiction: {record.jurisdiction or 'unknown'}."
    )


@dataclass
class _PendingEntity:
    """One record ready to be embedded and applied."""

    entity_id: str
    text: str
    attributes: dict[str, Any]
    location: str | None = None
    location_relation: str | None = None


def _paper_entity(record: PaperRecord) -> _PendingEntity:
    return _PendingEntity(
        entity_id=make_entity_id(EntityKind.PAPER, record.id),
        text=paper_text(record),
        attributes={
            "kind": EntityKind.PAPER,
            "title": record.title,
            "summary": record.summary,
            "published": record.published,
        },
    )


def _event_entity(record: EventRecord) -> _PendingEntity:
    attributes: dict[str, Any] = {
        "kind": EntityKind.EVENT,
        "title": record.name,
        "summary": record.description,
        "start_time": record.start_time,
        "end_time": record.end_time,
        "region": record.region,
        "asset_type": record.asset_type,
    }
    if record.severity is not None:
        attributes["severity"] = record.severity

    return _PendingEntity(
        entity_id=make_entity_id(EntityKind.EVENT, record.external_id),
        text=event_text(record),
        attributes=attributes,
        location=record.region or None,
        location_relation=RelationKind.OCCURS_IN.value,
    )


def _policy_entity(record: PolicyRecord) -> _PendingEntity:
    return _PendingEntity(
        entity_id=make_entity_id(EntityKind.POLICY, record.external_id),
        text=policy_text(record),
        attributes={
            "kind": EntityKind.POLICY,
            "title": record.name,
            "summary": record.description,
            "jurisdiction": record.jurisdiction,
            "start_date": record.start_date,
            "end_date": record.end_date,
            "category": record.category,
        },
        location=record.jurisdiction or None,
        location_relation=RelationKind.APPLIES_TO.value,
    )


# ============================================================================
# Pipeline
# ============================================================================

class IngestionPipeline:
    """
    Populate a GraphStore and EmbeddingIndex from validated records.

    With ``embed_concurrency`` of 1 every embedding call is awaited before
    the next record is touched. Higher values embed a whole stage under a
    bounded semaphore, then apply the results in input order; stage order
    is unchanged.

    The pipeline never resets the store. Running it twice on the same input
    without a reset duplicates the relationships.

    Usage:
        pipeline = IngestionPipeline(store, index, embed=client.embed)
        report = await pipeline.run(papers, events, policies)
    """

    def __init__(
        self,
        graph_store: GraphStore,
        embedding_index: EmbeddingIndex,
        embed: EmbedFn,
        link_rules: Sequence[LinkRule] = DEFAULT_LINK_RULES,
        embed_concurrency: int = 1,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            graph_store: Store receiving entities and relationships
            embedding_index: Index receiving one vector per record
            embed: Async embedding capability
            link_rules: Paper/event relationship inference rules
            embed_concurrency: Maximum in-flight embedding calls
        """
        if embed_concurrency < 1:
            raise ValueError("embed_concurrency must be at least 1")

        self.graph_store = graph_store
        self.embedding_index = embedding_index
        self.embed = embed
        self.link_rules = tuple(link_rules)
        self.embed_concurrency = embed_concurrency

    async def run(
        self,
        papers: Sequence[PaperRecord],
        events: Sequence[EventRecord],
        policies: Sequence[PolicyRecord],
    ) -> IngestionReport:
        """
        Ingest all three collections.

        Raises:
            ProviderError: On the first failed embedding call
        """
        started = time.perf_counter()
        report = IngestionReport()
        locations: set[str] = set()

        with LogContext(logger, ingest_run=next(_run_ids)):
            logger.info(
                f"Ingesting {len(papers)} papers, {len(events)} events, "
                f"{len(policies)} policies"
            )

            try:
                await self._run_stage([_paper_entity(p) for p in papers], report, locations)
                report.papers = len(papers)

                await self._run_stage([_event_entity(e) for e in events], report, locations)
                report.events = len(events)

                await self._run_stage([_policy_entity(p) for p in policies], report, locations)
                report.policies = len(policies)
            except ProviderError as e:
                logger.error(f"Ingestion aborted, partial graph kept: {e}")
                raise

            report.derived_links = self._derive_links(papers, events)
            report.relationships_added += report.derived_links
            report.locations = len(locations)
            report.duration_seconds = time.perf_counter() - started

            logger.info(
                f"Ingestion complete: {report.entities_ingested} records, "
                f"{report.locations} locations, {report.relationships_added} relationships "
                f"({report.derived_links} derived) in {report.duration_seconds:.2f}s"
            )

        return report

    async def _run_stage(
        self,
        pending: list[_PendingEntity],
        report: IngestionReport,
        locations: set[str],
    ) -> None:
        if not pending:
            return

        if self.embed_concurrency == 1:
            for item in pending:
                vector = await self.embed(item.text)
                self._apply(item, vector, report, locations)
            return

        semaphore = asyncio.Semaphore(self.embed_concurrency)

        async def embed_one(item: _PendingEntity) -> Sequence[float]:
            async with semaphore:
                return await self.embed(item.text)

        tasks = [asyncio.ensure_future(embed_one(item)) for item in pending]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        for item, vector in zip(pending, vectors):
            self._apply(item, vector, report, locations)

    def _apply(
        self,
        item: _PendingEntity,
        vector: Sequence[float],
        report: IngestionReport,
        locations: set[str],
    ) -> None:
        self.graph_store.upsert_entity(item.entity_id, item.attributes)
        self.embedding_index.upsert(item.entity_id, vector)

        if item.location and item.location_relation:
            location_id = make_entity_id(EntityKind.LOCATION, item.location)
            self.graph_store.upsert_entity(
                location_id,
                {"kind": EntityKind.LOCATION, "name": item.location},
            )
            self.graph_store.add_relationship(item.entity_id, location_id, item.location_relation)
            locations.add(location_id)
            report.relationships_added += 1

    def _derive_links(
        self,
        papers: Sequence[PaperRecord],
        events: Sequence[EventRecord],
    ) -> int:
        paper_entities = [
            self.graph_store.require_entity(make_entity_id(EntityKind.PAPER, p.id))
            for p in papers
        ]
        event_entities = [
            self.graph_store.require_entity(make_entity_id(EntityKind.EVENT, e.external_id))
            for e in events
        ]

        links = infer_links(paper_entities, event_entities, self.link_rules)
        for source_id, target_id, relation in links:
            self.graph_store.add_relationship(source_id, target_id, relation)

        logger.debug(f"Derived {len(links)} paper/event links")
        return len(links)
