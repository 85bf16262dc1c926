"""
Tests for Ingestion Layer.

Covers record validation, relationship inference and the pipeline.
"""

import asyncio
import json
from typing import Any

import pytest

from energygraph.ingestion.linker import KeywordLinkRule, infer_links
from energygraph.ingestion.pipeline import (
    IngestionPipeline,
    event_text,
    paper_text,
    policy_text,
)
from energygraph.ingestion.schemas import (
    EventRecord,
    PaperRecord,
    PolicyRecord,
    RecordValidationError,
    load_records,
)
from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.schemas import Entity, EntityKind
from energygraph.knowledge.vector_store import EmbeddingIndex
from energygraph.utils.llm_factory import ProviderError
from tests.conftest import FakeProvider


def _records(papers: list, events: list, policies: list) -> tuple[list, list, list]:
    return (
        load_records(papers, PaperRecord, "Papers"),
        load_records(events, EventRecord, "Events"),
        load_records(policies, PolicyRecord, "Policies"),
    )


def _relations(store: GraphStore) -> list[tuple[str, str, str]]:
    return [(r.source_id, r.target_id, r.relation) for r in store.list_relationships()]


# ============================================================================
# Record Validation
# ============================================================================

class TestLoadRecords:
    """Tests for parsing record collections."""

    def test_none_is_empty(self) -> None:
        assert load_records(None, PaperRecord, "Papers") == []

    def test_json_text(self, sample_papers: list[dict[str, Any]]) -> None:
        records = load_records(json.dumps(sample_papers), PaperRecord, "Papers")

        assert len(records) == 1
        assert records[0].id == "arxiv_demo_1"
        assert records[0].published == "2021-03-15T00:00:00Z"

    def test_invalid_json(self) -> None:
        with pytest.raises(RecordValidationError, match="Papers JSON is invalid.") as exc_info:
            load_records("[{not json", PaperRecord, "Papers")
        assert exc_info.value.collection == "Papers"

    def test_not_a_list(self) -> None:
        with pytest.raises(RecordValidationError, match="must be a list"):
            load_records('{"id": "x"}', EventRecord, "Events")

    def test_missing_required_field(self) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            load_records([{"name": "No id"}], EventRecord, "Events")

        assert exc_info.value.collection == "Events"
        assert "record 0" in str(exc_info.value)

    def test_severity_out_of_range(self) -> None:
        with pytest.raises(RecordValidationError):
            load_records([{"external_id": "e", "name": "E", "severity": 1.5}], EventRecord, "Events")

    def test_numeric_ids_coerced(self) -> None:
        (record,) = load_records([{"external_id": 42, "name": "E"}], EventRecord, "Events")
        assert record.external_id == "42"

    def test_extra_fields_ignored(self) -> None:
        (record,) = load_records(
            [{"external_id": "p", "name": "P", "source_url": "https://example.org"}],
            PolicyRecord,
            "Policies",
        )
        assert not hasattr(record, "source_url")

    def test_model_instances_pass_through(self) -> None:
        paper = PaperRecord(id="p", title="T")
        assert load_records([paper], PaperRecord, "Papers") == [paper]

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            load_records("nope", PaperRecord, "Papers")


# ============================================================================
# Canonical Text and Link Rules
# ============================================================================

class TestCanonicalText:
    """Tests for the text each record is embedded from."""

    def test_paper_text(self) -> None:
        assert paper_text(PaperRecord(id="p", title="T", summary="S")) == "T - S"

    def test_event_text(self) -> None:
        record = EventRecord(external_id="e", name="Storm", description="Lines down", region="X")
        assert event_text(record) == "Storm. Lines down. Region: X. Asset: unknown."

    def test_policy_text(self) -> None:
        record = PolicyRecord(external_id="p", name="Subsidy", description="Pays")
        assert policy_text(record) == "Subsidy. Pays. Jurisdiction: unknown."


class TestLinkRules:
    """Tests for derived paper/event links."""

    @pytest.fixture
    def paper(self) -> Entity:
        return Entity(id="paper:p", kind=EntityKind.PAPER, title="Grid BLACKOUT analysis")

    @pytest.fixture
    def event(self) -> Entity:
        return Entity(id="event:e", kind=EntityKind.EVENT, summary="Regional Outage overnight")

    def test_keyword_rule_case_insensitive(self, paper: Entity, event: Entity) -> None:
        assert KeywordLinkRule()(paper, event) == "MENTIONS_EVENT"

    def test_keyword_rule_needs_both_markers(self, paper: Entity) -> None:
        quiet = Entity(id="event:q", kind=EntityKind.EVENT, summary="Routine maintenance")
        assert KeywordLinkRule()(paper, quiet) is None

    def test_infer_links(self, paper: Entity, event: Entity) -> None:
        assert infer_links([paper], [event]) == [("paper:p", "event:e", "MENTIONS_EVENT")]

    def test_custom_rules(self, paper: Entity, event: Entity) -> None:
        def always(p: Entity, e: Entity) -> str:
            return "DISCUSSES"

        links = infer_links([paper], [event], [KeywordLinkRule(), always])
        assert [relation for _, _, relation in links] == ["MENTIONS_EVENT", "DISCUSSES"]


# ============================================================================
# Pipeline
# ============================================================================

class TestIngestionPipeline:
    """Tests for IngestionPipeline."""

    @pytest.fixture
    def pipeline(
        self, store: GraphStore, index: EmbeddingIndex, provider: FakeProvider
    ) -> IngestionPipeline:
        return IngestionPipeline(store, index, embed=provider.embed)

    @pytest.mark.asyncio
    async def test_demo_records(
        self,
        pipeline: IngestionPipeline,
        store: GraphStore,
        index: EmbeddingIndex,
        sample_papers,
        sample_events,
        sample_policies,
    ) -> None:
        report = await pipeline.run(*_records(sample_papers, sample_events, sample_policies))

        assert [e.id for e in store.list_entities()] == [
            "paper:arxiv_demo_1",
            "event:event_demo_1",
            "location:Tamil Nadu",
            "policy:policy_demo_1",
            "location:India",
        ]
        assert _relations(store) == [
            ("event:event_demo_1", "location:Tamil Nadu", "OCCURS_IN"),
            ("policy:policy_demo_1", "location:India", "APPLIES_TO"),
        ]
        assert index.ids() == ["paper:arxiv_demo_1", "event:event_demo_1", "policy:policy_demo_1"]

        assert report.papers == 1
        assert report.events == 1
        assert report.policies == 1
        assert report.locations == 2
        assert report.relationships_added == 2
        assert report.derived_links == 0
        assert report.entities_ingested == 3

    @pytest.mark.asyncio
    async def test_entity_attributes(
        self, pipeline: IngestionPipeline, store: GraphStore, sample_events
    ) -> None:
        await pipeline.run(*_records([], sample_events, []))

        event = store.require_entity("event:event_demo_1")
        assert event.kind == EntityKind.EVENT
        assert event.title == "2021 monsoon storm blackout"
        assert event.severity == 0.9
        assert event.asset_type == "Transmission"
        assert store.require_entity("location:Tamil Nadu").name == "Tamil Nadu"

    @pytest.mark.asyncio
    async def test_embedding_order_and_text(
        self,
        pipeline: IngestionPipeline,
        provider: FakeProvider,
        sample_papers,
        sample_events,
        sample_policies,
    ) -> None:
        await pipeline.run(*_records(sample_papers, sample_events, sample_policies))

        assert len(provider.embed_calls) == 3
        assert provider.embed_calls[0].startswith("Cascading failures in power grids")
        assert provider.embed_calls[1].startswith("2021 monsoon storm blackout. ")
        assert provider.embed_calls[1].endswith("Region: Tamil Nadu. Asset: Transmission.")
        assert provider.embed_calls[2].endswith("Jurisdiction: India.")

    @pytest.mark.asyncio
    async def test_derived_links(
        self,
        pipeline: IngestionPipeline,
        store: GraphStore,
        blackout_paper,
        sample_events,
    ) -> None:
        report = await pipeline.run(*_records([blackout_paper], sample_events, []))

        assert ("paper:arxiv_blackout", "event:event_demo_1", "MENTIONS_EVENT") in _relations(store)
        assert report.derived_links == 1
        assert report.relationships_added == 2

    @pytest.mark.asyncio
    async def test_shared_region_single_location(
        self, pipeline: IngestionPipeline, store: GraphStore
    ) -> None:
        events = [
            {"external_id": "a", "name": "A", "region": "X"},
            {"external_id": "b", "name": "B", "region": "X"},
        ]
        report = await pipeline.run(*_records([], events, []))

        assert store.entity_count() == 3
        assert store.relationship_count() == 2
        assert report.locations == 1

    @pytest.mark.asyncio
    async def test_no_region_no_location(
        self, pipeline: IngestionPipeline, store: GraphStore
    ) -> None:
        await pipeline.run(*_records([], [{"external_id": "a", "name": "A"}], []))

        assert store.entity_count() == 1
        assert store.relationship_count() == 0
        assert store.require_entity("event:a").severity is None

    @pytest.mark.asyncio
    async def test_empty_input(self, pipeline: IngestionPipeline, store: GraphStore) -> None:
        report = await pipeline.run([], [], [])

        assert report.entities_ingested == 0
        assert store.entity_count() == 0

    @pytest.mark.asyncio
    async def test_rerun_without_reset_duplicates_relationships(
        self, pipeline: IngestionPipeline, store: GraphStore, sample_events, sample_policies
    ) -> None:
        records = _records([], sample_events, sample_policies)
        await pipeline.run(*records)
        await pipeline.run(*records)

        assert store.entity_count() == 4
        assert store.relationship_count() == 4

    @pytest.mark.asyncio
    async def test_rebuild_after_reset_is_identical(
        self,
        pipeline: IngestionPipeline,
        store: GraphStore,
        index: EmbeddingIndex,
        blackout_paper,
        sample_papers,
        sample_events,
        sample_policies,
    ) -> None:
        records = _records(sample_papers + [blackout_paper], sample_events, sample_policies)

        await pipeline.run(*records)
        first = (store.snapshot(), index.ids())

        store.reset()
        index.reset()
        await pipeline.run(*records)

        assert (store.snapshot(), index.ids()) == first

    @pytest.mark.asyncio
    async def test_provider_failure_keeps_partial_graph(
        self, store: GraphStore, index: EmbeddingIndex, sample_papers, sample_events, sample_policies
    ) -> None:
        provider = FakeProvider(fail_embed_after=1)
        pipeline = IngestionPipeline(store, index, embed=provider.embed)

        with pytest.raises(ProviderError):
            await pipeline.run(*_records(sample_papers, sample_events, sample_policies))

        assert [e.id for e in store.list_entities()] == ["paper:arxiv_demo_1"]
        assert store.relationship_count() == 0
        assert index.ids() == ["paper:arxiv_demo_1"]

    def test_invalid_concurrency(self, store: GraphStore, index: EmbeddingIndex) -> None:
        with pytest.raises(ValueError):
            IngestionPipeline(store, index, embed=FakeProvider().embed, embed_concurrency=0)


class TestConcurrentEmbedding:
    """Tests for bounded-concurrency embedding."""

    @pytest.mark.asyncio
    async def test_same_result_as_sequential(
        self, blackout_paper, sample_papers, sample_events, sample_policies
    ) -> None:
        records = _records(sample_papers + [blackout_paper], sample_events, sample_policies)
        snapshots = []
        for concurrency in (1, 3):
            store = GraphStore()
            index = EmbeddingIndex(store)
            pipeline = IngestionPipeline(
                store, index, embed=FakeProvider().embed, embed_concurrency=concurrency
            )
            await pipeline.run(*records)
            snapshots.append((store.snapshot(), index.ids()))

        assert snapshots[0] == snapshots[1]

    @pytest.mark.asyncio
    async def test_in_flight_bounded(self, store: GraphStore, index: EmbeddingIndex) -> None:
        in_flight = 0
        peak = 0

        async def slow_embed(text: str) -> list[float]:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return [1.0, float(len(text))]

        events = [{"external_id": str(i), "name": f"E{i}"} for i in range(8)]
        pipeline = IngestionPipeline(store, index, embed=slow_embed, embed_concurrency=3)
        await pipeline.run(*_records([], events, []))

        assert peak <= 3
        assert peak > 1
        assert index.ids() == [f"event:{i}" for i in range(8)]

    @pytest.mark.asyncio
    async def test_failure_applies_nothing_from_stage(
        self, store: GraphStore, index: EmbeddingIndex, sample_papers, sample_events
    ) -> None:
        events = sample_events + [{"external_id": "second", "name": "Second", "region": "Y"}]
        provider = FakeProvider(fail_embed_after=2)
        pipeline = IngestionPipeline(store, index, embed=provider.embed, embed_concurrency=2)

        with pytest.raises(ProviderError):
            await pipeline.run(*_records(sample_papers, events, []))

        assert [e.id for e in store.list_entities()] == ["paper:arxiv_demo_1"]
        assert store.relationship_count() == 0
