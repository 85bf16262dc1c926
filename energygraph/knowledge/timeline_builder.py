"""
Timeline Builder - Chronological view of events and policies.

Every entity carrying a parsable timestamp becomes a timeline item.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.schemas import Entity, EntityKind
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)


# First present field wins
TIMESTAMP_FIELDS = ("start_time", "published", "start_date", "end_time", "end_date")


class TimelineItem(BaseModel):
    """An entity placed on the timeline."""

    id: str
    kind: EntityKind
    title: str
    time: str = Field(description="Raw timestamp as ingested")
    timestamp: datetime = Field(description="Parsed, timezone-aware timestamp")
    summary: str | None = None
    region: str | None = None


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 date or datetime.

    Naive values are taken as UTC. Returns None for anything unparsable.
    """
    if not value:
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def entity_time(entity: Entity) -> str | None:
    for name in TIMESTAMP_FIELDS:
        value = getattr(entity, name)
        if value:
            return value
    return None


def build_timeline(entities: Iterable[Entity]) -> list[TimelineItem]:
    """Timeline items for ``entities``, oldest first."""
    items: list[TimelineItem] = []

    for entity in entities:
        raw = entity_time(entity)
        parsed = parse_timestamp(raw)
        if raw is None or parsed is None:
            continue

        items.append(TimelineItem(
            id=entity.id,
            kind=entity.kind,
            title=entity.display_title,
            time=raw,
            timestamp=parsed,
            summary=entity.summary,
            region=entity.area,
        ))

    items.sort(key=lambda item: item.timestamp)
    return items


class TimelineBuilder:
    """
    Build the timeline for the entities of a graph store.

    Usage:
        builder = TimelineBuilder(graph_store)
        items = builder.build()
    """

    def __init__(self, graph_store: GraphStore) -> None:
        self.graph_store = graph_store

    def build(self) -> list[TimelineItem]:
        items = build_timeline(self.graph_store.list_entities())
        logger.debug(f"Built timeline with {len(items)} items")
        return items
