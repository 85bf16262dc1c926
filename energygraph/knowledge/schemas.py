"""
Pydantic Schemas for Knowledge Layer.

Defines entities, relationships and derived metrics for the energy
knowledge graph. Papers, grid events, policies and locations are the
nodes; directed, labeled relationships are the edges.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """
    Kinds of entities held in the graph.

    The lowercase value doubles as the identifier prefix
    (``event:storm_2021``).
    """

    PAPER = "Paper"
    EVENT = "Event"
    POLICY = "Policy"
    LOCATION = "Location"

    @property
    def prefix(self) -> str:
        return self.value.lower()

    @classmethod
    def from_entity_id(cls, entity_id: str) -> "EntityKind | None":
        """Kind encoded in an ``{kind}:{external_id}`` identifier, if any."""
        prefix, sep, _ = entity_id.partition(":")
        if not sep:
            return None
        for kind in cls:
            if kind.prefix == prefix.lower():
                return kind
        return None


class RelationKind(str, Enum):
    """
    Well-known relationship labels.

    The relation set is open: any string is a valid label, these are the
    ones the ingestion pipeline emits.
    """

    OCCURS_IN = "OCCURS_IN"  # Event -> Location
    APPLIES_TO = "APPLIES_TO"  # Policy -> Location
    MENTIONS_EVENT = "MENTIONS_EVENT"  # Paper -> Event


def make_entity_id(kind: EntityKind, external_id: str) -> str:
    """Build the composite ``{kind}:{external_id}`` identifier."""
    return f"{kind.prefix}:{external_id}"


def relation_label(relation: "RelationKind | str") -> str:
    """Normalize a relation to its plain string label."""
    if isinstance(relation, Enum):
        return str(relation.value)
    return str(relation)


class Entity(BaseModel):
    """
    A node in the knowledge graph.

    Only the fields that were actually provided are considered "set";
    the graph store relies on this to merge attributes field by field.
    Unknown attributes are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Composite identifier '{kind}:{externalId}'")
    kind: EntityKind = Field(..., description="Entity kind")
    title: str | None = Field(default=None, description="Display title")
    summary: str | None = Field(default=None, description="Natural-language summary")

    # Paper
    published: str | None = None

    # Event
    start_time: str | None = None
    end_time: str | None = None
    region: str | None = None
    asset_type: str | None = None
    severity: float | None = Field(default=None, ge=0.0, le=1.0)

    # Policy
    jurisdiction: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    category: str | None = None

    # Location
    name: str | None = None

    @property
    def display_title(self) -> str:
        return self.title or self.name or self.id

    @property
    def area(self) -> str | None:
        """Region for events, jurisdiction for policies."""
        return self.region or self.jurisdiction

    @property
    def reference_time(self) -> str | None:
        """Most relevant timestamp for retrieval context."""
        return self.start_time or self.published or self.start_date

    def attributes(self) -> dict[str, Any]:
        """The explicitly set attributes, without the identifier."""
        data = self.model_dump(exclude_unset=True)
        data.pop("id", None)
        return data


class Relationship(BaseModel):
    """A directed, labeled edge between two entities."""

    model_config = ConfigDict(frozen=True)

    source_id: str = Field(..., description="Source entity ID")
    target_id: str = Field(..., description="Target entity ID")
    relation: str = Field(..., description="Relationship label, e.g. OCCURS_IN")


class EntityMetrics(BaseModel):
    """Structural metrics for one entity."""

    model_config = ConfigDict(frozen=True)

    degree: int = Field(default=0, ge=0)
    degree_centrality: float = Field(default=0.0, ge=0.0)
    risk_score: float = Field(default=0.0, ge=0.0)


class MetricSnapshot(BaseModel):
    """
    Metrics for every entity of one graph state.

    Always rebuilt from scratch; never updated in place.
    """

    model_config = ConfigDict(frozen=True)

    metrics: dict[str, EntityMetrics] = Field(default_factory=dict)

    def get(self, entity_id: str) -> EntityMetrics | None:
        return self.metrics.get(entity_id)

    def ids(self) -> list[str]:
        return list(self.metrics)

    def __len__(self) -> int:
        return len(self.metrics)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.metrics

    def as_dict(self) -> dict[str, dict[str, float]]:
        """Plain ``{id: {degree_centrality, risk_score}}`` mapping."""
        return {
            entity_id: {
                "degree_centrality": m.degree_centrality,
                "risk_score": m.risk_score,
            }
            for entity_id, m in self.metrics.items()
        }
