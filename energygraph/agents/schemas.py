"""
Pydantic Schemas for Agents Layer.

Context items handed to the generator and the answers that come back.
"""

from pydantic import BaseModel, Field

from energygraph.knowledge.schemas import Entity, EntityKind


class ContextItem(BaseModel):
    """One graph node used as generation context."""

    id: str = Field(..., description="Entity ID")
    kind: EntityKind = Field(..., description="Entity kind")
    title: str = Field(..., description="Display title")
    time: str | None = Field(default=None, description="Most relevant timestamp")
    region: str | None = Field(default=None, description="Region or jurisdiction")
    summary: str | None = Field(default=None)
    similarity: float | None = Field(
        default=None,
        description="Cosine similarity to the question (None for neighbor context)",
    )

    @classmethod
    def from_entity(cls, entity: Entity, similarity: float | None = None) -> "ContextItem":
        return cls(
            id=entity.id,
            kind=entity.kind,
            title=entity.display_title,
            time=entity.reference_time,
            region=entity.area,
            summary=entity.summary,
            similarity=similarity,
        )

    def to_context_line(self) -> str:
        """Compact single-line rendering for prompts."""
        return (
            f"[{self.id}] type={self.kind.value}, title={self.title}, "
            f"time={self.time or ''}, region={self.region or ''}, "
            f"summary={self.summary or ''}"
        )


class RAGAnswer(BaseModel):
    """Generated answer plus the ordered context it was conditioned on."""

    question: str = Field(default="")
    answer: str = Field(default="", description="Generated text, or a fallback message")
    contexts: list[ContextItem] = Field(
        default_factory=list,
        description="Supporting nodes, best match first",
    )
    failed: bool = Field(default=False, description="A provider call failed")


class NodeSummary(RAGAnswer):
    """Summary of a single entity; contexts are the entity and its neighbors."""

    entity_id: str = Field(..., description="Summarized entity")
