"""
Graph Store - NetworkX Integration.

Stores entities and relationships as an in-memory knowledge graph.
Relationships may be duplicated; every copy is kept as its own edge.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from itertools import count
from typing import Any

import networkx as nx
from pydantic import ValidationError

from energygraph.knowledge.schemas import (
    Entity,
    EntityKind,
    RelationKind,
    Relationship,
    relation_label,
)
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)


class GraphStoreError(Exception):
    """Raised when graph store operations fail."""
    pass


class NotFoundError(GraphStoreError, KeyError):
    """Raised when an operation requires an entity that does not exist."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(entity_id)
        self.entity_id = entity_id

    def __str__(self) -> str:
        return f"Entity not found: {self.entity_id}"


@dataclass(frozen=True)
class GraphSnapshot:
    """An immutable view of the entities and relationships at one point in time."""

    entities: tuple[Entity, ...] = field(default_factory=tuple)
    relationships: tuple[Relationship, ...] = field(default_factory=tuple)

    @property
    def node_count(self) -> int:
        return len(self.entities)

    @property
    def edge_count(self) -> int:
        return len(self.relationships)


class GraphStore:
    """
    NetworkX-based graph store for entity-relationship storage.

    Provides:
    - Entity upsert with field-level merge (last write wins per field)
    - Append-only relationship list, duplicates allowed, insertion order kept
    - Neighbor lookups for node summaries
    - Immutable snapshots for metric computation

    Relationship endpoints that were never registered as entities are kept
    as placeholder nodes and never show up in entity reads.

    Usage:
        store = GraphStore()
        store.upsert_entity("event:e1", {"kind": "Event", "title": "Storm"})
        store.add_relationship("event:e1", "location:X", RelationKind.OCCURS_IN)
        snapshot = store.snapshot()
    """

    def __init__(self) -> None:
        self._graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._sequence = count()
        self._version = 0

    @property
    def version(self) -> int:
        """Monotonic counter bumped by every mutation."""
        return self._version

    def _is_entity(self, node_id: str) -> bool:
        return self._graph.has_node(node_id) and not self._graph.nodes[node_id].get("placeholder")

    def upsert_entity(
        self,
        entity_id: str,
        attributes: Mapping[str, Any] | Entity,
    ) -> Entity:
        """
        Create an entity or merge attributes into the existing one.

        Fields absent from ``attributes`` keep their previous value. A new
        entity without a ``kind`` takes it from the identifier prefix.

        Args:
            entity_id: Composite entity identifier
            attributes: Attribute mapping (or an Entity whose set fields are used)

        Returns:
            The merged entity

        Raises:
            GraphStoreError: If the kind cannot be determined or an attribute is invalid
        """
        if isinstance(attributes, Entity):
            incoming = attributes.attributes()
        else:
            incoming = dict(attributes)
            incoming.pop("id", None)

        merged: dict[str, Any] = {}
        if self._is_entity(entity_id):
            merged.update(self._graph.nodes[entity_id]["data"])
        merged.update(incoming)
        merged["id"] = entity_id

        if "kind" not in merged:
            kind = EntityKind.from_entity_id(entity_id)
            if kind is None:
                raise GraphStoreError(
                    f"Cannot infer kind for {entity_id}; pass 'kind' or use a "
                    "paper:/event:/policy:/location: prefix"
                )
            merged["kind"] = kind

        try:
            entity = Entity.model_validate(merged)
        except ValidationError as e:
            raise GraphStoreError(f"Invalid attributes for {entity_id}: {e}") from e

        if self._graph.has_node(entity_id):
            node = self._graph.nodes[entity_id]
            node.pop("placeholder", None)
            node["kind"] = entity.kind.value
            node["data"] = entity.model_dump(exclude_unset=True)
        else:
            self._graph.add_node(
                entity_id,
                kind=entity.kind.value,
                data=entity.model_dump(exclude_unset=True),
            )

        self._version += 1
        logger.debug(f"Upserted entity: {entity_id} ({entity.kind.value})")
        return entity

    def add_relationship(
        self,
        source_id: str,
        target_id: str,
        relation: RelationKind | str,
    ) -> Relationship:
        """
        Append a directed relationship. Always succeeds.

        Args:
            source_id: Source entity ID
            target_id: Target entity ID
            relation: Relationship label

        Returns:
            The stored relationship
        """
        relationship = Relationship(
            source_id=source_id,
            target_id=target_id,
            relation=relation_label(relation),
        )

        for endpoint in (source_id, target_id):
            if not self._graph.has_node(endpoint):
                logger.warning(f"Endpoint {endpoint} not found, creating placeholder")
                self._graph.add_node(endpoint, placeholder=True)

        seq = next(self._sequence)
        self._graph.add_edge(
            source_id,
            target_id,
            key=seq,
            seq=seq,
            relation=relationship.relation,
        )

        self._version += 1
        logger.debug(f"Added relationship: {source_id} --[{relationship.relation}]--> {target_id}")
        return relationship

    def reset(self) -> None:
        """Clear all entities and relationships."""
        self._graph.clear()
        self._sequence = count()
        self._version += 1
        logger.info("Cleared graph store")

    def has_entity(self, entity_id: str) -> bool:
        return self._is_entity(entity_id)

    def get_entity(self, entity_id: str) -> Entity | None:
        """
        Get an entity by ID.

        Returns:
            Entity or None if not found (placeholders count as not found)
        """
        if not self._is_entity(entity_id):
            return None
        return Entity.model_validate(self._graph.nodes[entity_id]["data"])

    def require_entity(self, entity_id: str) -> Entity:
        """Get an entity by ID or raise NotFoundError."""
        entity = self.get_entity(entity_id)
        if entity is None:
            raise NotFoundError(entity_id)
        return entity

    def list_entities(self) -> list[Entity]:
        """All entities in insertion order."""
        return [
            Entity.model_validate(data["data"])
            for _, data in self._graph.nodes(data=True)
            if not data.get("placeholder")
        ]

    def list_relationships(self) -> list[Relationship]:
        """All relationships in insertion order, duplicates included."""
        edges = sorted(
            self._graph.edges(data=True),
            key=lambda edge: edge[2]["seq"],
        )
        return [
            Relationship(source_id=source, target_id=target, relation=data["relation"])
            for source, target, data in edges
        ]

    def degree(self, entity_id: str) -> int:
        """Relationships touching ``entity_id``; self-loops count twice."""
        if not self._graph.has_node(entity_id):
            return 0
        return int(self._graph.degree(entity_id))

    def neighbors(self, entity_id: str) -> list[Entity]:
        """
        Entities directly connected to ``entity_id`` in either direction.

        Each neighbor appears once, in order of the first relationship
        linking it. The entity itself is never its own neighbor.
        """
        if not self._graph.has_node(entity_id):
            return []

        seen: set[str] = set()
        result: list[Entity] = []
        for rel in self.list_relationships():
            if rel.source_id == entity_id:
                other = rel.target_id
            elif rel.target_id == entity_id:
                other = rel.source_id
            else:
                continue

            if other == entity_id or other in seen:
                continue
            seen.add(other)

            neighbor = self.get_entity(other)
            if neighbor is not None:
                result.append(neighbor)

        return result

    def entity_count(self) -> int:
        """Number of registered entities (placeholders excluded)."""
        return sum(1 for _, data in self._graph.nodes(data=True) if not data.get("placeholder"))

    def relationship_count(self) -> int:
        return self._graph.number_of_edges()

    def snapshot(self) -> GraphSnapshot:
        """Freeze the current entities and relationships."""
        return GraphSnapshot(
            entities=tuple(self.list_entities()),
            relationships=tuple(self.list_relationships()),
        )
