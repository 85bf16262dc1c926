"""
Embedding Index - in-memory cosine similarity search.

Holds one embedding per entity and ranks them against a query vector by
linear scan. Ranking is by descending cosine similarity; ties keep
insertion order.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from energygraph.knowledge.graph_store import GraphStore, NotFoundError
from energygraph.knowledge.vector_math import cosine_similarity
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """A single ranked match from the index."""

    entity_id: str
    score: float

    def __iter__(self):
        # Unpacks as an (id, score) pair
        yield self.entity_id
        yield self.score


class EmbeddingIndex:
    """
    Entity embeddings with top-k similarity search.

    When bound to a GraphStore, the index refuses embeddings for entities
    the store does not know, so every stored vector resolves to an entity
    at insertion time.

    Vectors are not required to share a dimensionality; similarity is
    computed over the shared prefix.

    Usage:
        index = EmbeddingIndex(store)
        index.upsert("paper:p1", embedding)
        hits = index.top_k(query_embedding, k=8)
    """

    def __init__(self, graph_store: GraphStore | None = None) -> None:
        self.graph_store = graph_store
        self._vectors: dict[str, np.ndarray] = {}

    def upsert(self, entity_id: str, vector: Sequence[float]) -> None:
        """
        Store or replace the vector for ``entity_id``.

        A replaced vector keeps its original insertion position.

        Raises:
            NotFoundError: If bound to a store that lacks ``entity_id``
        """
        if self.graph_store is not None and not self.graph_store.has_entity(entity_id):
            raise NotFoundError(entity_id)

        self._vectors[entity_id] = np.asarray(vector, dtype=float).ravel()
        logger.debug(f"Indexed embedding for {entity_id} (dim={self._vectors[entity_id].size})")

    def get(self, entity_id: str) -> list[float] | None:
        vector = self._vectors.get(entity_id)
        return None if vector is None else vector.tolist()

    def ids(self) -> list[str]:
        return list(self._vectors)

    def top_k(self, query: Sequence[float], k: int) -> list[SearchHit]:
        """
        Rank every stored vector against ``query``.

        Args:
            query: Query embedding
            k: Maximum number of hits

        Returns:
            At most ``min(k, len(self))`` hits, best first. Empty when the
            index is empty.
        """
        if k <= 0 or not self._vectors:
            return []

        scored = [
            SearchHit(entity_id=entity_id, score=cosine_similarity(query, vector))
            for entity_id, vector in self._vectors.items()
        ]
        # sorted() is stable, so equal scores stay in insertion order
        scored = sorted(scored, key=lambda hit: hit.score, reverse=True)
        return scored[:k]

    def reset(self) -> None:
        """Drop every stored vector."""
        self._vectors.clear()
        logger.info("Cleared embedding index")

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._vectors
