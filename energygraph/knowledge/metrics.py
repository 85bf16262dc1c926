"""
Metric Engine - degree centrality and composite risk.

Metrics are a pure function of a graph snapshot. Nothing is updated
incrementally: every graph change produces a fresh MetricSnapshot.

    degree_centrality = degree / max(N - 1, 1)
    risk_score        = 0.5 * base_risk + 0.5 * degree_centrality
"""

from collections import Counter

from energygraph.knowledge.graph_store import GraphSnapshot, GraphStore
from energygraph.knowledge.schemas import Entity, EntityKind, EntityMetrics, MetricSnapshot
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_EVENT_RISK = 0.5
DEFAULT_RISK = 0.3
SEVERITY_WEIGHT = 0.5
CENTRALITY_WEIGHT = 0.5

HIGH_RISK_THRESHOLD = 0.7
MEDIUM_RISK_THRESHOLD = 0.4


def base_risk(entity: Entity) -> float:
    """Intrinsic risk: event severity, 0.5 for events without one, 0.3 otherwise."""
    if entity.kind == EntityKind.EVENT:
        return entity.severity if entity.severity is not None else DEFAULT_EVENT_RISK
    return DEFAULT_RISK


def risk_score(entity: Entity, degree_centrality: float) -> float:
    return SEVERITY_WEIGHT * base_risk(entity) + CENTRALITY_WEIGHT * degree_centrality


def risk_band(score: float) -> str:
    """Bucket a risk score into ``high``, ``medium`` or ``low``."""
    if score >= HIGH_RISK_THRESHOLD:
        return "high"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "low"


def degree_counts(snapshot: GraphSnapshot) -> dict[str, int]:
    """
    Count relationship endpoints per entity.

    Self-loops count twice. Endpoints that are not registered entities
    are ignored.
    """
    counts: Counter[str] = Counter()
    for rel in snapshot.relationships:
        counts[rel.source_id] += 1
        counts[rel.target_id] += 1
    return {entity.id: counts.get(entity.id, 0) for entity in snapshot.entities}


def compute_metrics(snapshot: GraphSnapshot) -> MetricSnapshot:
    """
    Rebuild the metric snapshot for a graph state.

    Args:
        snapshot: Frozen entities and relationships

    Returns:
        MetricSnapshot covering every entity (empty for an empty graph)
    """
    degrees = degree_counts(snapshot)
    normalizer = max(len(snapshot.entities) - 1, 1)

    metrics: dict[str, EntityMetrics] = {}
    for entity in snapshot.entities:
        degree = degrees[entity.id]
        centrality = degree / normalizer
        metrics[entity.id] = EntityMetrics(
            degree=degree,
            degree_centrality=centrality,
            risk_score=risk_score(entity, centrality),
        )

    return MetricSnapshot(metrics=metrics)


class MetricEngine:
    """
    Keeps a MetricSnapshot consistent with a GraphStore.

    The snapshot is recomputed whenever the store's version has moved,
    so reads never observe stale metrics.

    Usage:
        engine = MetricEngine(store)
        engine.refresh()
        risk = engine.snapshot.get("event:e1").risk_score
    """

    def __init__(self, graph_store: GraphStore) -> None:
        self.graph_store = graph_store
        self._snapshot = MetricSnapshot()
        self._version: int | None = None

    def refresh(self) -> MetricSnapshot:
        """Recompute metrics from the current graph state."""
        graph = self.graph_store.snapshot()
        self._snapshot = compute_metrics(graph)
        self._version = self.graph_store.version
        logger.debug(
            f"Recomputed metrics for {graph.node_count} entities, "
            f"{graph.edge_count} relationships"
        )
        return self._snapshot

    @property
    def snapshot(self) -> MetricSnapshot:
        if self._version != self.graph_store.version:
            return self.refresh()
        return self._snapshot
