"""
Knowledge Layer - graph, embeddings and metrics.

Graph store for entity relationships, embedding index for semantic search,
metric engine for centrality and risk.
"""

from energygraph.knowledge.graph_store import (
    GraphSnapshot,
    GraphStore,
    GraphStoreError,
    NotFoundError,
)
from energygraph.knowledge.graph_visualizer import GraphData, GraphVisualizer, build_graph_data
from energygraph.knowledge.metrics import MetricEngine, compute_metrics, risk_band
from energygraph.knowledge.schemas import (
    Entity,
    EntityKind,
    EntityMetrics,
    MetricSnapshot,
    RelationKind,
    Relationship,
    make_entity_id,
)
from energygraph.knowledge.timeline_builder import TimelineBuilder, TimelineItem, build_timeline
from energygraph.knowledge.vector_math import cosine_similarity, dot, norm
from energygraph.knowledge.vector_store import EmbeddingIndex, SearchHit

__all__ = [
    # Stores
    "GraphStore",
    "GraphSnapshot",
    "GraphStoreError",
    "NotFoundError",
    "EmbeddingIndex",
    "SearchHit",
    # Metrics
    "MetricEngine",
    "compute_metrics",
    "risk_band",
    # Vector math
    "dot",
    "norm",
    "cosine_similarity",
    # Timeline
    "TimelineBuilder",
    "TimelineItem",
    "build_timeline",
    # Visualization
    "GraphVisualizer",
    "GraphData",
    "build_graph_data",
    # Schemas
    "Entity",
    "EntityKind",
    "EntityMetrics",
    "MetricSnapshot",
    "Relationship",
    "RelationKind",
    "make_entity_id",
]
