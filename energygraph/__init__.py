"""
Energy Graph RAG - Source Package.

This package contains the core functionality for:
- An in-memory knowledge graph of papers, grid events, policies and locations
- Embedding-based retrieval over graph nodes
- Degree-centrality and composite risk metrics
- Retrieval-augmented answers and node summaries
"""

from energygraph.agents import RAGOrchestrator
from energygraph.ingestion import IngestionPipeline
from energygraph.knowledge import (
    EmbeddingIndex,
    GraphStore,
    GraphVisualizer,
    MetricEngine,
    TimelineBuilder,
)
from energygraph.workspace import GraphWorkspace, IngestionResult

__all__ = [
    # Knowledge
    "GraphStore",
    "EmbeddingIndex",
    "MetricEngine",
    "TimelineBuilder",
    "GraphVisualizer",
    # Ingestion
    "IngestionPipeline",
    # Agents
    "RAGOrchestrator",
    # Facade
    "GraphWorkspace",
    "IngestionResult",
]
