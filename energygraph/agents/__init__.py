"""
Agents Layer - Retrieval-Augmented Generation.

Answers questions from the most similar graph nodes and summarizes
individual nodes from their neighborhood.
"""

from energygraph.agents.rag import (
    DEFAULT_TOP_K,
    RAG_FAILURE_MESSAGE,
    SUMMARY_FAILURE_MESSAGE,
    RAGOrchestrator,
    build_answer_prompt,
    build_context_block,
    build_summary_prompt,
)
from energygraph.agents.schemas import ContextItem, NodeSummary, RAGAnswer

__all__ = [
    "RAGOrchestrator",
    "DEFAULT_TOP_K",
    "RAG_FAILURE_MESSAGE",
    "SUMMARY_FAILURE_MESSAGE",
    "build_answer_prompt",
    "build_context_block",
    "build_summary_prompt",
    # Schemas
    "ContextItem",
    "RAGAnswer",
    "NodeSummary",
]
