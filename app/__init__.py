"""
Energy Graph RAG - FastAPI Application.

Provides REST API endpoints for graph ingestion, metrics,
timeline, node summaries and retrieval-augmented answers.
The ASGI app lives in ``app.main``.
"""

from app.config import Settings, get_settings

__all__ = [
    "get_settings",
    "Settings",
]
