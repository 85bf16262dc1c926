"""
FastAPI Application Entry Point.

Energy Graph RAG API.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from app.config import get_settings
from energygraph.agents.schemas import NodeSummary, RAGAnswer
from energygraph.ingestion.schemas import RecordValidationError
from energygraph.knowledge.graph_store import NotFoundError
from energygraph.knowledge.graph_visualizer import GraphData
from energygraph.knowledge.timeline_builder import TimelineItem
from energygraph.utils.llm_factory import ProviderClient, ProviderError
from energygraph.utils.logger import get_logger, setup_logging
from energygraph.workspace import GraphWorkspace

logger = get_logger(__name__)
settings = get_settings()


def create_workspace() -> GraphWorkspace:
    """Workspace wired to the configured providers (backends load lazily)."""
    client = ProviderClient()
    return GraphWorkspace(
        embed=client.embed,
        generate=client.generate,
        top_k=settings.rag_top_k,
        embed_concurrency=settings.embed_concurrency,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup
    setup_logging(settings.log_level)
    logger.info("Starting Energy Graph RAG API...")
    logger.info(f"LLM Backend: {settings.llm_backend.value}")
    logger.info(f"Embedding Backend: {settings.embedding_backend.value}")
    app.state.workspace = create_workspace()
    yield
    # Shutdown
    logger.info("Shutting down Energy Graph RAG API...")


app = FastAPI(
    title="Energy Graph RAG",
    description="Knowledge graph of grid events, policies and research with risk metrics and graph RAG",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_workspace(request: Request) -> GraphWorkspace:
    """The process-wide workspace created at startup."""
    workspace = getattr(request.app.state, "workspace", None)
    if workspace is None:
        raise HTTPException(status_code=500, detail="Workspace not initialized")
    return workspace


# ============================================================================
# Request Models
# ============================================================================

class IngestRequest(BaseModel):
    """Raw record collections to ingest."""

    papers: list[dict[str, Any]] = Field(default_factory=list)
    events: list[dict[str, Any]] = Field(default_factory=list)
    policies: list[dict[str, Any]] = Field(default_factory=list)
    rebuild: bool = Field(default=True, description="Reset the graph before ingesting")


class AnswerRequest(BaseModel):
    """A question for graph RAG."""

    question: str
    top_k: int | None = Field(default=None, ge=1)


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/config")
async def get_config() -> dict[str, str | int]:
    """Get current configuration (non-sensitive values only)."""
    return {
        "llm_backend": settings.llm_backend.value,
        "embedding_backend": settings.embedding_backend.value,
        "embedding_model": settings.embedding_model,
        "rag_top_k": settings.rag_top_k,
    }


@app.post("/ingest")
async def ingest_records(
    request: IngestRequest,
    workspace: GraphWorkspace = Depends(get_workspace),
) -> dict[str, Any]:
    """
    Ingest papers, events and policies into the graph.

    Embeds every record, links events and policies to locations and
    derives paper/event links.
    """
    logger.info(
        f"Ingest requested: {len(request.papers)} papers, {len(request.events)} events, "
        f"{len(request.policies)} policies (rebuild={request.rebuild})"
    )

    try:
        result = await workspace.ingest(
            request.papers,
            request.events,
            request.policies,
            rebuild=request.rebuild,
        )
    except RecordValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error(f"Ingestion failed: {e}")
        raise HTTPException(status_code=502, detail=f"Ingestion failed: {e}")

    return {
        "status": "success",
        "papers": result.report.papers,
        "events": result.report.events,
        "policies": result.report.policies,
        "locations": result.report.locations,
        "relationships_added": result.report.relationships_added,
        "derived_links": result.report.derived_links,
        "node_count": result.node_count,
        "edge_count": result.edge_count,
    }


@app.post("/reset")
async def reset_graph(workspace: GraphWorkspace = Depends(get_workspace)) -> dict[str, str | int]:
    """Clear the graph, embeddings and derived state."""
    workspace.reset()
    return {"status": "reset", "node_count": 0, "edge_count": 0}


@app.get("/graph", response_model=GraphData)
async def get_graph(workspace: GraphWorkspace = Depends(get_workspace)) -> GraphData:
    """Nodes and links with risk colors and centrality-based sizes."""
    return workspace.graph_data()


@app.get("/metrics")
async def get_metrics(
    workspace: GraphWorkspace = Depends(get_workspace),
) -> dict[str, dict[str, float]]:
    """Degree centrality and risk score per entity."""
    return workspace.metrics.as_dict()


@app.get("/timeline", response_model=list[TimelineItem])
async def get_timeline(workspace: GraphWorkspace = Depends(get_workspace)) -> list[TimelineItem]:
    """Events, policies and papers in chronological order."""
    return workspace.timeline()


@app.post("/answer", response_model=RAGAnswer)
async def answer_question(
    request: AnswerRequest,
    workspace: GraphWorkspace = Depends(get_workspace),
) -> RAGAnswer:
    """Answer a question from the most similar graph nodes."""
    logger.info(f"RAG question: '{request.question[:50]}' (top_k={request.top_k})")
    return await workspace.answer(request.question, request.top_k)


@app.get("/entities/{entity_id:path}/summary", response_model=NodeSummary)
async def summarize_entity(
    entity_id: str,
    workspace: GraphWorkspace = Depends(get_workspace),
) -> NodeSummary:
    """Summarize one node and its neighborhood."""
    try:
        return await workspace.summarize(entity_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
