#!/usr/bin/env python3
"""
CLI Script for Graph Ingestion and Graph RAG.

Usage:
    python scripts/ingest.py --papers papers.json --events events.json --policies policies.json
    python scripts/ingest.py --events events.json --question "Which regions risk cascading outages?"
    python scripts/ingest.py --events events.json --html data/graph.html
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app.config import get_settings
from energygraph.ingestion.schemas import RecordValidationError
from energygraph.knowledge.graph_visualizer import GraphVisualizer
from energygraph.knowledge.metrics import risk_band
from energygraph.utils.llm_factory import ProviderClient, ProviderError
from energygraph.utils.logger import get_logger, setup_logging
from energygraph.workspace import GraphWorkspace

console = Console()
logger = get_logger(__name__)

BAND_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def _read(path: Path | None) -> str | None:
    if path is None:
        return None
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        sys.exit(1)
    return path.read_text(encoding="utf-8")


def _display_metrics(workspace: GraphWorkspace) -> None:
    """Display per-node metrics, riskiest first."""
    table = Table(title="Graph Metrics")
    table.add_column("Node", style="cyan")
    table.add_column("Type")
    table.add_column("Degree", justify="right")
    table.add_column("Centrality", justify="right")
    table.add_column("Risk", justify="right")

    snapshot = workspace.metrics
    entities = sorted(
        workspace.graph_store.list_entities(),
        key=lambda e: snapshot.get(e.id).risk_score if e.id in snapshot else 0.0,
        reverse=True,
    )
    for entity in entities:
        metric = snapshot.get(entity.id)
        if metric is None:
            continue
        style = BAND_STYLES[risk_band(metric.risk_score)]
        table.add_row(
            entity.id,
            entity.kind.value,
            str(metric.degree),
            f"{metric.degree_centrality:.2f}",
            f"[{style}]{metric.risk_score:.2f}[/{style}]",
        )

    console.print(table)


def _display_timeline(workspace: GraphWorkspace) -> None:
    items = workspace.timeline()
    if not items:
        console.print("[dim]Timeline is empty.[/dim]")
        return

    table = Table(title="Timeline")
    table.add_column("Date", style="magenta")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Region")
    for item in items:
        table.add_row(
            item.timestamp.date().isoformat(),
            item.title,
            item.kind.value,
            item.region or "",
        )
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = ProviderClient()
    workspace = GraphWorkspace(
        embed=client.embed,
        generate=client.generate,
        top_k=args.top_k or settings.rag_top_k,
        embed_concurrency=settings.embed_concurrency,
    )

    try:
        with console.status("[bold green]Ingesting records..."):
            result = await workspace.ingest(
                _read(args.papers),
                _read(args.events),
                _read(args.policies),
            )
    except RecordValidationError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    except ProviderError as e:
        console.print(f"\n[bold red]✗[/] Ingestion failed: {e}")
        logger.exception("Ingestion failed")
        return 1

    console.print(
        f"\n[bold green]✓[/] Ingested {result.report.entities_ingested} records: "
        f"{result.node_count} nodes, {result.edge_count} edges"
    )
    _display_metrics(workspace)
    _display_timeline(workspace)

    if args.html:
        path = GraphVisualizer(workspace.graph_store, workspace.metric_engine).save_html(args.html)
        console.print(f"[dim]Saved graph to {path}[/dim]")

    if args.question:
        with console.status("[bold green]Asking model..."):
            answer = await workspace.answer(args.question)
        style = "red" if answer.failed else "blue"
        console.print(Panel(answer.answer or "No context available.", title="Answer", border_style=style))
        for context in answer.contexts:
            console.print(
                f"  [cyan]{context.kind.value}[/] · {context.title[:22]} · {context.similarity or 0.0:.2f}"
            )

    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build the energy knowledge graph and optionally ask it a question"
    )
    parser.add_argument("--papers", type=Path, help="Papers JSON file")
    parser.add_argument("--events", type=Path, help="Grid events JSON file")
    parser.add_argument("--policies", type=Path, help="Policies JSON file")
    parser.add_argument("--question", "-q", help="Question to answer with graph RAG")
    parser.add_argument("--top-k", type=int, default=None, help="Nodes retrieved as context")
    parser.add_argument("--html", type=Path, help="Write an interactive graph to this HTML file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = parser.parse_args()
    setup_logging(args.log_level)

    if not (args.papers or args.events or args.policies):
        parser.error("Must specify at least one of --papers, --events, --policies")

    console.print("[bold]Energy Graph RAG - Ingestion[/]")
    console.print("=" * 50)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
