"""
Graph Visualizer - risk-colored knowledge graph rendering.

Builds the node/link payload a front end draws (color = risk band,
size = degree centrality) and can render it to a standalone PyVis HTML page.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pyvis.network import Network

from energygraph.knowledge.graph_store import GraphSnapshot, GraphStore
from energygraph.knowledge.metrics import DEFAULT_RISK, MetricEngine, risk_band
from energygraph.knowledge.schemas import EntityKind, MetricSnapshot
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Color Scheme - Red / Amber / Green by risk band
# ============================================================================

RISK_COLORS = {
    "high": "#f97373",
    "medium": "#fb923c",
    "low": "#22c55e",
}

KIND_BORDER_COLORS = {
    EntityKind.EVENT: "#b91c1c",
    EntityKind.POLICY: "#1d4ed8",
    EntityKind.PAPER: "#7c3aed",
    EntityKind.LOCATION: "#475569",
}

LINK_COLOR = "rgba(148,163,184,0.7)"
BASE_NODE_SIZE = 4.0
CENTRALITY_NODE_SCALE = 24.0
LABEL_MAX_LENGTH = 22


class GraphNodeView(BaseModel):
    """A node as drawn by the visual layer."""

    id: str
    kind: EntityKind
    title: str
    region: str = ""
    severity: float | None = None
    risk: float
    degree_centrality: float = 0.0
    color: str
    size: float


class GraphLinkView(BaseModel):
    """A directed edge as drawn by the visual layer."""

    source: str
    target: str
    relation: str


class GraphData(BaseModel):
    """Everything needed to draw the graph."""

    nodes: list[GraphNodeView] = Field(default_factory=list)
    links: list[GraphLinkView] = Field(default_factory=list)


def build_graph_data(snapshot: GraphSnapshot, metrics: MetricSnapshot) -> GraphData:
    """
    Combine a graph snapshot with its metrics into a drawable payload.

    Args:
        snapshot: Entities and relationships
        metrics: Metrics computed for the same snapshot

    Returns:
        GraphData with one view per entity and per relationship
    """
    nodes: list[GraphNodeView] = []
    for entity in snapshot.entities:
        metric = metrics.get(entity.id)
        if metric is not None:
            risk = metric.risk_score
            centrality = metric.degree_centrality
        else:
            risk = entity.severity if entity.severity is not None else DEFAULT_RISK
            centrality = 0.0

        nodes.append(GraphNodeView(
            id=entity.id,
            kind=entity.kind,
            title=entity.display_title,
            region=entity.area or "",
            severity=entity.severity,
            risk=risk,
            degree_centrality=centrality,
            color=RISK_COLORS[risk_band(risk)],
            size=BASE_NODE_SIZE + centrality * CENTRALITY_NODE_SCALE,
        ))

    links = [
        GraphLinkView(source=rel.source_id, target=rel.target_id, relation=rel.relation)
        for rel in snapshot.relationships
    ]

    return GraphData(nodes=nodes, links=links)


def _truncate_label(value: str, max_length: int = LABEL_MAX_LENGTH) -> str:
    return value[:max_length]


class GraphVisualizer:
    """
    Render the knowledge graph with PyVis.

    Usage:
        viz = GraphVisualizer(graph_store)
        viz.save_html(Path("graph.html"))
    """

    def __init__(
        self,
        graph_store: GraphStore,
        metric_engine: MetricEngine | None = None,
    ) -> None:
        self.graph_store = graph_store
        self.metric_engine = metric_engine or MetricEngine(graph_store)

    def graph_data(self) -> GraphData:
        return build_graph_data(self.graph_store.snapshot(), self.metric_engine.snapshot)

    def generate_network(self, physics_enabled: bool = True) -> Network:
        """Build a PyVis network from the current graph state."""
        data = self.graph_data()

        net = Network(
            height="800px",
            width="100%",
            bgcolor="#020617",
            font_color="#e5e7eb",
            directed=True,
        )

        for node in data.nodes:
            tooltip = f"{node.title}\n{node.kind.value}"
            if node.region:
                tooltip += f" • {node.region}"
            tooltip += f"\nRisk: {node.risk:.2f}"

            net.add_node(
                node.id,
                label=_truncate_label(node.title),
                title=tooltip,
                color={
                    "background": node.color,
                    "border": KIND_BORDER_COLORS.get(node.kind, "#020617"),
                },
                size=node.size,
            )

        drawn = {node.id for node in data.nodes}
        for link in data.links:
            # PyVis rejects edges to nodes it has not seen
            if link.source not in drawn or link.target not in drawn:
                continue
            net.add_edge(
                link.source,
                link.target,
                title=link.relation,
                color=LINK_COLOR,
                width=1,
                arrows="to",
            )

        if not physics_enabled:
            net.toggle_physics(False)

        logger.info(f"Generated network: {len(data.nodes)} nodes, {len(data.links)} edges")
        return net

    def save_html(self, output_path: Path, physics_enabled: bool = True) -> Path:
        """
        Save the current graph as an interactive HTML file.

        The network is rebuilt on every call so the page reflects the store
        as it is now.

        Args:
            output_path: Where to save the HTML
            physics_enabled: Enable the force-directed layout

        Returns:
            Path to saved file
        """
        net = self.generate_network(physics_enabled)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        net.save_graph(str(output_path))

        logger.info(f"Saved graph visualization to {output_path}")
        return output_path
