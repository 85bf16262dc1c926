"""
Tests for Graph Visualizer.
"""

from pathlib import Path

import pytest

from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.graph_visualizer import (
    RISK_COLORS,
    GraphVisualizer,
    build_graph_data,
)
from energygraph.knowledge.metrics import MetricEngine, risk_band
from energygraph.knowledge.schemas import EntityKind, MetricSnapshot


@pytest.fixture
def graph(store: GraphStore) -> GraphStore:
    store.upsert_entity("event:A", {"kind": "Event", "title": "Storm", "region": "X", "severity": 1.0})
    store.upsert_entity("location:X", {"kind": "Location", "name": "X"})
    store.upsert_entity("paper:p", {"kind": "Paper", "title": "Isolated study"})
    store.add_relationship("event:A", "location:X", "OCCURS_IN")
    return store


class TestBuildGraphData:
    """Tests for the drawable payload."""

    def test_nodes_and_links(self, graph: GraphStore) -> None:
        data = GraphVisualizer(graph).graph_data()

        assert [n.id for n in data.nodes] == ["event:A", "location:X", "paper:p"]
        assert [(l.source, l.target, l.relation) for l in data.links] == [
            ("event:A", "location:X", "OCCURS_IN")
        ]

    def test_colors_follow_risk(self, graph: GraphStore) -> None:
        nodes = {n.id: n for n in GraphVisualizer(graph).graph_data().nodes}

        # N=3: event risk 0.5*1.0 + 0.5*0.5
        assert nodes["event:A"].risk == pytest.approx(0.75)
        assert nodes["event:A"].color == RISK_COLORS["high"]
        for node in nodes.values():
            assert node.color == RISK_COLORS[risk_band(node.risk)]
        assert nodes["paper:p"].color == RISK_COLORS["low"]

    def test_size_from_centrality(self, graph: GraphStore) -> None:
        nodes = {n.id: n for n in GraphVisualizer(graph).graph_data().nodes}

        assert nodes["paper:p"].size == pytest.approx(4.0)
        assert nodes["event:A"].size == pytest.approx(4.0 + 0.5 * 24.0)

    def test_location_labels(self, graph: GraphStore) -> None:
        nodes = {n.id: n for n in GraphVisualizer(graph).graph_data().nodes}

        assert nodes["location:X"].title == "X"
        assert nodes["location:X"].kind == EntityKind.LOCATION
        assert nodes["event:A"].region == "X"

    def test_missing_metrics_fall_back(self, graph: GraphStore) -> None:
        data = build_graph_data(graph.snapshot(), MetricSnapshot())
        nodes = {n.id: n for n in data.nodes}

        assert nodes["event:A"].risk == 1.0
        assert nodes["paper:p"].risk == 0.3
        assert nodes["event:A"].degree_centrality == 0.0

    def test_empty_graph(self, store: GraphStore) -> None:
        data = GraphVisualizer(store).graph_data()
        assert data.nodes == []
        assert data.links == []


class TestGraphVisualizer:
    """Tests for PyVis rendering."""

    def test_generate_network(self, graph: GraphStore) -> None:
        net = GraphVisualizer(graph, MetricEngine(graph)).generate_network()

        assert len(net.nodes) == 3
        assert len(net.edges) == 1

    def test_placeholder_edges_skipped(self, graph: GraphStore) -> None:
        graph.add_relationship("event:A", "location:Nowhere", "OCCURS_IN")

        net = GraphVisualizer(graph).generate_network()

        assert len(net.edges) == 1

    def test_save_html(self, graph: GraphStore, tmp_path: Path) -> None:
        output = tmp_path / "out" / "graph.html"

        path = GraphVisualizer(graph).save_html(output)

        assert path == output
        assert output.exists()
        assert "event:A" in output.read_text(encoding="utf-8")

    def test_save_html_reflects_later_changes(self, graph: GraphStore, tmp_path: Path) -> None:
        viz = GraphVisualizer(graph)
        viz.save_html(tmp_path / "before.html")

        graph.upsert_entity("event:B", {"kind": "Event", "title": "Heatwave derating"})
        graph.add_relationship("event:B", "location:X", "OCCURS_IN")
        after = viz.save_html(tmp_path / "after.html")

        html = after.read_text(encoding="utf-8")
        assert "event:B" in html
        assert "Heatwave derating" in html
        assert "event:B" not in (tmp_path / "before.html").read_text(encoding="utf-8")
