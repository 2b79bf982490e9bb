"""
Tests for the Graph Analyzer.

Tests verify that the analyzer correctly:
    - Inventories nodes and connections
    - Finds reachability and cycles
    - Flags option edges the engine never follows
    - Reports validation coverage
"""

from wizgraph.analyzer import analyze_graph
from wizgraph.examples import build_contact_form_wizard, build_plan_wizard
from wizgraph.store import ConnectionStore, NodeStore


def build(node_data, edges, with_start=True):
    nodes = NodeStore()
    if with_start:
        nodes.add_node({"id": "start", "type": "start", "title": "Start"})
    for data in node_data:
        nodes.add_node(data)
    connections = ConnectionStore()
    for edge in edges:
        connections.add_connection(edge)
    return nodes, connections


def test_simple_linear_graph():
    """Analyze a simple linear graph: start -> A -> B."""
    nodes, connections = build(
        [
            {"id": "A", "type": "text", "attributes": {"data-xtz-validate": "true", "data-fv-not-empty": "true"}},
            {"id": "B", "type": "text"},
        ],
        [{"from": "start", "to": "A"}, {"from": "A", "to": "B"}],
    )

    report = analyze_graph(nodes, connections)

    assert report.total_nodes == 3
    assert report.total_connections == 2
    assert report.nodes_by_type == {"start": 1, "text": 2}
    assert report.entry_point == "A"
    assert report.exit_points == ["B"]
    assert report.unreachable_nodes == set()
    assert not report.has_cycles
    assert report.form_fields == 2
    assert report.fields_with_validation == 1
    assert report.validation_coverage_percent == 50.0
    assert report.warnings == []


def test_unreachable_nodes():
    """Nodes with no path from start are reported."""
    nodes, connections = build(
        [{"id": "A", "type": "text"}, {"id": "orphan", "type": "text"}],
        [{"from": "start", "to": "A"}],
    )
    report = analyze_graph(nodes, connections)
    assert report.unreachable_nodes == {"orphan"}
    assert "Unreachable nodes: orphan" in report.warnings


def test_cycle_detection():
    """A back edge is reported as a cycle."""
    nodes, connections = build(
        [{"id": "A", "type": "text"}, {"id": "B", "type": "text"}],
        [{"from": "start", "to": "A"}, {"from": "A", "to": "B"}, {"from": "B", "to": "A"}],
    )
    report = analyze_graph(nodes, connections)
    assert report.has_cycles
    assert report.cycle_example == ["A", "B", "A"]


def test_option_edge_risks():
    """Shadowed, ignored and out-of-range option edges are flagged."""
    nodes, connections = build(
        [
            {"id": "S", "type": "select", "options": [{"value": "a"}, {"value": "b"}]},
            {"id": "C", "type": "checkbox", "options": [{"value": "x"}]},
            {"id": "R", "type": "radio", "options": [{"value": "y"}]},
            {"id": "T", "type": "text"},
        ],
        [
            {"from": "start", "to": "S"},
            {"from": "S", "to": "C"},
            {"from": "S", "to": "T", "fromType": "option", "optionIndex": 1},
            {"from": "C", "to": "T", "fromType": "option", "optionIndex": 0},
            {"from": "C", "to": "R"},
            {"id": "bad", "from": "R", "to": "T", "fromType": "option", "optionIndex": 5},
        ],
    )
    report = analyze_graph(nodes, connections)
    assert report.shadowed_option_edges == ["S"]
    assert report.ignored_checkbox_edges == ["C"]
    assert report.out_of_range_option_edges == ["bad"]


def test_hidden_dead_end_and_missing_start():
    nodes, connections = build([{"id": "H", "type": "hidden"}], [], with_start=False)
    report = analyze_graph(nodes, connections)
    assert report.hidden_dead_ends == ["H"]
    assert "Missing start node" in report.warnings
    assert report.entry_point is None


def test_example_wizards_are_clean():
    """The bundled examples reach every node without structural warnings."""
    contact = build_contact_form_wizard()
    report = analyze_graph(contact.nodes, contact.connections)
    assert report.warnings == []
    assert report.validation_coverage_percent == 75.0

    plan = build_plan_wizard()
    report = analyze_graph(plan.nodes, plan.connections)
    assert report.unreachable_nodes == set()
    assert report.exit_points == ["extras", "logo"]
    assert not report.has_cycles
