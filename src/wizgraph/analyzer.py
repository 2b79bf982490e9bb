"""
Graph Analyzer — early diagnostics and inventory of wizard graphs.

This module provides lightweight analysis of a node/connection graph:
    - Node and connection inventory
    - Reachability from the start node and cycles
    - Branching risks (option edges the engine will never follow)
    - Validation coverage of form fields

IMPORTANT: This is read-only. It does NOT modify the graph.
It only produces reports; validate_graph in store.py is the pass/fail check.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from wizgraph.model import FromType, NodeType, START_NODE_ID
from wizgraph.store import ConnectionStore, NodeStore


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class GraphReport:
    """Analysis report for a wizard graph."""

    total_nodes: int = 0
    total_connections: int = 0
    nodes_by_type: Dict[str, int] = field(default_factory=dict)

    # Graph properties
    entry_point: Optional[str] = None                      # target of the start output edge
    exit_points: List[str] = field(default_factory=list)   # nodes with no outgoing edges
    unreachable_nodes: Set[str] = field(default_factory=set)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    # Branching risks
    shadowed_option_edges: List[str] = field(default_factory=list)   # select/radio with an output edge
    ignored_checkbox_edges: List[str] = field(default_factory=list)  # never followed for checkboxes
    out_of_range_option_edges: List[str] = field(default_factory=list)
    hidden_dead_ends: List[str] = field(default_factory=list)

    # Coverage
    form_fields: int = 0
    fields_with_validation: int = 0
    validation_coverage_percent: float = 0.0

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_graph(nodes: NodeStore, connections: ConnectionStore) -> GraphReport:
    """
    Perform read-only analysis of a wizard graph.

    Returns a GraphReport with metrics and warnings.
    """
    report = GraphReport()
    all_nodes = nodes.get_all_nodes()
    all_connections = connections.get_all_connections()
    node_by_id = {n.id: n for n in all_nodes}

    report.total_nodes = len(all_nodes)
    report.total_connections = len(all_connections)

    type_counts: Dict[str, int] = defaultdict(int)
    for node in all_nodes:
        type_counts[node.type.value if node.type else "unknown"] += 1
    report.nodes_by_type = dict(type_counts)

    # =========================================================================
    # 1. GRAPH STRUCTURE
    # =========================================================================

    outgoing: Dict[str, List[str]] = defaultdict(list)
    for conn in all_connections:
        outgoing[conn.from_node].append(conn.to_node)

    start_outputs = connections.get_connections_from(START_NODE_ID, FromType.OUTPUT)
    report.entry_point = start_outputs[0].to_node if start_outputs else None

    for node in all_nodes:
        if node.id not in outgoing and not node.is_start:
            report.exit_points.append(node.id)

    reachable: Set[str] = set()
    stack = [START_NODE_ID]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        for neighbor in outgoing.get(node_id, []):
            if neighbor not in reachable:
                stack.append(neighbor)

    for node in all_nodes:
        if node.id not in reachable:
            report.unreachable_nodes.add(node.id)

    visited: Set[str] = set()
    for node_id in list(outgoing.keys()):
        if node_id not in visited:
            cycle = _find_cycles_dfs(outgoing, node_id, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 2. BRANCHING RISKS
    # =========================================================================

    for node in all_nodes:
        option_edges = connections.get_connections_from(node.id, FromType.OPTION)
        output_edges = connections.get_connections_from(node.id, FromType.OUTPUT)

        if option_edges and node.type in (NodeType.SELECT, NodeType.RADIO) and output_edges:
            report.shadowed_option_edges.append(node.id)
        if option_edges and node.type == NodeType.CHECKBOX:
            report.ignored_checkbox_edges.append(node.id)
        for conn in option_edges:
            if conn.option_index is None or not 0 <= conn.option_index < len(node.options):
                report.out_of_range_option_edges.append(conn.id)
        if node.type == NodeType.HIDDEN and not output_edges:
            report.hidden_dead_ends.append(node.id)

    # =========================================================================
    # 3. COVERAGE
    # =========================================================================

    for node in all_nodes:
        if node.is_form_field:
            report.form_fields += 1
            if node.attributes.validation_enabled and node.attributes.enabled_validators():
                report.fields_with_validation += 1

    if report.form_fields > 0:
        report.validation_coverage_percent = (report.fields_with_validation / report.form_fields) * 100

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if START_NODE_ID not in node_by_id:
        report.add_warning("Missing start node")

    if report.unreachable_nodes:
        report.add_warning(
            f"Unreachable nodes: {', '.join(sorted(report.unreachable_nodes))}"
        )

    if report.has_cycles:
        report.add_warning(
            f"Cycle detected: {' -> '.join(report.cycle_example)}"
        )

    if report.shadowed_option_edges:
        report.add_warning(
            f"Option edges shadowed by an output edge: {', '.join(report.shadowed_option_edges)}"
        )

    if report.ignored_checkbox_edges:
        report.add_warning(
            f"Option edges on checkbox nodes are not followed: {', '.join(report.ignored_checkbox_edges)}"
        )

    if report.out_of_range_option_edges:
        report.add_warning(
            f"Option edges outside the option list: {', '.join(report.out_of_range_option_edges)}"
        )

    if report.hidden_dead_ends:
        report.add_warning(
            f"Hidden nodes without output: {', '.join(report.hidden_dead_ends)}"
        )

    return report
