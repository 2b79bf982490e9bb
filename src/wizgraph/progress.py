"""
Progress Projector — display-only linear path through a wizard graph.

The path follows only the first unconditional (output) edge of each node,
starting at the start node. Branch choices made during a run are NOT
reflected: once a run takes an option edge, the projected path and the
actual traversal diverge. The path is advisory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Set

from wizgraph.model import FromType, START_NODE_ID
from wizgraph.store import ConnectionStore, NodeStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressStep:
    """One entry of the progress path."""

    id: str
    title: str
    type: str


class ProgressProjector:
    def __init__(self, nodes: NodeStore, connections: ConnectionStore):
        self.nodes = nodes
        self.connections = connections

    def get_progress_path(self, start_id: str = START_NODE_ID) -> List[ProgressStep]:
        path: List[ProgressStep] = []
        visited: Set[str] = set()
        node_id = start_id

        # Iterative walk; a revisited node ends the path
        while node_id and node_id not in visited:
            if not self.nodes.has_node(node_id):
                break
            node = self.nodes.get_node(node_id)
            visited.add(node_id)

            if not node.is_start and node.is_form_field:
                path.append(ProgressStep(
                    id=node.id,
                    title=node.content or node.title or f"Step {len(path) + 1}",
                    type=node.type.value,
                ))

            outgoing = self.connections.get_connections_from(node_id, FromType.OUTPUT)
            node_id = outgoing[0].to_node if outgoing else None

        logger.debug("Progress path from %s: %s", start_id, [step.id for step in path])
        return path

    @staticmethod
    def get_current_step_index(node_id: str, path: List[ProgressStep]) -> int:
        for index, step in enumerate(path):
            if step.id == node_id:
                return index
        return -1
