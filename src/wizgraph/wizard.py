"""
Wizard — explicit handle over one wizard graph and its run.

Owns the node and connection stores, the answer store and the traversal
engine. Renderers and editors hold a Wizard instance and call it directly;
there is no process-wide registry of wizards.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from wizgraph.answers import AnswerStore, apply_default_form_data
from wizgraph.config import WizardOptions
from wizgraph.engine import AdvanceResult, Progress, StepView, TraversalEngine, UNSET
from wizgraph.files import capture_file
from wizgraph.model import Connection, FileValue, Node, NodeType, START_NODE_ID
from wizgraph.options_loader import OptionsLoader, load_remote_options
from wizgraph.serialization import (
    graph_from_dict,
    graph_from_json,
    graph_from_yaml,
    graph_to_dict,
    graph_to_json,
    graph_to_yaml,
)
from wizgraph.store import ConnectionStore, GraphValidation, NodeStore, validate_graph
from wizgraph.validation import ValidationEngine

logger = logging.getLogger(__name__)


class Wizard:
    def __init__(self, data: Optional[Mapping[str, Any]] = None, options: Optional[WizardOptions] = None):
        self.options = options or WizardOptions()
        self.nodes = NodeStore()
        self.connections = ConnectionStore()
        self.answers = AnswerStore()
        self.validator = ValidationEngine()
        self.engine = TraversalEngine(
            self.nodes,
            self.connections,
            answers=self.answers,
            validator=self.validator,
            show_progress_tracker=self.options.show_progress_tracker,
            on_submit=self.options.on_submit,
        )
        self.options_loader = OptionsLoader(timeout=self.options.request_timeout)

        if data is not None:
            self.load(data)
        else:
            self.add_start_node()

    # ------------------------------------------------------------------
    # Graph editing
    # ------------------------------------------------------------------

    def add_start_node(self) -> Node:
        return self.nodes.add_node({
            "id": START_NODE_ID,
            "type": NodeType.START.value,
            "x": 400,
            "y": 300,
            "title": "Start",
            "content": "Start configuration",
        })

    def add_node(self, data: Union[Node, Mapping[str, Any]]) -> Node:
        return self.nodes.add_node(data)

    def update_node(self, node_id: str, patch: Mapping[str, Any]) -> Node:
        return self.nodes.update_node(node_id, patch)

    def delete_node(self, node_id: str) -> bool:
        """Delete a node and every connection touching it."""
        if not self.nodes.delete_node(node_id):
            return False
        self.connections.delete_connections_for_node(node_id)
        self.answers.delete(node_id)
        return True

    def add_connection(self, data: Union[Connection, Mapping[str, Any]]) -> Optional[Connection]:
        return self.connections.add_connection(data)

    def delete_connection(self, connection_id: str) -> bool:
        return self.connections.delete_connection(connection_id)

    def validate(self) -> GraphValidation:
        return validate_graph(self.nodes, self.connections)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def serialize(self) -> Dict[str, Any]:
        return graph_to_dict(self.nodes.get_all_nodes(), self.connections.get_all_connections())

    def load(self, data: Mapping[str, Any]) -> None:
        """
        Replace the whole graph. The payload is parsed completely before
        anything is replaced, so a failing load leaves the wizard as it was.
        """
        nodes, connections = graph_from_dict(dict(data))
        self._replace(nodes, connections)

    def _replace(self, nodes: List[Node], connections: List[Connection]) -> None:
        self.nodes.set_nodes(nodes)
        self.connections.set_connections(connections)
        self.engine.reset()
        logger.info("Loaded graph: %d nodes, %d connections", len(nodes), len(connections))

    def to_json(self) -> str:
        return graph_to_json(self.nodes.get_all_nodes(), self.connections.get_all_connections())

    def load_json(self, s: str) -> None:
        self._replace(*graph_from_json(s))

    def to_yaml(self) -> str:
        return graph_to_yaml(self.nodes.get_all_nodes(), self.connections.get_all_connections())

    def load_yaml(self, s: str) -> None:
        self._replace(*graph_from_yaml(s))

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def start(self) -> StepView:
        if self.options.default_form_data:
            apply_default_form_data(self.nodes.get_all_nodes(), self.options.default_form_data)
        return self.engine.start()

    def current_step(self) -> StepView:
        return self.engine.current_step()

    def current_node(self) -> Optional[Node]:
        return self.engine.current_node()

    def advance(self, raw_value: Any = UNSET) -> AdvanceResult:
        return self.engine.advance(raw_value)

    def retreat(self) -> StepView:
        return self.engine.retreat()

    def progress(self) -> Progress:
        return self.engine.progress()

    def is_terminal(self) -> bool:
        return self.engine.is_terminal()

    def submit(self) -> Dict[str, Any]:
        return self.engine.submit()

    def export_answers(self) -> Dict[str, Any]:
        return self.engine.export_answers()

    async def capture_file(self, node_id: str, path: str, mime_type: Optional[str] = None) -> Optional[FileValue]:
        return await capture_file(self.engine, node_id, path, mime_type)

    async def load_remote_options(self, node_id: str) -> bool:
        return await load_remote_options(self.engine, node_id, self.options_loader)

    def close(self) -> None:
        """Release the HTTP session used for remote options."""
        self.options_loader.close()

    def __enter__(self) -> "Wizard":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
