"""
Graph Store — node and connection collections.

Owns the mutable collections of a wizard graph and guards them with
existence and duplicate checks. Cascading a node deletion to its
connections is NOT done here; the caller (see wizard.Wizard) does it so each
store stays responsible for one collection only.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from wizgraph.errors import DuplicateNodeError, NodeNotFoundError, StructuralError
from wizgraph.model import (
    Connection,
    FromType,
    Node,
    NodeAttributes,
    NodeOption,
    NodeType,
    OPTION_TYPES,
    START_NODE_ID,
)
from wizgraph.serialization import (
    NODE_WIRE_FIELDS,
    connection_from_dict,
    node_from_dict,
    node_type_from_value,
    option_from_dict,
)

logger = logging.getLogger(__name__)


NODE_TITLES: Dict[str, str] = {
    "text": "Input text",
    "email": "Input Email",
    "password": "Input Password",
    "number": "Input number",
    "textarea": "Text Area",
    "select": "Dropdown",
    "checkbox": "Checkboxes",
    "radio": "Radio Buttons",
    "file": "File",
    "range": "Range",
    "hidden": "Hidden",
}

NODE_CONTENTS: Dict[str, str] = {
    "message": "Write your message here",
    "question": "What is your question?",
    "condition": "Condition to evaluate",
    "action": "Action to execute",
}


def default_title(node_type: Optional[str]) -> str:
    return NODE_TITLES.get(node_type or "", "Node")


def default_content(node_type: Optional[str]) -> str:
    return NODE_CONTENTS.get(node_type or "", "Content")


def default_options() -> List[NodeOption]:
    return [
        NodeOption(value="option1", description="Option 1"),
        NodeOption(value="option2", description="Option 2"),
    ]


@dataclass
class GraphValidation:
    """Outcome of a structural graph check."""

    is_valid: bool = True
    errors: List[str] = field(default_factory=list)


class NodeStore:
    """Ordered collection of nodes with CRUD and existence checks."""

    def __init__(self, nodes: Optional[List[Node]] = None):
        self._nodes: List[Node] = []
        self._id_counter = 1
        if nodes:
            self.set_nodes(nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def _next_id(self) -> str:
        while True:
            candidate = f"node_{self._id_counter}"
            self._id_counter += 1
            if self._find_index(candidate) == -1:
                return candidate

    def _find_index(self, node_id: str) -> int:
        for index, node in enumerate(self._nodes):
            if node.id == node_id:
                return index
        return -1

    def add_node(self, data: Union[Node, Mapping[str, Any]]) -> Node:
        """
        Add a node and return the stored instance.

        Missing ids come from a monotonic counter. Titles and contents
        default from the per-type lookup tables and option types get a two
        option list when none is supplied.

        Raises:
            DuplicateNodeError: if the id is already taken
        """
        logger.info("Adding node: %s", data)

        if isinstance(data, Node):
            node = data
            if not node.id:
                node.id = self._next_id()
        else:
            payload = dict(data)
            payload["type"] = payload.get("type") or NodeType.TEXT.value
            if not payload.get("id"):
                payload["id"] = self._next_id()
            if not payload.get("title"):
                payload["title"] = default_title(payload["type"])
            if not payload.get("content"):
                payload["content"] = default_content(payload["type"])
            node = node_from_dict(payload)

        if self._find_index(node.id) != -1:
            raise DuplicateNodeError(node.id)

        if node.type in OPTION_TYPES and not node.options:
            node.options = default_options()

        self._nodes.append(node)
        logger.info("Node added: %s (%s)", node.id, node.type.value if node.type else None)
        return node

    def set_nodes(self, nodes: List[Node]) -> None:
        """
        Replace every node at once.

        Raises:
            DuplicateNodeError: if two nodes share an id; the store is left unchanged
        """
        seen = set()
        for node in nodes:
            if node.id in seen:
                raise DuplicateNodeError(node.id)
            seen.add(node.id)
        self._nodes = list(nodes)

    def get_node(self, node_id: str) -> Optional[Node]:
        index = self._find_index(node_id)
        if index == -1:
            logger.warning("Node not found: %s", node_id)
            return None
        return self._nodes[index]

    def get_node_by_type(self, node_type: Union[str, NodeType]) -> Optional[Node]:
        for node in self._nodes:
            if node.type == node_type:
                return node
        logger.warning("No node of type: %s", node_type)
        return None

    def has_node(self, node_id: str) -> bool:
        return self._find_index(node_id) != -1

    def update_node(self, node_id: str, patch: Mapping[str, Any]) -> Node:
        """
        Shallow-merge ``patch`` onto a node.

        Keys are dataclass field names or the serialized names
        (``defaultRadioValue``).

        Raises:
            NodeNotFoundError: if the node does not exist
            StructuralError: if the patch renames the node or names an unknown field
        """
        index = self._find_index(node_id)
        if index == -1:
            logger.error("Cannot update missing node: %s", node_id)
            raise NodeNotFoundError(node_id)

        changes = {NODE_WIRE_FIELDS.get(key, key): value for key, value in patch.items()}
        if "id" in changes and changes["id"] != node_id:
            raise StructuralError(f"Node {node_id} cannot be renamed")
        if "type" in changes and not isinstance(changes["type"], NodeType):
            changes["type"] = node_type_from_value(changes["type"])
        if "attributes" in changes and not isinstance(changes["attributes"], NodeAttributes):
            changes["attributes"] = NodeAttributes.from_dict(changes["attributes"])
        if "options" in changes:
            changes["options"] = [
                option if isinstance(option, NodeOption) else option_from_dict(option)
                for option in changes["options"] or []
            ]

        old_node = self._nodes[index]
        try:
            new_node = dataclasses.replace(old_node, **changes)
        except TypeError as exc:
            raise StructuralError(f"Invalid update for node {node_id}: {exc}") from exc

        self._nodes[index] = new_node
        logger.info("Node updated: %s", node_id)
        return new_node

    def delete_node(self, node_id: str) -> bool:
        """
        Remove a node. The start node is never removed.

        Returns:
            True if removed, False if refused or not found
        """
        if node_id == START_NODE_ID:
            logger.warning("Cannot delete start node")
            return False

        index = self._find_index(node_id)
        if index == -1:
            logger.warning("Node not found: %s", node_id)
            return False

        del self._nodes[index]
        logger.info("Node deleted: %s", node_id)
        return True

    def get_all_nodes(self) -> List[Node]:
        return list(self._nodes)

    def clear(self) -> None:
        count = len(self._nodes)
        self._nodes = []
        self._id_counter = 1
        logger.info("Cleared %d nodes", count)

    def validate_nodes(self) -> GraphValidation:
        errors: List[str] = []

        if not any(node.type == NodeType.START for node in self._nodes):
            errors.append("Missing start node")

        for node in self._nodes:
            if not node.id:
                errors.append("Node without ID found")
            if not node.type:
                errors.append(f"Node {node.id} without type")
            if not node.title:
                errors.append(f"Node {node.id} without title")

        logger.info("Node validation completed: %d nodes, %d errors", len(self._nodes), len(errors))
        return GraphValidation(is_valid=not errors, errors=errors)


class ConnectionStore:
    """Collection of connections; exact duplicates are rejected."""

    def __init__(self, connections: Optional[List[Connection]] = None):
        self._connections: List[Connection] = []
        self._id_counter = 1
        if connections:
            self.set_connections(connections)

    def __len__(self) -> int:
        return len(self._connections)

    def _next_id(self) -> str:
        taken = {c.id for c in self._connections}
        while True:
            candidate = f"conn_{self._id_counter}"
            self._id_counter += 1
            if candidate not in taken:
                return candidate

    def add_connection(self, data: Union[Connection, Mapping[str, Any]]) -> Optional[Connection]:
        """
        Add a connection.

        ``data`` is a Connection or a mapping in the serialized shape
        (``from``, ``to``, ``fromType``, ``optionIndex``).

        Returns:
            The stored Connection, or None if an identical
            (from, to, fromType, optionIndex) edge already exists

        Raises:
            StructuralError: if the source or target id is missing
        """
        logger.info("Adding connection: %s", data)

        if isinstance(data, Connection):
            connection = data
            if not connection.id:
                connection.id = self._next_id()
        else:
            payload = dict(data)
            if not payload.get("id"):
                payload["id"] = self._next_id()
            connection = connection_from_dict(payload)

        if not connection.from_node or not connection.to_node:
            raise StructuralError(f"Connection {connection.id} needs both endpoints")

        if any(existing.key == connection.key for existing in self._connections):
            logger.warning("Connection already exists: %s", connection.key)
            return None

        self._connections.append(connection)
        logger.info("Connection added: %s", connection.id)
        return connection

    def set_connections(self, connections: List[Connection]) -> None:
        """Replace every connection at once. Repeated edges keep their first occurrence."""
        kept: List[Connection] = []
        keys = set()
        for connection in connections:
            if connection.key in keys:
                logger.warning("Dropping duplicate connection %s: %s", connection.id, connection.key)
                continue
            keys.add(connection.key)
            kept.append(connection)
        self._connections = kept

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        for connection in self._connections:
            if connection.id == connection_id:
                return connection
        logger.warning("Connection not found: %s", connection_id)
        return None

    def get_connections_from(
        self,
        node_id: str,
        from_type: Union[str, FromType, None] = None,
        option_index: Any = None,
    ) -> List[Connection]:
        """
        Outbound connections of a node.

        ``from_type`` and ``option_index`` are optional filters. The option
        index is compared loosely so ``"1"`` matches ``1``.
        """
        matches = []
        for connection in self._connections:
            if connection.from_node != node_id:
                continue
            if from_type and connection.from_type != from_type:
                continue
            if option_index is not None and str(connection.option_index) != str(option_index):
                continue
            matches.append(connection)

        logger.debug(
            "Connections from %s (type=%s, option=%s): %d", node_id, from_type, option_index, len(matches)
        )
        return matches

    def get_connections_to(self, node_id: str) -> List[Connection]:
        return [c for c in self._connections if c.to_node == node_id]

    def delete_connection(self, connection_id: str) -> bool:
        for index, connection in enumerate(self._connections):
            if connection.id == connection_id:
                del self._connections[index]
                logger.info("Connection deleted: %s", connection_id)
                return True
        logger.warning("Connection not found: %s", connection_id)
        return False

    def delete_connections_for_node(self, node_id: str) -> int:
        """Remove every connection where ``node_id`` is source or target."""
        before = len(self._connections)
        self._connections = [
            c for c in self._connections if c.from_node != node_id and c.to_node != node_id
        ]
        deleted = before - len(self._connections)
        logger.info("Deleted %d connections for node %s", deleted, node_id)
        return deleted

    def get_all_connections(self) -> List[Connection]:
        return list(self._connections)

    def clear(self) -> None:
        count = len(self._connections)
        self._connections = []
        self._id_counter = 1
        logger.info("Cleared %d connections", count)

    def validate_connections(self, nodes: NodeStore) -> GraphValidation:
        errors: List[str] = []
        for connection in self._connections:
            if not nodes.has_node(connection.from_node):
                errors.append(
                    f"Connection {connection.id} references non-existent from node: {connection.from_node}"
                )
            if not nodes.has_node(connection.to_node):
                errors.append(
                    f"Connection {connection.id} references non-existent to node: {connection.to_node}"
                )

        logger.info(
            "Connection validation completed: %d connections, %d errors", len(self._connections), len(errors)
        )
        return GraphValidation(is_valid=not errors, errors=errors)


def validate_graph(nodes: NodeStore, connections: ConnectionStore) -> GraphValidation:
    """
    Report structural problems of a graph without fixing them.

    Checks:
        - a start node exists
        - every node has an id, a type and a title
        - every connection endpoint exists
    """
    node_result = nodes.validate_nodes()
    connection_result = connections.validate_connections(nodes)
    errors = node_result.errors + connection_result.errors
    return GraphValidation(is_valid=not errors, errors=errors)
