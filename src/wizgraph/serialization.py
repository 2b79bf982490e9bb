"""
Serialization helpers for wizard graphs (Node, Connection, FileValue, etc.).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
The dict shape uses the editor's wire names (``from``, ``fromType``,
``optionIndex``, ``defaultRadioValue``...) so graphs exported by the visual
editor load unchanged. Every payload carries a ``schema_version``.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

import yaml

from wizgraph.errors import StructuralError, UnsupportedSchemaVersionError
from wizgraph.model import (
    Connection,
    FileValue,
    FromType,
    Node,
    NodeAttributes,
    NodeOption,
    NodeType,
    normalize_option_index,
)

SCHEMA_VERSION = 1

# Node wire keys that differ from the dataclass field names
NODE_WIRE_FIELDS = {"defaultRadioValue": "default_radio_value"}


def option_to_dict(o: NodeOption) -> Dict[str, Any]:
    d: Dict[str, Any] = {"value": o.value, "description": o.description}
    if o.id:
        d["id"] = o.id
    if o.name:
        d["name"] = o.name
    if o.checked:
        d["checked"] = True
    if o.selected:
        d["selected"] = True
    return d


def option_from_dict(d: Dict[str, Any]) -> NodeOption:
    return NodeOption(
        value=str(d.get("value", "")),
        description=str(d.get("description", "")),
        id=d.get("id") or None,
        name=d.get("name") or None,
        checked=bool(d.get("checked", False)),
        selected=bool(d.get("selected", False)),
    )


def file_value_from_dict(d: Dict[str, Any] | None) -> FileValue | None:
    """Wire shape ``{base64, fileName, mimeType}``; no payload means no file."""
    if not d or not d.get("base64"):
        return None
    return FileValue(base64=d.get("base64", ""), file_name=d.get("fileName", ""), mime_type=d.get("mimeType", ""))


def node_type_from_value(value: Any) -> NodeType | None:
    if not value:
        return None
    try:
        return NodeType(value)
    except ValueError as exc:
        raise StructuralError(f"Unknown node type: {value!r}") from exc


def node_to_dict(n: Node) -> Dict[str, Any]:
    d = {
        "id": n.id,
        "type": n.type.value if n.type else None,
        "title": n.title,
        "content": n.content,
        "context": n.context,
        "placeholder": n.placeholder,
        "help": n.help,
        "x": n.x,
        "y": n.y,
        "attributes": n.attributes.to_dict(),
    }
    if n.options:
        d["options"] = [option_to_dict(o) for o in n.options]
    if n.default_radio_value is not None:
        d["defaultRadioValue"] = n.default_radio_value
    return d


def node_from_dict(d: Dict[str, Any]) -> Node:
    if not isinstance(d, dict):
        raise StructuralError(f"Node must be a mapping, got {type(d).__name__}")
    return Node(
        id=str(d.get("id") or ""),
        type=node_type_from_value(d.get("type")),
        title=d.get("title") or "",
        content=d.get("content") or "",
        context=d.get("context") or "",
        placeholder=d.get("placeholder") or "",
        help=d.get("help") or "",
        x=d.get("x", 100),
        y=d.get("y", 100),
        attributes=NodeAttributes.from_dict(d.get("attributes")),
        options=[option_from_dict(o) for o in d.get("options") or []],
        default_radio_value=d.get("defaultRadioValue") or None,
    )


def connection_to_dict(c: Connection) -> Dict[str, Any]:
    return {
        "id": c.id,
        "from": c.from_node,
        "to": c.to_node,
        "fromType": c.from_type.value,
        "toType": c.to_type,
        "optionIndex": c.option_index,
    }


def connection_from_dict(d: Dict[str, Any]) -> Connection:
    if not isinstance(d, dict):
        raise StructuralError(f"Connection must be a mapping, got {type(d).__name__}")
    try:
        from_type = FromType(d.get("fromType") or FromType.OUTPUT.value)
        option_index = normalize_option_index(d.get("optionIndex"))
    except ValueError as exc:
        raise StructuralError(f"Invalid connection {d.get('id')}: {exc}") from exc
    return Connection(
        id=str(d.get("id") or ""),
        from_node=d.get("from") or "",
        to_node=d.get("to") or "",
        from_type=from_type,
        option_index=option_index,
        to_type=d.get("toType") or "input",
    )


def graph_to_dict(nodes: List[Node], connections: List[Connection]) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "nodes": [node_to_dict(n) for n in nodes],
        "connections": [connection_to_dict(c) for c in connections],
    }


def graph_from_dict(d: Dict[str, Any]) -> Tuple[List[Node], List[Connection]]:
    """
    Rebuild nodes and connections from a payload.

    Payloads without ``schema_version`` predate versioning and are read as
    version 1.

    Raises:
        StructuralError: if the container is not a mapping of lists
        UnsupportedSchemaVersionError: if the payload is newer than this reader
    """
    if not isinstance(d, dict):
        raise StructuralError(f"Graph payload must be a mapping, got {type(d).__name__}")

    version = d.get("schema_version", 1)
    if not isinstance(version, int) or version > SCHEMA_VERSION:
        raise UnsupportedSchemaVersionError(
            f"Unsupported schema version {version!r} (reader supports <= {SCHEMA_VERSION})"
        )

    raw_nodes = d.get("nodes") or []
    raw_connections = d.get("connections") or []
    if not isinstance(raw_nodes, list) or not isinstance(raw_connections, list):
        raise StructuralError("Graph payload 'nodes' and 'connections' must be lists")

    nodes = [node_from_dict(n) for n in raw_nodes]
    connections = [connection_from_dict(c) for c in raw_connections]
    return nodes, connections


def graph_to_json(nodes: List[Node], connections: List[Connection]) -> str:
    return json.dumps(graph_to_dict(nodes, connections), sort_keys=True)


def graph_from_json(s: str) -> Tuple[List[Node], List[Connection]]:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as exc:
        raise StructuralError(f"Invalid graph JSON: {exc}") from exc
    return graph_from_dict(d)


def graph_to_yaml(nodes: List[Node], connections: List[Connection]) -> str:
    return yaml.safe_dump(graph_to_dict(nodes, connections))


def graph_from_yaml(s: str) -> Tuple[List[Node], List[Connection]]:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as exc:
        raise StructuralError(f"Invalid graph YAML: {exc}") from exc
    return graph_from_dict(d)
