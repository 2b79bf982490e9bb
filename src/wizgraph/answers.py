"""
Answer Store — run-time mapping from node id to the collected value.

Value shape follows the node type:
    - str for text-like, select, radio and hidden nodes
    - list of str for checkbox nodes
    - FileValue (or None) for file nodes
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from wizgraph.model import FileValue, Node, NodeType, TEXT_LIKE_TYPES

logger = logging.getLogger(__name__)

AnswerValue = Union[str, List[str], FileValue, None]


def _as_value_list(raw: Any) -> List[str]:
    """Attribute-provided checkbox defaults: a list or a comma-separated string."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    return [part.strip() for part in str(raw).split(",") if part.strip()]


def hidden_value(node: Node) -> str:
    """Value carried by a hidden node: ``value`` attribute, else content."""
    value = node.attributes.value
    if value is None or value == "":
        return node.content or ""
    return str(value)


def default_value_for(node: Node) -> AnswerValue:
    """
    Initial answer for a node on its first forward visit.

    Policy:
        checkbox: values of options flagged checked/selected or listed in
                  the ``value`` attribute, else []
        radio:    ``default_radio_value``, else ``value`` attribute
        select:   first option flagged selected/checked, else ``value`` attribute
        text-like: ``value`` attribute
        hidden:   ``value`` attribute, else content
        file:     None
        others:   ""
    """
    attribute_value = node.attributes.value

    if node.type == NodeType.CHECKBOX:
        listed = set(_as_value_list(attribute_value))
        return [option.value for option in node.options if option.is_default or option.value in listed]

    if node.type == NodeType.FILE:
        return None

    if node.type == NodeType.HIDDEN:
        return hidden_value(node)

    if node.type == NodeType.RADIO:
        if node.default_radio_value:
            return node.default_radio_value
    elif node.type == NodeType.SELECT:
        for option in node.options:
            if option.is_default:
                return option.value
    elif node.type not in TEXT_LIKE_TYPES:
        return ""

    if attribute_value is None or isinstance(attribute_value, (list, tuple)):
        return ""
    return str(attribute_value)


class AnswerStore:
    """Single mapping of node id to answer, with default seeding and export."""

    def __init__(self, values: Optional[Mapping[str, AnswerValue]] = None):
        self._values: Dict[str, AnswerValue] = dict(values or {})

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def set(self, node_id: str, value: AnswerValue) -> None:
        self._values[node_id] = value
        logger.debug("Answer set: %s = %r", node_id, value)

    def get(self, node_id: str, default: AnswerValue = None) -> AnswerValue:
        return self._values.get(node_id, default)

    def has(self, node_id: str) -> bool:
        return node_id in self._values

    def delete(self, node_id: str) -> bool:
        if node_id not in self._values:
            return False
        del self._values[node_id]
        return True

    def clear(self) -> None:
        count = len(self._values)
        self._values.clear()
        logger.info("Cleared %d answers", count)

    def items(self) -> List[Tuple[str, AnswerValue]]:
        return list(self._values.items())

    def snapshot(self) -> Dict[str, AnswerValue]:
        """Independent copy of every answer."""
        return copy.deepcopy(self._values)

    def seed_default(self, node: Node) -> bool:
        """
        Store the default answer of ``node`` unless one already exists.

        Start nodes are never seeded.

        Returns:
            True if a value was written
        """
        if node.is_start or node.id in self._values:
            return False
        value = default_value_for(node)
        self._values[node.id] = value
        logger.debug("Default answer seeded for %s (%s): %r", node.id, node.type, value)
        return True

    def export(self, nodes: Iterable[Node]) -> Dict[str, Any]:
        """
        Flatten answers into submitted field names.

        Rules:
            - field name is the ``name`` attribute or ``field_<id>``
            - list answers are exported as ``<name>[]``
            - file answers export ``<name>`` (base64), ``<name>_file`` and
              ``<name>_mime``; a file node without a file exports nothing
            - answers of unknown or start nodes are skipped
        """
        by_id = {node.id: node for node in nodes}
        data: Dict[str, Any] = {}

        for node_id, value in self._values.items():
            node = by_id.get(node_id)
            if node is None or node.is_start:
                continue

            name = node.field_name
            if isinstance(value, list):
                data[f"{name}[]"] = list(value)
            elif isinstance(value, FileValue):
                data[name] = value.base64
                data[f"{name}_file"] = value.file_name
                data[f"{name}_mime"] = value.mime_type
            elif value is None:
                continue
            else:
                data[name] = value

        logger.info("Answers exported: %d fields", len(data))
        return data


def apply_default_form_data(nodes: Iterable[Node], defaults: Mapping[str, Any]) -> int:
    """
    Write externally supplied defaults onto matching nodes.

    Each key of ``defaults`` is matched against a node's ``id`` or ``name``
    attribute and the value is stored as that node's ``value`` attribute,
    so it is picked up by default seeding.

    Returns:
        Number of nodes updated
    """
    updated = 0
    nodes = list(nodes)
    for key, value in defaults.items():
        for node in nodes:
            if node.attributes.get("id") == key or node.attributes.name == key:
                node.attributes.set("value", value)
                updated += 1
    logger.info("Applied %d default form values", updated)
    return updated
