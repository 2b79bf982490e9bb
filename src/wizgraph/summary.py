"""
Final confirmation summary.

Builds the read-only list of answered fields shown on the review-and-submit
step. Hidden and start nodes are excluded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List

from wizgraph.answers import AnswerStore
from wizgraph.model import FileValue, Node, NodeType

MAX_DISPLAY_LENGTH = 50
PASSWORD_MASK = "••••••••"


@dataclass(frozen=True)
class SummaryItem:
    node_id: str
    label: str
    value: Any
    display: str


def format_value_for_display(value: Any, node: Node) -> str:
    if not value:
        return "Empty"

    if node.type == NodeType.CHECKBOX:
        if isinstance(value, list) and value:
            return ", ".join(value)
        return "No option selected"

    if node.type == NodeType.FILE:
        if isinstance(value, FileValue) and value.file_name:
            return f"{value.file_name} ({value.mime_type})"
        return "No file"

    if node.type in (NodeType.SELECT, NodeType.RADIO):
        option = node.get_option(value)
        return option.description if option and option.description else str(value)

    if node.type == NodeType.PASSWORD:
        return PASSWORD_MASK

    text = str(value)
    if len(text) > MAX_DISPLAY_LENGTH:
        return text[:MAX_DISPLAY_LENGTH] + "..."
    return text


def build_summary(nodes: Iterable[Node], answers: AnswerStore) -> List[SummaryItem]:
    """Summary items in answer insertion order."""
    by_id = {node.id: node for node in nodes}
    items: List[SummaryItem] = []
    for node_id, value in answers.items():
        node = by_id.get(node_id)
        if node is None or node.is_start or node.type == NodeType.HIDDEN:
            continue
        items.append(SummaryItem(
            node_id=node_id,
            label=node.label,
            value=value,
            display=format_value_for_display(value, node),
        ))
    return items
