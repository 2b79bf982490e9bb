"""
File capture for ``file`` nodes.

Reading a file is the one blocking step of a run, so capture is an
awaitable: the engine marks the node as pending, the read happens in a
worker thread, and advance() on that node is refused until the capture
settles. A failed read is logged and resolves to "no value"; the stored
answer is left as it was.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from wizgraph.errors import NavigationError, NodeNotFoundError
from wizgraph.model import FileValue, NodeType

if TYPE_CHECKING:
    from wizgraph.engine import TraversalEngine

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def encode_data_url(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def file_value_from_bytes(data: bytes, file_name: str, mime_type: Optional[str] = None) -> FileValue:
    mime_type = mime_type or mimetypes.guess_type(file_name)[0] or DEFAULT_MIME_TYPE
    return FileValue(base64=encode_data_url(data, mime_type), file_name=file_name, mime_type=mime_type)


def read_file_value(path: Union[str, Path], mime_type: Optional[str] = None) -> FileValue:
    path = Path(path)
    return file_value_from_bytes(path.read_bytes(), path.name, mime_type)


async def capture_file(
    engine: "TraversalEngine",
    node_id: str,
    path: Union[str, Path],
    mime_type: Optional[str] = None,
) -> Optional[FileValue]:
    """
    Read ``path`` into the answer of file node ``node_id``.

    Returns:
        The captured FileValue, or None if the read failed

    Raises:
        NodeNotFoundError: if the node does not exist
        NavigationError: if the node is not a file node
    """
    node = engine.nodes.get_node(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    if node.type != NodeType.FILE:
        raise NavigationError(f"Node {node_id} is not a file node")

    engine.begin_file_capture(node_id)
    value: Optional[FileValue] = None
    try:
        value = await asyncio.to_thread(read_file_value, path, mime_type)
        logger.info("Captured file %s for node %s (%s)", value.file_name, node_id, value.mime_type)
    except OSError as exc:
        logger.error("Failed to read file %s for node %s: %s", path, node_id, exc)
    finally:
        engine.complete_file_capture(node_id, value)
    return value
