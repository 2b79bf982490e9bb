"""
Remote option lists for select nodes.

A select node whose attributes carry ``data-xtz-url`` gets its options from
that URL. The response is a JSON list of ``{value, description}`` objects,
or a JSON object whose values are such objects.

Loading runs independently of traversal: a node may be rendered while its
options are still pending. Failures are logged and leave the node's
options untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, List, Optional

import requests

from wizgraph.errors import NodeNotFoundError
from wizgraph.model import NodeOption

if TYPE_CHECKING:
    from wizgraph.engine import TraversalEngine

logger = logging.getLogger(__name__)

# Query timeout (seconds)
REQUEST_TIMEOUT = 10


def parse_options(payload: Any) -> List[NodeOption]:
    if isinstance(payload, dict):
        items = list(payload.values())
    elif isinstance(payload, list):
        items = payload
    else:
        raise ValueError(f"Unexpected options payload: {type(payload).__name__}")

    options: List[NodeOption] = []
    for item in items:
        if not isinstance(item, dict) or "value" not in item:
            logger.warning("Skipping malformed option: %r", item)
            continue
        options.append(NodeOption(
            value=str(item["value"]),
            description=str(item.get("description", item["value"])),
        ))
    return options


class OptionsLoader:
    """Fetches option lists over HTTP."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str) -> List[NodeOption]:
        """
        Raises:
            requests.RequestException: on transport or HTTP status errors
            ValueError: if the body is not a usable JSON option list
        """
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        options = parse_options(response.json())
        logger.debug("Fetched %d options from %s", len(options), url)
        return options

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "OptionsLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


async def load_remote_options(
    engine: "TraversalEngine",
    node_id: str,
    loader: Optional[OptionsLoader] = None,
) -> bool:
    """
    Populate ``node_id``'s options from its ``data-xtz-url``.

    Returns:
        True if options were loaded, False if the node has no URL or the
        request failed
    """
    node = engine.nodes.get_node(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)

    url = node.attributes.remote_url
    if not url:
        return False

    owned = loader is None
    loader = loader or OptionsLoader()
    try:
        options = await asyncio.to_thread(loader.fetch, url)
    except (requests.RequestException, ValueError) as exc:
        logger.error("Failed to load options for node %s from %s: %s", node_id, url, exc)
        return False
    finally:
        if owned:
            loader.close()

    engine.populate_options(node_id, options)
    return True
