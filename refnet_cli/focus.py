"""Focus extraction: slice a built forest down to one node's subtree."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from .aggregator import compute_stats
from .models import FocusInfo, FocusKey, NetworkForest, NetworkNode, NetworkStats
from .normalizer import normalize_code

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^-?\d+$")


def find_focus_node(forest: NetworkForest, key: FocusKey) -> Optional[NetworkNode]:
    """Locate *key* among roots then orphans.

    Integers and digit strings are tried as identifiers first, then as
    referral codes. The first match in pre-order wins.
    """
    nodes = list(forest.walk())

    node_id: Optional[int] = None
    if isinstance(key, int) and not isinstance(key, bool):
        node_id = key
    elif isinstance(key, str) and _ID_RE.match(key.strip()):
        node_id = int(key.strip())

    if node_id is not None:
        for node in nodes:
            if node.node_id == node_id:
                return node

    code = normalize_code(key)
    if code:
        for node in nodes:
            if node.code == code:
                return node
    return None


def ancestor_path(forest: NetworkForest, target: NetworkNode) -> List[int]:
    """Identifiers from the top of *target*'s tree down to *target*."""
    parent_of: Dict[int, int] = {}
    for node in forest.walk():
        for child in node.children:
            parent_of[child.node_id] = node.node_id

    path = [target.node_id]
    seen = {target.node_id}
    current = parent_of.get(target.node_id)
    while current is not None and current not in seen:
        seen.add(current)
        path.append(current)
        current = parent_of.get(current)
    path.reverse()
    return path


def extract_focus(forest: NetworkForest, key: Optional[FocusKey]) -> NetworkForest:
    """Return a forest whose single root is the focused node's subtree.

    A key that matches nothing yields an empty forest with
    ``focus.found == False``; this is not an error. A blank key returns
    *forest* unchanged.
    """
    if key is None or (isinstance(key, str) and not key.strip()):
        return forest
    if isinstance(key, str):
        key = key.strip()

    node = find_focus_node(forest, key)
    if node is None:
        logger.info("Focus key %r matched no node", key)
        return NetworkForest(stats=NetworkStats(), focus=FocusInfo(key=key, found=False))

    return NetworkForest(
        roots=[node],
        orphans=[],
        stats=compute_stats([node]),
        focus=FocusInfo(
            key=key,
            found=True,
            node_id=node.node_id,
            code=node.code,
            name=node.display_name,
            path=ancestor_path(forest, node),
        ),
    )
