"""Adapters that flatten a forest for the directory and canvas surfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .models import NetworkForest


@dataclass
class DirectoryEntry:
    code: str
    name: str
    node_id: int
    is_virtual: bool
    url: Optional[str]
    direct_leads: int
    direct_recruiters: int
    total_descendants: int


def _code_sort_key(code: str) -> tuple:
    if code.isascii() and code.isdigit():
        digits = code.lstrip("0")
        return (0, len(digits), digits, code)
    return (1, 0, code, code)


def directory_entries(forest: NetworkForest) -> List[DirectoryEntry]:
    """One entry per referral code, preferring real recruiters over virtual
    placeholders. Ordered by code, numeric codes first.
    """
    by_code: Dict[str, DirectoryEntry] = {}
    for node in forest.walk():
        if not node.code or node.kind == "lead":
            continue
        current = by_code.get(node.code)
        if current is not None and (node.is_virtual or not current.is_virtual):
            continue
        by_code[node.code] = DirectoryEntry(
            code=node.code,
            name=node.display_name,
            node_id=node.node_id,
            is_virtual=node.is_virtual,
            url=node.recruiter_url,
            direct_leads=node.direct_lead_count,
            direct_recruiters=node.direct_recruiter_count,
            total_descendants=node.total_descendants,
        )
    return [by_code[code] for code in sorted(by_code, key=_code_sort_key)]


def canvas_edges(forest: NetworkForest) -> Dict[str, List[Dict[str, Any]]]:
    """Node and edge lists for a force-directed canvas."""
    nodes = []
    edges = []
    orphan_ids = {orphan.node_id for orphan in forest.orphans}
    for node in forest.walk():
        nodes.append({
            "id": node.node_id,
            "label": node.display_name,
            "kind": node.kind,
            "code": node.code,
            "is_virtual": node.is_virtual,
            "is_orphan": node.node_id in orphan_ids,
            "level": node.level,
            "direct_leads": node.direct_lead_count,
            "direct_recruiters": node.direct_recruiter_count,
            "total_descendants": node.total_descendants,
        })
        edges.extend({"src": node.node_id, "dst": child.node_id} for child in node.children)
    return {"nodes": nodes, "edges": edges}
