"""Post-order aggregation of descendant counts and forest statistics."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .models import NetworkNode, NetworkStats


def aggregate(tops: Iterable[NetworkNode]) -> None:
    """Fill ``total_descendants`` and the lead/recruiter split in place.

    Uses an explicit stack so arbitrarily deep chains are safe. Must run
    after the tree shape is final.
    """
    stack: List[Tuple[NetworkNode, bool]] = [(top, False) for top in reversed(list(tops))]
    while stack:
        node, expanded = stack.pop()
        if not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue

        total = leads = recruiters = 0
        for child in node.children:
            total += 1 + child.total_descendants
            leads += (child.kind == "lead") + child.lead_descendants
            recruiters += (child.kind == "recruiter") + child.recruiter_descendants
        node.total_descendants = total
        node.lead_descendants = leads
        node.recruiter_descendants = recruiters


def compute_stats(
    roots: Sequence[NetworkNode],
    orphans: Sequence[NetworkNode] = (),
    duplicate_codes: int = 0,
) -> NetworkStats:
    """Summarize a forest. ``max_depth`` is measured from each top node."""
    stats = NetworkStats(orphan_count=len(orphans), duplicate_codes=duplicate_codes)
    for top in [*roots, *orphans]:
        for node in top.walk():
            stats.total_nodes += 1
            if node.is_virtual:
                stats.virtual_count += 1
            elif node.kind == "lead":
                stats.lead_count += 1
            else:
                stats.recruiter_count += 1
            stats.max_depth = max(stats.max_depth, node.depth - top.depth)
    return stats
