"""Forest assembly: turns resolved parent links into rooted trees.

Pipeline::

    raw records -> normalize_record -> resolve_links -> assemble -> aggregate
                -> (optional) extract_focus

Every stage is a pure function of its input; each call to
:func:`build_forest` works on its own snapshot and shares no state.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .aggregator import aggregate, compute_stats
from .config import DEFAULT_RECORD_LABEL, DEFAULT_VIRTUAL_LABEL, ORDERS
from .focus import extract_focus
from .models import BuildOptions, NetworkForest, NetworkNode, SourceRecord
from .normalizer import normalize_record
from .recruiters import EMPTY_DIRECTORY, RecruiterDirectory, is_valid_label_template
from .resolver import ResolvedLinks, resolve_links

logger = logging.getLogger(__name__)


def _record_node(record: SourceRecord, directory: RecruiterDirectory, template: str) -> NetworkNode:
    code = record.own_code
    url = None
    name = record.display_name
    if code:
        label, url = directory.label_for(code, template)
        name = name or label
    if not name:
        name = DEFAULT_RECORD_LABEL.format(id=record.record_id)

    referrer_name = record.referrer_name
    if not referrer_name and record.referrer_code:
        referrer = directory.get(record.referrer_code)
        referrer_name = referrer.name if referrer else None

    return NetworkNode(
        node_id=record.record_id,
        kind="virtual" if record.is_virtual else record.kind,
        display_name=name,
        code=code,
        phone=record.phone,
        city=record.city,
        is_virtual=record.is_virtual,
        referrer_code=record.referrer_code,
        referrer_name=referrer_name,
        recruiter_url=url,
        level=record.level,
    )


def _virtual_node(node_id: int, code: str, directory: RecruiterDirectory, template: str) -> NetworkNode:
    name, url = directory.label_for(code, template)
    return NetworkNode(
        node_id=node_id,
        kind="virtual",
        display_name=name,
        code=code,
        is_virtual=True,
        recruiter_url=url,
    )


def make_nodes(links: ResolvedLinks, directory: RecruiterDirectory, template: str) -> Dict[int, NetworkNode]:
    nodes = {rid: _record_node(rec, directory, template) for rid, rec in links.records.items()}
    for vid, code in links.virtual_codes.items():
        nodes[vid] = _virtual_node(vid, code, directory, template)
    return nodes


def _attach(
    top_id: int,
    nodes: Dict[int, NetworkNode],
    children_of: Dict[int, List[int]],
    visited: Set[int],
) -> NetworkNode:
    """Build the subtree under *top_id* top-down with an explicit stack."""
    top = nodes[top_id]
    top.parent_id = None
    top.depth = 0
    visited.add(top_id)
    stack = [top]
    while stack:
        node = stack.pop()
        if node.level is None:
            node.level = node.depth
        node.children = []
        for child_id in children_of.get(node.node_id, ()):
            if child_id in visited:
                continue
            visited.add(child_id)
            child = nodes[child_id]
            child.parent_id = node.node_id
            child.depth = node.depth + 1
            node.children.append(child)
        node.direct_lead_count = sum(1 for c in node.children if c.kind == "lead")
        node.direct_recruiter_count = sum(1 for c in node.children if c.kind == "recruiter")
        stack.extend(node.children)
    return top


def _cycle_entry(start: int, parent_of: Dict[int, Optional[int]], visited: Set[int]) -> int:
    """Follow parent links from *start* until one revisits the current path."""
    on_path: Set[int] = set()
    current = start
    while True:
        on_path.add(current)
        parent = parent_of.get(current)
        if parent is None or parent in visited:
            return current
        if parent in on_path:
            return parent
        current = parent


def assemble(links: ResolvedLinks, nodes: Dict[int, NetworkNode]) -> Tuple[List[NetworkNode], List[NetworkNode]]:
    """Assemble roots and orphans from the resolved parent links.

    Roots are nodes without a parent. Anything left unreached afterwards sits
    on or below a referral cycle: the node where the walk up re-enters the
    cycle loses its parent edge and becomes an orphan root.
    """
    parent_of = dict(links.parent_of)
    children_of: Dict[int, List[int]] = defaultdict(list)
    ordered_ids = sorted(nodes)
    for node_id in ordered_ids:
        parent = parent_of.get(node_id)
        if parent is not None:
            children_of[parent].append(node_id)

    visited: Set[int] = set()
    roots = [_attach(nid, nodes, children_of, visited) for nid in ordered_ids if parent_of.get(nid) is None]

    orphans: List[NetworkNode] = []
    for node_id in ordered_ids:
        if node_id in visited:
            continue
        entry = _cycle_entry(node_id, parent_of, visited)
        old_parent = parent_of.get(entry)
        if old_parent is not None:
            children_of[old_parent].remove(entry)
        parent_of[entry] = None
        logger.warning("Referral cycle broken at node %d (was under %s)", entry, old_parent)
        orphans.append(_attach(entry, nodes, children_of, visited))

    return roots, orphans


def _ranking_key(node: NetworkNode) -> tuple:
    return (
        -(node.direct_lead_count + node.direct_recruiter_count),
        -node.total_descendants,
        0 if node.kind != "lead" else 1,
        node.display_name.casefold(),
        node.node_id,
    )


def apply_ranking(roots: List[NetworkNode], orphans: List[NetworkNode]) -> None:
    """Reorder siblings by direct invites, then subtree size, then name.

    Sorts in place at every level, including the ``roots`` and ``orphans``
    lists themselves, replacing the default ascending-identifier order.
    """
    roots.sort(key=_ranking_key)
    orphans.sort(key=_ranking_key)
    for top in [*roots, *orphans]:
        for node in top.walk():
            node.children.sort(key=_ranking_key)


def _coerce_options(options: Union[BuildOptions, Mapping[str, Any], None]) -> BuildOptions:
    if options is None:
        return BuildOptions()
    if isinstance(options, BuildOptions):
        return options
    return BuildOptions(**dict(options))


def build_forest(
    records: Iterable[Union[SourceRecord, Mapping[str, Any]]],
    options: Union[BuildOptions, Mapping[str, Any], None] = None,
    directory: Optional[RecruiterDirectory] = None,
) -> NetworkForest:
    """Build the referral forest from a snapshot of records.

    Args:
        records: Raw record mappings or already normalized records.
        options: A :class:`BuildOptions` or a mapping of its fields,
            e.g. ``{"focus": 42}``.
        directory: Optional recruiter lookup for display names and URLs.

    Returns:
        The full forest, or the focused slice when ``options.focus`` is set.
    """
    opts = _coerce_options(options)
    if opts.order not in ORDERS:
        raise ValueError(f"Unknown order '{opts.order}'. Expected one of: {', '.join(ORDERS)}")
    directory = directory or EMPTY_DIRECTORY
    template = opts.virtual_label
    if not is_valid_label_template(template):
        logger.warning("Invalid virtual label %r, using %r", template, DEFAULT_VIRTUAL_LABEL)
        template = DEFAULT_VIRTUAL_LABEL

    normalized = [rec for rec in (normalize_record(raw) for raw in records) if rec is not None]
    links = resolve_links(normalized, directory, include_directory=opts.include_directory)
    nodes = make_nodes(links, directory, template)
    roots, orphans = assemble(links, nodes)

    aggregate([*roots, *orphans])
    if opts.order == "ranking":
        apply_ranking(roots, orphans)

    forest = NetworkForest(
        roots=roots,
        orphans=orphans,
        stats=compute_stats(roots, orphans, links.duplicate_codes),
    )
    logger.debug(
        "Built forest: %d roots, %d orphans, %d nodes",
        len(roots), len(orphans), forest.stats.total_nodes,
    )

    if opts.focus is not None:
        return extract_focus(forest, opts.focus)
    return forest
