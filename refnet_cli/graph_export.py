"""Forest serialization (structural JSON), canvas JSON and Graphviz DOT export."""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .models import FocusInfo, NetworkForest, NetworkNode, NetworkStats
from .views import canvas_edges

_NODE_FIELDS = [f.name for f in fields(NetworkNode) if f.name != "children"]


def _nodes_to_dicts(tops: List[NetworkNode]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    stack: List[Tuple[NetworkNode, List[Dict[str, Any]]]] = [(top, out) for top in reversed(tops)]
    while stack:
        node, target = stack.pop()
        item = {name: getattr(node, name) for name in _NODE_FIELDS}
        item["children"] = []
        target.append(item)
        stack.extend((child, item["children"]) for child in reversed(node.children))
    return out


def _nodes_from_dicts(items: List[Dict[str, Any]]) -> List[NetworkNode]:
    out: List[NetworkNode] = []
    stack: List[Tuple[Dict[str, Any], List[NetworkNode]]] = [(item, out) for item in reversed(items)]
    while stack:
        item, target = stack.pop()
        node = NetworkNode(**{name: item[name] for name in _NODE_FIELDS if name in item})
        target.append(node)
        stack.extend((child, node.children) for child in reversed(item.get("children", [])))
    return out


def forest_to_dict(forest: NetworkForest) -> Dict[str, Any]:
    return {
        "roots": _nodes_to_dicts(forest.roots),
        "orphans": _nodes_to_dicts(forest.orphans),
        "stats": asdict(forest.stats),
        "focus": asdict(forest.focus) if forest.focus is not None else None,
    }


def forest_from_dict(payload: Dict[str, Any]) -> NetworkForest:
    focus = payload.get("focus")
    return NetworkForest(
        roots=_nodes_from_dicts(payload.get("roots", [])),
        orphans=_nodes_from_dicts(payload.get("orphans", [])),
        stats=NetworkStats(**payload.get("stats", {})),
        focus=FocusInfo(**focus) if focus else None,
    )


def export_json(forest: NetworkForest, output_file: Path) -> None:
    output_file.write_text(
        json.dumps(forest_to_dict(forest), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def export_canvas(forest: NetworkForest, output_file: Path) -> None:
    output_file.write_text(
        json.dumps(canvas_edges(forest), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def export_dot(forest: NetworkForest, output_file: Path) -> None:
    lines = ["digraph ReferralNetwork {"]
    lines.append("  rankdir=TB;")

    orphan_ids = {orphan.node_id for orphan in forest.orphans}
    edges = []
    for node in forest.walk():
        label = node.display_name
        if node.code:
            label = f"{label}\\n{node.code}"
        label = f"{label}\\n+{node.total_descendants}"
        attrs = [f'label="{_esc(label)}"']
        if node.is_virtual:
            attrs.append("style=dashed")
        if node.node_id in orphan_ids:
            attrs.append("color=red")
        if node.kind == "lead":
            attrs.append("shape=ellipse")
        else:
            attrs.append("shape=box")
        lines.append(f'  "{node.node_id}" [{", ".join(attrs)}];')
        edges.extend((node.node_id, child.node_id) for child in node.children)

    for src, dst in edges:
        lines.append(f'  "{src}" -> "{dst}";')

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
