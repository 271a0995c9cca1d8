"""Shared helpers for building and inspecting test forests."""

from typing import Dict, List

from refnet_cli.models import NetworkForest, NetworkNode


def chain_records(length: int) -> List[Dict]:
    """A single referral chain of recruiters R0 <- R1 <- ... <- R(length-1)."""
    records = [{"id": 1, "tipo": "recrutador", "codigoProprio": "R0"}]
    for i in range(1, length):
        records.append({
            "id": i + 1,
            "tipo": "recrutador",
            "codigoProprio": f"R{i}",
            "recrutadorCodigo": f"R{i - 1}",
        })
    return records


def all_ids(forest: NetworkForest) -> List[int]:
    return [node.node_id for node in forest.walk()]


def subtree_size(node: NetworkNode) -> int:
    return sum(1 for _ in node.walk())
