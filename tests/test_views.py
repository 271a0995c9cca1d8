"""Tests for the directory and canvas adapters."""

from refnet_cli.builder import build_forest
from refnet_cli.models import NetworkForest, NetworkNode
from refnet_cli.views import canvas_edges, directory_entries


class TestDirectory:
    def test_one_entry_per_recruiter_code(self, sample_records):
        entries = directory_entries(build_forest(sample_records))

        assert [entry.code for entry in entries] == ["01", "02", "07", "ZZZ"]
        rodrigo = entries[0]
        assert rodrigo.name == "Rodrigo"
        assert rodrigo.direct_recruiters == 2
        assert rodrigo.total_descendants == 4
        assert entries[-1].is_virtual

    def test_real_entry_preferred_over_virtual(self):
        virtual = NetworkNode(node_id=-1, kind="virtual", display_name="Code 05", code="05", is_virtual=True)
        real = NetworkNode(node_id=9, kind="recruiter", display_name="Agatha", code="05")
        forest = NetworkForest(roots=[virtual], orphans=[real])

        entries = directory_entries(forest)
        assert len(entries) == 1
        assert entries[0].node_id == 9
        assert not entries[0].is_virtual

    def test_first_real_entry_kept(self):
        first = NetworkNode(node_id=1, kind="recruiter", display_name="First", code="05")
        second = NetworkNode(node_id=2, kind="recruiter", display_name="Second", code="05")
        entries = directory_entries(NetworkForest(roots=[first, second]))
        assert [entry.name for entry in entries] == ["First"]

    def test_numeric_codes_sort_numerically(self):
        nodes = [
            NetworkNode(node_id=i, kind="recruiter", display_name=code, code=code)
            for i, code in enumerate(["10", "AB", "02", "100"], start=1)
        ]
        entries = directory_entries(NetworkForest(roots=nodes))
        assert [entry.code for entry in entries] == ["02", "10", "100", "AB"]


    def test_long_and_non_ascii_codes_sort_without_failing(self):
        codes = ["9" * 5000, "²", "10", "002"]
        nodes = [
            NetworkNode(node_id=i, kind="recruiter", display_name="x", code=code)
            for i, code in enumerate(codes, start=1)
        ]
        entries = directory_entries(NetworkForest(roots=nodes))
        assert [entry.code for entry in entries] == ["002", "10", "9" * 5000, "²"]


class TestCanvas:
    def test_nodes_and_edges(self, sample_records):
        forest = build_forest(sample_records)
        graph = canvas_edges(forest)

        assert len(graph["nodes"]) == forest.stats.total_nodes
        assert len(graph["edges"]) == forest.stats.total_nodes - len(forest.roots)
        assert {"src": 2, "dst": 3} in graph["edges"]

    def test_orphan_flag(self):
        records = [
            {"id": 1, "codigoProprio": "A", "recrutadorCodigo": "B"},
            {"id": 2, "codigoProprio": "B", "recrutadorCodigo": "A"},
        ]
        graph = canvas_edges(build_forest(records))
        flags = {node["id"]: node["is_orphan"] for node in graph["nodes"]}
        assert flags == {1: True, 2: False}

    def test_nodes_carry_level(self):
        records = [{"id": 1, "codigoProprio": "A", "nivel": 4}, {"id": 2, "recrutadorCodigo": "A"}]
        levels = {node["id"]: node["level"] for node in canvas_edges(build_forest(records))["nodes"]}
        assert levels == {1: 4, 2: 1}
