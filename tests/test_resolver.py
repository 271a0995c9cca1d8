"""Tests for code indexing and parent resolution."""

from refnet_cli.models import SourceRecord
from refnet_cli.recruiters import RecruiterDirectory
from refnet_cli.resolver import build_code_index, resolve_links


def recruiter(record_id, code, referrer=None, **kwargs):
    return SourceRecord(record_id=record_id, kind="recruiter", own_code=code, referrer_code=referrer, **kwargs)


def lead(record_id, referrer=None, **kwargs):
    return SourceRecord(record_id=record_id, kind="lead", referrer_code=referrer, **kwargs)


class TestCodeIndex:
    def test_indexes_own_codes(self):
        links = build_code_index([recruiter(1, "A1"), recruiter(2, "B2"), lead(3)])
        assert links.code_index == {"A1": 1, "B2": 2}

    def test_real_record_replaces_virtual_placeholder(self):
        placeholder = recruiter(-100, "X7", is_virtual=True)
        real = recruiter(10, "X7", display_name="Xavier")
        links = build_code_index([placeholder, real])

        assert links.code_index["X7"] == 10
        assert links.merged == {-100: 10}
        assert -100 not in links.records
        assert links.duplicate_codes == 0

    def test_virtual_never_replaces_real(self):
        real = recruiter(10, "X7", display_name="Xavier")
        placeholder = recruiter(-100, "X7", is_virtual=True, display_name="Code X7", phone="1", city="c")
        links = build_code_index([real, placeholder])

        assert links.code_index["X7"] == 10
        assert links.merged == {-100: 10}

    def test_more_complete_record_wins(self):
        sparse = recruiter(1, "A1", display_name="Ana")
        full = recruiter(2, "A1", display_name="Ana Maria", phone="8799", city="Recife")
        links = build_code_index([sparse, full])

        assert links.code_index["A1"] == 2
        assert links.duplicate_codes == 1
        # real losers stay as plain records
        assert 1 in links.records

    def test_tie_keeps_first_holder(self):
        links = build_code_index([recruiter(1, "A1", display_name="A"), recruiter(2, "A1", display_name="B")])
        assert links.code_index["A1"] == 1


class TestResolveLinks:
    def test_blank_known_and_unknown_codes(self):
        links = resolve_links([recruiter(1, "A1"), lead(2, "A1"), lead(3), lead(4, "ZZZ")])

        assert links.parent_of[1] is None
        assert links.parent_of[2] == 1
        assert links.parent_of[3] is None
        virtual_id = links.parent_of[4]
        assert virtual_id < 0
        assert links.virtual_codes == {virtual_id: "ZZZ"}
        assert links.parent_of[virtual_id] is None

    def test_one_placeholder_per_unknown_code(self):
        records = [lead(i, "ZZZ") for i in range(1, 51)]
        links = resolve_links(records)

        assert list(links.virtual_codes.values()) == ["ZZZ"]
        parents = {links.parent_of[i] for i in range(1, 51)}
        assert parents == set(links.virtual_codes)

    def test_self_reference_has_no_parent(self):
        links = resolve_links([recruiter(1, "A1", referrer="A1")])
        assert links.parent_of[1] is None
        assert links.virtual_codes == {}

    def test_duplicate_code_loser_follows_winner(self):
        winner = recruiter(1, "X7", display_name="Ana", phone="8799", city="Recife")
        loser = recruiter(2, "X7", referrer="X7", display_name="Bia")
        links = resolve_links([winner, loser])

        assert links.code_index["X7"] == 1
        assert links.parent_of[2] == 1
        assert links.parent_of[1] is None

    def test_self_reference_by_parent_id_falls_back_to_code(self):
        links = resolve_links([recruiter(1, "A1"), recruiter(2, "B2", referrer="A1", parent_id=2)])
        assert links.parent_of[2] == 1

    def test_virtual_ids_never_collide_with_record_ids(self):
        links = resolve_links([lead(-5, "Q1"), lead(3, "Q2")])
        assert set(links.virtual_codes) == {-6, -7}

    def test_explicit_parent_id_wins(self):
        links = resolve_links([recruiter(1, "A1"), recruiter(2, "B2"), lead(3, "A1", parent_id=2)])
        assert links.parent_of[3] == 2

    def test_unknown_parent_id_falls_back_to_code(self):
        links = resolve_links([recruiter(1, "A1"), lead(3, "A1", parent_id=999)])
        assert links.parent_of[3] == 1

    def test_parent_id_of_merged_placeholder_follows_winner(self):
        records = [
            recruiter(-100, "X7", is_virtual=True),
            recruiter(10, "X7", display_name="Xavier"),
            lead(11, parent_id=-100),
        ]
        links = resolve_links(records)
        assert links.parent_of[11] == 10

    def test_duplicate_record_ids_keep_first(self):
        links = resolve_links([lead(1, display_name="first"), lead(1, display_name="second")])
        assert links.records[1].display_name == "first"

    def test_directory_name_assigns_code(self):
        directory = RecruiterDirectory.from_mapping({"01": "Rodrigo"})
        records = [
            SourceRecord(record_id=1, kind="recruiter", display_name="rodrigo"),
            lead(2, "01"),
        ]
        links = resolve_links(records, directory)
        assert links.code_index["01"] == 1

    def test_include_directory_adds_missing_recruiters(self):
        directory = RecruiterDirectory.from_mapping({"01": "Rodrigo", "05": "Agatha"})
        links = resolve_links([recruiter(1, "01")], directory, include_directory=True)

        assert list(links.virtual_codes.values()) == ["05"]
        assert links.code_index["05"] < 0
