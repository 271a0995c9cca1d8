"""Link resolution: referral-code index and parent pointer per record."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import SourceRecord
from .recruiters import EMPTY_DIRECTORY, RecruiterDirectory

logger = logging.getLogger(__name__)


@dataclass
class ResolvedLinks:
    """Output of :func:`resolve_links`.

    ``parent_of`` covers every record and every virtual placeholder; a value
    of ``None`` marks a candidate root. Virtual placeholders have negative
    identifiers below every record identifier.
    """
    records: Dict[int, SourceRecord] = field(default_factory=dict)
    virtual_codes: Dict[int, str] = field(default_factory=dict)
    parent_of: Dict[int, Optional[int]] = field(default_factory=dict)
    code_index: Dict[str, int] = field(default_factory=dict)
    merged: Dict[int, int] = field(default_factory=dict)
    duplicate_codes: int = 0


def _prefers(candidate: SourceRecord, current: SourceRecord) -> bool:
    """Whether *candidate* should take over *current*'s referral code."""
    if current.is_virtual != candidate.is_virtual:
        return current.is_virtual
    return candidate.completeness > current.completeness


def _adopt_directory_codes(records: List[SourceRecord], directory: RecruiterDirectory) -> List[SourceRecord]:
    adopted = []
    for record in records:
        if record.kind == "recruiter" and not record.own_code:
            match = directory.by_name(record.display_name)
            if match:
                logger.debug("Record %d adopts code %s by name", record.record_id, match.code)
                record = dataclasses.replace(record, own_code=match.code)
        adopted.append(record)
    return adopted


def _dedupe_ids(records: Iterable[SourceRecord]) -> List[SourceRecord]:
    seen = set()
    unique = []
    for record in records:
        if record.record_id in seen:
            logger.warning("Duplicate record identifier %d ignored", record.record_id)
            continue
        seen.add(record.record_id)
        unique.append(record)
    return unique


def build_code_index(records: Iterable[SourceRecord]) -> ResolvedLinks:
    """Map each referral code to the record that owns it.

    When two records declare the same code, a virtual or less complete
    holder is replaced by a real or more complete one, never the reverse.
    Virtual losers are merged into the winner; real losers stay as plain
    nodes and are counted as duplicates.
    """
    links = ResolvedLinks()
    holders: Dict[str, SourceRecord] = {}

    for record in records:
        links.records[record.record_id] = record
        code = record.own_code
        if not code:
            continue
        current = holders.get(code)
        if current is None:
            holders[code] = record
            continue

        winner, loser = (record, current) if _prefers(record, current) else (current, record)
        holders[code] = winner
        if loser.is_virtual:
            links.merged[loser.record_id] = winner.record_id
            del links.records[loser.record_id]
            logger.debug("Placeholder %d for code %s merged into %d", loser.record_id, code, winner.record_id)
        else:
            links.duplicate_codes += 1
            logger.warning(
                "Code %s declared by records %d and %d; keeping %d",
                code, current.record_id, record.record_id, winner.record_id,
            )

    links.code_index = {code: holder.record_id for code, holder in holders.items()}
    return links


def resolve_links(
    records: Iterable[SourceRecord],
    directory: Optional[RecruiterDirectory] = None,
    include_directory: bool = False,
) -> ResolvedLinks:
    """Resolve the referrer of every record.

    Resolution order per record: an explicit parent identifier naming another
    record, then the referrer code. A blank code gives no parent, a known code
    gives its owner, and an unknown code gives a virtual placeholder shared by
    every record that references it. Self references give no parent.
    """
    directory = directory or EMPTY_DIRECTORY
    records = _adopt_directory_codes(_dedupe_ids(records), directory)
    links = build_code_index(records)

    lowest = min([*links.records, *links.merged], default=0)
    next_virtual_id = min(lowest, 0) - 1
    virtual_by_code: Dict[str, int] = {}

    def placeholder(code: str) -> int:
        nonlocal next_virtual_id
        if code not in virtual_by_code:
            virtual_by_code[code] = next_virtual_id
            links.virtual_codes[next_virtual_id] = code
            links.parent_of[next_virtual_id] = None
            next_virtual_id -= 1
        return virtual_by_code[code]

    for record_id in sorted(links.records):
        record = links.records[record_id]
        parent: Optional[int] = None

        explicit = record.parent_id
        while explicit in links.merged:
            explicit = links.merged[explicit]
        code = record.referrer_code
        if explicit is not None and explicit != record_id and explicit in links.records:
            parent = explicit
        elif not code:
            parent = None
        elif code in links.code_index:
            owner = links.code_index[code]
            parent = owner if owner != record_id else None
        else:
            parent = placeholder(code)

        links.parent_of[record_id] = parent

    if include_directory:
        for recruiter in directory:
            if recruiter.code not in links.code_index:
                placeholder(recruiter.code)

    for virtual_id, code in links.virtual_codes.items():
        links.code_index.setdefault(code, virtual_id)

    logger.debug(
        "Resolved %d records, %d placeholders, %d duplicate codes",
        len(links.records), len(links.virtual_codes), links.duplicate_codes,
    )
    return links
