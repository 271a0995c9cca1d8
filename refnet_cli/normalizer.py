"""Record normalization for heterogeneous intake payloads.

Different intake sources (web form, spreadsheet import, the dashboard's own
store) spell the same concept with different keys. Each canonical field has a
primary key and a prioritized list of alternates; the first key holding a
non-blank value wins. Anything that cannot be read normalizes to ``None``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from .config import NUMERIC_CODE_WIDTH
from .models import SourceRecord

logger = logging.getLogger(__name__)

FIELD_KEYS: Dict[str, tuple] = {
    "record_id": ("id", "record_id", "inscricao_id", "inscricaoId"),
    "display_name": ("nome", "name", "display_name", "displayName"),
    "phone": ("telefone", "phone", "celular"),
    "city": ("cidade", "city"),
    "kind": ("tipo", "kind", "type", "perfil", "papel", "role", "categoria"),
    "own_code": (
        "codigoProprio",
        "own_code",
        "codigoRecrutador",
        "codigo_recrutador",
        "recruiter_code",
        "codigo",
        "code",
    ),
    "referrer_code": (
        "recrutadorCodigo",
        "referrer_code",
        "traffic_source",
        "trafficSource",
        "codigo_indicador",
        "indicador",
        "ref",
        "referral",
    ),
    "referrer_name": ("recrutadorNome", "referrer_name"),
    "parent_id": ("parentInscricaoId", "parent_id", "parentId", "upline_id", "sponsor_id"),
    "level": ("nivel", "level", "hierarchy_level"),
    "is_recruiter": ("isRecruiter", "is_recruiter", "eh_recrutador"),
    "is_virtual": ("isVirtual", "is_virtual"),
}

RECRUITER_WORDS = {"recrutador", "recrutadora", "recruiter", "sponsor", "indicador"}
LEAD_WORDS = {"lead", "inscrito", "inscrita", "prospect"}
TRUE_WORDS = {"true", "1", "yes", "sim", "y", "s"}

_INT_RE = re.compile(r"^-?[0-9]{1,18}$")
_DIGITS_RE = re.compile(r"^[0-9]+$")
_SPACE_RE = re.compile(r"\s+")


def pick_string(record: Mapping[str, Any], key: str) -> Optional[str]:
    """Return the trimmed string under *key*, or ``None`` if absent or blank.

    Numbers are stringified; booleans and containers are ignored.
    """
    value = record.get(key)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _layers(raw: Mapping[str, Any]) -> list:
    # Top-level keys take priority over a nested intake payload.
    layers = [raw]
    for nested_key in ("payload", "parsedPayload"):
        nested = raw.get(nested_key)
        if isinstance(nested, Mapping):
            layers.append(nested)
    return layers


def parse_payload(raw: Any) -> Dict[str, str]:
    """Extract the canonical string fields from a raw record.

    Unknown keys are dropped. Non-mapping input yields an empty dict.
    """
    if not isinstance(raw, Mapping):
        return {}

    parsed: Dict[str, str] = {}
    layers = _layers(raw)
    for target, keys in FIELD_KEYS.items():
        for layer in layers:
            found = next((v for v in (pick_string(layer, k) for k in keys) if v), None)
            if found is None and target in ("is_recruiter", "is_virtual"):
                found = next(
                    (str(layer[k]).lower() for k in keys if isinstance(layer.get(k), bool)),
                    None,
                )
            if found is not None:
                parsed[target] = found
                break
    return parsed


def normalize_code(value: Any) -> Optional[str]:
    """Canonical form of a referral code.

    Whitespace is removed and letters are uppercased. Purely numeric codes are
    zero-padded so ``"7"``, ``"07"`` and ``"007"`` compare equal.
    """
    if value is None or isinstance(value, bool):
        return None
    cleaned = _SPACE_RE.sub("", str(value)).upper()
    if not cleaned:
        return None
    if _DIGITS_RE.match(cleaned):
        return cleaned.lstrip("0").zfill(NUMERIC_CODE_WIDTH)
    return cleaned


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not _INT_RE.match(value):
        return None
    return int(value)


def _infer_kind(parsed: Dict[str, str], own_code: Optional[str]) -> str:
    word = parsed.get("kind", "").lower()
    if word in RECRUITER_WORDS:
        return "recruiter"
    if word in LEAD_WORDS:
        return "lead"
    if parsed.get("is_recruiter", "").lower() in TRUE_WORDS:
        return "recruiter"
    return "recruiter" if own_code else "lead"


def normalize_record(raw: Any) -> Optional[SourceRecord]:
    """Normalize one raw record.

    Returns ``None`` only when the record has no usable integer identifier,
    since such a record cannot be placed in the forest.
    """
    if isinstance(raw, SourceRecord):
        return raw

    parsed = parse_payload(raw)
    record_id = _parse_int(parsed.get("record_id"))
    if record_id is None:
        logger.warning("Skipping record without an integer identifier: %r", parsed.get("record_id"))
        return None

    own_code = normalize_code(parsed.get("own_code"))
    kind = _infer_kind(parsed, own_code)
    if kind == "lead" and own_code:
        logger.debug("Dropping own code %s from lead %d", own_code, record_id)
        own_code = None

    return SourceRecord(
        record_id=record_id,
        kind=kind,
        own_code=own_code,
        referrer_code=normalize_code(parsed.get("referrer_code")),
        display_name=parsed.get("display_name"),
        phone=parsed.get("phone"),
        city=parsed.get("city"),
        parent_id=_parse_int(parsed.get("parent_id")),
        referrer_name=parsed.get("referrer_name"),
        level=_parse_int(parsed.get("level")),
        is_virtual=parsed.get("is_virtual", "").lower() in TRUE_WORDS,
    )
