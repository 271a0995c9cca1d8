"""Read-only recruiter directory used to enrich recruiter and virtual nodes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .normalizer import normalize_code

_PLACEHOLDER_RE = re.compile(r"^(recrutador|recruiter|code|c[oó]digo)?\s*[#\d]*$", re.IGNORECASE)


@dataclass(frozen=True)
class Recruiter:
    code: str
    name: str
    url: Optional[str] = None


def is_placeholder_name(name: Optional[str]) -> bool:
    """True for blank names and generated labels such as ``"Recruiter 12"``."""
    if not name or not name.strip():
        return True
    return bool(_PLACEHOLDER_RE.match(name.strip()))


def is_valid_label_template(template: str) -> bool:
    """True when *template* formats with a single ``{code}`` field."""
    try:
        template.format(code="01")
    except (KeyError, IndexError, ValueError, AttributeError):
        return False
    return True


class RecruiterDirectory:
    """Immutable code -> recruiter lookup, built once per build.

    Codes are normalized on the way in and on lookup, so ``"7"`` and ``"07"``
    resolve to the same entry.
    """

    def __init__(self, entries: Iterable[Recruiter] = (), base_url: str = "") -> None:
        self.base_url = base_url
        by_code: Dict[str, Recruiter] = {}
        by_name: Dict[str, Recruiter] = {}
        for entry in entries:
            code = normalize_code(entry.code)
            if not code or code in by_code:
                continue
            url = entry.url or (f"{base_url}{code}" if base_url else None)
            recruiter = Recruiter(code=code, name=entry.name.strip(), url=url)
            by_code[code] = recruiter
            by_name.setdefault(recruiter.name.lower(), recruiter)
        self._by_code = by_code
        self._by_name = by_name

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], base_url: str = "") -> "RecruiterDirectory":
        return cls((Recruiter(code=str(code), name=str(name)) for code, name in mapping.items()), base_url)

    def __len__(self) -> int:
        return len(self._by_code)

    def __iter__(self) -> Iterator[Recruiter]:
        return iter(self._by_code.values())

    def __contains__(self, code: object) -> bool:
        return normalize_code(code) in self._by_code

    def get(self, code: Optional[str]) -> Optional[Recruiter]:
        normalized = normalize_code(code)
        if not normalized:
            return None
        return self._by_code.get(normalized)

    def by_name(self, name: Optional[str]) -> Optional[Recruiter]:
        if not name or is_placeholder_name(name):
            return None
        return self._by_name.get(name.strip().lower())

    def label_for(self, code: str, template: str) -> Tuple[str, Optional[str]]:
        """Display name and URL for *code*, falling back to *template*."""
        recruiter = self.get(code)
        url = recruiter.url if recruiter else (f"{self.base_url}{code}" if self.base_url else None)
        if recruiter and not is_placeholder_name(recruiter.name):
            return recruiter.name, url
        return template.format(code=code), url


EMPTY_DIRECTORY = RecruiterDirectory()
