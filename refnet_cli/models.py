"""Core data models shared by the normalizer, resolver, builder and views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional, Union

from .config import DEFAULT_ORDER, DEFAULT_VIRTUAL_LABEL

RecordKind = Literal["lead", "recruiter"]
NodeKind = Literal["lead", "recruiter", "virtual"]
FocusKey = Union[int, str]


@dataclass(frozen=True)
class SourceRecord:
    """One lead or recruiter entry, as read from the record store."""
    record_id: int
    kind: RecordKind = "lead"
    own_code: Optional[str] = None
    referrer_code: Optional[str] = None
    display_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    parent_id: Optional[int] = None
    referrer_name: Optional[str] = None
    level: Optional[int] = None
    is_virtual: bool = False

    @property
    def completeness(self) -> int:
        """Number of non-blank display fields."""
        return sum(1 for value in (self.display_name, self.phone, self.city) if value)


@dataclass
class NetworkNode:
    node_id: int
    kind: NodeKind
    display_name: str
    code: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    is_virtual: bool = False
    parent_id: Optional[int] = None
    referrer_code: Optional[str] = None
    referrer_name: Optional[str] = None
    recruiter_url: Optional[str] = None
    depth: int = 0
    level: Optional[int] = None
    children: List["NetworkNode"] = field(default_factory=list)
    direct_lead_count: int = 0
    direct_recruiter_count: int = 0
    total_descendants: int = 0
    lead_descendants: int = 0
    recruiter_descendants: int = 0

    def walk(self) -> Iterator["NetworkNode"]:
        """Yield this node and every descendant in pre-order, without recursion."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        return f"NetworkNode(id={self.node_id}, kind={self.kind}, code={self.code!r}, children={len(self.children)})"


@dataclass
class NetworkStats:
    total_nodes: int = 0
    virtual_count: int = 0
    max_depth: int = 0
    lead_count: int = 0
    recruiter_count: int = 0
    orphan_count: int = 0
    duplicate_codes: int = 0


@dataclass
class FocusInfo:
    """Outcome of a focus request."""
    key: FocusKey
    found: bool
    node_id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None
    path: List[int] = field(default_factory=list)


@dataclass
class NetworkForest:
    roots: List[NetworkNode] = field(default_factory=list)
    orphans: List[NetworkNode] = field(default_factory=list)
    stats: NetworkStats = field(default_factory=NetworkStats)
    focus: Optional[FocusInfo] = None

    def walk(self) -> Iterator[NetworkNode]:
        """Yield every node, roots first, then orphans."""
        for top in [*self.roots, *self.orphans]:
            yield from top.walk()

    def find(self, node_id: int) -> Optional[NetworkNode]:
        for node in self.walk():
            if node.node_id == node_id:
                return node
        return None

    @property
    def focus_found(self) -> bool:
        return self.focus is not None and self.focus.found


@dataclass
class BuildOptions:
    """Per-build options.

    ``focus`` is a node identifier or referral code. ``order`` is either
    ``"id"`` (children ascending by identifier) or ``"ranking"``.
    """
    focus: Optional[FocusKey] = None
    order: str = DEFAULT_ORDER
    include_directory: bool = False
    virtual_label: str = DEFAULT_VIRTUAL_LABEL
