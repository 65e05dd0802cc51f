"""
Report Tree
===========

Provider-agnostic model of a financial report as an owned tree of rows,
plus the search helpers every provider parser is built on.

Xero and QuickBooks both return statements as nested rows, but they
disagree on field names (Rows / rows / Rows.Row), casing (RowType /
row_type / rowType) and on whether a single child is wrapped in a list.
The helpers here absorb those differences once, so parsers only deal
with ReportNode.

Search is iterative with an explicit depth counter. Upstream data is a
tree, but a malformed payload must never hang or blow the stack.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


class NodeKind(str, Enum):
    """Kind of a report row."""
    HEADER = "Header"
    SECTION = "Section"
    ROW = "Row"
    DATA = "Data"
    SUMMARY = "Summary"


@dataclass
class Cell:
    """Single cell. key is the provider's column/account id when present."""
    value: Any
    key: Optional[str] = None


@dataclass
class ReportNode:
    """One row of a report with its owned children."""
    kind: NodeKind
    title: Optional[str] = None
    cells: list[Cell] = field(default_factory=list)
    children: list["ReportNode"] = field(default_factory=list)

    @property
    def label(self) -> str:
        """Declared name of the row: section title, else first cell."""
        if self.title:
            return str(self.title)
        if self.cells and self.cells[0].value is not None:
            return str(self.cells[0].value)
        return ""

    def cell_value(self, index: int = 1) -> Any:
        """Raw value of the cell at index, or None."""
        if 0 <= index < len(self.cells):
            return self.cells[index].value
        return None


NodePredicate = Callable[[ReportNode], bool]
Roots = Union[ReportNode, Iterable[ReportNode], None]


# =============================================================================
# Raw payload helpers
# =============================================================================

def _normalize_key(key: str) -> str:
    return key.replace("_", "").lower()


def pick(mapping: Any, *names: str, default: Any = None) -> Any:
    """
    Read a field from a raw payload dict regardless of casing.

    pick(row, "RowType") matches RowType, row_type and rowType.
    Names are tried in order; the first present non-None value wins.
    """
    if not isinstance(mapping, dict):
        return default

    for name in names:
        if name in mapping and mapping[name] is not None:
            return mapping[name]

    normalized = {_normalize_key(str(k)): v for k, v in mapping.items()}
    for name in names:
        value = normalized.get(_normalize_key(name))
        if value is not None:
            return value

    return default


def coerce_rows(value: Any) -> list[dict]:
    """
    Normalize every known child-list encoding to a list of row dicts.

    Accepts a bare list, a single row dict, or an object wrapper
    ({"Row": [...]} or {"Row": {...}}).
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [row for row in value if isinstance(row, dict)]
    if isinstance(value, dict):
        wrapped = pick(value, "Row")
        if wrapped is not None:
            return coerce_rows(wrapped)
        return [value]
    return []


def coerce_list(value: Any) -> list:
    """Wrap a single object in a list; pass lists through."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


# =============================================================================
# Search
# =============================================================================

def _as_roots(roots: Roots) -> list[ReportNode]:
    if roots is None:
        return []
    if isinstance(roots, ReportNode):
        return [roots]
    return [node for node in roots if isinstance(node, ReportNode)]


def iter_nodes(roots: Roots, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[ReportNode]:
    """
    Yield nodes in document order (pre-order, depth first).

    Nodes deeper than max_depth (roots are depth 0) are not visited.
    """
    stack: list[tuple[ReportNode, int]] = [(node, 0) for node in reversed(_as_roots(roots))]
    truncated = False

    while stack:
        node, depth = stack.pop()
        yield node

        if not node.children:
            continue
        if depth + 1 > max_depth:
            truncated = True
            continue
        for child in reversed(node.children):
            stack.append((child, depth + 1))

    if truncated:
        logger.warning("Report tree exceeded max depth %d; deeper rows ignored", max_depth)


def find(
    roots: Roots,
    predicate: NodePredicate,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[ReportNode]:
    """Return the first node matching predicate, or None."""
    for node in iter_nodes(roots, max_depth):
        if predicate(node):
            return node
    return None


def find_all(
    roots: Roots,
    predicate: NodePredicate,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[ReportNode]:
    """Return every node matching predicate, in document order."""
    return [node for node in iter_nodes(roots, max_depth) if predicate(node)]


# =============================================================================
# Predicates
# =============================================================================

def label_contains(*candidates: str, kinds: Optional[Iterable[NodeKind]] = None) -> NodePredicate:
    """Case-insensitive substring match against the node label."""
    needles = [c.lower() for c in candidates if c]
    allowed = frozenset(kinds) if kinds else None

    def _predicate(node: ReportNode) -> bool:
        if allowed is not None and node.kind not in allowed:
            return False
        label = node.label.lower()
        return bool(label) and any(needle in label for needle in needles)

    return _predicate


def label_equals(*candidates: str, kinds: Optional[Iterable[NodeKind]] = None) -> NodePredicate:
    """Case-insensitive, whitespace-trimmed equality against the node label."""
    targets = {c.strip().lower() for c in candidates if c}
    allowed = frozenset(kinds) if kinds else None

    def _predicate(node: ReportNode) -> bool:
        if allowed is not None and node.kind not in allowed:
            return False
        return node.label.strip().lower() in targets

    return _predicate


def of_kind(*kinds: NodeKind) -> NodePredicate:
    """Match nodes of the given kinds."""
    allowed = frozenset(kinds)
    return lambda node: node.kind in allowed
