# index_inequality/qualifiers.py
"""
index_inequality/qualifiers.py
══════════════════════════════

The LessThan qualifier and its lattice.

    ⊤   LessThanUnknown      nothing is known
    │
    LessThan(S)              value < e   for every e in S
    │
    ⊥   LessThanBottom       unreachable / maximally refined

Order (``is_subtype``):

    ⊥ ⊑ q ⊑ ⊤              for every q
    LessThan(S1) ⊑ LessThan(S2)   iff   S2 ⊆ S1

More constraints means more specific.  ``LessThan(∅)`` says nothing and
is therefore the same element as ⊤; :meth:`LessThanHierarchy.create_less_than`
normalises it.

Join (control-flow merge) keeps only the facts that hold on every
incoming path:

    ⊥ ⊔ q = q
    ⊤ ⊔ q = ⊤
    LessThan(S1) ⊔ LessThan(S2) = LessThan(S1 ∩ S2)

Constraint sets are ``frozenset`` values.  A qualifier never shares a
mutable set with a store entry, so refining one entry cannot corrupt
another that was built from the same set.

No meet is provided; nothing in the refinement rules needs one.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, FrozenSet, Iterable, Optional

from index_inequality.errors import MalformedQualifierError

logger = logging.getLogger(__name__)


class QualifierKind(Enum):
    TOP = auto()
    LESS_THAN = auto()
    BOTTOM = auto()


@dataclass(frozen=True)
class LessThanQualifier:
    """
    One element of the LessThan lattice.

    Build instances through :class:`LessThanHierarchy` rather than
    directly, so that ``LessThan(∅)`` collapses to ⊤ and constraint
    members are validated.
    """
    kind: QualifierKind
    constraints: FrozenSet[str] = field(default=frozenset())

    def is_top(self) -> bool:
        return self.kind is QualifierKind.TOP

    def is_bottom(self) -> bool:
        return self.kind is QualifierKind.BOTTOM

    def is_less_than(self) -> bool:
        return self.kind is QualifierKind.LESS_THAN

    def __repr__(self) -> str:
        if self.is_top():
            return "LessThan(⊤)"
        if self.is_bottom():
            return "LessThan(⊥)"
        return f"LessThan({{{', '.join(sorted(self.constraints))}}})"


TOP = LessThanQualifier(QualifierKind.TOP)
BOTTOM = LessThanQualifier(QualifierKind.BOTTOM)


class LessThanHierarchy:
    """
    Qualifier hierarchy host for the LessThan checker.

    Supplies the ⊤ / ⊥ sentinels, the ``LessThan(S)`` factory, the
    subtype test and join.  Stateless; one instance can be shared by
    every engine and store.
    """

    def top(self) -> LessThanQualifier:
        return TOP

    def bottom(self) -> LessThanQualifier:
        return BOTTOM

    def create_less_than(self, constraints: Iterable[str]) -> LessThanQualifier:
        """Return ``LessThan(constraints)``, or ⊤ when there are none."""
        frozen = frozenset(constraints)
        for c in frozen:
            if not isinstance(c, str):
                raise MalformedQualifierError(c)
        if not frozen:
            return TOP
        return LessThanQualifier(QualifierKind.LESS_THAN, frozen)

    # ── Accessors ────────────────────────────────────────────────────

    @staticmethod
    def less_than_expressions(q: LessThanQualifier) -> Optional[FrozenSet[str]]:
        """
        The constraint set of ``q``.

        Empty for ⊤, ``None`` for ⊥ (callers use that to detect the
        already-maximally-refined case).
        """
        if q.is_bottom():
            return None
        return q.constraints

    def find_in_hierarchy(self, qualifiers: Iterable[Any]) -> Optional[LessThanQualifier]:
        """
        Pick this hierarchy's qualifier out of a mixed collection.

        A value can carry qualifiers from several checkers at once; only
        :class:`LessThanQualifier` instances belong here.
        """
        for q in qualifiers:
            if isinstance(q, LessThanQualifier):
                return q
        return None

    # ── Lattice ──────────────────────────────────────────────────────

    def is_subtype(self, a: LessThanQualifier, b: LessThanQualifier) -> bool:
        """``a ⊑ b``: ``a`` implies at least as much as ``b``."""
        if a.is_bottom() or b.is_top():
            return True
        if b.is_bottom() or a.is_top():
            return False
        return b.constraints <= a.constraints

    def join(self, a: LessThanQualifier, b: LessThanQualifier) -> LessThanQualifier:
        """Least upper bound; only facts present on both sides survive."""
        if a.is_bottom():
            return b
        if b.is_bottom():
            return a
        if a.is_top() or b.is_top():
            return TOP
        return self.create_less_than(a.constraints & b.constraints)

    def join_all(self, values: Iterable[LessThanQualifier]) -> LessThanQualifier:
        result = BOTTOM
        for v in values:
            result = self.join(result, v)
        return result

    # ── Queries for downstream consumers ─────────────────────────────

    @staticmethod
    def is_less_than(q: LessThanQualifier, expression: str) -> bool:
        """Does ``q`` prove ``value < expression``?  ⊥ proves everything."""
        if q.is_bottom():
            return True
        return expression in q.constraints
