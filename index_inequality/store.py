# index_inequality/store.py
"""
Flow store: canonical expression -> LessThan qualifier at one program
point.

Like the interval environments of the dataflow analyses, the store is a
persistent map: every update returns a new store and the old one stays
valid, so a driver can keep per-edge snapshots without copying.
Unmapped expressions read as ⊤, and ⊤ is never stored explicitly.

License: MIT
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Optional, Tuple

from index_inequality.canonical_expr import CanonicalExpression, identifiers_in
from index_inequality.qualifiers import LessThanHierarchy, LessThanQualifier

logger = logging.getLogger(__name__)


class FlowStore:
    """Immutable ``CanonicalExpression -> LessThanQualifier`` map."""

    __slots__ = ("_mapping", "_hierarchy")

    def __init__(
        self,
        mapping: Optional[Mapping[CanonicalExpression, LessThanQualifier]] = None,
        hierarchy: Optional[LessThanHierarchy] = None,
    ) -> None:
        self._hierarchy = hierarchy or LessThanHierarchy()
        self._mapping: Dict[CanonicalExpression, LessThanQualifier] = {
            k: v for k, v in (mapping or {}).items() if not v.is_top()
        }

    @property
    def hierarchy(self) -> LessThanHierarchy:
        return self._hierarchy

    @property
    def mapping(self) -> Mapping[CanonicalExpression, LessThanQualifier]:
        return MappingProxyType(self._mapping)

    def _derive(self, mapping: Dict[CanonicalExpression, LessThanQualifier]) -> FlowStore:
        store = FlowStore.__new__(FlowStore)
        store._hierarchy = self._hierarchy
        store._mapping = mapping
        return store

    # ── Lookup / update ──────────────────────────────────────────────

    def get(self, key: CanonicalExpression) -> LessThanQualifier:
        """Qualifier of ``key``; ⊤ if nothing is recorded."""
        return self._mapping.get(key, self._hierarchy.top())

    def insert(self, key: CanonicalExpression, value: LessThanQualifier) -> FlowStore:
        """Return a new store with ``key`` mapped to ``value``."""
        new_map = dict(self._mapping)
        if value.is_top():
            new_map.pop(key, None)
        else:
            new_map[key] = value
        return self._derive(new_map)

    def remove(self, key: CanonicalExpression) -> FlowStore:
        """Return a new store with ``key`` unmapped (= ⊤)."""
        if key not in self._mapping:
            return self
        new_map = dict(self._mapping)
        del new_map[key]
        return self._derive(new_map)

    def invalidate(self, variable: str) -> FlowStore:
        """
        Forget everything that depends on ``variable``.

        Drivers call this when ``variable`` is assigned: entries keyed by
        an expression mentioning it are dropped, and constraints whose
        text mentions it are removed from the remaining entries.
        """
        new_map: Dict[CanonicalExpression, LessThanQualifier] = {}
        changed = False
        for key, value in self._mapping.items():
            if key.mentions(variable):
                changed = True
                continue
            if value.is_less_than():
                kept = frozenset(
                    c for c in value.constraints if variable not in identifiers_in(c)
                )
                if kept != value.constraints:
                    changed = True
                    value = self._hierarchy.create_less_than(kept)
                    if value.is_top():
                        continue
            new_map[key] = value
        if not changed:
            return self
        logger.debug("Invalidated facts mentioning %s", variable)
        return self._derive(new_map)

    # ── Lattice ──────────────────────────────────────────────────────

    def join(self, other: FlowStore) -> FlowStore:
        """Pointwise join; a key missing on either side reads as ⊤ and drops out."""
        new_map: Dict[CanonicalExpression, LessThanQualifier] = {}
        for key in self._mapping.keys() & other._mapping.keys():
            j = self._hierarchy.join(self._mapping[key], other._mapping[key])
            if not j.is_top():
                new_map[key] = j
        return self._derive(new_map)

    def leq(self, other: FlowStore) -> bool:
        """Pointwise subtype test."""
        for key in self.keys() | other.keys():
            if not self._hierarchy.is_subtype(self.get(key), other.get(key)):
                return False
        return True

    # ── Mapping protocol ─────────────────────────────────────────────

    def keys(self) -> FrozenSet[CanonicalExpression]:
        return frozenset(self._mapping)

    def items(self) -> Iterator[Tuple[CanonicalExpression, LessThanQualifier]]:
        return iter(self._mapping.items())

    def __contains__(self, key: object) -> bool:
        return key in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowStore):
            return NotImplemented
        return self._mapping == other._mapping

    def __hash__(self) -> int:
        return hash(frozenset(self._mapping.items()))

    def __repr__(self) -> str:
        if not self._mapping:
            return "FlowStore(⊤)"
        entries = ", ".join(
            f"{k.text}: {v!r}" for k, v in sorted(self._mapping.items(), key=lambda kv: kv[0].text)
        )
        return f"FlowStore({{{entries}}})"
