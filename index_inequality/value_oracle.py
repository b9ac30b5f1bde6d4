# index_inequality/value_oracle.py
"""
Value oracles: statically known lower bounds for expressions.

The subtraction rule only needs one question answered: is the
subtrahend provably positive?  An oracle answers with the minimum value
the expression can take, or ``None`` when nothing is known.

ValueFlow
─────────
Cppcheck attaches a ``values`` list to every token.  Each entry has

    intvalue   : int | None
    valueKind  : "known" | "possible" | "impossible"
    bound      : "Point" | "Upper" | "Lower"   (newer dumps only)

A ``known`` value is the value.  An ``impossible`` value ``v`` with an
``Upper`` bound says the token can never be ``<= v``, so ``v + 1`` is a
lower bound (this is how cppcheck records "unsigned, hence >= 0").
``possible`` values are only a sample of what may happen; they count as
bounds only when ``trust_possible_values`` is set.

License: MIT
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from index_inequality.config import TransferOptions

logger = logging.getLogger(__name__)


@runtime_checkable
class ValueOracle(Protocol):
    """Source of statically known numeric bounds."""

    def min_bound(self, expr: Any) -> Optional[int]:
        ...


def _int_literal_value(tok: Any) -> Optional[int]:
    if not (getattr(tok, "isNumber", False) and getattr(tok, "isInt", False)):
        return None
    text = getattr(tok, "str", "").rstrip("uUlL")
    try:
        return int(text, 0)
    except (ValueError, TypeError):
        # octal-looking literals such as "010" are rejected by int(x, 0)
        try:
            return int(text, 8) if text.startswith("0") else None
        except ValueError:
            return None


class ValueFlowOracle:
    """Lower bounds mined from cppcheck ValueFlow data on AST tokens."""

    def __init__(self, options: Optional[TransferOptions] = None) -> None:
        self.options = options or TransferOptions()

    def min_bound(self, expr: Any) -> Optional[int]:
        if expr is None:
            return None

        literal = _int_literal_value(expr)
        if literal is not None:
            return literal

        values = getattr(expr, "values", None)
        if not values:
            return None

        known: List[int] = []
        possible: List[int] = []
        lower_bounds: List[int] = []
        for v in values:
            iv = getattr(v, "intvalue", None)
            if iv is None:
                continue
            kind = getattr(v, "valueKind", "possible")
            bound = getattr(v, "bound", "Point")
            if kind == "known":
                known.append(iv)
            elif kind == "impossible":
                if bound == "Upper":
                    lower_bounds.append(iv + 1)
            elif kind == "possible":
                possible.append(iv)

        if known:
            return min(known)
        candidates = list(lower_bounds)
        if self.options.trust_possible_values and possible:
            candidates.append(min(possible))
        if not candidates:
            return None
        # several independent lower bounds: the tightest one holds
        bound_value = max(candidates)
        logger.debug("ValueFlow lower bound for %s: %d", getattr(expr, "str", expr), bound_value)
        return bound_value


class StaticBoundsOracle:
    """
    Oracle backed by a fixed table.

    Keys may be the expression objects themselves or their text (the
    token's ``str``, or the string itself when the driver passes plain
    strings).
    """

    def __init__(self, bounds: Optional[Mapping[Any, int]] = None) -> None:
        self._bounds: Dict[Any, int] = dict(bounds or {})

    def with_bound(self, key: Any, value: int) -> StaticBoundsOracle:
        bounds = dict(self._bounds)
        bounds[key] = value
        return StaticBoundsOracle(bounds)

    def min_bound(self, expr: Any) -> Optional[int]:
        if isinstance(expr, Hashable) and expr in self._bounds:
            return self._bounds[expr]
        text = expr if isinstance(expr, str) else getattr(expr, "str", None)
        if text is not None:
            return self._bounds.get(text)
        return None
