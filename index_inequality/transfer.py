# index_inequality/transfer.py
"""
index_inequality/transfer.py
════════════════════════════

Refinement transfer engine for the LessThan checker.

Three rules:

  1. if ``left > right``   then ``right`` is ``@LessThan("left")``
  2. if ``left >= right``  then ``right`` is ``@LessThan("left + 1")``
  3. if ``0 < right``      then ``left - right`` is ``@LessThan("left")``

Rules 1 and 2 are written once for ``>`` / ``>=`` and reused for ``<`` /
``<=`` by swapping operands, and for the false branch of every
comparison by negating it first:

  ┌──────────┬─────────────────┬─────────────────┐
  │ node     │ then-store      │ else-store      │
  ├──────────┼─────────────────┼─────────────────┤
  │ l >  r   │ rule 1 (l, r)   │ rule 2 (r, l)   │
  │ l >= r   │ rule 2 (l, r)   │ rule 1 (r, l)   │
  │ l <  r   │ rule 1 (r, l)   │ rule 2 (l, r)   │
  │ l <= r   │ rule 2 (r, l)   │ rule 1 (l, r)   │
  └──────────┴─────────────────┴─────────────────┘

Preconditions
─────────────
A fact about ``left`` is only recorded when ``left`` is stable: if its
value could change before the fact is read, the fact would be a lie.
Floating-point literals never enter a constraint set (constraint texts
are re-parsed later as integer expressions).  A target already at ⊥ is
left alone.  Every failed precondition means "no refinement"; nothing
here raises on analysis input.

The engine holds only its collaborators.  Each call gets an immutable
:class:`TransferContext` and returns new stores; the input store is
never touched.

License: MIT
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, FrozenSet, Mapping, Optional

from index_inequality.canonical_expr import (
    CanonicalExpression,
    Canonicalizer,
    TokenCanonicalizer,
)
from index_inequality.config import TransferOptions
from index_inequality.errors import UnsupportedOperatorError
from index_inequality.nodes import ComparisonNode, SubtractionNode
from index_inequality.qualifiers import LessThanHierarchy, LessThanQualifier
from index_inequality.store import FlowStore
from index_inequality.value_oracle import ValueFlowOracle, ValueOracle

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — CONTEXT AND RESULTS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferContext:
    """
    Per-call input to the engine.

    Attributes
    ----------
    store        : FlowStore  - store flowing into the node
    node_values  : mapping    - the driver's current qualifier for
                                individual operand nodes (e.g. the value
                                computed for a nested ``n - 1``); looked
                                up before the store
    """
    store: FlowStore
    node_values: Mapping[Any, LessThanQualifier] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        # snapshot: later changes to the caller's dict must not leak in
        object.__setattr__(self, "node_values", MappingProxyType(dict(self.node_values)))

    def with_store(self, store: FlowStore) -> TransferContext:
        return TransferContext(store=store, node_values=self.node_values)

    def node_value(self, operand: Any) -> Optional[LessThanQualifier]:
        if isinstance(operand, Hashable):
            return self.node_values.get(operand)
        return None


@dataclass(frozen=True)
class TransferResult:
    """
    Output of one transfer.

    ``value`` is the qualifier of the node itself (set for subtraction,
    None for comparisons).  A comparison produces distinct then / else
    stores; every other node has ``then_store is else_store``.
    """
    value: Optional[LessThanQualifier]
    then_store: FlowStore
    else_store: FlowStore
    conditional: bool = False

    @classmethod
    def regular(cls, value: Optional[LessThanQualifier], store: FlowStore) -> TransferResult:
        return cls(value=value, then_store=store, else_store=store)

    @classmethod
    def branches(cls, then_store: FlowStore, else_store: FlowStore) -> TransferResult:
        return cls(value=None, then_store=then_store, else_store=else_store, conditional=True)

    @property
    def regular_store(self) -> FlowStore:
        """The store after the node regardless of branch outcome."""
        if not self.conditional:
            return self.then_store
        return self.then_store.join(self.else_store)


FallbackFn = Callable[[SubtractionNode, TransferContext], LessThanQualifier]


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — ENGINE
# ═════════════════════════════════════════════════════════════════════════

class LessThanTransfer:
    """
    Per-node refinement logic.

    Parameters
    ----------
    canonicalizer : Canonicalizer   - source expression -> canonical key
    oracle        : ValueOracle     - lower bounds for subtrahends
    hierarchy     : LessThanHierarchy
    fallback      : callable, optional
        Result qualifier for a subtraction the third rule does not cover;
        the generic numeric analysis' answer.  Defaults to ⊤.
    """

    def __init__(
        self,
        canonicalizer: Canonicalizer,
        oracle: ValueOracle,
        hierarchy: Optional[LessThanHierarchy] = None,
        fallback: Optional[FallbackFn] = None,
    ) -> None:
        self.canonicalizer = canonicalizer
        self.oracle = oracle
        self.hierarchy = hierarchy or LessThanHierarchy()
        self._fallback = fallback

    @classmethod
    def for_cppcheck(
        cls,
        options: Optional[TransferOptions] = None,
        fallback: Optional[FallbackFn] = None,
    ) -> LessThanTransfer:
        """Engine wired for cppcheck AST tokens and ValueFlow."""
        opts = options or TransferOptions()
        return cls(
            canonicalizer=TokenCanonicalizer(opts),
            oracle=ValueFlowOracle(opts),
            hierarchy=LessThanHierarchy(),
            fallback=fallback,
        )

    # ── Dispatch ─────────────────────────────────────────────────────

    def visit(self, node: Any, ctx: TransferContext) -> TransferResult:
        if isinstance(node, ComparisonNode):
            return self.visit_comparison(node, ctx)
        if isinstance(node, SubtractionNode):
            return self.visit_subtraction(node, ctx)
        raise UnsupportedOperatorError(
            getattr(node, "operator", type(node).__name__),
            [">", ">=", "<", "<=", "-"],
        )

    def visit_comparison(self, node: ComparisonNode, ctx: TransferContext) -> TransferResult:
        then_store = self._refine_condition(node, ctx)
        else_store = self._refine_condition(node.negated(), ctx)
        return TransferResult.branches(then_store, else_store)

    def _refine_condition(self, cond: ComparisonNode, ctx: TransferContext) -> FlowStore:
        greater, lesser, strict = cond.as_greater()
        if strict:
            return self.refine_gt(greater, lesser, ctx)
        return self.refine_gte(greater, lesser, ctx)

    # ── Rules 1 and 2 ────────────────────────────────────────────────

    def refine_gt(self, left: Any, right: Any, ctx: TransferContext) -> FlowStore:
        """``left > right`` holds: refine ``right`` to ``@LessThan("left")``."""
        return self._refine_lesser(left, right, ctx, suffix="")

    def refine_gte(self, left: Any, right: Any, ctx: TransferContext) -> FlowStore:
        """``left >= right`` holds: refine ``right`` to ``@LessThan("left + 1")``."""
        return self._refine_lesser(left, right, ctx, suffix=" + 1")

    def _refine_lesser(
        self, left: Any, right: Any, ctx: TransferContext, suffix: str
    ) -> FlowStore:
        store = ctx.store
        left_key = self.canonicalizer.canonicalize(left)
        if left_key is None or not left_key.stable:
            logger.debug("No refinement: %s is not stable", _describe(left_key, left))
            return store

        right_key = self.canonicalizer.canonicalize(right)
        current = self._current(right, right_key, ctx)
        expressions = self.hierarchy.less_than_expressions(current)
        if expressions is None:
            # right is already bottom, nothing to refine.
            return store
        if right_key is None or right_key.is_literal:
            return store

        refined = self.hierarchy.create_less_than(
            self._extend(expressions, left_key, suffix)
        )
        if refined == store.get(right_key):
            return store
        logger.debug("%s refined to %r", right_key.text, refined)
        return store.insert(right_key, refined)

    # ── Rule 3 ───────────────────────────────────────────────────────

    def visit_subtraction(self, node: SubtractionNode, ctx: TransferContext) -> TransferResult:
        """``left - right < left`` whenever ``right > 0`` and ``left`` is stable."""
        left_key = self.canonicalizer.canonicalize(node.left)
        if left_key is not None and left_key.stable:
            bound = self.oracle.min_bound(node.right)
            if bound is not None and bound > 0:
                current = self._current(node.left, left_key, ctx)
                expressions = self.hierarchy.less_than_expressions(current) or frozenset()
                value = self.hierarchy.create_less_than(
                    self._extend(expressions, left_key, suffix="")
                )
                logger.debug("%s - (min %d) refined to %r", left_key.text, bound, value)
                return TransferResult.regular(value, ctx.store)
        return TransferResult.regular(self._fallback_value(node, ctx), ctx.store)

    def _fallback_value(self, node: SubtractionNode, ctx: TransferContext) -> LessThanQualifier:
        if self._fallback is None:
            return self.hierarchy.top()
        return self._fallback(node, ctx)

    # ── Helpers ──────────────────────────────────────────────────────

    def _current(
        self, operand: Any, key: Optional[CanonicalExpression], ctx: TransferContext
    ) -> LessThanQualifier:
        """Qualifier of ``operand`` flowing into the node."""
        value = ctx.node_value(operand)
        if value is not None:
            return value
        if key is None:
            return self.hierarchy.top()
        return ctx.store.get(key)

    @staticmethod
    def _extend(
        expressions: FrozenSet[str], left_key: CanonicalExpression, suffix: str
    ) -> FrozenSet[str]:
        # floating literals cannot be re-parsed from a constraint string,
        # nor can expressions built on one
        if left_key.involves_floating:
            return expressions
        return expressions | {left_key.text + suffix}


def _describe(key: Optional[CanonicalExpression], expr: Any) -> str:
    if key is not None:
        return key.text
    return repr(getattr(expr, "str", expr))
