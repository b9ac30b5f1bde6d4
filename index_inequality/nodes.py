# index_inequality/nodes.py
"""
Node shapes the refinement engine is invoked on.

The engine never looks inside an operand itself: operands are opaque
source expressions (usually cppcheck AST tokens) handed to the
canonicaliser and the value oracle.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from index_inequality.errors import UnsupportedOperatorError

COMPARISON_OPERATORS = frozenset({">", ">=", "<", "<="})

_NEGATION = {">": "<=", ">=": "<", "<": ">=", "<=": ">"}


@dataclass(frozen=True)
class ComparisonNode:
    """``left <operator> right`` used as a branch condition."""
    operator: str
    left: Any
    right: Any

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise UnsupportedOperatorError(self.operator, COMPARISON_OPERATORS)

    def as_greater(self) -> Tuple[Any, Any, bool]:
        """
        Rewrite as ``greater > lesser`` (strict) or ``greater >= lesser``.

        Returns ``(greater, lesser, strict)``; ``<`` and ``<=`` swap
        their operands.
        """
        if self.operator == ">":
            return self.left, self.right, True
        if self.operator == ">=":
            return self.left, self.right, False
        if self.operator == "<":
            return self.right, self.left, True
        return self.right, self.left, False

    def negated(self) -> ComparisonNode:
        """The condition that holds on the false branch."""
        return ComparisonNode(_NEGATION[self.operator], self.left, self.right)


@dataclass(frozen=True)
class SubtractionNode:
    """Numerical ``left - right``."""
    left: Any
    right: Any


Node = Union[ComparisonNode, SubtractionNode]


def node_from_token(tok: Any) -> Optional[Node]:
    """
    Build a node from a cppcheck AST token.

    Returns None for tokens that are neither a relational comparison nor
    a binary subtraction.
    """
    if tok is None:
        return None
    s = getattr(tok, "str", "")
    op1 = getattr(tok, "astOperand1", None)
    op2 = getattr(tok, "astOperand2", None)
    if op1 is None or op2 is None:
        return None
    if s in COMPARISON_OPERATORS:
        return ComparisonNode(s, op1, op2)
    if s == "-":
        return SubtractionNode(op1, op2)
    return None
