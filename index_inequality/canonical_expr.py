# index_inequality/canonical_expr.py
"""
index_inequality/canonical_expr.py
══════════════════════════════════

Canonical expressions: the comparable symbolic keys the flow store is
indexed by, and the text that ends up inside ``LessThan`` constraint
sets.

A canonical expression carries three things:

  text          - deterministic rendering of the expression, e.g.
                  ``len``, ``s.size``, ``(n - 1) * 2``, ``1.5f``
  stable        - the value cannot change between the point where a
                  fact is derived and any later read of that fact
  literal_kind  - numeric literal classification (NONE for non-literals)

Equality and hashing use the structural form only (``text`` and
``literal_kind``), so two canonicalisations of the same source
expression at different program points index the same store entry.

Token canonicaliser
───────────────────
:class:`TokenCanonicalizer` builds canonical expressions from Cppcheck
AST tokens (``cppcheckdata.Token``).  Stability policy:

  ┌──────────────────────────┬──────────────────────────────────────────┐
  │ literal                  │ stable                                   │
  │ const variable           │ stable                                   │
  │ local / argument         │ stable iff options.stable_locals         │
  │ global / static variable │ unstable                                 │
  │ a.f  /  p->f             │ stable iff f is const and a is stable    │
  │ a[i]                     │ unstable                                 │
  │ f(args)                  │ stable iff f is pure and args are stable │
  │ -e, l op r               │ stable iff all operands are stable       │
  └──────────────────────────┴──────────────────────────────────────────┘

License: MIT
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Protocol, runtime_checkable

from index_inequality.config import TransferOptions

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — CANONICAL EXPRESSION
# ═════════════════════════════════════════════════════════════════════════

class LiteralKind(Enum):
    """Classification of a literal operand."""
    NONE = "none"
    INT = "int"
    LONG = "long"
    CHAR = "char"
    BOOL = "bool"
    FLOAT = "float"
    DOUBLE = "double"

    @property
    def is_literal(self) -> bool:
        return self is not LiteralKind.NONE

    @property
    def is_floating(self) -> bool:
        return self in (LiteralKind.FLOAT, LiteralKind.DOUBLE)


_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z_0-9]*")
_NUMBER_PREFIX_RE = re.compile(r"(0[xX][0-9A-Fa-f]+|\d+(\.\d*)?([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?)")


def identifiers_in(text: str) -> FrozenSet[str]:
    """
    Names of the variables mentioned in an expression text.

    Member names after ``.`` / ``->`` count as mentions as well, which
    over-approximates and is what invalidation wants.  Literal suffixes
    (``10L``, ``1.5f``) and hex digits are skipped.
    """
    names = set()
    pos = 0
    while pos < len(text):
        number = _NUMBER_PREFIX_RE.match(text, pos) if text[pos].isdigit() or text[pos] == "." else None
        if number and number.end() > pos:
            pos = number.end()
            # swallow literal suffix (u, l, f, ...)
            while pos < len(text) and (text[pos].isalnum() or text[pos] == "_"):
                pos += 1
            continue
        ident = _IDENTIFIER_RE.match(text, pos)
        if ident:
            names.add(ident.group(0))
            pos = ident.end()
            continue
        pos += 1
    return frozenset(names)


@dataclass(frozen=True)
class CanonicalExpression:
    """
    Immutable, comparable key for a program expression.

    Attributes
    ----------
    text         : str          - structural identity, used in constraint sets
    literal_kind : LiteralKind  - numeric literal classification
    stable       : bool         - value cannot be changed by intervening code
    variables    : frozenset    - variable names mentioned by ``text``
    floating     : bool         - a floating-point literal occurs somewhere in ``text``
    """
    text: str
    literal_kind: LiteralKind = LiteralKind.NONE
    stable: bool = field(default=False, compare=False)
    variables: FrozenSet[str] = field(default=frozenset(), compare=False, repr=False)
    floating: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def of(
        cls,
        text: str,
        stable: bool = False,
        literal_kind: LiteralKind = LiteralKind.NONE,
    ) -> CanonicalExpression:
        """Build an expression, deriving ``variables`` from ``text``."""
        variables = frozenset() if literal_kind.is_literal else identifiers_in(text)
        return cls(text=text, literal_kind=literal_kind, stable=stable, variables=variables)

    @classmethod
    def variable(cls, name: str, stable: bool = True) -> CanonicalExpression:
        return cls(text=name, stable=stable, variables=frozenset({name}))

    @classmethod
    def literal(cls, text: str, kind: LiteralKind = LiteralKind.INT) -> CanonicalExpression:
        return cls(text=text, literal_kind=kind, stable=True, floating=kind.is_floating)

    @property
    def is_literal(self) -> bool:
        return self.literal_kind.is_literal

    @property
    def is_floating_literal(self) -> bool:
        return self.literal_kind.is_floating

    @property
    def involves_floating(self) -> bool:
        """True for ``1.5f`` as well as for ``-2.5`` or ``x * 1.5``."""
        return self.floating or self.literal_kind.is_floating

    def mentions(self, name: str) -> bool:
        return name in self.variables

    def __str__(self) -> str:
        return self.text


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — CANONICALIZER PROTOCOL
# ═════════════════════════════════════════════════════════════════════════

@runtime_checkable
class Canonicalizer(Protocol):
    """
    Turns a source expression into a :class:`CanonicalExpression`.

    Must be deterministic: syntactically equivalent pure expressions map
    to equal canonical expressions.  Returns ``None`` for expressions it
    cannot represent; the engine treats those as "no refinement".
    """

    def canonicalize(self, expr: Any) -> Optional[CanonicalExpression]:
        ...


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CPPCHECK TOKEN CANONICALIZER
# ═════════════════════════════════════════════════════════════════════════

_BINARY_OPS = frozenset({"+", "-", "*", "/", "%", "<<", ">>", "&", "|", "^"})
_UNARY_OPS = frozenset({"-", "+", "~"})


def _literal_kind(tok: Any) -> LiteralKind:
    """Classify a literal token from its cppcheckdata flags and suffix."""
    if getattr(tok, "isBoolean", False):
        return LiteralKind.BOOL
    if getattr(tok, "isChar", False):
        return LiteralKind.CHAR
    if not getattr(tok, "isNumber", False):
        return LiteralKind.NONE
    text = getattr(tok, "str", "")
    if getattr(tok, "isFloat", False):
        vt = getattr(tok, "valueType", None)
        vtype = getattr(vt, "type", None) if vt is not None else None
        if vtype == "float" or text[-1:] in ("f", "F"):
            return LiteralKind.FLOAT
        return LiteralKind.DOUBLE
    if text[-1:] in ("l", "L"):
        return LiteralKind.LONG
    return LiteralKind.INT


class TokenCanonicalizer:
    """
    Canonicaliser for Cppcheck AST tokens.

    Works on anything shaped like ``cppcheckdata.Token``: attributes are
    read with ``getattr`` so partial mocks and older dump formats are
    accepted.
    """

    def __init__(self, options: Optional[TransferOptions] = None) -> None:
        self.options = options or TransferOptions()

    def canonicalize(self, expr: Any) -> Optional[CanonicalExpression]:
        if expr is None:
            return None
        rendered = self._render(expr)
        if rendered is None:
            logger.debug("No canonical form for token %r", getattr(expr, "str", expr))
            return None
        text, stable, variables, floating = rendered
        return CanonicalExpression(
            text=text,
            literal_kind=_literal_kind(expr),
            stable=stable,
            variables=variables,
            floating=floating,
        )

    # ── Rendering ────────────────────────────────────────────────────

    def _render(self, tok: Any) -> Optional[tuple]:
        """Return ``(text, stable, variables, floating)`` or None."""
        s = getattr(tok, "str", "")
        op1 = getattr(tok, "astOperand1", None)
        op2 = getattr(tok, "astOperand2", None)

        # ── Literals ─────────────────────────────────────────────────
        kind = _literal_kind(tok)
        if kind.is_literal:
            return s, True, frozenset(), kind.is_floating

        # ── Variables ────────────────────────────────────────────────
        var_id = getattr(tok, "varId", None)
        if var_id and op1 is None and op2 is None:
            stable = self._variable_is_stable(getattr(tok, "variable", None))
            return s, stable, frozenset({s}), False

        # ── Member access (a.b, p->b) ────────────────────────────────
        if s == "." and op1 is not None and op2 is not None:
            receiver = self._render(op1)
            if receiver is None:
                return None
            sep = "->" if getattr(tok, "originalName", "") == "->" else "."
            member = getattr(op2, "str", "")
            field_const = bool(getattr(getattr(op2, "variable", None), "isConst", False))
            text = f"{receiver[0]}{sep}{member}"
            return text, receiver[1] and field_const, receiver[2] | {member}, receiver[3]

        # ── Array subscript ──────────────────────────────────────────
        if s == "[" and op1 is not None and op2 is not None:
            array = self._render(op1)
            index = self._render(op2)
            if array is None or index is None:
                return None
            return f"{array[0]}[{index[0]}]", False, array[2] | index[2], array[3] or index[3]

        # ── Function call ────────────────────────────────────────────
        if s == "(" and op1 is not None and not getattr(tok, "isCast", False):
            callee = getattr(op1, "str", "")
            if not getattr(op1, "isName", False):
                return None
            args: List[tuple] = []
            for arg in self._call_arguments(op2):
                rendered = self._render(arg)
                if rendered is None:
                    return None
                args.append(rendered)
            stable = self.options.is_pure(callee) and all(a[1] for a in args)
            variables = frozenset().union(*(a[2] for a in args)) if args else frozenset()
            text = f"{callee}({', '.join(a[0] for a in args)})"
            return text, stable, variables, any(a[3] for a in args)

        # ── Unary arithmetic ─────────────────────────────────────────
        if s in _UNARY_OPS and op1 is not None and op2 is None:
            operand = self._render(op1)
            if operand is None:
                return None
            return f"{s}{self._wrap(op1, operand[0])}", operand[1], operand[2], operand[3]

        # ── Binary arithmetic ────────────────────────────────────────
        if s in _BINARY_OPS and op1 is not None and op2 is not None:
            left = self._render(op1)
            right = self._render(op2)
            if left is None or right is None:
                return None
            text = f"{self._wrap(op1, left[0])} {s} {self._wrap(op2, right[0])}"
            return text, left[1] and right[1], left[2] | right[2], left[3] or right[3]

        return None

    def _variable_is_stable(self, variable: Any) -> bool:
        if variable is None:
            return False
        if getattr(variable, "isConst", False):
            return True
        if getattr(variable, "isGlobal", False) or getattr(variable, "isStatic", False):
            return False
        if getattr(variable, "isLocal", False) or getattr(variable, "isArgument", False):
            return self.options.stable_locals
        return False

    @staticmethod
    def _call_arguments(tok: Any) -> List[Any]:
        """Flatten cppcheck's left-leaning ``,`` tree into an argument list."""
        if tok is None:
            return []
        if getattr(tok, "str", "") == ",":
            return (
                TokenCanonicalizer._call_arguments(getattr(tok, "astOperand1", None))
                + TokenCanonicalizer._call_arguments(getattr(tok, "astOperand2", None))
            )
        return [tok]

    @staticmethod
    def _wrap(tok: Any, text: str) -> str:
        """Parenthesise nested arithmetic so the rendering is unambiguous."""
        s = getattr(tok, "str", "")
        has_both = getattr(tok, "astOperand1", None) is not None and getattr(tok, "astOperand2", None) is not None
        if s in _BINARY_OPS and has_both:
            return f"({text})"
        return text
