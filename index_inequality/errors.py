# index_inequality/errors.py
"""
Error types for the index-inequality shims.

The refinement rules themselves never raise: an operand that cannot be
refined simply leaves the store as it was.  The exceptions below signal
misuse of the API by a driver or an addon (an operator the engine does
not handle, a qualifier built from garbage, a bad option).

Error Hierarchy:
────────────────
    IndexInequalityError (base)
    ├── UnsupportedOperatorError  - node operator outside > >= < <= -
    ├── MalformedQualifierError   - constraint set with non-string members
    └── ConfigurationError        - unknown or ill-typed option

Each error carries a code of the form ``LT-NNNN``:
  - 0001-0999: node / operator errors
  - 1000-1999: qualifier errors
  - 2000-2999: configuration errors

License: MIT
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterable, Optional


class IndexInequalityError(Exception):
    """
    Base exception for all index-inequality errors.

    Attributes
    ----------
    code : str   - stable ``LT-NNNN`` identifier
    hint : str   - optional suggestion shown after the message
    """

    code: ClassVar[str] = "LT-9000"

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text


class UnsupportedOperatorError(IndexInequalityError):
    """A comparison or arithmetic node carries an operator the engine does not handle."""

    code: ClassVar[str] = "LT-0001"

    def __init__(self, operator: str, supported: Optional[Iterable[str]] = None) -> None:
        self.operator = operator
        self.supported = sorted(supported) if supported else []
        hint = ""
        if self.supported:
            hint = f"expected one of: {', '.join(self.supported)}"
        super().__init__(f"Unsupported operator {operator!r}", hint=hint)


class MalformedQualifierError(IndexInequalityError):
    """A LessThan qualifier was requested with a non-string constraint."""

    code: ClassVar[str] = "LT-1000"

    def __init__(self, constraint: Any) -> None:
        self.constraint = constraint
        super().__init__(
            f"LessThan constraints must be expression strings, "
            f"got {type(constraint).__name__}: {constraint!r}"
        )


class ConfigurationError(IndexInequalityError):
    """An option passed to :class:`TransferOptions` is unknown or ill-typed."""

    code: ClassVar[str] = "LT-2000"

    def __init__(self, message: str, key: str = "", hint: str = "") -> None:
        self.key = key
        super().__init__(message, hint=hint)
