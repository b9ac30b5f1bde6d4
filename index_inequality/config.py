# index_inequality/config.py
"""
Options for the less-than refinement engine.

Addons hand options around as a plain dict (the checker framework's
``CheckerContext.options``); :meth:`TransferOptions.from_mapping` turns
that dict into a frozen, validated value that every collaborator reads.

Options
───────
  stable_locals          - treat local variables and arguments as stable
                           (other code cannot reassign them; the driver
                           invalidates facts on the procedure's own
                           assignments).  Default True.
  pure_functions         - callee names whose calls are deterministic and
                           side-effect free, e.g. ``strlen``.
  trust_possible_values  - let the ValueFlow oracle use ``possible`` values
                           as lower bounds, not just ``known`` ones.
                           Default False.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, FrozenSet, Mapping, Optional

from index_inequality.errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_PURE_FUNCTIONS: FrozenSet[str] = frozenset({
    "abs",
    "labs",
    "llabs",
    "strlen",
    "strnlen",
    "wcslen",
    "sizeof",
})


@dataclass(frozen=True)
class TransferOptions:
    """Validated, immutable option set shared by canonicaliser, oracle and engine."""

    stable_locals: bool = True
    pure_functions: FrozenSet[str] = field(default=DEFAULT_PURE_FUNCTIONS)
    trust_possible_values: bool = False

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> TransferOptions:
        """
        Build options from a plain mapping.

        Unknown keys and ill-typed values raise :class:`ConfigurationError`
        so that a typo in an addon's option dict does not silently fall
        back to a default.
        """
        if not options:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs: dict = {}
        for key, value in options.items():
            if key not in known:
                raise ConfigurationError(
                    f"Unknown option {key!r}",
                    key=key,
                    hint=f"known options: {', '.join(sorted(known))}",
                )
            if key == "pure_functions":
                if isinstance(value, str) or not hasattr(value, "__iter__"):
                    raise ConfigurationError(
                        f"Option 'pure_functions' expects a collection of names, "
                        f"got {type(value).__name__}",
                        key=key,
                    )
                names = frozenset(value)
                if not all(isinstance(n, str) for n in names):
                    raise ConfigurationError(
                        "Option 'pure_functions' must only contain strings",
                        key=key,
                    )
                kwargs[key] = names
            else:
                if not isinstance(value, bool):
                    raise ConfigurationError(
                        f"Option {key!r} expects a bool, got {type(value).__name__}",
                        key=key,
                    )
                kwargs[key] = value

        opts = cls(**kwargs)
        logger.debug("Transfer options: %r", opts)
        return opts

    def with_pure_functions(self, *names: str) -> TransferOptions:
        """Return a copy with ``names`` added to the pure-function set."""
        return TransferOptions(
            stable_locals=self.stable_locals,
            pure_functions=self.pure_functions | frozenset(names),
            trust_possible_values=self.trust_possible_values,
        )

    def is_pure(self, callee: str) -> bool:
        return callee in self.pure_functions
