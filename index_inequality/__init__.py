"""
index_inequality — LessThan refinement for Cppcheck addons
==========================================================

This package provides the "less-than" part of an index-safety analysis:
an abstract qualifier recording facts of the form ``value < e``, its
lattice, and the transfer rules that derive such facts from
comparisons and subtractions.  The surrounding dataflow driver (CFG,
worklist, fixpoint) is supplied by the caller.

Core modules
------------
canonical_expr
    Canonical expressions (store keys) and the cppcheck token canonicaliser.
qualifiers
    The LessThan qualifier, ⊤ / ⊥, subtyping and join.
store
    Persistent flow store mapping expressions to qualifiers.
value_oracle
    Lower bounds from cppcheck ValueFlow (or a fixed table).
nodes
    Comparison and subtraction node shapes.
transfer
    The refinement engine.
config
    Engine options.
errors
    API-misuse exceptions.

Quick start
-----------
::

    from index_inequality import (
        FlowStore, LessThanTransfer, TransferContext, node_from_token,
    )

    engine = LessThanTransfer.for_cppcheck()
    # tok is the AST root of `x > y` in a cppcheck dump
    result = engine.visit(node_from_token(tok), TransferContext(FlowStore()))
    result.then_store.get(engine.canonicalizer.canonicalize(tok.astOperand2))
    # LessThan({x})

Package layout
--------------
::

    index_inequality/
    ├── __init__.py            ← this file
    ├── canonical_expr.py
    ├── config.py
    ├── errors.py
    ├── nodes.py
    ├── qualifiers.py
    ├── store.py
    ├── transfer.py
    └── value_oracle.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "index-inequality contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_re-export)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "IndexInequalityError",
        "UnsupportedOperatorError",
        "MalformedQualifierError",
        "ConfigurationError",
    ],
    "config": [
        "TransferOptions",
        "DEFAULT_PURE_FUNCTIONS",
    ],
    "canonical_expr": [
        "CanonicalExpression",
        "Canonicalizer",
        "LiteralKind",
        "TokenCanonicalizer",
        "identifiers_in",
    ],
    "qualifiers": [
        "LessThanQualifier",
        "LessThanHierarchy",
        "QualifierKind",
        "TOP",
        "BOTTOM",
    ],
    "store": [
        "FlowStore",
    ],
    "value_oracle": [
        "ValueOracle",
        "ValueFlowOracle",
        "StaticBoundsOracle",
    ],
    "nodes": [
        "ComparisonNode",
        "SubtractionNode",
        "node_from_token",
    ],
    "transfer": [
        "LessThanTransfer",
        "TransferContext",
        "TransferResult",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"index_inequality: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"index_inequality.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    # index_inequality.store.FlowStore works as well as index_inequality.FlowStore
    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

# ---------------------------------------------------------------------------
# Package-level utilities
# ---------------------------------------------------------------------------


def list_submodules() -> List[str]:
    """Return the names of all submodules in the package."""
    return sorted(_CORE_MODULES)


def package_info() -> dict:
    """Metadata about the package, for addon logging/diagnostics."""
    loaded = [m for m in list_submodules() if f"{__name__}.{m}" in sys.modules]
    return {
        "package": __name__,
        "version": __version__,
        "python": sys.version,
        "loaded_submodules": loaded,
        "all_exports": list(__all__),
    }


__all__ += ["list_submodules", "package_info", "__version__"]

if TYPE_CHECKING:
    from .canonical_expr import (
        CanonicalExpression as CanonicalExpression,
        Canonicalizer as Canonicalizer,
        LiteralKind as LiteralKind,
        TokenCanonicalizer as TokenCanonicalizer,
        identifiers_in as identifiers_in,
    )
    from .config import (
        DEFAULT_PURE_FUNCTIONS as DEFAULT_PURE_FUNCTIONS,
        TransferOptions as TransferOptions,
    )
    from .errors import (
        ConfigurationError as ConfigurationError,
        IndexInequalityError as IndexInequalityError,
        MalformedQualifierError as MalformedQualifierError,
        UnsupportedOperatorError as UnsupportedOperatorError,
    )
    from .nodes import (
        ComparisonNode as ComparisonNode,
        SubtractionNode as SubtractionNode,
        node_from_token as node_from_token,
    )
    from .qualifiers import (
        BOTTOM as BOTTOM,
        TOP as TOP,
        LessThanHierarchy as LessThanHierarchy,
        LessThanQualifier as LessThanQualifier,
        QualifierKind as QualifierKind,
    )
    from .store import FlowStore as FlowStore
    from .transfer import (
        LessThanTransfer as LessThanTransfer,
        TransferContext as TransferContext,
        TransferResult as TransferResult,
    )
    from .value_oracle import (
        StaticBoundsOracle as StaticBoundsOracle,
        ValueFlowOracle as ValueFlowOracle,
        ValueOracle as ValueOracle,
    )
