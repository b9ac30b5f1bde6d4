# tests/conftest.py
"""
Shared fixtures and cppcheckdata mock objects.

The mocks mirror the attribute names of ``cppcheckdata.Token``,
``cppcheckdata.Variable``, ``cppcheckdata.Value`` and
``cppcheckdata.ValueType`` closely enough for the canonicaliser, the
ValueFlow oracle and ``node_from_token``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import pytest

from index_inequality import (
    CanonicalExpression,
    FlowStore,
    LessThanHierarchy,
    LessThanTransfer,
    TransferContext,
    TransferOptions,
)


# ── cppcheckdata mocks ───────────────────────────────────────────

@dataclass(eq=False)
class MockValueType:
    type: str = "int"
    sign: str = "signed"
    pointer: int = 0


@dataclass(eq=False)
class MockValue:
    intvalue: Optional[int] = None
    floatValue: Optional[float] = None
    valueKind: str = "possible"
    bound: str = "Point"
    isKnown: bool = False
    isPossible: bool = False


@dataclass(eq=False)
class MockVariable:
    nameToken: Any = None
    isConst: bool = False
    isLocal: bool = False
    isArgument: bool = False
    isGlobal: bool = False
    isStatic: bool = False
    isArray: bool = False
    isPointer: bool = False


@dataclass(eq=False)
class MockToken:
    str: str = ""
    Id: str = "0"
    varId: int = 0
    variable: Optional[MockVariable] = None
    astOperand1: Optional["MockToken"] = None
    astOperand2: Optional["MockToken"] = None
    isName: bool = False
    isNumber: bool = False
    isInt: bool = False
    isFloat: bool = False
    isChar: bool = False
    isBoolean: bool = False
    isOp: bool = False
    isCast: bool = False
    originalName: str = ""
    valueType: Optional[MockValueType] = None
    values: Optional[List[MockValue]] = None
    linenr: int = 1
    file: str = "test.c"


# ── Token builders ───────────────────────────────────────────────

_next_var_id = [100]


def make_var(
    name: str,
    *,
    const: bool = False,
    local: bool = True,
    argument: bool = False,
    glob: bool = False,
    static: bool = False,
    values: Optional[List[MockValue]] = None,
) -> MockToken:
    _next_var_id[0] += 1
    variable = MockVariable(
        isConst=const,
        isLocal=local and not argument and not glob,
        isArgument=argument,
        isGlobal=glob,
        isStatic=static,
    )
    return MockToken(
        str=name,
        varId=_next_var_id[0],
        variable=variable,
        isName=True,
        values=values,
    )


def make_int(text: str) -> MockToken:
    return MockToken(
        str=text,
        isNumber=True,
        isInt=True,
        valueType=MockValueType("long" if text[-1:] in "lL" else "int"),
    )


def make_float(text: str) -> MockToken:
    is_float = text[-1:] in "fF"
    return MockToken(
        str=text,
        isNumber=True,
        isFloat=True,
        valueType=MockValueType("float" if is_float else "double"),
    )


def make_binop(op: str, left: MockToken, right: MockToken, **kwargs: Any) -> MockToken:
    return MockToken(str=op, isOp=True, astOperand1=left, astOperand2=right, **kwargs)


def make_member(receiver: MockToken, member: str, *, const: bool = False, arrow: bool = False) -> MockToken:
    member_tok = make_var(member, const=const, local=False)
    return MockToken(
        str=".",
        originalName="->" if arrow else "",
        astOperand1=receiver,
        astOperand2=member_tok,
    )


def make_call(name: str, *args: MockToken) -> MockToken:
    callee = MockToken(str=name, isName=True)
    arg_tree: Optional[MockToken] = None
    for arg in args:
        arg_tree = arg if arg_tree is None else make_binop(",", arg_tree, arg)
    return MockToken(str="(", astOperand1=callee, astOperand2=arg_tree)


def known(value: int) -> MockValue:
    return MockValue(intvalue=value, valueKind="known", isKnown=True)


def possible(value: int) -> MockValue:
    return MockValue(intvalue=value, valueKind="possible", isPossible=True)


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def hierarchy() -> LessThanHierarchy:
    return LessThanHierarchy()


@pytest.fixture
def empty_store(hierarchy) -> FlowStore:
    return FlowStore(hierarchy=hierarchy)


@pytest.fixture
def engine() -> LessThanTransfer:
    return LessThanTransfer.for_cppcheck(TransferOptions())


@pytest.fixture
def lt(hierarchy):
    """Shorthand: ``lt("a", "b")`` builds ``LessThan({a, b})``."""
    def _lt(*constraints: str):
        return hierarchy.create_less_than(constraints)
    return _lt


def key(text: str) -> CanonicalExpression:
    """Canonical key of a plain variable, as the token canonicaliser builds it."""
    return CanonicalExpression.variable(text)


def context(store: FlowStore, node_values: Optional[dict] = None) -> TransferContext:
    return TransferContext(store=store, node_values=node_values or {})
