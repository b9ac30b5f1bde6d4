# tests/test_canonical_expr.py
"""
Tests for canonical expressions and the cppcheck token canonicaliser:
rendering, literal classification and the stability policy.
"""

import pytest

from index_inequality import (
    CanonicalExpression,
    Canonicalizer,
    LiteralKind,
    TokenCanonicalizer,
    TransferOptions,
    identifiers_in,
)
from tests.conftest import (
    MockToken,
    make_binop,
    make_call,
    make_float,
    make_int,
    make_member,
    make_var,
)


@pytest.fixture
def canon() -> TokenCanonicalizer:
    return TokenCanonicalizer()


class TestCanonicalExpression:

    def test_equality_ignores_stability(self):
        assert CanonicalExpression.of("n", stable=True) == CanonicalExpression.of("n", stable=False)
        assert hash(CanonicalExpression.of("n", stable=True)) == hash(CanonicalExpression.of("n"))

    def test_literal_kind_is_part_of_identity(self):
        assert CanonicalExpression.literal("1", LiteralKind.INT) != CanonicalExpression.of("1")

    def test_of_derives_variables(self):
        e = CanonicalExpression.of("(len - i) * 2")
        assert e.variables == frozenset({"len", "i"})
        assert e.mentions("i")
        assert not e.mentions("j")

    def test_literal_helpers(self):
        f = CanonicalExpression.literal("1.5f", LiteralKind.FLOAT)
        assert f.is_literal
        assert f.is_floating_literal
        assert f.stable
        assert not CanonicalExpression.literal("3").is_floating_literal

    def test_str_is_text(self):
        assert str(CanonicalExpression.variable("n")) == "n"


class TestIdentifiersIn:

    @pytest.mark.parametrize("text,expected", [
        ("x", {"x"}),
        ("x + 1", {"x"}),
        ("len - i", {"len", "i"}),
        ("s.size", {"s", "size"}),
        ("p->len + 10L", {"p", "len"}),
        ("1.5f", set()),
        ("0x1F + a1", {"a1"}),
        ("strlen(buf)", {"strlen", "buf"}),
    ])
    def test_identifiers(self, text, expected):
        assert identifiers_in(text) == frozenset(expected)


class TestLiterals:

    def test_int_literal(self, canon):
        e = canon.canonicalize(make_int("5"))
        assert e.text == "5"
        assert e.literal_kind is LiteralKind.INT
        assert e.stable

    def test_long_literal(self, canon):
        assert canon.canonicalize(make_int("5L")).literal_kind is LiteralKind.LONG

    def test_float_literal(self, canon):
        assert canon.canonicalize(make_float("1.5f")).literal_kind is LiteralKind.FLOAT

    def test_double_literal(self, canon):
        e = canon.canonicalize(make_float("2.0"))
        assert e.literal_kind is LiteralKind.DOUBLE
        assert e.is_floating_literal

    def test_char_and_bool_literals(self, canon):
        assert canon.canonicalize(MockToken(str="'a'", isChar=True)).literal_kind is LiteralKind.CHAR
        assert canon.canonicalize(MockToken(str="true", isBoolean=True)).literal_kind is LiteralKind.BOOL


class TestVariables:

    def test_local_is_stable_by_default(self, canon):
        e = canon.canonicalize(make_var("i"))
        assert e == CanonicalExpression.variable("i")
        assert e.stable
        assert e.variables == frozenset({"i"})

    def test_argument_is_stable_by_default(self, canon):
        assert canon.canonicalize(make_var("n", argument=True)).stable

    def test_locals_unstable_when_option_off(self):
        canon = TokenCanonicalizer(TransferOptions(stable_locals=False))
        assert not canon.canonicalize(make_var("i")).stable
        assert canon.canonicalize(make_var("k", const=True)).stable

    def test_global_is_unstable(self, canon):
        assert not canon.canonicalize(make_var("g", glob=True)).stable

    def test_static_is_unstable(self, canon):
        assert not canon.canonicalize(make_var("s", static=True)).stable

    def test_const_global_is_stable(self, canon):
        assert canon.canonicalize(make_var("N", glob=True, const=True)).stable

    def test_variable_without_symbol_is_unstable(self, canon):
        assert not canon.canonicalize(MockToken(str="x", varId=7, isName=True)).stable


class TestCompound:

    def test_binary_rendering(self, canon):
        e = canon.canonicalize(make_binop("-", make_var("len"), make_var("i")))
        assert e.text == "len - i"
        assert e.stable
        assert e.literal_kind is LiteralKind.NONE

    def test_nested_binary_is_parenthesised(self, canon):
        inner = make_binop("-", make_var("n"), make_int("1"))
        e = canon.canonicalize(make_binop("*", inner, make_int("2")))
        assert e.text == "(n - 1) * 2"

    def test_unstable_operand_taints_expression(self, canon):
        e = canon.canonicalize(make_binop("+", make_var("i"), make_var("g", glob=True)))
        assert not e.stable

    def test_unary_minus(self, canon):
        e = canon.canonicalize(MockToken(str="-", astOperand1=make_var("i")))
        assert e.text == "-i"
        assert e.stable

    def test_const_member_of_stable_receiver(self, canon):
        e = canon.canonicalize(make_member(make_var("s"), "size", const=True))
        assert e.text == "s.size"
        assert e.stable

    def test_mutable_member_is_unstable(self, canon):
        assert not canon.canonicalize(make_member(make_var("s"), "size")).stable

    def test_arrow_member(self, canon):
        e = canon.canonicalize(make_member(make_var("p", argument=True), "len", const=True, arrow=True))
        assert e.text == "p->len"

    def test_subscript_is_never_stable(self, canon):
        e = canon.canonicalize(MockToken(str="[", astOperand1=make_var("a"), astOperand2=make_int("0")))
        assert e.text == "a[0]"
        assert not e.stable

    def test_pure_call(self, canon):
        e = canon.canonicalize(make_call("strlen", make_var("buf")))
        assert e.text == "strlen(buf)"
        assert e.stable

    def test_impure_call(self, canon):
        e = canon.canonicalize(make_call("rand"))
        assert e.text == "rand()"
        assert not e.stable

    def test_configured_pure_call_with_several_arguments(self):
        canon = TokenCanonicalizer(TransferOptions().with_pure_functions("min"))
        e = canon.canonicalize(make_call("min", make_var("a"), make_var("b")))
        assert e.text == "min(a, b)"
        assert e.stable

    def test_cast_is_not_represented(self, canon):
        cast = MockToken(str="(", isCast=True, astOperand1=make_var("x"))
        assert canon.canonicalize(cast) is None

    def test_unknown_shape_is_none(self, canon):
        assert canon.canonicalize(MockToken(str="?")) is None
        assert canon.canonicalize(None) is None

    def test_unrepresentable_operand_propagates_none(self, canon):
        assert canon.canonicalize(make_binop("+", MockToken(str="?"), make_int("1"))) is None

    def test_negated_float_involves_floating(self, canon):
        e = canon.canonicalize(MockToken(str="-", astOperand1=make_float("2.5")))
        assert e.text == "-2.5"
        assert e.literal_kind is LiteralKind.NONE
        assert e.involves_floating

    @pytest.mark.parametrize("tok_builder", [
        lambda: make_binop("*", make_float("1.5"), make_int("2")),
        lambda: make_binop("+", make_var("n"), make_binop("/", make_var("k"), make_float("2.0f"))),
        lambda: make_call("abs", make_float("1.5")),
    ])
    def test_float_anywhere_involves_floating(self, canon, tok_builder):
        assert canon.canonicalize(tok_builder()).involves_floating

    def test_integer_arithmetic_does_not_involve_floating(self, canon):
        e = canon.canonicalize(make_binop("-", make_var("n"), make_int("1")))
        assert not e.involves_floating
        assert not canon.canonicalize(make_int("5")).involves_floating

    def test_deterministic(self, canon):
        a = canon.canonicalize(make_binop("+", make_var("x"), make_int("1")))
        b = canon.canonicalize(make_binop("+", make_var("x"), make_int("1")))
        assert a == b
        assert hash(a) == hash(b)

    def test_satisfies_protocol(self, canon):
        assert isinstance(canon, Canonicalizer)
