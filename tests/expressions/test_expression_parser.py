"""
Тесты парсера выражений: приоритеты, ассоциативность и ошибки.
"""

import pytest

from templater.errors import TemplateSyntaxError
from templater.expressions.model import (
    Binary,
    Call,
    ExpressionType,
    Literal,
    Member,
    Unary,
    Variable,
)
from templater.expressions.parser import ExpressionParser


class TestExpressionParser:

    def setup_method(self):
        self.parser = ExpressionParser()

    def test_literals(self):
        assert self.parser.parse("42") == Literal(42)
        assert self.parser.parse("1.5") == Literal(1.5)
        assert self.parser.parse("'text'") == Literal("text")
        assert self.parser.parse("true") == Literal(True)
        assert self.parser.parse("false") == Literal(False)
        assert self.parser.parse("null") == Literal(None)

    def test_variable(self):
        expr = self.parser.parse("user")
        assert expr == Variable("user")
        assert expr.get_type() == ExpressionType.VARIABLE

    def test_multiplication_binds_tighter_than_addition(self):
        expr = self.parser.parse("1 + 2 * 3")
        assert expr == Binary("+", Literal(1), Binary("*", Literal(2), Literal(3)))

    def test_and_binds_tighter_than_or(self):
        expr = self.parser.parse("a or b and c")
        assert expr == Binary("or", Variable("a"), Binary("and", Variable("b"), Variable("c")))

    def test_comparison_binds_tighter_than_equality(self):
        expr = self.parser.parse("a < b == c > d")
        assert expr == Binary(
            "==",
            Binary("<", Variable("a"), Variable("b")),
            Binary(">", Variable("c"), Variable("d")),
        )

    def test_binary_levels_are_left_associative(self):
        expr = self.parser.parse("10 - 3 - 2")
        assert expr == Binary("-", Binary("-", Literal(10), Literal(3)), Literal(2))

    def test_parentheses_override_precedence(self):
        expr = self.parser.parse("(1 + 2) * 3")
        assert expr == Binary("*", Binary("+", Literal(1), Literal(2)), Literal(3))

    def test_unary_operators_are_right_recursive(self):
        assert self.parser.parse("not not a") == Unary("not", Unary("not", Variable("a")))
        assert self.parser.parse("!a") == Unary("!", Variable("a"))
        assert self.parser.parse("-x * 2") == Binary("*", Unary("-", Variable("x")), Literal(2))

    def test_member_access_chain(self):
        expr = self.parser.parse("user.address.city")
        assert expr == Member(Member(Variable("user"), "address"), "city")

    def test_bracket_access_is_literal(self):
        assert self.parser.parse("items[0]") == Member(Variable("items"), "0")
        assert self.parser.parse("data['key']") == Member(Variable("data"), "key")
        assert self.parser.parse("data[key]") == Member(Variable("data"), "key")

    def test_numeric_member_segments(self):
        assert self.parser.parse("rows.0.1") == Member(Member(Variable("rows"), "0"), "1")

    def test_calls(self):
        expr = self.parser.parse("format(name, 2)")
        assert expr == Call(Variable("format"), (Variable("name"), Literal(2)))
        assert self.parser.parse("now()") == Call(Variable("now"), ())

    def test_method_call(self):
        expr = self.parser.parse("user.greet('hi')")
        assert expr == Call(Member(Variable("user"), "greet"), (Literal("hi"),))

    def test_string_form(self):
        assert str(self.parser.parse("a + b * 2")) == "(a + (b * 2))"
        assert str(self.parser.parse("not a.b")) == "not a.b"

    @pytest.mark.parametrize("text, message", [
        ("", "Empty expression"),
        ("1 +", "Unexpected end of expression"),
        ("(a", r"Expected '\)'"),
        ("a[0", r"Expected '\]'"),
        ("a.", "Expected property name"),
        ("a b", "Unexpected token 'b'"),
        ("f(a,", "Unexpected end of expression"),
        (")", r"Unexpected token '\)'"),
    ])
    def test_syntax_errors(self, text, message):
        with pytest.raises(TemplateSyntaxError, match=message):
            self.parser.parse(text)
