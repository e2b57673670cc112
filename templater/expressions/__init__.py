"""
Язык выражений внутри тегов: лексер, парсер, модель дерева и вычислитель.
"""

from __future__ import annotations

from .evaluator import Evaluator, get_iterable, get_member, is_truthy, lookup_path, loose_equals
from .lexer import ExpressionLexer, tokenize_expression
from .model import (
    AnyExpression,
    Binary,
    Call,
    Expression,
    ExpressionType,
    Literal,
    Member,
    Unary,
    Variable,
)
from .parser import ExpressionParser, parse_expression

__all__ = [
    "Evaluator",
    "get_iterable",
    "get_member",
    "is_truthy",
    "lookup_path",
    "loose_equals",
    "ExpressionLexer",
    "tokenize_expression",
    "ExpressionParser",
    "parse_expression",
    "AnyExpression",
    "Binary",
    "Call",
    "Expression",
    "ExpressionType",
    "Literal",
    "Member",
    "Unary",
    "Variable",
]
