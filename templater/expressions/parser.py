"""
Парсер выражений методом рекурсивного спуска с подъёмом по приоритетам.

Грамматика (от слабого связывания к сильному):
expression     → or_expr
or_expr        → and_expr ("or" and_expr)*
and_expr       → equality ("and" equality)*
equality       → comparison (("==" | "!=") comparison)*
comparison     → additive (("<" | "<=" | ">" | ">=") additive)*
additive       → multiplicative (("+" | "-") multiplicative)*
multiplicative → unary (("*" | "/" | "%") unary)*
unary          → ("-" | "!" | "not") unary | postfix
postfix        → primary ("." NAME | "[" KEY "]" | "(" arguments? ")")*
primary        → NUMBER | STRING | "true" | "false" | "null" | IDENTIFIER | "(" expression ")"
"""

from __future__ import annotations

from typing import List, Optional

from .lexer import ExpressionLexer
from .model import Binary, Call, Expression, Literal, Member, Unary, Variable
from ..errors import TemplateSyntaxError
from ..tokens import Token, TokenType


class ExpressionParser:
    """
    Парсер выражений.

    Каждый бинарный уровень левоассоциативен: операнды сворачиваются, пока
    текущий токен относится к операторам этого уровня.
    """

    # Бинарные уровни от слабого связывания к сильному
    _BINARY_LEVELS = (
        (TokenType.KEYWORD, ("or",)),
        (TokenType.KEYWORD, ("and",)),
        (TokenType.OPERATOR, ("==", "!=")),
        (TokenType.OPERATOR, ("<", "<=", ">", ">=")),
        (TokenType.OPERATOR, ("+", "-")),
        (TokenType.OPERATOR, ("*", "/", "%")),
    )

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[Token] = []
        self._position = 0

    def parse(self, text: str, line: int = 1, column: int = 1) -> Expression:
        """
        Парсит строку выражения.

        Args:
            text: Исходный текст выражения
            line: Строка охватывающего сегмента (для диагностики)
            column: Колонка охватывающего сегмента (для диагностики)

        Returns:
            Корень дерева выражения

        Raises:
            TemplateSyntaxError: При любой синтаксической ошибке
        """
        return self.parse_tokens(self.lexer.tokenize(text, line, column))

    def parse_tokens(self, tokens: List[Token]) -> Expression:
        """
        Парсит полный список токенов; лишние токены в конце являются ошибкой.
        """
        self._tokens = tokens
        self._position = 0

        if self._is_at_end():
            raise TemplateSyntaxError("Empty expression", self._current_token())

        result = self._parse_expression()

        if not self._is_at_end():
            current = self._current_token()
            raise TemplateSyntaxError(f"Unexpected token '{current.value}'", current)

        return result

    def _parse_expression(self) -> Expression:
        return self._parse_binary(0)

    def _parse_binary(self, level: int) -> Expression:
        """Парсит бинарные операторы одного уровня приоритета."""
        if level >= len(self._BINARY_LEVELS):
            return self._parse_unary()

        token_type, operators = self._BINARY_LEVELS[level]
        left = self._parse_binary(level + 1)

        while True:
            operator = self._match(token_type, *operators)
            if operator is None:
                break
            right = self._parse_binary(level + 1)
            left = Binary(operator=operator.value, left=left, right=right)

        return left

    def _parse_unary(self) -> Expression:
        """Парсит префиксные операторы (правая рекурсия)."""
        operator = self._match(TokenType.KEYWORD, "not") or self._match(TokenType.OPERATOR, "-", "!")
        if operator is not None:
            return Unary(operator=operator.value, argument=self._parse_unary())

        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        """Парсит доступ к членам и вызовы после первичного выражения."""
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.DOT):
                name = self._consume_any(
                    (TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.NUMBER),
                    "Expected property name after '.'",
                )
                # Хвост "items.0.1" лексер отдаёт одним числовым токеном
                for part in name.value.split("."):
                    expr = Member(object=expr, property=part)
            elif self._match(TokenType.LBRACKET):
                key = self._consume_any(
                    (TokenType.IDENTIFIER, TokenType.STRING, TokenType.NUMBER),
                    "Expected property name inside '[ ]'",
                )
                self._consume(TokenType.RBRACKET, "Expected ']'")
                expr = Member(object=expr, property=key.value)
            elif self._match(TokenType.LPAREN):
                arguments: List[Expression] = []
                if not self._check(TokenType.RPAREN):
                    arguments.append(self._parse_expression())
                    while self._match(TokenType.COMMA):
                        arguments.append(self._parse_expression())
                self._consume(TokenType.RPAREN, "Expected ')' after arguments")
                expr = Call(callee=expr, arguments=tuple(arguments))
            else:
                break

        return expr

    def _parse_primary(self) -> Expression:
        """Парсит литералы, переменные и выражения в скобках."""
        token = self._match(TokenType.NUMBER)
        if token is not None:
            return Literal(value=parse_number(token.value))

        token = self._match(TokenType.STRING)
        if token is not None:
            return Literal(value=token.value)

        if self._match(TokenType.KEYWORD, "true"):
            return Literal(value=True)
        if self._match(TokenType.KEYWORD, "false"):
            return Literal(value=False)
        if self._match(TokenType.KEYWORD, "null"):
            return Literal(value=None)

        token = self._match(TokenType.IDENTIFIER)
        if token is not None:
            return Variable(name=token.value)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "Expected ')' after grouped expression")
            return expr

        current = self._current_token()
        if current.type == TokenType.EOF:
            raise TemplateSyntaxError("Unexpected end of expression", current)
        raise TemplateSyntaxError(f"Unexpected token '{current.value}'", current)

    # Вспомогательные методы для работы с токенами

    def _current_token(self) -> Token:
        if self._position >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else None
            return Token(TokenType.EOF, "", len(self._tokens),
                         last.line if last else 1, last.column if last else 1)
        return self._tokens[self._position]

    def _is_at_end(self) -> bool:
        return self._current_token().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current_token().type == token_type

    def _advance(self) -> Token:
        current = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return current

    def _match(self, token_type: TokenType, *values: str) -> Optional[Token]:
        """Потребляет текущий токен, если он нужного типа (и с одним из значений)."""
        current = self._current_token()
        if current.type != token_type:
            return None
        if values and current.value not in values:
            return None
        return self._advance()

    def _consume(self, token_type: TokenType, error_message: str) -> Token:
        token = self._match(token_type)
        if token is None:
            raise TemplateSyntaxError(error_message, self._current_token())
        return token

    def _consume_any(self, token_types: tuple, error_message: str) -> Token:
        for token_type in token_types:
            token = self._match(token_type)
            if token is not None:
                return token
        raise TemplateSyntaxError(error_message, self._current_token())


def parse_number(text: str) -> int | float:
    return float(text) if "." in text else int(text)


def parse_expression(text: str) -> Expression:
    """
    Удобная функция для парсинга строки выражения.

    Raises:
        TemplateSyntaxError: При любой синтаксической ошибке
    """
    return ExpressionParser().parse(text)


__all__ = ["ExpressionParser", "parse_expression", "parse_number"]
