"""
Лексер для выражений внутри тегов и сегментов переменных.

Разбивает содержимое одного сегмента на токены:
- Ключевые слова (if, for, in, and, or, not, true, false, null, ...)
- Идентификаторы
- Числа и строки в кавычках
- Операторы и пунктуация
- Пробелы (игнорируются)
"""

from __future__ import annotations

import re
from typing import List

from ..errors import TemplateSyntaxError
from ..tokens import Token, TokenType


_ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


class ExpressionLexer:
    """
    Лексер, превращающий содержимое сегмента в токены выражения.

    Спецификации токенов проверяются по порядку; побеждает первое совпадение.
    """

    # Спецификация токенов: (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r'\s+', 'WHITESPACE', True),

        (r'\d+(?:\.\d+)?', TokenType.NUMBER, False),
        (r'"(?:[^"\\]|\\.)*"', TokenType.STRING, False),
        (r"'(?:[^'\\]|\\.)*'", TokenType.STRING, False),

        # Двухсимвольные операторы проверяем раньше односимвольных
        (r'==|!=|<=|>=', TokenType.OPERATOR, False),
        (r'[=!<>+\-*/%]', TokenType.OPERATOR, False),

        (r'\.', TokenType.DOT, False),
        (r',', TokenType.COMMA, False),
        (r'\|', TokenType.PIPE, False),
        (r'\(', TokenType.LPAREN, False),
        (r'\)', TokenType.RPAREN, False),
        (r'\[', TokenType.LBRACKET, False),
        (r'\]', TokenType.RBRACKET, False),

        # Ключевые слова определяем после захвата
        (r'[A-Za-z_][A-Za-z0-9_]*', TokenType.IDENTIFIER, False),

        (r'["\']', 'UNTERMINATED', False),
        (r'.', 'UNKNOWN', False),
    ]

    KEYWORDS = frozenset({
        'if', 'else', 'elif', 'endif',
        'for', 'endfor', 'in',
        'block', 'endblock', 'extends', 'include',
        'true', 'false', 'null',
        'and', 'or', 'not',
    })

    def __init__(self):
        self._compiled_patterns = [
            (re.compile(pattern, re.DOTALL), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str, line: int = 1, column: int = 1) -> List[Token]:
        """
        Разбивает выражение на токены.

        Args:
            text: Содержимое сегмента
            line: Строка сегмента в шаблоне (для диагностики)
            column: Колонка сегмента в шаблоне (для диагностики)

        Returns:
            Список токенов, завершающийся EOF

        Raises:
            TemplateSyntaxError: При незакрытой строке или неизвестном символе
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if token_type == 'UNTERMINATED':
                    raise TemplateSyntaxError(
                        f"Unterminated string in expression '{text}'",
                        line=line, column=column + position,
                    )
                if token_type == 'UNKNOWN':
                    raise TemplateSyntaxError(
                        f"Unexpected character {value!r} in expression '{text}'",
                        line=line, column=column + position,
                    )

                if not ignore:
                    tokens.append(self._make_token(token_type, value, position, line, column))

                position = match.end()
                break

        tokens.append(Token(TokenType.EOF, "", position, line, column + position))
        return tokens

    def _make_token(self, token_type: TokenType, value: str, position: int,
                    line: int, column: int) -> Token:
        if token_type == TokenType.IDENTIFIER and value in self.KEYWORDS:
            token_type = TokenType.KEYWORD
        elif token_type == TokenType.STRING:
            value = _ESCAPE_RE.sub(r'\1', value[1:-1])
        return Token(token_type, value, position, line, column + position)


def tokenize_expression(text: str) -> List[Token]:
    """Удобная обёртка над ExpressionLexer."""
    return ExpressionLexer().tokenize(text)


__all__ = ["ExpressionLexer", "tokenize_expression"]
