"""
Типы токенов, общие для лексера шаблонов и лексера выражений.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Виды токенов обоих лексеров."""

    # Сегменты шаблона
    TEXT = "TEXT"
    TAG = "TAG"                  # {% ... %}
    VARIABLE = "VARIABLE"        # {{ ... }}

    # Токены выражений
    IDENTIFIER = "IDENTIFIER"
    KEYWORD = "KEYWORD"
    NUMBER = "NUMBER"
    STRING = "STRING"
    OPERATOR = "OPERATOR"
    DOT = "DOT"                  # .
    COMMA = "COMMA"              # ,
    PIPE = "PIPE"                # |
    LPAREN = "LPAREN"            # (
    RPAREN = "RPAREN"            # )
    LBRACKET = "LBRACKET"        # [
    RBRACKET = "RBRACKET"        # ]

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """
    Токен с информацией о позиции для диагностики ошибок.
    """
    type: TokenType
    value: str
    position: int        # Смещение в исходном тексте
    line: int            # Строка, с 1
    column: int          # Колонка, с 1

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token"]
