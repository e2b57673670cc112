"""
Лексический анализатор исходного текста шаблона.

Разбивает исходник на плоский поток сегментов TEXT, TAG и VARIABLE.
Теги всегда используют фиксированные маркеры {% %}; маркеры переменных настраиваются.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

TAG_START = "{%"
TAG_END = "%}"


@dataclass(frozen=True)
class Delimiters:
    """Открывающий и закрывающий маркеры сегментов переменных."""
    start: str = "{{"
    end: str = "}}"


DEFAULT_DELIMITERS = Delimiters()


class TemplateLexer:
    """
    Лексер шаблонов.

    В каждой позиции проверяет по порядку: начало тега, начало переменной,
    иначе собирает литеральный текст до следующего маркера или конца ввода.

    Сегмент без закрывающего маркера поглощает остаток ввода как своё
    содержимое.
    """

    def __init__(self, text: str, delimiters: Optional[Delimiters] = None):
        self.text = text
        self.delimiters = delimiters or DEFAULT_DELIMITERS
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)

    def tokenize(self) -> List[Token]:
        """
        Токенизирует весь исходник и возвращает токены сегментов.

        Returns:
            Список токенов TEXT/TAG/VARIABLE, завершённый токеном EOF
        """
        tokens: List[Token] = []

        while self.position < self.length:
            tokens.append(self.next_token())

        tokens.append(Token(TokenType.EOF, "", self.position, self.line, self.column))

        logger.debug(f"Tokenized template of length {self.length} into {len(tokens)} tokens")
        return tokens

    def next_token(self) -> Token:
        """Извлекает следующий сегмент из ввода."""
        if self._starts_with(TAG_START):
            return self._read_segment(TokenType.TAG, TAG_START, TAG_END)

        if self._starts_with(self.delimiters.start):
            return self._read_segment(TokenType.VARIABLE, self.delimiters.start, self.delimiters.end)

        return self._read_text()

    def _read_segment(self, token_type: TokenType, start: str, end: str) -> Token:
        """Читает сегмент {% ... %} или {{ ... }} и сохраняет его обрезанное содержимое."""
        start_pos, start_line, start_column = self.position, self.line, self.column

        self._advance(len(start))

        end_pos = self.text.find(end, self.position)
        if end_pos == -1:
            # Незакрытый сегмент: остаток ввода становится его содержимым
            logger.debug(f"Unclosed {token_type.name} segment at {start_line}:{start_column}")
            end_pos = self.length

        content = self.text[self.position:end_pos]
        self._advance(len(content))
        self._advance(len(end))

        return Token(token_type, content.strip(), start_pos, start_line, start_column)

    def _read_text(self) -> Token:
        """Собирает литеральный текст дословно до следующего маркера."""
        start_pos, start_line, start_column = self.position, self.line, self.column

        text_end = self._find_next_marker()
        value = self.text[self.position:text_end]
        self._advance(len(value))

        return Token(TokenType.TEXT, value, start_pos, start_line, start_column)

    def _find_next_marker(self) -> int:
        """Позиция ближайшего маркера тега или переменной, либо конец ввода."""
        candidates = [
            pos for pos in (
                self.text.find(TAG_START, self.position),
                self.text.find(self.delimiters.start, self.position),
            )
            if pos != -1
        ]
        return min(candidates) if candidates else self.length

    def _starts_with(self, marker: str) -> bool:
        return self.text.startswith(marker, self.position)

    def _advance(self, count: int) -> None:
        """
        Сдвигает позицию вперёд, обновляя номера строки и колонки.
        """
        for _ in range(count):
            if self.position >= self.length:
                break
            if self.text[self.position] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1


def tokenize_template(text: str, delimiters: Optional[Delimiters] = None) -> List[Token]:
    """
    Удобная обёртка над TemplateLexer.

    Args:
        text: Исходный текст шаблона
        delimiters: Разделители переменных (по умолчанию {{ }})

    Returns:
        Список токенов сегментов, завершающийся EOF
    """
    return TemplateLexer(text, delimiters).tokenize()


__all__ = ["Delimiters", "DEFAULT_DELIMITERS", "TemplateLexer", "tokenize_template", "TAG_START", "TAG_END"]
