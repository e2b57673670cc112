"""
HTML-экранирование и пометка безопасных строк.

Каждое значение, попадающее в вывод шаблона, ровно один раз проходит через
ensure_safe; значения с __html__ (SafeString и любой markupsafe.Markup) уже
окончательны и выводятся без изменений.
"""

from __future__ import annotations

from typing import Any

from markupsafe import Markup, escape

from .utils import to_string


# markupsafe кодирует кавычки числовыми ссылками; в выводе нужны эти формы
_ENTITY_FIXUPS = (
    ("&#34;", "&quot;"),
    ("&#39;", "&#x27;"),
)


class SafeString(Markup):
    """
    Строка, помеченная как окончательный вывод: повторно не экранируется.
    """
    __slots__ = ()


def _escape_markup_text(text: str) -> str:
    """Экранирует & < > " ' через markupsafe и приводит сущности кавычек."""
    result = str(escape(text))
    for numeric, named in _ENTITY_FIXUPS:
        result = result.replace(numeric, named)
    return result


def escape_html(text: str) -> str:
    """Экранирует & < > " ' / как HTML-сущности."""
    return _escape_markup_text(text).replace("/", "&#x2F;")


def escape_markup(value: Any) -> SafeString:
    """
    Экранирует & < > " ' (без '/') и помечает результат безопасным.

    Используется явным фильтром escape; безопасное значение возвращается как есть.
    """
    if isinstance(value, SafeString):
        return value
    if is_safe(value):
        return SafeString(value.__html__())
    return SafeString(_escape_markup_text(to_string(value)))


def is_safe(value: Any) -> bool:
    return hasattr(value, "__html__")


def ensure_safe(value: Any, auto_escape: bool) -> str:
    """
    Преобразует значение в окончательную форму для вывода.

    Args:
        value: Значение, полученное из переменной и её фильтров
        auto_escape: Нужно ли HTML-экранировать небезопасные значения

    Returns:
        Текст для вывода
    """
    if is_safe(value):
        return str(value.__html__())

    text = to_string(value)
    return escape_html(text) if auto_escape else text


__all__ = ["SafeString", "escape_html", "escape_markup", "is_safe", "ensure_safe"]
