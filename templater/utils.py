"""Общие хелперы для значений (маркер неопределённости, строковое представление, чтение файлов)."""

from __future__ import annotations

from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Неопределённое значение
# ---------------------------------------------------------------------------

class Undefined:
    """
    Результат поиска, который ничего не нашёл.

    Ложен, выводится как пустая строка. Существует единственный экземпляр: UNDEFINED.
    """

    _instance: "Undefined | None" = None

    def __new__(cls) -> "Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = Undefined()


def is_nullish(value: Any) -> bool:
    """True для None и UNDEFINED."""
    return value is None or value is UNDEFINED


# ---------------------------------------------------------------------------
# Преобразование для вывода
# ---------------------------------------------------------------------------

def to_string(value: Any) -> str:
    """
    Преобразует значение в форму для вывода в шаблон.

    None и UNDEFINED становятся "", булевы значения становятся "true"/"false".
    """
    if is_nullish(value):
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


# ---------------------------------------------------------------------------
# Ввод-вывод
# ---------------------------------------------------------------------------

def read_file_text(path: Path) -> str:
    """Читает весь файл в UTF-8."""
    with path.open(encoding="utf-8") as f:
        return f.read()


__all__ = ["Undefined", "UNDEFINED", "is_nullish", "to_string", "read_file_text"]
