"""
Встроенные фильтры и реестры фильтров и хелперов, принадлежащие окружению.

Фильтр является вызываемым объектом, который первым получает значение из
конвейера, а затем литеральные аргументы из шаблона: {{ price | fixed(2) }}
вызывает fixed(price, 2).
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping, Sequence, Set
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import quote, unquote

from .escape import SafeString, escape_markup, is_safe
from .expressions.evaluator import get_member
from .utils import UNDEFINED, is_nullish, to_string

logger = logging.getLogger(__name__)

FilterFunction = Callable[..., Any]

# Символы, которые encodeURIComponent оставляет как есть
_URI_SAFE = "-_.!~*'()"

_WORD_START_RE = re.compile(r"\b\w")


def _is_list_like(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _to_number(value: Any) -> float | int:
    """Числовое значение входа фильтра; ValueError, если его нет."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if is_nullish(value):
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise ValueError(f"not a number: {value!r}")


# ---------------------------------------------------------------------------
# Текст
# ---------------------------------------------------------------------------

def upper(value: Any) -> str:
    return to_string(value).upper()


def lower(value: Any) -> str:
    return to_string(value).lower()


def capitalize(value: Any) -> str:
    """Первый символ в верхнем регистре, остальные в нижнем."""
    text = to_string(value)
    return text[:1].upper() + text[1:].lower()


def title(value: Any) -> str:
    """Переводит в верхний регистр первый символ каждого слова."""
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), to_string(value))


def trim(value: Any) -> str:
    return to_string(value).strip()


def replace(value: Any, search: Any, replacement: Any = "") -> str:
    """Заменяет каждое буквальное вхождение search."""
    return to_string(value).replace(to_string(search), to_string(replacement))


def split(value: Any, separator: Any = " ") -> list[str]:
    return to_string(value).split(to_string(separator))


def truncate(value: Any, length: int = 100, suffix: str = "...") -> str:
    """
    Укорачивает текст не более чем до length символов, включая suffix.
    """
    text = to_string(value)
    if len(text) <= length:
        return text
    return text[:max(length - len(suffix), 0)] + suffix


def urlencode(value: Any) -> str:
    return quote(to_string(value), safe=_URI_SAFE)


def urldecode(value: Any) -> str:
    return unquote(to_string(value))


# ---------------------------------------------------------------------------
# Коллекции
# ---------------------------------------------------------------------------

def length(value: Any) -> int:
    """Длина строк, последовательностей, множеств и словарей; 0 для прочего."""
    if isinstance(value, (str, Sequence, Set, Mapping)):
        return len(value)
    return 0


def reverse(value: Any) -> Any:
    if isinstance(value, str):
        return value[::-1]
    if _is_list_like(value):
        return list(reversed(value))
    return value


def join(value: Any, separator: Any = ", ") -> str:
    if _is_list_like(value):
        return to_string(separator).join(to_string(item) for item in value)
    return to_string(value)


def first(value: Any) -> Any:
    if isinstance(value, str) or _is_list_like(value):
        return value[0] if len(value) else UNDEFINED
    return value


def last(value: Any) -> Any:
    if isinstance(value, str) or _is_list_like(value):
        return value[-1] if len(value) else UNDEFINED
    return value


def slice_(value: Any, start: int = 0, end: Optional[int] = None) -> Any:
    if isinstance(value, str) or _is_list_like(value):
        return value[start:end]
    return value


def sort(value: Any, key: Optional[str] = None) -> Any:
    """
    Отсортированная копия последовательности; с key элементы упорядочиваются по этому полю.
    """
    if not _is_list_like(value):
        return value
    if key is None:
        return sorted(value)
    return sorted(value, key=lambda item: get_member(item, str(key)))


def unique(value: Any) -> Any:
    """Убирает повторы, сохраняя первые вхождения по порядку."""
    if not _is_list_like(value):
        return value
    result: list[Any] = []
    for item in value:
        if item not in result:
            result.append(item)
    return result


# ---------------------------------------------------------------------------
# Значения
# ---------------------------------------------------------------------------

def default(value: Any, default_value: Any = "") -> Any:
    """Запасное значение для None, неопределённых значений и пустых строк."""
    if is_nullish(value) or value == "":
        return default_value
    return value


def json_(value: Any, indent: Optional[int] = 2) -> str:
    if value is UNDEFINED:
        return ""
    return json.dumps(value, indent=indent or None, ensure_ascii=False, default=str)


def safe(value: Any) -> SafeString:
    if isinstance(value, SafeString):
        return value
    return SafeString(value if is_safe(value) else to_string(value))


# ---------------------------------------------------------------------------
# Числа
# ---------------------------------------------------------------------------

def fixed(value: Any, decimals: int = 2) -> str:
    return f"{_to_number(value):.{int(decimals)}f}"


def percent(value: Any, decimals: int = 0) -> str:
    return f"{_to_number(value) * 100:.{int(decimals)}f}%"


def abs_(value: Any) -> float | int:
    return abs(_to_number(value))


def round_(value: Any) -> int:
    """Округляет половину вверх (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(_to_number(value) + 0.5)


def floor(value: Any) -> int:
    return math.floor(_to_number(value))


def ceil(value: Any) -> int:
    return math.ceil(_to_number(value))


# ---------------------------------------------------------------------------
# Даты
# ---------------------------------------------------------------------------

def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Миллисекунды эпохи
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def date_(value: Any, format: str = "iso") -> str:
    """
    Форматирует дату.

    Принимает объекты datetime/date, строки ISO и миллисекунды эпохи.
    Форматы: iso, date, time, locale или любой шаблон strftime. Значения,
    не являющиеся датами, возвращаются текстом.
    """
    moment = _to_datetime(value)
    if moment is None:
        return to_string(value)

    if format == "date":
        return moment.strftime("%a %b %d %Y")
    if format == "time":
        return moment.strftime("%H:%M:%S")
    if format == "locale":
        return moment.strftime("%c")
    if "%" in format:
        return moment.strftime(format)
    return moment.isoformat()


BUILTIN_FILTERS: Dict[str, FilterFunction] = {
    "upper": upper,
    "lower": lower,
    "capitalize": capitalize,
    "title": title,
    "trim": trim,
    "length": length,
    "reverse": reverse,
    "join": join,
    "replace": replace,
    "split": split,
    "default": default,
    "json": json_,
    "first": first,
    "last": last,
    "fixed": fixed,
    "percent": percent,
    "abs": abs_,
    "round": round_,
    "floor": floor,
    "ceil": ceil,
    "urlencode": urlencode,
    "urldecode": urldecode,
    "safe": safe,
    "escape": escape_markup,
    "truncate": truncate,
    "slice": slice_,
    "sort": sort,
    "unique": unique,
    "date": date_,
}


# ---------------------------------------------------------------------------
# Реестры
# ---------------------------------------------------------------------------

class _FunctionRegistry(Mapping):
    """
    Отображение имя -> функция, принадлежащее одному окружению.

    Изменяется только через add(); поиск идёт через интерфейс Mapping.
    """

    kind = "function"

    def __init__(self, functions: Optional[Mapping[str, Callable[..., Any]]] = None):
        self._functions: Dict[str, Callable[..., Any]] = {}
        for name, function in (functions or {}).items():
            self.add(name, function)

    def add(self, name: str, function: Callable[..., Any]) -> None:
        """
        Регистрирует (или заменяет) функцию под именем.

        Raises:
            TypeError: Если function не вызываемая
            ValueError: Если имя пустое
        """
        if not name:
            raise ValueError(f"{self.kind.capitalize()} name must not be empty")
        if not callable(function):
            raise TypeError(f"{self.kind.capitalize()} '{name}' must be callable")
        if name in self._functions:
            logger.debug(f"Replacing {self.kind} '{name}'")
        self._functions[name] = function

    def names(self) -> list[str]:
        return sorted(self._functions)

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._functions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.names()})"


class FilterRegistry(_FunctionRegistry):
    """Фильтры одного окружения; начинается с копии встроенных."""

    kind = "filter"

    def __init__(self, filters: Optional[Mapping[str, FilterFunction]] = None,
                 include_builtins: bool = True):
        super().__init__(BUILTIN_FILTERS if include_builtins else None)
        for name, function in (filters or {}).items():
            self.add(name, function)


class HelperRegistry(_FunctionRegistry):
    """Функции, вызываемые из выражений, например {% if is_admin(user) %}."""

    kind = "helper"


__all__ = ["BUILTIN_FILTERS", "FilterFunction", "FilterRegistry", "HelperRegistry"]
