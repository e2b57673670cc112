"""
Исключения, которые бросает шаблонизатор.

Все ошибки, на которые может отреагировать автор шаблона или вызывающий код,
наследуются от TemplaterError. Программные ошибки внутри движка не
оборачиваются и распространяются с исходными трассировками.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .tokens import Token


class TemplaterError(Exception):
    """Базовый класс для всех пользовательских ошибок шаблонов."""
    pass


class TemplateSyntaxError(TemplaterError):
    """
    Некорректный шаблон или выражение.

    Бросается при лексическом и синтаксическом анализе; когда она возникает,
    ничего не компилируется и не кешируется.
    """

    def __init__(self, message: str, token: Optional["Token"] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        if token is not None:
            line = token.line if line is None else line
            column = token.column if column is None else column
        location = f" at {line}:{column}" if line is not None else ""
        super().__init__(f"{message}{location}")
        self.message = message
        self.token = token
        self.line = line
        self.column = column


class TemplateRuntimeError(TemplaterError):
    """Сбой при рендеринге скомпилированного шаблона."""
    pass


class UndefinedVariableError(TemplateRuntimeError):
    """Строгий режим: переменная, на которую ссылается шаблон, не определена."""

    def __init__(self, name: str):
        super().__init__(f"Undefined variable: {name}")
        self.name = name


class UnknownFilterError(TemplateRuntimeError):
    """Строгий режим: фильтр, на который ссылается шаблон, не зарегистрирован."""

    def __init__(self, name: str):
        super().__init__(f"Unknown filter: {name}")
        self.name = name


class FilterError(TemplateRuntimeError):
    """Зарегистрированный фильтр упал при обработке значения."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"Filter '{name}' failed: {cause}")
        self.name = name
        self.cause = cause


class NotCallableError(TemplateRuntimeError):
    """Вызываемое в выражении значение не является функцией. Фатальна в любом режиме."""

    def __init__(self, description: str):
        super().__init__(f"Attempting to call non-function: {description}")
        self.description = description


class TemplateNotFoundError(TemplaterError):
    """Загрузчик не смог сопоставить имени шаблона исходный текст."""

    def __init__(self, name: str, searched: Optional[list[str]] = None):
        message = f"Template not found: {name}"
        if searched:
            message += f" (searched: {', '.join(searched)})"
        super().__init__(message)
        self.name = name
        self.searched = list(searched or [])


class ConfigLoadError(TemplaterError, ValueError):
    """Файл настроек движка не читается или содержит некорректные значения."""
    pass


__all__ = [
    "TemplaterError",
    "TemplateSyntaxError",
    "TemplateRuntimeError",
    "UndefinedVariableError",
    "UnknownFilterError",
    "FilterError",
    "NotCallableError",
    "TemplateNotFoundError",
    "ConfigLoadError",
]
