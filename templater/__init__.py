"""
Templater: небольшой шаблонизатор.

Подстановка {{ expr | filter }} с автоэкранированием, {% if %}, {% for %},
{% include %} и наследование через {% block %} / {% extends %}.
"""

from __future__ import annotations

from .cache import TemplateCache
from .compiler import CompiledTemplate, Compiler
from .config import EngineOptions, load_options
from .environment import Environment, create_environment, render
from .errors import (
    ConfigLoadError,
    FilterError,
    NotCallableError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplaterError,
    UndefinedVariableError,
    UnknownFilterError,
)
from .escape import SafeString, ensure_safe, escape_html
from .expressions.evaluator import get_iterable, is_truthy
from .filters import FilterRegistry, HelperRegistry
from .lexer import Delimiters, TemplateLexer
from .loaders import BaseLoader, DictLoader, FileSystemLoader
from .parser import TemplateParser, parse_template
from .plugins import TemplatePlugin
from .utils import UNDEFINED
from .version import tool_version

__version__ = tool_version()

__all__ = [
    "Environment",
    "create_environment",
    "render",
    "EngineOptions",
    "load_options",
    "CompiledTemplate",
    "Compiler",
    "TemplateCache",
    "TemplateLexer",
    "TemplateParser",
    "parse_template",
    "Delimiters",
    "FilterRegistry",
    "HelperRegistry",
    "BaseLoader",
    "DictLoader",
    "FileSystemLoader",
    "TemplatePlugin",
    "SafeString",
    "ensure_safe",
    "escape_html",
    "is_truthy",
    "get_iterable",
    "UNDEFINED",
    "TemplaterError",
    "TemplateSyntaxError",
    "TemplateRuntimeError",
    "UndefinedVariableError",
    "UnknownFilterError",
    "FilterError",
    "NotCallableError",
    "TemplateNotFoundError",
    "ConfigLoadError",
    "__version__",
]
