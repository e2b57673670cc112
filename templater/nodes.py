"""
Узлы AST разобранного шаблона.

Неизменяемые классы узлов образуют замкнутый набор; компилятор явно
обрабатывает каждый подкласс TemplateNode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .expressions.model import Expression


@dataclass(frozen=True)
class TemplateNode:
    """Базовый класс для всех узлов AST шаблона."""
    pass


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """Литеральный текст, выводимый как есть."""
    text: str


@dataclass(frozen=True)
class FilterCall:
    """
    Одно применение фильтра внутри сегмента переменной.

    Аргументы только литеральные: числа, строки, булевы значения, null
    или голый идентификатор, который берётся как собственное имя.
    """
    name: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class VariableNode(TemplateNode):
    """
    Подстановка {{ name | filter(args) | ... }}.

    Имя является путём через точки; фильтры применяются слева направо.
    """
    name: str
    filters: Tuple[FilterCall, ...] = ()


@dataclass(frozen=True)
class ElifBlock:
    """Одна ветка {% elif %}."""
    condition: Expression
    body: Tuple[TemplateNode, ...]


@dataclass(frozen=True)
class IfNode(TemplateNode):
    """
    Условие {% if %} ... {% elif %} ... {% else %} ... {% endif %}.

    Рендерится не более одной ветки: первая с истинным условием,
    иначе else_body (None, если else отсутствует).
    """
    condition: Expression
    body: Tuple[TemplateNode, ...]
    elif_blocks: Tuple[ElifBlock, ...] = ()
    else_body: Optional[Tuple[TemplateNode, ...]] = None


@dataclass(frozen=True)
class ForNode(TemplateNode):
    """Цикл {% for target[, index_var] in iterable %} ... {% endfor %}; index_var получает индекс с 0."""
    target: str
    iterable: Expression
    body: Tuple[TemplateNode, ...]
    index_var: Optional[str] = None


@dataclass(frozen=True)
class IncludeNode(TemplateNode):
    """{% include "name" %}"""
    template: str


@dataclass(frozen=True)
class BlockNode(TemplateNode):
    """Именованная переопределяемая область {% block name %} ... {% endblock %}."""
    name: str
    body: Tuple[TemplateNode, ...]


@dataclass(frozen=True)
class ExtendsNode(TemplateNode):
    """{% extends "parent" %}"""
    parent: str


# Алиас для списка узлов (AST)
TemplateAST = List[TemplateNode]


__all__ = [
    "TemplateNode",
    "TextNode",
    "FilterCall",
    "VariableNode",
    "ElifBlock",
    "IfNode",
    "ForNode",
    "IncludeNode",
    "BlockNode",
    "ExtendsNode",
    "TemplateAST",
]
