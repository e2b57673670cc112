"""
Хелперы для создания окружений и рендеринга шаблонов в тестах.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from templater import DictLoader, Environment
from templater.nodes import TemplateAST
from templater.parser import parse_template


def make_env(templates: Optional[Dict[str, str]] = None, **options: Any) -> Environment:
    """
    Создаёт окружение, при необходимости с загрузчиком из памяти.

    Args:
        templates: Именованные шаблоны для include/extends/render_file
        **options: Поля EngineOptions

    Returns:
        Настроенный Environment
    """
    loader = DictLoader(templates) if templates is not None else None
    return Environment(loader=loader, **options)


def render(source: str, context: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
    """Рендерит source в новом нестрогом окружении."""
    return make_env(**options).render(source, context)


def render_strict(source: str, context: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
    """Рендерит source в новом строгом окружении."""
    return make_env(strict=True, **options).render(source, context)


def parse(source: str) -> TemplateAST:
    return parse_template(source)


__all__ = ["make_env", "render", "render_strict", "parse"]
