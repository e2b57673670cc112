"""
Утилиты для создания файлов и директорий в тестах.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict


def write(p: Path, text: str) -> Path:
    """
    Записывает текст в файл, при необходимости создавая родительские директории.

    Args:
        p: Путь к файлу
        text: Записываемое содержимое

    Returns:
        Путь к созданному файлу
    """
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def write_templates(root: Path, templates: Dict[str, str]) -> Path:
    """Записывает несколько файлов шаблонов в root; возвращает root."""
    for name, text in templates.items():
        write(root / name, text)
    return root


__all__ = ["write", "write_templates"]
