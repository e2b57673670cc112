"""
Общая тестовая инфраструктура templater.

Modules:
- file_utils: Creating template and data files
- rendering_utils: Building environments and rendering in one call
- cli_utils: Running the command-line entry point in-process
"""

from .file_utils import write, write_templates
from .rendering_utils import make_env, render, render_strict, parse
from .cli_utils import run_cli, CliResult

__all__ = [
    # Утилиты для файлов
    "write",
    "write_templates",

    # Утилиты рендеринга
    "make_env",
    "render",
    "render_strict",
    "parse",

    # Утилиты CLI
    "run_cli",
    "CliResult",
]
