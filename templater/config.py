"""
Настройки движка и их загрузка из YAML.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .cache import DEFAULT_CAPACITY
from .errors import ConfigLoadError
from .lexer import TAG_START, Delimiters
from .plugins import check_plugin

_yaml = YAML(typ="safe")

CACHE_ENV_VAR = "TEMPLATER_CACHE"

# Ключи файла настроек и ожидаемые типы значений
_FILE_KEYS: Dict[str, type] = {
    "variable_start": str,
    "variable_end": str,
    "auto_escape": bool,
    "strict": bool,
    "cache": bool,
    "cache_size": int,
    "template_dirs": list,
}


@dataclass
class EngineOptions:
    """
    Настройки одного Environment.

    Attributes:
        variable_start: Открывающий маркер сегментов переменных
        variable_end: Закрывающий маркер сегментов переменных
        auto_escape: HTML-экранировать подставляемые значения
        strict: Ошибка на неопределённых переменных, неизвестных фильтрах и отсутствии загрузчика
        cache: Хранить скомпилированные шаблоны в LRU-кеше
        cache_size: Ёмкость этого кеша
        filters: Дополнительные фильтры поверх встроенных
        helpers: Функции, вызываемые из выражений
        template_dirs: Директории поиска для файлового загрузчика по умолчанию
        plugins: Плагины, устанавливаемые после построения реестров
    """
    variable_start: str = "{{"
    variable_end: str = "}}"
    auto_escape: bool = True
    strict: bool = False
    cache: bool = True
    cache_size: int = DEFAULT_CAPACITY
    filters: Dict[str, Callable[..., Any]] = field(default_factory=dict)
    helpers: Dict[str, Callable[..., Any]] = field(default_factory=dict)
    template_dirs: List[Union[str, Path]] = field(default_factory=list)
    plugins: List[Any] = field(default_factory=list)

    def __post_init__(self):
        if not self.variable_start or not self.variable_end:
            raise ValueError("Variable delimiters must be non-empty strings")
        if self.variable_start == TAG_START:
            raise ValueError(f"Variable start marker must differ from the tag marker '{TAG_START}'")
        if isinstance(self.cache_size, bool) or not isinstance(self.cache_size, int) or self.cache_size <= 0:
            raise ValueError(f"cache_size must be a positive integer, got {self.cache_size!r}")
        for plugin in self.plugins:
            check_plugin(plugin)

    @property
    def delimiters(self) -> Delimiters:
        return Delimiters(start=self.variable_start, end=self.variable_end)

    def with_overrides(self, **overrides: Any) -> "EngineOptions":
        """
        Копия с заменой части полей.

        Raises:
            TypeError: При неизвестном имени настройки
        """
        if not overrides:
            return self
        return dataclasses.replace(self, **overrides)


def cache_enabled_from_env() -> Optional[bool]:
    """
    Переключатель кеша из TEMPLATER_CACHE; None, если переменная не задана.

    0/false/no/off (в любом регистре) или пустое значение отключают кеш.
    """
    env = os.environ.get(CACHE_ENV_VAR)
    if env is None:
        return None
    return env.strip().lower() not in {"0", "false", "no", "off", ""}


def load_options(path: Union[str, Path], base: Optional[EngineOptions] = None) -> EngineOptions:
    """
    Читает настройки движка из YAML-файла.

    Ключи из файла переопределяют base (по умолчанию дефолты); относительные
    template_dirs разрешаются относительно директории файла.

    Args:
        path: YAML-файл настроек
        base: Исходные настройки

    Returns:
        Объединённые настройки

    Raises:
        ConfigLoadError: Если файл не читается, не является словарём, содержит
            неизвестные ключи или значения неверного типа
    """
    p = Path(path)
    try:
        raw = _yaml.load(p.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigLoadError(f"Cannot read options file {p}: {e}") from e
    except YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {p}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{p}: options file must be a mapping")

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        expected = _FILE_KEYS.get(str(key))
        if expected is None:
            allowed = ", ".join(sorted(_FILE_KEYS))
            raise ConfigLoadError(f"{p}: unknown option '{key}' (allowed: {allowed})")
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigLoadError(
                f"{p}: option '{key}' must be {expected.__name__}, got {type(value).__name__}"
            )
        values[str(key)] = value

    if "template_dirs" in values:
        dirs = values["template_dirs"]
        if not all(isinstance(d, str) for d in dirs):
            raise ConfigLoadError(f"{p}: template_dirs must be a list of strings")
        values["template_dirs"] = [(p.parent / d) if not Path(d).is_absolute() else Path(d) for d in dirs]

    try:
        return (base or EngineOptions()).with_overrides(**values)
    except ValueError as e:
        raise ConfigLoadError(f"{p}: {e}") from e


__all__ = ["EngineOptions", "load_options", "cache_enabled_from_env", "CACHE_ENV_VAR"]
