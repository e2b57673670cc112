"""
Плагины окружения.

Плагин получает готовое окружение (реестры фильтров и хелперов уже
построены) и расширяет его: добавляет фильтры, хелперы и т.п.
Подходит любой объект с атрибутом name и методом install(environment).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, List

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


class TemplatePlugin(ABC):
    """
    Базовый интерфейс для плагинов шаблонизатора.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Возвращает имя плагина."""
        pass

    @abstractmethod
    def install(self, environment: "Environment") -> None:
        """
        Расширяет окружение.

        Args:
            environment: Окружение с уже построенными реестрами
        """
        pass


def check_plugin(plugin: Any) -> None:
    """
    Проверяет, что объект похож на плагин.

    Raises:
        TypeError: Если нет имени или вызываемого install
    """
    if not isinstance(getattr(plugin, "name", None), str):
        raise TypeError(f"Plugin must have a string 'name', got {plugin!r}")
    if not callable(getattr(plugin, "install", None)):
        raise TypeError(f"Plugin '{plugin.name}' has no callable install()")


def install_plugins(environment: "Environment", plugins: Iterable[Any]) -> List[Any]:
    """
    Устанавливает плагины в порядке перечисления.

    Args:
        environment: Окружение, которое расширяют плагины
        plugins: Плагины

    Returns:
        Установленные плагины

    Raises:
        ValueError: Если плагин с таким именем уже установлен
    """
    installed: List[Any] = []
    for plugin in plugins:
        check_plugin(plugin)
        if any(p.name == plugin.name for p in installed):
            raise ValueError(f"Plugin '{plugin.name}' already registered")

        logger.debug(f"Installing plugin '{plugin.name}'")
        plugin.install(environment)
        installed.append(plugin)

    return installed


__all__ = ["TemplatePlugin", "check_plugin", "install_plugins"]
