"""
Environment: публичная точка входа шаблонизатора.

Владеет настройками, реестрами фильтров и хелперов, загрузчиком и кешем
скомпилированных шаблонов и связывает их в конвейер lexer -> parser -> compiler.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, Mapping, Optional

from .cache import TemplateCache
from .compiler import CompiledTemplate, Compiler
from .config import EngineOptions, cache_enabled_from_env
from .errors import TemplateRuntimeError
from .filters import FilterRegistry, HelperRegistry
from .lexer import TemplateLexer
from .loaders import BaseLoader, FileSystemLoader
from .parser import TemplateParser
from .plugins import install_plugins

logger = logging.getLogger(__name__)


class Environment:
    """
    Экземпляр шаблонизатора.

    Координирует компоненты:
    - TemplateLexer / TemplateParser для синтаксического анализа
    - Compiler для построения замыканий рендеринга
    - TemplateCache для повторного использования скомпилированных шаблонов
    - FilterRegistry / HelperRegistry для функций расширения
    - плагины, устанавливаемые последними
    """

    def __init__(self, options: Optional[EngineOptions] = None, *,
                 loader: Optional[BaseLoader] = None, **overrides: Any):
        """
        Args:
            options: Настройки движка (по умолчанию дефолтные)
            loader: Загрузчик шаблонов для render_file, include и extends
            **overrides: Отдельные поля настроек поверх options
        """
        self.options = (options or EngineOptions()).with_overrides(**overrides)

        self.filters = FilterRegistry(self.options.filters)
        self.helpers = HelperRegistry(self.options.helpers)

        if loader is None and self.options.template_dirs:
            loader = FileSystemLoader(self.options.template_dirs)
        self.loader = loader

        self._init_cache()

        self.compiler = Compiler(
            self.options,
            self.filters,
            self.helpers,
            loader_hook=self.get_template if self.loader is not None else None,
        )

        self.plugins = install_plugins(self, self.options.plugins)

    def _init_cache(self) -> None:
        env = cache_enabled_from_env()
        enabled = self.options.cache if env is None else env
        self._cache: Optional[TemplateCache[Hashable, CompiledTemplate]] = (
            TemplateCache(self.options.cache_size) if enabled else None
        )
        if not enabled:
            logger.debug("Template cache disabled")

    @property
    def cache(self) -> Optional[TemplateCache[Hashable, CompiledTemplate]]:
        """Кеш скомпилированных шаблонов; None, если кеш отключён."""
        return self._cache

    # ------------------------------------------------------------------
    # Компиляция
    # ------------------------------------------------------------------

    def compile(self, source: str) -> CompiledTemplate:
        """
        Компилирует исходный текст, переиспользуя кеш для идентичного текста.

        Raises:
            TemplateSyntaxError: При некорректном исходнике (ничего не кешируется)
        """
        return self._compile_cached(source, source, None)

    def get_template(self, name: str) -> CompiledTemplate:
        """
        Загружает через загрузчик и компилирует именованный шаблон.

        Raises:
            TemplateRuntimeError: Если загрузчик не настроен
            TemplateNotFoundError: Если загрузчик не нашёл шаблон
        """
        source = self._require_loader().get_source(name)
        return self._compile_cached((name, source), source, name)

    def _compile_cached(self, key: Hashable, source: str, name: Optional[str]) -> CompiledTemplate:
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        template = self._compile_source(source, name)

        if self._cache is not None:
            self._cache.set(key, template)
        return template

    def _compile_source(self, source: str, name: Optional[str]) -> CompiledTemplate:
        tokens = TemplateLexer(source, self.options.delimiters).tokenize()
        nodes = TemplateParser(tokens).parse()
        return self.compiler.compile(nodes, source, name)

    def _require_loader(self) -> BaseLoader:
        if self.loader is None:
            raise TemplateRuntimeError("No template loader configured")
        return self.loader

    # ------------------------------------------------------------------
    # Рендеринг
    # ------------------------------------------------------------------

    def render(self, source: str, context: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> str:
        """
        Компилирует (или берёт из кеша) и рендерит строку шаблона.

        Args:
            source: Исходный текст шаблона
            context: Переменные шаблона
            **kwargs: Дополнительные переменные, приоритетнее context

        Returns:
            Отрендеренный текст
        """
        return self.compile(source).render(context, **kwargs)

    def render_file(self, name: str, context: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> str:
        """Рендерит шаблон, найденный загрузчиком."""
        return self.get_template(name).render(context, **kwargs)

    async def render_file_async(self, name: str, context: Optional[Mapping[str, Any]] = None,
                                **kwargs: Any) -> str:
        """
        Как render_file, но загружает исходник, не блокируя цикл событий.

        Асинхронна только загрузка; компиляция и рендеринг выполняются сразу.
        """
        source = await self._require_loader().get_source_async(name)
        return self._compile_cached((name, source), source, name).render(context, **kwargs)

    # ------------------------------------------------------------------
    # Расширение
    # ------------------------------------------------------------------

    def add_filter(self, name: str, function: Callable[..., Any]) -> None:
        """Регистрирует фильтр только для этого окружения."""
        self.filters.add(name, function)

    def add_helper(self, name: str, function: Callable[..., Any]) -> None:
        """Регистрирует хелпер, вызываемый из выражений, только для этого окружения."""
        self.helpers.add(name, function)

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()


_default_environment: Optional[Environment] = None
_default_lock = threading.Lock()


def create_environment(options: Optional[EngineOptions] = None, **overrides: Any) -> Environment:
    """
    Создаёт окружение.

    Args:
        options: Базовые настройки
        **overrides: Поля настроек и/или loader=...

    Returns:
        Новый Environment
    """
    return Environment(options, **overrides)


def _get_default_environment() -> Environment:
    global _default_environment
    with _default_lock:
        if _default_environment is None:
            _default_environment = Environment()
        return _default_environment


def render(source: str, context: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
    """
    Однократный рендеринг.

    Без настроек используется общее окружение по умолчанию (и его кеш);
    с настройками для вызова создаётся отдельное окружение.
    """
    environment = create_environment(**options) if options else _get_default_environment()
    return environment.render(source, context)


__all__ = ["Environment", "create_environment", "render"]
