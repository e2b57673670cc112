"""
Загрузчики шаблонов: сопоставляют имени шаблона его исходный текст.

Используются Environment.render_file, {% include %} и {% extends %}.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

from .errors import TemplateNotFoundError
from .utils import read_file_text

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class BaseLoader(ABC):
    """Сопоставляет именам шаблонов исходный текст."""

    @abstractmethod
    def get_source(self, name: str) -> str:
        """
        Возвращает исходный текст шаблона.

        Raises:
            TemplateNotFoundError: Если имя не удаётся разрешить
        """
        pass

    async def get_source_async(self, name: str) -> str:
        """Загружает исходник в рабочем потоке."""
        return await asyncio.to_thread(self.get_source, name)


class DictLoader(BaseLoader):
    """Шаблоны в памяти по именам."""

    def __init__(self, templates: Mapping[str, str]):
        self.templates = dict(templates)

    def get_source(self, name: str) -> str:
        try:
            return self.templates[name]
        except KeyError:
            raise TemplateNotFoundError(name) from None


class FileSystemLoader(BaseLoader):
    """
    Загружает шаблоны из файлов.

    Порядок поиска: абсолютный путь читается напрямую, относительное имя
    пробуется в каждой директории поиска, затем в текущей рабочей директории.
    """

    def __init__(self, search_path: Optional[Iterable[PathLike]] = None):
        self.search_path: List[Path] = [Path(p) for p in (search_path or [])]

    def get_source(self, name: str) -> str:
        path = self.find(name)
        logger.debug(f"Loading template '{name}' from {path}")
        return read_file_text(path)

    def find(self, name: str) -> Path:
        """
        Находит файл шаблона.

        Raises:
            TemplateNotFoundError: Если файл не найден ни в одном месте
        """
        candidate = Path(name)
        if candidate.is_absolute():
            if candidate.is_file():
                return candidate
            raise TemplateNotFoundError(name, [str(candidate)])

        searched = []
        for directory in self._directories():
            path = directory / candidate
            if path.is_file():
                return path
            searched.append(str(path))

        raise TemplateNotFoundError(name, searched)

    def _directories(self) -> List[Path]:
        # cwd вычисляется при каждом поиске и всегда идёт последней
        cwd = Path.cwd()
        dirs = list(self.search_path)
        if cwd not in dirs:
            dirs.append(cwd)
        return dirs


__all__ = ["BaseLoader", "DictLoader", "FileSystemLoader"]
