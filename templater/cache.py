"""
Ограниченный LRU-кеш скомпилированных шаблонов с ключом по исходному тексту.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheSnapshot:
    capacity: int
    size: int
    hits: int
    misses: int


class TemplateCache(Generic[K, V]):
    """
    Кеш с вытеснением давно не использованных записей (LRU).

    Чтение делает запись самой свежей; вставка сверх ёмкости вытесняет
    сначала самую давнюю запись. Все операции идут под одной блокировкой,
    поэтому кеш можно делить между конкурентными рендерингами.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: K) -> Optional[V]:
        """Возвращает закешированное значение (делая его свежим) или None."""
        with self._lock:
            if key not in self._entries:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return self._entries[key]

    def set(self, key: K, value: V) -> None:
        """Сохраняет значение; существующий ключ обновляется и становится свежим."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = value
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted template from cache ({len(str(evicted))} chars)")

    def has(self, key: K) -> bool:
        """Проверка наличия; свежесть не меняет."""
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> CacheSnapshot:
        with self._lock:
            return CacheSnapshot(
                capacity=self._capacity,
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
            )

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.size()


__all__ = ["TemplateCache", "CacheSnapshot", "DEFAULT_CAPACITY"]
