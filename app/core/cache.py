# app/core/cache.py
"""
Cache en memoria con expiración (TTL) e invalidación por origen o patrón.

La cache es local al proceso: cada instancia del servidor mantiene la suya y no
hay invalidación entre instancias. Después de un sync solo se limpia la cache
del proceso que lo ejecutó; las demás instancias pueden servir contenido viejo
hasta que venza el TTL de sus entradas (consistencia eventual).
"""

import inspect
import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Pattern, Tuple, TypeVar, Union

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60


class CacheSource(str, Enum):
    DATABASE = "database"
    JSON = "json"


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    ttl: float
    source: CacheSource

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


@dataclass
class CacheHit(Generic[T]):
    data: T
    source: CacheSource
    from_cache: bool = True


@dataclass
class CacheStats:
    total_entries: int
    hit_count: int
    miss_count: int
    hit_rate: int


# La factory devuelve una tupla (data, source)
FactoryResult = Tuple[Any, Union[CacheSource, str]]
Factory = Callable[[], Union[FactoryResult, Awaitable[FactoryResult]]]


class TTLCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        time_func: Callable[[], float] = time.time,
    ):
        self.default_ttl = default_ttl
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self._lock = threading.RLock()
        self._time_func = time_func
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CacheHit[Any]]:
        """Retorna la entrada si existe y no venció. Las vencidas se borran al leer."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._time_func()):
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return CacheHit(data=entry.data, source=entry.source)

    def set(
        self,
        key: str,
        data: Any,
        source: Union[CacheSource, str] = CacheSource.DATABASE,
        ttl: Optional[float] = None,
    ) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                data=data,
                timestamp=self._time_func(),
                ttl=ttl if ttl else self.default_ttl,
                source=CacheSource(source),
            )

    def has(self, key: str) -> bool:
        """Igual que get() pero sin tocar las estadísticas."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._time_func()):
                del self._entries[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def invalidate_by_source(self, source: Union[CacheSource, str]) -> int:
        source = CacheSource(source)
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.source == source]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def invalidate_by_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            keys = [key for key in self._entries if regex.search(key)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def cleanup(self) -> int:
        """Barre todas las entradas vencidas y retorna cuántas se eliminaron."""
        with self._lock:
            now = self._time_func()
            keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                total_entries=len(self._entries),
                hit_count=self._hits,
                miss_count=self._misses,
                hit_rate=round(self._hits / total * 100) if total > 0 else 0,
            )

    def get_or_set(self, key: str, factory: Callable[[], FactoryResult], ttl: Optional[float] = None) -> CacheHit[Any]:
        """
        Retorna la entrada cacheada o llama a la factory una sola vez y guarda su resultado.
        No hay deduplicación entre llamadas concurrentes para la misma clave.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        data, source = factory()
        self.set(key, data, source, ttl)
        return CacheHit(data=data, source=CacheSource(source), from_cache=False)

    async def get_or_set_async(self, key: str, factory: Factory, ttl: Optional[float] = None) -> CacheHit[Any]:
        cached = self.get(key)
        if cached is not None:
            return cached

        result = factory()
        if inspect.isawaitable(result):
            result = await result
        data, source = result
        self.set(key, data, source, ttl)
        return CacheHit(data=data, source=CacheSource(source), from_cache=False)


class CacheKeys:
    """Constructores de claves para que todos usen el mismo formato."""

    @staticmethod
    def page(page_id: str) -> str:
        return f"page:{page_id}"

    @staticmethod
    def pages(filters: Optional[str] = None) -> str:
        return f"pages:{filters}" if filters else "pages"

    @staticmethod
    def json_page(filename: str) -> str:
        return f"json-page:{filename}"

    @staticmethod
    def content(kind: str, item_id: str) -> str:
        return f"content:{kind}:{item_id}"


PAGE_KEY_PATTERNS = (r"^page:", r"^pages(:|$)", r"^json-page:")
CONTENT_KEY_PATTERN = r"^content:"
