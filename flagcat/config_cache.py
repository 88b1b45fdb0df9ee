"""
Config cache backends.

A cache stores serialized config entries under a key derived from the
SDK key and the polling mode, see RefreshPolicy.cache_key.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional


class ConfigCache(ABC):
    """Key-value persistence boundary for serialized config entries."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the cached value for the key, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under the key."""


class NullConfigCache(ConfigCache):
    """Used when no persistent cache is configured."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        pass


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    size: int = 0


class InMemoryConfigCache(ConfigCache):
    """Process-local cache, shared between clients that are given the same instance."""

    def __init__(self):
        self._store: Dict[str, str] = {}
        self._stats = CacheStats()

    def get(self, key: str) -> Optional[str]:
        value = self._store.get(key)
        if value is None:
            self._stats.misses += 1
        else:
            self._stats.hits += 1
        return value

    def set(self, key: str, value: str) -> None:
        self._store[key] = value
        self._stats.writes += 1
        self._stats.size = len(self._store)

    def clear(self) -> None:
        """Clear all cached data."""
        self._store.clear()
        self._stats.size = 0

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            writes=self._stats.writes,
            size=self._stats.size,
        )

    def get_hit_rate(self) -> float:
        """Get hit rate (hits / (hits + misses))."""
        total = self._stats.hits + self._stats.misses
        if total == 0:
            return 0.0
        return self._stats.hits / total


class FileConfigCache(ConfigCache):
    """
    Persists each entry in its own file inside a directory.

    Writes go to a temporary file first and are moved into place, so a
    concurrent reader sees either the old or the new file.
    """

    def __init__(self, directory: str):
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
