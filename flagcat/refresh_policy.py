"""
Base refresh policy.

A refresh policy owns the config snapshot of one client: it decides
when to fetch, writes fetched entries to the cache and hands the
settings map to readers.
"""

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from flagcat import constants
from flagcat.config_cache import ConfigCache, NullConfigCache
from flagcat.config_json_cache import EMPTY_ENTRY, ConfigEntry, ConfigJsonCache
from flagcat.fetcher import ConfigFetcher, FetchResponse
from flagcat.polling_mode import PollingMode

logger = logging.getLogger("flagcat")


@dataclass
class RefreshResult:
    """Result of a refresh request."""

    success: bool
    error: Optional[str] = None


def get_cache_key(sdk_key: str, mode_identifier: str) -> str:
    """
    Derive the cache key of a config.

    The SDK key, the polling mode and the schema version are all part of
    the key, so no combination reads a payload stored by another one.
    """
    raw = f"python_{constants.CONFIG_FILE_NAME}_{mode_identifier}_{sdk_key}_{constants.SCHEMA_VERSION}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class RefreshPolicy(ABC):
    """
    Shared state and cache handling of the refresh policies.

    The current snapshot is an immutable ConfigEntry replaced by a single
    assignment, so concurrent readers see either the previous or the new
    config, never a mix of both.
    """

    def __init__(
        self,
        fetcher: ConfigFetcher,
        cache: Optional[ConfigCache],
        log: Optional[logging.Logger],
        config_json_cache: ConfigJsonCache,
        sdk_key: str,
        mode: PollingMode,
    ):
        self._fetcher = fetcher
        self._cache = cache if cache is not None else NullConfigCache()
        self._log = log or logger
        self._config_json_cache = config_json_cache
        self._sdk_key = sdk_key
        self._mode = mode
        self._cache_key = get_cache_key(sdk_key, mode.identifier)
        self._entry: ConfigEntry = EMPTY_ENTRY
        self._closed = False

    @property
    def fetcher(self) -> ConfigFetcher:
        return self._fetcher

    @property
    def cache(self) -> ConfigCache:
        return self._cache

    @property
    def logger(self) -> logging.Logger:
        return self._log

    @property
    def config_json_cache(self) -> ConfigJsonCache:
        return self._config_json_cache

    @property
    def sdk_key(self) -> str:
        return self._sdk_key

    @property
    def mode(self) -> PollingMode:
        return self._mode

    @property
    def cache_key(self) -> str:
        return self._cache_key

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def get_configuration(self) -> Mapping[str, Any]:
        """Return the settings map readers should evaluate against."""

    async def refresh(self) -> RefreshResult:
        """Fetch the config now."""
        if self._closed:
            return RefreshResult(success=False, error="The client is already closed.")

        response = await self._fetch()
        if response.is_failed:
            message = response.error.message if response.error else "Fetch failed"
            return RefreshResult(success=False, error=message)
        return RefreshResult(success=True)

    async def close(self) -> None:
        """Stop background work. Safe to call more than once."""
        self._closed = True

    def current_entry(self) -> ConfigEntry:
        """The latest snapshot, falling back to the cache while nothing is in memory."""
        if self._entry.is_empty():
            cached = self._read_cache()
            if not cached.is_empty():
                self._entry = cached
        return self._entry

    async def _fetch(self) -> FetchResponse:
        response = await self._fetcher.fetch(self.current_entry().etag)

        # Concurrent callers share one response; the first one stores it.
        latest = self._entry
        if response.is_fetched:
            if response.entry is latest:
                return response
            changed = response.entry.json_string != latest.json_string
            self._set_entry(response.entry)
            if changed:
                self._on_config_changed()
        elif response.is_not_modified and not latest.is_empty():
            self._set_entry(latest.with_fetch_time(time.time()))

        return response

    def _on_config_changed(self) -> None:
        """Hook called after a fetch replaced the config with a different one."""

    def _set_entry(self, entry: ConfigEntry) -> None:
        self._entry = entry
        try:
            self._cache.set(self._cache_key, entry.serialize())
        except Exception as e:
            self._log.error(f"Error writing config to cache: {e}")

    def _read_cache(self) -> ConfigEntry:
        try:
            text = self._cache.get(self._cache_key)
            if not text:
                return EMPTY_ENTRY
            return ConfigEntry.from_cache_string(text, self._config_json_cache)
        except Exception as e:
            self._log.error(f"Error reading config from cache: {e}")
            return EMPTY_ENTRY
