"""
Lazy loading refresh policy.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

from flagcat.config_cache import ConfigCache
from flagcat.config_json_cache import ConfigJsonCache
from flagcat.fetcher import ConfigFetcher
from flagcat.polling_mode import LazyLoadingMode
from flagcat.refresh_policy import RefreshPolicy


class LazyLoadingPolicy(RefreshPolicy):
    """
    Refreshes on read when the config is older than the refresh interval.

    With use_async_refresh the stale config is returned right away and
    at most one refresh runs in the background.
    """

    def __init__(
        self,
        fetcher: ConfigFetcher,
        cache: Optional[ConfigCache],
        log: Optional[logging.Logger],
        config_json_cache: ConfigJsonCache,
        sdk_key: str,
        mode: LazyLoadingMode,
    ):
        super().__init__(fetcher, cache, log, config_json_cache, sdk_key, mode)
        self._refresh_task: Optional[asyncio.Task] = None

    def _is_expired(self, age_seconds: float) -> bool:
        return age_seconds >= self._mode.cache_refresh_interval_seconds

    async def get_configuration(self) -> Mapping[str, Any]:
        entry = self.current_entry()
        if self._closed:
            return entry.settings

        if entry.is_empty() or self._is_expired(entry.age_seconds()):
            if self._mode.use_async_refresh and not entry.is_empty():
                self._schedule_refresh()
            else:
                await self._fetch()
                entry = self.current_entry()

        return entry.settings

    def _schedule_refresh(self) -> None:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._fetch())

    async def close(self) -> None:
        await super().close()
        if self._refresh_task and not self._refresh_task.done():
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
