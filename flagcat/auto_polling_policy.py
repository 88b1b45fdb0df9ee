"""
Auto polling refresh policy.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

from flagcat.config_cache import ConfigCache
from flagcat.config_json_cache import ConfigJsonCache
from flagcat.fetcher import ConfigFetcher
from flagcat.polling_mode import AutoPollingMode
from flagcat.refresh_policy import RefreshPolicy


class AutoPollingPolicy(RefreshPolicy):
    """
    Fetches the config in a background task every poll interval.

    The task starts on the first read (or an explicit start()), since
    constructing a policy must not do any I/O. The first read waits for
    the first fetch at most max_init_wait_seconds.
    """

    def __init__(
        self,
        fetcher: ConfigFetcher,
        cache: Optional[ConfigCache],
        log: Optional[logging.Logger],
        config_json_cache: ConfigJsonCache,
        sdk_key: str,
        mode: AutoPollingMode,
    ):
        super().__init__(fetcher, cache, log, config_json_cache, sdk_key, mode)
        self._poll_task: Optional[asyncio.Task] = None
        self._initialized: Optional[asyncio.Event] = None

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def start(self) -> None:
        """Start background polling. Does nothing if already started or closed."""
        if self._closed or self._poll_task is not None:
            return
        self._initialized = asyncio.Event()
        self._poll_task = asyncio.create_task(self._start_polling())

    async def _start_polling(self) -> None:
        interval = self._mode.poll_interval_seconds

        # A fresh enough cached config postpones the first fetch.
        cached = self.current_entry()
        if not cached.is_empty() and cached.age_seconds() < interval:
            self._initialized.set()
            await asyncio.sleep(interval - cached.age_seconds())

        while not self._closed:
            try:
                await self._fetch()
            except Exception as e:
                self._log.warning(f"Polling error: {e}")
            finally:
                self._initialized.set()

            await asyncio.sleep(interval)

    def _on_config_changed(self) -> None:
        callback = self._mode.on_config_changed
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            self._log.warning(f"Error in on_config_changed callback: {e}")

    async def get_configuration(self) -> Mapping[str, Any]:
        if self._closed:
            return self.current_entry().settings

        self.start()
        if not self._initialized.is_set():
            max_wait = self._mode.max_init_wait_seconds
            try:
                await asyncio.wait_for(self._initialized.wait(), timeout=max_wait)
            except asyncio.TimeoutError:
                self._log.warning(
                    f"max_init_wait_seconds for the very first fetch reached ({max_wait}s). "
                    "Returning cached config."
                )

        return self.current_entry().settings

    async def close(self) -> None:
        """Stop polling and wait for the task to finish."""
        await super().close()
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
