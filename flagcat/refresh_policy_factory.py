"""
Selects the refresh policy of a polling mode.
"""

import logging
from typing import Optional

from flagcat.auto_polling_policy import AutoPollingPolicy
from flagcat.config_cache import ConfigCache
from flagcat.config_json_cache import ConfigJsonCache
from flagcat.fetcher import ConfigFetcher
from flagcat.lazy_loading_policy import LazyLoadingPolicy
from flagcat.manual_polling_policy import ManualPollingPolicy
from flagcat.polling_mode import (
    AutoPollingMode,
    LazyLoadingMode,
    ManualPollingMode,
    PollingMode,
)
from flagcat.refresh_policy import RefreshPolicy


class RefreshPolicyFactory:
    """
    Builds the refresh policy for a polling mode, wired with shared dependencies.

    Example:
        ```python
        factory = RefreshPolicyFactory(fetcher, cache, logger, json_cache, sdk_key)
        policy = factory.visit(LazyLoadingMode(cache_refresh_interval_seconds=120))
        ```
    """

    def __init__(
        self,
        fetcher: ConfigFetcher,
        cache: Optional[ConfigCache] = None,
        log: Optional[logging.Logger] = None,
        config_json_cache: Optional[ConfigJsonCache] = None,
        sdk_key: str = "",
    ):
        self._fetcher = fetcher
        self._cache = cache
        self._log = log
        self._config_json_cache = config_json_cache or ConfigJsonCache(log)
        self._sdk_key = sdk_key

    def visit(self, mode: PollingMode) -> RefreshPolicy:
        """
        Create the policy matching the mode.

        Raises:
            TypeError: If the mode is not one of the polling mode variants
        """
        deps = (self._fetcher, self._cache, self._log, self._config_json_cache, self._sdk_key)

        if isinstance(mode, AutoPollingMode):
            return AutoPollingPolicy(*deps, mode)
        if isinstance(mode, LazyLoadingMode):
            return LazyLoadingPolicy(*deps, mode)
        if isinstance(mode, ManualPollingMode):
            return ManualPollingPolicy(*deps, mode)

        raise TypeError(f"Unsupported polling mode: {mode!r}")
