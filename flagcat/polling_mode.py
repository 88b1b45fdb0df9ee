"""
Polling modes.

A polling mode is pure data describing how the configuration is
refreshed. The set of modes is closed: RefreshPolicyFactory.visit
handles every variant of the PollingMode union.
"""

from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Union


@dataclass(frozen=True)
class AutoPollingMode:
    """Fetch in the background at a fixed interval."""

    identifier: ClassVar[str] = "a"

    poll_interval_seconds: float = 60  # seconds, minimum 1
    max_init_wait_seconds: int = 5  # seconds the first read waits for the first fetch
    on_config_changed: Optional[Callable[[], None]] = None  # called after a new config is downloaded

    def __post_init__(self):
        if self.poll_interval_seconds < 1:
            object.__setattr__(self, "poll_interval_seconds", 1)
        if self.max_init_wait_seconds < 0:
            object.__setattr__(self, "max_init_wait_seconds", 0)


@dataclass(frozen=True)
class LazyLoadingMode:
    """Fetch on read, when the cached config is older than the refresh interval."""

    identifier: ClassVar[str] = "l"

    cache_refresh_interval_seconds: float = 60  # seconds, minimum 1
    use_async_refresh: bool = False  # serve the stale config while refreshing

    def __post_init__(self):
        if self.cache_refresh_interval_seconds < 1:
            object.__setattr__(self, "cache_refresh_interval_seconds", 1)


@dataclass(frozen=True)
class ManualPollingMode:
    """Fetch only when refresh is requested."""

    identifier: ClassVar[str] = "m"


PollingMode = Union[AutoPollingMode, LazyLoadingMode, ManualPollingMode]


def auto_poll(
    poll_interval_seconds: float = 60,
    max_init_wait_seconds: int = 5,
    on_config_changed: Optional[Callable[[], None]] = None,
) -> AutoPollingMode:
    return AutoPollingMode(
        poll_interval_seconds=poll_interval_seconds,
        max_init_wait_seconds=max_init_wait_seconds,
        on_config_changed=on_config_changed,
    )


def lazy_load(
    cache_refresh_interval_seconds: float = 60, use_async_refresh: bool = False
) -> LazyLoadingMode:
    return LazyLoadingMode(
        cache_refresh_interval_seconds=cache_refresh_interval_seconds,
        use_async_refresh=use_async_refresh,
    )


def manual_poll() -> ManualPollingMode:
    return ManualPollingMode()
