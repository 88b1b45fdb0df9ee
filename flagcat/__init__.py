"""
FlagCat Python SDK - feature flags and remote configuration.

Usage:
    from flagcat import FlagCatClient, FlagCatOptions, User, lazy_load

    client = FlagCatClient("your-sdk-key", FlagCatOptions(polling_mode=lazy_load()))

    if await client.get_value("my-feature", False, User("user-123")):
        # Feature is enabled
        pass
"""

from flagcat.constants import SDK_VERSION
from flagcat.client import FlagCatClient
from flagcat.config import DataGovernance, FlagCatOptions
from flagcat.user import User
from flagcat.polling_mode import (
    PollingMode,
    AutoPollingMode,
    LazyLoadingMode,
    ManualPollingMode,
    auto_poll,
    lazy_load,
    manual_poll,
)
from flagcat.refresh_policy import RefreshPolicy, RefreshResult, get_cache_key
from flagcat.refresh_policy_factory import RefreshPolicyFactory
from flagcat.auto_polling_policy import AutoPollingPolicy
from flagcat.lazy_loading_policy import LazyLoadingPolicy
from flagcat.manual_polling_policy import ManualPollingPolicy
from flagcat.config_parser import ConfigParser, KeyValue, ValueKind
from flagcat.evaluator import EvaluationResult, RolloutEvaluator
from flagcat.config_cache import (
    ConfigCache,
    NullConfigCache,
    InMemoryConfigCache,
    FileConfigCache,
    CacheStats,
)
from flagcat.config_json_cache import ConfigEntry, ConfigJsonCache
from flagcat.fetcher import ConfigFetcher, FetchResponse, FetchStatus
from flagcat.errors import (
    FlagCatError,
    AuthenticationError,
    NetworkError,
    InternalError,
    ParserError,
    InvalidRequestedTypeError,
    ParseFailureError,
    ErrorCategory,
)

__version__ = SDK_VERSION
__all__ = [
    # Client
    "FlagCatClient",
    "FlagCatOptions",
    "DataGovernance",
    "User",
    # Polling modes
    "PollingMode",
    "AutoPollingMode",
    "LazyLoadingMode",
    "ManualPollingMode",
    "auto_poll",
    "lazy_load",
    "manual_poll",
    # Refresh policies
    "RefreshPolicy",
    "RefreshResult",
    "RefreshPolicyFactory",
    "AutoPollingPolicy",
    "LazyLoadingPolicy",
    "ManualPollingPolicy",
    "get_cache_key",
    # Parsing and evaluation
    "ConfigParser",
    "KeyValue",
    "ValueKind",
    "EvaluationResult",
    "RolloutEvaluator",
    # Cache
    "ConfigCache",
    "NullConfigCache",
    "InMemoryConfigCache",
    "FileConfigCache",
    "CacheStats",
    "ConfigEntry",
    "ConfigJsonCache",
    # Fetcher
    "ConfigFetcher",
    "FetchResponse",
    "FetchStatus",
    # Errors
    "FlagCatError",
    "AuthenticationError",
    "NetworkError",
    "InternalError",
    "ParserError",
    "InvalidRequestedTypeError",
    "ParseFailureError",
    "ErrorCategory",
]
