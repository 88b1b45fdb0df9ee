"""Configuration classes for FlagCat SDK."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from flagcat.config_cache import ConfigCache
from flagcat.polling_mode import AutoPollingMode, PollingMode


class DataGovernance(str, Enum):
    """Which CDN region serves the config."""

    GLOBAL = "global"
    EU_ONLY = "eu_only"


@dataclass
class FlagCatOptions:
    """Options for FlagCat client."""

    polling_mode: PollingMode = field(default_factory=AutoPollingMode)
    cache: Optional[ConfigCache] = None  # None keeps configs in memory only
    base_url: Optional[str] = None  # e.g. a proxy
    data_governance: DataGovernance = DataGovernance.GLOBAL  # must match the dashboard setting
    timeout_ms: int = 30000
    logger: Optional[logging.Logger] = None  # default: the "flagcat" logger
