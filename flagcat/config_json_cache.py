"""
Parsed configuration snapshots and the JSON parsing memo used by the policies.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from flagcat import constants

logger = logging.getLogger("flagcat")

_EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class ConfigEntry:
    """
    An immutable, complete configuration snapshot.

    Policies swap whole entries, so a reader holding an entry never sees
    fields from two different fetches.
    """

    config: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_MAPPING)
    etag: Optional[str] = None
    fetch_time: float = 0.0
    json_string: str = ""

    @property
    def settings(self) -> Mapping[str, Any]:
        """Settings map (flag key -> setting descriptor)."""
        settings = self.config.get(constants.FEATURE_FLAGS)
        if not isinstance(settings, Mapping):
            return _EMPTY_MAPPING
        return MappingProxyType(settings)

    @property
    def preferences(self) -> Mapping[str, Any]:
        preferences = self.config.get(constants.PREFERENCES)
        if not isinstance(preferences, Mapping):
            return _EMPTY_MAPPING
        return preferences

    def is_empty(self) -> bool:
        return not self.json_string

    def age_seconds(self) -> float:
        return time.time() - self.fetch_time

    def with_fetch_time(self, fetch_time: float) -> "ConfigEntry":
        return ConfigEntry(
            config=self.config,
            etag=self.etag,
            fetch_time=fetch_time,
            json_string=self.json_string,
        )

    def serialize(self) -> str:
        """Serialize the entry for a ConfigCache."""
        return json.dumps(
            {
                "fetch_time": self.fetch_time,
                "etag": self.etag,
                "config": self.json_string,
            }
        )

    @classmethod
    def from_cache_string(cls, text: str, json_cache: "ConfigJsonCache") -> "ConfigEntry":
        """
        Restore an entry written by serialize().

        Raises:
            ValueError: If the cached text is not a valid entry
        """
        data = json.loads(text)
        if not isinstance(data, dict) or not isinstance(data.get("config"), str):
            raise ValueError("Cached entry has an unexpected shape")

        config = json_cache.get_config_from_json(data["config"])
        if config is None:
            raise ValueError("Cached entry holds an invalid config json")

        return cls(
            config=config,
            etag=data.get("etag"),
            fetch_time=float(data.get("fetch_time", 0)),
            json_string=data["config"],
        )


EMPTY_ENTRY = ConfigEntry()


class ConfigJsonCache:
    """
    Parses config json strings, memoizing the last distinct document.

    Fetches that return the same text (304 aside) reuse the already
    parsed mapping instead of decoding it again.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger
        self._last: Tuple[Optional[str], Optional[Mapping[str, Any]]] = (None, None)

    def get_config_from_json(self, json_string: str) -> Optional[Mapping[str, Any]]:
        """
        Parse a config json string.

        Returns:
            The parsed config, or None if the text is not a json object
        """
        last_text, last_config = self._last
        if last_text is not None and last_text == json_string:
            return last_config

        try:
            config = json.loads(json_string)
        except ValueError as e:
            self._log.error(f"Config JSON parsing failed: {e}")
            return None

        if not isinstance(config, dict):
            self._log.error("Config JSON parsing failed: the document is not an object")
            return None

        self._last = (json_string, config)
        return config

    def create_entry(self, json_string: str, etag: Optional[str] = None) -> Optional[ConfigEntry]:
        """Build a fresh snapshot from a fetched json string."""
        config = self.get_config_from_json(json_string)
        if config is None:
            return None
        return ConfigEntry(
            config=config,
            etag=etag,
            fetch_time=time.time(),
            json_string=json_string,
        )
