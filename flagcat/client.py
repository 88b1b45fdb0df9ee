"""
FlagCat client for feature flag evaluation.
"""

import logging
from typing import Any, Dict, List, Optional

from flagcat.config import FlagCatOptions
from flagcat.config_json_cache import ConfigJsonCache
from flagcat.config_parser import ConfigParser, KeyValue
from flagcat.errors import ParserError
from flagcat.evaluator import RolloutEvaluator
from flagcat.fetcher import ConfigFetcher
from flagcat.refresh_policy import RefreshPolicy, RefreshResult
from flagcat.refresh_policy_factory import RefreshPolicyFactory
from flagcat.user import User

logger = logging.getLogger("flagcat")


class FlagCatClient:
    """
    FlagCat feature flag client.

    Example:
        ```python
        client = FlagCatClient("your-sdk-key", FlagCatOptions(polling_mode=lazy_load()))

        if await client.get_value("my-feature", False, User("user-123")):
            # Feature is enabled
            pass

        await client.close()
        ```
    """

    def __init__(self, sdk_key: str, options: Optional[FlagCatOptions] = None):
        """
        Initialize the FlagCat client.

        Args:
            sdk_key: SDK key of the config
            options: Client options

        Raises:
            ValueError: If the SDK key is empty
        """
        if not sdk_key:
            raise ValueError("sdk_key cannot be empty")

        self._options = options or FlagCatOptions()
        self._log = self._options.logger or logger
        self._closed = False

        mode = self._options.polling_mode
        config_json_cache = ConfigJsonCache(self._log)
        self._fetcher = ConfigFetcher(
            sdk_key,
            mode.identifier,
            config_json_cache,
            base_url=self._options.base_url,
            data_governance=self._options.data_governance,
            timeout_ms=self._options.timeout_ms,
            log=self._log,
        )
        self._parser = ConfigParser(self._log, RolloutEvaluator())
        self._policy = RefreshPolicyFactory(
            self._fetcher,
            self._options.cache,
            self._log,
            config_json_cache,
            sdk_key,
        ).visit(mode)

    @property
    def refresh_policy(self) -> RefreshPolicy:
        return self._policy

    async def get_value(self, key: str, default_value: Any, user: Optional[User] = None) -> Any:
        """
        Get the value of a setting.

        The requested type is the type of default_value. Any evaluation
        error is logged and default_value returned.

        Args:
            key: The setting key
            default_value: Returned when the value cannot be evaluated
            user: Optional user for targeting
        """
        if self._closed:
            self._log.warning("Client is already closed. Returning default value.")
            return default_value

        value_type = object if default_value is None else type(default_value)
        settings = await self._policy.get_configuration()
        try:
            return self._parser.get_value(key, settings, user, value_type)
        except ParserError as e:
            self._log.error(f"Returning default value for '{key}': {e.message}")
            return default_value

    async def get_variation_id(
        self, key: str, default_variation_id: Optional[str], user: Optional[User] = None
    ) -> Optional[str]:
        """Get the variation id of a setting, or default_variation_id on error."""
        if self._closed:
            self._log.warning("Client is already closed. Returning default variation id.")
            return default_variation_id

        settings = await self._policy.get_configuration()
        try:
            return self._parser.get_variation_id(key, settings, user)
        except ParserError as e:
            self._log.error(f"Returning default variation id for '{key}': {e.message}")
            return default_variation_id

    async def get_all_keys(self) -> List[str]:
        """Get all setting keys."""
        if self._closed:
            return []
        settings = await self._policy.get_configuration()
        return list(settings.keys())

    async def get_all_variation_ids(self, user: Optional[User] = None) -> List[str]:
        """Get the variation ids of all settings."""
        if self._closed:
            return []
        settings = await self._policy.get_configuration()
        return self._parser.get_all_variation_ids(settings, user)

    async def get_all_values(self, user: Optional[User] = None) -> Dict[str, Any]:
        """Get the values of all settings."""
        if self._closed:
            return {}
        settings = await self._policy.get_configuration()
        return self._parser.get_all_values(settings, user)

    async def get_key_and_value(self, variation_id: str) -> Optional[KeyValue]:
        """Get the key and value belonging to a variation id, or None."""
        if self._closed:
            return None
        settings = await self._policy.get_configuration()
        try:
            return self._parser.get_key_and_value(variation_id, settings)
        except ParserError:
            return None

    async def force_refresh(self) -> RefreshResult:
        """Fetch the latest config now."""
        return await self._policy.refresh()

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        if self._closed:
            return
        self._closed = True
        await self._policy.close()
        await self._fetcher.close()

    async def __aenter__(self) -> "FlagCatClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
