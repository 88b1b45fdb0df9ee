"""
Manual polling refresh policy.
"""

from typing import Any, Mapping

from flagcat.refresh_policy import RefreshPolicy


class ManualPollingPolicy(RefreshPolicy):
    """Never fetches on its own; the config only changes on refresh()."""

    async def get_configuration(self) -> Mapping[str, Any]:
        return self.current_entry().settings
