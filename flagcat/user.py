"""
User object used for targeting.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class User:
    """User context for targeting rules and percentage rollouts."""

    identifier: str
    email: Optional[str] = None
    country: Optional[str] = None
    custom: Optional[Dict[str, Any]] = None

    def get_attribute(self, attribute: str) -> Optional[str]:
        """Get an attribute value by its name in the config."""
        if attribute == "Identifier":
            return self.identifier
        if attribute == "Email":
            return self.email
        if attribute == "Country":
            return self.country
        if self.custom and attribute in self.custom:
            value = self.custom[attribute]
            return None if value is None else str(value)
        return None

    def __str__(self) -> str:
        attributes = {"Identifier": self.identifier}
        if self.email is not None:
            attributes["Email"] = self.email
        if self.country is not None:
            attributes["Country"] = self.country
        if self.custom:
            attributes.update({k: str(v) for k, v in self.custom.items()})
        return str(attributes)
