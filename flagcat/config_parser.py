"""
Turns a settings map into typed values.

The parser asks the rollout evaluator for a value or variation id and
coerces the result to the kind the caller requested. It also maps
variation ids back to their key and value for analytics.
"""

import logging
import types
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union, get_args, get_origin

from flagcat import constants
from flagcat.errors import InvalidRequestedTypeError, ParseFailureError
from flagcat.evaluator import EvaluationResult, RolloutEvaluator
from flagcat.user import User

logger = logging.getLogger("flagcat")

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))


class ValueKind(str, Enum):
    """The closed set of value kinds a caller may request."""

    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    FLAG = "flag"
    OPAQUE = "opaque"

    @classmethod
    def from_type(cls, value_type: Any) -> "ValueKind":
        """
        Map a Python type (or its Optional form) to a value kind.

        Raises:
            InvalidRequestedTypeError: For any other type
        """
        if get_origin(value_type) in _UNION_TYPES:
            args = [arg for arg in get_args(value_type) if arg is not type(None)]
            if len(args) == 1:
                value_type = args[0]

        for candidate, kind in _TYPE_KINDS:
            if value_type is candidate:
                return kind
        raise InvalidRequestedTypeError()

    def coerce(self, value: Any) -> Any:
        """
        Convert an evaluated value to this kind.

        Raises:
            TypeError: If the value does not have this kind
        """
        if self is ValueKind.OPAQUE:
            return value
        if self is ValueKind.FLAG and isinstance(value, bool):
            return value
        if self is ValueKind.TEXT and isinstance(value, str):
            return value
        if self is ValueKind.INTEGER and isinstance(value, int) and not isinstance(value, bool):
            return value
        if self is ValueKind.REAL and isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise TypeError(f"{type(value).__name__} value {value!r} is not of kind {self.value}")


_TYPE_KINDS = (
    (str, ValueKind.TEXT),
    (int, ValueKind.INTEGER),
    (float, ValueKind.REAL),
    (bool, ValueKind.FLAG),
    (object, ValueKind.OPAQUE),
    (Any, ValueKind.OPAQUE),
)


class KeyValue(NamedTuple):
    """A setting key with one of its values."""

    key: str
    value: Any


class ConfigParser:
    """
    Evaluates settings maps into typed values.

    The parser holds no state besides its logger and evaluator. The
    settings map passed to an operation must not be mutated while the
    call runs.
    """

    def __init__(self, log: Optional[logging.Logger] = None, evaluator: Optional[RolloutEvaluator] = None):
        self._log = log or logger
        self._evaluator = evaluator or RolloutEvaluator()

    def get_value(
        self,
        key: str,
        settings: Mapping[str, Any],
        user: Optional[User] = None,
        value_type: Any = object,
    ) -> Any:
        """
        Evaluate the value of a setting.

        Args:
            key: The setting key
            settings: The settings map
            user: Optional user for targeting
            value_type: str, int, float, bool, object/Any or their Optional form

        Returns:
            The evaluated value, coerced to value_type

        Raises:
            InvalidRequestedTypeError: If value_type is not supported
            ParseFailureError: If the value could not be evaluated
        """
        try:
            kind = ValueKind.from_type(value_type)
        except InvalidRequestedTypeError as e:
            self._log.error(e.message)
            raise

        result = self._evaluate(key, settings, user)
        if result.value is None:
            self._log.error(
                f"Evaluating the value for the key '{key}' failed. "
                f"Here are the available keys: {list(settings.keys())}"
            )
            raise ParseFailureError(f"Evaluating the value for the key '{key}' failed.")

        try:
            return kind.coerce(result.value)
        except TypeError as e:
            self._log.error(f"Evaluating the value for the key '{key}' failed: {e}")
            raise ParseFailureError(f"The value of '{key}' is not of kind {kind.value}.") from e

    def get_variation_id(
        self,
        key: str,
        settings: Mapping[str, Any],
        user: Optional[User] = None,
    ) -> str:
        """
        Evaluate the variation id of a setting.

        Raises:
            ParseFailureError: If the variation id could not be evaluated
        """
        result = self._evaluate(key, settings, user)
        if result.variation_id is None:
            self._log.error(
                f"Evaluating the variation id for the key '{key}' failed. "
                f"Here are the available keys: {list(settings.keys())}"
            )
            raise ParseFailureError(f"Evaluating the variation id for the key '{key}' failed.")
        return result.variation_id

    def get_all_variation_ids(
        self,
        settings: Mapping[str, Any],
        user: Optional[User] = None,
    ) -> List[str]:
        """Variation ids of every setting; settings that fail are logged and skipped."""
        variation_ids = []
        for key in settings:
            result = self._evaluate(key, settings, user)
            if result.variation_id is None:
                self._log.error(f"Evaluating the variation id for the key '{key}' failed.")
                continue
            variation_ids.append(result.variation_id)
        return variation_ids

    def get_all_values(
        self,
        settings: Mapping[str, Any],
        user: Optional[User] = None,
    ) -> Dict[str, Any]:
        """Values of every setting; settings that fail are logged and skipped."""
        values = {}
        for key in settings:
            result = self._evaluate(key, settings, user)
            if result.value is None:
                self._log.error(f"Evaluating the value for the key '{key}' failed.")
                continue
            values[key] = result.value
        return values

    def get_key_and_value(self, variation_id: str, settings: Mapping[str, Any]) -> KeyValue:
        """
        Find the setting key and value that belong to a variation id.

        The default variation of each setting is checked first, then its
        targeting rules, then its percentage items.

        Raises:
            ParseFailureError: If no setting has the variation id
        """
        for key, setting in settings.items():
            if not isinstance(setting, Mapping) or constants.VALUE not in setting:
                continue

            if setting.get(constants.VARIATION_ID) == variation_id:
                return KeyValue(key, setting[constants.VALUE])

            for rule in setting.get(constants.ROLLOUT_RULES) or []:
                if isinstance(rule, Mapping) and rule.get(constants.VARIATION_ID) == variation_id:
                    return KeyValue(key, rule.get(constants.VALUE))

            for item in setting.get(constants.ROLLOUT_PERCENTAGE_ITEMS) or []:
                if isinstance(item, Mapping) and item.get(constants.VARIATION_ID) == variation_id:
                    return KeyValue(key, item.get(constants.VALUE))

        self._log.error(f"Could not find the setting for the given variation_id: '{variation_id}'")
        raise ParseFailureError(f"Could not find the setting for the given variation_id: '{variation_id}'")

    def _evaluate(self, key: str, settings: Mapping[str, Any], user: Optional[User]) -> EvaluationResult:
        result = self._evaluator.evaluate(settings.get(key), key, user)
        if result.log_message:
            self._log.info(result.log_message)
        return result
