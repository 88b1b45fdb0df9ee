"""
Client-side rollout evaluation logic.

Matches a user against a setting's targeting rules and percentage
rollout items, mirroring the server-side evaluation for consistency.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from flagcat import constants
from flagcat.user import User

COMPARATOR_TEXTS = [
    "IS ONE OF",
    "IS NOT ONE OF",
    "CONTAINS",
    "DOES NOT CONTAIN",
    "IS ONE OF (SemVer)",
    "IS NOT ONE OF (SemVer)",
    "< (SemVer)",
    "<= (SemVer)",
    "> (SemVer)",
    ">= (SemVer)",
    "= (Number)",
    "<> (Number)",
    "< (Number)",
    "<= (Number)",
    "> (Number)",
    ">= (Number)",
    "IS ONE OF (Sensitive)",
    "IS NOT ONE OF (Sensitive)",
]


@dataclass(frozen=True)
class EvaluationResult:
    """Represents the result of a setting evaluation."""

    value: Any = None
    variation_id: Optional[str] = None
    log_message: Optional[str] = None


class RolloutEvaluator:
    """
    Evaluates a single setting for a user.

    Evaluation priority:
    1. Targeting rules in order, the first matching rule wins
    2. Percentage rollout items, bucketed by a hash of key and user id
    3. The setting's default value
    """

    def evaluate(
        self,
        setting: Optional[Mapping[str, Any]],
        key: str,
        user: Optional[User] = None,
    ) -> EvaluationResult:
        """
        Evaluate a setting. Never raises: a missing or broken setting yields
        a result without a value.
        """
        try:
            return self._evaluate(setting, key, user)
        except (AttributeError, TypeError, KeyError) as e:
            return EvaluationResult(log_message=f"Evaluating '{key}' failed: {e}")

    def _evaluate(
        self,
        setting: Optional[Mapping[str, Any]],
        key: str,
        user: Optional[User],
    ) -> EvaluationResult:
        if setting is None:
            return EvaluationResult()

        if not isinstance(setting, Mapping) or constants.VALUE not in setting:
            return EvaluationResult(log_message=f"Setting '{key}' is malformed.")

        default_value = setting.get(constants.VALUE)
        default_variation_id = setting.get(constants.VARIATION_ID)
        rollout_rules = setting.get(constants.ROLLOUT_RULES) or []
        percentage_items = setting.get(constants.ROLLOUT_PERCENTAGE_ITEMS) or []

        if user is None:
            if rollout_rules or percentage_items:
                return EvaluationResult(
                    value=default_value,
                    variation_id=default_variation_id,
                    log_message=(
                        f"Evaluating '{key}': no user passed, targeting rules are ignored. "
                        f"Returning default value: [{default_value}]."
                    ),
                )
            return EvaluationResult(value=default_value, variation_id=default_variation_id)

        log_lines = [f"Evaluating '{key}' for User '{user}'"]

        for rule in rollout_rules:
            matched, line = _evaluate_rule(rule, user)
            log_lines.append(line)
            if matched:
                value = rule.get(constants.VALUE)
                log_lines.append(f"Returning [{value}].")
                return EvaluationResult(
                    value=value,
                    variation_id=rule.get(constants.VARIATION_ID),
                    log_message="\n".join(log_lines),
                )

        if percentage_items:
            item = _select_percentage_item(key, user.identifier, percentage_items)
            if item is not None:
                value = item.get(constants.VALUE)
                log_lines.append(f"Evaluating % options. Returning [{value}].")
                return EvaluationResult(
                    value=value,
                    variation_id=item.get(constants.VARIATION_ID),
                    log_message="\n".join(log_lines),
                )

        log_lines.append(f"Returning default value: [{default_value}].")
        return EvaluationResult(
            value=default_value,
            variation_id=default_variation_id,
            log_message="\n".join(log_lines),
        )


def _evaluate_rule(rule: Mapping[str, Any], user: User) -> Tuple[bool, str]:
    """Check a single targeting rule. Returns the match flag and a trace line."""
    attribute = rule.get(constants.COMPARISON_ATTRIBUTE, "")
    comparator = rule.get(constants.COMPARATOR)
    comparison_value = str(rule.get(constants.COMPARISON_VALUE, ""))
    comparator_text = (
        COMPARATOR_TEXTS[comparator]
        if isinstance(comparator, int) and 0 <= comparator < len(COMPARATOR_TEXTS)
        else f"UNKNOWN ({comparator})"
    )

    user_value = user.get_attribute(attribute)
    if user_value is None or user_value == "":
        return False, (
            f"Evaluating rule: [{attribute}:] [{comparator_text}] "
            f"[{comparison_value}] => no match"
        )

    try:
        matched = _matches(comparator, user_value, comparison_value)
    except ValueError as e:
        return False, (
            f"Evaluating rule: [{attribute}:{user_value}] [{comparator_text}] "
            f"[{comparison_value}] => SKIP rule. Validation error: {e}"
        )

    return matched, (
        f"Evaluating rule: [{attribute}:{user_value}] [{comparator_text}] "
        f"[{comparison_value}] => {'match' if matched else 'no match'}"
    )


def _matches(comparator: Any, user_value: str, comparison_value: str) -> bool:
    """Apply a comparator. Raises ValueError when an operand is invalid."""
    if comparator == 0:
        return user_value in _split(comparison_value)
    if comparator == 1:
        return user_value not in _split(comparison_value)
    if comparator == 2:
        return comparison_value in user_value
    if comparator == 3:
        return comparison_value not in user_value
    if comparator in (4, 5):
        version = _parse_version(user_value)
        found = any(
            _compare_versions(version, _parse_version(v)) == 0
            for v in _split(comparison_value)
        )
        return found if comparator == 4 else not found
    if comparator in (6, 7, 8, 9):
        result = _compare_versions(
            _parse_version(user_value), _parse_version(comparison_value.strip())
        )
        return {6: result < 0, 7: result <= 0, 8: result > 0, 9: result >= 0}[comparator]
    if comparator in (10, 11, 12, 13, 14, 15):
        a = _parse_number(user_value)
        b = _parse_number(comparison_value)
        return {
            10: a == b,
            11: a != b,
            12: a < b,
            13: a <= b,
            14: a > b,
            15: a >= b,
        }[comparator]
    if comparator in (16, 17):
        hashed = hashlib.sha1(user_value.encode("utf-8")).hexdigest()
        found = hashed in _split(comparison_value)
        return found if comparator == 16 else not found
    return False


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_version(v: str) -> List[int]:
    """Parse a semantic version string, ignoring pre-release and build metadata."""
    clean = v.strip().lstrip("v").split("+")[0].split("-")[0]
    parts = clean.split(".")
    if len(parts) != 3:
        raise ValueError(f"'{v}' is not a valid semantic version")
    try:
        return [int(p) for p in parts]
    except ValueError:
        raise ValueError(f"'{v}' is not a valid semantic version")


def _compare_versions(a: List[int], b: List[int]) -> int:
    if a == b:
        return 0
    return -1 if a < b else 1


def _parse_number(value: str) -> float:
    try:
        return float(value.strip().replace(",", "."))
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")


def _select_percentage_item(
    key: str, user_id: str, items: List[Mapping[str, Any]]
) -> Optional[Mapping[str, Any]]:
    """
    Consistent hashing for percentage rollouts.
    Uses SHA-1 of key + user id so the same user always lands in the same bucket.
    """
    hash_input = f"{key}{user_id}".encode("utf-8")
    scale = int(hashlib.sha1(hash_input).hexdigest()[:7], 16) % 100

    bucket = 0
    for item in items:
        bucket += item.get(constants.PERCENTAGE, 0)
        if scale < bucket:
            return item
    return None
