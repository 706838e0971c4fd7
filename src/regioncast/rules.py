"""Ordered threshold rules mapping an observed value to a display color.

A ``RuleSet`` names one observation field and an ordered list of
``ClassificationRule`` entries. Classification walks the rules in stored
order and returns the color of the first rule whose test holds, so
overlapping rules are resolved by position.

Rule sets are persisted as JSON in the shape::

    {"openmeteo": {"field": "temperature_2m",
                   "rules": [{"operator": "<", "value": 10, "color": "#ff4444"}]}}

Example:
    >>> classify({"temperature_2m": 12.0}, DEFAULT_TEMPERATURE_RULES)
    '#4444ff'
"""

from __future__ import annotations

import json
import logging
import math
import operator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from regioncast.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NEUTRAL_COLOR = "#95a5a6"

OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
}


def _coerce_number(v: Any) -> float | None:
    """Convert a threshold to float; anything non-numeric becomes ``None``."""
    if v is None or isinstance(v, bool):
        return None
    try:
        number = float(v)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _compare(value: float, op: str | None, threshold: float | None) -> bool:
    if threshold is None or op is None:
        return False
    fn = OPERATORS.get(op)
    if fn is None:
        return False
    return fn(value, threshold)


class ClassificationRule(BaseModel):
    """One threshold test and the color it assigns.

    A rule with ``operator2`` set is a range test: both bounds must hold.
    Unknown operators and non-numeric thresholds never match.

    Args:
        operator: Comparison for the first bound.
        value: Threshold for the first bound.
        operator2: Optional comparison for the second bound.
        value2: Threshold for the second bound.
        color: Color assigned when the test holds.

    Example:
        >>> rule = ClassificationRule(operator=">=", value=10, operator2="<",
        ...                           value2=25, color="#4444ff")
        >>> rule.test(24.999)
        True
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    operator: str = ">="
    value: Optional[float] = None
    operator2: Optional[str] = None
    value2: Optional[float] = None
    color: str = NEUTRAL_COLOR

    @field_validator("value", "value2", mode="before")
    @classmethod
    def _coerce_threshold(cls, v: Any) -> float | None:
        return _coerce_number(v)

    @field_validator("operator2", mode="before")
    @classmethod
    def _blank_operator2(cls, v: Any) -> Any:
        """An empty second operator means a single-bound rule."""
        return v or None

    @property
    def is_range(self) -> bool:
        return self.operator2 is not None

    def test(self, value: float) -> bool:
        """Return ``True`` if *value* satisfies every bound of this rule."""
        if not _compare(value, self.operator, self.value):
            return False
        if self.is_range:
            return _compare(value, self.operator2, self.value2)
        return True


class RuleSet(BaseModel):
    """Ordered rules applied to one observation field.

    Rule sets are immutable; the edit methods return a new ``RuleSet``
    and never reorder the remaining rules.

    Example:
        >>> rs = RuleSet(field="humidity_2m").add_rule(
        ...     ClassificationRule(operator=">", value=80, color="#0000ff"))
        >>> len(rs.rules)
        1
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    field: str = "temperature_2m"
    rules: tuple[ClassificationRule, ...] = ()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.rules):
            raise ConfigurationError(
                what=f"No rule at position {index}",
                cause=f"Rule set for {self.field!r} has {len(self.rules)} rules",
                fix="Use an index between 0 and len(rules) - 1",
            )

    def add_rule(self, rule: ClassificationRule | None = None) -> RuleSet:
        """Append *rule* (default ``>= 0`` in the neutral color)."""
        new_rule = rule if rule is not None else ClassificationRule(value=0)
        return self.model_copy(update={"rules": (*self.rules, new_rule)})

    def remove_rule(self, index: int) -> RuleSet:
        """Drop the rule at *index*."""
        self._check_index(index)
        rules = self.rules[:index] + self.rules[index + 1 :]
        return self.model_copy(update={"rules": rules})

    def update_rule(self, index: int, **changes: Any) -> RuleSet:
        """Replace fields of the rule at *index*, validating the result.

        Example:
            >>> DEFAULT_TEMPERATURE_RULES.update_rule(0, value="5").rules[0].value
            5.0
        """
        self._check_index(index)
        merged = {**self.rules[index].model_dump(), **changes}
        updated = ClassificationRule.model_validate(merged)
        rules = self.rules[:index] + (updated,) + self.rules[index + 1 :]
        return self.model_copy(update={"rules": rules})

    def with_field(self, field: str) -> RuleSet:
        """Return a copy classifying a different observation field."""
        return self.model_copy(update={"field": field})


DEFAULT_TEMPERATURE_RULES = RuleSet(
    field="temperature_2m",
    rules=(
        ClassificationRule(operator="<", value=10, color="#ff4444"),
        ClassificationRule(
            operator=">=", value=10, operator2="<", value2=25, color="#4444ff"
        ),
        ClassificationRule(operator=">=", value=25, color="#44ff44"),
    ),
)

DEFAULT_RULE_SETS: dict[str, RuleSet] = {"openmeteo": DEFAULT_TEMPERATURE_RULES}


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one observation.

    Args:
        color: Display color.
        status: ``"matched"``, ``"no_match"`` or ``"no_data"``.
        rule_index: Position of the matching rule, or ``None``.
        value: The field value that was tested, or ``None`` when missing.
    """

    color: str
    status: Literal["matched", "no_match", "no_data"]
    rule_index: int | None = None
    value: float | None = None


def evaluate(
    observation: Mapping[str, Any] | Any,
    rule_set: RuleSet,
    *,
    default_color: str = NEUTRAL_COLOR,
    no_data_color: str = NEUTRAL_COLOR,
) -> Classification:
    """Classify *observation* and report which rule decided the color.

    Args:
        observation: An ``Observation`` or any mapping of field values.
        rule_set: Field and ordered rules to apply.
        default_color: Color when no rule matches.
        no_data_color: Color when the field is missing or not numeric.
    """
    value = _coerce_number(observation.get(rule_set.field))
    if value is None:
        return Classification(color=no_data_color, status="no_data")
    for i, rule in enumerate(rule_set.rules):
        if rule.test(value):
            return Classification(
                color=rule.color, status="matched", rule_index=i, value=value
            )
    return Classification(color=default_color, status="no_match", value=value)


def classify(
    observation: Mapping[str, Any] | Any,
    rule_set: RuleSet,
    *,
    default_color: str = NEUTRAL_COLOR,
    no_data_color: str = NEUTRAL_COLOR,
) -> str:
    """Return the color of the first rule matching *observation*.

    Pure: identical inputs always yield the identical color.
    """
    return evaluate(
        observation,
        rule_set,
        default_color=default_color,
        no_data_color=no_data_color,
    ).color


def parse_rule_sets(data: Any) -> dict[str, RuleSet]:
    """Validate a decoded ``{source_id: {field, rules}}`` mapping.

    Raises:
        ConfigurationError: If *data* does not have that shape.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            what="Invalid rule configuration",
            cause=f"Expected a JSON object, got {type(data).__name__}",
            fix='Use the shape {"<source>": {"field": "...", "rules": [...]}}',
        )
    try:
        return {key: RuleSet.model_validate(value) for key, value in data.items()}
    except ValidationError as exc:
        raise ConfigurationError(
            what="Invalid rule configuration",
            cause=str(exc),
            fix="Check every rule set has a 'field' string and a 'rules' list",
        ) from None


def load_rule_sets(path: str | Path) -> dict[str, RuleSet]:
    """Load rule sets from a JSON file.

    Raises:
        ConfigurationError: If the file is missing or not valid JSON.
    """
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            what="Cannot read rule file",
            cause=f"File not found: {resolved}",
            fix="Create the file or pass the path of an existing rule file",
        ) from None

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            what="Invalid rule file format",
            cause=f"JSON parse error in {resolved}: {exc}",
            fix='Use the shape {"<source>": {"field": "...", "rules": [...]}}',
        ) from None

    rule_sets = parse_rule_sets(parsed)
    logger.debug("Loaded %d rule sets from %s", len(rule_sets), resolved)
    return rule_sets


def dump_rule_sets(path: str | Path, rule_sets: Mapping[str, RuleSet]) -> None:
    """Write rule sets to *path* as JSON, omitting unset optional bounds."""
    payload = {
        key: rule_set.model_dump(mode="json", exclude_none=True)
        for key, rule_set in rule_sets.items()
    }
    Path(path).expanduser().write_text(json.dumps(payload, indent=2), encoding="utf-8")
