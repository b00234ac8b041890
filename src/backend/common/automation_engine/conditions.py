from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel

from .models import Condition, ConditionOperator, camel_to_snake

logger = logging.getLogger(__name__)

OperatorFn = Callable[[str, str, bool], bool]


class OperatorRegistry:
    def __init__(self):
        self._operators: Dict[ConditionOperator, OperatorFn] = {}

    def register(self, operator: ConditionOperator, fn: OperatorFn) -> None:
        if operator in self._operators:
            raise ValueError(f"Duplicate condition operator registered: {operator.value}")
        self._operators[operator] = fn

    def get(self, operator: ConditionOperator) -> Optional[OperatorFn]:
        return self._operators.get(operator)

    def ids(self) -> Iterable[ConditionOperator]:
        return self._operators.keys()


operators = OperatorRegistry()


def register_operator(operator: ConditionOperator) -> Callable[[OperatorFn], OperatorFn]:
    def _decorator(fn: OperatorFn) -> OperatorFn:
        operators.register(operator, fn)
        return fn

    return _decorator


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.casefold()


def _to_decimal(text: str) -> Optional[Decimal]:
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError):
        return None
    # Only finite amounts compare; NaN raises on ordering.
    return value if value.is_finite() else None


@register_operator(ConditionOperator.CONTAINS)
def _contains(actual: str, expected: str, case_sensitive: bool) -> bool:
    return _fold(expected, case_sensitive) in _fold(actual, case_sensitive)


@register_operator(ConditionOperator.NOT_CONTAINS)
def _not_contains(actual: str, expected: str, case_sensitive: bool) -> bool:
    return not _contains(actual, expected, case_sensitive)


@register_operator(ConditionOperator.EQUALS)
def _equals(actual: str, expected: str, case_sensitive: bool) -> bool:
    return _fold(actual.strip(), case_sensitive) == _fold(expected.strip(), case_sensitive)


@register_operator(ConditionOperator.GREATER_THAN)
def _greater_than(actual: str, expected: str, case_sensitive: bool) -> bool:
    left = _to_decimal(actual)
    right = _to_decimal(expected)
    if left is None or right is None:
        return False
    return left > right


def field_as_text(record: Any, field: str) -> str:
    """Read `field` off a model or mapping as text; missing or None reads as ""."""
    value: Any = None
    if isinstance(record, Mapping):
        value = record.get(field)
        if value is None:
            value = record.get(camel_to_snake(field))
    elif isinstance(record, BaseModel):
        # Declared fields only; model methods and dunders never resolve.
        model_fields = type(record).model_fields
        for name in (field, camel_to_snake(field)):
            if name in model_fields:
                value = getattr(record, name)
                if value is not None:
                    break
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = getattr(value, "value")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def evaluate(
    conditions: Iterable[Condition],
    record: Any,
    *,
    case_sensitive: bool = False,
) -> bool:
    for condition in conditions:
        fn = operators.get(condition.operator)
        if fn is None:
            logger.warning(
                "Unknown condition operator %r on field %r; condition does not hold.",
                condition.operator,
                condition.field,
            )
            return False
        actual = field_as_text(record, condition.field)
        if not fn(actual, condition.value, case_sensitive):
            return False
    return True
