"""
Deterministic evaluator for a single logic condition.

Every operator is looked up in one dispatch table. A condition whose
source question is unanswered never matches, and no operator raises:
malformed or mismatched input simply evaluates to False.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from formbuilder.core.question_utils import is_empty_answer, to_number, to_text
from formbuilder.core.schema import Condition, ConditionOperator

logger = logging.getLogger(__name__)


def evaluate_condition(condition: Condition, answers: Mapping[str, Any]) -> bool:
    """Evaluate one condition against the current answers.

    Args:
        condition: The condition to evaluate.
        answers: Current answers keyed by question ID.

    Returns:
        True if the condition holds, False otherwise (including when the
        source question is unanswered or does not exist).
    """
    answer = answers.get(condition.question_id)
    if is_empty_answer(answer):
        return False

    handler = _OPERATORS.get(condition.operator)
    if handler is None:
        logger.debug(
            "Unknown operator %r on condition for '%s'", condition.operator, condition.question_id
        )
        return False
    return handler(answer, condition.value)


def _equals(answer: Any, value: Any) -> bool:
    return to_text(answer) == to_text(value)


def _not_equals(answer: Any, value: Any) -> bool:
    return to_text(answer) != to_text(value)


def _contains(answer: Any, value: Any) -> bool:
    """List answers test membership; scalar answers test for a substring."""
    expected = to_text(value)
    if isinstance(answer, list):
        return expected in answer
    return expected in to_text(answer)


def _compare_numbers(comparator: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def compare(answer: Any, value: Any) -> bool:
        left = to_number(answer)
        right = to_number(value)
        if left is None or right is None:
            return False
        return comparator(left, right)

    return compare


_OPERATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS: _equals,
    ConditionOperator.NOT_EQUALS: _not_equals,
    ConditionOperator.CONTAINS: _contains,
    ConditionOperator.GREATER_THAN: _compare_numbers(lambda a, b: a > b),
    ConditionOperator.LESS_THAN: _compare_numbers(lambda a, b: a < b),
}
