"""
Question classification helpers and answer-value utilities.

The consent and signature checks sniff the question label. They are
kept as plain keyword matches so existing form files keep behaving
the same way.
"""

import math
import re
from typing import Any

from formbuilder.core.schema import AnswerValue, Question, QuestionType

CONSENT_KEYWORDS = ("consent", "agree", "accept", "terms")
SIGNATURE_KEYWORDS = ("signature", "sign")

# Decimal literal as accepted by a numeric text input ("12", "-3.5", ".5", "1e3").
_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def is_consent_question(question: Question) -> bool:
    """A checkbox whose label mentions consent, agreement, acceptance or terms."""
    label = question.label.lower()
    return question.type == QuestionType.CHECKBOX and any(
        keyword in label for keyword in CONSENT_KEYWORDS
    )


def is_signature_question(question: Question) -> bool:
    """A text question whose label mentions a signature."""
    label = question.label.lower()
    return question.type == QuestionType.TEXT and any(
        keyword in label for keyword in SIGNATURE_KEYWORDS
    )


def is_multi_select(question: Question) -> bool:
    """Checkbox questions with options hold a list; without options, a bool."""
    return question.type == QuestionType.CHECKBOX and bool(question.options)


def get_question_default_value(question: Question) -> AnswerValue:
    """Return the empty value a question holds before (or after) being answered."""
    if is_multi_select(question) or question.type == QuestionType.FILE:
        return []
    if question.type == QuestionType.CHECKBOX:
        return False
    if question.type == QuestionType.NUMBER:
        return 0
    return ""


def is_value_answered(value: Any) -> bool:
    """Whether a stored value counts as an answer for progress tracking.

    Empty strings, empty lists and ``False`` are unanswered.
    """
    if value is None or value == "":
        return False
    if isinstance(value, list):
        return len(value) > 0
    if isinstance(value, bool):
        return value is True
    return True


def is_empty_answer(value: Any) -> bool:
    """Absent, null or empty-string answers. Logic conditions on them never match."""
    return value is None or (isinstance(value, str) and value == "")


def to_text(value: Any) -> str:
    """Render a value the way browsers stringify form values.

    Booleans become ``true``/``false``, integral floats drop the trailing
    ``.0`` and lists are comma-joined.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ",".join("" if item is None else to_text(item) for item in value)
    if value is None:
        return ""
    return str(value)


def to_number(value: Any) -> float | None:
    """Coerce a value to a finite float, or None if it is not numeric.

    Blank strings count as zero and a single-element list counts as its
    element, matching how browsers coerce form values.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if not _NUMERIC_RE.match(text):
            return None
        number = float(text)
    elif isinstance(value, list):
        if not value:
            return 0.0
        if len(value) == 1:
            return to_number(value[0])
        return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number
