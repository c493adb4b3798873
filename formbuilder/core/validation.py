"""
Dynamic validator scoped to the currently visible questions.

``build_validator`` derives one check per visible question from its
type, required flag and declared constraints. Hidden questions get no
check at all, so they can never block a submission. The resulting
``FormValidator`` reports failures as data, never by raising.
"""

import logging
import re
from collections.abc import Callable, Collection, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formbuilder.core.question_utils import (
    is_consent_question,
    is_multi_select,
    is_signature_question,
    to_number,
)
from formbuilder.core.schema import Form, Question, QuestionType

logger = logging.getLogger(__name__)

PHONE_REGEX = re.compile(r"^\+?\(?[0-9]{1,4}\)?[-\s.]?\(?[0-9]{1,4}\)?[-\s.]?[0-9]{1,9}$")
EMAIL_REGEX = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")

REQUIRED_MESSAGE = "Please fill in this field"
INVALID_VALUE_MESSAGE = "Invalid value for this field"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
PHONE_REQUIRED_MESSAGE = "Phone number is required"
INVALID_PHONE_MESSAGE = "Please enter a valid phone number"
INVALID_NUMBER_MESSAGE = "Please enter a valid number"
INVALID_PATTERN_MESSAGE = "Please match the requested format"
CONSENT_MESSAGE = "You must provide consent to continue"

# A check returns an error message, or None when the value passes.
FieldCheck = Callable[[Any], str | None]


class ValidationResult(BaseModel):
    """Outcome of validating an answer set."""

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    first_error: str | None = Field(
        default=None,
        alias="firstError",
        description="Message of the first failing question in form order",
    )
    question_id: str | None = Field(
        default=None,
        alias="questionId",
        description="The question that produced first_error",
    )
    errors: dict[str, str] = Field(
        default_factory=dict,
        description="Every failing question's message, in form order",
    )


class FormValidator:
    """Ordered collection of per-question checks.

    Args:
        checks: (question_id, check) pairs in form order.
    """

    def __init__(self, checks: list[tuple[str, FieldCheck]]):
        self._checks = checks

    @property
    def question_ids(self) -> list[str]:
        """IDs of the questions this validator constrains."""
        return [question_id for question_id, _ in self._checks]

    def validate(self, answers: Mapping[str, Any]) -> ValidationResult:
        """Run every check against the answers.

        Args:
            answers: Current answers keyed by question ID.

        Returns:
            A ValidationResult; invalid results carry the first failing
            question's message.
        """
        errors: dict[str, str] = {}
        for question_id, check in self._checks:
            message = check(answers.get(question_id))
            if message is not None:
                errors[question_id] = message

        if not errors:
            return ValidationResult(valid=True)

        first_id = next(iter(errors))
        return ValidationResult(
            valid=False,
            first_error=errors[first_id],
            question_id=first_id,
            errors=errors,
        )


def build_validator(form: Form, visible_question_ids: Collection[str]) -> FormValidator:
    """Build a validator for the visible questions of a form.

    Args:
        form: The form definition.
        visible_question_ids: IDs of the questions currently shown.

    Returns:
        A FormValidator checking only visible questions.
    """
    visible = set(visible_question_ids)
    checks: list[tuple[str, FieldCheck]] = []

    for question in form.iter_questions():
        if question.id not in visible:
            continue
        check = build_question_check(question)
        if check is not None:
            checks.append((question.id, check))

    logger.debug(
        "Built validator for form '%s': %d checks over %d visible questions",
        form.slug, len(checks), len(visible),
    )
    return FormValidator(checks)


def build_question_check(question: Question) -> FieldCheck | None:
    """Derive the check for a single visible question.

    Returns None for questions that are never constrained here (files).
    """
    match question.type:
        case QuestionType.TEXT | QuestionType.TEXTAREA | QuestionType.EMAIL:
            return _text_check(question)
        case QuestionType.TEL:
            return _tel_check(question)
        case QuestionType.NUMBER:
            return _number_check(question)
        case QuestionType.DATE:
            return _choice_check(question, f"{question.label} is required")
        case QuestionType.SELECT:
            return _choice_check(question, REQUIRED_MESSAGE)
        case QuestionType.RADIO:
            return _choice_check(question, f"Please select {question.label.lower()}")
        case QuestionType.CHECKBOX:
            return _checkbox_check(question)
        case QuestionType.FILE:
            # Upload presence is checked by the upload handler
            return None

    return None


# -----------------------------------------------------------------
# Per-type checks
# -----------------------------------------------------------------


def _text_check(question: Question) -> FieldCheck:
    """Text, textarea and email questions. Signature fields are always required."""
    required = question.required or is_signature_question(question)
    is_email = question.type == QuestionType.EMAIL
    pattern = None
    if not is_email:
        pattern = _compile_pattern(question)
    pattern_message = INVALID_PATTERN_MESSAGE
    if question.validation is not None and question.validation.message:
        pattern_message = question.validation.message

    def check(value: Any) -> str | None:
        if value is None:
            value = ""
        if not isinstance(value, str):
            return INVALID_VALUE_MESSAGE
        if not value:
            return REQUIRED_MESSAGE if required else None
        if is_email and not EMAIL_REGEX.fullmatch(value):
            return INVALID_EMAIL_MESSAGE
        if pattern is not None and not pattern.fullmatch(value):
            return pattern_message
        return None

    return check


def _tel_check(question: Question) -> FieldCheck:
    required = question.required

    def check(value: Any) -> str | None:
        if value is None:
            value = ""
        if not isinstance(value, str):
            return INVALID_PHONE_MESSAGE
        if not value:
            return PHONE_REQUIRED_MESSAGE if required else None
        if not PHONE_REGEX.fullmatch(value):
            return INVALID_PHONE_MESSAGE
        return None

    return check


def _number_check(question: Question) -> FieldCheck:
    """Required numbers only need to be present; zero is a valid answer."""
    required = question.required
    minimum = question.validation.min if question.validation else None
    maximum = question.validation.max if question.validation else None

    def check(value: Any) -> str | None:
        if value is None or value == "":
            return REQUIRED_MESSAGE if required else None
        if isinstance(value, (bool, list, dict)):
            return INVALID_NUMBER_MESSAGE
        number = to_number(value)
        if number is None:
            return INVALID_NUMBER_MESSAGE
        if minimum is not None and number < minimum:
            return f"Minimum value is {minimum}"
        if maximum is not None and number > maximum:
            return f"Maximum value is {maximum}"
        return None

    return check


def _choice_check(question: Question, required_message: str) -> FieldCheck:
    """Single-value questions: date, select and radio."""
    required = question.required

    def check(value: Any) -> str | None:
        if value is None:
            value = ""
        if not isinstance(value, str):
            return INVALID_VALUE_MESSAGE
        if required and not value:
            return required_message
        return None

    return check


def _checkbox_check(question: Question) -> FieldCheck:
    if is_consent_question(question) and not is_multi_select(question):
        return _consent_check

    required = question.required

    if is_multi_select(question):
        def check_selection(value: Any) -> str | None:
            if value is None:
                value = []
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                return INVALID_VALUE_MESSAGE
            if required and not value:
                return REQUIRED_MESSAGE
            return None

        return check_selection

    def check_flag(value: Any) -> str | None:
        if value is None:
            value = False
        if not isinstance(value, bool):
            return INVALID_VALUE_MESSAGE
        if required and value is not True:
            return REQUIRED_MESSAGE
        return None

    return check_flag


def _consent_check(value: Any) -> str | None:
    """Consent checkboxes must be ticked whatever their required flag says."""
    if value is True:
        return None
    return CONSENT_MESSAGE


def _compile_pattern(question: Question) -> re.Pattern | None:
    """Compile the question's custom pattern; a broken pattern is ignored."""
    if question.validation is None or not question.validation.pattern:
        return None
    try:
        return re.compile(question.validation.pattern)
    except re.error:
        logger.warning(
            "Ignoring invalid pattern on question '%s': %r",
            question.id, question.validation.pattern,
        )
        return None
