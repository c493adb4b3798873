"""
Form session state for a single in-progress response.

Applies the renderer contract on top of the pure visibility and
validation core:
- Every question starts at its type's empty value
- Visibility is recomputed after every answer change
- A question that becomes hidden is reset to its empty value
- Submit-time validation uses a fresh validator for the visible set
- Only visible answers are submitted

`submit_answers` handles a complete answer set sent in one request.
It resolves visibility straight from those answers and never resets
anything, so it agrees with `resolve_visibility` for the same input.
"""

import logging
import uuid
from collections.abc import Collection, Mapping
from datetime import datetime, timezone
from typing import Any

from formbuilder.core.question_utils import get_question_default_value, is_value_answered
from formbuilder.core.schema import Form, FormSubmission, Question, QuestionType
from formbuilder.core.validation import ValidationResult, build_validator
from formbuilder.core.visibility import resolve_visibility, visible_question_ids

logger = logging.getLogger(__name__)


class SubmissionValidationError(Exception):
    """Raised when a response is submitted with invalid visible answers."""

    def __init__(self, result: ValidationResult):
        self.result = result
        self.question_id = result.question_id
        self.message = result.first_error or "Submission is invalid"
        super().__init__(self.message)


class FormSession:
    """Tracks the answers and visibility of one response to a form.

    Args:
        form: A validated Form instance.
        answers: Optional initial answers; unknown question IDs are ignored.
    """

    def __init__(self, form: Form, answers: dict[str, Any] | None = None):
        self.form = form
        self.answers: dict[str, Any] = {
            question.id: get_question_default_value(question)
            for question in form.iter_questions()
        }
        self.files: dict[str, list[str]] = {}
        self.visibility: dict[str, bool] = resolve_visibility(form, self.answers)
        if answers:
            self.set_answers(
                {k: v for k, v in answers.items() if form.get_question(k) is not None}
            )

    # -----------------------------------------------------------------
    # Visibility
    # -----------------------------------------------------------------

    def is_visible(self, item_id: str) -> bool:
        """Visibility of a section or question ID (unknown IDs are hidden)."""
        return self.visibility.get(item_id, False)

    def visible_question_ids(self) -> set[str]:
        return {
            question.id for question in self.form.iter_questions()
            if self.visibility.get(question.id, False)
        }

    def visible_questions(self) -> list[Question]:
        """Visible questions in form order."""
        return [
            question for question in self.form.iter_questions()
            if self.visibility.get(question.id, False)
        ]

    # -----------------------------------------------------------------
    # Answer management
    # -----------------------------------------------------------------

    def set_answer(self, question_id: str, value: Any) -> None:
        """Store an answer and apply visibility changes.

        Args:
            question_id: The question to answer.
            value: The raw answer value.

        Raises:
            ValueError: If the question does not exist in the form.
        """
        self.set_answers({question_id: value})

    def set_answers(self, answers: dict[str, Any]) -> None:
        """Store several answers, then recompute visibility once.

        A null answer stores the question's empty value.

        Raises:
            ValueError: If any question does not exist in the form.
                No answer is stored in that case.
        """
        unknown = [qid for qid in answers if self.form.get_question(qid) is None]
        if unknown:
            raise ValueError(f"Question '{unknown[0]}' does not exist in the form")

        for question_id, value in answers.items():
            if value is None:
                value = get_question_default_value(self.form.get_question(question_id))
            self.answers[question_id] = value
        self._refresh_visibility()

    def clear_answer(self, question_id: str) -> None:
        """Reset a question to its empty value and apply visibility changes."""
        question = self.form.get_question(question_id)
        if question is None:
            raise ValueError(f"Question '{question_id}' does not exist in the form")
        self.set_answers({question_id: get_question_default_value(question)})

    def set_files(self, question_id: str, filenames: list[str]) -> None:
        """Record uploaded file names for a file question."""
        _check_file_answer(self.form, question_id, filenames)
        self.files[question_id] = list(filenames)
        self.set_answers({question_id: list(filenames)})

    def get_answer(self, question_id: str) -> Any:
        return self.answers.get(question_id)

    def get_all_answers(self) -> dict[str, Any]:
        """Return a copy of all current answers, hidden questions included."""
        return dict(self.answers)

    def visible_answers(self) -> dict[str, Any]:
        """Return only answers for currently visible questions."""
        visible_ids = self.visible_question_ids()
        return {k: v for k, v in self.answers.items() if k in visible_ids}

    # -----------------------------------------------------------------
    # Validation and submission
    # -----------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """Validate visible answers with a validator built for the current visibility."""
        validator = build_validator(self.form, self.visible_question_ids())
        return validator.validate(self.answers)

    def progress(self) -> float:
        """Fraction of visible questions that hold an answer (1.0 when none are visible)."""
        visible = self.visible_questions()
        if not visible:
            return 1.0
        answered = sum(1 for q in visible if is_value_answered(self.answers.get(q.id)))
        return answered / len(visible)

    def build_submission(self) -> FormSubmission:
        """Validate and package the visible answers.

        Raises:
            SubmissionValidationError: If any visible answer is invalid.
        """
        result = self.validate()
        if not result.valid:
            raise SubmissionValidationError(result)

        return _package_submission(self.form, self.answers, self.files, self.visible_question_ids())

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _refresh_visibility(self) -> None:
        """Recompute visibility and reset questions that just became hidden.

        A reset can change other conditions, so this repeats until the
        map is stable. Every round moves answers toward their empty
        values, so the loop ends.
        """
        while True:
            previous = self.visibility
            self.visibility = resolve_visibility(self.form, self.answers)

            newly_hidden = [
                question for question in self.form.iter_questions()
                if previous.get(question.id, False) and not self.visibility[question.id]
            ]
            if not newly_hidden:
                return

            for question in newly_hidden:
                self.answers[question.id] = get_question_default_value(question)
                self.files.pop(question.id, None)
            logger.debug(
                "Reset %d hidden question(s) on form '%s': %s",
                len(newly_hidden), self.form.slug, [q.id for q in newly_hidden],
            )


# -----------------------------------------------------------------
# One-shot answer sets
# -----------------------------------------------------------------


def validate_answers(form: Form, answers: Mapping[str, Any]) -> ValidationResult:
    """Validate a complete answer set against the questions it makes visible.

    Answers are taken as given: hidden questions keep their raw values,
    so conditions that read them behave exactly as in `resolve_visibility`.
    """
    validator = build_validator(form, visible_question_ids(form, answers))
    return validator.validate(answers)


def submit_answers(
    form: Form,
    answers: Mapping[str, Any],
    files: Mapping[str, list[str]] | None = None,
) -> FormSubmission:
    """Validate and package a complete answer set sent in one request.

    Unknown question IDs in ``answers`` are ignored.

    Raises:
        ValueError: If ``files`` names a question that is not a file
            question, or gives several files to a single-file question.
        SubmissionValidationError: If any visible answer is invalid.
    """
    files = dict(files or {})
    for question_id, filenames in files.items():
        _check_file_answer(form, question_id, filenames)

    known = {k: v for k, v in answers.items() if form.get_question(k) is not None}
    result = validate_answers(form, known)
    if not result.valid:
        raise SubmissionValidationError(result)

    return _package_submission(form, known, files, visible_question_ids(form, known))


def _check_file_answer(form: Form, question_id: str, filenames: list[str]) -> None:
    question = form.get_question(question_id)
    if question is None or question.type != QuestionType.FILE:
        raise ValueError(f"Question '{question_id}' is not a file question")
    if not question.multiple and len(filenames) > 1:
        raise ValueError(f"Question '{question_id}' accepts a single file")


def _package_submission(
    form: Form,
    answers: Mapping[str, Any],
    files: Mapping[str, list[str]],
    visible_ids: Collection[str],
) -> FormSubmission:
    """Build the submission record from answers that already passed validation.

    Hidden and null answers are left out. File questions travel in
    ``files``; their answer values are not validated.
    """
    packaged = {
        question.id: answers[question.id]
        for question in form.iter_questions()
        if question.id in visible_ids
        and question.type != QuestionType.FILE
        and answers.get(question.id) is not None
    }
    return FormSubmission(
        submission_id=str(uuid.uuid4()),
        form_id=form.id,
        form_slug=form.slug,
        answers=packaged,
        files={k: list(v) for k, v in files.items() if k in visible_ids},
        submitted_at=datetime.now(timezone.utc).isoformat(),
    )
