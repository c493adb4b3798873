"""
Unit tests for the dynamic validator builder.

Tests cover:
- Hidden questions are never constrained
- Per-type rules: text, email, tel, number, date, select, radio,
  checkbox (multi, single, consent), file
- Signature and consent label overrides
- First-error ordering across sections
- Malformed answers produce errors, not exceptions
"""

import pytest

from formbuilder.core.schema import Form
from formbuilder.core.validation import (
    CONSENT_MESSAGE,
    INVALID_EMAIL_MESSAGE,
    INVALID_NUMBER_MESSAGE,
    INVALID_PHONE_MESSAGE,
    INVALID_VALUE_MESSAGE,
    PHONE_REQUIRED_MESSAGE,
    REQUIRED_MESSAGE,
    build_validator,
)
from formbuilder.core.visibility import visible_question_ids


# --- Helpers ---


def single_question_form(**question) -> Form:
    question.setdefault("id", "q")
    question.setdefault("label", "Question")
    return Form(
        id="form-test",
        slug="test",
        title="Test",
        sections=[{"id": "s1", "title": "Main", "questions": [question]}],
    )


def check(form: Form, value, visible: bool = True):
    """Validate a single-question form's answer and return the result."""
    visible_ids = {"q"} if visible else set()
    answers = {} if value is _MISSING else {"q": value}
    return build_validator(form, visible_ids).validate(answers)


_MISSING = object()


# =============================================================
# Test: Hidden questions
# =============================================================


class TestHiddenQuestions:
    @pytest.mark.parametrize(
        "question",
        [
            {"type": "text", "required": True},
            {"type": "number", "required": True, "validation": {"min": 10}},
            {"type": "checkbox", "label": "I agree to the terms"},
            {"type": "text", "label": "Signature"},
            {"type": "tel", "required": True},
        ],
    )
    def test_hidden_never_fails(self, question):
        form = single_question_form(**question)
        assert check(form, _MISSING, visible=False).valid is True
        assert check(form, "garbage!!", visible=False).valid is True

    def test_hidden_section_does_not_require_question(self):
        """A hidden section's required question never blocks validation."""
        form = Form(
            id="form-test",
            slug="test",
            title="Test",
            sections=[
                {"id": "s1", "title": "One", "questions": [{"id": "q1", "type": "text", "label": "Q1"}]},
                {
                    "id": "s2",
                    "title": "Two",
                    "logic": [{"condition": {"questionId": "q1", "operator": "equals", "value": "skip"}, "action": "hide"}],
                    "questions": [{"id": "q3", "type": "text", "label": "Q3", "required": True}],
                },
            ],
        )
        answers = {"q1": "skip"}
        result = build_validator(form, visible_question_ids(form, answers)).validate(answers)
        assert result.valid is True

        answers = {"q1": "go"}
        result = build_validator(form, visible_question_ids(form, answers)).validate(answers)
        assert result.valid is False
        assert result.question_id == "q3"

    def test_validator_only_lists_visible_questions(self, client_intake_form):
        ids = visible_question_ids(client_intake_form, {})
        validator = build_validator(client_intake_form, ids)
        assert "pet_type" not in validator.question_ids
        # file questions are never constrained
        assert "vaccination_records" not in validator.question_ids
        assert "full_name" in validator.question_ids


# =============================================================
# Test: Text, textarea, email
# =============================================================


class TestTextQuestions:
    def test_required_text_empty(self):
        form = single_question_form(type="text", required=True)
        result = check(form, "")
        assert result.valid is False
        assert result.first_error == REQUIRED_MESSAGE

    def test_required_text_missing(self):
        form = single_question_form(type="textarea", required=True)
        assert check(form, _MISSING).valid is False

    def test_required_text_filled(self):
        form = single_question_form(type="text", required=True)
        assert check(form, "hello").valid is True

    def test_optional_text_empty(self):
        form = single_question_form(type="text")
        assert check(form, "").valid is True
        assert check(form, _MISSING).valid is True

    def test_text_rejects_non_string(self):
        form = single_question_form(type="text")
        result = check(form, ["a"])
        assert result.first_error == INVALID_VALUE_MESSAGE

    def test_custom_pattern(self):
        form = single_question_form(
            type="text",
            validation={"pattern": "[A-Z]{3}-\\d{2}", "message": "Use the format ABC-12"},
        )
        assert check(form, "ABC-12").valid is True
        assert check(form, "").valid is True
        result = check(form, "abc-12")
        assert result.first_error == "Use the format ABC-12"

    def test_invalid_pattern_is_ignored(self):
        form = single_question_form(type="text", validation={"pattern": "[unclosed"})
        assert check(form, "anything").valid is True

    @pytest.mark.parametrize("value", ["jane@example.com", "j.doe+tag@mail.example.co.uk"])
    def test_valid_email(self, value):
        form = single_question_form(type="email", required=True)
        assert check(form, value).valid is True

    @pytest.mark.parametrize("value", ["jane", "jane@", "@example.com", "jane@example", "a b@example.com"])
    def test_invalid_email(self, value):
        form = single_question_form(type="email", required=True)
        assert check(form, value).first_error == INVALID_EMAIL_MESSAGE

    def test_optional_email_checked_when_filled(self):
        form = single_question_form(type="email")
        assert check(form, "").valid is True
        assert check(form, "not-an-email").first_error == INVALID_EMAIL_MESSAGE

    def test_required_email_empty(self):
        form = single_question_form(type="email", required=True)
        assert check(form, "").first_error == REQUIRED_MESSAGE


# =============================================================
# Test: Signature heuristic
# =============================================================


class TestSignatureQuestions:
    @pytest.mark.parametrize("label", ["Signature", "Your SIGNATURE", "Sign here", "Please sign below"])
    def test_signature_always_required(self, label):
        form = single_question_form(type="text", label=label)
        assert check(form, "").first_error == REQUIRED_MESSAGE
        assert check(form, "J. Doe").valid is True

    def test_signature_heuristic_only_for_text(self):
        form = single_question_form(type="textarea", label="Signature notes")
        assert check(form, "").valid is True

    def test_substring_match_is_literal(self):
        """'Design' contains 'sign', so it is treated as a signature field."""
        form = single_question_form(type="text", label="Design preference")
        assert check(form, "").valid is False


# =============================================================
# Test: Phone numbers
# =============================================================


class TestTelQuestions:
    @pytest.mark.parametrize(
        "value",
        ["+1 555 0100", "(020) 7946 0958", "555-123-4567", "+44.20.79460958", "5551234"],
    )
    def test_valid_phone(self, value):
        form = single_question_form(type="tel", required=True)
        assert check(form, value).valid is True

    @pytest.mark.parametrize("value", ["phone", "555 123 4567 890", "+", "12-34-56-78"])
    def test_invalid_phone(self, value):
        form = single_question_form(type="tel", required=True)
        assert check(form, value).first_error == INVALID_PHONE_MESSAGE

    def test_required_phone_empty(self):
        form = single_question_form(type="tel", required=True)
        assert check(form, "").first_error == PHONE_REQUIRED_MESSAGE

    def test_optional_phone(self):
        form = single_question_form(type="tel")
        assert check(form, "").valid is True
        assert check(form, _MISSING).valid is True
        assert check(form, "abc").first_error == INVALID_PHONE_MESSAGE


# =============================================================
# Test: Numbers
# =============================================================


class TestNumberQuestions:
    def test_minimum_age(self):
        form = single_question_form(type="number", validation={"min": 18})
        result = check(form, "17")
        assert result.valid is False
        assert result.first_error == "Minimum value is 18"
        assert check(form, "18").valid is True

    def test_maximum(self):
        form = single_question_form(type="number", validation={"max": 5})
        assert check(form, 6).first_error == "Maximum value is 5"
        assert check(form, 5.0).valid is True

    def test_required_zero_is_present(self):
        form = single_question_form(type="number", required=True)
        assert check(form, 0).valid is True

    def test_required_missing(self):
        form = single_question_form(type="number", required=True)
        assert check(form, _MISSING).first_error == REQUIRED_MESSAGE
        assert check(form, "").first_error == REQUIRED_MESSAGE

    def test_optional_missing_skips_range(self):
        form = single_question_form(type="number", validation={"min": 18})
        assert check(form, "").valid is True
        assert check(form, None).valid is True

    @pytest.mark.parametrize("value", ["abc", True, ["1"], "12px"])
    def test_not_a_number(self, value):
        form = single_question_form(type="number")
        assert check(form, value).first_error == INVALID_NUMBER_MESSAGE

    def test_decimal_bounds(self):
        form = single_question_form(type="number", validation={"min": 0.5})
        assert check(form, "0.4").first_error == "Minimum value is 0.5"


# =============================================================
# Test: Date, select, radio
# =============================================================


class TestChoiceQuestions:
    def test_required_date(self):
        form = single_question_form(type="date", label="Start date", required=True)
        assert check(form, "").first_error == "Start date is required"
        assert check(form, "2026-10-18").valid is True

    def test_optional_date(self):
        form = single_question_form(type="date")
        assert check(form, "").valid is True

    def test_required_select(self):
        form = single_question_form(type="select", options=["a", "b"], required=True)
        assert check(form, "").first_error == REQUIRED_MESSAGE
        assert check(form, "a").valid is True

    def test_required_radio_message(self):
        form = single_question_form(type="radio", label="Preferred Contact", options=["x"], required=True)
        assert check(form, _MISSING).first_error == "Please select preferred contact"

    def test_optional_radio(self):
        form = single_question_form(type="radio", options=["x"])
        assert check(form, "").valid is True


# =============================================================
# Test: Checkboxes
# =============================================================


class TestCheckboxQuestions:
    def test_multi_select_required(self):
        form = single_question_form(type="checkbox", label="Pick", options=["a", "b"], required=True)
        assert check(form, []).first_error == REQUIRED_MESSAGE
        assert check(form, _MISSING).first_error == REQUIRED_MESSAGE
        assert check(form, ["a"]).valid is True

    def test_multi_select_optional(self):
        form = single_question_form(type="checkbox", label="Pick", options=["a", "b"])
        assert check(form, []).valid is True

    def test_multi_select_rejects_scalar(self):
        form = single_question_form(type="checkbox", label="Pick", options=["a"])
        assert check(form, "a").first_error == INVALID_VALUE_MESSAGE

    def test_consent_required_without_flag(self):
        form = single_question_form(type="checkbox", label="I agree to the terms")
        assert check(form, False).first_error == CONSENT_MESSAGE
        assert check(form, _MISSING).first_error == CONSENT_MESSAGE
        assert check(form, True).valid is True

    @pytest.mark.parametrize("label", ["I give my CONSENT", "Accept cookies", "Terms of service", "Agreed"])
    def test_consent_keywords(self, label):
        form = single_question_form(type="checkbox", label=label)
        assert check(form, False).valid is False

    def test_consent_requires_exact_true(self):
        form = single_question_form(type="checkbox", label="I consent")
        assert check(form, "true").first_error == CONSENT_MESSAGE
        assert check(form, 1).first_error == CONSENT_MESSAGE

    def test_single_checkbox_required(self):
        form = single_question_form(type="checkbox", label="Subscribe", required=True)
        assert check(form, False).first_error == REQUIRED_MESSAGE
        assert check(form, True).valid is True

    def test_single_checkbox_optional(self):
        form = single_question_form(type="checkbox", label="Subscribe")
        assert check(form, False).valid is True
        assert check(form, _MISSING).valid is True
        assert check(form, "yes").first_error == INVALID_VALUE_MESSAGE


# =============================================================
# Test: Files
# =============================================================


class TestFileQuestions:
    def test_file_never_constrained(self):
        form = single_question_form(type="file", required=True)
        assert check(form, _MISSING).valid is True
        assert check(form, {"weird": "payload"}).valid is True


# =============================================================
# Test: Result ordering
# =============================================================


class TestResultOrdering:
    def test_first_error_follows_form_order(self, client_intake_form):
        answers = {"has_pet": "Yes"}
        ids = visible_question_ids(client_intake_form, answers)
        result = build_validator(client_intake_form, ids).validate(answers)
        assert result.valid is False
        assert result.question_id == "full_name"
        assert list(result.errors)[:3] == ["full_name", "email", "age"]
        assert "pet_type" in result.errors
        assert list(result.errors)[-2:] == ["terms", "signature"]

    def test_valid_response(self, client_intake_form, valid_intake_answers):
        ids = visible_question_ids(client_intake_form, valid_intake_answers)
        result = build_validator(client_intake_form, ids).validate(valid_intake_answers)
        assert result.valid is True
        assert result.first_error is None
        assert result.errors == {}

    def test_result_serializes_camel_case(self):
        form = single_question_form(type="text", required=True)
        data = check(form, "").model_dump(by_alias=True)
        assert data["firstError"] == REQUIRED_MESSAGE
        assert data["questionId"] == "q"
