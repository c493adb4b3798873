"""
Form definition models.

These Pydantic models define the contract between the admin editor,
the form renderer, and the backend. A form is an ordered list of
sections, each holding an ordered list of questions. Sections and
questions may carry declarative show/hide logic referencing other
questions' answers.

The JSON representation keeps the camelCase keys used by stored form
files (``questionId``, ``createdAt``, ``updatedAt``); Python code uses
the snake_case attribute names.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

# Values a single answer may take.
AnswerValue = str | int | float | bool | list[str]


# --- Enums ---


class QuestionType(str, Enum):
    """Supported question input types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    TEL = "tel"
    DATE = "date"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"


class ConditionOperator(str, Enum):
    """Supported operators for logic conditions.

    All operators are evaluated deterministically and never raise.
    """

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"


class LogicAction(str, Enum):
    """What a logic rule does to its owner when its condition holds.

    Only SHOW and HIDE affect visibility. REQUIRE and OPTIONAL exist in
    stored form files and are accepted on load, but are inert.
    """

    SHOW = "show"
    HIDE = "hide"
    REQUIRE = "require"
    OPTIONAL = "optional"


class HelpMode(str, Enum):
    """How contextual help is presented next to a question."""

    MODAL = "modal"
    SIDEBAR = "sidebar"
    TOOLTIP = "tooltip"


class HelpBlockType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    GALLERY = "gallery"
    LOTTIE = "lottie"
    VIDEO = "video"


class SectionGradient(str, Enum):
    """Cosmetic background gradient for a section."""

    WHITE_BLUE = "white-blue"
    WHITE_LIGHTBLUE = "white-lightblue"
    WHITE_GRAY = "white-gray"
    WHITE_PURPLE = "white-purple"
    WHITE_ORANGE = "white-orange"
    WHITE_GREEN = "white-green"


# --- Logic Models ---


class Condition(BaseModel):
    """A comparison against another question's current answer."""

    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(
        ...,
        alias="questionId",
        description="The question whose answer is inspected (may live in another section)",
    )
    operator: ConditionOperator | str = Field(
        ...,
        union_mode="left_to_right",
        description="The comparison operator to apply; unrecognised operators never match",
    )
    value: str | int | float | bool = Field(
        default="",
        description="Static comparison value",
    )


class Logic(BaseModel):
    """A single show/hide rule owned by the question or section it affects."""

    condition: Condition
    action: LogicAction


# --- Help ---


class HelpBlock(BaseModel):
    """One piece of structured help content."""

    type: HelpBlockType
    content: str = Field(
        ...,
        description="Text for text blocks, a URL for media blocks",
    )
    caption: str | None = None
    alt: str | None = None


class Help(BaseModel):
    """Contextual help attached to a question."""

    text: str | None = None
    link: str | None = None
    mode: HelpMode = HelpMode.MODAL
    blocks: list[HelpBlock] | None = None


# --- Questions and Sections ---


class QuestionValidation(BaseModel):
    """Optional constraints declared on a question."""

    min: int | float | None = None
    max: int | float | None = None
    pattern: str | None = None
    message: str | None = Field(
        default=None,
        description="Custom message shown when the pattern does not match",
    )


class Question(BaseModel):
    """Definition of a single form question."""

    id: str = Field(..., min_length=1, description="Unique question identifier within a form")
    type: QuestionType
    label: str = Field(..., description="The text shown to the user")
    placeholder: str | None = None
    required: bool = False
    help: Help | None = None
    options: list[str] | None = Field(
        default=None,
        description="Available choices for select, radio and checkbox questions",
    )
    validation: QuestionValidation | None = None
    logic: list[Logic] | None = None
    multiple: bool = Field(
        default=False,
        description="File questions only: allow more than one upload",
    )
    accept: str | None = Field(
        default=None,
        description="File questions only: accepted types, e.g. 'image/*,.pdf'",
    )


class Section(BaseModel):
    """An ordered group of questions with its own optional visibility logic."""

    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    questions: list[Question] = Field(default_factory=list)
    gradient: SectionGradient | None = None
    logic: list[Logic] | None = None


# --- Top-Level Form ---


class Form(BaseModel):
    """Top-level questionnaire definition.

    Validates slug format and id uniqueness. Logic rules that reference
    unknown questions are allowed: they simply never match.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, description="URL-safe identifier, unique across forms")
    title: str = Field(..., min_length=1)
    description: str | None = None
    sections: list[Section] = Field(default_factory=list)
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="after")
    def validate_structure(self) -> "Form":
        """Slug must be URL-safe; section and question ids must be unique."""
        if not SLUG_PATTERN.fullmatch(self.slug):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )

        section_ids: set[str] = set()
        question_ids: set[str] = set()
        for section in self.sections:
            if section.id in section_ids:
                raise ValueError(f"Duplicate section ID: '{section.id}'")
            section_ids.add(section.id)

            for question in section.questions:
                if question.id in question_ids:
                    raise ValueError(f"Duplicate question ID: '{question.id}'")
                question_ids.add(question.id)

        return self

    def iter_questions(self):
        """Yield every question in declared order (sections, then questions)."""
        for section in self.sections:
            yield from section.questions

    def get_question(self, question_id: str) -> Question | None:
        """Look up a question by its ID."""
        for question in self.iter_questions():
            if question.id == question_id:
                return question
        return None

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by stored form files."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FormSubmission(BaseModel):
    """An accepted response: only the answers for visible questions."""

    model_config = ConfigDict(populate_by_name=True)

    submission_id: str = Field(..., alias="submissionId")
    form_id: str = Field(..., alias="formId")
    form_slug: str = Field(..., alias="formSlug")
    answers: dict[str, AnswerValue]
    files: dict[str, list[str]] = Field(default_factory=dict)
    submitted_at: str = Field(..., alias="submittedAt")
