"""
Deterministic visibility resolver for sections and questions.

Visibility is a pure function of (form, answers). The full map is
recomputed on every call; nothing is cached between calls.

Rule-set aggregation, shared by sections and questions:
- no rules: visible
- any show rule: visible only if some show rule holds, and any
  holding hide rule forces it hidden
- only hide rules: visible unless some hide rule holds

A hidden section hides all of its questions without evaluating their
own rules. Conditions read the raw answer of their source question even
when that question is itself hidden.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from formbuilder.core.conditions import evaluate_condition
from formbuilder.core.schema import Form, Logic, LogicAction

logger = logging.getLogger(__name__)


def evaluate_rule_set(rules: Sequence[Logic] | None, answers: Mapping[str, Any]) -> bool:
    """Aggregate a subject's logic rules into a single visibility flag.

    Args:
        rules: The show/hide rules owned by a section or question.
        answers: Current answers keyed by question ID.

    Returns:
        True if the subject should be visible.
    """
    if not rules:
        return True

    has_show = False
    show_result = False
    has_hide = False
    hide_result = False

    for rule in rules:
        if rule.action == LogicAction.SHOW:
            has_show = True
            show_result = evaluate_condition(rule.condition, answers) or show_result
        elif rule.action == LogicAction.HIDE:
            has_hide = True
            hide_result = evaluate_condition(rule.condition, answers) or hide_result

    if has_show:
        # Hide takes precedence over show
        if hide_result:
            return False
        return show_result

    if has_hide:
        return not hide_result

    return True


def resolve_visibility(form: Form, answers: Mapping[str, Any]) -> dict[str, bool]:
    """Compute visibility for every section and question in the form.

    Args:
        form: The form definition.
        answers: Current answers keyed by question ID.

    Returns:
        A dict mapping each section ID and question ID to its visibility.
    """
    visibility: dict[str, bool] = {}

    for section in form.sections:
        section_visible = evaluate_rule_set(section.logic, answers)
        visibility[section.id] = section_visible

        for question in section.questions:
            if not section_visible:
                visibility[question.id] = False
                continue
            visibility[question.id] = evaluate_rule_set(question.logic, answers)

    if logger.isEnabledFor(logging.DEBUG):
        hidden = sum(1 for visible in visibility.values() if not visible)
        logger.debug(
            "Resolved visibility for form '%s': %d of %d items hidden",
            form.slug, hidden, len(visibility),
        )

    return visibility


def visible_question_ids(form: Form, answers: Mapping[str, Any]) -> set[str]:
    """Return the IDs of questions (not sections) that are currently visible."""
    visibility = resolve_visibility(form, answers)
    return {
        question.id
        for question in form.iter_questions()
        if visibility.get(question.id, False)
    }
