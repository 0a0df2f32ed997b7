"""
Conditional display rules.

A rule ties a field or section to another field's answer:

    {"dependsOnFieldId": "<field id>", "operator": "equals",
     "comparisonValue": "yes", "action": "require"}

Evaluation is pure and synchronous. The renderer runs the same rules on every
keystroke for UX; the submission pipeline runs them again and its result is
the one that counts.

An unanswered dependency never matches. For ``show`` and ``hide`` the owner is
then hidden, for ``require`` and ``optional`` it stays visible but optional.
"""
import json
from typing import Any, Mapping, NamedTuple, Optional

from formbuilder.constants.form_constants import Action, Operator


class FieldState(NamedTuple):
    visible: bool
    required: bool


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _equals(answer: Any, expected: Any) -> bool:
    if isinstance(answer, (list, tuple)):
        if isinstance(expected, (list, tuple)):
            return sorted(map(_as_text, answer)) == sorted(map(_as_text, expected))
        # A single-item multi-select equals its only choice
        return len(answer) == 1 and _as_text(answer[0]) == _as_text(expected)

    left, right = _as_number(answer), _as_number(expected)
    if left is not None and right is not None:
        return left == right
    return _as_text(answer) == _as_text(expected)


def _contains(answer: Any, expected: Any) -> bool:
    if isinstance(answer, (list, tuple)):
        return _as_text(expected) in [_as_text(item) for item in answer]
    return _as_text(expected) in _as_text(answer)


def _compare(answer: Any, expected: Any, greater: bool) -> bool:
    left, right = _as_number(answer), _as_number(expected)
    if left is None or right is None:
        return False
    return left > right if greater else left < right


def evaluate_rule(rule: Mapping[str, Any], answers: Mapping[str, Any]) -> bool:
    """Whether the rule's condition holds for the given answers (keyed by field id)."""
    answer = answers.get(rule.get("dependsOnFieldId"))
    if is_blank(answer):
        return False

    operator = Operator(rule.get("operator"))
    expected = rule.get("comparisonValue")

    if operator == Operator.EQUALS:
        return _equals(answer, expected)
    if operator == Operator.NOT_EQUALS:
        return not _equals(answer, expected)
    if operator == Operator.CONTAINS:
        return _contains(answer, expected)
    if operator == Operator.NOT_CONTAINS:
        return not _contains(answer, expected)
    if operator == Operator.GREATER_THAN:
        return _compare(answer, expected, greater=True)
    return _compare(answer, expected, greater=False)


def resolve_state(
    rule: Optional[Mapping[str, Any]],
    answers: Mapping[str, Any],
    required: bool = False,
) -> FieldState:
    """Visibility and effective required flag of a rule's owner."""
    if not rule:
        return FieldState(visible=True, required=required)

    action = Action(rule.get("action") or Action.SHOW)

    if is_blank(answers.get(rule.get("dependsOnFieldId"))):
        if action in (Action.SHOW, Action.HIDE):
            return FieldState(visible=False, required=False)
        return FieldState(visible=True, required=False)

    matched = evaluate_rule(rule, answers)

    if action == Action.SHOW:
        return FieldState(visible=matched, required=required and matched)
    if action == Action.HIDE:
        return FieldState(visible=not matched, required=required and not matched)
    if action == Action.REQUIRE:
        return FieldState(visible=True, required=matched)
    return FieldState(visible=True, required=required and not matched)


def section_visible(section, answers: Mapping[str, Any]) -> bool:
    # Only show/hide affect a section; require/optional leave it on screen
    return resolve_state(section.conditional, answers).visible


def field_state(field, answers: Mapping[str, Any], section_is_visible: bool = True) -> FieldState:
    if not section_is_visible:
        return FieldState(visible=False, required=False)
    declared = bool((field.validation or {}).get("required"))
    return resolve_state(field.conditional, answers, declared)
