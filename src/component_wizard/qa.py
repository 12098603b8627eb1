"""QA spec builder and answer validation.

`spec_scaffold` is a pure function of the mode: no I/O, no clock, no
environment. Defaults never depend on where the wizard runs.
"""

from __future__ import annotations

import re
from typing import Any

from component_wizard.models import QaSpec, Question, QuestionKind, RunMode
from component_wizard.modes import MODE_ALIASES, ModeAliases, normalize_mode

DEFAULT_ABI_VERSION = "0.6.0"
DEFAULT_TEMPLATE_ID = "component-v0_6"
COMPONENT_KINDS = ("tool", "source")

COMPONENT_NAME_RE = re.compile(r"^[a-z][a-z0-9_-]*$")

_CREATE_QUESTIONS = (
    Question(
        id="name",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.component_name",
        required=True,
    ),
    Question(
        id="output_dir",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.output_dir",
        required=True,
    ),
    Question(
        id="abi_version",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.abi_version",
        default=DEFAULT_ABI_VERSION,
    ),
    Question(
        id="template_id",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.template_id",
        default=DEFAULT_TEMPLATE_ID,
    ),
    Question(
        id="component.kind",
        kind=QuestionKind.ENUM,
        prompt_key="wizard.component.kind.label",
        help_key="wizard.component.kind.help",
        default="tool",
        choices=COMPONENT_KINDS,
    ),
    Question(
        id="component.features.enabled",
        kind=QuestionKind.BOOLEAN,
        prompt_key="wizard.component.features.enabled.label",
        help_key="wizard.component.features.enabled.help",
        default=True,
    ),
    Question(
        id="features.i18n",
        kind=QuestionKind.BOOLEAN,
        prompt_key="wizard.component.features.i18n.label",
        help_key="wizard.component.features.i18n.help",
        default=True,
    ),
    Question(
        id="required_capabilities",
        kind=QuestionKind.STRING_LIST,
        prompt_key="cli.wizard.prompt.required_capabilities",
        default=(),
    ),
    Question(
        id="provided_capabilities",
        kind=QuestionKind.STRING_LIST,
        prompt_key="cli.wizard.prompt.provided_capabilities",
        default=(),
    ),
    Question(
        id="overwrite_output",
        kind=QuestionKind.BOOLEAN,
        prompt_key="cli.wizard.prompt.overwrite_output",
        default=True,
    ),
)

_BUILD_TEST_QUESTIONS = (
    Question(
        id="project_root",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.project_root",
        required=True,
    ),
    Question(
        id="full_tests",
        kind=QuestionKind.BOOLEAN,
        prompt_key="cli.wizard.prompt.full_tests",
        default=False,
    ),
    Question(
        id="target",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.target",
    ),
)

_DOCTOR_QUESTIONS = (
    Question(
        id="project_root",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.project_root",
        required=True,
    ),
    Question(
        id="profile",
        kind=QuestionKind.STRING,
        prompt_key="cli.wizard.prompt.profile",
    ),
)

_QUESTIONS = {
    RunMode.CREATE: _CREATE_QUESTIONS,
    RunMode.BUILD_TEST: _BUILD_TEST_QUESTIONS,
    RunMode.DOCTOR: _DOCTOR_QUESTIONS,
}


def spec_scaffold(mode: RunMode | str, *, aliases: ModeAliases = MODE_ALIASES) -> QaSpec:
    """Return the question set for a run mode."""
    mode = normalize_mode(mode, aliases)
    return QaSpec(
        id=f"component.wizard.run.{mode.value}",
        mode=mode,
        title_key=f"cli.wizard.{mode.value}.title",
        questions=_QUESTIONS[mode],
    )


def i18n_keys(spec: QaSpec) -> list[str]:
    """Every i18n key a spec refers to, in order of first use."""
    keys = [spec.title_key]
    for question in spec.questions:
        keys.append(question.prompt_key)
        if question.help_key:
            keys.append(question.help_key)
    return list(dict.fromkeys(keys))


def _kind_problem(question: Question, value: Any) -> str | None:
    if question.kind == QuestionKind.STRING:
        if not isinstance(value, str):
            return f"{question.id}: expected a string, got {type(value).__name__}"
        if question.required and not value.strip():
            return f"{question.id}: value must not be empty"
    elif question.kind == QuestionKind.BOOLEAN:
        if not isinstance(value, bool):
            return f"{question.id}: expected a boolean, got {type(value).__name__}"
    elif question.kind == QuestionKind.ENUM:
        if value not in question.choices:
            return f"{question.id}: {value!r} is not one of {', '.join(question.choices)}"
    elif question.kind == QuestionKind.STRING_LIST:
        if not isinstance(value, list | tuple):
            return f"{question.id}: expected a list of strings, got {type(value).__name__}"
        for item in value:
            if not isinstance(item, str) or not item.strip():
                return f"{question.id}: entries must be non-empty strings"
    return None


def validate_answers(spec: QaSpec, fields: dict[str, Any]) -> list[str]:
    """Check fields against the questions and return every problem found."""
    problems: list[str] = []
    for question in spec.questions:
        value = fields.get(question.id)
        if value is None:
            if question.required:
                problems.append(f"{question.id}: required answer is missing")
            continue
        problem = _kind_problem(question, value)
        if problem:
            problems.append(problem)
    return problems
