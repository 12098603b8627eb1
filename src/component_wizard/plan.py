"""Plan builder.

`apply_scaffold` validates answers, derives defaults from the request,
pins the template revision and emits an ordered, versioned plan. Building
the plan never touches the filesystem; with `dry_run=False` the finished
plan is handed to the executor afterwards.
"""

from __future__ import annotations

import json
import logging
import posixpath
import re
from pathlib import Path
from typing import Any

import cbor2
from pydantic import BaseModel, ValidationError

from component_wizard.config import CollaboratorCommands
from component_wizard.errors import AnswerValidationError, TemplateResolutionError, UnknownModeError
from component_wizard.executor import CommandRunner, execute_plan
from component_wizard.models import (
    ANSWERS_SCHEMA,
    Answers,
    ApplyResult,
    BuildComponentStep,
    DoctorStep,
    EnsureDirStep,
    Plan,
    PlanMetadata,
    QaSpec,
    RunMode,
    Step,
    TestComponentStep,
    WriteFileStep,
    lookup_field,
)
from component_wizard.modes import LEGACY_MODES, MODE_ALIASES, ModeAliases, normalize_mode
from component_wizard.qa import (
    COMPONENT_NAME_RE,
    DEFAULT_ABI_VERSION,
    DEFAULT_TEMPLATE_ID,
    spec_scaffold,
    validate_answers,
)
from component_wizard.templates import GeneratedFile, TemplateCatalog

logger = logging.getLogger(__name__)

GENERATOR_ID = "component-wizard/scaffold"
RUN_GENERATOR_ID = "component-wizard/runner"
RUN_TEMPLATE_VERSION = "component-wizard-run/v1"

# old field id -> current question id
DEPRECATED_FIELDS = {"component_name": "name", "kind": "component.kind"}

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


class ScaffoldRequest(BaseModel):
    mode: str
    project_root: str = "."
    answers: Answers | None = None
    template_id: str | None = None


# ---------------------------------------------------------------------------
# Answer normalisation
# ---------------------------------------------------------------------------


def _normalize_fields(
    spec: QaSpec,
    request: ScaffoldRequest,
    warnings: list[str],
) -> dict[str, Any]:
    """Flatten answers onto question ids and fill derived and declared defaults."""
    raw = request.answers.fields if request.answers else {}
    fields: dict[str, Any] = {}

    for old, new in DEPRECATED_FIELDS.items():
        if old in raw and lookup_field(raw, new) is None and spec.question(new):
            warnings.append(f"wizard: field `{old}` is deprecated; use `{new}`")
            fields[new] = raw[old]

    for question in spec.questions:
        value = lookup_field(raw, question.id)
        if value is not None:
            fields[question.id] = value

    if spec.mode == RunMode.CREATE:
        if request.template_id:
            fields["template_id"] = request.template_id
        name = fields.get("name")
        if "output_dir" not in fields and isinstance(name, str) and name:
            fields["output_dir"] = posixpath.join(request.project_root, name)
        prefill = lookup_field(raw, "prefill_answers")
        if prefill is not None:
            fields["prefill_answers"] = prefill
    else:
        fields.setdefault("project_root", request.project_root)

    for question in spec.questions:
        if question.id not in fields and question.default is not None:
            default = question.default
            fields[question.id] = list(default) if isinstance(default, tuple) else default
    return fields


def _extra_problems(mode: RunMode, fields: dict[str, Any]) -> list[str]:
    problems = []
    if mode != RunMode.CREATE:
        return problems
    name = fields.get("name")
    if isinstance(name, str) and name and not COMPONENT_NAME_RE.match(name):
        problems.append(
            f"name: {name!r} must start with a lowercase letter and contain only"
            " lowercase letters, digits, '-' or '_'"
        )
    abi = fields.get("abi_version")
    if isinstance(abi, str) and not _VERSION_RE.match(abi):
        problems.append(f"abi_version: {abi!r} is not a MAJOR.MINOR.PATCH version")
    prefill = fields.get("prefill_answers")
    if prefill is not None and not isinstance(prefill, dict):
        problems.append("prefill_answers: expected an object")
    return problems


def _normalize_capabilities(values: list[str]) -> list[str]:
    return sorted({value.strip() for value in values})


# ---------------------------------------------------------------------------
# Step derivation
# ---------------------------------------------------------------------------


def _prefill_files(fields: dict[str, Any], prefill_name: str) -> list[GeneratedFile]:
    prefill = fields.get("prefill_answers")
    if not prefill:
        return []
    text = json.dumps(prefill, indent=2, sort_keys=True) + "\n"
    return [
        GeneratedFile(path=f"examples/{prefill_name}.answers.json", contents=text.encode("utf-8")),
        GeneratedFile(
            path=f"examples/{prefill_name}.answers.cbor",
            contents=cbor2.dumps(prefill, canonical=True),
            binary=True,
        ),
    ]


def _create_steps(output_dir: str, files: list[GeneratedFile]) -> list[Step]:
    """EnsureDir for the root and every parent directory, then one WriteFile per file."""
    files = sorted(files, key=lambda f: f.path)
    dirs = sorted({posixpath.dirname(f.path) for f in files} - {""})
    steps: list[Step] = [EnsureDirStep(path=output_dir)]
    steps += [EnsureDirStep(path=posixpath.join(output_dir, d)) for d in dirs]
    steps += [
        WriteFileStep.from_bytes(
            posixpath.join(output_dir, f.path),
            f.contents,
            binary=f.binary,
            executable=f.executable,
        )
        for f in files
    ]
    return steps


def _build_create_plan(
    fields: dict[str, Any],
    catalog: TemplateCatalog,
    prefill_name: str,
    warnings: list[str],
) -> Plan:
    abi_version = fields["abi_version"]
    if abi_version != DEFAULT_ABI_VERSION:
        warnings.append(
            f"wizard: warning: only component@{DEFAULT_ABI_VERSION} template is generated"
            f" (requested {abi_version})"
        )

    revision = catalog.resolve(fields.get("template_id", DEFAULT_TEMPLATE_ID))
    name = fields["name"]
    context = {
        "name": name,
        "package": name.replace("-", "_"),
        "abi_version": abi_version,
        "component_kind": fields["component.kind"],
        "config_enabled": fields["component.features.enabled"],
        "features": {"i18n": fields["features.i18n"]},
        "required_capabilities": fields["required_capabilities"],
        "provided_capabilities": fields["provided_capabilities"],
        "template_version": revision.version,
    }
    files = catalog.render(revision, context, context["features"])
    files += _prefill_files(fields, prefill_name)
    logger.info("Using template %s@%s", revision.id, revision.version)

    return Plan(
        metadata=PlanMetadata(
            generator=GENERATOR_ID,
            template_version=revision.version,
            template_digest_blake3=revision.digest,
            requested_abi_version=abi_version,
        ),
        steps=tuple(_create_steps(fields["output_dir"], files)),
    )


def _run_metadata(digest: str) -> PlanMetadata:
    return PlanMetadata(
        generator=RUN_GENERATOR_ID,
        template_version=RUN_TEMPLATE_VERSION,
        template_digest_blake3=digest,
        requested_abi_version=DEFAULT_ABI_VERSION,
    )


def _build_build_test_plan(fields: dict[str, Any]) -> Plan:
    root = fields["project_root"]
    return Plan(
        metadata=_run_metadata("mode-build-test"),
        steps=(
            BuildComponentStep(project_root=root, target=fields.get("target")),
            TestComponentStep(project_root=root, full=fields["full_tests"]),
        ),
    )


def _build_doctor_plan(fields: dict[str, Any]) -> Plan:
    return Plan(
        metadata=_run_metadata("mode-doctor"),
        steps=(DoctorStep(project_root=fields["project_root"], profile=fields.get("profile")),),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def apply_scaffold(
    request: ScaffoldRequest,
    dry_run: bool,
    *,
    catalog: TemplateCatalog | None = None,
    aliases: ModeAliases = MODE_ALIASES,
    commands: CollaboratorCommands | None = None,
    runner: CommandRunner | None = None,
) -> ApplyResult:
    """Build the plan for a request and, unless dry_run, execute it.

    Unknown modes, answer problems and template failures are reported in
    `errors`; in that case there is no plan and no config.
    """
    warnings: list[str] = []
    try:
        mode = normalize_mode(request.mode, aliases)
    except UnknownModeError as exc:
        return ApplyResult(errors=[str(exc)])

    errors: list[str] = []
    if request.answers is not None:
        if request.answers.schema_id != ANSWERS_SCHEMA:
            errors.append(
                f"answers schema {request.answers.schema_id!r} is not supported"
                f" (expected {ANSWERS_SCHEMA!r})"
            )
        try:
            answers_mode = normalize_mode(request.answers.mode, aliases)
        except UnknownModeError as exc:
            errors.append(f"answers: {exc}")
        else:
            if answers_mode != mode:
                errors.append(
                    f"answers were recorded for mode {answers_mode.value!r}"
                    f" but mode {mode.value!r} was requested"
                )

    spec = spec_scaffold(mode, aliases=aliases)
    fields = _normalize_fields(spec, request, warnings)
    errors += validate_answers(spec, fields) + _extra_problems(mode, fields)
    if errors:
        logger.info("Answer validation failed: %s", AnswerValidationError(errors))
        return ApplyResult(warnings=warnings, errors=errors)

    if mode == RunMode.CREATE:
        fields["required_capabilities"] = _normalize_capabilities(fields["required_capabilities"])
        fields["provided_capabilities"] = _normalize_capabilities(fields["provided_capabilities"])
        prefill_name = request.mode if request.mode in LEGACY_MODES else mode.value
        try:
            plan = _build_create_plan(fields, catalog or TemplateCatalog(), prefill_name, warnings)
        except TemplateResolutionError as exc:
            return ApplyResult(warnings=warnings, errors=[str(exc)])
    elif mode == RunMode.BUILD_TEST:
        plan = _build_build_test_plan(fields)
    else:
        plan = _build_doctor_plan(fields)

    result = ApplyResult(plan=plan, warnings=warnings, config=dict(sorted(fields.items())))
    if dry_run:
        return result

    report = execute_plan(
        plan,
        overwrite=fields.get("overwrite_output", True),
        commands=commands,
        runner=runner,
    )
    result.report = report
    if not report.ok:
        result.errors.append(
            f"step {report.failed_index} ({report.failed.name}) failed: {report.failed.detail}"
        )
        result.config = None
    return result


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def write_plan(plan: Plan, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(plan.to_json(), encoding="utf-8")


def load_plan(path: Path) -> Plan:
    return Plan.from_json(path.read_text(encoding="utf-8"))


def default_answers(mode: RunMode) -> Answers:
    return Answers(schema=ANSWERS_SCHEMA, mode=mode.value, fields={})


def load_answers(path: Path) -> Answers:
    """Read an answers document. Unreadable or malformed files raise AnswerValidationError."""
    try:
        return Answers.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise AnswerValidationError([f"failed to read answers {path}: {exc}"]) from exc
    except ValidationError as exc:
        problems = [f"{'.'.join(map(str, e['loc'])) or 'answers'}: {e['msg']}" for e in exc.errors()]
        raise AnswerValidationError(problems) from exc


def write_answers(answers: Answers, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(answers.to_json(), encoding="utf-8")
