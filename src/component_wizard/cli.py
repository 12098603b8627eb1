"""Command-line interface for the component wizard.

Usage:
    component-wizard wizard --mode create --qa-answers answers.json --plan-out plan.json
    component-wizard wizard --mode build_test --execution execute --project-root ./hello
    component-wizard qa-spec --mode doctor
    component-wizard apply-answers --mode create --answers answers.json
    component-wizard i18n-keys [--mode create]
    component-wizard i18n <translate|validate|status|all|seed|pack> [--dir DIR]

Exit codes: 0 success, 1 wizard or validation failure, 2 translator problems.
"""

# ruff: noqa: T201

from __future__ import annotations

import argparse
import enum
import logging
import posixpath
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from component_wizard.config import WizardConfig
from component_wizard.errors import (
    AnswerValidationError,
    TranslatorCapabilityMissingError,
    TranslatorUnavailableError,
    UnknownModeError,
    WizardError,
)
from component_wizard.i18n.bundle import (
    DEFAULT_LOCALE,
    load_locale_files,
    missing_keys,
    write_packed_bundle,
)
from component_wizard.i18n.resolver import CATALOG_DIR, Translator
from component_wizard.i18n.translator import I18nAction, run_i18n, seed_locale_files
from component_wizard.models import Answers, ApplyResult, QaSpec, Question, QuestionKind, RunMode
from component_wizard.modes import normalize_mode
from component_wizard.plan import (
    ScaffoldRequest,
    apply_scaffold,
    default_answers,
    load_answers,
    write_answers,
    write_plan,
)
from component_wizard.qa import i18n_keys, spec_scaffold
from component_wizard.templates import TemplateCatalog

logger = logging.getLogger(__name__)


class Operation(enum.StrEnum):
    WIZARD = "wizard"
    QA_SPEC = "qa-spec"
    APPLY_ANSWERS = "apply-answers"
    I18N_KEYS = "i18n-keys"
    I18N = "i18n"


class Execution(enum.StrEnum):
    DRY_RUN = "dry-run"
    EXECUTE = "execute"


I18N_COMMANDS = [*(a.value for a in I18nAction), "seed", "pack"]

_TRUE = {"y", "yes", "true", "1"}
_FALSE = {"n", "no", "false", "0"}


def _interactive() -> bool:
    return sys.stdin.isatty()


# ---------------------------------------------------------------------------
# Interactive prompts
# ---------------------------------------------------------------------------


def _format_default(question: Question, default: Any) -> str:
    if default is None or default == ():
        return ""
    if question.kind == QuestionKind.BOOLEAN:
        return " [Y/n]" if default else " [y/N]"
    if question.kind == QuestionKind.STRING_LIST:
        return f" [{', '.join(default)}]"
    return f" [{default}]"


def _parse_reply(question: Question, reply: str, tr: Translator) -> tuple[bool, Any]:
    """Returns (accepted, value); prints the reason when a reply is rejected."""
    if question.kind == QuestionKind.BOOLEAN:
        if reply.lower() in _TRUE:
            return True, True
        if reply.lower() in _FALSE:
            return True, False
        print(tr.tr("cli.wizard.error.invalid_boolean"))
        return False, None
    if question.kind == QuestionKind.ENUM:
        if reply in question.choices:
            return True, reply
        print(tr.trf("cli.wizard.error.invalid_choice", ", ".join(question.choices)))
        return False, None
    if question.kind == QuestionKind.STRING_LIST:
        return True, [item.strip() for item in reply.split(",") if item.strip()]
    return True, reply


def _ask(question: Question, tr: Translator, default: Any) -> Any:
    label = tr.tr(question.prompt_key)
    if question.help_key:
        label += f" {tr.tr('cli.wizard.help_hint')}"
    prompt = f"{label}{_format_default(question, default)}: "
    while True:
        reply = input(prompt).strip()
        if reply == "?" and question.help_key:
            print(tr.tr(question.help_key))
            continue
        if not reply:
            if default is not None:
                return list(default) if isinstance(default, tuple) else default
            if question.required:
                print(tr.tr("cli.wizard.error.value_required"))
                continue
            return None
        accepted, value = _parse_reply(question, reply, tr)
        if accepted:
            return value


def prompt_answers(spec: QaSpec, tr: Translator, project_root: str) -> Answers:
    """Walk the QA spec question by question and collect answers."""
    print(tr.tr(spec.title_key))
    fields: dict[str, Any] = {}
    for question in spec.questions:
        default = question.default
        if question.id == "output_dir" and fields.get("name"):
            default = posixpath.join(project_root, fields["name"])
        elif question.id == "project_root":
            default = project_root
        value = _ask(question, tr, default)
        if value is not None:
            fields[question.id] = value
    return Answers(mode=spec.mode.value, fields=fields)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _report(result: ApplyResult, tr: Translator) -> None:
    for warning in result.warnings:
        print(warning, file=sys.stderr)
    report = result.report
    if report is not None and report.failed is not None:
        print(tr.trf("cli.wizard.result.step_failed", report.failed_index, report.failed.name), file=sys.stderr)
        print(report.failed.detail, file=sys.stderr)
        if report.pending:
            print(tr.trf("cli.wizard.result.pending", len(report.pending)), file=sys.stderr)
        return
    for error in result.errors:
        print(tr.trf("cli.wizard.error.generic", error), file=sys.stderr)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_wizard(args: argparse.Namespace, cfg: WizardConfig, tr: Translator) -> int:
    mode = normalize_mode(args.mode)
    dry_run = Execution(args.execution) == Execution.DRY_RUN
    interactive = args.qa_answers is None and _interactive()

    if dry_run and args.plan_out is None and not interactive:
        print(tr.tr("cli.wizard.error.plan_out_required"), file=sys.stderr)
        return 1

    if args.qa_answers is not None:
        answers = load_answers(args.qa_answers)
    elif interactive:
        try:
            answers = prompt_answers(spec_scaffold(mode), tr, args.project_root)
        except (EOFError, KeyboardInterrupt):
            print(f"\n{tr.tr('cli.wizard.error.cancelled')}", file=sys.stderr)
            return 1
    else:
        answers = default_answers(mode)

    if args.full_tests:
        answers.fields["full_tests"] = True
    if args.qa_answers_out is not None:
        write_answers(answers, args.qa_answers_out)
        print(tr.trf("cli.wizard.result.answers_written", args.qa_answers_out))

    request = ScaffoldRequest(
        mode=args.mode,
        project_root=args.project_root,
        answers=answers,
        template_id=args.template,
    )
    result = apply_scaffold(
        request,
        dry_run,
        catalog=TemplateCatalog(cfg.templates_dir),
        commands=cfg.commands,
    )
    _report(result, tr)
    if args.json:
        print(result.to_response().model_dump_json(indent=2))
    if not result.ok:
        return 1

    if dry_run:
        if args.plan_out is not None:
            write_plan(result.plan, args.plan_out)
            print(tr.trf("cli.wizard.result.plan_written", args.plan_out))
        else:
            print(result.plan.to_json(), end="")
        return 0

    print(tr.trf("cli.wizard.result.execute_ok", len(result.report.completed)))
    if mode == RunMode.CREATE:
        print(tr.trf("cli.wizard.result.component_written", result.config["output_dir"]))
    return 0


def _cmd_qa_spec(args: argparse.Namespace, cfg: WizardConfig, tr: Translator) -> int:
    print(spec_scaffold(args.mode).model_dump_json(indent=2))
    return 0


def _cmd_apply_answers(args: argparse.Namespace, cfg: WizardConfig, tr: Translator) -> int:
    answers = load_answers(args.answers)
    request = ScaffoldRequest(mode=args.mode, project_root=args.project_root, answers=answers)
    result = apply_scaffold(request, True, catalog=TemplateCatalog(cfg.templates_dir))
    print(result.to_response().model_dump_json(indent=2))
    return 0 if result.ok else 1


def _cmd_i18n_keys(args: argparse.Namespace, cfg: WizardConfig, tr: Translator) -> int:
    if args.mode:
        keys = i18n_keys(spec_scaffold(args.mode))
    else:
        keys = sorted(load_locale_files(args.dir).get(DEFAULT_LOCALE, {}))
    for key in keys:
        print(key)
    return 0


def _cmd_i18n(args: argparse.Namespace, cfg: WizardConfig, tr: Translator) -> int:
    i18n_dir: Path = args.dir
    if args.command == "seed":
        created = seed_locale_files(i18n_dir)
        for path in created:
            print(tr.trf("cli.i18n.result.seeded", path))
        if not created:
            print(tr.tr("cli.i18n.result.nothing_to_seed"))
        return 0
    if args.command == "pack":
        out = args.out or i18n_dir.parent / "i18n.cbor"
        digest = write_packed_bundle(i18n_dir, out)
        bundle = load_locale_files(i18n_dir)
        print(tr.trf("cli.i18n.result.packed", len(bundle), out, digest))
        for locale, keys in missing_keys(bundle).items():
            logger.warning("%s is missing %d keys: %s", locale, len(keys), ", ".join(keys))
        return 0

    try:
        run = run_i18n(
            args.command,
            i18n_dir=i18n_dir,
            command=cfg.translator,
            locale=tr.locale,
            auth_mode=args.auth_mode,
        )
    except (TranslatorUnavailableError, TranslatorCapabilityMissingError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    for warning in run.warnings:
        print(warning, file=sys.stderr)
    for output in run.outputs.values():
        print(output, end="")
    return run.exit_code


_COMMANDS = {
    Operation.WIZARD: _cmd_wizard,
    Operation.QA_SPEC: _cmd_qa_spec,
    Operation.APPLY_ANSWERS: _cmd_apply_answers,
    Operation.I18N_KEYS: _cmd_i18n_keys,
    Operation.I18N: _cmd_i18n,
}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--locale", help="locale for wizard messages")

    parser = argparse.ArgumentParser(prog="component-wizard", description="Scaffold, build and check components.")
    sub = parser.add_subparsers(dest="operation", required=True)

    wizard = sub.add_parser(Operation.WIZARD.value, parents=[common], help="run the wizard")
    wizard.add_argument("--mode", default=RunMode.CREATE.value)
    wizard.add_argument("--execution", choices=[e.value for e in Execution], default=Execution.DRY_RUN.value)
    wizard.add_argument("--qa-answers", type=Path)
    wizard.add_argument("--qa-answers-out", type=Path)
    wizard.add_argument("--plan-out", type=Path)
    wizard.add_argument("--project-root", default=".")
    wizard.add_argument("--template")
    wizard.add_argument("--full-tests", action="store_true")
    wizard.add_argument("--json", action="store_true", help="print the apply-answers response")

    qa_spec = sub.add_parser(Operation.QA_SPEC.value, parents=[common], help="print the QA spec")
    qa_spec.add_argument("--mode", default=RunMode.CREATE.value)

    apply = sub.add_parser(Operation.APPLY_ANSWERS.value, parents=[common], help="validate answers")
    apply.add_argument("--mode", default=RunMode.CREATE.value)
    apply.add_argument("--answers", type=Path, required=True)
    apply.add_argument("--project-root", default=".")

    keys = sub.add_parser(Operation.I18N_KEYS.value, parents=[common], help="list i18n keys")
    keys.add_argument("--mode")
    keys.add_argument("--dir", type=Path, default=CATALOG_DIR)

    i18n = sub.add_parser(Operation.I18N.value, parents=[common], help="locale tooling")
    i18n.add_argument("command", choices=I18N_COMMANDS)
    i18n.add_argument("--dir", type=Path, default=Path("assets/i18n"))
    i18n.add_argument("--out", type=Path)
    i18n.add_argument("--auth-mode", default="auto")
    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # Only show detailed logs for our own code
    logging.getLogger("component_wizard").setLevel(logging.DEBUG if debug else logging.INFO)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    cfg = WizardConfig.from_env()
    _configure_logging(cfg.debug)

    args = build_parser().parse_args(argv)
    tr = Translator.from_catalog(args.locale or cfg.locale)
    handler = _COMMANDS[Operation(args.operation)]
    try:
        return handler(args, cfg, tr)
    except UnknownModeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except AnswerValidationError as exc:
        for problem in exc.problems:
            print(tr.trf("cli.wizard.error.generic", problem), file=sys.stderr)
        return 1
    except WizardError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
