"""Tests for the external translator adapter."""

import pytest

from component_wizard.errors import TranslatorCapabilityMissingError, TranslatorUnavailableError
from component_wizard.i18n.translator import (
    Capability,
    parse_capabilities,
    probe_capabilities,
    run_i18n,
    seed_locale_files,
)

HELP_ALL = """\
Usage: greentic-i18n-translator [OPTIONS] <COMMAND>

Commands:
  translate  Translate missing keys into the listed languages
  validate   Check translated files against the English source
  status     Show translation coverage
  help       Print this message or the help of the given subcommand(s)
"""

HELP_NO_STATUS = """\
Usage: greentic-i18n-translator <COMMAND>

Commands:
  translate  Translate missing keys
  validate   Check translated files
"""

HELP_VALIDATE_ONLY = """\
Commands:
  validate   Check translated files
  help       Print help
"""

COMMAND = ["greentic-i18n-translator"]


def test_parse_capabilities():
    assert parse_capabilities(HELP_ALL) == {Capability.TRANSLATE, Capability.VALIDATE, Capability.STATUS}
    assert parse_capabilities(HELP_NO_STATUS) == {Capability.TRANSLATE, Capability.VALIDATE}
    assert parse_capabilities("Usage: translate things\n") == frozenset()


def test_probe_missing_executable(make_runner):
    with pytest.raises(TranslatorUnavailableError, match="not installed"):
        probe_capabilities(COMMAND, make_runner([(-1, "Command not found: greentic-i18n-translator")]))


def test_probe_failing_help(make_runner):
    with pytest.raises(TranslatorUnavailableError, match="exited with 3"):
        probe_capabilities(COMMAND, make_runner([(3, "boom")]))


def test_run_all(i18n_dir, make_runner):
    runner = make_runner([(0, HELP_ALL)])
    run = run_i18n("all", i18n_dir=i18n_dir, command=COMMAND, runner=runner)
    assert run.exit_code == 0
    assert run.warnings == []
    assert [cmd[3] for cmd, _ in runner.calls[1:]] == ["translate", "validate", "status"]

    translate, _ = runner.calls[1]
    assert translate[:3] == ["greentic-i18n-translator", "--locale", "en"]
    assert translate[translate.index("--langs") + 1] == "en,fr,de"
    assert translate[translate.index("--en") + 1] == str(i18n_dir / "en.json")
    assert translate[-2:] == ["--auth-mode", "auto"]
    assert "--auth-mode" not in runner.calls[2][0]


def test_missing_status_is_a_warning(i18n_dir, make_runner):
    runner = make_runner([(0, HELP_NO_STATUS)])
    run = run_i18n("all", i18n_dir=i18n_dir, command=COMMAND, runner=runner)
    assert run.exit_code == 0
    assert len(run.warnings) == 1
    assert "status" in run.warnings[0]
    assert len(runner.calls) == 3


def test_missing_translate_is_fatal(i18n_dir, make_runner):
    runner = make_runner([(0, HELP_VALIDATE_ONLY)])
    with pytest.raises(TranslatorCapabilityMissingError) as excinfo:
        run_i18n("translate", i18n_dir=i18n_dir, command=COMMAND, runner=runner)
    assert excinfo.value.capability == "translate"
    assert "install" in str(excinfo.value)
    assert len(runner.calls) == 1


def test_failing_step_stops_the_run(i18n_dir, make_runner):
    runner = make_runner([(0, HELP_ALL), (4, "quota exceeded\n")])
    run = run_i18n("all", i18n_dir=i18n_dir, command=COMMAND, runner=runner)
    assert run.exit_code == 4
    assert run.outputs == {"translate": "quota exceeded\n"}
    assert len(runner.calls) == 2


def test_seed_locale_files(i18n_dir):
    created = seed_locale_files(i18n_dir)
    assert created == [i18n_dir / "de.json"]
    assert (i18n_dir / "de.json").read_text() == "{\n}\n"
    assert (i18n_dir / "fr.json").read_text() == '{"greeting": "Bonjour"}'
    assert seed_locale_files(i18n_dir) == []
