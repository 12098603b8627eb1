"""Adapter for the external translator CLI.

The translator's subcommands are discovered from its `--help` output rather
than assumed. `translate` is required to produce translations; a missing
`validate` or `status` only degrades to a warning. The translator is never
installed automatically.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from component_wizard.errors import TranslatorCapabilityMissingError, TranslatorUnavailableError
from component_wizard.executor import CommandRunner, run_command
from component_wizard.i18n.bundle import DEFAULT_LOCALE, load_locale_list

logger = logging.getLogger(__name__)


class Capability(enum.StrEnum):
    TRANSLATE = "translate"
    VALIDATE = "validate"
    STATUS = "status"


class I18nAction(enum.StrEnum):
    TRANSLATE = "translate"
    VALIDATE = "validate"
    STATUS = "status"
    ALL = "all"


_ACTION_CAPABILITIES = {
    I18nAction.TRANSLATE: (Capability.TRANSLATE,),
    I18nAction.VALIDATE: (Capability.VALIDATE,),
    I18nAction.STATUS: (Capability.STATUS,),
    I18nAction.ALL: (Capability.TRANSLATE, Capability.VALIDATE, Capability.STATUS),
}

_SUBCOMMAND_RE = re.compile(r"^\s{2,}([a-z][a-z0-9-]*)\b")


def parse_capabilities(help_text: str) -> frozenset[Capability]:
    """Find known subcommands listed in a help screen (indented first words)."""
    found = set()
    known = {c.value for c in Capability}
    for line in help_text.splitlines():
        m = _SUBCOMMAND_RE.match(line)
        if m and m.group(1) in known:
            found.add(Capability(m.group(1)))
    return frozenset(found)


def probe_capabilities(command: list[str], runner: CommandRunner = run_command) -> frozenset[Capability]:
    exit_code, output = runner([*command, "--help"], None)
    if exit_code == -1 and output.startswith("Command not found"):
        raise TranslatorUnavailableError(
            f"translator `{' '.join(command)}` is not installed or not on PATH; "
            "install it and set WIZARD_TRANSLATOR_CMD if it lives elsewhere"
        )
    if exit_code != 0:
        raise TranslatorUnavailableError(
            f"translator `{' '.join(command)} --help` exited with {exit_code}: {output.strip()}"
        )
    capabilities = parse_capabilities(output)
    logger.debug("Translator capabilities: %s", sorted(capabilities))
    return capabilities


@dataclass
class I18nRun:
    exit_code: int = 0
    warnings: list[str] = field(default_factory=list)
    outputs: dict[str, str] = field(default_factory=dict)


def run_i18n(
    action: I18nAction | str,
    *,
    i18n_dir: Path,
    command: list[str],
    locale: str = DEFAULT_LOCALE,
    auth_mode: str = "auto",
    runner: CommandRunner = run_command,
) -> I18nRun:
    """Run translate/validate/status against the locales listed in locales.json."""
    action = I18nAction(action)
    capabilities = probe_capabilities(command, runner)
    langs = ",".join(load_locale_list(i18n_dir))
    en_path = i18n_dir / f"{DEFAULT_LOCALE}.json"

    result = I18nRun()
    for capability in _ACTION_CAPABILITIES[action]:
        if capability not in capabilities:
            if capability == Capability.TRANSLATE:
                raise TranslatorCapabilityMissingError(capability.value, " ".join(command))
            message = f"translator does not support `{capability.value}`; skipping"
            logger.warning(message)
            result.warnings.append(message)
            continue

        cmd = [*command, "--locale", locale, capability.value, "--langs", langs, "--en", str(en_path)]
        if capability == Capability.TRANSLATE:
            cmd += ["--auth-mode", auth_mode]
        logger.info("Running translator %s", capability.value)
        exit_code, output = runner(cmd, i18n_dir)
        result.outputs[capability.value] = output
        if exit_code != 0:
            result.exit_code = exit_code
            break
    return result


def seed_locale_files(i18n_dir: Path) -> list[Path]:
    """Create an empty dictionary for every listed locale that has no file yet."""
    created = []
    for locale in load_locale_list(i18n_dir):
        path = i18n_dir / f"{locale}.json"
        if not path.exists():
            path.write_text("{\n}\n", encoding="utf-8")
            logger.info("created %s", path)
            created.append(path)
    return created
