"""Mode normalisation shared by the QA spec builder and the plan builder.

Accepted tokens are exact and case-sensitive:

    create, build_test, build-test, doctor      canonical spellings
    default, setup, install, update, remove     legacy scaffold modes -> create
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from component_wizard.errors import UnknownModeError
from component_wizard.models import RunMode

ModeAliases = Mapping[str, RunMode]

MODE_ALIASES: ModeAliases = MappingProxyType(
    {
        "create": RunMode.CREATE,
        "build_test": RunMode.BUILD_TEST,
        "build-test": RunMode.BUILD_TEST,
        "doctor": RunMode.DOCTOR,
        # legacy component QA modes all produced a scaffold plan
        "default": RunMode.CREATE,
        "setup": RunMode.CREATE,
        "install": RunMode.CREATE,
        "update": RunMode.CREATE,
        "remove": RunMode.CREATE,
    }
)

LEGACY_MODES = frozenset({"default", "setup", "install", "update", "remove"})


def normalize_mode(raw: str | RunMode, aliases: ModeAliases = MODE_ALIASES) -> RunMode:
    """Map a raw mode token onto a RunMode, or raise UnknownModeError."""
    if isinstance(raw, RunMode):
        return raw
    mode = aliases.get(raw)
    if mode is None:
        raise UnknownModeError(raw, sorted(aliases))
    return mode
