"""Wizard configuration loaded from environment variables."""

from __future__ import annotations

import os
import shlex
from pathlib import Path

from pydantic import BaseModel, Field


class CollaboratorCommands(BaseModel):
    """External commands the executor delegates build/test/doctor steps to."""

    build: list[str] = Field(default_factory=lambda: ["make", "build"])
    test: list[str] = Field(default_factory=lambda: ["make", "test"])
    full_test: list[str] = Field(default_factory=lambda: ["make", "test-full"])
    doctor: list[str] = Field(default_factory=lambda: ["make", "doctor"])


class WizardConfig(BaseModel):
    """All wizard settings, loaded from environment variables."""

    commands: CollaboratorCommands = Field(default_factory=CollaboratorCommands)
    translator: list[str] = Field(default_factory=lambda: ["greentic-i18n-translator"])
    locale: str | None = None
    templates_dir: Path | None = None
    debug: bool = False

    @classmethod
    def from_env(cls) -> WizardConfig:
        """Load configuration from environment variables."""
        defaults = CollaboratorCommands()

        def _cmd(var: str, default: list[str]) -> list[str]:
            raw = os.environ.get(var, "").strip()
            return shlex.split(raw) if raw else default

        templates_dir = os.environ.get("WIZARD_TEMPLATES_DIR")
        return cls(
            commands=CollaboratorCommands(
                build=_cmd("WIZARD_BUILD_CMD", defaults.build),
                test=_cmd("WIZARD_TEST_CMD", defaults.test),
                full_test=_cmd("WIZARD_FULL_TEST_CMD", defaults.full_test),
                doctor=_cmd("WIZARD_DOCTOR_CMD", defaults.doctor),
            ),
            translator=_cmd("WIZARD_TRANSLATOR_CMD", ["greentic-i18n-translator"]),
            locale=os.environ.get("WIZARD_LOCALE") or None,
            templates_dir=Path(templates_dir) if templates_dir else None,
            debug=bool(os.environ.get("WIZARD_DEBUG")),
        )
