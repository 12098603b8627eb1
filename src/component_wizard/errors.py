"""Exception taxonomy for the wizard engine."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from component_wizard.models import Step


class WizardError(RuntimeError):
    """Base class for every error raised by component_wizard."""


class UnknownModeError(WizardError):
    def __init__(self, raw: str, accepted: list[str]) -> None:
        self.raw = raw
        self.accepted = accepted
        super().__init__(f"unknown mode {raw!r} (accepted: {', '.join(accepted)})")


class AnswerValidationError(WizardError):
    """All field-level problems found in one answers payload."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("answer validation failed: " + "; ".join(self.problems))


class TemplateResolutionError(WizardError):
    pass


class PlanVersionError(WizardError):
    pass


class StepExecutionError(WizardError):
    def __init__(self, index: int, step: Step, cause: str) -> None:
        self.index = index
        self.step = step
        self.cause = cause
        super().__init__(f"step {index} ({step.kind}) failed: {cause}")


class BundleLoadError(WizardError):
    def __init__(self, file: Path, cause: str) -> None:
        self.file = file
        self.cause = cause
        super().__init__(f"failed to load locale file {file}: {cause}")


class BundleDecodeError(WizardError):
    pass


class TranslatorUnavailableError(WizardError):
    pass


class TranslatorCapabilityMissingError(WizardError):
    def __init__(self, capability: str, command: str) -> None:
        self.capability = capability
        self.command = command
        super().__init__(
            f"translator `{command}` does not provide the `{capability}` subcommand; "
            f"install a translator release that supports `{capability}` and retry"
        )
