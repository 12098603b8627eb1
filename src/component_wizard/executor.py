"""Plan executor.

Walks a plan's steps strictly in order and dispatches each one to the
handler for its kind. The first failing step stops the run; steps that
already ran are not rolled back. Step indexes are 0-based positions in
`plan.steps`.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from component_wizard.config import CollaboratorCommands
from component_wizard.models import (
    BuildComponentStep,
    CommandEntry,
    DoctorStep,
    EnsureDirStep,
    ExecutionReport,
    Plan,
    Step,
    StepKind,
    StepResult,
    TestComponentStep,
    WriteFileStep,
    content_digest,
)

logger = logging.getLogger(__name__)

CommandRunner = Callable[[list[str], Path | None], tuple[int, str]]

MAX_LOGGED_OUTPUT = 50_000


def run_command(cmd: list[str], cwd: Path | None = None) -> tuple[int, str]:
    """Run a command and return (exit_code, combined stdout/stderr)."""
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except FileNotFoundError:
        return -1, f"Command not found: {cmd[0]}"
    except OSError as exc:
        return -1, f"failed to run {cmd[0]}: {exc}"
    return proc.returncode, proc.stdout


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------


@dataclass
class ExecutionState:
    commands: CollaboratorCommands
    overwrite: bool = True
    runner: CommandRunner = run_command
    cmd_log: list[CommandEntry] = field(default_factory=list)


def _run_cmd(cmd: list[str], cwd: Path, *, step: int, state: ExecutionState) -> tuple[int, str]:
    """Run a collaborator command and log it. Returns (exit_code, output)."""
    start = time.monotonic()
    exit_code, output = state.runner(cmd, cwd)
    duration_ms = int((time.monotonic() - start) * 1000)

    logged_output = output[:MAX_LOGGED_OUTPUT] + ("..." if len(output) > MAX_LOGGED_OUTPUT else "")
    state.cmd_log.append(
        CommandEntry(
            step=step,
            command=" ".join(cmd),
            cwd=str(cwd),
            exit_code=exit_code,
            duration_ms=duration_ms,
            output=logged_output,
        )
    )
    return exit_code, output


def _ok(idx: int, step: Step, detail: str, *, changed: bool) -> StepResult:
    return StepResult(step=idx, name=step.kind, success=True, changed=changed, detail=detail)


def _fail(idx: int, step: Step, detail: str) -> StepResult:
    return StepResult(step=idx, name=step.kind, success=False, detail=detail)


# ---------------------------------------------------------------------------
# Step handlers
# ---------------------------------------------------------------------------


def _handle_ensure_dir(step: EnsureDirStep, state: ExecutionState, idx: int) -> StepResult:
    path = Path(step.path)
    if path.is_dir():
        return _ok(idx, step, f"{path} already exists", changed=False)
    if path.exists():
        return _fail(idx, step, f"{path} exists and is not a directory")
    try:
        path.mkdir(parents=True)
    except OSError as exc:
        return _fail(idx, step, f"failed to create directory {path}: {exc}")
    return _ok(idx, step, f"created {path}", changed=True)


def _handle_write_file(step: WriteFileStep, state: ExecutionState, idx: int) -> StepResult:
    path = Path(step.path)
    data = step.content_bytes()
    if content_digest(data) != step.digest:
        return _fail(idx, step, f"content for {path} does not match its digest")
    if path.is_dir():
        return _fail(idx, step, f"{path} is a directory")

    if path.exists():
        try:
            unchanged = content_digest(path.read_bytes()) == step.digest
            if unchanged and step.executable:
                path.chmod(0o755)
        except OSError as exc:
            return _fail(idx, step, f"failed to check {path}: {exc}")
        if unchanged:
            return _ok(idx, step, f"{path} unchanged", changed=False)
        if not state.overwrite:
            return _fail(idx, step, f"AlreadyExists: {path} has different content")

    if not path.parent.is_dir():
        return _fail(idx, step, f"parent directory {path.parent} does not exist")
    try:
        path.write_bytes(data)
        if step.executable:
            path.chmod(0o755)
    except OSError as exc:
        return _fail(idx, step, f"failed to write {path}: {exc}")
    return _ok(idx, step, f"wrote {path} ({len(data)} bytes)", changed=True)


def _delegate(cmd: list[str], step: Step, state: ExecutionState, idx: int) -> StepResult:
    """Hand a step to an external collaborator; its output is the diagnostic."""
    root = Path(step.project_root)
    if not root.is_dir():
        return _fail(idx, step, f"project root {root} does not exist")
    exit_code, output = _run_cmd(cmd, root, step=idx, state=state)
    if exit_code != 0:
        return _fail(idx, step, output)
    return _ok(idx, step, output, changed=True)


def _handle_build_component(step: BuildComponentStep, state: ExecutionState, idx: int) -> StepResult:
    cmd = list(state.commands.build)
    if step.target:
        cmd.append(f"TARGET={step.target}")
    return _delegate(cmd, step, state, idx)


def _handle_test_component(step: TestComponentStep, state: ExecutionState, idx: int) -> StepResult:
    cmd = list(state.commands.full_test if step.full else state.commands.test)
    return _delegate(cmd, step, state, idx)


def _handle_doctor(step: DoctorStep, state: ExecutionState, idx: int) -> StepResult:
    cmd = list(state.commands.doctor)
    if step.profile:
        cmd.append(f"PROFILE={step.profile}")
    return _delegate(cmd, step, state, idx)


# ---------------------------------------------------------------------------
# Step dispatcher
# ---------------------------------------------------------------------------

_HANDLERS = {
    StepKind.ENSURE_DIR: _handle_ensure_dir,
    StepKind.WRITE_FILE: _handle_write_file,
    StepKind.BUILD_COMPONENT: _handle_build_component,
    StepKind.TEST_COMPONENT: _handle_test_component,
    StepKind.DOCTOR: _handle_doctor,
}


def execute_plan(
    plan: Plan | None,
    *,
    overwrite: bool = True,
    commands: CollaboratorCommands | None = None,
    runner: CommandRunner | None = None,
) -> ExecutionReport:
    """Perform the plan's steps in order, stopping at the first failure.

    Args:
        plan: Plan produced by apply_scaffold.
        overwrite: When False, a write_file step whose target exists with
            different content fails with AlreadyExists.
        commands: Collaborator commands for build/test/doctor steps.
        runner: Replacement for the subprocess runner.

    Returns:
        ExecutionReport with completed, failed and pending steps.
    """
    if plan is None:
        raise ValueError("no plan to execute: plan building reported errors")

    state = ExecutionState(
        commands=commands or CollaboratorCommands(),
        overwrite=overwrite,
        runner=runner or run_command,
    )
    report = ExecutionReport()
    steps = list(plan.steps)

    for idx, step in enumerate(steps):
        logger.info("Running step %d: %s", idx, step.kind)
        handler = _HANDLERS.get(step.kind)
        if handler is None:
            result = _fail(idx, step, f"Unknown step kind: {step.kind}")
        else:
            result = handler(step, state, idx)

        if not result.success:
            logger.warning("Step %d (%s) failed: %s", idx, step.kind, result.detail[-2000:])
            report.failed = result
            report.failed_index = idx
            report.failed_step = step
            report.pending = steps[idx + 1 :]
            break
        report.completed.append(result)

    report.commands = state.cmd_log
    return report
