"""Data models for wizard answers, QA specs, plans and execution reports."""

from __future__ import annotations

import base64
import enum
import json
from typing import Annotated, Any, Literal

import blake3
from pydantic import BaseModel, ConfigDict, Field

from component_wizard.errors import PlanVersionError, StepExecutionError

PLAN_VERSION = 1
ANSWERS_SCHEMA = "component-wizard-run/v1"


def content_digest(data: bytes) -> str:
    """blake3 hex digest of raw bytes."""
    return blake3.blake3(data).hexdigest()


def lookup_field(fields: dict[str, Any], dotted: str, default: Any = None) -> Any:
    """Look up a dotted question id, flat key first, then as a nested path."""
    if dotted in fields:
        return fields[dotted]
    current: Any = fields
    for segment in dotted.split("."):
        if not isinstance(current, dict) or segment not in current:
            return default
        current = current[segment]
    return current


class RunMode(enum.StrEnum):
    """Canonical run modes after normalisation."""

    CREATE = "create"
    BUILD_TEST = "build_test"
    DOCTOR = "doctor"


class QuestionKind(enum.StrEnum):
    STRING = "string"
    BOOLEAN = "boolean"
    ENUM = "enum"
    STRING_LIST = "string_list"


class StepKind(enum.StrEnum):
    ENSURE_DIR = "ensure_dir"
    WRITE_FILE = "write_file"
    BUILD_COMPONENT = "build_component"
    TEST_COMPONENT = "test_component"
    DOCTOR = "doctor"


# ---------------------------------------------------------------------------
# QA spec
# ---------------------------------------------------------------------------


class Question(BaseModel):
    """A single question; all human-facing text is an i18n key."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: QuestionKind
    prompt_key: str
    help_key: str | None = None
    required: bool = False
    default: Any = None
    choices: tuple[str, ...] = ()


class QaSpec(BaseModel):
    """Ordered question set for one run mode."""

    model_config = ConfigDict(frozen=True)

    id: str
    mode: RunMode
    version: str = "1.0.0"
    title_key: str
    questions: tuple[Question, ...] = ()

    def question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class Answers(BaseModel):
    """Answers document: `{schema, mode, fields}`."""

    model_config = ConfigDict(populate_by_name=True)

    schema_id: str = Field(default=ANSWERS_SCHEMA, alias="schema")
    mode: str
    fields: dict[str, Any] = Field(default_factory=dict)

    def get(self, question_id: str, default: Any = None) -> Any:
        return lookup_field(self.fields, question_id, default)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2) + "\n"


# ---------------------------------------------------------------------------
# Plan steps
# ---------------------------------------------------------------------------


class EnsureDirStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ensure_dir"] = "ensure_dir"
    path: str


class WriteFileStep(BaseModel):
    """Write a file. Binary payloads are carried base64-encoded."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["write_file"] = "write_file"
    path: str
    content: str
    digest: str
    encoding: Literal["utf-8", "base64"] = "utf-8"
    executable: bool = False

    @classmethod
    def from_bytes(
        cls, path: str, data: bytes, *, binary: bool = False, executable: bool = False
    ) -> WriteFileStep:
        if binary:
            return cls(
                path=path,
                content=base64.b64encode(data).decode("ascii"),
                digest=content_digest(data),
                encoding="base64",
                executable=executable,
            )
        return cls(
            path=path,
            content=data.decode("utf-8"),
            digest=content_digest(data),
            executable=executable,
        )

    def content_bytes(self) -> bytes:
        if self.encoding == "base64":
            return base64.b64decode(self.content)
        return self.content.encode("utf-8")


class BuildComponentStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["build_component"] = "build_component"
    project_root: str
    target: str | None = None


class TestComponentStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["test_component"] = "test_component"
    project_root: str
    full: bool = False


class DoctorStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["doctor"] = "doctor"
    project_root: str
    profile: str | None = None


Step = Annotated[
    EnsureDirStep | WriteFileStep | BuildComponentStep | TestComponentStep | DoctorStep,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class PlanMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    generator: str
    template_version: str
    template_digest_blake3: str
    requested_abi_version: str


class Plan(BaseModel):
    """Ordered, versioned description of effects. Compared by value."""

    model_config = ConfigDict(frozen=True)

    plan_version: int = PLAN_VERSION
    metadata: PlanMetadata
    steps: tuple[Step, ...] = ()

    def to_json(self) -> str:
        return self.model_dump_json(indent=2) + "\n"

    @classmethod
    def from_json(cls, text: str) -> Plan:
        """Parse persisted plan JSON, rejecting other plan versions."""
        data = json.loads(text)
        version = data.get("plan_version") if isinstance(data, dict) else None
        if version != PLAN_VERSION:
            raise PlanVersionError(
                f"unsupported plan_version {version!r} (expected {PLAN_VERSION})"
            )
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class CommandEntry(BaseModel):
    """A delegated collaborator invocation."""

    step: int
    command: str
    cwd: str
    exit_code: int
    duration_ms: int
    output: str = ""


class StepResult(BaseModel):
    """Result of a single plan step."""

    step: int
    name: str
    success: bool
    changed: bool = False
    detail: str = ""


class ExecutionReport(BaseModel):
    """Outcome of execute_plan: completed, failed and pending steps."""

    completed: list[StepResult] = Field(default_factory=list)
    failed: StepResult | None = None
    failed_index: int | None = None
    failed_step: Step | None = None
    pending: list[Step] = Field(default_factory=list)
    commands: list[CommandEntry] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed is None

    def raise_for_failure(self) -> None:
        if self.failed is not None and self.failed_step is not None:
            raise StepExecutionError(self.failed.step, self.failed_step, self.failed.detail)


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


class ApplyAnswersResponse(BaseModel):
    """Frozen base shape returned to answer consumers; extra fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    ok: bool
    config: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class ApplyResult(BaseModel):
    plan: Plan | None = None
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    config: dict[str, Any] | None = None
    report: ExecutionReport | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_response(self) -> ApplyAnswersResponse:
        return ApplyAnswersResponse(
            ok=self.ok,
            config=self.config if self.ok else None,
            warnings=self.warnings,
            errors=self.errors,
        )
