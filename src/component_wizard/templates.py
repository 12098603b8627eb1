"""Template catalog: resolve a template id to a pinned revision and render it.

A template is a directory holding `template.yaml` plus its source files.
The revision digest covers every file in that directory, so it changes
exactly when the template content changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import blake3
import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError
from pydantic import BaseModel, Field, ValidationError

from component_wizard.errors import TemplateResolutionError

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES = Path(__file__).resolve().parent / "builtin_templates"
MANIFEST_NAME = "template.yaml"


class TemplateFile(BaseModel):
    path: str  # output path, may contain {{ }} placeholders
    source: str
    render: bool = True
    binary: bool = False
    executable: bool = False
    feature: str = ""  # only emitted when this feature flag is on


class TemplateManifest(BaseModel):
    id: str
    version: str
    abi_version: str = "0.6.0"
    description: str = ""
    files: list[TemplateFile] = Field(default_factory=list)


@dataclass(frozen=True)
class TemplateRevision:
    id: str
    version: str
    digest: str
    root: Path
    manifest: TemplateManifest


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    contents: bytes
    binary: bool = False
    executable: bool = False


def template_digest(root: Path) -> str:
    """blake3 over `path \\0 bytes \\xff` for every file, in sorted path order."""
    hasher = blake3.blake3()
    files = sorted(
        (p for p in root.rglob("*") if p.is_file() and "__pycache__" not in p.parts),
        key=lambda p: p.relative_to(root).as_posix(),
    )
    for path in files:
        hasher.update(path.relative_to(root).as_posix().encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(path.read_bytes())
        hasher.update(b"\xff")
    return hasher.hexdigest()


class TemplateCatalog:
    """Templates found under one root directory."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or BUILTIN_TEMPLATES

    def available(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.parent.name for p in self.root.glob(f"*/{MANIFEST_NAME}"))

    def resolve(self, template_id: str) -> TemplateRevision:
        if template_id not in self.available():
            raise TemplateResolutionError(
                f"unknown template {template_id!r} in {self.root}"
                f" (available: {', '.join(self.available()) or 'none'})"
            )
        template_dir = self.root / template_id
        try:
            raw = yaml.safe_load((template_dir / MANIFEST_NAME).read_text(encoding="utf-8"))
            manifest = TemplateManifest.model_validate(raw)
        except (OSError, yaml.YAMLError, ValidationError) as exc:
            raise TemplateResolutionError(
                f"template {template_id!r} has an invalid {MANIFEST_NAME}: {exc}"
            ) from exc
        if manifest.id != template_id:
            raise TemplateResolutionError(
                f"template directory {template_id!r} declares id {manifest.id!r}"
            )
        for entry in manifest.files:
            if not (template_dir / entry.source).is_file():
                raise TemplateResolutionError(
                    f"template {template_id!r} is missing source file {entry.source}"
                )

        digest = template_digest(template_dir)
        logger.debug("Resolved template %s@%s digest=%s", template_id, manifest.version, digest)
        return TemplateRevision(
            id=template_id,
            version=manifest.version,
            digest=digest,
            root=template_dir,
            manifest=manifest,
        )

    def render(
        self,
        revision: TemplateRevision,
        context: dict[str, Any],
        features: dict[str, bool],
    ) -> list[GeneratedFile]:
        """Render the files of a revision whose feature flags are enabled."""
        env = Environment(
            loader=FileSystemLoader(str(revision.root)),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        files: list[GeneratedFile] = []
        for entry in revision.manifest.files:
            if entry.feature and not features.get(entry.feature, False):
                continue
            try:
                out_path = env.from_string(entry.path).render(**context)
                if entry.render and not entry.binary:
                    contents = env.get_template(entry.source).render(**context).encode("utf-8")
                else:
                    contents = (revision.root / entry.source).read_bytes()
            except TemplateError as exc:
                raise TemplateResolutionError(
                    f"failed to render {entry.source} of template {revision.id!r}: {exc}"
                ) from exc
            files.append(
                GeneratedFile(
                    path=out_path,
                    contents=contents,
                    binary=entry.binary,
                    executable=entry.executable,
                )
            )
        return files
