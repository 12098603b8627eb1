"""Tests for the template catalog."""

import shutil

import pytest

from component_wizard.errors import TemplateResolutionError
from component_wizard.templates import BUILTIN_TEMPLATES, TemplateCatalog, template_digest

CONTEXT = {
    "name": "hello",
    "package": "hello",
    "abi_version": "0.6.0",
    "component_kind": "tool",
    "config_enabled": True,
    "features": {"i18n": True},
    "required_capabilities": ["net.http"],
    "provided_capabilities": [],
}


@pytest.fixture
def copied_catalog(tmp_path):
    shutil.copytree(BUILTIN_TEMPLATES / "component-v0_6", tmp_path / "component-v0_6")
    return TemplateCatalog(tmp_path)


def test_builtin_catalog_lists_component_template():
    assert "component-v0_6" in TemplateCatalog().available()


def test_resolve_pins_version_and_digest():
    catalog = TemplateCatalog()
    revision = catalog.resolve("component-v0_6")
    assert revision.version == "component-scaffold-v0.6.0"
    assert len(revision.digest) == 64
    assert catalog.resolve("component-v0_6").digest == revision.digest


def test_digest_follows_content(copied_catalog):
    builtin = TemplateCatalog().resolve("component-v0_6")
    copy = copied_catalog.resolve("component-v0_6")
    assert copy.digest == builtin.digest

    readme = copied_catalog.root / "component-v0_6" / "README.md.j2"
    readme.write_text(readme.read_text(encoding="utf-8") + "\nMore.\n", encoding="utf-8")
    assert copied_catalog.resolve("component-v0_6").digest != builtin.digest


def test_digest_covers_file_names(tmp_path):
    (tmp_path / "a.txt").write_text("x")
    before = template_digest(tmp_path)
    (tmp_path / "a.txt").rename(tmp_path / "b.txt")
    assert template_digest(tmp_path) != before


def test_unknown_template():
    with pytest.raises(TemplateResolutionError, match="unknown template"):
        TemplateCatalog().resolve("component-v9")


def test_missing_source_file(copied_catalog):
    (copied_catalog.root / "component-v0_6" / "Makefile.j2").unlink()
    with pytest.raises(TemplateResolutionError, match="Makefile.j2"):
        copied_catalog.resolve("component-v0_6")


def test_invalid_manifest(copied_catalog):
    (copied_catalog.root / "component-v0_6" / "template.yaml").write_text("id: [unclosed\n")
    with pytest.raises(TemplateResolutionError, match="invalid template.yaml"):
        copied_catalog.resolve("component-v0_6")


def test_render_with_i18n():
    catalog = TemplateCatalog()
    files = {f.path: f for f in catalog.render(catalog.resolve("component-v0_6"), CONTEXT, CONTEXT["features"])}
    assert "src/hello/qa.py" in files
    assert "src/hello/i18n.py" in files
    assert files["tools/i18n.sh"].executable
    assert b"i18n-pack" in files["Makefile"].contents
    assert b'"net.http"' in files["component.manifest.json"].contents


def test_render_without_i18n():
    catalog = TemplateCatalog()
    context = {**CONTEXT, "features": {"i18n": False}}
    paths = {f.path for f in catalog.render(catalog.resolve("component-v0_6"), context, context["features"])}
    assert "tools/i18n.sh" not in paths
    assert "src/hello/i18n.py" not in paths
    assert "assets/i18n/en.json" not in paths
    assert "src/hello/descriptor.py" in paths


def test_render_requires_every_variable():
    catalog = TemplateCatalog()
    context = {k: v for k, v in CONTEXT.items() if k != "component_kind"}
    with pytest.raises(TemplateResolutionError, match="component_kind"):
        catalog.render(catalog.resolve("component-v0_6"), context, CONTEXT["features"])
