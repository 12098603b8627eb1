"""Shared fixtures: a scripted command runner and a clean environment."""

from __future__ import annotations

from pathlib import Path

import pytest


class FakeRunner:
    """Records every command and replays scripted (exit_code, output) pairs."""

    def __init__(self, results: list[tuple[int, str]] | None = None) -> None:
        self.calls: list[tuple[list[str], Path | None]] = []
        self.results = list(results or [])

    def __call__(self, cmd: list[str], cwd: Path | None) -> tuple[int, str]:
        self.calls.append((list(cmd), cwd))
        if self.results:
            return self.results.pop(0)
        return 0, "ok\n"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "LC_ALL",
        "LC_MESSAGES",
        "LANG",
        "WIZARD_BUILD_CMD",
        "WIZARD_TEST_CMD",
        "WIZARD_FULL_TEST_CMD",
        "WIZARD_DOCTOR_CMD",
        "WIZARD_TRANSLATOR_CMD",
        "WIZARD_LOCALE",
        "WIZARD_TEMPLATES_DIR",
        "WIZARD_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def i18n_dir(tmp_path):
    directory = tmp_path / "assets" / "i18n"
    directory.mkdir(parents=True)
    (directory / "en.json").write_text('{"greeting": "Hello", "farewell": "Bye"}', encoding="utf-8")
    (directory / "fr.json").write_text('{"greeting": "Bonjour"}', encoding="utf-8")
    (directory / "locales.json").write_text('["en", "fr", "de"]', encoding="utf-8")
    return directory
