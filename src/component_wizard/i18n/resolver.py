"""Locale resolution with a fixed fallback chain.

exact locale -> base language -> "en" -> the key itself. `resolve` never
fails, even for an empty bundle.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from component_wizard.i18n.bundle import DEFAULT_LOCALE, LocaleBundle, load_locale_files

CATALOG_DIR = Path(__file__).resolve().parent.parent / "locales"
LOCALE_ENV_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


def base_language(locale: str) -> str:
    return locale.split("-", 1)[0]


def resolve(bundle: LocaleBundle, locale: str, key: str) -> str:
    for candidate in (locale, base_language(locale), DEFAULT_LOCALE):
        value = bundle.get(candidate, {}).get(key)
        if value is not None:
            return value
    return key


def normalize_locale(raw: str) -> str | None:
    """`fr_FR.UTF-8@euro` -> `fr-FR`. Returns None for empty or C/POSIX locales."""
    cleaned = raw.strip().split(".", 1)[0].split("@", 1)[0].replace("_", "-")
    if not cleaned or cleaned in ("C", "POSIX"):
        return None
    return cleaned


def _match(raw: str, supported: set[str]) -> str | None:
    norm = normalize_locale(raw)
    if norm is None:
        return None
    if norm in supported:
        return norm
    base = base_language(norm).lower()
    if base in supported:
        return base
    return None


def env_locale(environ: Mapping[str, str] | None = None) -> str | None:
    """The first non-empty of LC_ALL, LC_MESSAGES and LANG."""
    environ = os.environ if environ is None else environ
    for var in LOCALE_ENV_VARS:
        value = (environ.get(var) or "").strip()
        if value:
            return value
    return None


def select_locale(
    cli_locale: str | None,
    supported: Iterable[str],
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the CLI locale, then the environment locale, falling back to "en".

    A candidate matches a supported locale exactly or by its base language.
    Only the first non-empty locale variable is consulted; a later one never
    overrides it.
    """
    supported = set(supported)
    for raw in (cli_locale, env_locale(environ)):
        if raw:
            found = _match(raw, supported)
            if found is not None:
                return found
    return DEFAULT_LOCALE


class Translator:
    """Message lookup for the wizard's own CLI output."""

    def __init__(self, bundle: LocaleBundle, locale: str = DEFAULT_LOCALE) -> None:
        self.bundle = bundle
        self.locale = locale

    @classmethod
    def from_catalog(cls, cli_locale: str | None = None, directory: Path | None = None) -> Translator:
        bundle = load_locale_files(directory or CATALOG_DIR)
        return cls(bundle, select_locale(cli_locale, bundle))

    def tr(self, key: str) -> str:
        return resolve(self.bundle, self.locale, key)

    def trf(self, key: str, *args: object) -> str:
        """Translate and fill positional `{}` placeholders in order."""
        message = self.tr(key)
        for arg in args:
            message = message.replace("{}", str(arg), 1)
        return message
