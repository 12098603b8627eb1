"""Tests for locale resolution and the CLI translator."""

import pytest

from component_wizard.i18n.resolver import Translator, env_locale, normalize_locale, resolve, select_locale

BUNDLE = {
    "en": {"greeting": "Hello", "farewell": "Bye", "only.en": "English"},
    "fr": {"greeting": "Bonjour", "farewell": "Au revoir"},
    "fr-CA": {"greeting": "Allô"},
}


@pytest.mark.parametrize(
    ("locale", "key", "expected"),
    [
        ("fr-CA", "greeting", "Allô"),
        ("fr-CA", "farewell", "Au revoir"),
        ("fr-CA", "only.en", "English"),
        ("fr-CA", "nowhere", "nowhere"),
        ("de", "greeting", "Hello"),
    ],
)
def test_fallback_chain(locale, key, expected):
    assert resolve(BUNDLE, locale, key) == expected


def test_empty_bundle_returns_key():
    assert resolve({}, "fr", "greeting") == "greeting"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("fr_FR.UTF-8", "fr-FR"),
        ("de_DE@euro", "de-DE"),
        ("en", "en"),
        ("C", None),
        ("POSIX", None),
        ("", None),
    ],
)
def test_normalize_locale(raw, expected):
    assert normalize_locale(raw) == expected


def test_select_locale_prefers_cli_value():
    assert select_locale("fr", {"en", "fr"}, environ={"LANG": "de_DE.UTF-8"}) == "fr"


def test_select_locale_from_environment():
    assert select_locale(None, {"en", "fr"}, environ={"LANG": "fr_FR.UTF-8"}) == "fr"
    assert select_locale(None, {"en", "fr"}, environ={"LC_ALL": "  ", "LANG": "fr_CA"}) == "fr"
    assert select_locale("ja", {"en", "fr"}, environ={"LC_MESSAGES": "fr_FR"}) == "fr"


def test_only_the_first_locale_variable_counts():
    """An unsupported LC_ALL is not overridden by a supported LANG."""
    assert select_locale(None, {"en", "fr"}, environ={"LC_ALL": "de_DE.UTF-8", "LANG": "fr_FR"}) == "en"
    assert select_locale(None, {"en", "fr"}, environ={"LC_ALL": "C", "LANG": "fr_CA"}) == "en"
    assert env_locale({"LC_ALL": "", "LC_MESSAGES": " fr_FR ", "LANG": "de"}) == "fr_FR"


def test_select_locale_defaults_to_english():
    assert select_locale(None, {"en", "fr"}, environ={}) == "en"
    assert select_locale("ja", {"en", "fr"}, environ={}) == "en"


def test_translator_formats_arguments():
    tr = Translator({"en": {"done": "Wrote {} files to {}"}})
    assert tr.trf("done", 3, "out") == "Wrote 3 files to out"
    assert tr.tr("unknown.key") == "unknown.key"


def test_catalog_translator_in_french():
    english = Translator.from_catalog("en")
    french = Translator.from_catalog("fr_FR.UTF-8")
    assert french.locale == "fr"
    assert french.tr("cli.wizard.create.title") != english.tr("cli.wizard.create.title")
    assert french.trf("cli.wizard.result.plan_written", "plan.json") == "Plan écrit dans plan.json"
