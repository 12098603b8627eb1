"""Locale bundle packing, resolution and translator tooling."""

from component_wizard.i18n.bundle import (
    LocaleBundle,
    load_locale_files,
    load_locale_list,
    pack_locales_to_cbor,
    unpack_locales_from_cbor,
)
from component_wizard.i18n.resolver import Translator, resolve

__all__ = [
    "LocaleBundle",
    "Translator",
    "load_locale_files",
    "load_locale_list",
    "pack_locales_to_cbor",
    "resolve",
    "unpack_locales_from_cbor",
]
