"""Locale bundle packer.

A bundle maps locale code -> message key -> translated string. It is built
from a directory of flat JSON dictionaries (`<locale>.json`) and packed as
canonical CBOR so the same logical bundle always yields the same bytes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import blake3
import cbor2

from component_wizard.errors import BundleDecodeError, BundleLoadError

logger = logging.getLogger(__name__)

LocaleBundle = dict[str, dict[str, str]]

LOCALE_LIST_STEM = "locales"
DEFAULT_LOCALE = "en"


def _check_messages(path: Path, data: object) -> dict[str, str]:
    if not isinstance(data, dict):
        raise BundleLoadError(path, f"expected a JSON object, got {type(data).__name__}")
    for key, value in data.items():
        if not isinstance(value, str):
            raise BundleLoadError(path, f"value for key {key!r} is not a string")
    return data


def load_locale_files(directory: Path) -> LocaleBundle:
    """Read every `<locale>.json` in a directory; `locales.json` is skipped."""
    bundle: LocaleBundle = {}
    for path in sorted(directory.glob("*.json")):
        if path.stem == LOCALE_LIST_STEM:
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BundleLoadError(path, str(exc)) from exc
        bundle[path.stem] = _check_messages(path, data)
    logger.debug("Loaded %d locales from %s", len(bundle), directory)
    return bundle


def load_locale_list(directory: Path) -> list[str]:
    """Read the enabled locale codes from `locales.json`."""
    path = directory / f"{LOCALE_LIST_STEM}.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BundleLoadError(path, str(exc)) from exc
    if not isinstance(data, list) or not all(isinstance(code, str) and code for code in data):
        raise BundleLoadError(path, "expected a JSON array of locale codes")
    return data


def pack_locales_to_cbor(bundle: LocaleBundle) -> bytes:
    """Serialize with canonical CBOR (sorted map keys, shortest encodings)."""
    return cbor2.dumps(bundle, canonical=True)


def unpack_locales_from_cbor(data: bytes) -> LocaleBundle:
    try:
        decoded = cbor2.loads(data)
    except (cbor2.CBORDecodeError, EOFError) as exc:
        raise BundleDecodeError(f"invalid locale bundle: {exc}") from exc
    if not isinstance(decoded, dict):
        raise BundleDecodeError("invalid locale bundle: top level is not a map")
    for locale, messages in decoded.items():
        if not isinstance(locale, str) or not isinstance(messages, dict):
            raise BundleDecodeError(f"invalid locale bundle: bad entry for {locale!r}")
        for key, value in messages.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise BundleDecodeError(
                    f"invalid locale bundle: non-string message in {locale!r}"
                )
    return decoded


def bundle_digest(data: bytes) -> str:
    return blake3.blake3(data).hexdigest()


def missing_keys(bundle: LocaleBundle, reference: str = DEFAULT_LOCALE) -> dict[str, list[str]]:
    """Keys of the reference locale that other locales do not translate."""
    expected = set(bundle.get(reference, {}))
    missing = {}
    for locale, messages in sorted(bundle.items()):
        if locale == reference:
            continue
        absent = sorted(expected - set(messages))
        if absent:
            missing[locale] = absent
    return missing


def write_packed_bundle(directory: Path, out: Path) -> str:
    """Pack a locale directory into `out`; returns the digest of the bytes written."""
    data = pack_locales_to_cbor(load_locale_files(directory))
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    digest = bundle_digest(data)
    logger.info("Packed %s -> %s (%d bytes, blake3 %s)", directory, out, len(data), digest)
    return digest
