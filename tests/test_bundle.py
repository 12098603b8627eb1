"""Tests for loading and packing locale bundles."""

import cbor2
import pytest

from component_wizard.errors import BundleDecodeError, BundleLoadError
from component_wizard.i18n.bundle import (
    bundle_digest,
    load_locale_files,
    load_locale_list,
    missing_keys,
    pack_locales_to_cbor,
    unpack_locales_from_cbor,
    write_packed_bundle,
)


def test_load_locale_files(i18n_dir):
    bundle = load_locale_files(i18n_dir)
    assert list(bundle) == ["en", "fr"]
    assert bundle["fr"] == {"greeting": "Bonjour"}


def test_load_empty_directory(tmp_path):
    assert load_locale_files(tmp_path) == {}


def test_invalid_json(i18n_dir):
    bad = i18n_dir / "de.json"
    bad.write_text("{not json")
    with pytest.raises(BundleLoadError) as excinfo:
        load_locale_files(i18n_dir)
    assert excinfo.value.file == bad


@pytest.mark.parametrize("content", ['["a"]', '{"key": 1}', '{"key": {"nested": "x"}}'])
def test_non_string_messages(i18n_dir, content):
    (i18n_dir / "de.json").write_text(content)
    with pytest.raises(BundleLoadError):
        load_locale_files(i18n_dir)


def test_pack_round_trip(i18n_dir):
    bundle = load_locale_files(i18n_dir)
    assert unpack_locales_from_cbor(pack_locales_to_cbor(bundle)) == bundle


def test_packing_is_canonical():
    first = {"fr": {"b": "2", "a": "1"}, "en": {"a": "one"}}
    second = {"en": {"a": "one"}, "fr": {"a": "1", "b": "2"}}
    assert pack_locales_to_cbor(first) == pack_locales_to_cbor(second)
    assert bundle_digest(pack_locales_to_cbor(first)) == bundle_digest(pack_locales_to_cbor(second))


def test_empty_bundle_round_trip():
    assert unpack_locales_from_cbor(pack_locales_to_cbor({})) == {}


@pytest.mark.parametrize(
    "data",
    [
        b"",
        cbor2.dumps(["en"]),
        cbor2.dumps({"en": ["hello"]}),
        cbor2.dumps({"en": {"greeting": 1}}),
    ],
)
def test_unpack_rejects_bad_bytes(data):
    with pytest.raises(BundleDecodeError):
        unpack_locales_from_cbor(data)


def test_load_locale_list(i18n_dir):
    assert load_locale_list(i18n_dir) == ["en", "fr", "de"]


def test_locale_list_must_be_strings(tmp_path):
    (tmp_path / "locales.json").write_text('{"en": true}')
    with pytest.raises(BundleLoadError):
        load_locale_list(tmp_path)
    with pytest.raises(BundleLoadError):
        load_locale_list(tmp_path / "missing")


def test_missing_keys(i18n_dir):
    assert missing_keys(load_locale_files(i18n_dir)) == {"fr": ["farewell"]}


def test_write_packed_bundle(i18n_dir, tmp_path):
    out = tmp_path / "pkg" / "i18n.cbor"
    digest = write_packed_bundle(i18n_dir, out)
    assert digest == bundle_digest(out.read_bytes())
    assert unpack_locales_from_cbor(out.read_bytes()) == load_locale_files(i18n_dir)
