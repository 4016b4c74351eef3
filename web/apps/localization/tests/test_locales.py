"""Tests for locale resolution and translation pack downloads."""

import io
import zipfile

import httpx
import pytest
from django.utils import translation

from apps.localization.adapters import TranslationPackStub
from apps.localization.http_adapters import HttpTranslationPackClient
from apps.localization.locales import resolve_locale, use_locale

INDEX_URL = "https://translations.test/index.json"
PACK_URL = "https://translations.test/fr_FR.zip"


@pytest.mark.parametrize("raw,expected", [
    (None, "en_US"),
    ("", "en_US"),
    ("fr", "fr_FR"),
    ("DE", "de_DE"),
    ("es-es", "es_ES"),
    ("en_US", "en_US"),
])
def test_resolve_locale(raw, expected):
    assert resolve_locale(raw) == expected


@pytest.mark.parametrize("raw", ["xx", "pt_BR", "fr_CA"])
def test_resolve_locale_rejects_unsupported(raw):
    with pytest.raises(ValueError) as e:
        resolve_locale(raw)
    assert str(e.value) == "INVALID_LOCALE"


def test_use_locale_activates_language_and_ensures_pack():
    packs = TranslationPackStub()
    with use_locale("de_DE", packs):
        assert translation.get_language() == "de"
    assert packs.requested == {"de_DE"}


def test_use_locale_skips_pack_for_english():
    packs = TranslationPackStub()
    with use_locale("en_US", packs):
        assert translation.get_language() == "en"
    assert packs.requested == set()


def test_use_locale_continues_when_pack_missing():
    with use_locale("fr_FR", TranslationPackStub(available=False)):
        assert translation.get_language() == "fr"


class DummyResp:
    def __init__(self, status_code=200, json_data=None, content=b""):
        self.status_code = status_code
        self._json = json_data or {}
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("err", request=None, response=None)

    def json(self):
        return self._json


def _zip_bytes(members):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buf.getvalue()


def _patch_get(monkeypatch, responses, calls):
    def fake_get(self, url, headers=None, **kw):
        calls.append((url, self.timeout.read))
        resp = responses[url]
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)


def test_download_and_extract_pack(monkeypatch, tmp_path):
    calls = []
    _patch_get(monkeypatch, {
        INDEX_URL: DummyResp(200, {"translations": [
            {"language": "de_DE", "package": "https://translations.test/de_DE.zip"},
            {"language": "fr_FR", "package": PACK_URL},
        ]}),
        PACK_URL: DummyResp(200, content=_zip_bytes({
            "checkout-fr_FR/django.mo": b"mo-bytes",
            "checkout-fr_FR/django.po": b"po-bytes",
            "README.txt": b"ignored",
        })),
    }, calls)

    client = HttpTranslationPackClient(index_url=INDEX_URL, packs_dir=tmp_path, timeout=15, download_timeout=60)
    assert client.ensure("fr_FR") is True

    target = tmp_path / "fr" / "LC_MESSAGES"
    assert (target / "django.mo").read_bytes() == b"mo-bytes"
    assert (target / "django.po").exists()
    assert not (target / "README.txt").exists()
    assert calls == [(INDEX_URL, 15), (PACK_URL, 60)]

    # installed packs are not downloaded again
    assert client.ensure("fr_FR") is True
    assert len(calls) == 2


def test_missing_index_entry(monkeypatch, tmp_path):
    calls = []
    _patch_get(monkeypatch, {INDEX_URL: DummyResp(200, {"translations": []})}, calls)
    client = HttpTranslationPackClient(index_url=INDEX_URL, packs_dir=tmp_path)
    assert client.ensure("es_ES") is False


def test_network_failure_is_not_retried(monkeypatch, tmp_path):
    calls = []
    _patch_get(monkeypatch, {INDEX_URL: httpx.ConnectTimeout("slow")}, calls)
    client = HttpTranslationPackClient(index_url=INDEX_URL, packs_dir=tmp_path)
    assert client.ensure("de_DE") is False
    assert len(calls) == 1


def test_bad_archive(monkeypatch, tmp_path):
    calls = []
    _patch_get(monkeypatch, {
        INDEX_URL: DummyResp(200, {"translations": [{"language": "fr_FR", "package": PACK_URL}]}),
        PACK_URL: DummyResp(200, content=b"not a zip"),
    }, calls)
    client = HttpTranslationPackClient(index_url=INDEX_URL, packs_dir=tmp_path)
    assert client.ensure("fr_FR") is False
