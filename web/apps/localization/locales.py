"""Supported checkout locales and translation activation.

Clients send either a full locale (``fr_FR``, ``fr-FR``) or its short form
(``fr``). Anything outside the supported set is rejected with
``INVALID_LOCALE``.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from django.utils import translation

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en_US"

LOCALE_MAP = {
    "en": "en_US",
    "fr": "fr_FR",
    "es": "es_ES",
    "de": "de_DE",
}

SUPPORTED_LOCALES = frozenset(LOCALE_MAP.values())


class TranslationPackPort(Protocol):
    """Installs the translation catalog of a locale on demand."""

    def ensure(self, locale: str) -> bool:
        raise NotImplementedError()


def resolve_locale(raw: Optional[str]) -> str:
    """Normalize a client locale to one of ``SUPPORTED_LOCALES``.

    An empty value resolves to ``DEFAULT_LOCALE``.

    Raises:
        ValueError: ``INVALID_LOCALE`` for an unsupported locale.
    """
    value = (raw or "").strip()
    if not value:
        return DEFAULT_LOCALE
    value = value.replace("-", "_")
    if "_" in value:
        lang, _, region = value.partition("_")
        value = f"{lang.lower()}_{region.upper()}"
    else:
        value = LOCALE_MAP.get(value.lower(), value)
    if value not in SUPPORTED_LOCALES:
        raise ValueError("INVALID_LOCALE")
    return value


def language_of(locale: str) -> str:
    """Django language code of a supported locale (``fr_FR`` -> ``fr``)."""
    return locale.split("_", 1)[0].lower()


@contextmanager
def use_locale(locale: str, packs=None) -> Iterator[str]:
    """Render translatable strings in ``locale`` for the enclosed block.

    Args:
        locale: A value returned by ``resolve_locale``.
        packs: Optional ``TranslationPackPort``. When given, the pack for a
            non-English locale is installed first. A failed install only
            leaves the strings untranslated.
    """
    if packs is not None and locale != DEFAULT_LOCALE:
        if not packs.ensure(locale):
            logger.warning("translation pack unavailable", extra={"locale": locale})
    with translation.override(language_of(locale)):
        yield locale
