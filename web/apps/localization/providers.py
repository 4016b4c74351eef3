"""Pick the translation pack adapter from ``settings.USE_HTTP_ADAPTERS``."""

from django.conf import settings

from .adapters import TranslationPackStub
from .http_adapters import HttpTranslationPackClient


def get_translation_packs():
    """Return the HTTP downloader, or the stub when HTTP adapters are off."""
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return HttpTranslationPackClient()
    return TranslationPackStub()
