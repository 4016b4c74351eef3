"""In-process translation pack adapter for tests and offline runs."""

from typing import Set

from .locales import TranslationPackPort


class TranslationPackStub(TranslationPackPort):
    """Pretend every requested locale is installed, without any I/O.

    ``requested`` records the locales asked for so tests can assert on it.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self.requested: Set[str] = set()

    def ensure(self, locale: str) -> bool:
        self.requested.add(locale)
        return self.available
