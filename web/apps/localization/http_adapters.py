"""Translation pack downloader.

Packs are published in a JSON index::

    {"translations": [{"language": "fr_FR", "package": "https://.../fr_FR.zip"}]}

The package is a zip archive. Its ``.mo`` and ``.po`` members are extracted
flat into ``LOCALE_PACKS_DIR/<lang>/LC_MESSAGES`` where Django's
``LOCALE_PATHS`` picks them up. Calls use a fixed timeout and never retry.
"""

import io
import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from .locales import TranslationPackPort, language_of

logger = logging.getLogger(__name__)

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")

CATALOG_SUFFIXES = (".mo", ".po")


def _request_headers() -> dict:
    headers = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    return headers


class HttpTranslationPackClient(TranslationPackPort):
    """Download translation packs from ``TRANSLATIONS_INDEX_URL``."""

    def __init__(
        self,
        index_url: Optional[str] = None,
        packs_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        download_timeout: Optional[float] = None,
    ):
        self.index_url = index_url or settings.TRANSLATIONS_INDEX_URL
        self.packs_dir = Path(packs_dir or settings.LOCALE_PACKS_DIR)
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS
        self.download_timeout = download_timeout or settings.HTTP_DOWNLOAD_TIMEOUT_SECS

    def target_dir(self, locale: str) -> Path:
        return self.packs_dir / language_of(locale) / "LC_MESSAGES"

    def is_installed(self, locale: str) -> bool:
        target = self.target_dir(locale)
        return target.is_dir() and any(target.glob("*.mo"))

    def ensure(self, locale: str) -> bool:
        """Make sure a compiled catalog for ``locale`` exists on disk.

        Returns:
            bool: True when the pack is (now) installed, False when the index
            has no entry for the locale or any step failed.
        """
        if self.is_installed(locale):
            return True

        logger.info("downloading translation pack", extra={"locale": locale})
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(self.index_url, headers=_request_headers())
                resp.raise_for_status()
                index = resp.json()

            package_url = None
            for entry in index.get("translations") or []:
                if entry.get("language") == locale:
                    package_url = entry.get("package")
                    break
            if not package_url:
                logger.warning("no translation pack listed", extra={"locale": locale})
                return False

            with httpx.Client(timeout=self.download_timeout) as client:
                resp = client.get(package_url, headers=_request_headers())
                resp.raise_for_status()
                content = resp.content
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("translation pack download failed", extra={"locale": locale, "error": str(e)})
            return False

        try:
            written = self._extract(content, self.target_dir(locale))
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning("translation pack extraction failed", extra={"locale": locale, "error": str(e)})
            return False

        logger.info("translation pack installed", extra={"locale": locale, "files": written})
        return written > 0

    @staticmethod
    def _extract(content: bytes, target: Path) -> int:
        target.mkdir(parents=True, exist_ok=True)
        written = 0
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            for member in archive.infolist():
                if member.is_dir():
                    continue
                # flatten, never trust archive paths
                name = PurePosixPath(member.filename).name
                if not name.endswith(CATALOG_SUFFIXES):
                    continue
                (target / name).write_bytes(archive.read(member))
                written += 1
        return written
