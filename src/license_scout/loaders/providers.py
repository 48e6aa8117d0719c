"""Loaders for providers, notices and license texts.

Providers::

    [[provider]]
    id = "apache"
    name = "The Apache Software Foundation"
    url = "https://www.apache.org"

Notices and license texts share one file; the text is either inline or read
from a file relative to the catalog::

    [[notice]]
    id = "eclipse"
    text = "This product includes software developed by the Eclipse Foundation."

    [[license_text]]
    id = "apache-2.0"
    file = "texts/apache-2.0.txt"
"""

import logging
from pathlib import Path
from typing import Any

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.base import BaseLoader
from license_scout.loaders.licenses import load_toml
from license_scout.models import LicenseText, Notice, Provider

logger = logging.getLogger(__name__)


def _entries(data: dict[str, Any], table: str, source: Path) -> list[dict[str, Any]]:
    """Return the array of tables ``table``, checking each entry has an id."""
    entries = data.get(table, [])
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ConfigurationError(
                f"{table} entry #{index} in {source} has no 'id'", source=source
            )
    return entries


class ProvidersLoader(BaseLoader):
    """Loader for the TOML provider list."""

    @property
    def source_name(self) -> str:
        """Return "providers"."""
        return "providers"

    def load(self) -> dict[str, Provider]:
        """Load providers keyed by id."""
        source = self._require_source()
        data = load_toml(source, self.source_name)
        return {
            str(entry["id"]): Provider(
                id=str(entry["id"]),
                name=entry.get("name", entry["id"]),
                url=entry.get("url") or None,
            )
            for entry in _entries(data, "provider", source)
        }


class NoticesLoader(BaseLoader):
    """Loader for notices and license texts."""

    @property
    def source_name(self) -> str:
        """Return "notices"."""
        return "notices"

    def load(self) -> tuple[dict[str, Notice], dict[str, LicenseText]]:
        """Load notices and license texts, each keyed by id."""
        source = self._require_source()
        data = load_toml(source, self.source_name)

        notices = {
            str(entry["id"]): Notice(id=str(entry["id"]), text=self._text(entry))
            for entry in _entries(data, "notice", source)
        }
        texts = {
            str(entry["id"]): LicenseText(id=str(entry["id"]), text=self._text(entry))
            for entry in _entries(data, "license_text", source)
        }
        logger.debug(
            "Loaded %d notices and %d license texts from %s",
            len(notices),
            len(texts),
            source,
        )
        return notices, texts

    def _text(self, entry: dict[str, Any]) -> str:
        """Return the inline text of an entry or the content of its file."""
        if "text" in entry:
            return str(entry["text"])
        if "file" not in entry:
            raise ConfigurationError(
                f"Entry '{entry['id']}' in {self.source_path} needs 'text' or 'file'",
                source=self.source_path,
            )
        text_path = self.source_path.parent / entry["file"]
        try:
            return text_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read text file {text_path} for '{entry['id']}': {e}",
                source=self.source_path,
            ) from e
