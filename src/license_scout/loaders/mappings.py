"""Loaders for license name and URL mapping tables.

Both tables map a textual variant to a catalog license id::

    # alias,license_id
    Apache Software License,apache-2.0
    The MIT License,mit

They are two-column CSV files without a header. The license ids are checked
against the catalog when the catalog is built.
"""

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.base import CsvLoader


class _MappingLoader(CsvLoader):
    """Two-column ``key,license_id`` table."""

    fieldnames = ["key", "license_id"]
    key_label = "key"

    def load(self) -> dict[str, str]:
        """Load the mapping in file order.

        Returns:
            Raw keys mapped to license ids.

        Raises:
            ConfigurationError: If a line lacks one of the two columns.
        """
        mappings: dict[str, str] = {}
        for line_num, row in self._rows():
            key, license_id = row.get("key", ""), row.get("license_id", "")
            if not key or not license_id:
                raise ConfigurationError(
                    f"Line {line_num} of {self.source_path} needs "
                    f"'{self.key_label},license_id'",
                    source=self.source_path,
                )
            mappings[key] = license_id
        return mappings


class NameMappingsLoader(_MappingLoader):
    """Loader for license name mappings (``namemappings.csv``)."""

    key_label = "name"

    @property
    def source_name(self) -> str:
        """Return "name mappings"."""
        return "name mappings"


class UrlMappingsLoader(_MappingLoader):
    """Loader for license URL mappings (``urlmappings.csv``)."""

    key_label = "url"

    @property
    def source_name(self) -> str:
        """Return "URL mappings"."""
        return "URL mappings"
