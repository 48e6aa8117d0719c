"""Loaders for global filters and filtered vendor names.

Global filters suppress known false-positive detections. Each line names a
license, a regular expression searched in the matched file path, or both
(``*`` or an empty cell is a wildcard)::

    license,path_pattern,justification
    gpl-2.0,^META-INF/maven/.*/pom\\.xml$,Build metadata only
    *,(^|/)test-data/,Test fixtures are not shipped

Vendor names are listed one per line::

    # vendors whose archives are not reported
    Example Corp
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.base import BaseLoader, CsvLoader
from license_scout.models import License

logger = logging.getLogger(__name__)

WILDCARD = "*"


@dataclass(frozen=True)
class GlobalFilter:
    """A rule suppressing detections of a license and/or at matching paths.

    Attributes:
        license_id: License identifier the rule applies to, or None for all.
        path_pattern: Compiled pattern searched in the file path, or None
            for all paths.
        justification: Why the matches are false positives.
    """

    license_id: Optional[str]
    path_pattern: Optional[re.Pattern[str]]
    justification: str = ""

    def matches(self, license: License, file_path: str) -> bool:
        """Check if a detection of ``license`` at ``file_path`` is suppressed."""
        if self.license_id is not None and self.license_id != license.id:
            return False
        if self.path_pattern is not None and not self.path_pattern.search(file_path):
            return False
        return True


class GlobalFiltersLoader(CsvLoader):
    """Loader for global filters (``globalFilters.csv``)."""

    @property
    def source_name(self) -> str:
        """Return "global filters"."""
        return "global filters"

    def load(self) -> list[GlobalFilter]:
        """Load global filters with raw license identifiers.

        Raises:
            ConfigurationError: If a line has neither license nor path, or
                the path pattern is not a valid regular expression.
        """
        filters: list[GlobalFilter] = []
        for line_num, row in self._rows():
            license_id = row.get("license", "")
            pattern = row.get("path_pattern", "")
            license_id = None if license_id in ("", WILDCARD) else license_id
            pattern = None if pattern in ("", WILDCARD) else pattern

            if license_id is None and pattern is None:
                raise ConfigurationError(
                    f"Line {line_num} of {self.source_path} would filter everything",
                    source=self.source_path,
                )
            try:
                compiled = re.compile(pattern) if pattern else None
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid path pattern on line {line_num} of "
                    f"{self.source_path}: {e}",
                    source=self.source_path,
                ) from e

            filters.append(
                GlobalFilter(
                    license_id=license_id,
                    path_pattern=compiled,
                    justification=row.get("justification", ""),
                )
            )

        logger.debug("Loaded %d global filters from %s", len(filters), self.source_path)
        return filters


class VendorNamesLoader(BaseLoader):
    """Loader for filtered vendor names, one per line."""

    @property
    def source_name(self) -> str:
        """Return "filtered vendor names"."""
        return "filtered vendor names"

    def load(self) -> list[str]:
        """Load vendor names, skipping blank lines and comments."""
        source = self._require_source()
        try:
            with open(source, "r", encoding="utf-8") as f:
                lines = [line.strip() for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read {self.source_name} file {source}: {e}", source=source
            ) from e
        return [line for line in lines if line and not line.startswith("#")]
