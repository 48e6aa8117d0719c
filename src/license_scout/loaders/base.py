"""Base interface for configuration loaders.

Loaders read one configuration source each (license catalog, mapping
tables, filters, checked archives) and turn it into plain data structures.
Any problem with a source is reported as a ConfigurationError, which aborts
the run before any archive is processed.
"""

import csv
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Optional

from license_scout.exceptions import ConfigurationError


class BaseLoader(ABC):
    """Abstract base class for configuration loaders.

    Attributes:
        source_path: Path to the configuration file being loaded.
    """

    def __init__(self, source_path: Optional[Path] = None) -> None:
        """Initialize the loader.

        Args:
            source_path: Path to the configuration file.
        """
        self.source_path = source_path

    @abstractmethod
    def load(self) -> Any:
        """Load and parse the configuration source.

        Raises:
            ConfigurationError: If the source is missing or malformed.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this loader's source type."""
        ...

    def _require_source(self) -> Path:
        """Return the source path, checking that it exists.

        Raises:
            ConfigurationError: If no path was given or the file is missing.
        """
        if self.source_path is None:
            raise ConfigurationError(f"No {self.source_name} file configured")
        if not self.source_path.is_file():
            raise ConfigurationError(
                f"{self.source_name} file not found: {self.source_path}",
                source=self.source_path,
            )
        return self.source_path


class CsvLoader(BaseLoader):
    """Base class for loaders reading comma-separated tables.

    Blank lines and lines starting with ``#`` are ignored. If ``fieldnames``
    is None the first remaining line is used as the header.
    """

    fieldnames: Optional[list[str]] = None

    def _rows(self) -> Iterator[tuple[int, dict[str, str]]]:
        """Yield (line number, row) pairs with stripped cell values."""
        source = self._require_source()
        try:
            with open(source, "r", encoding="utf-8", newline="") as f:
                lines = [
                    (line_num, line)
                    for line_num, line in enumerate(f, start=1)
                    if line.strip() and not line.lstrip().startswith("#")
                ]
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read {self.source_name} file {source}: {e}", source=source
            ) from e

        reader = csv.DictReader(
            (line for _, line in lines), fieldnames=self.fieldnames
        )
        line_numbers = iter(num for num, _ in lines)
        if self.fieldnames is None:
            # the header line
            next(line_numbers, None)
        try:
            for row in reader:
                line_num = next(line_numbers, 0)
                yield line_num, {
                    (key or "").strip(): (value or "").strip()
                    for key, value in row.items()
                    if not isinstance(value, list)
                }
        except csv.Error as e:
            raise ConfigurationError(
                f"Invalid CSV in {source}: {e}", source=source
            ) from e
