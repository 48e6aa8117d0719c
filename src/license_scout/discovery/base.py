"""Base interface for archive finders.

Finders walk a scan directory and create one Archive per artifact found,
with its identity, message digest and license candidate files.
"""

import hashlib
import re
from abc import ABC, abstractmethod
from pathlib import Path

from license_scout.exceptions import DiscoveryError
from license_scout.models import Archive, ArchiveType

# Base names of files that usually carry license text
LICENSE_FILE_PATTERN = re.compile(
    r"^(?:un)?licen[cs]e(?:s)?(?:[-_.].*)?$|^copying(?:[-_.].*)?$|.*[-_.]licen[cs]e(?:\..*)?$",
    re.IGNORECASE,
)


def is_license_file(name: str) -> bool:
    """Check if a file base name looks like a license file.

    Matches names such as "LICENSE", "LICENSE.txt", "licence-mit.md",
    "COPYING.LESSER", "UNLICENSE" and "MIT-LICENSE.txt".
    """
    return bool(LICENSE_FILE_PATTERN.match(name))


def sha256_file(path: Path, chunk_size: int = 1024 * 1024) -> bytes:
    """Return the SHA-256 digest of a file, reading it in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.digest()


class BaseFinder(ABC):
    """Abstract base class for archive finders.

    Attributes:
        scan_directory: Directory to search.
    """

    def __init__(self, scan_directory: Path) -> None:
        """Initialize the finder.

        Args:
            scan_directory: Directory to search.
        """
        self.scan_directory = scan_directory

    @abstractmethod
    def find(self) -> list[Archive]:
        """Find all archives below the scan directory.

        Returns:
            Archives in a deterministic discovery order.

        Raises:
            DiscoveryError: If the scan directory does not exist.
        """
        ...

    @property
    @abstractmethod
    def archive_type(self) -> ArchiveType:
        """Return the type of archives this finder creates."""
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this finder."""
        ...

    def _require_directory(self) -> Path:
        """Return the scan directory, checking that it exists.

        Raises:
            DiscoveryError: If the directory does not exist.
        """
        if not self.scan_directory.is_dir():
            raise DiscoveryError(
                f"Scan directory not found: {self.scan_directory}",
                context={"scan_directory": str(self.scan_directory)},
            )
        return self.scan_directory

    def _relative_path(self, path: Path) -> str:
        return path.relative_to(self.scan_directory).as_posix()
