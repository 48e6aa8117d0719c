"""Archive finders for the supported artifact types.

This module provides finders that discover archives and their license
candidate files in a scan directory.
"""

from pathlib import Path

from license_scout.discovery.base import BaseFinder
from license_scout.discovery.java import JavaArchiveFinder
from license_scout.discovery.npm import NpmPackageFinder
from license_scout.models import ArchiveType

__all__ = [
    "BaseFinder",
    "JavaArchiveFinder",
    "NpmPackageFinder",
    "get_finder",
]

# Registry of available finders by archive type
_FINDERS: dict[ArchiveType, type[BaseFinder]] = {
    ArchiveType.JAVA: JavaArchiveFinder,
    ArchiveType.NPM: NpmPackageFinder,
}


def get_finder(archive_type: ArchiveType, scan_directory: Path) -> BaseFinder:
    """Get the finder for an archive type.

    Args:
        archive_type: Type of archives to find.
        scan_directory: Directory to search.

    Returns:
        Finder instance configured for the directory.

    Raises:
        ValueError: If no finder handles the archive type.
    """
    try:
        finder_cls = _FINDERS[archive_type]
    except KeyError:
        raise ValueError(
            f"No finder available for archive type '{archive_type}'. "
            f"Supported types: {', '.join(t.value for t in _FINDERS)}"
        ) from None
    return finder_cls(scan_directory)
