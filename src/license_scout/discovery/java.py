"""Finder for Java archives.

Every ``*.jar`` below the scan directory becomes one archive. Name and
version are taken from the ``<name>-<version>.jar`` file name, vendor and
declared licenses from ``META-INF/MANIFEST.MF``.
"""

import logging
import re
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Optional

from license_scout.discovery.base import BaseFinder, is_license_file, sha256_file
from license_scout.models import Archive, ArchiveType, CandidateFile

logger = logging.getLogger(__name__)

JAR_NAME_PATTERN = re.compile(r"^(?P<name>.+?)-(?P<version>\d[^-]*(?:-.+)?)\.jar$", re.IGNORECASE)

# Errors zipfile raises for damaged, encrypted or unsupported entries
ENTRY_ERRORS = (
    zipfile.BadZipFile,
    KeyError,
    zlib.error,
    NotImplementedError,
    RuntimeError,
)

MANIFEST_PATH = "META-INF/MANIFEST.MF"
VENDOR_HEADERS = ("Bundle-Vendor", "Implementation-Vendor")
LICENSE_HEADER = "Bundle-License"


def split_jar_name(file_name: str) -> tuple[str, str]:
    """Split a jar file name into artifact name and version.

    Args:
        file_name: File name such as "commons-io-2.11.0.jar".

    Returns:
        ("commons-io", "2.11.0"); the version is "" if the name has none.
    """
    match = JAR_NAME_PATTERN.match(file_name)
    if match:
        return match.group("name"), match.group("version")
    return file_name[:-4] if file_name.lower().endswith(".jar") else file_name, ""


def parse_manifest(content: str) -> dict[str, str]:
    """Parse a jar manifest's main section into a header dictionary.

    Continuation lines (starting with a single space) are joined to the
    previous header.
    """
    headers: dict[str, str] = {}
    last_key: Optional[str] = None
    for line in content.splitlines():
        if not line.strip():
            # end of the main section
            break
        if line.startswith(" ") and last_key is not None:
            headers[last_key] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if sep:
            last_key = key.strip()
            headers[last_key] = value.lstrip()
    return {key: value.strip() for key, value in headers.items()}


def _entry_reader(jar_path: Path, entry_name: str):
    """Return a callable reading one jar entry, raising OSError on failure."""

    def read() -> bytes:
        try:
            with zipfile.ZipFile(jar_path) as jar:
                return jar.read(entry_name)
        except ENTRY_ERRORS as e:
            raise OSError(f"cannot read {entry_name} from {jar_path.name}: {e}") from e

    return read


class JavaArchiveFinder(BaseFinder):
    """Finds jar files and their license candidate entries."""

    @property
    def archive_type(self) -> ArchiveType:
        """Return ArchiveType.JAVA."""
        return ArchiveType.JAVA

    @property
    def source_name(self) -> str:
        """Return "Java archives"."""
        return "Java archives"

    def find(self) -> list[Archive]:
        """Find all jar files below the scan directory.

        Jars that cannot be opened are logged and reported without
        candidate files.
        """
        directory = self._require_directory()
        archives = []
        for jar_path in sorted(directory.rglob("*.jar")):
            if jar_path.is_file():
                archives.append(self._create_archive(jar_path))
        logger.debug("Found %d jar files in %s", len(archives), directory)
        return archives

    def _create_archive(self, jar_path: Path) -> Archive:
        name, version = split_jar_name(jar_path.name)
        archive = Archive(
            archive_type=self.archive_type,
            file_name=name,
            version=version,
            path=self._relative_path(jar_path),
            message_digest=sha256_file(jar_path),
        )

        try:
            with zipfile.ZipFile(jar_path) as jar:
                entry_names = [info.filename for info in jar.infolist() if not info.is_dir()]
                manifest = (
                    jar.read(MANIFEST_PATH).decode("utf-8", errors="replace")
                    if MANIFEST_PATH in entry_names
                    else None
                )
        except (OSError, *ENTRY_ERRORS) as e:
            logger.warning("Cannot open %s, no license candidates: %s", jar_path, e)
            return archive

        declared: tuple[str, ...] = ()
        if manifest is not None:
            headers = parse_manifest(manifest)
            archive.vendor = next(
                (headers[h] for h in VENDOR_HEADERS if headers.get(h)), None
            )
            if headers.get(LICENSE_HEADER):
                declared = tuple(
                    part.strip()
                    for part in headers[LICENSE_HEADER].split(",")
                    if part.strip()
                )
            if declared:
                archive.candidate_files.append(
                    CandidateFile(
                        path=MANIFEST_PATH,
                        reader=_entry_reader(jar_path, MANIFEST_PATH),
                        declared=declared,
                    )
                )

        for entry_name in sorted(entry_names):
            if is_license_file(PurePosixPath(entry_name).name):
                archive.candidate_files.append(
                    CandidateFile(path=entry_name, reader=_entry_reader(jar_path, entry_name))
                )
        return archive
