"""Finder for Node packages.

Every directory directly below a ``node_modules`` directory (or below a
``@scope`` directory inside it) that contains a ``package.json`` becomes one
archive.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Optional

from license_scout.discovery.base import BaseFinder, is_license_file
from license_scout.models import Archive, ArchiveType, Author, CandidateFile

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"
PACKAGE_JSON = "package.json"


def _file_reader(path: Path):
    def read() -> bytes:
        return path.read_bytes()

    return read


def declared_licenses(manifest: dict[str, Any]) -> list[str]:
    """Return the license identifiers declared in a package.json.

    Supports the ``license`` string, the deprecated ``license`` object
    (``{"type": ..., "url": ...}``) and the deprecated ``licenses`` list.
    """
    declared: list[str] = []
    entries = [manifest.get("license")]
    if isinstance(manifest.get("licenses"), list):
        entries.extend(manifest["licenses"])
    for entry in entries:
        if isinstance(entry, str) and entry.strip():
            declared.append(entry.strip())
        elif isinstance(entry, dict):
            value = entry.get("type") or entry.get("url")
            if isinstance(value, str) and value.strip():
                declared.append(value.strip())
    return declared


def parse_author(value: Any) -> Optional[Author]:
    """Parse a package.json author given as object or "Name <email> (url)"."""
    if isinstance(value, dict) and value.get("name"):
        return Author(name=value["name"], email=value.get("email"), url=value.get("url"))
    if not isinstance(value, str) or not value.strip():
        return None
    name, email, url = value, None, None
    if "(" in name and name.rstrip().endswith(")"):
        name, _, url = name.partition("(")
        url = url.rstrip().rstrip(")").strip()
    if "<" in name and ">" in name:
        name, _, email = name.partition("<")
        email = email.partition(">")[0].strip()
    return Author(name=name.strip(), email=email or None, url=url or None)


class NpmPackageFinder(BaseFinder):
    """Finds installed Node packages and their license candidate files."""

    @property
    def archive_type(self) -> ArchiveType:
        """Return ArchiveType.NPM."""
        return ArchiveType.NPM

    @property
    def source_name(self) -> str:
        """Return "Node packages"."""
        return "Node packages"

    def find(self) -> list[Archive]:
        """Find all packages below the scan directory.

        Packages with an unreadable or invalid package.json are skipped
        with a warning.
        """
        directory = self._require_directory()
        archives = []
        for manifest_path in sorted(directory.rglob(PACKAGE_JSON)):
            if self._is_package_root(manifest_path.parent):
                archive = self._create_archive(manifest_path)
                if archive is not None:
                    archives.append(archive)
        logger.debug("Found %d packages in %s", len(archives), directory)
        return archives

    @staticmethod
    def _is_package_root(package_dir: Path) -> bool:
        parent = package_dir.parent
        if parent.name == NODE_MODULES:
            return True
        return parent.name.startswith("@") and parent.parent.name == NODE_MODULES

    def _create_archive(self, manifest_path: Path) -> Optional[Archive]:
        try:
            content = manifest_path.read_bytes()
            manifest = json.loads(content)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", manifest_path, e)
            return None
        if not isinstance(manifest, dict):
            logger.warning("Skipping %s: not a JSON object", manifest_path)
            return None

        package_dir = manifest_path.parent
        default_name = (
            f"{package_dir.parent.name}/{package_dir.name}"
            if package_dir.parent.name.startswith("@")
            else package_dir.name
        )
        archive = Archive(
            archive_type=self.archive_type,
            file_name=str(manifest.get("name") or default_name),
            version=str(manifest.get("version") or ""),
            path=self._relative_path(package_dir),
            message_digest=hashlib.sha256(content).digest(),
            author=parse_author(manifest.get("author")),
        )

        archive.candidate_files.append(
            CandidateFile(
                path=PACKAGE_JSON,
                reader=_file_reader(manifest_path),
                declared=tuple(declared_licenses(manifest)),
            )
        )
        for path in sorted(package_dir.iterdir()):
            if path.is_file() and is_license_file(path.name):
                archive.candidate_files.append(
                    CandidateFile(path=path.name, reader=_file_reader(path))
                )
        return archive
