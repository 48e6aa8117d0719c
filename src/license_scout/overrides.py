"""Checked archives: manually confirmed license corrections.

A checked archive entry overrides whatever the detector found for an
archive. Entries are keyed by message digest, or by file name and version
when the digest is left as a wildcard.
"""

import csv
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from license_scout.models import Archive, ArchiveType

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Column order of checked archive CSV files
COLUMNS = [
    "type",
    "file_name",
    "version",
    "digest",
    "licenses",
    "legal_status",
    "justification",
    "vendor",
    "documentation_url",
    "provider",
    "notice",
    "license_text",
]

LICENSE_SEPARATOR = ";"


@dataclass(frozen=True)
class CheckedArchive:
    """A manually curated override for one archive identity.

    Attributes:
        file_name: Archive file name (compared ignoring case).
        version: Archive version, or ``*`` for any version.
        message_digest: Lowercase hex digest, or None to match by name and
            version only.
        license_ids: Licenses that replace the detected ones.
        legal_status: Legal status to use directly, if given.
        justification: Why the override exists.
        archive_type: Archive type the entry is restricted to, if any.
        vendor: Vendor to record on the archive.
        documentation_url: Documentation URL to record on the archive.
        provider_id: Provider to attach.
        notice_id: Notice to attach.
        license_text_id: License text to attach.
    """

    file_name: str
    version: str = WILDCARD
    message_digest: Optional[str] = None
    license_ids: tuple[str, ...] = ()
    legal_status: Optional[str] = None
    justification: str = ""
    archive_type: Optional[ArchiveType] = None
    vendor: Optional[str] = None
    documentation_url: Optional[str] = None
    provider_id: Optional[str] = None
    notice_id: Optional[str] = None
    license_text_id: Optional[str] = None

    def applies_to(self, archive: Archive) -> bool:
        """Check type, name and version (not the digest) against an archive."""
        if self.archive_type is not None and self.archive_type != archive.archive_type:
            return False
        if self.file_name.lower() != archive.file_name.lower():
            return False
        return self.version == WILDCARD or self.version == archive.version


class OverrideStore:
    """Read-only lookup table of checked archives.

    Lookup tries the archive's message digest first. Only if no entry has
    that digest, entries without a digest are matched by file name and
    version. An entry with a concrete digest never matches by name, so a
    rebuilt artifact under the same version is not silently overridden.
    """

    def __init__(self, entries: Iterable[CheckedArchive] = ()) -> None:
        """Index the given entries.

        Args:
            entries: Checked archive entries; for duplicate keys the first
                entry wins.
        """
        self._entries = tuple(entries)
        self._by_digest: dict[str, CheckedArchive] = {}
        self._by_name: dict[str, list[CheckedArchive]] = {}
        for entry in self._entries:
            if entry.message_digest:
                self._by_digest.setdefault(entry.message_digest.lower(), entry)
            else:
                self._by_name.setdefault(entry.file_name.lower(), []).append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CheckedArchive]:
        return iter(self._entries)

    def lookup(self, archive: Archive) -> Optional[CheckedArchive]:
        """Find the override for an archive.

        Args:
            archive: Archive to look up.

        Returns:
            The matching entry, or None.
        """
        digest = archive.message_digest_string
        if digest:
            entry = self._by_digest.get(digest)
            if entry is not None and (
                entry.archive_type is None or entry.archive_type == archive.archive_type
            ):
                return entry

        candidates = self._by_name.get(archive.file_name.lower(), [])
        exact = [e for e in candidates if e.applies_to(archive) and e.version != WILDCARD]
        if exact:
            return exact[0]
        return next((e for e in candidates if e.applies_to(archive)), None)


def write_skeleton(archives: Iterable[Archive], output_path: Path) -> int:
    """Write a checked archives CSV listing the given archives.

    The result can be curated by hand and used as the checked archives file
    of later runs.

    Args:
        archives: Processed archives.
        output_path: CSV file to write.

    Returns:
        Number of rows written.
    """
    count = 0
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        for archive in archives:
            writer.writerow(
                {
                    "type": archive.archive_type.value,
                    "file_name": archive.file_name,
                    "version": archive.version,
                    "digest": archive.message_digest_string or WILDCARD,
                    "licenses": LICENSE_SEPARATOR.join(
                        lic.id for lic in archive.resulting_licenses
                    ),
                    "legal_status": archive.legal_status or "",
                    "justification": "",
                    "vendor": archive.vendor or "",
                    "documentation_url": archive.documentation_url or "",
                    "provider": archive.provider.id if archive.provider else "",
                    "notice": archive.notice.id if archive.notice else "",
                    "license_text": archive.license_text.id if archive.license_text else "",
                }
            )
            count += 1
    logger.info("Wrote %d checked archive skeleton rows to %s", count, output_path)
    return count
