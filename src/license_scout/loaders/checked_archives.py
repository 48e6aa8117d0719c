"""Loader for the checked archives table.

The table is a CSV file with a header row using the columns of
:data:`license_scout.overrides.COLUMNS`. ``licenses`` holds one or more
license identifiers (catalog ids, SPDX ids, names or URLs) separated by
``;``. ``digest`` and ``version`` accept ``*`` as a wildcard::

    type,file_name,version,digest,licenses,legal_status,justification
    java,commons-io,2.11.0,*,Apache-2.0,,Confirmed by legal review
    npm,left-pad,*,*,MIT;ISC,approved,Dual licensed
"""

import logging

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.base import CsvLoader
from license_scout.loaders.licenses import SHA256_PATTERN
from license_scout.models import ArchiveType, LegalStatus
from license_scout.overrides import LICENSE_SEPARATOR, WILDCARD, CheckedArchive

logger = logging.getLogger(__name__)


class CheckedArchivesLoader(CsvLoader):
    """Loader for checked archives (``checkedarchives.csv``).

    License identifiers are returned as written; they are resolved against
    the catalog when the override store is built.
    """

    @property
    def source_name(self) -> str:
        """Return "checked archives"."""
        return "checked archives"

    def load(self) -> list[CheckedArchive]:
        """Load all checked archive entries.

        Raises:
            ConfigurationError: If a row lacks a file name, has an unknown
                type, a malformed digest, or neither licenses nor a status.
        """
        entries = [self._parse_row(line_num, row) for line_num, row in self._rows()]
        logger.debug("Loaded %d checked archives from %s", len(entries), self.source_path)
        return entries

    def _parse_row(self, line_num: int, row: dict[str, str]) -> CheckedArchive:
        """Convert one CSV row into a CheckedArchive."""
        where = f"line {line_num} of {self.source_path}"
        file_name = row.get("file_name", "")
        if not file_name:
            raise ConfigurationError(f"Missing file_name on {where}", source=self.source_path)

        archive_type = None
        if row.get("type") and row["type"] != WILDCARD:
            try:
                archive_type = ArchiveType(row["type"].lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown archive type '{row['type']}' on {where}",
                    source=self.source_path,
                ) from e

        digest = row.get("digest", "").lower()
        if digest in ("", WILDCARD):
            digest = None
        elif not SHA256_PATTERN.match(digest):
            raise ConfigurationError(
                f"Malformed SHA-256 digest on {where}", source=self.source_path
            )

        license_ids = tuple(
            part.strip()
            for part in row.get("licenses", "").split(LICENSE_SEPARATOR)
            if part.strip()
        )
        legal_status = row.get("legal_status") or None
        if not license_ids and legal_status is None:
            raise ConfigurationError(
                f"Entry for '{file_name}' on {where} needs licenses or a legal_status",
                source=self.source_path,
            )

        return CheckedArchive(
            file_name=file_name,
            version=row.get("version") or WILDCARD,
            message_digest=digest,
            license_ids=license_ids,
            legal_status=LegalStatus.normalize(legal_status) if legal_status else None,
            justification=row.get("justification", ""),
            archive_type=archive_type,
            vendor=row.get("vendor") or None,
            documentation_url=row.get("documentation_url") or None,
            provider_id=row.get("provider") or None,
            notice_id=row.get("notice") or None,
            license_text_id=row.get("license_text") or None,
        )
