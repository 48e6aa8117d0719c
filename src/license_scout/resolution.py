"""Resolution of detected licenses into the resulting licenses of an archive.

Resolution applies, in order:

1. Checked archive override: replaces the result wholesale and stops.
2. Vendor filter: flags archives of filtered vendors for reporting.
3. Global filters: drops detections known to be false positives.
4. Default copy: the remaining detections become the result.
"""

import logging
from collections.abc import Mapping
from typing import TypeVar

from license_scout.catalog import ReferenceCatalog
from license_scout.exceptions import ConfigurationError
from license_scout.models import Archive, DetectionStatus, License
from license_scout.overrides import CheckedArchive, OverrideStore

logger = logging.getLogger(__name__)

# Source recorded for licenses that come from a checked archive entry
OVERRIDE_SOURCE = "[checked archive]"

T = TypeVar("T")


class ResolutionEngine:
    """Merges detections with overrides and filters.

    Attributes:
        catalog: Reference catalog (licenses, filters, enrichment data).
        overrides: Checked archive entries.
    """

    def __init__(self, catalog: ReferenceCatalog, overrides: OverrideStore) -> None:
        """Initialize the engine.

        Args:
            catalog: Reference catalog.
            overrides: Override store.
        """
        self.catalog = catalog
        self.overrides = overrides

    def resolve(self, archive: Archive) -> None:
        """Set the resulting licenses and detection status of an archive.

        The detection record is only read.

        Args:
            archive: Archive whose detection has completed.
        """
        # Step 1: Checked archive override
        entry = self.overrides.lookup(archive)
        if entry is not None:
            self._apply_override(archive, entry)
            return

        # Step 2: Vendor filter
        if self.catalog.is_vendor_filtered(archive.vendor):
            logger.debug(
                "Vendor '%s' of %s is filtered", archive.vendor, archive.file_name
            )
            archive.vendor_filtered = True

        # Step 3: Global filters
        detected = archive.detected_licenses
        kept: dict[License, list[str]] = {}
        for license, paths in detected.items():
            for path in paths:
                rule = self.catalog.matching_global_filter(license, path)
                if rule is None:
                    kept.setdefault(license, []).append(path)
                else:
                    logger.debug(
                        "Filtered %s in %s of %s (%s)",
                        license.id,
                        path,
                        archive.file_name,
                        rule.justification or "global filter",
                    )

        # Step 4: Default copy
        archive.replace_resulting_licenses(kept)
        archive.detection_status = self._detection_status(archive, kept, bool(detected))
        logger.debug(
            "Resolved %s: %s (%d license(s))",
            archive.file_name,
            archive.detection_status.value,
            len(kept),
        )

    def _apply_override(self, archive: Archive, entry: CheckedArchive) -> None:
        """Replace the result with a checked archive entry.

        Raises:
            ConfigurationError: If the entry refers to unknown reference data.
        """
        licenses = [
            self._override_license(entry, identifier) for identifier in entry.license_ids
        ]
        archive.replace_resulting_licenses(
            {license: [OVERRIDE_SOURCE] for license in licenses}
        )
        archive.explicit_legal_status = entry.legal_status
        archive.override_justification = entry.justification or None

        if entry.vendor:
            archive.vendor = entry.vendor
        if entry.documentation_url:
            archive.documentation_url = entry.documentation_url
        if entry.provider_id:
            archive.provider = self._reference(
                entry, "provider", self.catalog.providers, entry.provider_id
            )
        if entry.notice_id:
            archive.notice = self._reference(
                entry, "notice", self.catalog.notices, entry.notice_id
            )
        if entry.license_text_id:
            archive.license_text = self._reference(
                entry, "license text", self.catalog.license_texts, entry.license_text_id
            )

        archive.detection_status = DetectionStatus.MANUALLY_OVERRIDDEN
        logger.debug(
            "Applied checked archive to %s %s: %s",
            archive.file_name,
            archive.version,
            ", ".join(license.id for license in licenses) or entry.legal_status,
        )

    def _override_license(self, entry: CheckedArchive, identifier: str) -> License:
        """Resolve an override license id, SPDX id, name or URL."""
        license = self.catalog.resolve_license(identifier)
        if license is None:
            raise ConfigurationError(
                f"Checked archive '{entry.file_name}' refers to unknown license '{identifier}'"
            )
        return license

    @staticmethod
    def _reference(entry: CheckedArchive, kind: str, table: Mapping[str, T], ref: str) -> T:
        try:
            return table[ref]
        except KeyError:
            raise ConfigurationError(
                f"Checked archive '{entry.file_name}' refers to unknown {kind} '{ref}'"
            ) from None

    @staticmethod
    def _detection_status(
        archive: Archive, kept: dict[License, list[str]], had_detections: bool
    ) -> DetectionStatus:
        if not kept:
            return (
                DetectionStatus.FILTERED_OUT
                if had_detections
                else DetectionStatus.NOT_DETECTED
            )
        if len(kept) > 1:
            return DetectionStatus.CONFLICTING_MATCHES
        (license,) = kept
        return DetectionStatus.for_method(archive.detection_methods[license])
