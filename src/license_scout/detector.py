"""License detection in candidate files of an archive.

The detector matches each candidate file against the license catalog using,
in decreasing confidence:

1. Checksum: the SHA-256 of the file equals a known license file checksum.
2. Pattern: every phrase of a license signature occurs in the normalized
   text of the file.
3. Declaration: a manifest declares a license name, URL or SPDX expression
   that resolves to a catalog license.
4. File name: the file is named like a known license file. Only used when
   no file of the archive matched with one of the methods above.
"""

import hashlib
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from license_expression import ExpressionError, get_spdx_licensing

from license_scout.catalog import ReferenceCatalog
from license_scout.models import Archive, CandidateFile, DetectionMethod, License

logger = logging.getLogger(__name__)

SPDX = get_spdx_licensing()

# Pattern matching only looks at the head of large files
MAX_PATTERN_BYTES = 512 * 1024

# Whitespace, comment markers, slashes and quotes
_NOISE = re.compile(r"""[\s*#/"'`]+""")


def normalize_text(text: str) -> str:
    """Normalize license text for pattern matching.

    Casefolds the text and collapses whitespace, comment markers, slashes
    and quotes into single spaces, so that a license wrapped in a source
    comment matches the same signature as the plain text.
    """
    return _NOISE.sub(" ", text.casefold()).strip()


def _decode(content: bytes) -> str:
    # invalid bytes and a character cut at MAX_PATTERN_BYTES become U+FFFD
    return content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Detection:
    """One license found in one file."""

    license: License
    path: str
    method: DetectionMethod


class LicenseDetector:
    """Matches candidate files against the license catalog.

    The detector keeps no per-archive state and can be shared between
    workers.
    """

    def __init__(self, catalog: ReferenceCatalog) -> None:
        """Prepare normalized signatures and file name hints.

        Args:
            catalog: Reference catalog to match against.
        """
        self.catalog = catalog
        self._signatures: list[tuple[License, tuple[str, ...]]] = [
            (license, tuple(normalize_text(phrase) for phrase in signature))
            for license in catalog.licenses.values()
            for signature in license.patterns
        ]
        self._file_names: dict[str, list[License]] = {}
        for license in catalog.licenses.values():
            for name in license.file_names:
                self._file_names.setdefault(name.lower(), []).append(license)

    def detect(
        self, archive: Archive, candidates: Optional[Iterable[CandidateFile]] = None
    ) -> list[Detection]:
        """Detect the licenses of an archive.

        Every detection is appended to the archive's detection record and
        every candidate path to its candidate file list. Status fields and
        resulting licenses are left untouched.

        Args:
            archive: Archive to scan.
            candidates: Candidate files; defaults to the archive's own.

        Returns:
            The detections, one per license and file, each with the
            strongest method that matched.
        """
        if candidates is None:
            candidates = archive.candidate_files

        found: dict[tuple[License, str], DetectionMethod] = {}
        fallback: list[Detection] = []

        for candidate in candidates:
            archive.add_license_candidate_file(candidate.path)
            for detection in self._match_candidate(archive, candidate):
                key = (detection.license, detection.path)
                if key not in found or detection.method.rank < found[key].rank:
                    found[key] = detection.method
            fallback.extend(self._match_file_name(candidate))

        detections = [
            Detection(license, path, method) for (license, path), method in found.items()
        ]
        if not detections and fallback:
            logger.debug(
                "No content match for %s, using file name heuristics", archive.file_name
            )
            detections = fallback

        for detection in detections:
            archive.add_detected_license(detection.license, detection.path, detection.method)

        logger.debug(
            "Detected %d license(s) in %d candidate file(s) of %s",
            len({d.license for d in detections}),
            len(archive.license_candidate_files),
            archive.file_name,
        )
        return detections

    def _match_candidate(
        self, archive: Archive, candidate: CandidateFile
    ) -> list[Detection]:
        """Run the checksum, pattern and declaration matchers on one file."""
        detections = [
            Detection(license, candidate.path, DetectionMethod.DECLARATION)
            for license in self._match_declared(candidate.declared)
        ]

        try:
            content = candidate.read()
        except OSError as e:
            logger.warning(
                "Cannot read %s in %s, skipping: %s", candidate.path, archive.file_name, e
            )
            return detections

        checksum = hashlib.sha256(content).hexdigest()
        detections.extend(
            Detection(license, candidate.path, DetectionMethod.CHECKSUM)
            for license in self.catalog.licenses_for_checksum(checksum)
        )

        text = normalize_text(_decode(content[:MAX_PATTERN_BYTES]))
        matched: set[License] = set()
        for license, phrases in self._signatures:
            if license not in matched and all(phrase in text for phrase in phrases):
                matched.add(license)
                detections.append(
                    Detection(license, candidate.path, DetectionMethod.PATTERN)
                )
        return detections

    def _match_declared(self, declared: Iterable[str]) -> list[License]:
        """Resolve license identifiers declared by a manifest."""
        licenses: list[License] = []
        for value in declared:
            license = self.catalog.resolve_license(value)
            if license is not None:
                licenses.append(license)
                continue

            try:
                keys = SPDX.license_keys(value)
            except ExpressionError as e:
                logger.debug("Cannot parse declared license '%s': %s", value, e)
                continue
            for key in keys:
                license = self.catalog.resolve_license(key)
                if license is None:
                    logger.debug("Declared license '%s' is not in the catalog", key)
                else:
                    licenses.append(license)
        return list(dict.fromkeys(licenses))

    def _match_file_name(self, candidate: CandidateFile) -> list[Detection]:
        """Return low-confidence detections based on the file name."""
        name = PurePosixPath(candidate.path).name.lower()
        return [
            Detection(license, candidate.path, DetectionMethod.FILE_NAME)
            for license in self._file_names.get(name, [])
        ]
