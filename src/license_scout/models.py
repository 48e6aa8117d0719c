"""Core data models for license_scout.

This module defines the fundamental data structures used throughout the
license scanning pipeline: the archive record that accumulates detection and
classification state, the reference entities loaded from the configuration
catalogs, and the enumerations describing how and with which outcome an
archive was classified.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Optional


class ArchiveType(str, Enum):
    """Kinds of artifacts that can be scanned."""

    JAVA = "java"
    NPM = "npm"


class DetectionMethod(str, Enum):
    """How a single license was matched, in decreasing confidence."""

    CHECKSUM = "checksum"
    PATTERN = "pattern"
    DECLARATION = "declaration"
    FILE_NAME = "file-name"

    @property
    def rank(self) -> int:
        """Return the confidence rank (0 is strongest)."""
        return _METHOD_RANKS[self]


_METHOD_RANKS = {method: rank for rank, method in enumerate(DetectionMethod)}


class DetectionStatus(str, Enum):
    """How the resulting licenses of an archive were obtained."""

    NOT_DETECTED = "not-detected"
    DETECTED_BY_CHECKSUM = "detected-by-checksum"
    DETECTED_BY_PATTERN = "detected-by-pattern"
    DETECTED_BY_DECLARATION = "detected-by-declaration"
    DETECTED_BY_FILE_NAME = "detected-by-file-name"
    CONFLICTING_MATCHES = "conflicting-matches"
    FILTERED_OUT = "filtered-out"
    MANUALLY_OVERRIDDEN = "manually-overridden"

    @classmethod
    def for_method(cls, method: DetectionMethod) -> "DetectionStatus":
        """Return the status describing a single license found by ``method``."""
        return cls(f"detected-by-{method.value}")


class LegalStatus:
    """Reserved legal status values.

    Legal statuses are plain strings. Apart from the two values below, which
    the classifier produces on its own, every category (``approved``,
    ``forbidden``, ...) is defined by the license catalog.
    """

    UNKNOWN = "unknown"
    CONFLICTING = "conflicting"

    @staticmethod
    def normalize(value: str) -> str:
        """Normalize a configured legal status for comparison.

        Args:
            value: Raw status, e.g. "Not_Accepted" or " needs review ".

        Returns:
            Lowercase status with underscores and spaces turned into dashes,
            e.g. "not-accepted".
        """
        return "-".join(value.strip().lower().replace("_", " ").split())


@dataclass(frozen=True)
class License:
    """A known license from the license catalog.

    Only ``id`` takes part in equality and hashing, so licenses can be used
    as mapping keys regardless of the detection data they carry.

    Attributes:
        id: Catalog identifier (e.g., "apache-2.0").
        spdx_id: SPDX identifier (e.g., "Apache-2.0"), if one exists.
        name: Human-readable license name.
        url: URL of the license text.
        legal_status: Configured risk category (e.g., "approved").
        checksums: SHA-256 hex digests of known license file contents.
        patterns: Text signatures; each signature is a tuple of phrases that
            must all occur in a candidate file.
        file_names: File names that hint at this license (lowest confidence).
    """

    id: str
    spdx_id: Optional[str] = field(default=None, compare=False)
    name: str = field(default="", compare=False)
    url: Optional[str] = field(default=None, compare=False)
    legal_status: str = field(default=LegalStatus.UNKNOWN, compare=False)
    checksums: frozenset[str] = field(default=frozenset(), compare=False, repr=False)
    patterns: tuple[tuple[str, ...], ...] = field(default=(), compare=False, repr=False)
    file_names: frozenset[str] = field(default=frozenset(), compare=False, repr=False)

    @property
    def display_name(self) -> str:
        """Return the SPDX identifier if available, else the name or id."""
        return self.spdx_id or self.name or self.id


@dataclass(frozen=True)
class Provider:
    """Organisation providing an archive."""

    id: str
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class Notice:
    """A license notice attached to archives."""

    id: str
    text: str


@dataclass(frozen=True)
class LicenseText:
    """A full license text body."""

    id: str
    text: str


@dataclass(frozen=True)
class Author:
    """Author information declared by a package."""

    name: str
    email: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class CandidateFile:
    """A file inside an archive that may carry license information.

    The content is read lazily through ``reader`` so that discovery does not
    have to keep every file in memory.

    Attributes:
        path: Symbolic path of the file inside the archive.
        reader: Callable returning the file content; raises OSError if the
            file cannot be read.
        declared: License identifiers declared by the file when it is a
            manifest (package.json ``license``, MANIFEST ``Bundle-License``).
    """

    path: str
    reader: Callable[[], bytes] = field(compare=False, repr=False)
    declared: tuple[str, ...] = ()

    @classmethod
    def from_bytes(
        cls, path: str, content: bytes, declared: Iterable[str] = ()
    ) -> "CandidateFile":
        """Create a candidate file backed by in-memory content."""
        return cls(path=path, reader=lambda: content, declared=tuple(declared))

    def read(self) -> bytes:
        """Return the file content.

        Raises:
            OSError: If the content cannot be read.
        """
        return self.reader()


LicenseMap = Mapping[License, tuple[str, ...]]

_IDENTITY_FIELDS = frozenset({"archive_type", "file_name", "version", "path"})


@dataclass(eq=False)
class Archive:
    """An archive or other artifact found during scanning.

    An archive is created by discovery with its identity fields, then passes
    through detection, resolution and classification, each stage filling in
    its own part of the record.

    Two archives are equal if their file names are equal ignoring case; use
    :func:`compare_archives` to sort them.

    Attributes:
        archive_type: Kind of artifact.
        file_name: Artifact file name (Java) or package name (Node).
        version: Artifact version.
        path: Path relative to the scanned directory.
        message_digest: SHA-256 of the artifact content.
        candidate_files: License-bearing files supplied by discovery.
        vendor: Vendor name, if known.
        documentation_url: Documentation URL from a checked archive entry.
        provider: Provider from a checked archive entry.
        notice: Notice from a checked archive entry.
        license_text: License text from a checked archive entry.
        author: Declared author.
        detection_status: How the resulting licenses were obtained.
        legal_status: Final legal verdict.
        explicit_legal_status: Legal status set directly by an override.
        override_justification: Reason given by the applied override.
        vendor_filtered: True if the vendor is excluded from reporting.
        license_candidate_files: Paths considered during detection.
    """

    archive_type: ArchiveType
    file_name: str
    version: str
    path: str
    message_digest: Optional[bytes] = None
    candidate_files: list[CandidateFile] = field(default_factory=list, repr=False)
    vendor: Optional[str] = None
    documentation_url: Optional[str] = None
    provider: Optional[Provider] = None
    notice: Optional[Notice] = None
    license_text: Optional[LicenseText] = None
    author: Optional[Author] = None
    detection_status: Optional[DetectionStatus] = None
    legal_status: Optional[str] = None
    explicit_legal_status: Optional[str] = None
    override_justification: Optional[str] = None
    vendor_filtered: bool = False
    license_candidate_files: list[str] = field(default_factory=list, repr=False)
    _detected: dict[License, list[str]] = field(
        default_factory=dict, init=False, repr=False
    )
    _methods: dict[License, DetectionMethod] = field(
        default_factory=dict, init=False, repr=False
    )
    _resulting: dict[License, tuple[str, ...]] = field(
        default_factory=dict, init=False, repr=False
    )
    _initialized: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._initialized = True

    def __setattr__(self, name: str, value: object) -> None:
        if name in _IDENTITY_FIELDS and getattr(self, "_initialized", False):
            raise AttributeError(f"Archive identity field '{name}' is read-only")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if isinstance(other, Archive):
            return self.file_name.lower() == other.file_name.lower()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.file_name.lower())

    @property
    def message_digest_string(self) -> str:
        """Return the message digest as lowercase hex, or "" if unknown."""
        return self.message_digest.hex() if self.message_digest else ""

    def add_license_candidate_file(self, file_path: str) -> None:
        """Record a file considered during detection (for information only)."""
        self.license_candidate_files.append(file_path)

    def add_detected_license(
        self,
        license: License,
        file_path: str,
        method: DetectionMethod = DetectionMethod.PATTERN,
    ) -> None:
        """Append a detection to the detection record.

        Args:
            license: Detected license.
            file_path: Path of the file inside the archive the match came from.
            method: How the license was matched.
        """
        paths = self._detected.setdefault(license, [])
        if file_path not in paths:
            paths.append(file_path)
        current = self._methods.get(license)
        if current is None or method.rank < current.rank:
            self._methods[license] = method

    @property
    def detected_licenses(self) -> LicenseMap:
        """Return a read-only view of the detection record."""
        return MappingProxyType(
            {license: tuple(paths) for license, paths in self._detected.items()}
        )

    @property
    def detection_methods(self) -> Mapping[License, DetectionMethod]:
        """Return the strongest detection method per detected license."""
        return MappingProxyType(dict(self._methods))

    @property
    def resulting_licenses(self) -> LicenseMap:
        """Return a read-only view of the resulting licenses."""
        return MappingProxyType(self._resulting)

    def replace_resulting_licenses(
        self, licenses: Mapping[License, Iterable[str]]
    ) -> None:
        """Replace the resulting licenses wholesale.

        A new mapping is built first and swapped in afterwards, so readers
        never observe a partially updated state.

        Args:
            licenses: Mapping of license to the paths it originates from.

        Raises:
            ValueError: If a license has no originating path.
        """
        rebuilt: dict[License, tuple[str, ...]] = {}
        for license, paths in licenses.items():
            paths = tuple(dict.fromkeys(paths))
            if not paths:
                raise ValueError(
                    f"Resulting license {license.id} of {self.file_name} has no source"
                )
            rebuilt[license] = paths
        self._resulting = rebuilt

    def set_resulting_licenses_from_detected(self) -> None:
        """Initialize the resulting licenses as a copy of the detection record."""
        self.replace_resulting_licenses(self._detected)

    def file_paths(self, license: License) -> tuple[str, ...]:
        """Return the paths a resulting license originates from."""
        return self._resulting.get(license, ())

    @property
    def resulting_spdx_ids(self) -> list[str]:
        """Return the SPDX identifiers of the resulting licenses."""
        return [lic.spdx_id for lic in self._resulting if lic.spdx_id]


def compare_archives(first: Archive, second: Archive) -> int:
    """Compare two archives by file name, ignoring case.

    Intended for ``functools.cmp_to_key`` with a stable sort, so archives
    with equal names keep their discovery order.

    Returns:
        Negative, zero or positive like ``str`` comparison.
    """
    if first is second:
        return 0
    left = first.file_name.lower()
    right = second.file_name.lower()
    return (left > right) - (left < right)
