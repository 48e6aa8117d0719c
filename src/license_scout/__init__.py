"""License Scout - License compliance auditing for software artifacts.

This package discovers archives (Java jars, npm packages), detects the
licenses in their license-bearing files, applies curated overrides and
filters, and classifies every archive with a legal status.
"""

__version__ = "0.1.0"

from license_scout.models import (
    Archive,
    ArchiveType,
    DetectionMethod,
    DetectionStatus,
    LegalStatus,
    License,
)
from license_scout.pipeline import Executor, PolicyViolation, ScanResult

__all__ = [
    "__version__",
    "Archive",
    "ArchiveType",
    "DetectionMethod",
    "DetectionStatus",
    "Executor",
    "LegalStatus",
    "License",
    "PolicyViolation",
    "ScanResult",
]
