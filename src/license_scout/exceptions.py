"""Exception hierarchy for license_scout.

Genuine execution errors abort a scan immediately. A fail-on-error
condition is not an exception: it is reported as a
:class:`~license_scout.pipeline.PolicyViolation` after the whole scan
completed.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional


class LicenseScoutError(Exception):
    """Base class for all license_scout errors."""


class LicenseScoutExecutionError(LicenseScoutError):
    """An error that prevents the scan from completing.

    Attributes:
        message: Human-readable description.
        context: Additional structured details for logging.
    """

    def __init__(
        self, message: str, *, context: Optional[Mapping[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})


class ConfigurationError(LicenseScoutExecutionError):
    """A configuration source is missing, unreadable or malformed."""

    def __init__(self, message: str, *, source: Optional[Path] = None) -> None:
        context = {"source": str(source)} if source is not None else None
        super().__init__(message, context=context)
        self.source = source


class DiscoveryError(LicenseScoutExecutionError):
    """Archive discovery failed, e.g. because the scan directory is missing."""
