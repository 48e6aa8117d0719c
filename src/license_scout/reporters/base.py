"""Base interface for output reporters.

Reporters generate formatted output from the reportable archives of a
finished scan.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from license_scout.models import Archive
from license_scout.pipeline import PolicyViolation


class BaseReporter(ABC):
    """Abstract base class for output reporters.

    Reporters take classified, sorted archives and generate formatted
    output documents.
    """

    @abstractmethod
    def render(
        self,
        archives: list[Archive],
        policy_violation: Optional[PolicyViolation] = None,
    ) -> str:
        """Render archives to formatted output.

        Args:
            archives: Reportable archives in report order.
            policy_violation: Fail-on-error condition to mention, if any.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(
        self,
        archives: list[Archive],
        output_path: Path,
        policy_violation: Optional[PolicyViolation] = None,
    ) -> None:
        """Render and write output to a file.

        Args:
            archives: Reportable archives in report order.
            output_path: Path to write the output file.
            policy_violation: Fail-on-error condition to mention, if any.
        """
        content = self.render(archives, policy_violation)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the output format name."""
        ...

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Return the default file extension for this format."""
        ...
