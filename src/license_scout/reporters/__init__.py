"""Output reporters for scan results.

This module provides reporters for rendering classified archives to
various output formats.
"""

from license_scout.reporters.base import BaseReporter
from license_scout.reporters.markdown import MarkdownReporter

__all__ = ["BaseReporter", "MarkdownReporter"]
