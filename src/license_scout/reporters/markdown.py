"""Markdown reporter for license scan results.

This module provides a reporter that generates a Markdown summary of the
classified archives using Jinja2 templates.
"""

from datetime import datetime
from importlib.resources import files
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, Template

from license_scout.models import Archive
from license_scout.pipeline import PolicyViolation
from license_scout.reporters.base import BaseReporter


class MarkdownReporter(BaseReporter):
    """Reporter that generates Markdown license reports.

    Attributes:
        template: The Jinja2 template to use for rendering.
    """

    def __init__(self, template_path: Optional[Path] = None) -> None:
        """Initialize the Markdown reporter.

        Args:
            template_path: Optional path to a custom Jinja2 template.
                If not provided, uses the default bundled template.
        """
        if template_path:
            env = Environment(
                loader=FileSystemLoader(template_path.parent),
                autoescape=False,
            )
            self.template = env.get_template(template_path.name)
        else:
            self.template = self._load_default_template()

    def _load_default_template(self) -> Template:
        """Load the default bundled Jinja2 template."""
        template_content = (
            files("license_scout.templates")
            .joinpath("report.md.j2")
            .read_text(encoding="utf-8")
        )
        env = Environment(autoescape=False)
        return env.from_string(template_content)

    def render(
        self,
        archives: list[Archive],
        policy_violation: Optional[PolicyViolation] = None,
    ) -> str:
        """Render archives to Markdown.

        Args:
            archives: Reportable archives in report order.
            policy_violation: Fail-on-error condition to mention, if any.

        Returns:
            Rendered Markdown document as a string.
        """
        return self.template.render(
            archives=archives,
            policy_violation=policy_violation,
            generated_at=datetime.now(),
        )

    @property
    def format_name(self) -> str:
        """Return "markdown"."""
        return "markdown"

    @property
    def default_extension(self) -> str:
        """Return ".md"."""
        return ".md"
