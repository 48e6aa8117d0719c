"""Bundled Jinja2 templates."""
