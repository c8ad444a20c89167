"""Command-line interface for Cultural Footprint."""

from footprint.cli.main import cli

__all__ = ["cli"]
