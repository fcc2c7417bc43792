"""CLI package for DeckSearch command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "cli", "main"]

from DeckSearch.cli.runner import CommandRunner
from DeckSearch.cli.ui import cli


def main() -> None:
    """Run the DeckSearch CLI.

    Entry point referenced by the console script in pyproject.toml.
    """
    cli()
