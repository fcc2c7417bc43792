"""Command runner for coordinating CLI execution.

Manages component lifecycle, logging configuration and error handling for
command execution.
"""

from __future__ import annotations

from datetime import datetime

import click

from DeckSearch.cli.commands import SearchCommand
from DeckSearch.config import AppConfig
from DeckSearch.core.errors import SearchError
from DeckSearch.renderers import create_output_writer
from DeckSearch.services import create_search_service
from DeckSearch.storage import create_storage
from DeckSearch.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def configure_logging(self, action: str) -> None:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )

    def run_search(
        self,
        action: str,
        *,
        query: str,
        owner_id: int,
        result_type: str | None = None,
        limit: int = 0,
        offset: int = 0,
        now: datetime | None = None,
        db_path: str | None = None,
    ) -> None:
        """Execute the search command with full resource management.

        Args:
            action: The CLI command name (e.g., 'search').
            query: Raw DSL string.
            owner_id: User whose records are searched.
            result_type: ``notes`` or ``cards``; None uses the configured default.
            limit: Page size; 0 uses the configured default.
            offset: Matches to skip.
            now: Reference time for due-related filters.
            db_path: Overrides ``storage.db_path``.

        Raises:
            click.ClickException: When the query does not parse or compile.
            click.Abort: When the search fails for any other reason.
        """
        self.configure_logging(action)
        try:
            with create_storage(self.config, db_path) as db_manager:
                output_writer = create_output_writer(self.config)
                command = SearchCommand(
                    search_service=create_search_service(self.config, db_manager),
                    output_writer=output_writer,
                    query=query,
                    owner_id=owner_id,
                    result_type=result_type or self.config.search.result_type,
                    limit=limit,
                    offset=offset,
                    now=now,
                )
                command.execute()
                output_writer.finalize(action)
        except SearchError as e:
            log.error("Invalid query: %s", e)
            raise click.ClickException(str(e)) from e
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Search failed: %s", e)
            raise click.Abort from e
