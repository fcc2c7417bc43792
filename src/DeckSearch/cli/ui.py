"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands to their
runners.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import click
from dateutil import parser as dt_parser
from dotenv import load_dotenv

from DeckSearch.cli.runner import CommandRunner
from DeckSearch.config import RESULT_TYPES, load_config_with_defaults
from DeckSearch.core.errors import SearchError
from DeckSearch.search.parser import parse


def _parse_now(ctx: click.Context, param: click.Parameter, value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return dt_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise click.BadParameter(f"cannot parse timestamp: {value}") from e


@click.group(help="DeckSearch: search flashcard notes and cards with a query language.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    default=None,
    help="YAML file merged over the built-in defaults.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """CLI entry group.

    Loads environment variables from .env before options that read them are
    parsed.
    """
    load_dotenv()
    ctx.obj = load_config_with_defaults(config_path)


@cli.command("parse")
@click.argument("query")
def parse_cmd(query: str) -> None:
    """Print the parsed form of QUERY as JSON."""
    try:
        model = parse(query)
    except SearchError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(model.to_dict(), ensure_ascii=False, indent=2))


@cli.command("search")
@click.argument("query")
@click.option("--owner", "owner_id", type=int, required=True, envvar="DECKSEARCH_OWNER", help="Owning user id.")
@click.option(
    "--type",
    "result_type",
    type=click.Choice(RESULT_TYPES, case_sensitive=False),
    default=None,
    help="Entity to search; defaults to search.result_type.",
)
@click.option("--limit", type=int, default=0, show_default=True, help="Page size; 0 uses the default.")
@click.option("--offset", type=int, default=0, show_default=True, help="Matches to skip.")
@click.option("--now", callback=_parse_now, default=None, help="Reference time for is:due and prop:due.")
@click.option("--db", "db_path", envvar="DECKSEARCH_DB", default=None, help="Database path override.")
@click.pass_context
def search_cmd(
    ctx: click.Context,
    query: str,
    owner_id: int,
    result_type: str | None,
    limit: int,
    offset: int,
    now: datetime | None,
    db_path: str | None,
) -> None:
    """Search notes or cards matching QUERY.

    Results go to the writers listed in output.formats.
    """
    runner = CommandRunner(ctx.obj)
    runner.run_search(
        action=ctx.command.name,
        query=query,
        owner_id=owner_id,
        result_type=result_type.lower() if result_type else None,
        limit=limit,
        offset=offset,
        now=now,
        db_path=db_path,
    )
