"""Command-line interface for gql-getit."""

import asyncio
import json
import logging
import sys
from typing import Any

import click
from pydantic import ValidationError

from . import __version__
from .core.config import GetitConfig
from .core.errors import GetitError
from .core.getit import Getit
from .core.query import Query
from .core.selection import parse_field_paths


def parse_where(pairs: tuple[str, ...]) -> list[tuple[str, Any]]:
    """Parse KEY=VALUE pairs. Values are read as JSON where possible."""
    wheres = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--where")
        try:
            wheres.append((key, json.loads(value)))
        except json.JSONDecodeError:
            wheres.append((key, value))
    return wheres


def build_query(
    query: Query,
    name: str,
    select: tuple[str, ...],
    where: tuple[str, ...],
    alias: str | None,
    comment: str | None,
    raw: str | None,
) -> Query:
    """Apply command-line options to a query."""
    query.name(name).raw(raw)
    if alias:
        query.alias(alias)
    if comment:
        query.comment(comment)
    if select:
        query.select(parse_field_paths(list(select)))
    for key, value in parse_where(where):
        query.where(key, value)
    return query


def query_options(func):
    """Options shared by the render and get commands."""
    options = [
        click.argument("name"),
        click.option(
            "--select",
            "-s",
            multiple=True,
            help="Field to select; dotted paths select nested fields (owner.name).",
        ),
        click.option(
            "--where",
            "-w",
            multiple=True,
            help="Parameter as KEY=VALUE. VALUE is parsed as JSON if it can be.",
        ),
        click.option("--alias", "-a", help="Alias for the query."),
        click.option("--comment", "-c", help="Comment added to the selection block."),
        click.option("--raw", help="Use this selection-set text instead of the options."),
        click.option("--mutation", is_flag=True, help="Wrap in a mutation block instead of a query."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Build GraphQL queries from the command line and run them."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@main.command()
@query_options
def render(name, select, where, alias, comment, raw, mutation):
    """Print the GraphQL document for a query.

    Examples:

        gql-getit render dealers -s id -s owner.name -w zip=91403
    """
    try:
        query = build_query(Query(), name, select, where, alias, comment, raw)
        click.echo(query.document("mutation" if mutation else "query"))
    except GetitError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
@query_options
@click.option(
    "--url",
    envvar="GETIT_URL",
    required=True,
    help="GraphQL endpoint URL (default: $GETIT_URL).",
)
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as 'Name: value'.",
)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Request timeout in seconds.")
@click.option("--result-name", help="Response key to read instead of the alias/name.")
def get(name, select, where, alias, comment, raw, mutation, url, headers, timeout, result_name):
    """Run a query and print its result as JSON.

    Errors reported by the endpoint are printed to stderr and make the
    command exit with status 1.

    Examples:

        gql-getit get dealers -s id -s name --url https://api.example.com/graphql
    """
    try:
        config = GetitConfig(url=url, timeout=timeout)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid connection settings: {exc}") from exc
    for header in headers:
        header_name, sep, value = header.partition(":")
        if not sep:
            raise click.BadParameter(f"Expected 'Name: value', got {header!r}", param_hint="--header")
        config.add_header(header_name.strip(), value.strip())

    try:
        result, errors = asyncio.run(
            _run(config, name, select, where, alias, comment, raw, mutation, result_name)
        )
    except GetitError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(result if result is not None else "null")
    if errors:
        for error in errors:
            click.echo(f"GraphQL error: {error.message}", err=True)
        sys.exit(1)


async def _run(config, name, select, where, alias, comment, raw, mutation, result_name):
    async with Getit(config) as getit:
        query = build_query(getit.query(), name, select, where, alias, comment, raw)
        result = await query.get(
            str,
            result_name,
            operation_type="mutation" if mutation else "query",
        )
        return result, query.errors


if __name__ == "__main__":
    main()
