"""Command-line interface for gql-pycli."""

import asyncio
import json
import sys
from pathlib import Path

import click
import httpx

from . import __version__
from .core.config import load_config
from .core.errors import GraphQLExecutionError, InvalidArgsError, map_error_to_exit_info
from .core.executor import GraphQLExecutor
from .core.headers import parse_header_directive
from .core.introspection import IntrospectionCache
from .core.operations import group_order, render_operations_text
from .core.session import EndpointSession
from .logger import configure_logging


def parse_var_options(entries: tuple[str, ...]) -> dict[str, str | list[str]]:
    """Turn repeated ``KEY=VALUE`` options into flat variable bindings.

    A key given more than once collects its values into a list.
    """
    variables: dict[str, str | list[str]] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidArgsError(f'Invalid --var "{entry}". Use KEY=VALUE syntax.')
        existing = variables.get(key)
        if existing is None:
            variables[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            variables[key] = [existing, value]
    return variables


def _is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


def _build_session(
    target: str,
    config_path: str | None,
    client: httpx.AsyncClient,
) -> EndpointSession:
    """Session for a URL, or for a named endpoint of the given config file."""
    cache = IntrospectionCache(client=client)
    executor = GraphQLExecutor(cache, client=client, diagnostics=sys.stderr)

    if config_path is None:
        if not _is_url(target):
            raise InvalidArgsError(
                f'"{target}" is not a URL.',
                hint="Pass --config to address endpoints by name.",
            )
        return EndpointSession.for_url(target, cache, executor)

    config = load_config(config_path)
    name, endpoint = config.resolve_endpoint(None if _is_url(target) else target)
    return EndpointSession(name, endpoint, Path(config_path).resolve().parent, cache, executor)


def _make_client(ctx: click.Context) -> httpx.AsyncClient:
    # Tests pass an httpx transport through the context object
    transport = (ctx.obj or {}).get("transport")
    return httpx.AsyncClient(timeout=30.0, transport=transport)


def _fail(error: BaseException):
    info = map_error_to_exit_info(error)
    click.echo(f"Error: {info.message}", err=True)
    if info.hint:
        click.echo(f"Hint: {info.hint}", err=True)
    if info.traceback:
        click.echo(info.traceback, err=True)
    sys.exit(int(info.code))


@click.group()
@click.version_option(__version__)
def main():
    """Run GraphQL operations straight from the command line.

    Requests are built from the endpoint's live schema: name an operation,
    bind its arguments with --var and optionally pick fields with --fields.
    """
    pass


@main.command()
@click.argument("target")
@click.argument("operation")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON config file; TARGET is then an endpoint name.",
)
@click.option(
    "--var",
    "variables",
    multiple=True,
    metavar="KEY=VALUE",
    help="Operation variable. Dotted keys address nested input fields; repeat a key for lists.",
)
@click.option("--fields", "-f", help='Field selection shorthand, e.g. "id name posts { title }".')
@click.option("--doc", "-d", help="Document file, stored document name, or inline GraphQL.")
@click.option("--operation-name", help="Operation to run when --doc defines several.")
@click.option(
    "--kind",
    type=click.Choice(["query", "mutation", "subscription"], case_sensitive=False),
    help="Root kind to use when the name exists under several.",
)
@click.option("--header", "-H", "headers", multiple=True, help='Header as "Key: Value"; an empty value removes it.')
@click.option("--cache-ttl", type=click.FloatRange(min=0), help="Introspection cache TTL in seconds.")
@click.option("--no-aliases", is_flag=True, help="Do not translate configured aliases.")
@click.option("--no-split-lists", is_flag=True, help="Do not split comma-separated values into lists.")
@click.option("--print-request", is_flag=True, help="Print the outgoing request to stderr.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def run(
    ctx: click.Context,
    target: str,
    operation: str,
    config_path: str | None,
    variables: tuple[str, ...],
    fields: str | None,
    doc: str | None,
    operation_name: str | None,
    kind: str | None,
    headers: tuple[str, ...],
    cache_ttl: float | None,
    no_aliases: bool,
    no_split_lists: bool,
    print_request: bool,
    verbose: bool,
):
    """Execute OPERATION against TARGET and print the response as JSON.

    Examples:

        gql-pycli run https://api.example.com/graphql user --var id=42 --fields "id name"

        gql-pycli run api createUser -c .gqrc.json --var input.name=Jess --var input.roles=ADMIN,VIEWER
    """
    configure_logging(verbose)

    async def _run():
        client = _make_client(ctx)
        try:
            session = _build_session(target, config_path, client)
            return await session.run(
                operation,
                variables=parse_var_options(variables),
                fields=fields,
                doc=doc,
                operation_name=operation_name,
                kind=kind,
                header_directives=[parse_header_directive(h) for h in headers],
                cache_ttl=cache_ttl,
                disable_aliases=no_aliases,
                split_lists=not no_split_lists,
                print_request=print_request,
            )
        finally:
            await client.aclose()

    try:
        result = asyncio.run(_run())
    except Exception as e:
        _fail(e)

    click.echo(json.dumps(result.result, indent=2))
    if result.has_errors:
        _fail(GraphQLExecutionError("GraphQL execution returned errors.", errors=result.errors))


@main.command()
@click.argument("target")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON config file; TARGET is then an endpoint name.",
)
@click.option(
    "--kind",
    type=click.Choice(["query", "mutation", "subscription"], case_sensitive=False),
    help="Only list operations of this kind.",
)
@click.option("--match", "-m", help="Case-insensitive substring filter on names and aliases.")
@click.option("--header", "-H", "headers", multiple=True, help='Header as "Key: Value" for introspection.')
@click.option("--show-hidden", is_flag=True, help="Include operations hidden by config.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def ops(
    ctx: click.Context,
    target: str,
    config_path: str | None,
    kind: str | None,
    match: str | None,
    headers: tuple[str, ...],
    show_hidden: bool,
    as_json: bool,
    verbose: bool,
):
    """List the operations TARGET exposes.

    Examples:

        gql-pycli ops https://api.example.com/graphql --kind mutation

        gql-pycli ops api -c .gqrc.json --match user --json
    """
    configure_logging(verbose)

    async def _list():
        client = _make_client(ctx)
        try:
            session = _build_session(target, config_path, client)
            summaries = await session.list_operations(
                kind=kind,
                match=match,
                show_hidden=show_hidden,
                header_directives=[parse_header_directive(h) for h in headers],
            )
            return session, summaries
        finally:
            await client.aclose()

    try:
        session, summaries = asyncio.run(_list())
    except Exception as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in summaries], indent=2))
    else:
        click.echo(render_operations_text(summaries, session.name, group_order(session.config)))


if __name__ == "__main__":
    main()
