"""CLI interface for the content API client.

Command-line tool for inspecting site content, navigation and published pages.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import click

from ltcms_client.config import CliSettings, Config
from ltcms_client.errors import ApiError
from ltcms_client.site import SiteClient

T = TypeVar("T")


@dataclass
class CliContext:
    """Options shared by all commands."""

    config: Config
    token: str | None


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _run(ctx: CliContext, action: Callable[[SiteClient], Awaitable[T]]) -> T:
    """Run action against a fresh SiteClient, exiting 1 on API errors."""

    async def _main() -> T:
        async with SiteClient(ctx.config, token=ctx.token) as client:
            return await action(client)

    try:
        return asyncio.run(_main())
    except ApiError as e:
        status = e.status if e.status is not None else "-"
        click.echo(click.style(f"Error ({status}): {e.message}", fg="red"), err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover ltcms.toml)",
)
@click.option(
    "--base-url",
    envvar="LTCMS_API_BASE_URL",
    default=None,
    help="API base URL (overrides config)",
)
@click.option(
    "--token",
    envvar="LTCMS_TOKEN",
    default=None,
    help="Bearer token for authenticated requests",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds (overrides config)",
)
@click.option(
    "--cache-bust/--no-cache-bust",
    default=None,
    help="Append a timestamp to GET requests (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    base_url: str | None,
    token: str | None,
    timeout: float | None,
    cache_bust: bool | None,
    verbose: bool,
) -> None:
    """Inspect content served by an ltcms site."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    cli_settings = CliSettings(base_url=base_url, timeout=timeout, cache_bust=cache_bust)
    try:
        config = Config.load(config_path, cli_settings)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    ctx.obj = CliContext(config=config, token=token)


@cli.command()
@click.pass_obj
def sections(ctx: CliContext) -> None:
    """Show every effective content section."""

    async def action(client: SiteClient) -> dict[str, Any]:
        await client.content.load()
        if client.content.error is not None:
            raise client.content.error
        return client.content.content

    _echo_json(_run(ctx, action))


@cli.command()
@click.argument("key")
@click.option("--default", "show_default", is_flag=True, help="Show the compiled-in default")
@click.pass_obj
def section(ctx: CliContext, key: str, show_default: bool) -> None:
    """Show one content section."""

    async def action(client: SiteClient) -> Any:
        if show_default:
            return client.content.get_default_section(key)
        await client.content.load()
        if client.content.error is not None:
            raise client.content.error
        return client.content.get_section(key)

    _echo_json(_run(ctx, action))


@cli.command()
@click.argument("slug")
@click.option("--force", is_flag=True, help="Bypass the published-page check")
@click.pass_obj
def page(ctx: CliContext, slug: str, force: bool) -> None:
    """Show a published page with its posts."""

    async def action(client: SiteClient) -> Any:
        return await client.pages.fetch(slug, force=force)

    _echo_json(_run(ctx, action))


@cli.command()
@click.option(
    "--kind",
    type=click.Choice(["all", "static", "dynamic"]),
    default="all",
    help="Which navigation entries to show",
)
@click.pass_obj
def navigation(ctx: CliContext, kind: str) -> None:
    """Show the resolved navigation."""

    async def action(client: SiteClient) -> Any:
        await client.start()
        resolved = client.navigation.to_dict()
        return resolved["items"] if kind == "all" else resolved[kind]

    _echo_json(_run(ctx, action))


@cli.command()
@click.pass_obj
def tutorials(ctx: CliContext) -> None:
    """List tutorials."""

    async def action(client: SiteClient) -> Any:
        return await client.tutorials.load()

    _echo_json(_run(ctx, action))


@cli.command()
@click.argument("username")
@click.password_option(confirmation_prompt=False)
@click.pass_obj
def login(ctx: CliContext, username: str, password: str) -> None:
    """Log in and print the session token."""

    async def action(client: SiteClient) -> str | None:
        await client.auth.login(username, password)
        return client.session.get()

    token = _run(ctx, action)
    click.echo(click.style("Login successful!", fg="green"), err=True)
    if token:
        click.echo(token)


if __name__ == "__main__":
    cli()
