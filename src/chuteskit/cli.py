"""chutes-debug CLI Entry Point.

Command-line tooling for checking connectivity to the Chutes API and
poking at resources through the same resilient request layer the
library uses.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

import httpx
import structlog
import typer

from chuteskit.api.client import ChutesClient
from chuteskit.core.config import ChutesClientConfig, LoggingConfig, create_settings
from chuteskit.core.exceptions import ChutesError, ConfigurationError, RequestError
from chuteskit.core.logging import configure_logging
from chuteskit.http.timeout import with_timeout
from chuteskit.plugin.actions import ChutesPlugin

log = structlog.get_logger()

ACCESSIBILITY_TIMEOUT_MS = 5_000

app = typer.Typer(
    name="chutes-debug",
    help="Debugging tools for the Chutes API",
    no_args_is_help=True,
)


class _CliState:
    config_path: Optional[Path] = None


state = _CliState()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to YAML configuration file",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level",
        help="Override the configured log level",
    ),
) -> None:
    """Chutes API debug CLI."""
    if config is not None and not config.exists():
        typer.echo(f"Error: Config file '{config}' not found", err=True)
        raise typer.Exit(code=1)
    state.config_path = config

    try:
        logging_config = create_settings(config_path=config).logging
        if log_level:
            logging_config = LoggingConfig(level=log_level, format=logging_config.format)
    except (ConfigurationError, ValueError) as e:
        typer.echo(f"Error loading config: {e}", err=True)
        raise typer.Exit(code=1)
    configure_logging(logging_config)


def _load_client_config() -> ChutesClientConfig:
    try:
        return create_settings(config_path=state.config_path).to_client_config()
    except ConfigurationError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)


def _run_with_client(func: Callable[[ChutesClient], Awaitable[Any]]) -> Any:
    config = _load_client_config()

    async def runner() -> Any:
        async with ChutesClient(config) as client:
            return await func(client)

    try:
        return asyncio.run(runner())
    except ChutesError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)


# Checks


def is_valid_base_url(url: str) -> bool:
    """Return True for an absolute http(s) URL with a host."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


async def check_endpoint_accessibility(
    url: str,
    timeout_ms: int = ACCESSIBILITY_TIMEOUT_MS,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """Send a HEAD request to ``url``; True when it answers with 2xx."""

    async def head(signal: Any) -> httpx.Response:
        if client is not None:
            return await client.head(url)
        async with httpx.AsyncClient() as http:
            return await http.head(url)

    try:
        response = await with_timeout(head, timeout_ms, f"Test endpoint {url}")
    except (RequestError, httpx.HTTPError) as e:
        log.warning("endpoint_unreachable", url=url, error=str(e))
        return False

    if response.is_success:
        return True
    log.warning("endpoint_status", url=url, status=response.status_code)
    return False


async def run_checks(client: ChutesClient, echo: Callable[[str], None] = typer.echo) -> bool:
    """Run the connectivity checks in order; stop at the first hard failure."""
    base_url = client.config.base_url

    echo("[TEST] URL validation")
    if not is_valid_base_url(base_url):
        echo(f"  FAIL  Base URL format is invalid: {base_url}")
        return False
    echo(f"  OK    Base URL format is valid: {base_url}")

    if await check_endpoint_accessibility(base_url):
        echo(f"  OK    Endpoint {base_url} is accessible")
    else:
        echo(f"  WARN  Endpoint {base_url} is not accessible; connectivity may be degraded")

    echo("[TEST] Authentication")
    if not await client.check_auth():
        echo("  FAIL  Authentication failed")
        return False
    echo("  OK    Authentication successful")

    echo("[TEST] List images")
    try:
        images = await client.list_images()
    except ChutesError as e:
        echo(f"  FAIL  {e.message}")
        return False
    echo(f"  OK    Found {len(images)} image(s)")

    echo("[TEST] List chutes")
    try:
        chutes = await client.list_chutes()
    except ChutesError as e:
        echo(f"  FAIL  {e.message}")
        return False
    echo(f"  OK    Found {len(chutes)} chute(s)")
    return True


# Commands


@app.command()
def check() -> None:
    """Run URL, connectivity, authentication and listing checks."""
    passed = _run_with_client(run_checks)
    if not passed:
        typer.echo("Checks failed", err=True)
        raise typer.Exit(code=1)
    typer.echo("All checks passed")


@app.command()
def chutes() -> None:
    """List chutes in the account."""
    items = _run_with_client(lambda client: client.list_chutes())
    if not items:
        typer.echo("No chutes found")
        return
    for chute in items:
        typer.echo(f"{chute.id}  {chute.name}  [{chute.status}]")


@app.command()
def images() -> None:
    """List container images."""
    items = _run_with_client(lambda client: client.list_images())
    if not items:
        typer.echo("No images found")
        return
    for image in items:
        typer.echo(f"{image.id}  {image.name}:{image.tag}")


@app.command()
def cords(
    chute_id: str = typer.Argument(..., help="Chute ID to list cords for"),
) -> None:
    """List cords exposed by a chute."""
    items = _run_with_client(lambda client: client.list_cords(chute_id))
    if not items:
        typer.echo(f"No cords found for chute {chute_id}")
        return
    for cord in items:
        line = cord.name
        if cord.description:
            line += f"  {cord.description}"
        typer.echo(line)


@app.command()
def ask(
    text: List[str] = typer.Argument(..., help="Request in plain English"),
) -> None:
    """Route a chat-style request through the plugin."""
    message = " ".join(text)
    result = _run_with_client(lambda client: ChutesPlugin(client).handle(message))
    typer.echo(result.response)
    if not result.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
