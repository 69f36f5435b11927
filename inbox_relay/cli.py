"""CLI entry point for inbox-relay."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from inbox_relay.config import RelayConfig, find_config_file, load_config
from inbox_relay.config.loader import (
    DEFAULT_CONFIG_TEMPLATE,
    resolve_app_credentials,
    save_tokens,
)
from inbox_relay.conversion import (
    FormatCapabilityResolver,
    ZamzarClient,
    create_conversion_client,
)
from inbox_relay.errors import (
    AuthenticationError,
    ConfigurationError,
    RelayError,
    TransportError,
)
from inbox_relay.pipeline import IterationResult, Orchestrator, Outcome
from inbox_relay.storage import StorageProvider, create_storage

app = typer.Typer(
    name="inbox-relay",
    help="Watch a cloud-storage inbox and convert new files through a remote service.",
)

config_app = typer.Typer(help="Manage inbox-relay configuration.")
app.add_typer(config_app, name="config")

console = Console()

# Global state
_config: RelayConfig | None = None
_config_path: str | None = None

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}

_SECRET_KEYS = {"access_token", "refresh_token", "api_key"}

_OUTCOME_STYLE = {
    Outcome.idle: "dim",
    Outcome.converted: "green",
    Outcome.unchanged: "cyan",
    Outcome.unconvertible: "yellow",
    Outcome.error: "red",
}


def _get_config() -> RelayConfig:
    if _config is None:
        return load_config(_config_path)
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to inbox_relay.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config, _config_path
    _config_path = config
    try:
        _config = load_config(config)
    except ConfigurationError as e:
        rprint(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _configure_logging(cfg: RelayConfig) -> None:
    """Attach a single handler to the inbox_relay logger per log_format."""
    logger = logging.getLogger("inbox_relay")
    logger.setLevel(_LEVELS[cfg.log_level])
    logger.handlers.clear()
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    logger.addHandler(handler)
    logger.propagate = False


def _masked(data: object) -> object:
    if isinstance(data, dict):
        return {
            k: ("***" if k in _SECRET_KEYS and v else _masked(v)) for k, v in data.items()
        }
    return data


def _display_result(result: IterationResult, clear: bool) -> None:
    if clear:
        console.clear()
    style = _OUTCOME_STYLE[result.outcome]
    line = f"[{style}]{result.outcome.value}[/{style}]"
    if result.source_path:
        line += f" {result.source_path}"
    if result.destination_paths:
        line += " -> " + ", ".join(result.destination_paths)
    if result.reason and result.outcome != Outcome.idle:
        line += f" [dim]({result.reason})[/dim]"
    console.print(line)


async def _run_loop(
    storage: StorageProvider,
    client: ZamzarClient,
    cfg: RelayConfig,
    once: bool,
    clear: bool,
) -> int:
    async with client:
        orchestrator = Orchestrator(storage, client, cfg)
        account = await orchestrator.prepare()
        rprint(f"[green]Connected[/green] as {account}")
        return await orchestrator.run_forever(
            on_result=lambda r: _display_result(r, clear),
            max_iterations=1 if once else None,
        )


@app.command()
def run(
    once: bool = typer.Option(False, "--once", help="Process a single iteration and exit"),
    interval: float | None = typer.Option(
        None, "--interval", help="Seconds to sleep between iterations"
    ),
    clear: bool = typer.Option(
        False, "--clear/--no-clear", help="Clear the console between iterations"
    ),
) -> None:
    """Watch the inbox and convert files until interrupted."""
    cfg = _get_config()
    if interval is not None:
        cfg = cfg.model_copy(update={"idle_interval": interval})
    _configure_logging(cfg)

    if not cfg.conversions:
        rprint("[red]Error:[/red] no conversions configured (add a 'conversions' mapping)")
        raise typer.Exit(1)

    try:
        storage = create_storage(cfg.storage)
        client = create_conversion_client(cfg.conversion)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(
        f"[bold]Watching[/bold] {cfg.folders.inbox} "
        f"(storage: {cfg.storage.provider}, {len(cfg.conversions)} conversions)"
    )
    try:
        asyncio.run(_run_loop(storage, client, cfg, once, clear))
    except AuthenticationError as e:
        rprint(f"[red]Authentication failed:[/red] {e}")
        raise typer.Exit(1)
    except TransportError as e:
        rprint(f"[red]Startup failed:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        rprint("[yellow]Stopped.[/yellow]")


@app.command()
def formats(
    source: str = typer.Argument(..., help="Source extension, e.g. docx"),
) -> None:
    """List the target formats the conversion service offers for an extension."""
    cfg = _get_config()
    try:
        client = create_conversion_client(cfg.conversion)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    async def _targets() -> list[str]:
        async with client:
            return await FormatCapabilityResolver(client).targets(source)

    try:
        names = asyncio.run(_targets())
    except RelayError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not names:
        rprint(f"[yellow]No target formats for '{source}'.[/yellow]")
        raise typer.Exit(0)

    configured = cfg.conversions.get(source)
    table = Table(title=f"Targets for '{source}' ({len(names)})")
    table.add_column("Format", style="cyan")
    table.add_column("Configured", justify="center")
    for name in names:
        table.add_row(name, "[green]yes[/green]" if name == configured else "")
    rprint(table)


@app.command()
def auth(
    save_to: Annotated[
        str | None, typer.Option("--save-to", help="Config file to store the token in")
    ] = None,
) -> None:
    """Authorize inbox-relay against Dropbox and save the access token."""
    import requests
    from dropbox import DropboxOAuth2FlowNoRedirect
    from dropbox.exceptions import DropboxException

    cfg = _get_config()
    try:
        app_key, app_secret = resolve_app_credentials(cfg.storage)
    except ConfigurationError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    flow = DropboxOAuth2FlowNoRedirect(app_key, app_secret, token_access_type="offline")
    rprint("[bold]Dropbox authorization required:[/bold]")
    rprint(f"1. Visit: {flow.start()}")
    rprint("2. Click 'Allow'")
    rprint("3. Copy the authorization code")
    code = typer.prompt("Authorization code").strip()

    try:
        result = flow.finish(code)
    except (DropboxException, requests.exceptions.RequestException) as e:
        rprint(f"[red]Authorization failed:[/red] {e}")
        raise typer.Exit(1)

    target = Path(save_to) if save_to else (find_config_file(_config_path) or Path("inbox_relay.yaml"))
    save_tokens(target, result.access_token, result.refresh_token)
    rprint(f"[green]Token saved to[/green] {target}")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    dumped = _masked(cfg.model_dump())
    rprint(Syntax(yaml.dump(dumped, default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default inbox_relay.yaml in current directory."""
    target = Path("inbox_relay.yaml")
    if target.exists() and not force:
        rprint("[yellow]inbox_relay.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
