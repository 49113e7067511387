"""gitpoll CLI — Entry point.

Usage:
    gitpoll poll [--endpoint URL] [--config config.yaml]
    gitpoll version
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

from gitpoll import __version__

if TYPE_CHECKING:
    from gitpoll.config import Settings

app = typer.Typer(
    name="gitpoll",
    help="gitpoll — Poll build configs and their git repositories, and fire push webhooks.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()


@app.callback()
def main_callback() -> None:
    pass


@app.command("poll")
def poll(
    endpoint: Annotated[
        str | None,
        typer.Option("--endpoint", "-e", help="Cluster API master endpoint. Defaults to $KUBERNETES_MASTER."),
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
    ] = None,
    log_level: Annotated[str | None, typer.Option(help="Log level: debug, info, warning, error or critical.")] = None,
    log_format: Annotated[str | None, typer.Option(help="Log format: console or json.")] = None,
) -> None:
    """Poll build configurations and launch builds for new commits."""
    from gitpoll.config import Settings
    from gitpoll.logging import configure_logging

    settings = Settings.load(config_file=config)
    if endpoint:
        settings.endpoint = endpoint.rstrip("/")
    _override_logging(settings, log_level=log_level, log_format=log_format)

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )

    console.print(f"[bold green]Polling build configs on {settings.endpoint}[/bold green]")
    try:
        asyncio.run(_serve(settings))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")


def _override_logging(settings: Settings, log_level: str | None, log_format: str | None) -> None:
    """Apply the logging options, validated against ``LoggingConfig``."""
    from pydantic import ValidationError

    from gitpoll.config import LoggingConfig

    for option, field, value in (("--log-level", "level", log_level), ("--log-format", "format", log_format)):
        if not value:
            continue
        try:
            settings.logging = LoggingConfig.model_validate(
                {**settings.logging.model_dump(), field: value.lower()}
            )
        except ValidationError as exc:
            raise typer.BadParameter(exc.errors()[0]["msg"], param_hint=f"'{option}'") from exc


@app.command("version")
def version() -> None:
    """Print the gitpoll version."""
    console.print(f"gitpoll {__version__}")


async def _serve(settings: Settings) -> None:
    """Run a HookDaemon until cancelled, logging a heartbeat periodically."""
    from gitpoll.daemon import HookDaemon
    from gitpoll.logging import get_logger

    log = get_logger("gitpoll.cli")
    daemon = HookDaemon.from_settings(settings)
    await daemon.start()
    try:
        while True:
            await asyncio.sleep(settings.intervals.heartbeat_seconds)
            log.info("watching", repositories=len(daemon.registry))
    finally:
        await daemon.stop()


if __name__ == "__main__":
    app()
