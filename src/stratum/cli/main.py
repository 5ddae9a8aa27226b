from __future__ import annotations

import os
from typing import Annotated

import typer
from pydantic import ValidationError

from stratum.common import LoggingConfig, create_logger, setup_cli_logging
from stratum.settings import settings
from stratum.sources import discover_config_paths, load_document

from .commands import config as config_commands

logger = create_logger("cli")

app = typer.Typer(help="stratum command-line interface.")
app.add_typer(config_commands.app, name="config")


@app.callback(invoke_without_command=True)
def _root_callback(
    ctx: typer.Context,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colored output")] = False,
) -> None:
    # Respect NO_COLOR environment variable and --no-color flag
    if no_color or os.getenv("NO_COLOR"):
        ctx.color = False

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_logging_config() -> LoggingConfig:
    paths = discover_config_paths(
        None,
        settings.to_app_directories(),
        settings.to_config_file_names(),
    )
    if paths.global_path is None:
        return LoggingConfig()

    section = load_document(paths.global_path).map(lambda document: document.get("logging") or {}).unwrap_or({})
    try:
        return LoggingConfig.model_validate(section)
    except ValidationError:
        return LoggingConfig()


def _setup_logging() -> None:
    logging_config = _load_logging_config()
    setup_cli_logging(
        app_info=settings.app,
        config=logging_config,
        directories=settings.to_app_directories(),
    )
    logger.debug("CLI logging initialized", config=logging_config.model_dump())


def main() -> None:
    """Entrypoint for the stratum CLI."""
    _setup_logging()
    app()
