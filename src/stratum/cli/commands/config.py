"""CLI commands for resolving and comparing configuration."""

from __future__ import annotations

import asyncio
import importlib
import json
from pathlib import Path
from typing import Annotated, Literal

import typer
import yaml
from pydantic import BaseModel

from stratum.engine import (
    ChangeType,
    ConfigDiff,
    ResolutionFailure,
    ResolutionManager,
    Severity,
    SourceLoader,
    SourceLoadError,
    diff,
    format_document,
)
from stratum.engine.formatting import MASK, is_secret_path
from stratum.engine.paths import parse_path
from stratum.settings import settings
from stratum.sources import EnvFileSource, EnvironmentSource, FileSource, discover_file_sources, load_document
from stratum.utils.functools.models import Err, Ok

# Explicit files rank above discovered files and below the environment
EXPLICIT_FILE_PRIORITY = 50

FormatOption = Annotated[
    Literal["yaml", "json", "table"],
    typer.Option("--format", "-f", show_default=True, case_sensitive=False, help="Output format (yaml, json or table)."),
]
WorkingDirOption = Annotated[
    Path | None,
    typer.Option(
        "--working-dir",
        hidden=True,
        help="Override working directory used when discovering project config.",
    ),
]

app = typer.Typer(
    help="Resolve and inspect layered configuration.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def _config_root(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("show")
def show(
    files: Annotated[
        list[Path] | None,
        typer.Argument(help="Extra config files (YAML or JSON); later files win.", show_default=False),
    ] = None,
    format: FormatOption = "yaml",
    working_dir: WorkingDirOption = None,
    env_prefix: Annotated[
        str | None,
        typer.Option("--env-prefix", help="Prefix of environment overrides (default STRATUM_CONFIG__)."),
    ] = None,
    env_files: Annotated[
        list[Path] | None,
        typer.Option("--env-file", help=".env file with prefixed overrides; repeatable, later files win."),
    ] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Treat unknown keys as errors.")] = False,
    coerce: Annotated[bool, typer.Option("--coerce", help="Convert compatible values such as '8080' to 8080.")] = False,
    schema: Annotated[
        str | None,
        typer.Option("--schema", help="Pydantic model to validate against, as 'module:Model'."),
    ] = None,
    show_secrets: Annotated[bool, typer.Option("--show-secrets", help="Print secret-looking values.")] = False,
    no_discover: Annotated[
        bool,
        typer.Option("--no-discover", help="Skip global, project and user config files."),
    ] = False,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=0, help="Collapse containers nested deeper than this."),
    ] = None,
) -> None:
    """Resolve configuration and print the result.

    Examples:

        # Discovered files plus environment overrides
        stratum config show

        # Add explicit files and validate against a model
        stratum config show base.yaml prod.yaml --schema myapp.config:AppConfig
    """
    sources = _build_sources(files or [], working_dir, env_prefix, env_files or [], discover=not no_discover)
    manager = ResolutionManager(
        schema=_import_schema(schema) if schema else None,
        options=settings.to_resolution_options(strict=strict, coerce=coerce),
    )

    match asyncio.run(manager.resolve(sources)):
        case Ok(document):
            for warning in manager.warnings:
                location = warning.dotted_path or "<root>"
                typer.secho(f"warning: {location}: {warning.message}", err=True, fg=typer.colors.YELLOW)
            typer.echo(
                format_document(
                    document,
                    format.lower(),
                    hide_secrets=not show_secrets,
                    max_depth=max_depth,
                )
            )
        case Err(failure):
            _handle_error(failure)
            raise typer.Exit(code=1)


@app.command("diff")
def diff_files(
    old: Annotated[Path, typer.Argument(help="Previous config file.")],
    new: Annotated[Path, typer.Argument(help="Current config file.")],
    format: FormatOption = "table",
    show_secrets: Annotated[bool, typer.Option("--show-secrets", help="Print secret-looking values.")] = False,
) -> None:
    """Show keys added, removed or changed between two config files."""
    documents = []
    for path in (old, new):
        match load_document(path, required=True):
            case Ok(document):
                documents.append(document)
            case Err(error):
                _handle_error(error)
                raise typer.Exit(code=1)

    change = diff(documents[0], documents[1])
    typer.echo(_format_diff(change, format.lower(), hide_secrets=not show_secrets))


def _build_sources(
    files: list[Path],
    working_dir: Path | None,
    env_prefix: str | None,
    env_files: list[Path],
    *,
    discover: bool,
) -> list[SourceLoader]:
    sources: list[SourceLoader] = []
    if discover:
        sources.extend(
            discover_file_sources(
                working_dir,
                directories=settings.to_app_directories(),
                filenames=settings.to_config_file_names(),
            )
        )
    for index, path in enumerate(files):
        sources.append(FileSource(path=path, priority=EXPLICIT_FILE_PRIORITY + index, required=True))
    prefix = env_prefix or settings.engine.env_prefix
    if env_files:
        sources.append(EnvFileSource(paths=tuple(env_files), prefix=prefix, required=True))
    sources.append(EnvironmentSource(prefix=prefix))
    return sources


def _import_schema(reference: str) -> type[BaseModel]:
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter("Expected 'module:Model'.", param_hint="--schema")
    try:
        model = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as exc:
        raise typer.BadParameter(f"Cannot import '{reference}': {exc}", param_hint="--schema") from exc
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise typer.BadParameter(f"'{reference}' is not a pydantic model.", param_hint="--schema")
    return model


def _format_diff(change: ConfigDiff, format: str, *, hide_secrets: bool) -> str:
    def shown(path: str, value: object) -> object:
        if hide_secrets and isinstance(value, str) and is_secret_path(parse_path(path)):
            return MASK
        return value

    if format in ("json", "yaml"):
        payload = {
            "added": {c.path: shown(c.path, c.new_value) for c in change.changes if c.type is ChangeType.ADDED},
            "removed": {c.path: shown(c.path, c.old_value) for c in change.changes if c.type is ChangeType.REMOVED},
            "changed": {
                c.path: {"old": shown(c.path, c.old_value), "new": shown(c.path, c.new_value)}
                for c in change.changes
                if c.type is ChangeType.CHANGED
            },
        }
        if format == "json":
            return json.dumps(payload, indent=2, sort_keys=True, default=str)
        return yaml.safe_dump(payload, sort_keys=True)

    if not change.has_changes:
        return "No differences."

    lines = []
    for c in change.changes:
        match c.type:
            case ChangeType.ADDED:
                lines.append(f"+ {c.path}: {json.dumps(shown(c.path, c.new_value), default=str)}")
            case ChangeType.REMOVED:
                lines.append(f"- {c.path}: {json.dumps(shown(c.path, c.old_value), default=str)}")
            case ChangeType.CHANGED:
                old_value = json.dumps(shown(c.path, c.old_value), default=str)
                new_value = json.dumps(shown(c.path, c.new_value), default=str)
                lines.append(f"~ {c.path}: {old_value} -> {new_value}")
    return "\n".join(lines)


def _handle_error(error: ResolutionFailure | SourceLoadError) -> None:
    match error:
        case SourceLoadError():
            message = f"[{error.code.value}] {error.source}: {error.message}"
            if error.line is not None:
                message = f"{message} (line {error.line}, column {error.column})"
            typer.secho(message, err=True, fg=typer.colors.RED)
        case ResolutionFailure():
            typer.secho(f"[{error.code.value}] {error.message}", err=True, fg=typer.colors.RED)
            for diagnostic in error.diagnostics:
                color = typer.colors.RED if diagnostic.severity is Severity.ERROR else typer.colors.YELLOW
                location = diagnostic.dotted_path or "<root>"
                typer.secho(f"  {location}: {diagnostic.message} ({diagnostic.code.value})", err=True, fg=color)
