"""Click command group for inspecting the installed sinks.

Purpose
-------
Provide a tiny operator-facing CLI: the metadata banner, the registered sink
types, the collector severity of a level, and a smoke test that sends one
record through a sink built from JSON options.

Contents
--------
* :func:`cli` - root group with ``--version`` and ``--use-dotenv``.
* ``info``, ``types``, ``severity``, ``emit`` sub-commands.
"""

from __future__ import annotations

import json
import os

import click
from rich.console import Console
from rich.table import Table

from . import __init__conf__
from . import config as config_module
from .adapters.structured.hec import translate_level
from .domain.errors import SinkError
from .domain.levels import level_name, parse_level
from .runtime import Logger, build_sink, registered_types

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _level_argument(_ctx: click.Context, _param: click.Parameter, value: str) -> int:
    try:
        return parse_level(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _levels_argument(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> list[int]:
    return [_level_argument(ctx, param, value) for value in values]


@click.group(invoke_without_command=True, context_settings=CLICK_CONTEXT_SETTINGS)
@click.version_option(version=__init__conf__.version, prog_name=__init__conf__.shell_command, message="%(version)s")
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load the nearest .env before running (defaults to ${config_module.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, use_dotenv: bool | None) -> None:
    """Inspect and exercise lib_log_sinks sinks."""

    if use_dotenv is None:
        toggle = os.getenv(config_module.DOTENV_ENV_VAR)
        use_dotenv = config_module.parse_bool(toggle) if toggle is not None else False
    if use_dotenv:
        config_module.enable_dotenv()
    if ctx.invoked_subcommand is None:
        ctx.invoke(info)


@cli.command(context_settings=CLICK_CONTEXT_SETTINGS)
def info() -> None:
    """Print the metadata banner."""

    __init__conf__.print_info(writer=lambda text: click.echo(text, nl=False))


@cli.command(context_settings=CLICK_CONTEXT_SETTINGS)
def types() -> None:
    """List the registered sink types."""

    for name in registered_types():
        click.echo(name)


@cli.command(context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("levels", nargs=-1, required=True, callback=_levels_argument)
def severity(levels: list[int]) -> None:
    """Show the name and collector severity of each LEVEL (e.g. INFO, DEBUG-4, 45)."""

    table = Table("level", "name", "severity")
    for level in levels:
        table.add_row(str(level), level_name(level), translate_level(level))
    Console(no_color=True).print(table)


@cli.command(context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--type", "sink_type", default="console", show_default=True, help="Registered sink type.")
@click.option("--options", "raw_options", default="{}", show_default=True, help="Sink options as JSON.")
@click.option("--level", "level", default="INFO", show_default=True, callback=_level_argument)
@click.argument("message")
def emit(sink_type: str, raw_options: str, level: int, message: str) -> None:
    """Send MESSAGE through a sink built from --type and --options, then close it."""

    try:
        options = json.loads(raw_options)
    except ValueError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint="--options") from exc
    try:
        sink = build_sink(sink_type, options)
    except SinkError as exc:
        raise click.ClickException(str(exc)) from exc
    logger = Logger(sink)
    result = logger.log(level, message)
    try:
        logger.close()
    except SinkError as exc:
        raise click.ClickException(f"failed to close sink: {exc}") from exc
    if not result["ok"]:
        reason = result["reason"]
        detail = f": {result['error']}" if "error" in result else ""
        raise click.ClickException(f"record not handled ({reason}){detail}")


__all__ = ["cli"]
