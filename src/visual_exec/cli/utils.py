# src/visual_exec/cli/utils.py

"""
Diagnostics options shared by the visual-exec commands.

visual-exec's own logs are diagnostics about the runner itself. They go to
stderr (or a file) and never into the command report printed on stdout.
"""

import logging

import click
import structlog
from attrs import define

from visual_exec.telemetry import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

DEFAULT_DIAGNOSTICS_LEVEL = "WARNING"

LOG_LEVEL_CHOICES = click.Choice(
    ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
    case_sensitive=False,
)


@define(frozen=True, slots=True)
class DiagnosticsSettings:
    """Resolved logging settings for one command invocation."""

    level_name: str
    log_file: str | None
    json_logs: bool

    @property
    def level(self) -> int:
        return logging.getLevelName(self.level_name)


def logging_options(f):
    """Adds the diagnostics options to a command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="VISUAL_EXEC_LOG_LEVEL",
        help=f"Level of visual-exec's own diagnostics on stderr (default: {DEFAULT_DIAGNOSTICS_LEVEL}).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="VISUAL_EXEC_LOG_FILE",
        help="Also write diagnostics (spawn, exit, overflow events) to this file as JSON lines.",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="VISUAL_EXEC_JSON_LOGS",
        help="Render stderr diagnostics as JSON instead of the console format.",
    )(f)
    return f


def resolve_diagnostics(
    ctx: click.Context,
    log_level: str | None = None,
    log_file: str | None = None,
    json_logs: bool | None = None,
) -> DiagnosticsSettings:
    """
    Merges command-level options over the group-level ones stored on `ctx.obj`.
    """
    group = ctx.obj or {}
    level_name = (log_level or group.get("LOG_LEVEL") or DEFAULT_DIAGNOSTICS_LEVEL).upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = DEFAULT_DIAGNOSTICS_LEVEL
    return DiagnosticsSettings(
        level_name=level_name,
        log_file=log_file or group.get("LOG_FILE"),
        json_logs=json_logs if json_logs is not None else bool(group.get("JSON_LOGS", False)),
    )


def setup_logging_from_context(
    ctx: click.Context,
    log_level: str | None = None,
    log_file: str | None = None,
    json_logs: bool | None = None,
) -> DiagnosticsSettings:
    """Configures structlog for the current command and returns the settings used."""
    settings = resolve_diagnostics(ctx, log_level=log_level, log_file=log_file, json_logs=json_logs)
    core_setup_logging(
        level=settings.level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )
    log.debug(
        "Diagnostics configured",
        level=settings.level_name,
        file=settings.log_file or "stderr",
        json=settings.json_logs,
    )
    return settings

# 🔼⚙️
