# src/visual_exec/cli/main.py

"""
Main CLI entry point for visual-exec using Click.
Handles global options like logging level.
"""

from importlib.metadata import PackageNotFoundError, version

import click
import structlog

from visual_exec.cli.run_cmds import run_cli
from visual_exec.cli.utils import logging_options, setup_logging_from_context
from visual_exec.telemetry import StructLogger

try:
    __version__ = version("visual-exec")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="visual-exec")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    visual-exec: run a command with a live digest of its output.

    Shows the latest stdout/stderr lines in place while the command runs and
    prints the full output when it finishes.
    """
    ctx.ensure_object(dict)

    ctx.obj["LOG_LEVEL"] = log_level
    ctx.obj["LOG_FILE"] = log_file
    ctx.obj["JSON_LOGS"] = json_logs if json_logs is not None else False

    setup_logging_from_context(ctx)
    log.debug(
        "Main CLI group initialized",
        log_level=log_level,
        log_file=log_file,
        json_logs=json_logs,
    )


cli.add_command(run_cli)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
