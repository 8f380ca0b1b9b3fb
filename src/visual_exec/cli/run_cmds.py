# src/visual_exec/cli/run_cmds.py

import asyncio
import shlex
import sys
from pathlib import Path
from typing import Any

import click
import structlog

from visual_exec.cli.utils import logging_options, setup_logging_from_context
from visual_exec.config import ONE_MB, OUTPUT_LEVELS, ExecConfig
from visual_exec.display import create_default_display
from visual_exec.exceptions import ConfigurationError, ProcessFailure
from visual_exec.runtime.reporter import ExecutionReporter
from visual_exec.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")


def _exit_status(exit_code: int | None) -> int:
    """Shell exit status for a failed command; signal deaths map to 128 + signal."""
    if not exit_code:
        return 1
    if exit_code < 0:
        return 128 + abs(exit_code)
    return exit_code


def _shell_command(args: tuple[str, ...]) -> str:
    """A single argument is taken as a shell line as-is; several are quoted individually."""
    if len(args) == 1:
        return args[0]
    return shlex.join(args)


def _run_reporter(reporter: ExecutionReporter) -> int:
    """
    Runs the reporter to completion and maps the outcome to an exit code.
    The failure itself has already been reported on the display.
    """
    try:
        asyncio.run(reporter.execute())
        return 0
    except ProcessFailure as e:
        log.debug("Command failed", error=e.message, exit_code=e.exit_code)
        return _exit_status(e.exit_code)
    except KeyboardInterrupt:
        log.warning("Execution interrupted by KeyboardInterrupt (CTRL-C).")
        return 130


@click.command(name="run", context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "-C",
    "--cwd",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    envvar="VISUAL_EXEC_CWD",
    help="Working directory for the command (default: current directory).",
)
@click.option("-t", "--title", default=None, help="Title shown above the live output.")
@click.option("--label", default=None, help="Label used in the result summary and report.")
@click.option(
    "--output-level",
    type=click.Choice(OUTPUT_LEVELS),
    default="verbose",
    show_default=True,
    envvar="VISUAL_EXEC_OUTPUT_LEVEL",
    help="Level of the full output report when the command succeeds cleanly.",
)
@click.option(
    "--display-level",
    type=click.Choice(OUTPUT_LEVELS),
    default="info",
    show_default=True,
    envvar="VISUAL_EXEC_DISPLAY_LEVEL",
    help="Lowest level the display prints.",
)
@click.option(
    "--max-buffer",
    type=click.IntRange(min=1),
    default=5 * ONE_MB,
    show_default=True,
    envvar="VISUAL_EXEC_MAX_BUFFER",
    help="Maximum bytes of output captured before the command is killed.",
)
@click.option("--spinner", default="dots", show_default=True, help="Name of the rich spinner to show.")
@click.option(
    "--force-stderr-as-error/--no-force-stderr-as-error",
    default=True,
    show_default=True,
    help="Report at error level whenever the command wrote to stderr.",
)
@click.option("--error-pattern", default=None, help="Regex on stdout that escalates the report to error level.")
@click.option("--no-error-pattern", is_flag=True, default=False, help="Disable stdout error-pattern detection.")
@click.option(
    "--shell/--no-shell",
    default=True,
    show_default=True,
    help=(
        "Run the command through the shell, or execute the arguments directly. "
        "Several arguments are quoted one by one; pass a single quoted string to use shell syntax."
    ),
)
@logging_options
@click.pass_context
def run_cli(
    ctx: click.Context,
    command: tuple[str, ...],
    cwd: Path | None,
    title: str | None,
    label: str | None,
    output_level: str,
    display_level: str,
    max_buffer: int,
    spinner: str,
    force_stderr_as_error: bool,
    error_pattern: str | None,
    no_error_pattern: bool,
    shell: bool,
    **kwargs,
):
    """Run COMMAND with a live digest of its output."""
    setup_logging_from_context(
        ctx,
        log_level=kwargs.get("log_level"),
        log_file=kwargs.get("log_file"),
        json_logs=kwargs.get("json_logs"),
    )

    options: dict[str, Any] = {
        "command": _shell_command(command) if shell else list(command),
        "cwd": cwd,
        "display_title": title,
        "log_label": label,
        "output_label": label,
        "output_level": output_level,
        "max_buffer": max_buffer,
        "spinner": spinner or None,
        "force_stderr_as_error": force_stderr_as_error,
    }
    if no_error_pattern:
        options["error_pattern"] = None
    elif error_pattern:
        options["error_pattern"] = error_pattern

    try:
        config = ExecConfig(**options)
    except ConfigurationError as e:
        raise click.BadParameter(str(e)) from e

    log.info("Initializing run command...", command=config.command, cwd=str(config.cwd))
    reporter = ExecutionReporter(config, create_default_display(level=display_level))

    exit_code = _run_reporter(reporter)

    log.info("'run' command finished.", exit_code=exit_code)
    if exit_code != 0:
        sys.exit(exit_code)

# 🔼⚙️
