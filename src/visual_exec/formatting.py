"""Formatting helpers for titles, durations and the final output report."""

from __future__ import annotations

import re
import shlex

from rich.text import Text

from visual_exec.config.models import Command, ExecConfig
from visual_exec.protocols import ExecutionResult

HIGHLIGHT_STYLE = "bold red"


def make_title(command: Command | None) -> str:
    """Derive a display title from the command being run."""
    if isinstance(command, list):
        command = shlex.join(command)
    if not isinstance(command, str) or not command:
        command = "user command"
    return f"Running {command}"


def format_elapsed(seconds: float) -> str:
    """Format seconds to a human-readable duration."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {int(seconds % 60):02d}s"


def highlight(text: str, pattern: re.Pattern[str] | None, style: str = HIGHLIGHT_STYLE) -> Text:
    """Convert captured output to styled text, marking every match of `pattern`."""
    rendered = Text.from_ansi(text)
    if pattern is not None:
        for match in pattern.finditer(rendered.plain):
            if match.end() > match.start():
                rendered.stylize(style, match.start(), match.end())
    return rendered


def resolve_report_level(result: ExecutionResult, config: ExecConfig) -> str:
    """Pick the log level for the full output report."""
    if not result.exit_succeeded:
        return "error"
    if result.stderr and config.force_stderr_as_error:
        return "error"
    if config.error_pattern is not None and config.error_pattern.search(result.stdout):
        return "error"
    return config.output_level


def build_summary(result: ExecutionResult, label: str) -> tuple[str, list[Text | str]]:
    """One-line result summary and its level."""
    elapsed = Text(f"({format_elapsed(result.elapsed_seconds)})", style="dim")
    if result.exit_succeeded:
        return "info", [f"Done {label}", Text("exit code 0", style="green"), elapsed]
    message = result.error_message or "unknown error"
    return "error", [f"Done {label} failed", Text(message, style="red"), elapsed]


def build_output_report(
    result: ExecutionResult,
    label: str,
    highlight_pattern: re.Pattern[str] | None,
) -> list[Text | str]:
    """Segments of the full output report, stdout first then stderr."""
    if not result.stdout and not result.stderr:
        return [Text("No output", style="green"), f"from {label}"]

    segments: list[Text | str] = [Text(">>>", style="green"), f"Start of output from {label} ==="]
    if result.stdout:
        segments.append(Text("\n") + highlight(result.stdout, highlight_pattern))
    if result.stderr:
        segments.append(Text("\n=== stderr ===\n", style="red") + highlight(result.stderr, highlight_pattern))
    segments.append(Text("\n<<<", style="blue"))
    segments.append(f"End of output from {label} ---")
    return segments
