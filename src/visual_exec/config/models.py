#
# config/models.py
#
"""
Attrs-based data models for visual-exec execution configuration.
"""

import re
from pathlib import Path
from typing import Any, TypeAlias

from attrs import define, field

from visual_exec.digest import DISPLAY_BUDGET
from visual_exec.exceptions import ConfigurationError

ONE_MB = 1024 * 1024

OUTPUT_LEVELS = ("verbose", "info", "error")

DEFAULT_ERROR_PATTERN = re.compile(
    r"\b(?:error|warn|fatal|unhandled|reject|exception|failure|failed|fail)",
    re.IGNORECASE,
)
DEFAULT_HIGHLIGHT_PATTERN = re.compile(re.escape("ERR!"))

Command: TypeAlias = str | list[str]


# --- Validators ---
def _validate_output_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for display log level names."""
    if value not in OUTPUT_LEVELS:
        raise ConfigurationError(f"Invalid {attr.name} '{value}'. Must be one of {list(OUTPUT_LEVELS)}.")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_command(inst: Any, attr: Any, value: Command | None) -> None:
    if isinstance(value, list) and not value:
        raise ConfigurationError("Field 'command' must not be an empty argument list")


# --- Converters ---
def _to_pattern(value: "str | re.Pattern[str] | None") -> "re.Pattern[str] | None":
    if value is None or isinstance(value, re.Pattern):
        return value
    try:
        return re.compile(value, re.IGNORECASE)
    except re.error as e:
        raise ConfigurationError(f"Invalid regular expression '{value}': {e}") from e


def _to_path(value: "str | Path | None") -> Path:
    return Path(value) if value else Path.cwd()


@define(frozen=True, slots=True)
class ExecConfig:
    """
    Configuration for a single visual execution.

    Labels default to the display title, which in turn is derived from the
    command when not given.
    """

    command: Command | None = field(default=None, validator=_validate_command)
    cwd: Path = field(factory=Path.cwd, converter=_to_path)
    display_title: str | None = field(default=None)
    log_label: str | None = field(default=None)
    output_label: str | None = field(default=None)
    output_level: str = field(default="verbose", validator=_validate_output_level)
    max_buffer: int = field(default=5 * ONE_MB, validator=_validate_positive_int)
    spinner: str | None = field(default="dots")
    force_stderr_as_error: bool = field(default=True)
    error_pattern: "re.Pattern[str] | None" = field(default=DEFAULT_ERROR_PATTERN, converter=_to_pattern)
    highlight_pattern: "re.Pattern[str] | None" = field(
        default=DEFAULT_HIGHLIGHT_PATTERN, converter=_to_pattern
    )
    display_budget: int = field(default=DISPLAY_BUDGET, validator=_validate_positive_int)


# 🔼⚙️
