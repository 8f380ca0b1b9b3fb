#
# src/visual_exec/__init__.py
#
"""
visual-exec: run a child process with a live, one-line digest of its output
and a full report when it finishes.
"""
from .config import ExecConfig
from .digest import DISPLAY_BUDGET, LINE_SEPARATOR, StreamDigester, strip_ansi
from .display import RichDisplay, create_default_display
from .exceptions import (
    ConfigurationError,
    OutputOverflow,
    ProcessFailure,
    ReporterStateError,
    VisualExecError,
)
from .protocols import CapturedOutput, Channel, ExecutionResult
from .runtime import ExecutionReporter, spawn

__all__ = [
    "DISPLAY_BUDGET",
    "LINE_SEPARATOR",
    "CapturedOutput",
    "Channel",
    "ConfigurationError",
    "ExecConfig",
    "ExecutionReporter",
    "ExecutionResult",
    "OutputOverflow",
    "ProcessFailure",
    "ReporterStateError",
    "RichDisplay",
    "StreamDigester",
    "VisualExecError",
    "create_default_display",
    "spawn",
    "strip_ansi",
]

# 🔼⚙️
