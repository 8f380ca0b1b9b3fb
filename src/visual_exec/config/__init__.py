#
# config/__init__.py
#
"""
Configuration handling sub-package for visual-exec.

Exports the execution configuration model and its defaults.
"""

from .models import (
    DEFAULT_ERROR_PATTERN,
    DEFAULT_HIGHLIGHT_PATTERN,
    ONE_MB,
    OUTPUT_LEVELS,
    Command,
    ExecConfig,
)

__all__ = [
    "DEFAULT_ERROR_PATTERN",
    "DEFAULT_HIGHLIGHT_PATTERN",
    "ONE_MB",
    "OUTPUT_LEVELS",
    "Command",
    "ExecConfig",
]

# 🔼⚙️
