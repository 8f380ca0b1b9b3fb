#
# src/visual_exec/display/__init__.py
#
"""
Terminal display sub-package for visual-exec.
"""
from .rich_display import (
    LEVEL_ORDER,
    DisplayItem,
    RichDisplay,
    create_default_display,
    is_ci,
)

__all__ = [
    "LEVEL_ORDER",
    "DisplayItem",
    "RichDisplay",
    "create_default_display",
    "is_ci",
]

# 🔼⚙️
