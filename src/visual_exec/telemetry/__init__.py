#
# src/visual_exec/telemetry/__init__.py
#
"""
Logging setup for visual-exec.
"""
from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
