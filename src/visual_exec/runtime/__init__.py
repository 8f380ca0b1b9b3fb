#
# src/visual_exec/runtime/__init__.py
#
"""
Runtime sub-package: the child process adapter and the execution reporter.
"""
from .process import AsyncChildProcess, ChannelStream, spawn
from .reporter import ExecutionReporter, ReporterState

__all__ = [
    "AsyncChildProcess",
    "ChannelStream",
    "ExecutionReporter",
    "ReporterState",
    "spawn",
]

# 🔼⚙️
