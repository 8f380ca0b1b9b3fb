#
# src/visual_exec/cli/__init__.py
#
"""
Command-line interface for visual-exec.
"""
