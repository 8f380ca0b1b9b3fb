# src/visual_exec/exceptions.py

"""
Custom exceptions for visual-exec.
"""

from visual_exec.protocols import CapturedOutput


class VisualExecError(Exception):
    """Base class for all visual-exec errors."""

    pass


class ConfigurationError(VisualExecError):
    """Raised when an execution configuration value is invalid."""

    pass


class ReporterStateError(VisualExecError):
    """Raised when reporter operations are invoked out of order."""

    pass


class ProcessFailure(VisualExecError):
    """
    The child process exited non-zero or could not be spawned.

    Carries whatever stdout/stderr was captured before the failure.
    """

    def __init__(
        self,
        message: str,
        output: CapturedOutput | None = None,
        exit_code: int | None = None,
        details: Exception | None = None,
    ):
        self.message = message
        self.output = output if output is not None else CapturedOutput()
        self.exit_code = exit_code
        self.details = details
        super().__init__(message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class OutputOverflow(ProcessFailure):
    """Captured output grew past the configured maximum buffer size."""

    pass


# 🔼⚙️
