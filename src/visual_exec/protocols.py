#
# src/visual_exec/protocols.py
#
"""
Defines protocols and data structures shared between the reporter and its
process and display collaborators.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

from attrs import define, field
from rich.console import RenderableType


class Channel(Enum):
    """One of the two output streams of a child process."""

    STDOUT = "stdout"
    STDERR = "stderr"


@define(frozen=True, slots=True)
class CapturedOutput:
    """Full text captured from a child process."""

    stdout: str = ""
    stderr: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.stdout and not self.stderr


@define(frozen=True, slots=True)
class ExecutionResult:
    """
    Outcome of a single execution, created once when the child finishes.
    """

    exit_succeeded: bool
    stdout: str
    stderr: str
    elapsed_seconds: float
    error_message: str | None = field(default=None)


@define(frozen=True, slots=True)
class Subscription:
    """Handle returned when a listener is bound to an output stream."""

    channel: Channel
    token: int


ChunkListener = Callable[[str], None]


@runtime_checkable
class OutputStream(Protocol):
    """A stream of decoded text chunks for one channel."""

    def subscribe(self, listener: ChunkListener) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


@runtime_checkable
class ChildHandle(Protocol):
    """
    Protocol for a running child process as seen by the reporter.

    `completion` resolves with a CapturedOutput, or fails with a
    ProcessFailure carrying the partial capture.
    """

    completion: "asyncio.Future[CapturedOutput]"

    def output_events(self, channel: Channel) -> OutputStream: ...


@runtime_checkable
class DisplayService(Protocol):
    """
    Protocol for the terminal display the reporter drives.

    Items are live, in-place lines keyed by a stable id. Calls for an id
    that is not currently displayed must be silent no-ops.
    """

    def add_item(
        self,
        item_id: str,
        label: str,
        style: str,
        spinner: str | None = None,
    ) -> None: ...

    def update_item(
        self,
        item_id: str,
        text: str,
        *,
        persist: bool = False,
        redraw: bool = False,
    ) -> None: ...

    def remove_item(self, item_id: str) -> None: ...

    def log(self, level: str, *segments: RenderableType, prefix: bool = True) -> None: ...


# 🔼⚙️
