# src/visual_exec/runtime/reporter.py
"""
Drives the live display for a running child process and reports its output
once it finishes.
"""
import asyncio
import time
import uuid
from enum import Enum, auto

import structlog

from visual_exec.config.models import Command, ExecConfig
from visual_exec.digest import StreamDigester
from visual_exec.display import create_default_display
from visual_exec.exceptions import ConfigurationError, ReporterStateError
from visual_exec.formatting import (
    build_output_report,
    build_summary,
    make_title,
    resolve_report_level,
)
from visual_exec.protocols import (
    CapturedOutput,
    Channel,
    ChildHandle,
    DisplayService,
    ExecutionResult,
    Subscription,
)
from visual_exec.runtime.process import spawn
from visual_exec.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.reporter")

CHANNEL_STYLES = {Channel.STDOUT: "green", Channel.STDERR: "red"}


class ReporterState(Enum):
    """Lifecycle of a single ExecutionReporter."""

    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


class ExecutionReporter:
    """
    Shows a rolling digest of a child's stdout and stderr while it runs, then
    logs a result summary and the full captured output.
    """

    def __init__(self, config: ExecConfig | None = None, display: DisplayService | None = None):
        self.config = config or ExecConfig()
        self.display = display or create_default_display()
        self.title = self.config.display_title or make_title(self.config.command)
        self.log_label = self.config.log_label or self.title
        self.output_label = self.config.output_label or self.title
        self.state = ReporterState.IDLE
        self.result: ExecutionResult | None = None
        self._child: ChildHandle | None = None
        self._item_ids: dict[Channel, str] = {}
        self._digesters: dict[Channel, StreamDigester] = {}
        self._subscriptions: list[Subscription] = []
        self._started_at: float | None = None
        self._log = log.bind(title=self.title)

    def start(self, child: ChildHandle) -> None:
        """Adds the stdout/stderr display items and binds them to `child`'s output."""
        if self.state is not ReporterState.IDLE:
            raise ReporterStateError(f"Cannot start reporter in state {self.state.name}")

        self._child = child
        self._started_at = time.monotonic()
        token = uuid.uuid4().hex[:8]
        for channel in Channel:
            self._item_ids[channel] = f"visual-exec-{channel.value}-{token}"
            self._digesters[channel] = StreamDigester(budget=self.config.display_budget)

        self.display.add_item(
            self._item_ids[Channel.STDOUT],
            label=f"=== {self.title}\nstdout",
            style=CHANNEL_STYLES[Channel.STDOUT],
            spinner=self.config.spinner,
        )
        self.display.add_item(
            self._item_ids[Channel.STDERR],
            label="stderr",
            style=CHANNEL_STYLES[Channel.STDERR],
        )

        for channel in Channel:
            stream = child.output_events(channel)
            self._subscriptions.append(stream.subscribe(self._make_listener(channel)))

        self.state = ReporterState.RUNNING
        self._log.debug("Reporter started", items=list(self._item_ids.values()))

    def _make_listener(self, channel: Channel):
        def on_chunk(chunk: str) -> None:
            self._on_chunk(channel, chunk)

        return on_chunk

    def _on_chunk(self, channel: Channel, chunk: str) -> None:
        # Events can trail the completion signal; they are dropped once torn down.
        digester = self._digesters.get(channel)
        if self.state is not ReporterState.RUNNING or digester is None:
            return
        digest = digester.refresh(chunk)
        if digest is not None:
            self.display.update_item(self._item_ids[channel], digest, persist=False, redraw=False)

    def complete(self, output: CapturedOutput) -> ExecutionResult:
        """Marks the execution successful with the captured `output`."""
        self._finish(ReporterState.COMPLETED)
        self.result = ExecutionResult(
            exit_succeeded=True,
            stdout=output.stdout,
            stderr=output.stderr,
            elapsed_seconds=self._elapsed(),
        )
        return self.result

    def fail(self, error: BaseException) -> ExecutionResult:
        """Marks the execution failed; partial output is taken from `error` when present."""
        self._finish(ReporterState.FAILED)
        output = getattr(error, "output", None)
        if not isinstance(output, CapturedOutput):
            output = CapturedOutput()
        self.result = ExecutionResult(
            exit_succeeded=False,
            stdout=output.stdout,
            stderr=output.stderr,
            elapsed_seconds=self._elapsed(),
            error_message=getattr(error, "message", None) or str(error) or type(error).__name__,
        )
        return self.result

    def _finish(self, new_state: ReporterState) -> None:
        if self.state is not ReporterState.RUNNING:
            raise ReporterStateError(f"Cannot finish reporter in state {self.state.name}")
        self.state = new_state
        self._teardown()

    def _teardown(self) -> None:
        for item_id in self._item_ids.values():
            self.display.remove_item(item_id)
        if self._child is not None:
            for subscription in self._subscriptions:
                self._child.output_events(subscription.channel).unsubscribe(subscription)
        self._subscriptions.clear()
        self._digesters.clear()

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def finalize(self) -> ExecutionResult:
        """Logs the result summary followed by the full output report."""
        if self.result is None:
            raise ReporterStateError(f"Cannot finalize reporter in state {self.state.name}")

        result = self.result
        summary_level, summary = build_summary(result, self.log_label)
        self.display.log(summary_level, *summary)

        report_level = resolve_report_level(result, self.config)
        report = build_output_report(result, self.output_label, self.config.highlight_pattern)
        self.display.log(report_level, *report, prefix=False)

        self._log.info(
            "Execution reported",
            succeeded=result.exit_succeeded,
            elapsed_seconds=round(result.elapsed_seconds, 3),
            report_level=report_level,
        )
        return result

    async def show(self, child: ChildHandle) -> CapturedOutput:
        """
        Displays `child` until it finishes, then reports.

        Returns:
            The captured output on success.

        Raises:
            The child's original failure, after the report has been logged.
        """
        self.start(child)
        try:
            output = await child.completion
        except asyncio.CancelledError:
            self._teardown()
            raise
        except Exception as e:
            self._log.warning("Child process failed", error=str(e))
            self.fail(e)
            self.finalize()
            raise
        self.complete(output)
        self.finalize()
        return output

    async def execute(self, command: Command | None = None) -> CapturedOutput:
        """Spawns `command` (or the configured command) and shows it."""
        command = command or self.config.command
        if not command:
            raise ConfigurationError("No command given to execute")
        self._log.debug("Executing command", command=str(command), cwd=str(self.config.cwd))
        child = spawn(command, cwd=self.config.cwd, max_buffer=self.config.max_buffer)
        return await self.show(child)

# 🔼⚙️
