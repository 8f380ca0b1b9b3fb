# tests/unit/test_reporter.py

"""Unit tests for the ExecutionReporter component."""

import asyncio
from unittest.mock import patch

import pytest

from visual_exec.config import ExecConfig
from visual_exec.digest import LINE_SEPARATOR
from visual_exec.exceptions import ConfigurationError, ProcessFailure, ReporterStateError
from visual_exec.protocols import CapturedOutput
from visual_exec.runtime.reporter import ExecutionReporter, ReporterState


@pytest.fixture
def reporter(exec_config: ExecConfig, display) -> ExecutionReporter:
    """Provides an ExecutionReporter wired to a recording display."""
    return ExecutionReporter(exec_config, display)


def _item_ids(display) -> tuple[str, str]:
    stdout_id, stderr_id = list(display.items)
    return stdout_id, stderr_id


class TestReporterLifecycle:
    """Display items and listener bindings across the reporter states."""

    def test_labels_default_to_title(self, reporter: ExecutionReporter) -> None:
        assert reporter.title == "Running make build"
        assert reporter.log_label == reporter.title
        assert reporter.output_label == reporter.title

    def test_explicit_labels(self, display, tmp_path) -> None:
        config = ExecConfig(command="make", cwd=tmp_path, display_title="Build", log_label="build step")
        reporter = ExecutionReporter(config, display)
        assert reporter.title == "Build"
        assert reporter.log_label == "build step"
        assert reporter.output_label == "Build"

    def test_start_adds_items_and_subscribes(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)

        stdout_id, stderr_id = _item_ids(display)
        assert display.items[stdout_id] == {
            "label": "=== Running make build\nstdout",
            "style": "green",
            "spinner": "dots",
        }
        assert display.items[stderr_id] == {"label": "stderr", "style": "red", "spinner": None}
        assert fake_child.stdout.listener_count == 1
        assert fake_child.stderr.listener_count == 1
        assert reporter.state is ReporterState.RUNNING

    def test_start_twice_is_rejected(self, reporter: ExecutionReporter, fake_child) -> None:
        reporter.start(fake_child)
        with pytest.raises(ReporterStateError):
            reporter.start(fake_child)

    def test_finalize_before_completion_is_rejected(self, reporter: ExecutionReporter, fake_child) -> None:
        with pytest.raises(ReporterStateError):
            reporter.finalize()
        reporter.start(fake_child)
        with pytest.raises(ReporterStateError):
            reporter.finalize()

    def test_complete_removes_items_and_unsubscribes(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)
        stdout_id, stderr_id = _item_ids(display)

        reporter.complete(CapturedOutput(stdout="ok\n"))

        assert display.items == {}
        assert display.removed == [stdout_id, stderr_id]
        assert fake_child.stdout.listener_count == 0
        assert fake_child.stderr.listener_count == 0
        assert reporter.state is ReporterState.COMPLETED

    def test_complete_twice_is_rejected(self, reporter: ExecutionReporter, fake_child) -> None:
        reporter.start(fake_child)
        reporter.complete(CapturedOutput())
        with pytest.raises(ReporterStateError):
            reporter.fail(ProcessFailure("late failure"))


class TestLiveDigest:
    """Output events flowing into display updates."""

    def test_chunks_update_their_channel(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)
        stdout_id, stderr_id = _item_ids(display)

        fake_child.stdout.emit("compiling\n")
        fake_child.stderr.emit("warning: x\n")

        assert display.updates == [
            (stdout_id, "compiling", False, False),
            (stderr_id, "warning: x", False, False),
        ]

    def test_interleaved_chunks_keep_per_channel_state(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)
        stdout_id, _ = _item_ids(display)

        fake_child.stdout.emit("line1\nline2")
        fake_child.stderr.emit("noise\n")
        fake_child.stdout.emit("continued\n")

        assert display.updates[-1] == (stdout_id, f"line1{LINE_SEPARATOR}line2continued", False, False)

    def test_unchanged_digest_is_not_resent(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)

        fake_child.stdout.emit("hello\n")
        fake_child.stdout.emit("   ")
        fake_child.stdout.emit("\n")

        assert len(display.updates) == 1

    def test_late_events_are_ignored(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)
        listener = reporter._make_listener(next(iter(fake_child.streams)))
        reporter.complete(CapturedOutput())

        fake_child.stdout.emit("after the end\n")
        listener("after the end\n")

        assert display.updates == []


class TestFinalReport:
    """Summary and full-output report logged by finalize()."""

    def test_success_report(self, reporter: ExecutionReporter, display, fake_child, plain_text) -> None:
        reporter.start(fake_child)
        reporter.complete(CapturedOutput(stdout="build ok\n", stderr=""))
        result = reporter.finalize()

        assert result.exit_succeeded is True
        assert len(display.logs) == 2
        summary_level, summary, summary_prefix = display.logs[0]
        assert summary_level == "info"
        assert summary_prefix is True
        assert plain_text(summary).startswith("Done Running make build exit code 0")

        report_level, report, report_prefix = display.logs[1]
        assert report_level == "verbose"
        assert report_prefix is False
        assert "build ok" in plain_text(report)
        assert "=== stderr ===" not in plain_text(report)

    def test_failure_with_stderr_report(self, reporter: ExecutionReporter, display, fake_child, plain_text) -> None:
        reporter.start(fake_child)
        error = ProcessFailure("exit code 1", CapturedOutput(stdout="", stderr="fatal: disk full\n"), exit_code=1)
        result = reporter.fail(error)
        reporter.finalize()

        assert result.exit_succeeded is False
        assert result.error_message == "exit code 1"
        assert display.logs[0][0] == "error"
        assert "failed exit code 1" in plain_text(display.logs[0][1])
        assert display.logs[1][0] == "error"
        assert "=== stderr ===\nfatal: disk full" in plain_text(display.logs[1][1])

    def test_error_pattern_escalates_successful_run(self, reporter: ExecutionReporter, display, fake_child) -> None:
        reporter.start(fake_child)
        reporter.complete(CapturedOutput(stdout="WARN: low memory\n"))
        reporter.finalize()

        assert display.logs[0][0] == "info"
        assert display.logs[1][0] == "error"

    def test_no_output_report(self, reporter: ExecutionReporter, display, fake_child, plain_text) -> None:
        reporter.start(fake_child)
        reporter.complete(CapturedOutput())
        reporter.finalize()

        assert plain_text(display.logs[1][1]) == "No output from Running make build"

    def test_generic_exception_failure(self, reporter: ExecutionReporter, fake_child) -> None:
        reporter.start(fake_child)
        result = reporter.fail(RuntimeError("pipe closed"))

        assert result.error_message == "pipe closed"
        assert result.stdout == ""


@pytest.mark.asyncio
class TestShowAndExecute:
    """The async show()/execute() flows."""

    async def test_show_returns_output(self, reporter: ExecutionReporter, display, fake_child) -> None:
        fake_child.completion = asyncio.get_running_loop().create_future()
        task = asyncio.create_task(reporter.show(fake_child))
        await asyncio.sleep(0)

        fake_child.stdout.emit("working\n")
        fake_child.completion.set_result(CapturedOutput(stdout="working\n"))
        output = await task

        assert output.stdout == "working\n"
        assert reporter.state is ReporterState.COMPLETED
        assert display.updates[0][1] == "working"
        assert [level for level, _, _ in display.logs] == ["info", "verbose"]

    async def test_show_reraises_after_reporting(self, reporter: ExecutionReporter, display, fake_child) -> None:
        fake_child.completion = asyncio.get_running_loop().create_future()
        error = ProcessFailure("exit code 2", CapturedOutput(stdout="partial\n"), exit_code=2)
        fake_child.completion.set_exception(error)

        with pytest.raises(ProcessFailure) as exc_info:
            await reporter.show(fake_child)

        assert exc_info.value is error
        assert exc_info.value.output.stdout == "partial\n"
        assert reporter.state is ReporterState.FAILED
        assert [level for level, _, _ in display.logs] == ["error", "error"]
        assert display.items == {}

    async def test_execute_spawns_configured_command(
        self, reporter: ExecutionReporter, exec_config: ExecConfig, fake_child
    ) -> None:
        fake_child.completion = asyncio.get_running_loop().create_future()
        fake_child.completion.set_result(CapturedOutput(stdout="done\n"))

        with patch("visual_exec.runtime.reporter.spawn", return_value=fake_child) as mock_spawn:
            output = await reporter.execute()

        mock_spawn.assert_called_once_with("make build", cwd=exec_config.cwd, max_buffer=exec_config.max_buffer)
        assert output.stdout == "done\n"

    async def test_execute_command_override(self, reporter: ExecutionReporter, fake_child) -> None:
        fake_child.completion = asyncio.get_running_loop().create_future()
        fake_child.completion.set_result(CapturedOutput())

        with patch("visual_exec.runtime.reporter.spawn", return_value=fake_child) as mock_spawn:
            await reporter.execute("make test")

        assert mock_spawn.call_args.args == ("make test",)

    async def test_execute_without_command(self, display, tmp_path) -> None:
        reporter = ExecutionReporter(ExecConfig(cwd=tmp_path), display)
        with pytest.raises(ConfigurationError):
            await reporter.execute()
