# src/visual_exec/runtime/process.py

"""
Child process adapter built on asyncio.subprocess.

Output is read in chunks, decoded incrementally (multi-byte UTF-8 sequences
split across reads are reassembled) and fanned out to subscribers while the
full text is captured up to a byte limit.
"""

import asyncio
import codecs
import itertools
import os
from pathlib import Path

import structlog

from visual_exec.config.models import ONE_MB, Command
from visual_exec.exceptions import OutputOverflow, ProcessFailure
from visual_exec.protocols import CapturedOutput, Channel, ChunkListener, Subscription
from visual_exec.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.process")

READ_SIZE = 8192


class ChannelStream:
    """Fan-out of decoded output chunks for one channel."""

    def __init__(self, channel: Channel):
        self.channel = channel
        self._listeners: dict[int, ChunkListener] = {}
        self._tokens = itertools.count(1)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: ChunkListener) -> Subscription:
        subscription = Subscription(channel=self.channel, token=next(self._tokens))
        self._listeners[subscription.token] = listener
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._listeners.pop(subscription.token, None)

    def emit(self, chunk: str) -> None:
        for listener in list(self._listeners.values()):
            listener(chunk)


class AsyncChildProcess:
    """
    A running child process. Implements the ChildHandle protocol.

    `completion` resolves with the captured output on exit code 0, and fails
    with ProcessFailure (or OutputOverflow) otherwise.
    """

    def __init__(
        self,
        command: Command,
        *,
        cwd: Path,
        env: dict[str, str],
        max_buffer: int = 5 * ONE_MB,
    ):
        self.command = command
        self.cwd = cwd
        self.env = env
        self.max_buffer = max_buffer
        self.process: asyncio.subprocess.Process | None = None
        self.completion: asyncio.Future[CapturedOutput] = asyncio.get_running_loop().create_future()
        self._streams = {channel: ChannelStream(channel) for channel in Channel}
        self._captured: dict[Channel, list[str]] = {channel: [] for channel in Channel}
        self._captured_bytes = 0
        self._overflowed: Channel | None = None
        self._task: asyncio.Task[None] | None = None
        self._log = log.bind(command=str(command), cwd=str(cwd))

    @property
    def stdout(self) -> ChannelStream:
        return self._streams[Channel.STDOUT]

    @property
    def stderr(self) -> ChannelStream:
        return self._streams[Channel.STDERR]

    @property
    def captured(self) -> CapturedOutput:
        return CapturedOutput(
            stdout="".join(self._captured[Channel.STDOUT]),
            stderr="".join(self._captured[Channel.STDERR]),
        )

    def output_events(self, channel: Channel) -> ChannelStream:
        return self._streams[channel]

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _create_process(self) -> asyncio.subprocess.Process:
        options = {
            "stdin": asyncio.subprocess.DEVNULL,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
            "cwd": self.cwd,
            "env": self.env,
        }
        if isinstance(self.command, str):
            return await asyncio.create_subprocess_shell(self.command, **options)
        return await asyncio.create_subprocess_exec(*self.command, **options)

    async def _run(self) -> None:
        self._log.info("Spawning command", emoji_key="spawn")
        try:
            self.process = await self._create_process()
        except OSError as e:
            self._log.error("Failed to spawn command", error=str(e), emoji_key="fail")
            self._settle(ProcessFailure(f"failed to spawn: {e}", self.captured, details=e))
            return

        assert self.process.stdout is not None and self.process.stderr is not None
        pumps = [
            asyncio.ensure_future(self._pump(Channel.STDOUT, self.process.stdout)),
            asyncio.ensure_future(self._pump(Channel.STDERR, self.process.stderr)),
        ]
        try:
            await asyncio.gather(*pumps)
            exit_code = await self.process.wait()
        except Exception as e:
            self._log.exception("Unexpected error while reading command output")
            await self._abort(pumps)
            self._settle(ProcessFailure(f"unexpected error: {e}", self.captured, self.process.returncode, details=e))
            return

        output = self.captured
        self._log.info("Command finished", exit_code=exit_code, emoji_key="done")
        self._log.debug("Command output", stdout_len=len(output.stdout), stderr_len=len(output.stderr))

        if self._overflowed is not None:
            self._settle(
                OutputOverflow(
                    f"{self._overflowed.value} maxBuffer of {self.max_buffer} bytes exceeded",
                    output,
                    exit_code,
                )
            )
        elif exit_code != 0:
            self._settle(ProcessFailure(f"exit code {exit_code}", output, exit_code))
        elif not self.completion.done():
            self.completion.set_result(output)

    async def _pump(self, channel: Channel, reader: asyncio.StreamReader) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await reader.read(READ_SIZE)
            if self._overflowed is not None:
                # Drain until the killed child closes its pipes.
                if not data:
                    return
                continue
            text = decoder.decode(data, final=not data)
            if text:
                self._captured[channel].append(text)
                self._streams[channel].emit(text)
            if not data:
                return
            self._captured_bytes += len(data)
            if self._captured_bytes > self.max_buffer:
                self._overflow(channel)

    def _overflow(self, channel: Channel) -> None:
        self._overflowed = channel
        self._log.warning("Output exceeded max buffer, killing command", channel=channel.value, max_buffer=self.max_buffer)
        self._kill()

    def _kill(self) -> None:
        if self.process is not None and self.process.returncode is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass

    async def _abort(self, pumps: list["asyncio.Future[None]"]) -> None:
        """Kills the child, stops reading its pipes and reaps it."""
        self._kill()
        for pump in pumps:
            pump.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)
        if self.process is not None:
            await self.process.wait()

    def _settle(self, error: ProcessFailure) -> None:
        if not self.completion.done():
            self.completion.set_exception(error)


def spawn(
    command: Command,
    *,
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
    max_buffer: int = 5 * ONE_MB,
) -> AsyncChildProcess:
    """
    Starts `command` in the background and returns its handle.

    A string command runs through the shell; a list is executed directly.
    Must be called from within a running event loop.
    """
    work_dir = Path(cwd) if cwd else Path.cwd()
    child_env = {**os.environ, **(env or {}), "PWD": str(work_dir)}
    child = AsyncChildProcess(command, cwd=work_dir, env=child_env, max_buffer=max_buffer)
    child.start()
    return child


# 🔼⚙️
