import asyncio

import pytest
from rich.text import Text

from visual_exec.config import ExecConfig
from visual_exec.protocols import Channel
from visual_exec.runtime.process import ChannelStream


class RecordingDisplay:
    """DisplayService double that records every call."""

    def __init__(self):
        self.items: dict[str, dict] = {}
        self.updates: list[tuple[str, str, bool, bool]] = []
        self.removed: list[str] = []
        self.logs: list[tuple[str, tuple, bool]] = []

    def add_item(self, item_id, label, style, spinner=None):
        self.items[item_id] = {"label": label, "style": style, "spinner": spinner}

    def update_item(self, item_id, text, *, persist=False, redraw=False):
        if item_id not in self.items:
            return
        self.updates.append((item_id, text, persist, redraw))

    def remove_item(self, item_id):
        self.items.pop(item_id, None)
        self.removed.append(item_id)

    def log(self, level, *segments, prefix=True):
        self.logs.append((level, segments, prefix))


class FakeChild:
    """ChildHandle double whose streams are driven by the test."""

    def __init__(self, completion: "asyncio.Future | None" = None):
        self.completion = completion
        self.streams = {channel: ChannelStream(channel) for channel in Channel}

    @property
    def stdout(self) -> ChannelStream:
        return self.streams[Channel.STDOUT]

    @property
    def stderr(self) -> ChannelStream:
        return self.streams[Channel.STDERR]

    def output_events(self, channel: Channel) -> ChannelStream:
        return self.streams[channel]


def plain(segments) -> str:
    """Joins display log segments the way the console prints them."""
    return " ".join(seg.plain if isinstance(seg, Text) else str(seg) for seg in segments)


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def fake_child() -> FakeChild:
    return FakeChild()


@pytest.fixture
def exec_config(tmp_path) -> ExecConfig:
    return ExecConfig(command="make build", cwd=tmp_path)


@pytest.fixture
def plain_text():
    return plain
