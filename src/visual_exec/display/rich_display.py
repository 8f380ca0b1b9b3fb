# src/visual_exec/display/rich_display.py

"""
Terminal display backed by rich: live, in-place item lines with spinners,
plus a level-filtered log for persisted messages.
"""

import os
import threading

import structlog
from attrs import define, field
from rich.console import Console, RenderableType
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from visual_exec.digest import LINE_SEPARATOR
from visual_exec.telemetry import StructLogger

log: StructLogger = structlog.get_logger("display.rich")

LEVEL_ORDER = {"verbose": 10, "info": 20, "error": 40}
LEVEL_STYLES = {"verbose": "dim", "info": "cyan", "error": "bold red"}
SEPARATOR_STYLE = "blue"

_CI_ENV_VARS = ("CI", "CONTINUOUS_INTEGRATION", "BUILD_NUMBER", "RUN_ID")


def is_ci(environ: dict[str, str] | None = None) -> bool:
    """True when running under a continuous integration service."""
    env = os.environ if environ is None else environ
    return any(env.get(name, "").lower() not in ("", "0", "false") for name in _CI_ENV_VARS)


@define(slots=True)
class DisplayItem:
    """A live line: a label (optionally with a spinner) and its latest text."""

    label: str
    style: str
    spinner: Spinner | None = field(default=None)
    text: str = field(default="")


class RichDisplay:
    """
    Implements the DisplayService protocol on a rich Console.

    With `live_items` disabled (e.g. in CI) items are not rendered at all and
    only log() output is printed.
    """

    def __init__(
        self,
        console: Console | None = None,
        level: str = "info",
        live_items: bool = True,
        refresh_per_second: float = 8,
    ):
        if level not in LEVEL_ORDER:
            raise ValueError(f"Unknown display level '{level}'. Must be one of {list(LEVEL_ORDER)}.")
        self.console = console or Console()
        self.level = level
        self.live_items = live_items
        self.refresh_per_second = refresh_per_second
        self._items: dict[str, DisplayItem] = {}
        self._live: Live | None = None
        # Live refreshes from its own thread.
        self._lock = threading.RLock()

    @property
    def item_ids(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def get_item(self, item_id: str) -> DisplayItem | None:
        return self._items.get(item_id)

    def add_item(self, item_id: str, label: str, style: str, spinner: str | None = None) -> None:
        if not self.live_items:
            return
        item = DisplayItem(
            label=label,
            style=style,
            spinner=Spinner(spinner, text=Text(label, style=style), style=style) if spinner else None,
        )
        with self._lock:
            self._items[item_id] = item
        log.debug("Display item added", item_id=item_id, label=label)
        self._ensure_live()

    def update_item(self, item_id: str, text: str, *, persist: bool = False, redraw: bool = False) -> None:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                return
            item.text = text
        if persist:
            self.console.print(self._render_text(text), markup=False, highlight=False)
        if redraw and self._live is not None:
            self._live.refresh()

    def remove_item(self, item_id: str) -> None:
        with self._lock:
            removed = self._items.pop(item_id, None)
            remaining = len(self._items)
        if removed is None:
            return
        log.debug("Display item removed", item_id=item_id)
        if not remaining:
            self.close()

    def log(self, level: str, *segments: RenderableType, prefix: bool = True) -> None:
        threshold = LEVEL_ORDER.get(level)
        if threshold is None:
            raise ValueError(f"Unknown log level '{level}'. Must be one of {list(LEVEL_ORDER)}.")
        if threshold < LEVEL_ORDER[self.level]:
            return
        parts: list[RenderableType] = []
        if prefix:
            parts.append(Text(f"{level}:", style=LEVEL_STYLES[level]))
        parts.extend(segments)
        self.console.print(*parts, markup=False, highlight=False)

    def close(self) -> None:
        """Stops the live display, if running."""
        if self._live is not None:
            self._live.stop()
            self._live = None

    def _ensure_live(self) -> None:
        if self._live is not None:
            return
        self._live = Live(
            console=self.console,
            get_renderable=self._render,
            refresh_per_second=self.refresh_per_second,
            transient=True,
        )
        self._live.start()

    def _render(self) -> RenderableType:
        grid = Table.grid(padding=(0, 1))
        grid.add_column(no_wrap=True)
        grid.add_column(no_wrap=True, overflow="ellipsis")
        with self._lock:
            items = list(self._items.values())
        for item in items:
            label: RenderableType = item.spinner if item.spinner else Text(item.label, style=item.style)
            grid.add_row(label, self._render_text(item.text))
        return grid

    @staticmethod
    def _render_text(text: str) -> Text:
        rendered = Text.from_ansi(text)
        rendered.highlight_words([LINE_SEPARATOR], style=SEPARATOR_STYLE)
        return rendered


def create_default_display(console: Console | None = None, level: str = "info") -> RichDisplay:
    """
    Builds a RichDisplay for the current environment. Live items are turned
    off under CI, where in-place redraws only clutter the build log.
    """
    ci = is_ci()
    display = RichDisplay(console=console, level=level, live_items=not ci)
    if ci:
        display.log("info", "visual-exec: CI env detected")
    return display


# 🔼⚙️
