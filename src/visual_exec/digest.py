#
# src/visual_exec/digest.py
#
"""
Rolling one-line digest of a chunked output stream.

A StreamDigester is fed text chunks as they arrive from one channel of a
child process and keeps only the tail needed to render the most recent
output on a single, budget-bounded status line.
"""

import re

from attrs import define, field
from rich.text import Text

DISPLAY_BUDGET = 100
# Literal backslash-n, rendered in a distinct style by the display.
LINE_SEPARATOR = "\\n"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
# Escape bytes rich could not parse: sequences cut off at a chunk end or malformed ones.
_STRAY_ESCAPE_RE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*|\][^\x07\x1b]*)?")


def strip_ansi(text: str) -> str:
    """Returns the visible text of `text` with ANSI escape sequences removed."""
    if "\x1b" not in text:
        return text
    plain = Text.from_ansi(text).plain
    return _STRAY_ESCAPE_RE.sub("", plain)


def visible_length(text: str) -> int:
    return len(strip_ansi(text))


@define(slots=True)
class StreamDigester:
    """
    Turns successive chunks of one output channel into a single status line.

    The digest is built from the newest non-blank lines that fit the budget
    together, joined with a visible separator. `residual` holds exactly the
    text still needed to build the next digest, so memory use follows the
    size of recent output rather than the total output.
    """

    budget: int = field(default=DISPLAY_BUDGET)
    separator: str = field(default=LINE_SEPARATOR)
    residual: str = field(default="", init=False)
    digest: str = field(default="", init=False)
    last_displayed: str = field(default="", init=False)

    def update(self, chunk: str) -> str:
        """
        Consumes `chunk` and returns the current digest.

        Args:
            chunk: Decoded text as it arrived from the stream. May hold
                partial lines, several lines or escape codes.

        Returns:
            The digest line, never longer than the budget in visible
            characters.
        """
        if not chunk or chunk.isspace():
            # Blank input leaves the digest alone; a line break still closes
            # the open line so the next chunk does not continue it.
            if self.residual and not self.residual.endswith("\n") and _LINE_BREAK_RE.search(chunk):
                self.residual += "\n"
            return self.digest

        raw_lines = _LINE_BREAK_RE.split(self.residual + chunk)
        fresh_line = not raw_lines[-1].strip()

        lines = [line.strip() for line in raw_lines]
        if not fresh_line:
            # Trailing whitespace of the open line may be continued by the next chunk.
            lines[-1] = raw_lines[-1].lstrip()

        candidates: list[tuple[int, str, str, str]] = []
        for index, line in enumerate(lines):
            shown = line.rstrip()
            plain = strip_ansi(shown)
            if plain.strip():
                candidates.append((index, line, shown, plain))

        if not candidates:
            # Only escape codes so far; keep the open line so a split sequence can complete.
            self.residual = "\n" if fresh_line else lines[-1]
            return self.digest

        kept: list[tuple[int, str, str, str]] = []
        used = 0
        for candidate in reversed(candidates):
            cost = len(candidate[3]) + (len(self.separator) if kept else 0)
            if used + cost > self.budget:
                break
            kept.append(candidate)
            used += cost

        if kept:
            kept.reverse()
            self.residual = "\n".join(line for _, line, _, _ in kept)
            self.digest = self.separator.join(shown for _, _, shown, _ in kept)
        else:
            truncated = candidates[-1][3].strip()[: self.budget]
            self.residual = truncated
            self.digest = truncated

        if fresh_line:
            self.residual += "\n"
        elif candidates[-1][0] != len(lines) - 1:
            # The open line holds only escape codes; carry it on a line of its own.
            self.residual += "\n" + lines[-1]
        return self.digest

    def refresh(self, chunk: str) -> str | None:
        """
        Like update(), but returns the digest only when it differs from the
        one last handed to the display.
        """
        digest = self.update(chunk)
        if digest == self.last_displayed:
            return None
        self.last_displayed = digest
        return digest


# 🔼⚙️
