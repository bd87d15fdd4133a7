"""
Console
=======
Terminal sink for the report. Accepts structured text and adds ANSI colour
when writing to a TTY (disabled by NO_COLOR).

Everything user-facing goes to the console stream (stdout by default);
diagnostics go through logging.
"""
import os
import sys
from typing import Optional, Sequence, TextIO

from ciwatch.core.output_formatter import format_summary
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import DisplayState, classify_run


def supports_color(stream: TextIO) -> bool:
    """True for a TTY stream when NO_COLOR is not set."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty()) and "NO_COLOR" not in os.environ


class Console:
    bold = "\x1b[0;1m"
    red = "\x1b[0;31m"
    green = "\x1b[0;32m"
    yellow = "\x1b[1;33m"
    blue = "\x1b[0;34m"
    reset = "\x1b[0m"

    STATE_COLORS = {
        DisplayState.SUCCESS: green,
        DisplayState.FAILURE: red,
        DisplayState.CANCELLED: yellow,
        DisplayState.SKIPPED: yellow,
        DisplayState.QUEUED: blue,
        DisplayState.RUNNING: blue,
    }

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None) -> None:
        self.stream = stream or sys.stdout
        self.color = supports_color(self.stream) if color is None else color

    def _paint(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + self.reset

    def _write(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def log(self, text: str = "") -> None:
        self._write(text)

    def error(self, text: str) -> None:
        self._write(self._paint(f"Error: {text}", self.red))

    def success(self, text: str) -> None:
        self._write(self._paint(text, self.green))

    def warning(self, text: str) -> None:
        self._write(self._paint(text, self.yellow))

    def h1(self, text: str) -> None:
        self._write(self._paint(f"# {text}", self.bold, self.blue))
        self._write("")

    def h2(self, text: str) -> None:
        self._write(self._paint(f"## {text}", self.bold, self.blue))
        self._write("")

    def h3(self, text: str) -> None:
        self._write(self._paint(f"### {text}", self.bold, self.blue))
        self._write("")

    def status_line(self, state: str, line: str) -> None:
        """Write a summary line, coloured by its display state."""
        code = self.STATE_COLORS.get(state)
        self._write(self._paint(line, code) if code else line)

    def progress(self, marker: str = ".") -> None:
        """Write a progress marker without a newline."""
        self.stream.write(marker)
        self.stream.flush()


def render_summary(runs: Sequence[WorkflowRun], console: Console) -> None:
    """Write one status line per run, in the order given. Nothing for no runs."""
    for run, line in zip(runs, format_summary(runs)):
        console.status_line(classify_run(run), line)
