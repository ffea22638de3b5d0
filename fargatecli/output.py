"""Messages to the user on standard output, with optional colour and emoji."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TextIO

_DEBUG_EMOJI = " \U0001f527  "
_INFO_EMOJI = " \u2139\ufe0f  "
_WARNING_EMOJI = " \u26a0\ufe0f  "

_BLUE = "\033[1;94m"
_ORANGE = "\033[1;38;5;214m"
_RED = "\033[1;91m"
_RESET = "\033[0m"
_WHITE = "\033[1;97m"

_TAB_WIDTH = 8
_CELL_PADDING = 1


def humanize(text: str) -> str:
    """Turn a constant such as ``PENDING_VALIDATION`` into ``pending validation``."""
    return text.lower().replace("_", " ")


def titleize(text: str) -> str:
    """Turn a constant such as ``PENDING_VALIDATION`` into ``Pending Validation``."""
    return " ".join(word[:1].upper() + word[1:] for word in humanize(text).split(" "))


def _format(msg: str, args: tuple) -> str:
    return msg % args if args else msg


def _tab_padding(text_width: int, cell_width: int) -> str:
    cell_width = -(-cell_width // _TAB_WIDTH) * _TAB_WIDTH
    missing = cell_width - text_width
    return "\t" * -(-missing // _TAB_WIDTH)


def _align(rows: Sequence[Sequence[str]]) -> str:
    """Lay out tab-separated cells in columns padded with tabs."""
    lines = [list(row) if row else [""] for row in rows]
    out: list[str] = []

    def write_lines(start: int, end: int, widths: list[int]) -> None:
        for line in lines[start:end]:
            parts = []
            for j, cell in enumerate(line):
                parts.append(cell)
                if j < len(widths):
                    parts.append(_tab_padding(len(cell), widths[j]))
            out.append("".join(parts) + "\n")

    def layout(start: int, end: int, widths: list[int]) -> None:
        column = len(widths)
        current = start
        while current < end:
            if column >= len(lines[current]) - 1:
                current += 1
                continue
            write_lines(start, current, widths)
            start = current
            width = 0
            while current < end and column < len(lines[current]) - 1:
                width = max(width, len(lines[current][column]) + _CELL_PADDING)
                current += 1
            layout(start, current, widths + [width])
            start = current
            current += 1
        write_lines(start, end, widths)

    layout(0, len(lines), [])
    return "".join(out)


@dataclass
class ConsoleOutput:
    """Sends messages to the user over standard output.

    Fatal messages exit the process with status 1 unless ``test`` is set.
    """

    color: bool = False
    emoji: bool = False
    verbose: bool = False
    test: bool = False
    stream: Optional[TextIO] = None

    def _write(self, text: str) -> None:
        (self.stream or sys.stdout).write(text)

    def _prefixed(
        self, msg: str, args: tuple, emoji: str, letter: str, letter_color: str, text_color: str
    ) -> None:
        text = _format(msg, args)
        if self.emoji and self.color:
            line = emoji + text_color + text + _RESET
        elif self.emoji:
            line = emoji + text
        elif self.color:
            line = "[" + letter_color + letter + _RESET + "] " + text_color + text + _RESET
        else:
            line = f"[{letter}] {text}"
        self._write(line + "\n")

    def debug(self, msg: str, *args) -> None:
        """Print a debugging message, only when verbose."""
        if self.verbose:
            self._prefixed(msg, args, _DEBUG_EMOJI, "d", _ORANGE, _ORANGE)

    def say(self, msg: str, indent: int = 0, *args) -> None:
        """Print a message indented by four spaces per level."""
        self._write("    " * max(indent, 0) + _format(msg, args) + "\n")

    def info(self, msg: str, *args) -> None:
        """Print an informational message."""
        self._prefixed(msg, args, _INFO_EMOJI, "i", _BLUE, _WHITE)

    def warn(self, msg: str, *args) -> None:
        """Print a warning."""
        self._prefixed(msg, args, _WARNING_EMOJI, "!", _RED, _RED)

    def fatal(self, err: Optional[BaseException], msg: str, *args) -> None:
        """Print a fatal message with one error, then exit unless testing."""
        self.fatals([err], msg, *args)

    def fatals(self, errs: Iterable[Optional[BaseException]], msg: str, *args) -> None:
        """Print a fatal message with each error listed below it, then exit unless testing."""
        self.warn(msg, *args)
        for err in errs:
            if err is not None:
                self.say("- " + str(err), 1)
        if not self.test:
            sys.exit(1)

    def key_value(self, key: str, value: str, indent: int = 0, *args) -> None:
        """Print an optionally indented key and value pair."""
        if self.color:
            self.say(_WHITE + key + _RESET + ": " + value, indent, *args)
        else:
            self.say(key + ": " + value, indent, *args)

    def table(self, header: str, rows: Sequence[Sequence[str]]) -> None:
        """Print rows aligned in tab-padded columns, under an optional header."""
        if header:
            self.say(_WHITE + header + _RESET if self.color else header, 0)
            self.line_break()
        self._write(_align(rows))

    def line_break(self) -> None:
        """Print a single line break."""
        self._write("\n")