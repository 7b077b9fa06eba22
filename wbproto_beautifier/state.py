"""Output sinks and the cursor state threaded through the formatter."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator


class OutputSink:
    def write(self, text: str) -> None:
        raise NotImplementedError


class BufferSink(OutputSink):
    def __init__(self) -> None:
        self._parts: list[str] = []

    def write(self, text: str) -> None:
        self._parts.append(text)

    def getvalue(self) -> str:
        return "".join(self._parts)


class MeasureSink(OutputSink):
    """Drops everything written to it, remembering only the widest line."""

    def __init__(self) -> None:
        self.width = 0
        self._line_width = 0

    def write(self, text: str) -> None:
        lines = text.split("\n")
        self._line_width += len(lines[0])
        self.width = max(self.width, self._line_width)
        for line in lines[1:]:
            self._line_width = len(line)
            self.width = max(self.width, self._line_width)


@dataclass
class EmissionState:
    sink: OutputSink
    spaces_per_level: int = 2
    column: int = 0
    row: int = 0
    indent_level: int = 0
    extra_indent: int = 0

    @property
    def indentation(self) -> int:
        return self.indent_level * self.spaces_per_level + self.extra_indent

    @property
    def measuring_mode(self) -> bool:
        return isinstance(self.sink, MeasureSink)

    def write(self, text: str) -> None:
        if not text:
            return
        self.sink.write(text)
        breaks = text.count("\n")
        if breaks:
            self.row += breaks
            self.column = len(text) - text.rfind("\n") - 1
        else:
            self.column += len(text)

    def newline(self) -> None:
        self.write("\n")

    def indent(self) -> None:
        self.write(" " * self.indentation)

    def pad_to(self, column: int) -> None:
        self.write(" " * max(0, column - self.column))

    @contextmanager
    def indented(self, levels: int = 1) -> Iterator[None]:
        self.indent_level += levels
        try:
            yield
        finally:
            self.indent_level -= levels

    @contextmanager
    def measuring(self) -> Iterator[MeasureSink]:
        saved = (self.sink, self.column, self.row, self.indent_level, self.extra_indent)
        sink = MeasureSink()
        self.sink = sink
        self.column = 0
        self.row = 0
        try:
            yield sink
        finally:
            self.sink, self.column, self.row, self.indent_level, self.extra_indent = saved
