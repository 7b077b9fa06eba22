"""Errors raised while beautifying a PROTO document."""

from __future__ import annotations

from wbproto_beautifier.nodes import SyntaxNode


class BeautifierError(Exception):
    """Base class, formatting is aborted as a whole when one is raised."""


class ProtoSyntaxError(BeautifierError):
    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{message} (at line {line})")
        self.line = line
        self.column = column


class MalformedNodeError(BeautifierError):
    def __init__(self, message: str, node: SyntaxNode):
        super().__init__(
            f"{message} around line {node.start_point.row + 1} col {node.start_point.column + 1}"
        )
        self.node = node


class CodeFormatterError(BeautifierError):
    pass
