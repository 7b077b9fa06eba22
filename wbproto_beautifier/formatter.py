"""Layout engine re-emitting a PROTO syntax tree as canonical text."""

from __future__ import annotations

from typing import NamedTuple, NotRequired, Optional, TypedDict

from .code_formatter import CodeFormatter
from .errors import MalformedNodeError
from .logger import Logger
from .nodes import NodeKind, SyntaxNode
from .parser import FIELD_PARTS
from .state import BufferSink, EmissionState
from .utils import resolve_config

# comment prefixes glued to the marker, e.g. "#VRML_SIM R2023b utf8"
HEADER_KEYWORDS = ("VRML",)
SECTION_MARKER = "##"
TEMPLATE_CLOSE = ">%"


class FormatterConfig(TypedDict):
    spaces_per_level: NotRequired[int]
    indent_proto_body: NotRequired[bool]
    enable_logger: NotRequired[bool]


class FormatterConfigRequired(TypedDict):
    spaces_per_level: int
    indent_proto_body: bool
    enable_logger: bool


DEFAULT_CONFIG: FormatterConfigRequired = {
    "spaces_per_level": 2,
    "indent_proto_body": False,
    "enable_logger": False,
}


class ColumnWidths(NamedTuple):
    kind: int
    type: int
    name: int
    value: int


class ProtoFormatter:
    """Walks a syntax tree and writes the formatted document to its state.

    Layout follows the source shape: constructs written on one line stay on
    one line, everything else is expanded one child per line.
    """

    def __init__(self, source: str, code_formatter: CodeFormatter, config: Optional[FormatterConfig] = None):
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        if self.config["spaces_per_level"] < 0:
            raise ValueError("spaces_per_level must not be negative")
        self.source = source
        self.code_formatter = code_formatter
        self.logger = Logger(
            config={"name": "wbproto_beautifier.formatter", "is_enabled": self.config["enable_logger"]}
        ).logger
        self.output = BufferSink()
        self.state = EmissionState(self.output, spaces_per_level=self.config["spaces_per_level"])

    def getvalue(self) -> str:
        return self.output.getvalue()

    # Dispatch ----------------------------------------------------------------
    def format_node(self, node: SyntaxNode) -> None:
        match node.kind:
            case NodeKind.NODE:
                self.format_node_def(node)
            case NodeKind.COMMENT:
                self.format_comment(node)
            case NodeKind.EXTERN:
                self.format_extern(node)
            case NodeKind.PROPERTY | NodeKind.VALUE:
                self.format_property(node)
            case NodeKind.PROTO:
                self.format_proto(node)
            case NodeKind.VECTOR:
                self.format_vector(node)
            case NodeKind.JAVASCRIPT_BLOCK | NodeKind.JAVASCRIPT_EXPRESSION:
                self.format_javascript(node)
            case _:
                self.print_node(node)

    def print_node(self, node: SyntaxNode) -> None:
        self.state.write(node.text(self.source))

    # Document ----------------------------------------------------------------
    def format_document(self, root: SyntaxNode) -> None:
        previous: Optional[SyntaxNode] = None
        for child in root.children:
            if previous is not None:
                if child.kind is NodeKind.COMMENT and child.start_point.row == previous.end_point.row:
                    self.state.write(" ")
                else:
                    self.state.newline()
                    if self._needs_blank_line(previous, child):
                        self.state.newline()
            self.logger.debug(f"Formatting top-level {child.kind.value} at line {child.start_point.row + 1}")
            self.format_node(child)
            previous = child
        if previous is not None:
            self.state.newline()

    def _needs_blank_line(self, previous: SyntaxNode, child: SyntaxNode) -> bool:
        gap = child.start_point.row - previous.end_point.row
        match child.kind:
            case NodeKind.COMMENT:
                return gap > 1
            case NodeKind.EXTERN:
                return previous.kind is NodeKind.COMMENT or gap > 1
            case _:
                return True

    # Leaves ------------------------------------------------------------------
    def format_comment(self, node: SyntaxNode) -> None:
        text = node.text(self.source).strip()
        if text.startswith(SECTION_MARKER):
            self.state.write(text)
            return
        line = text.removeprefix("#").strip()
        self.state.write("#")
        if line and not line.startswith(HEADER_KEYWORDS):
            self.state.write(" ")
        self.state.write(line)

    def format_extern(self, node: SyntaxNode) -> None:
        self.state.write(" ".join(child.text(self.source) for child in node.children))

    def format_property(self, node: SyntaxNode) -> None:
        for i, child in enumerate(node.children):
            if i:
                self.state.write(" ")
            self.format_node(child)

    # PROTO declaration -------------------------------------------------------
    def format_proto(self, node: SyntaxNode) -> None:
        name = node.child_by_field_name("name")
        if name is None:
            raise MalformedNodeError("PROTO declaration without a name", node)
        sizes = self.field_sizes(node.children_of_kind(NodeKind.FIELD))
        bracket, header, body = self._split_proto(node)

        self.state.write(f"PROTO {name.text(self.source)} [")
        with self.state.indented():
            last_row = bracket.end_point.row
            after_field = False
            for child in header:
                if child.kind is NodeKind.COMMENT and child.start_point.row == last_row:
                    if after_field:
                        self._pad(self.state.indentation + sum(sizes))
                    else:
                        self.state.write(" ")
                else:
                    self.state.newline()
                    self.state.indent()
                if child.kind is NodeKind.FIELD:
                    self.format_field(child, sizes)
                else:
                    self.format_node(child)
                after_field = child.kind is NodeKind.FIELD
                last_row = child.end_point.row
        self.state.newline()
        self.state.write("]")
        self.state.newline()
        self.state.write("{")
        self.state.newline()
        with self.state.indented(1 if self.config["indent_proto_body"] else 0):
            for child in body:
                self.state.indent()
                self.format_node(child)
                self.state.newline()
        self.state.write("}")

    def _split_proto(self, node: SyntaxNode) -> tuple[SyntaxNode, list[SyntaxNode], list[SyntaxNode]]:
        bracket: Optional[SyntaxNode] = None
        header: list[SyntaxNode] = []
        body: list[SyntaxNode] = []
        section: Optional[list[SyntaxNode]] = None
        for child in node.children:
            match child.kind:
                case NodeKind.L_BRACKET:
                    bracket = child
                    section = header
                case NodeKind.L_BRACE:
                    section = body
                case NodeKind.R_BRACKET | NodeKind.R_BRACE:
                    section = None
                case _ if section is not None:
                    section.append(child)
        if bracket is None:
            raise MalformedNodeError("PROTO declaration without an interface", node)
        return bracket, header, body

    def _pad(self, column: int) -> None:
        self.state.pad_to(max(column, self.state.column + 1))

    def _field_parts(self, field: SyntaxNode) -> list[SyntaxNode]:
        parts = []
        for part_name in FIELD_PARTS:
            part = field.child_by_field_name(part_name)
            if part is None:
                raise MalformedNodeError(f"Malformed field: could not extract field {part_name}", field)
            parts.append(part)
        return parts

    def field_sizes(self, fields: list[SyntaxNode]) -> ColumnWidths:
        """Width of each interface column, the widest entry plus padding."""
        padding = max(self.state.spaces_per_level, 1)
        widths = [0, 0, 0, 0]
        for field in fields:
            for i, part in enumerate(self._field_parts(field)):
                widths[i] = max(widths[i], self.measure(part) + padding)
        return ColumnWidths(*widths)

    def measure(self, node: SyntaxNode) -> int:
        with self.state.measuring() as sink:
            self.format_node(node)
        return sink.width

    def format_field(self, field: SyntaxNode, sizes: ColumnWidths) -> None:
        kind, field_type, name, value = self._field_parts(field)
        at = self.state.indentation + sizes.kind
        self.format_node(kind)
        self._pad(at)
        self.format_node(field_type)
        at += sizes.type
        self._pad(at)
        self.format_node(name)
        at += sizes.name
        self._pad(at)
        self.format_node(value)

    # Nodes -------------------------------------------------------------------
    def _is_object(self, node: SyntaxNode) -> bool:
        first = node.child(0)
        return node.kind is NodeKind.NODE and first is not None and first.kind is not NodeKind.USE

    def _forces_multiline(self, node: SyntaxNode) -> bool:
        return any(
            descendant.kind is NodeKind.VECTOR and any(self._is_object(c) for c in descendant.children)
            for descendant in node.walk()
        )

    def _is_oneliner(self, node: SyntaxNode) -> bool:
        return node.is_single_line() and not self._forces_multiline(node)

    def _required(self, node: SyntaxNode, field_name: str) -> SyntaxNode:
        child = node.child_by_field_name(field_name)
        if child is None:
            raise MalformedNodeError(f"Node instance without {field_name}", node)
        return child

    def _between(self, node: SyntaxNode, opening: NodeKind, closing: NodeKind) -> tuple[SyntaxNode, list[SyntaxNode]]:
        for i, child in enumerate(node.children):
            if child.kind is opening:
                inner = node.children[i + 1 :]
                if not inner or inner[-1].kind is not closing:
                    raise MalformedNodeError(f"Unbalanced '{opening.value}'", node)
                return child, inner[:-1]
        raise MalformedNodeError(f"Missing '{opening.value}'", node)

    def format_node_def(self, node: SyntaxNode) -> None:
        first = node.child(0)
        if first is None:
            raise MalformedNodeError("Empty node instance", node)
        match first.kind:
            case NodeKind.USE:
                self.state.write(f"USE {self._required(node, 'name').text(self.source)}")
                return
            case NodeKind.DEF:
                name = self._required(node, "name").text(self.source)
                self.state.write(f"DEF {name} {self._required(node, 'type').text(self.source)}")
            case _:
                self.state.write(self._required(node, "type").text(self.source))

        brace, body = self._between(node, NodeKind.L_BRACE, NodeKind.R_BRACE)
        if not body:
            self.state.write(" {}")
            return
        oneliner = self._is_oneliner(node)
        self.state.write(" {")
        last_row = brace.end_point.row
        with self.state.indented():
            for child in body:
                if child.kind is NodeKind.COMMENT and child.start_point.row == last_row:
                    self.state.write(" ")
                elif oneliner:
                    self.state.write(" ")
                else:
                    self.state.newline()
                    self.state.indent()
                self.format_node(child)
                last_row = child.end_point.row
        if oneliner:
            self.state.write(" }")
        else:
            self.state.newline()
            self.state.indent()
            self.state.write("}")

    # Vectors -----------------------------------------------------------------
    def format_vector(self, node: SyntaxNode) -> None:
        bracket, items = self._between(node, NodeKind.L_BRACKET, NodeKind.R_BRACKET)
        if not items:
            self.state.write("[]")
            return
        oneliner = self._is_oneliner(node)
        self.state.write("[")
        last_row = bracket.end_point.row
        after_comment = False
        with self.state.indented(0 if oneliner else 1):
            for child in items:
                match child.kind:
                    case NodeKind.COMMA:
                        if after_comment:
                            self.state.newline()
                            self.state.indent()
                        self.state.write(",")
                    case NodeKind.COMMENT:
                        if child.start_point.row == last_row:
                            self.state.write(" ")
                        else:
                            self.state.newline()
                            self.state.indent()
                        self.format_comment(child)
                    case _:
                        if oneliner:
                            self.state.write(" ")
                        else:
                            self.state.newline()
                            self.state.indent()
                        self.format_node(child)
                after_comment = child.kind is NodeKind.COMMENT
                last_row = child.end_point.row
        if oneliner:
            self.state.write(" ]")
        else:
            self.state.newline()
            self.state.indent()
            self.state.write("]")

    # Templates ---------------------------------------------------------------
    def format_javascript(self, node: SyntaxNode) -> None:
        opener = node.child(0)
        code = node.child_by_field_name("code")
        if opener is None or code is None:
            raise MalformedNodeError("Template block without code", node)
        source_code = code.text(self.source)
        formatted = self.code_formatter(source_code).rstrip().lstrip("\n") if source_code.strip() else ""

        self.state.write(opener.text(self.source))
        if node.is_single_line():
            joined = " ".join(line.strip() for line in formatted.splitlines() if line.strip())
            if joined:
                self.state.write(f" {joined}")
            self.state.write(f" {TEMPLATE_CLOSE}")
            return

        self.state.newline()
        with self.state.indented():
            for line in formatted.splitlines():
                if line.strip():
                    self.state.indent()
                    self.state.write(line.rstrip())
                self.state.newline()
        self.state.indent()
        self.state.write(TEMPLATE_CLOSE)
