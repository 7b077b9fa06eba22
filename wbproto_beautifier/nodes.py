"""Concrete syntax tree for Webots PROTO documents."""

from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NodeKind(Enum):
    DOCUMENT = "document"
    COMMENT = "comment"
    EXTERN = "extern"
    PROTO = "proto"
    FIELD = "field"
    FIELD_KIND = "field_kind"
    FIELD_TYPE = "field_type"
    NODE = "node"
    PROPERTY = "property"
    VECTOR = "vector"
    VALUE = "value"
    JAVASCRIPT_BLOCK = "javascript_block"
    JAVASCRIPT_EXPRESSION = "javascript_expression"
    CODE = "code"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "NULL"
    ERROR = "ERROR"
    # anonymous tokens
    L_BRACKET = "["
    R_BRACKET = "]"
    L_BRACE = "{"
    R_BRACE = "}"
    COMMA = ","
    DEF = "DEF"
    USE = "USE"
    IS = "IS"
    PROTO_KEYWORD = "PROTO"
    EXTERNPROTO = "EXTERNPROTO"
    IMPORTABLE = "IMPORTABLE"
    JS_OPEN = "%<"
    JS_EXPRESSION_OPEN = "%<="
    JS_CLOSE = ">%"


ANONYMOUS_KINDS = frozenset(
    {
        NodeKind.L_BRACKET,
        NodeKind.R_BRACKET,
        NodeKind.L_BRACE,
        NodeKind.R_BRACE,
        NodeKind.COMMA,
        NodeKind.DEF,
        NodeKind.USE,
        NodeKind.IS,
        NodeKind.PROTO_KEYWORD,
        NodeKind.EXTERNPROTO,
        NodeKind.IMPORTABLE,
        NodeKind.JS_OPEN,
        NodeKind.JS_EXPRESSION_OPEN,
        NodeKind.JS_CLOSE,
    }
)


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int = Field(ge=0)
    column: int = Field(ge=0)


class SyntaxNode(BaseModel):
    kind: NodeKind
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    start_point: Point
    end_point: Point
    children: list["SyntaxNode"] = Field(default_factory=list)
    field_names: dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_ranges(self) -> "SyntaxNode":
        if self.end_offset < self.start_offset:
            raise ValueError(f"{self.kind.value} node ends before it starts")
        previous_end = self.start_offset
        for child in self.children:
            if child.start_offset < previous_end or child.end_offset > self.end_offset:
                raise ValueError(
                    f"{child.kind.value} child at {child.start_point.row}:{child.start_point.column} "
                    f"overlaps its siblings or leaves its {self.kind.value} parent"
                )
            previous_end = child.end_offset
        for name, index in self.field_names.items():
            if not 0 <= index < len(self.children):
                raise ValueError(f"Field '{name}' points to missing child {index}")
        return self

    @property
    def is_named(self) -> bool:
        return self.kind not in ANONYMOUS_KINDS

    @property
    def is_error(self) -> bool:
        return self.kind is NodeKind.ERROR

    @property
    def named_children(self) -> list["SyntaxNode"]:
        return [child for child in self.children if child.is_named]

    def child(self, index: int) -> Optional["SyntaxNode"]:
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    def child_by_field_name(self, name: str) -> Optional["SyntaxNode"]:
        index = self.field_names.get(name)
        return None if index is None else self.child(index)

    def children_of_kind(self, *kinds: NodeKind) -> list["SyntaxNode"]:
        return [child for child in self.children if child.kind in kinds]

    def text(self, source: str) -> str:
        return source[self.start_offset : self.end_offset]

    def is_single_line(self) -> bool:
        return self.start_point.row == self.end_point.row

    def walk(self) -> Iterator["SyntaxNode"]:
        """Yield this node and all its descendants in source order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_first_error(self) -> Optional["SyntaxNode"]:
        return next((node for node in self.walk() if node.is_error), None)

    def has_error(self) -> bool:
        return self.find_first_error() is not None

    def sexp(self) -> str:
        inner = " ".join(child.sexp() for child in self.named_children)
        return f"({self.kind.value} {inner})" if inner else f"({self.kind.value})"
