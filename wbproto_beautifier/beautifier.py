"""Entry point tying the parser and the layout engine together."""

from __future__ import annotations

from typing import NotRequired, Optional, TypedDict

from .code_formatter import DEFAULT_CONFIG as CODE_FORMATTER_DEFAULTS
from .code_formatter import CodeFormatter, ExternalCodeFormatter
from .errors import ProtoSyntaxError
from .formatter import ProtoFormatter
from .nodes import SyntaxNode
from .parser_manager import ParserManager
from .utils import resolve_config


class BeautifierConfig(TypedDict):
    spaces_per_level: NotRequired[int]
    indent_proto_body: NotRequired[bool]
    enable_logger: NotRequired[bool]
    code_formatter_command: NotRequired[list[str]]
    code_formatter_timeout: NotRequired[Optional[float]]


class BeautifierConfigRequired(TypedDict):
    spaces_per_level: int
    indent_proto_body: bool
    enable_logger: bool
    code_formatter_command: list[str]
    code_formatter_timeout: Optional[float]


DEFAULT_CONFIG: BeautifierConfigRequired = {
    "spaces_per_level": 2,
    "indent_proto_body": False,
    "enable_logger": False,
    "code_formatter_command": list(CODE_FORMATTER_DEFAULTS["command"]),
    "code_formatter_timeout": CODE_FORMATTER_DEFAULTS["timeout"],
}


def parse(code: str, enable_logger: bool = False) -> SyntaxNode:
    manager = ParserManager(
        code,
        config={
            "lexer_config": {"enable_logger": enable_logger},
            "parser_config": {"enable_logger": enable_logger},
        },
    )
    return manager.tree


def check_syntax(tree: SyntaxNode) -> None:
    error = tree.find_first_error()
    if error is not None:
        raise ProtoSyntaxError(
            "Parsed file contains errors", error.start_point.row + 1, error.start_point.column + 1
        )


def beautify(
    code: str,
    config: Optional[BeautifierConfig] = None,
    code_formatter: Optional[CodeFormatter] = None,
) -> str:
    """Format a whole PROTO document.

    Raises a BeautifierError subclass when the document cannot be formatted;
    no text is returned in that case.
    """
    _config = resolve_config(config or {}, DEFAULT_CONFIG)
    source = code.replace("\r\n", "\n")
    tree = parse(source, enable_logger=_config["enable_logger"])
    check_syntax(tree)
    if code_formatter is None:
        code_formatter = ExternalCodeFormatter(
            config={
                "command": _config["code_formatter_command"],
                "timeout": _config["code_formatter_timeout"],
                "enable_logger": _config["enable_logger"],
            }
        )
    formatter = ProtoFormatter(
        source,
        code_formatter,
        config={
            "spaces_per_level": _config["spaces_per_level"],
            "indent_proto_body": _config["indent_proto_body"],
            "enable_logger": _config["enable_logger"],
        },
    )
    formatter.format_document(tree)
    return formatter.getvalue()
