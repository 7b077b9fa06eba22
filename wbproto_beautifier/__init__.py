"""Opinionated beautifier for Webots PROTO files."""

from .nodes import NodeKind, Point, SyntaxNode
from .lexer import Lexer, LexerError, Token, TokenType
from .parser import ParseException, Parser
from .parser_manager import ParserManager
from .state import BufferSink, EmissionState, MeasureSink, OutputSink
from .errors import BeautifierError, CodeFormatterError, MalformedNodeError, ProtoSyntaxError
from .code_formatter import CodeFormatter, ExternalCodeFormatter
from .formatter import ColumnWidths, ProtoFormatter
from .beautifier import BeautifierConfig, beautify, check_syntax, parse

__all__ = [
    "NodeKind",
    "Point",
    "SyntaxNode",
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "ParseException",
    "Parser",
    "ParserManager",
    "BufferSink",
    "EmissionState",
    "MeasureSink",
    "OutputSink",
    "BeautifierError",
    "CodeFormatterError",
    "MalformedNodeError",
    "ProtoSyntaxError",
    "CodeFormatter",
    "ExternalCodeFormatter",
    "ColumnWidths",
    "ProtoFormatter",
    "BeautifierConfig",
    "beautify",
    "check_syntax",
    "parse",
]
