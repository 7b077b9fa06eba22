from typing import NotRequired, Optional, TypedDict
from enum import Enum, auto
from dataclasses import dataclass
import re
from wbproto_beautifier.utils import resolve_config
from wbproto_beautifier.logger import Logger


class TokenType(Enum):
    IDENTIFIER = auto()
    KEYWORD = auto()
    FIELD_KIND = auto()
    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()
    OPEN_BRACKET = auto()
    CLOSE_BRACKET = auto()
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    COMMA = auto()
    COMMENT = auto()
    JS_OPEN = auto()
    JS_EXPRESSION_OPEN = auto()
    CODE = auto()
    JS_CLOSE = auto()
    ERROR = auto()
    EOF = auto()


@dataclass
class Token:
    token_type: TokenType
    value: str
    line: int
    column: int
    offset: int
    end_line: int
    end_column: int
    end_offset: int


KEYWORDS = {"PROTO", "EXTERNPROTO", "IMPORTABLE", "DEF", "USE", "IS"}
FIELD_KINDS = {"field", "vrmlField", "hiddenField", "deprecatedField", "unconnectedField"}
BOOLEANS = {"TRUE", "FALSE"}

PUNCTUATION = {
    "[": TokenType.OPEN_BRACKET,
    "]": TokenType.CLOSE_BRACKET,
    "{": TokenType.OPEN_BRACE,
    "}": TokenType.CLOSE_BRACE,
    ",": TokenType.COMMA,
}

NUMBER_PATTERN = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

TEMPLATE_CLOSE = ">%"


class LexerError(Exception):
    def __init__(self, message, line, column):
        super().__init__(f"Error: {message} at {line + 1}:{column + 1}")
        self.line = line
        self.column = column


class LexerConfig(TypedDict):
    tokenize: NotRequired[bool]
    enable_logger: NotRequired[bool]


class LexerConfigRequired(TypedDict):
    tokenize: bool
    enable_logger: bool


DEFAULT_CONFIG: LexerConfigRequired = {
    "tokenize": True,
    "enable_logger": False,
}


class Lexer:
    """Splits PROTO source text into tokens.

    Lines and columns are 0-based. Characters the language does not allow are
    emitted as ERROR tokens so that the parser can keep going and report the
    first faulty location.
    """

    def __init__(self, input: str, config: Optional[LexerConfig] = None):
        self.input = input
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(
            config={"name": "wbproto_beautifier.lexer", "is_enabled": self.config["enable_logger"]}
        ).logger
        self._start = 0
        self._start_line = 0
        self._start_column = 0
        self.position = 0
        self.line = 0
        self.column = 0
        self.tokens: list[Token] = []
        if self.config["tokenize"]:
            self.tokenize()

    @property
    def has_more_chars(self):
        return self.position < len(self.input)

    @property
    def char(self):
        return self.input[self.position] if self.has_more_chars else "\0"

    @property
    def current_value(self):
        return self.input[self._start : self.position]

    def _advance(self, steps=1):
        for _ in range(steps):
            if not self.has_more_chars:
                raise LexerError("Attempt to advance beyond end of input", self.line, self.column)
            if self.char == "\n":
                self.line += 1
                self.column = 0
            else:
                self.column += 1
            self.position += 1

    def _consume_while(self, condition):
        while self.has_more_chars and condition(self.char):
            self._advance()

    def _peek(self, steps=1):
        if self.position + steps < len(self.input):
            return self.input[self.position + steps]
        return "\0"

    def _begin(self):
        self._start = self.position
        self._start_line = self.line
        self._start_column = self.column

    def _add_token(self, token_type: TokenType):
        token = Token(
            token_type,
            self.current_value,
            self._start_line,
            self._start_column,
            self._start,
            self.line,
            self.column,
            self.position,
        )
        self.logger.debug(f"Adding token {token_type} with value {token.value!r} at {token.line}:{token.column}")
        self.tokens.append(token)

    def _add_error(self, message: str):
        self.logger.warning(f"{message} at line {self._start_line + 1}, column {self._start_column + 1}")
        self._add_token(TokenType.ERROR)

    def _get_identifier_token_type(self, chars: str) -> TokenType:
        if chars in KEYWORDS:
            return TokenType.KEYWORD
        elif chars in FIELD_KINDS:
            return TokenType.FIELD_KIND
        elif chars in BOOLEANS:
            return TokenType.BOOLEAN
        elif chars == "NULL":
            return TokenType.NULL
        return TokenType.IDENTIFIER

    def tokenize(self) -> list[Token]:
        self.logger.info("Starting tokenization")
        while self.has_more_chars:
            char = self.char
            if char.isspace():
                self._skip_whitespace()
            elif char == "#":
                self._handle_comment()
            elif char == '"':
                self._handle_string()
            elif char == "%" and self._peek() == "<":
                self._handle_template()
            elif char in PUNCTUATION:
                self._handle_punctuation()
            elif NUMBER_PATTERN.match(self.input, self.position):
                self._handle_number()
            elif char.isalpha() or char == "_":
                self._handle_identifier()
            else:
                self._handle_unexpected_char()
        self._begin()
        self._add_token(TokenType.EOF)
        self.logger.info("Tokenization complete")
        return self.tokens

    def _skip_whitespace(self):
        self._consume_while(lambda c: c.isspace())

    def _handle_comment(self):
        self._begin()
        self._consume_while(lambda c: c != "\n")
        self._add_token(TokenType.COMMENT)

    def _handle_string(self):
        self._begin()
        self._advance()
        while self.has_more_chars and self.char != '"':
            if self.char == "\\":
                self._advance()
                if not self.has_more_chars:
                    break
            self._advance()
        if not self.has_more_chars:
            self._add_error("Unterminated string")
            return
        self._advance()
        self._add_token(TokenType.STRING)

    def _handle_template(self):
        self._begin()
        if self._peek(2) == "=":
            self._advance(3)
            self._add_token(TokenType.JS_EXPRESSION_OPEN)
        else:
            self._advance(2)
            self._add_token(TokenType.JS_OPEN)
        end = self.input.find(TEMPLATE_CLOSE, self.position)
        self._begin()
        if end < 0:
            self._consume_while(lambda c: True)
            self._add_error("Unterminated template block")
            return
        self._advance(end - self.position)
        self._add_token(TokenType.CODE)
        self._begin()
        self._advance(len(TEMPLATE_CLOSE))
        self._add_token(TokenType.JS_CLOSE)

    def _handle_punctuation(self):
        self._begin()
        token_type = PUNCTUATION[self.char]
        self._advance()
        self._add_token(token_type)

    def _handle_number(self):
        self._begin()
        match = NUMBER_PATTERN.match(self.input, self.position)
        assert match is not None
        self._advance(match.end() - self.position)
        self._add_token(TokenType.NUMBER)

    def _handle_identifier(self):
        self._begin()
        self._consume_while(lambda c: c.isalnum() or c in {"_", "-"})
        self._add_token(self._get_identifier_token_type(self.current_value))

    def _handle_unexpected_char(self):
        char = self.char
        self._begin()
        self._advance()
        self._add_error(f"Unexpected character '{char}'")
