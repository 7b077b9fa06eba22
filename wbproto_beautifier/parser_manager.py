from typing import Optional, NotRequired, TypedDict
from wbproto_beautifier.lexer import Lexer, LexerConfig
from wbproto_beautifier.nodes import SyntaxNode
from wbproto_beautifier.parser import Parser, ParserConfig
from wbproto_beautifier.utils import resolve_config


class ParserManagerConfig(TypedDict):
    lexer_config: NotRequired[LexerConfig]
    parser_config: NotRequired[ParserConfig]


class ParserManagerConfigRequired(TypedDict):
    lexer_config: LexerConfig
    parser_config: ParserConfig


DEFAULT_CONFIG: ParserManagerConfigRequired = {
    "lexer_config": {},
    "parser_config": {},
}


class ParserManager:
    def __init__(self, source: str, config: Optional[ParserManagerConfig] = None):
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.source = source
        self.lexer = Lexer(input=self.source, config=self.config["lexer_config"])
        self.parser = Parser(tokens=self.lexer.tokens, source=self.source, config=self.config["parser_config"])

    @property
    def tree(self) -> SyntaxNode:
        return self.parser.parsed_tree
