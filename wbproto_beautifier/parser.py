from typing import Callable, List, NotRequired, Optional, TypedDict
from wbproto_beautifier.lexer import Token, TokenType
from wbproto_beautifier.nodes import NodeKind, Point, SyntaxNode
from wbproto_beautifier.utils import resolve_config
from wbproto_beautifier.logger import Logger


class ParseException(Exception):
    def __init__(self, message: str, token: Optional[Token] = None):
        self.message = message
        self.token = token
        if token:
            message = f"{message} at line {token.line + 1}, column {token.column + 1}"
        super().__init__(message)


class ParserConfig(TypedDict):
    parse: NotRequired[bool]
    enable_logger: NotRequired[bool]


class ParserConfigRequired(TypedDict):
    parse: bool
    enable_logger: bool


DEFAULT_CONFIG: ParserConfigRequired = {"parse": True, "enable_logger": False}

LEAF_KINDS = {
    TokenType.IDENTIFIER: NodeKind.IDENTIFIER,
    TokenType.FIELD_KIND: NodeKind.FIELD_KIND,
    TokenType.NUMBER: NodeKind.NUMBER,
    TokenType.STRING: NodeKind.STRING,
    TokenType.BOOLEAN: NodeKind.BOOLEAN,
    TokenType.NULL: NodeKind.NULL,
    TokenType.OPEN_BRACKET: NodeKind.L_BRACKET,
    TokenType.CLOSE_BRACKET: NodeKind.R_BRACKET,
    TokenType.OPEN_BRACE: NodeKind.L_BRACE,
    TokenType.CLOSE_BRACE: NodeKind.R_BRACE,
    TokenType.COMMA: NodeKind.COMMA,
    TokenType.COMMENT: NodeKind.COMMENT,
    TokenType.JS_OPEN: NodeKind.JS_OPEN,
    TokenType.JS_EXPRESSION_OPEN: NodeKind.JS_EXPRESSION_OPEN,
    TokenType.CODE: NodeKind.CODE,
    TokenType.JS_CLOSE: NodeKind.JS_CLOSE,
    TokenType.ERROR: NodeKind.ERROR,
}

SCALAR_TOKENS = {TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN, TokenType.JS_EXPRESSION_OPEN}

FIELD_PARTS = ("kind", "type", "name", "value")


class Parser:
    """Builds a concrete syntax tree from lexer tokens.

    Items that cannot be parsed are kept in the tree as ERROR nodes and
    parsing resumes with the next item, the same way a tree-sitter grammar
    would recover.
    """

    def __init__(self, tokens: List[Token], source: str, config: Optional[ParserConfig] = None):
        if not tokens or tokens[-1].token_type != TokenType.EOF:
            raise ValueError("Token stream must end with an EOF token")
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(
            config={"name": "wbproto_beautifier.parser", "is_enabled": self.config["enable_logger"]}
        ).logger
        self.tokens = tokens
        self.source = source
        self.position = 0
        if self.config["parse"]:
            self.parsed_tree = self.parse_tokens()
            self.logger.debug("Tokens parsed into syntax tree")

    @property
    def current_token(self) -> Token:
        return self.tokens[self.position]

    @property
    def next_token(self) -> Token:
        return self.lookahead()

    def lookahead(self, distance: int = 1) -> Token:
        if 0 <= self.position + distance < len(self.tokens):
            return self.tokens[self.position + distance]
        return self.tokens[-1]

    def advance(self, steps: int = 1) -> None:
        self.position = min(self.position + steps, len(self.tokens) - 1)

    def expect(self, expected_type: TokenType | List[TokenType], expected_value: Optional[str] = None):
        if not isinstance(expected_type, list):
            expected_type = [expected_type]
        if self.current_token.token_type not in expected_type:
            names = ", ".join(t.name for t in expected_type)
            raise ParseException(
                f"Expected {names}, but got {self.current_token.token_type.name}",
                self.current_token,
            )
        elif expected_value and self.current_token.value != expected_value:
            raise ParseException(
                f"Expected '{expected_value}', but got '{self.current_token.value}'",
                self.current_token,
            )

    def consume(self, expected_type: TokenType | List[TokenType], expected_value: Optional[str] = None) -> Token:
        current_token = self.current_token
        self.expect(expected_type=expected_type, expected_value=expected_value)
        self.advance()
        self.logger.debug(f"Consumed token {current_token}")
        return current_token

    # Tree construction -------------------------------------------------------
    def _leaf(self, token: Token, kind: Optional[NodeKind] = None) -> SyntaxNode:
        if kind is None:
            kind = NodeKind(token.value) if token.token_type == TokenType.KEYWORD else LEAF_KINDS[token.token_type]
        return SyntaxNode(
            kind=kind,
            start_offset=token.offset,
            end_offset=token.end_offset,
            start_point=Point(row=token.line, column=token.column),
            end_point=Point(row=token.end_line, column=token.end_column),
        )

    def _branch(self, kind: NodeKind, children: List[SyntaxNode], field_names: Optional[dict[str, int]] = None):
        first, last = children[0], children[-1]
        return SyntaxNode(
            kind=kind,
            start_offset=first.start_offset,
            end_offset=last.end_offset,
            start_point=first.start_point,
            end_point=last.end_point,
            children=children,
            field_names=field_names or {},
        )

    def _error(self, start: int) -> SyntaxNode:
        if self.position == start and self.current_token.token_type != TokenType.EOF:
            self.advance()
        consumed = self.tokens[start : self.position]
        first = consumed[0] if consumed else self.current_token
        last = consumed[-1] if consumed else self.current_token
        return SyntaxNode(
            kind=NodeKind.ERROR,
            start_offset=first.offset,
            end_offset=last.end_offset,
            start_point=Point(row=first.line, column=first.column),
            end_point=Point(row=last.end_line, column=last.end_column),
        )

    def _parse_sequence(self, parse_item: Callable[[], SyntaxNode], closing: Optional[TokenType]) -> List[SyntaxNode]:
        items: List[SyntaxNode] = []
        while self.current_token.token_type not in (closing, TokenType.EOF):
            start = self.position
            try:
                items.append(parse_item())
            except ParseException as e:
                self.logger.warning(f"Recovering from parse error: {e}")
                items.append(self._error(start))
        return items

    # Lookahead helpers -------------------------------------------------------
    def _at_keyword(self, *values: str) -> bool:
        return self.current_token.token_type == TokenType.KEYWORD and self.current_token.value in values

    def _at_node(self) -> bool:
        if self._at_keyword("DEF", "USE"):
            return True
        return self.current_token.token_type == TokenType.IDENTIFIER and self.next_token.token_type == TokenType.OPEN_BRACE

    def _at_scalar(self) -> bool:
        return self.current_token.token_type in SCALAR_TOKENS

    # Grammar -----------------------------------------------------------------
    def parse_tokens(self) -> SyntaxNode:
        self.logger.info("Parsing document")
        children = self._parse_sequence(self._parse_top_level, None)
        eof = self.current_token
        return SyntaxNode(
            kind=NodeKind.DOCUMENT,
            start_offset=0,
            end_offset=eof.offset,
            start_point=Point(row=0, column=0),
            end_point=Point(row=eof.line, column=eof.column),
            children=children,
        )

    def _parse_top_level(self) -> SyntaxNode:
        token = self.current_token
        if token.token_type == TokenType.COMMENT:
            return self._leaf(self.consume(TokenType.COMMENT))
        if self._at_keyword("EXTERNPROTO", "IMPORTABLE"):
            return self._parse_extern()
        if self._at_keyword("PROTO"):
            return self._parse_proto()
        if self._at_node():
            return self._parse_node()
        raise ParseException(f"Unexpected {token.token_type.name} at top level", token)

    def _parse_extern(self) -> SyntaxNode:
        children = []
        if self._at_keyword("IMPORTABLE"):
            children.append(self._leaf(self.consume(TokenType.KEYWORD, "IMPORTABLE")))
        children.append(self._leaf(self.consume(TokenType.KEYWORD, "EXTERNPROTO")))
        children.append(self._leaf(self.consume(TokenType.STRING)))
        return self._branch(NodeKind.EXTERN, children, {"url": len(children) - 1})

    def _parse_proto(self) -> SyntaxNode:
        children = [
            self._leaf(self.consume(TokenType.KEYWORD, "PROTO")),
            self._leaf(self.consume(TokenType.IDENTIFIER)),
            self._leaf(self.consume(TokenType.OPEN_BRACKET)),
        ]
        children.extend(self._parse_sequence(self._parse_interface_item, TokenType.CLOSE_BRACKET))
        children.append(self._leaf(self.consume(TokenType.CLOSE_BRACKET)))
        children.append(self._leaf(self.consume(TokenType.OPEN_BRACE)))
        children.extend(self._parse_sequence(self._parse_body_item, TokenType.CLOSE_BRACE))
        children.append(self._leaf(self.consume(TokenType.CLOSE_BRACE)))
        return self._branch(NodeKind.PROTO, children, {"name": 1})

    def _parse_interface_item(self) -> SyntaxNode:
        token = self.current_token
        if token.token_type == TokenType.COMMENT:
            return self._leaf(self.consume(TokenType.COMMENT))
        if token.token_type == TokenType.FIELD_KIND:
            return self._parse_field()
        raise ParseException(f"Unexpected {token.token_type.name} in PROTO interface", token)

    def _parse_body_item(self) -> SyntaxNode:
        token = self.current_token
        if token.token_type == TokenType.COMMENT:
            return self._leaf(self.consume(TokenType.COMMENT))
        if token.token_type == TokenType.JS_OPEN:
            return self._parse_template()
        if self._at_node():
            return self._parse_node()
        raise ParseException(f"Unexpected {token.token_type.name} in PROTO body", token)

    def _parse_field(self) -> SyntaxNode:
        children = [
            self._leaf(self.consume(TokenType.FIELD_KIND)),
            self._parse_field_type(),
            self._leaf(self.consume(TokenType.IDENTIFIER)),
            self._parse_value(),
        ]
        return self._branch(NodeKind.FIELD, children, {name: i for i, name in enumerate(FIELD_PARTS)})

    def _parse_field_type(self) -> SyntaxNode:
        type_token = self.consume(TokenType.IDENTIFIER)
        children = [self._leaf(type_token)]
        if self.current_token.token_type == TokenType.OPEN_BRACE:
            # restricted values, e.g. SFString{"a", "b"}
            depth = 0
            while True:
                token = self.current_token
                if token.token_type == TokenType.EOF:
                    raise ParseException("Unterminated field restrictions", type_token)
                if token.token_type == TokenType.OPEN_BRACE:
                    depth += 1
                elif token.token_type == TokenType.CLOSE_BRACE:
                    depth -= 1
                children.append(self._leaf(token))
                self.advance()
                if depth == 0:
                    break
        return self._branch(NodeKind.FIELD_TYPE, children)

    def _parse_node(self) -> SyntaxNode:
        if self._at_keyword("USE"):
            use = self._leaf(self.consume(TokenType.KEYWORD, "USE"))
            name = self._leaf(self.consume(TokenType.IDENTIFIER))
            return self._branch(NodeKind.NODE, [use, name], {"name": 1})
        children = []
        field_names = {}
        if self._at_keyword("DEF"):
            children.append(self._leaf(self.consume(TokenType.KEYWORD, "DEF")))
            field_names["name"] = len(children)
            children.append(self._leaf(self.consume(TokenType.IDENTIFIER)))
        field_names["type"] = len(children)
        children.append(self._leaf(self.consume(TokenType.IDENTIFIER)))
        children.append(self._leaf(self.consume(TokenType.OPEN_BRACE)))
        children.extend(self._parse_sequence(self._parse_node_item, TokenType.CLOSE_BRACE))
        children.append(self._leaf(self.consume(TokenType.CLOSE_BRACE)))
        return self._branch(NodeKind.NODE, children, field_names)

    def _parse_node_item(self) -> SyntaxNode:
        token = self.current_token
        if token.token_type == TokenType.COMMENT:
            return self._leaf(self.consume(TokenType.COMMENT))
        if token.token_type == TokenType.JS_OPEN:
            return self._parse_template()
        if token.token_type in (TokenType.IDENTIFIER, TokenType.FIELD_KIND):
            return self._parse_property()
        raise ParseException(f"Unexpected {token.token_type.name} in node body", token)

    def _parse_property(self) -> SyntaxNode:
        children = [self._leaf(self.consume([TokenType.IDENTIFIER, TokenType.FIELD_KIND]), NodeKind.IDENTIFIER)]
        if self._at_keyword("IS"):
            children.append(self._leaf(self.consume(TokenType.KEYWORD, "IS")))
            children.append(self._leaf(self.consume(TokenType.IDENTIFIER)))
        else:
            children.append(self._parse_value())
        return self._branch(NodeKind.PROPERTY, children, {"name": 0, "value": len(children) - 1})

    def _parse_value(self) -> SyntaxNode:
        token = self.current_token
        if token.token_type == TokenType.OPEN_BRACKET:
            return self._parse_vector()
        if token.token_type == TokenType.NULL:
            return self._leaf(self.consume(TokenType.NULL))
        if self._at_node():
            return self._parse_node()
        if self._at_scalar():
            return self._parse_scalars(same_row=False)
        raise ParseException(f"Expected a value, but got {token.token_type.name}", token)

    def _parse_scalar(self) -> SyntaxNode:
        if self.current_token.token_type == TokenType.JS_EXPRESSION_OPEN:
            return self._parse_template()
        return self._leaf(self.consume([TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN]))

    def _parse_scalars(self, same_row: bool) -> SyntaxNode:
        items = [self._parse_scalar()]
        while self._at_scalar() and (not same_row or self.current_token.line == items[-1].end_point.row):
            items.append(self._parse_scalar())
        return items[0] if len(items) == 1 else self._branch(NodeKind.VALUE, items)

    def _parse_vector(self) -> SyntaxNode:
        children = [self._leaf(self.consume(TokenType.OPEN_BRACKET))]
        children.extend(self._parse_sequence(self._parse_vector_item, TokenType.CLOSE_BRACKET))
        children.append(self._leaf(self.consume(TokenType.CLOSE_BRACKET)))
        return self._branch(NodeKind.VECTOR, children)

    def _parse_vector_item(self) -> SyntaxNode:
        token = self.current_token
        match token.token_type:
            case TokenType.COMMA | TokenType.COMMENT | TokenType.NULL:
                return self._leaf(self.consume(token.token_type))
            case TokenType.JS_OPEN:
                return self._parse_template()
            case TokenType.OPEN_BRACKET:
                return self._parse_vector()
        if self._at_node():
            return self._parse_node()
        if self._at_scalar():
            return self._parse_scalars(same_row=True)
        raise ParseException(f"Unexpected {token.token_type.name} in vector", token)

    def _parse_template(self) -> SyntaxNode:
        opener = self.consume([TokenType.JS_OPEN, TokenType.JS_EXPRESSION_OPEN])
        code = self.consume(TokenType.CODE)
        closer = self.consume(TokenType.JS_CLOSE)
        kind = (
            NodeKind.JAVASCRIPT_EXPRESSION
            if opener.token_type == TokenType.JS_EXPRESSION_OPEN
            else NodeKind.JAVASCRIPT_BLOCK
        )
        return self._branch(kind, [self._leaf(opener), self._leaf(code), self._leaf(closer)], {"code": 1})
