import pytest

from wbproto_beautifier.lexer import Lexer, LexerError, TokenType


def token_types(text):
    return [token.token_type for token in Lexer(text).tokens]


def test_proto_header_tokens():
    tokens = Lexer("PROTO Foo [ field SFFloat a 1.5e3 ]").tokens
    assert [(t.token_type, t.value) for t in tokens] == [
        (TokenType.KEYWORD, "PROTO"),
        (TokenType.IDENTIFIER, "Foo"),
        (TokenType.OPEN_BRACKET, "["),
        (TokenType.FIELD_KIND, "field"),
        (TokenType.IDENTIFIER, "SFFloat"),
        (TokenType.IDENTIFIER, "a"),
        (TokenType.NUMBER, "1.5e3"),
        (TokenType.CLOSE_BRACKET, "]"),
        (TokenType.EOF, ""),
    ]


def test_positions_are_zero_based():
    token = Lexer("a\n  b").tokens[1]
    assert (token.line, token.column, token.offset) == (1, 2, 4)
    assert (token.end_line, token.end_column, token.end_offset) == (1, 3, 5)


def test_comment_runs_to_end_of_line():
    tokens = Lexer("# hello world\nDEF").tokens
    assert tokens[0].token_type == TokenType.COMMENT
    assert tokens[0].value == "# hello world"
    assert tokens[1].token_type == TokenType.KEYWORD


def test_string_with_escaped_quotes_is_one_token():
    tokens = Lexer('"a \\"b\\"" x').tokens
    assert tokens[0].token_type == TokenType.STRING
    assert tokens[0].value == '"a \\"b\\""'
    assert tokens[1].value == "x"


@pytest.mark.parametrize("text", ["-1", "+2", ".5", "0x1F", "3.", "1e-3", "42"])
def test_numbers(text):
    assert token_types(text) == [TokenType.NUMBER, TokenType.EOF]


def test_reserved_words():
    assert token_types("TRUE FALSE NULL IS hiddenField") == [
        TokenType.BOOLEAN,
        TokenType.BOOLEAN,
        TokenType.NULL,
        TokenType.KEYWORD,
        TokenType.FIELD_KIND,
        TokenType.EOF,
    ]


def test_template_expression():
    tokens = Lexer("%<= fields.x.value >%").tokens
    assert [(t.token_type, t.value) for t in tokens[:3]] == [
        (TokenType.JS_EXPRESSION_OPEN, "%<="),
        (TokenType.CODE, " fields.x.value "),
        (TokenType.JS_CLOSE, ">%"),
    ]


def test_template_block_spanning_lines():
    tokens = Lexer("%<\nif (a) {\n}\n>%").tokens
    assert tokens[0].token_type == TokenType.JS_OPEN
    assert tokens[1].value == "\nif (a) {\n}\n"
    assert tokens[2].token_type == TokenType.JS_CLOSE
    assert tokens[2].line == 3


def test_unterminated_template_is_an_error_token():
    assert token_types("%< abc") == [TokenType.JS_OPEN, TokenType.ERROR, TokenType.EOF]


def test_unterminated_string_is_an_error_token():
    assert token_types('"abc') == [TokenType.ERROR, TokenType.EOF]


def test_unexpected_character_is_an_error_token():
    tokens = Lexer("a $ b").tokens
    assert tokens[1].token_type == TokenType.ERROR
    assert tokens[1].value == "$"
    assert tokens[2].value == "b"


def test_tokenize_can_be_deferred():
    lexer = Lexer("a", config={"tokenize": False})
    assert lexer.tokens == []
    assert [t.token_type for t in lexer.tokenize()] == [TokenType.IDENTIFIER, TokenType.EOF]


def test_advancing_past_the_end_raises():
    lexer = Lexer("", config={"tokenize": False})
    with pytest.raises(LexerError):
        lexer._advance()


def test_unknown_config_key_is_rejected():
    with pytest.raises(KeyError):
        Lexer("a", config={"strip_comments": True})
