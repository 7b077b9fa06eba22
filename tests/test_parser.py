import pytest

from wbproto_beautifier import NodeKind, ParserManager, parse
from wbproto_beautifier.lexer import Lexer, TokenType
from wbproto_beautifier.parser import ParseException, Parser


def test_proto_interface():
    tree = parse("PROTO X [ field SFFloat a 1 ]{}")
    assert tree.sexp() == (
        "(document (proto (identifier) (field (field_kind) (field_type (identifier)) (identifier) (number))))"
    )
    proto = tree.children[0]
    assert proto.child_by_field_name("name").text("PROTO X [ field SFFloat a 1 ]{}") == "X"


def test_field_parts_are_named():
    source = "PROTO X [ hiddenField MFString names [] ]{}"
    field = parse(source).children[0].children_of_kind(NodeKind.FIELD)[0]
    parts = {name: field.child_by_field_name(name).text(source) for name in ("kind", "type", "name", "value")}
    assert parts == {"kind": "hiddenField", "type": "MFString", "name": "names", "value": "[]"}


def test_field_restrictions_stay_in_the_type():
    source = 'PROTO X [ field SFString{"a", "b"} mode "a" ]{}'
    field = parse(source).children[0].children_of_kind(NodeKind.FIELD)[0]
    field_type = field.child_by_field_name("type")
    assert field_type.text(source) == 'SFString{"a", "b"}'
    assert field_type.sexp() == "(field_type (identifier) (string) (string))"


def test_def_node_with_properties():
    source = "DEF A Solid { translation 0 0 1 children [ USE B ] }"
    node = parse(source).children[0]
    assert node.sexp() == (
        "(node (identifier) (identifier) "
        "(property (identifier) (value (number) (number) (number))) "
        "(property (identifier) (vector (node (identifier)))))"
    )
    assert node.child_by_field_name("name").text(source) == "A"
    assert node.child_by_field_name("type").text(source) == "Solid"


def test_use_node_has_no_type():
    node = parse("Group { children [ USE B ] }").children[0]
    use = node.children[2].child_by_field_name("value").children[1]
    assert use.child(0).kind is NodeKind.USE
    assert use.child_by_field_name("type") is None


def test_is_property():
    assert parse("Solid { translation IS translation }").sexp() == (
        "(document (node (identifier) (property (identifier) (identifier))))"
    )


def test_vector_values_group_per_row():
    source = "Coordinate { point [\n0 0 0, 1 1 1\n2 2 2\n] }"
    vector = parse(source).children[0].children[2].child_by_field_name("value")
    assert vector.sexp() == (
        "(vector (value (number) (number) (number)) "
        "(value (number) (number) (number)) "
        "(value (number) (number) (number)))"
    )


def test_property_values_group_across_rows():
    value = parse("Solid { translation 1\n2 3 }").children[0].children[2].child_by_field_name("value")
    assert value.kind is NodeKind.VALUE
    assert len(value.children) == 3


def test_template_expression_value():
    assert parse("Solid { name %<= fields.name.value >% }").sexp() == (
        "(document (node (identifier) (property (identifier) (javascript_expression (code)))))"
    )


def test_template_block_in_body():
    tree = parse("PROTO X [ ]{ %< let a = 1; >% }")
    block = tree.children[0].children_of_kind(NodeKind.JAVASCRIPT_BLOCK)[0]
    assert block.child_by_field_name("code").text("PROTO X [ ]{ %< let a = 1; >% }") == " let a = 1; "


def test_extern_declaration():
    source = 'IMPORTABLE EXTERNPROTO "a.proto"'
    extern = parse(source).children[0]
    assert extern.sexp() == "(extern (string))"
    assert extern.child_by_field_name("url").text(source) == '"a.proto"'


def test_null_value():
    assert parse("Solid { boundingObject NULL }").sexp() == (
        "(document (node (identifier) (property (identifier) (NULL))))"
    )


def test_document_spans_the_whole_source():
    source = "# a\nSolid {}\n"
    tree = parse(source)
    assert tree.start_offset == 0
    assert tree.end_offset == len(source)
    assert [child.kind for child in tree.children] == [NodeKind.COMMENT, NodeKind.NODE]


def test_recovers_after_a_broken_property():
    tree = parse("Solid { translation }\nTransform { }")
    assert tree.sexp() == "(document (node (identifier) (ERROR)) (node (identifier)))"


def test_broken_field_is_an_error():
    tree = parse("PROTO X [ field SFFloat ]{}")
    error = tree.find_first_error()
    assert error is not None
    assert error.start_point.row == 0
    assert error.text("PROTO X [ field SFFloat ]{}") == "field SFFloat"


def test_unexpected_character_position():
    error = parse("Solid { $ }").find_first_error()
    assert (error.start_point.row, error.start_point.column) == (0, 8)


def test_unclosed_node_becomes_an_error():
    tree = parse("Solid {\n translation 1 0 0\n")
    assert tree.children[0].is_error


def test_token_stream_must_end_with_eof():
    with pytest.raises(ValueError):
        Parser([], "")


def test_deferred_parse():
    tokens = Lexer("Solid {}").tokens
    parser = Parser(tokens, "Solid {}", config={"parse": False})
    assert not hasattr(parser, "parsed_tree")
    assert parser.parse_tokens().sexp() == "(document (node (identifier)))"


def test_consume_reports_position():
    parser = Parser(Lexer("a\n  ]").tokens, "a\n  ]", config={"parse": False})
    parser.advance()
    with pytest.raises(ParseException, match="at line 2, column 3"):
        parser.consume(TokenType.IDENTIFIER)


def test_parser_manager_wires_configs():
    manager = ParserManager("Solid {}", config={"lexer_config": {"enable_logger": False}})
    assert manager.tree.sexp() == "(document (node (identifier)))"
