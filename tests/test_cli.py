import io

import pytest

import format_proto

UGLY = 'Solid {\nname "a"\n}'
PRETTY = 'Solid {\n  name "a"\n}\n'


@pytest.fixture
def stdin(monkeypatch):
    def _feed(data: bytes):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))

    return _feed


def test_stdin_to_stdout(stdin, capsys):
    stdin(UGLY.encode())
    assert format_proto.main([]) == 0
    assert capsys.readouterr().out == PRETTY


def test_byte_order_mark_is_dropped(stdin, capsys):
    stdin(b"\xef\xbb\xbf" + UGLY.encode())
    assert format_proto.main([]) == 0
    assert capsys.readouterr().out == PRETTY


def test_single_file_prints_to_stdout(tmp_path, capsys):
    path = tmp_path / "a.proto"
    path.write_text(UGLY)
    assert format_proto.main([str(path)]) == 0
    assert capsys.readouterr().out == PRETTY
    assert path.read_text() == UGLY


def test_inplace(tmp_path, capsys):
    path = tmp_path / "a.proto"
    path.write_text(UGLY)
    assert format_proto.main(["--inplace", str(path)]) == 0
    assert path.read_text() == PRETTY
    assert capsys.readouterr().out == f"Formatting file {path}: file formatted and overwritten.\n"


def test_several_files_imply_inplace(tmp_path, capsys):
    paths = [tmp_path / "a.proto", tmp_path / "b.proto"]
    for path in paths:
        path.write_text(UGLY)
    assert format_proto.main([str(p) for p in paths]) == 0
    assert [p.read_text() for p in paths] == [PRETTY, PRETTY]


def test_inplace_failure_leaves_file_untouched(tmp_path, capsys):
    good, bad = tmp_path / "good.proto", tmp_path / "bad.proto"
    good.write_text(UGLY)
    bad.write_text("Solid { $ }")
    assert format_proto.main([str(bad), str(good)]) == 1
    out = capsys.readouterr().out
    assert f"Formatting file {bad}: could not format (Parsed file contains errors (at line 1))" in out
    assert bad.read_text() == "Solid { $ }"
    assert good.read_text() == PRETTY


def test_stdout_failure(tmp_path, capsys):
    path = tmp_path / "bad.proto"
    path.write_text("PROTO X [ field ]{}")
    assert format_proto.main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("error: Parsed file contains errors")


def test_missing_file(tmp_path, capsys):
    assert format_proto.main([str(tmp_path / "missing.proto")]) == 1
    assert capsys.readouterr().err.startswith("error:")


def test_options(tmp_path, capsys):
    path = tmp_path / "a.proto"
    path.write_text("PROTO X [\n]\n{\nSolid {\nname \"a\"\n}\n}\n")
    assert format_proto.main(["--spaces", "4", "--indent-body", str(path)]) == 0
    assert capsys.readouterr().out == 'PROTO X [\n]\n{\n    Solid {\n        name "a"\n    }\n}\n'


def test_build_config_splits_the_command():
    args = format_proto.parse_args(["--code-formatter", "clang-format --style=file", "--timeout", "5"])
    config = format_proto.build_config(args)
    assert config["code_formatter_command"] == ["clang-format", "--style=file"]
    assert config["code_formatter_timeout"] == 5.0


def test_negative_spaces_are_rejected():
    with pytest.raises(SystemExit):
        format_proto.parse_args(["--spaces", "-1"])
