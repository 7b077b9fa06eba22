"""CLI for beautifying Webots PROTO files."""

from __future__ import annotations

import argparse
import shlex
import sys
from pathlib import Path
from typing import Optional, Sequence

from wbproto_beautifier import BeautifierConfig, BeautifierError, beautify
from wbproto_beautifier.code_formatter import DEFAULT_CONFIG as CODE_FORMATTER_DEFAULTS
from wbproto_beautifier.logger import Logger

LONG_ABOUT = """
wbproto-beautifier formats and beautifies Webots PROTO code.

This beautifier is quite opinionated and does not offer many options. It
aligns the PROTO interface in columns, keeps one-line constructs on one line
and passes embedded JavaScript templates through clang-format.
"""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=LONG_ABOUT, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="File(s) to beautify. If more than one file is passed, --inplace is implied. "
        "If no file is given, reads from stdin.",
    )
    parser.add_argument(
        "--inplace",
        action="store_true",
        help="Format files in place instead of printing to stdout.",
    )
    parser.add_argument(
        "--spaces",
        type=int,
        default=2,
        help="Number of spaces per indentation level (default: 2).",
    )
    parser.add_argument(
        "--indent-body",
        action="store_true",
        help="Indent the PROTO body one level (default: body starts at column 0).",
    )
    parser.add_argument(
        "--code-formatter",
        default=shlex.join(CODE_FORMATTER_DEFAULTS["command"]),
        help="Command used to format embedded JavaScript (default: %(default)s).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=CODE_FORMATTER_DEFAULTS["timeout"],
        help="Seconds to wait for the code formatter (default: %(default)s).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress to stderr.",
    )
    args = parser.parse_args(argv)
    if args.spaces < 0:
        parser.error("--spaces must not be negative")
    return args


def read_source(path: Optional[Path]) -> str:
    if path is None:
        data = sys.stdin.buffer.read()
    else:
        data = path.read_bytes()
    return data.decode("utf-8-sig")


def build_config(args: argparse.Namespace) -> BeautifierConfig:
    return {
        "spaces_per_level": args.spaces,
        "indent_proto_body": args.indent_body,
        "enable_logger": args.verbose,
        "code_formatter_command": shlex.split(args.code_formatter),
        "code_formatter_timeout": args.timeout,
    }


def beautify_file(path: Path, config: BeautifierConfig) -> bool:
    print(f"Formatting file {path}: ", end="")
    try:
        result = beautify(read_source(path), config)
    except (BeautifierError, OSError, UnicodeDecodeError) as exc:
        print(f"could not format ({exc})")
        return False
    print("file formatted ", end="")
    try:
        path.write_text(result, encoding="utf-8")
    except OSError:
        print("but could not write back.")
        return False
    print("and overwritten.")
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logger = Logger(config={"name": "wbproto_beautifier.cli", "is_enabled": args.verbose}).logger
    config = build_config(args)
    files = [Path(f) for f in args.files]
    inplace = bool(files) and (args.inplace or len(files) > 1)

    if inplace:
        logger.info(f"Formatting {len(files)} file(s) in place")
        results = [beautify_file(path, config) for path in files]
        return 0 if all(results) else 1

    try:
        result = beautify(read_source(files[0] if files else None), config)
    except (BeautifierError, OSError, UnicodeDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
