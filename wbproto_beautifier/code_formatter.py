"""Bridge to the external formatter used for embedded JavaScript templates."""

from __future__ import annotations

import subprocess
from typing import Callable, NotRequired, Optional, TypedDict

from wbproto_beautifier.errors import CodeFormatterError
from wbproto_beautifier.logger import Logger
from wbproto_beautifier.utils import resolve_config

CodeFormatter = Callable[[str], str]


class ExternalCodeFormatterConfig(TypedDict):
    command: NotRequired[list[str]]
    timeout: NotRequired[Optional[float]]
    enable_logger: NotRequired[bool]


class ExternalCodeFormatterConfigRequired(TypedDict):
    command: list[str]
    timeout: Optional[float]
    enable_logger: bool


DEFAULT_CONFIG: ExternalCodeFormatterConfigRequired = {
    "command": ["clang-format", "-assume-filename", "code.js"],
    "timeout": 30.0,
    "enable_logger": False,
}


class ExternalCodeFormatter:
    """Pipes code through a formatter process: text in, formatted text out.

    One process is run per distinct code snippet, results are memoised for the
    lifetime of the instance.
    """

    def __init__(self, config: Optional[ExternalCodeFormatterConfig] = None):
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        if not self.config["command"]:
            raise ValueError("Code formatter command must not be empty")
        self.logger = Logger(
            config={"name": "wbproto_beautifier.code_formatter", "is_enabled": self.config["enable_logger"]}
        ).logger
        self._cache: dict[str, str] = {}

    @property
    def program(self) -> str:
        return self.config["command"][0]

    def __call__(self, code: str) -> str:
        if code not in self._cache:
            self._cache[code] = self._run(code)
        return self._cache[code]

    def _run(self, code: str) -> str:
        command = self.config["command"]
        timeout = self.config["timeout"]
        self.logger.debug(f"Running {' '.join(command)} on {len(code)} characters")
        try:
            completed = subprocess.run(
                command,
                input=code.encode("utf-8"),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CodeFormatterError(f"{self.program} is unresponsive (no answer after {timeout} seconds)") from e
        except OSError as e:
            raise CodeFormatterError(f"{self.program} command failed to start: {e}") from e

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise CodeFormatterError(f"{self.program} exited with status {completed.returncode}: {stderr}")
        try:
            return completed.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodeFormatterError(f"{self.program} output is not valid UTF-8") from e
