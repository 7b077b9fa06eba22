import pytest

from wbproto_beautifier import beautify


class FakeCodeFormatter:
    """Stands in for clang-format: strips every line unless told otherwise."""

    def __init__(self, outputs=None, error=None):
        self.outputs = outputs or {}
        self.error = error
        self.calls = []

    def __call__(self, code):
        self.calls.append(code)
        if self.error is not None:
            raise self.error
        key = code.strip()
        if key in self.outputs:
            return self.outputs[key]
        return "\n".join(line.strip() for line in key.splitlines())


@pytest.fixture
def fake_formatter():
    return FakeCodeFormatter()


@pytest.fixture
def fmt(fake_formatter):
    def _fmt(code, **config):
        return beautify(code, config=config, code_formatter=fake_formatter)

    return _fmt
