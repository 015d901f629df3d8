"""
Shared fixtures.

Every test gets a mocked console and a fake process, the same way the library
reaches them at call time through `lambda_logger.system`, and the global error
interceptor is reset afterwards so each test starts from a clean process.
"""

from unittest.mock import Mock

import pytest

from lambda_logger import system
from lambda_logger.formatting import parse_log_line
from lambda_logger.interceptor import interceptor


class FakeProcess(system.Process):
    """A Process that never touches the interpreter hooks or exits."""

    def __init__(self):
        super().__init__()
        self.bound = False
        self.exit = Mock()

    def bind(self):
        self.bound = True


@pytest.fixture(autouse=True)
def console(monkeypatch):
    fake = Mock(spec=system.Console)
    monkeypatch.setattr(system, "console", fake)
    return fake


@pytest.fixture(autouse=True)
def process(monkeypatch):
    fake = FakeProcess()
    monkeypatch.setattr(system, "process", fake)
    yield fake
    interceptor.reset()


@pytest.fixture
def get_log(console):
    """Returns the line written to `channel` by the `index`-th call."""

    def get(channel="info", index=0):
        return getattr(console, channel).call_args_list[index][0][0]

    return get


@pytest.fixture
def get_parsed_log(get_log):
    """Returns the structured payload of a written line."""

    def get(channel="info", index=0):
        return parse_log_line(get_log(channel, index))

    return get
