# tests/conftest.py
from __future__ import annotations

import threading
import time
from typing import Iterable, Iterator

import pytest
from loguru import logger

from flint.client.local import LocalSimulation
from flint.config.control_config import ControlConfig
from flint.config.run_config import RunConfig
from flint.engine.breakpoint import BreakpointController, ConsoleListener, ControlChannel
from flint.runner.runner import TestRunner
from flint.spec.loader import parse_test


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def sim() -> Iterator[LocalSimulation]:
    s = LocalSimulation()
    s.connect()
    yield s
    s.disconnect()


@pytest.fixture
def make_test():
    """
    Factory: dict fragments -> validated TestCase.

        t = make_test("basic", [{"at": 0, "do": "place", ...}])
    """

    def _make(name: str = "t", timeline=None, **extra):
        doc = {"flintVersion": "0.1", "name": name, "timeline": timeline or []}
        doc.update(extra)
        return parse_test(doc)

    return _make


@pytest.fixture
def run_cfg() -> RunConfig:
    return RunConfig(sync_timeout=1.0, assert_settle=0.0)


@pytest.fixture
def quiet_control() -> ControlConfig:
    return ControlConfig(console_control=False, chat_control=False)


class ScriptedConsole:
    """
    Stand-in for stdin: yields each token only once the channel is armed,
    the way an operator answers a prompt.
    """

    def __init__(self, channel: ControlChannel, tokens: Iterable[str]):
        self.channel = channel
        self.tokens = list(tokens)
        self.consumed = 0
        self.done = threading.Event()

    def __iter__(self):
        for token in self.tokens:
            deadline = time.monotonic() + 5
            while not self.channel.armed:
                if time.monotonic() > deadline:
                    return
                time.sleep(0.001)
            self.consumed += 1
            yield token + "\n"
        self.done.set()


@pytest.fixture
def scripted_controller():
    """
    Factory: console-driven BreakpointController answering with ``tokens``.
    """

    def _make(tokens):
        channel = ControlChannel()
        console = ScriptedConsole(channel, tokens)
        controller = BreakpointController(channel, console=ConsoleListener(channel, console))
        return controller, console

    return _make


@pytest.fixture
def make_runner(sim, run_cfg, quiet_control):
    def _make(controller=None, run=None, control=None, client=None):
        return TestRunner(
            client or sim,
            run or run_cfg,
            control or quiet_control,
            controller=controller,
        )

    return _make
