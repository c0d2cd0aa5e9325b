#!filepath: flint/engine/assertions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flint.client.base import BlockState, BotClient, strip_namespace
from flint.spec.models import Assertion, BlockIs, Position, StateIs
from flint.utils.logger import logs


@dataclass(frozen=True)
class AssertionOutcome:
    """
    Result of one assertion at one tick. A failure is a value, never an error.
    """

    tick: int
    assertion: Assertion
    passed: bool
    expected: str
    observed: Optional[str]

    @property
    def pos(self) -> Position:
        return self.assertion.pos

    @property
    def kind(self) -> str:
        return "block" if isinstance(self.assertion, BlockIs) else f"state {self.assertion.prop}"

    def describe(self) -> str:
        verdict = "ok" if self.passed else "FAIL"
        return (
            f"tick {self.tick}: {self.kind} at [{self.pos}] "
            f"expected={self.expected} observed={self.observed} -> {verdict}"
        )


class AssertionEngine:
    """
    Expected-vs-observed comparison.

    ``evaluate`` is pure. ``check`` reads the world through the client and,
    on a mismatch, gives a late block update up to ``settle`` seconds before
    the failure is recorded.
    """

    def __init__(self, client: BotClient, settle: float = 0.25):
        self.client = client
        self.settle = settle

    def evaluate(self, assertion: Assertion, tick: int, observed: Optional[BlockState]) -> AssertionOutcome:
        if isinstance(assertion, BlockIs):
            actual = observed.id if observed is not None else None
            passed = actual is not None and strip_namespace(actual) == strip_namespace(assertion.expected)
            return AssertionOutcome(tick, assertion, passed, assertion.expected, actual)

        if isinstance(assertion, StateIs):
            expected = assertion.expected_at(tick)
            actual = observed.get(assertion.prop) if observed is not None else None
            return AssertionOutcome(tick, assertion, actual == expected, expected, actual)

        raise TypeError(f"unsupported assertion: {assertion!r}")

    def check(self, assertion: Assertion, tick: int) -> AssertionOutcome:
        outcome = self.evaluate(assertion, tick, self.client.current_block_state(assertion.pos))

        if not outcome.passed and self.settle > 0:
            changed = self.client.wait_for_block_change(assertion.pos, self.settle)
            if changed is not None:
                outcome = self.evaluate(assertion, tick, changed)

        if outcome.passed:
            logs.info(f"[Assert] {outcome.describe()}")
        else:
            logs.warning(f"[Assert] {outcome.describe()}")
        return outcome
