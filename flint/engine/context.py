#!filepath: flint/engine/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from flint.spec.models import TestCase

if TYPE_CHECKING:
    from flint.engine.assertions import AssertionOutcome


class ExecutionState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STEPPING = "stepping"
    COMPLETED = "completed"


@dataclass
class Lane:
    """
    One test inside a timeline run, together with what has been observed for it.

    Sequential runs have a single lane; parallel waves merge several.
    """

    test: TestCase
    outcomes: List["AssertionOutcome"] = field(default_factory=list)
    commands: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.test.name


@dataclass
class ExecutionContext:
    """
    ExecutionContext = the single owned run-time state of one timeline run

    Design principles:
    - created by the runner, passed explicitly to scheduler / controller
    - only the primary sequence mutates it
    - no module-level state
    """

    label: str

    # -------------------------
    # position in the timeline
    # -------------------------
    tick: int = -1
    ticks_elapsed: int = 0

    # -------------------------
    # control
    # -------------------------
    state: ExecutionState = ExecutionState.RUNNING
    paused_at: Optional[int] = None

    # -------------------------
    # abort flags
    # -------------------------
    aborted: bool = False
    abort_reason: Optional[str] = None

    @property
    def stepping(self) -> bool:
        return self.state is ExecutionState.STEPPING

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason

