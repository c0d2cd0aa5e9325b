from .context import ExecutionContext, ExecutionState, Lane
from .tick_sync import TickSynchronizer
from .dispatcher import ActionDispatcher
from .assertions import AssertionEngine, AssertionOutcome
from .breakpoint import (
    BreakpointController,
    ChatListener,
    ConsoleListener,
    ControlChannel,
    ControlCommand,
    parse_token,
)
from .scheduler import TimelineScheduler

__all__ = [
    "ExecutionContext", "ExecutionState", "Lane",
    "TickSynchronizer", "ActionDispatcher",
    "AssertionEngine", "AssertionOutcome",
    "BreakpointController", "ChatListener", "ConsoleListener",
    "ControlChannel", "ControlCommand", "parse_token",
    "TimelineScheduler",
]
