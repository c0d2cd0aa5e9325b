# flint/utils/errors.py
from __future__ import annotations


class FlintError(RuntimeError):
    """Base class of every error raised by the runner."""


class UserInputError(FlintError):
    """
    Raised for invalid user-provided config (paths, addresses, flags).
    Should NOT print traceback.
    """


class SpecError(FlintError):
    """
    Invalid test document: unknown action, mismatched tick/value arrays,
    missing or cyclic dependency.

    The affected test is skipped; the run continues.
    """

    def __init__(self, message: str, *, test: str | None = None, path=None):
        self.test = test
        self.path = path
        where = test or (str(path) if path is not None else None)
        super().__init__(f"{where}: {message}" if where else message)


class SyncTimeout(FlintError):
    """The simulation did not confirm a step within the bounded wait."""

    def __init__(self, target_tick: int | None, timeout: float):
        self.target_tick = target_tick
        self.timeout = timeout
        super().__init__(
            f"tick step not confirmed within {timeout:.2f}s "
            f"(waiting for tick {target_tick})"
        )


class ConnectionLost(FlintError):
    """The bot client is no longer connected. Fatal for the whole run."""
