#!filepath: flint/config/run_config.py
from __future__ import annotations

from pydantic import BaseModel, Field


class RunConfig(BaseModel):
    """
    What to run and how the tick engine waits on the simulation.
    """

    # test file or directory
    target: str | None = None
    recursive: bool = False

    # merge runnable tests into one offset timeline
    parallel: bool = False
    spacing: int = Field(default=16, ge=0)

    # bounded wait for "tick step" confirmation
    sync_timeout: float = Field(default=10.0, gt=0)

    # bounded wait for a late block update before an assertion fails
    assert_settle: float = Field(default=0.25, ge=0)
