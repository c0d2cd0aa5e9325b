#!filepath: flint/engine/scheduler.py
from __future__ import annotations

import bisect
from typing import List, Sequence

from flint.engine.assertions import AssertionEngine
from flint.engine.breakpoint import BreakpointController
from flint.engine.context import ExecutionContext, ExecutionState, Lane
from flint.engine.dispatcher import ActionDispatcher
from flint.engine.tick_sync import TickSynchronizer
from flint.utils.logger import logs


class TimelineScheduler:
    """
    TimelineScheduler (per-tick loop)

    For every tick from 0 to the last work tick:
        dispatch -> step(1) -> assert -> breakpoint check

    - ticks with no work are advanced without dispatch; consecutive idle
      ticks collapse into one ``step(n)`` unless the controller is stepping
    - the simulation is frozen before tick 0 and released at the end,
      including on abort
    - several lanes share one timeline (parallel waves): all lanes dispatch
      before the shared step, each lane asserts after it
    """

    def __init__(
        self,
        sync: TickSynchronizer,
        dispatcher: ActionDispatcher,
        assertions: AssertionEngine,
        controller: BreakpointController,
    ):
        self.sync = sync
        self.dispatcher = dispatcher
        self.assertions = assertions
        self.controller = controller

    def run(self, lanes: Sequence[Lane], ctx: ExecutionContext) -> None:
        work: List[int] = sorted({t for lane in lanes for t in lane.test.work_ticks()})
        breakpoints = {t for lane in lanes for t in lane.test.breakpoint_ticks}

        if not work:
            logs.info(f"[Scheduler] {ctx.label}: empty timeline")
            ctx.state = ExecutionState.COMPLETED
            return

        last = work[-1]
        work_set = set(work)
        logs.info(f"[Scheduler] {ctx.label}: {last + 1} tick(s), {len(work)} with work")

        self.sync.freeze()
        try:
            tick = 0
            while tick <= last:
                ctx.tick = tick
                if tick not in work_set and not ctx.stepping:
                    nxt = work[bisect.bisect_left(work, tick)]
                    self._advance(ctx, nxt - tick)
                    tick = nxt
                    continue

                self._process_tick(lanes, ctx, tick, tick in breakpoints)
                tick += 1

            ctx.state = ExecutionState.COMPLETED
        finally:
            if self.sync.frozen:
                self.sync.unfreeze()

    # --------------------------------------------------
    # one tick
    # --------------------------------------------------
    def _process_tick(self, lanes: Sequence[Lane], ctx: ExecutionContext, tick: int, is_breakpoint: bool) -> None:
        # actions never straddle a tick boundary: all lanes dispatch first
        for lane in lanes:
            for action in lane.test.actions_at(tick):
                lane.commands.extend(self.dispatcher.apply(action))

        self._advance(ctx, 1)

        for lane in lanes:
            for assertion in lane.test.assertions_at(tick):
                lane.outcomes.append(self.assertions.check(assertion, tick))

        self.controller.after_tick(ctx, tick, is_breakpoint)

    def _advance(self, ctx: ExecutionContext, count: int) -> None:
        self.sync.step(count)
        ctx.ticks_elapsed += count
