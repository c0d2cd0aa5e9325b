#!filepath: flint/engine/tick_sync.py
from __future__ import annotations

import threading
import time
from typing import Optional

from flint.client.base import BotClient, Subscription
from flint.utils.errors import ConnectionLost, SyncTimeout
from flint.utils.logger import logs

# how often a waiting step re-checks the connection
_LIVENESS_SLICE = 0.1


class TickSynchronizer:
    """
    Freeze / step protocol with the simulation.

    ``step`` returns only once the server's own tick feed shows the requested
    number of ticks has elapsed. Confirmations arrive through a subscription
    callback and are correlated against a target tick; stale or duplicate
    counters are ignored.
    """

    def __init__(self, client: BotClient, timeout: float = 10.0):
        self.client = client
        self.timeout = timeout
        self.frozen = False

        self._cond = threading.Condition()
        self._observed: Optional[int] = None
        # highest tick requested so far
        self._expected: Optional[int] = None
        self._updates = 0
        self._subscription: Optional[Subscription] = None

    # --------------------------------------------------
    # feed
    # --------------------------------------------------
    def attach(self) -> None:
        if self._subscription is None:
            self._subscription = self.client.subscribe_ticks(self._on_tick)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_tick(self, tick: int) -> None:
        with self._cond:
            if self._observed is not None and tick <= self._observed:
                return
            self._observed = tick
            self._updates += 1
            self._cond.notify_all()

    @property
    def observed_tick(self) -> Optional[int]:
        with self._cond:
            return self._observed

    # --------------------------------------------------
    # protocol
    # --------------------------------------------------
    def freeze(self) -> None:
        self.attach()
        self.client.send_command("tick freeze")
        self.frozen = True
        logs.debug("[TickSync] simulation frozen")

    def unfreeze(self) -> None:
        self.client.send_command("tick unfreeze")
        self.frozen = False
        logs.debug("[TickSync] simulation released")

    def step(self, count: int = 1) -> int:
        """
        Advance exactly ``count`` ticks and wait for the confirmation.

        Returns the confirmed server tick. Raises SyncTimeout when the feed
        stays silent past ``timeout``; the command itself is never re-sent.

        The target counts from the highest tick already requested, so a late
        report for an abandoned step cannot confirm a newer one. Without any
        report yet, a multi-tick step is issued as ``1`` + ``count - 1``: the
        first report only says where the world is, not how far it moved.
        """
        if count < 1:
            raise ValueError(f"step count must be >= 1, got {count}")

        with self._cond:
            baseline = self._baseline()
            seen = self._updates
            target = baseline + count if baseline is not None else None
            if target is not None:
                self._expected = target

        if target is None and count > 1:
            self.step(1)
            return self.step(count - 1)

        self.client.send_command(f"tick step {count}")

        deadline = time.monotonic() + self.timeout
        with self._cond:
            while not self._confirmed(target, seen):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logs.warning(f"[TickSync] step {count} not confirmed (target={target})")
                    raise SyncTimeout(target, self.timeout)
                if not self.client.is_connected:
                    raise ConnectionLost("client disconnected while waiting for tick confirmation")
                self._cond.wait(min(remaining, _LIVENESS_SLICE))

            confirmed = self._observed

        logs.debug(f"[TickSync] stepped {count} -> server tick {confirmed}")
        return confirmed

    def _baseline(self) -> Optional[int]:
        if self._expected is None:
            return self._observed
        if self._observed is None:
            return self._expected
        return max(self._observed, self._expected)

    def _confirmed(self, target: Optional[int], seen: int) -> bool:
        if target is None:
            # no baseline yet: the first report after the command confirms it
            return self._updates > seen
        return self._observed is not None and self._observed >= target
