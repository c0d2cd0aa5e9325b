# flint/client/local.py
from __future__ import annotations

import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from flint.client.base import BlockState, BotClient
from flint.spec.models import AIR, Position, Region
from flint.utils.errors import ConnectionLost
from flint.utils.logger import logs

Reaction = Callable[["LocalSimulation"], None]


class LocalSimulation(BotClient):
    """
    In-memory stand-in for a live server.

    - understands setblock / fill / tick freeze|unfreeze|step
    - reports the world tick counter through ``tick_feed``
      (synchronously, or after ``latency`` seconds on a timer thread)
    - ``at_step(n, fn)`` lets a test make the world react when the n-th
      step completes, before it is confirmed
    """

    def __init__(self, latency: float = 0.0, start_tick: int = 0):
        super().__init__()
        self.latency = latency
        self.world_tick = start_tick
        self.frozen = False
        self.steps = 0
        self.commands: List[str] = []

        # test knobs
        self.confirm_steps = True
        self.disconnect_after: Optional[int] = None

        self._connected = False
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._blocks: Dict[Position, BlockState] = {}
        self._versions: Dict[Position, int] = defaultdict(int)
        self._reactions: Dict[int, List[Reaction]] = defaultdict(list)
        self._timers: List[threading.Timer] = []

    # --------------------------------------------------
    # lifecycle
    # --------------------------------------------------
    def connect(self, address: str = "local", username: str = "FlintMC_TestBot") -> None:
        self._connected = True
        logs.info(f"[Client] local simulation ready ({username}@{address})")

    def disconnect(self) -> None:
        self._connected = False
        for timer in self._timers:
            timer.cancel()

    @property
    def is_connected(self) -> bool:
        return self._connected

    # --------------------------------------------------
    # commands
    # --------------------------------------------------
    def send_command(self, text: str) -> None:
        if not self._connected:
            raise ConnectionLost("local simulation disconnected")

        command = text.lstrip("/").strip()
        with self._lock:
            self.commands.append(command)
            if self.disconnect_after is not None and len(self.commands) >= self.disconnect_after:
                self._connected = False
                raise ConnectionLost("local simulation dropped the connection")

            parts = command.split()
            head = parts[0] if parts else ""
            if head == "setblock" and len(parts) == 5:
                self.set_block(Position(*map(int, parts[1:4])), parts[4])
            elif head == "fill" and len(parts) == 8:
                region = Region(Position(*map(int, parts[1:4])), Position(*map(int, parts[4:7])))
                for pos in region.positions():
                    self.set_block(pos, parts[7])
            elif head == "tick" and len(parts) >= 2:
                self._tick_command(parts[1:])
            else:
                logs.debug(f"[Client] local simulation ignores: {command}")

    def _tick_command(self, args: List[str]) -> None:
        if args[0] == "freeze":
            self.frozen = True
        elif args[0] == "unfreeze":
            self.frozen = False
        elif args[0] == "step":
            count = int(args[1]) if len(args) > 1 else 1
            for _ in range(count):
                self.world_tick += 1
                self.steps += 1
                for reaction in self._reactions.pop(self.steps, []):
                    reaction(self)
            if self.confirm_steps:
                self._report_tick(self.world_tick)

    def _report_tick(self, tick: int) -> None:
        if self.latency <= 0:
            self.tick_feed.publish(tick)
            return
        timer = threading.Timer(self.latency, self.tick_feed.publish, args=(tick,))
        timer.daemon = True
        self._timers.append(timer)
        timer.start()

    # --------------------------------------------------
    # world
    # --------------------------------------------------
    def set_block(self, pos: Position, block: str | BlockState) -> None:
        state = block if isinstance(block, BlockState) else BlockState.parse(block)
        with self._changed:
            self._blocks[pos] = state
            self._versions[pos] += 1
            self._changed.notify_all()

    def current_block_state(self, pos: Position) -> Optional[BlockState]:
        with self._lock:
            return self._blocks.get(pos, BlockState(AIR))

    def wait_for_block_change(self, pos: Position, timeout: float) -> Optional[BlockState]:
        with self._changed:
            seen = self._versions[pos]
            if not self._changed.wait_for(lambda: self._versions[pos] != seen, timeout=timeout):
                return None
            return self._blocks.get(pos)

    def at_step(self, step: int, reaction: Reaction) -> None:
        """Run ``reaction`` when the ``step``-th tick step (1-based) completes."""
        self._reactions[step].append(reaction)

    def say(self, message: str) -> None:
        """Deliver a chat line as if another player typed it."""
        self.chat_feed.publish(message)
