#!filepath: flint/engine/breakpoint.py
from __future__ import annotations

import queue
import re
import sys
import threading
from enum import Enum
from typing import Callable, Optional, TextIO, Tuple

from flint.client.base import BotClient, Subscription
from flint.engine.context import ExecutionContext, ExecutionState
from flint.utils.logger import logs


class ControlCommand(str, Enum):
    STEP = "step"
    CONTINUE = "continue"


_TOKENS = {
    "s": ControlCommand.STEP,
    "step": ControlCommand.STEP,
    "c": ControlCommand.CONTINUE,
    "continue": ControlCommand.CONTINUE,
}

# "<Player> s" as rendered by vanilla chat
_CHAT_PREFIX = re.compile(r"^<[^>]+>\s*")


def parse_token(text: str, *, allow_empty: bool = False) -> Optional[ControlCommand]:
    token = text.strip().lower()
    if not token:
        return ControlCommand.CONTINUE if allow_empty else None
    return _TOKENS.get(token)


class ControlChannel:
    """
    Single-slot rendezvous between the input listeners and the controller.

    - ``arm()`` opens the slot for one pause
    - the first ``offer`` while armed wins and closes the slot
    - everything offered while closed is dropped
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._armed = False
        self._slot: "queue.Queue[Tuple[ControlCommand, str]]" = queue.Queue(maxsize=1)

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._armed

    def arm(self) -> None:
        with self._lock:
            self._drain()
            self._armed = True

    def disarm(self) -> None:
        with self._lock:
            self._armed = False
            self._drain()

    def offer(self, command: ControlCommand, source: str) -> bool:
        with self._lock:
            if not self._armed:
                logs.debug(f"[Breakpoint] dropped {command.value} from {source} (not paused)")
                return False
            self._armed = False
            self._slot.put_nowait((command, source))
            return True

    def take(self, timeout: Optional[float] = None) -> Tuple[ControlCommand, str]:
        return self._slot.get(timeout=timeout)

    def _drain(self) -> None:
        while True:
            try:
                self._slot.get_nowait()
            except queue.Empty:
                return


class ConsoleListener:
    """Reads operator lines on a daemon thread and offers them to the channel."""

    def __init__(self, channel: ControlChannel, stream: Optional[TextIO] = None):
        self.channel = channel
        self.stream = stream if stream is not None else sys.stdin
        self._thread: Optional[threading.Thread] = None

    @property
    def available(self) -> bool:
        return self._thread is None or self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name="flint-console", daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        try:
            for line in self.stream:
                command = parse_token(line, allow_empty=True)
                if command is None:
                    logs.debug(f"[Breakpoint] console: unrecognised input {line.strip()!r}")
                    continue
                self.channel.offer(command, "console")
        except (OSError, ValueError) as e:
            # stdin not readable (detached / captured); chat control still works
            logs.warning(f"[Breakpoint] console unavailable: {e}")
            return
        logs.debug("[Breakpoint] console closed")


class ChatListener:
    """Offers chat messages from the simulation to the channel."""

    def __init__(self, channel: ControlChannel, client: BotClient):
        self.channel = channel
        self.client = client
        self._subscription: Optional[Subscription] = None

    def start(self) -> None:
        if self._subscription is None:
            self._subscription = self.client.subscribe_chat(self._on_chat)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_chat(self, message: str) -> None:
        command = parse_token(_CHAT_PREFIX.sub("", message))
        if command is not None:
            self.channel.offer(command, "chat")


class BreakpointController:
    """
    Running -> PausedAtBreakpoint -> {Stepping | Running}

    While paused nothing is dispatched and no step is requested; the primary
    sequence blocks on the channel until a listener delivers a token. There is
    no timeout: an operator is expected to answer.
    """

    def __init__(
        self,
        channel: Optional[ControlChannel] = None,
        *,
        console: Optional[ConsoleListener] = None,
        chat: Optional[ChatListener] = None,
        announce: Optional[Callable[[str], None]] = None,
    ):
        self.channel = channel if channel is not None else ControlChannel()
        self.console = console
        self.chat = chat
        self.announce = announce

    @classmethod
    def from_config(cls, control_cfg, client: BotClient, stream: Optional[TextIO] = None) -> "BreakpointController":
        channel = ControlChannel()
        console = ConsoleListener(channel, stream) if control_cfg.console_control else None
        chat = ChatListener(channel, client) if control_cfg.chat_control else None
        return cls(channel, console=console, chat=chat, announce=print)

    @property
    def has_sources(self) -> bool:
        return (self.console is not None and self.console.available) or self.chat is not None

    def start(self) -> None:
        if self.console is not None:
            self.console.start()
        if self.chat is not None:
            self.chat.start()

    def stop(self) -> None:
        if self.chat is not None:
            self.chat.stop()
        self.channel.disarm()

    # --------------------------------------------------
    # state machine
    # --------------------------------------------------
    def after_tick(self, ctx: ExecutionContext, tick: int, is_breakpoint: bool) -> Optional[ControlCommand]:
        """
        Called once a tick's actions and assertions are done, before the next step.
        A previous ``step`` is one-shot: it always re-pauses here.
        """
        if is_breakpoint or ctx.stepping:
            return self.pause(ctx, tick, "breakpoint" if is_breakpoint else "step")
        return None

    def pause(self, ctx: ExecutionContext, tick: Optional[int], reason: str) -> ControlCommand:
        if not self.has_sources:
            logs.warning(f"[Breakpoint] {reason} at tick {tick} ignored: no control channel enabled")
            ctx.state = ExecutionState.RUNNING
            return ControlCommand.CONTINUE

        ctx.state = ExecutionState.PAUSED
        ctx.paused_at = tick
        self.channel.arm()

        where = "before first tick" if tick is None else f"after tick {tick}"
        message = f"[{ctx.label}] paused {where} ({reason}): 's' = step, 'c' or <Enter> = continue"
        logs.info(f"[Breakpoint] {message}")
        if self.announce is not None:
            self.announce(message)

        command, source = self.channel.take()

        ctx.paused_at = None
        ctx.state = ExecutionState.STEPPING if command is ControlCommand.STEP else ExecutionState.RUNNING
        logs.info(f"[Breakpoint] {command.value} from {source} -> {ctx.state.value}")
        return command
