# flint/client/base.py
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from flint.spec.models import Position

T = TypeVar("T")

DEFAULT_NAMESPACE = "minecraft:"


@dataclass(frozen=True)
class BlockState:
    """
    Observed block: opaque identifier + property map.
    """

    id: str
    properties: Dict[str, str] = field(default_factory=dict, hash=False)

    @classmethod
    def parse(cls, text: str) -> "BlockState":
        """
        ``minecraft:lever[face=floor,powered=true]`` -> id + properties
        """
        text = text.strip()
        if "[" not in text:
            return cls(text)
        ident, _, rest = text.partition("[")
        props: Dict[str, str] = {}
        for pair in rest.rstrip("]").split(","):
            if not pair.strip():
                continue
            key, _, value = pair.partition("=")
            props[key.strip()] = value.strip()
        return cls(ident.strip(), props)

    @property
    def name(self) -> str:
        """Identifier without the default namespace."""
        return strip_namespace(self.id)

    def get(self, prop: str) -> Optional[str]:
        return self.properties.get(prop)

    def __str__(self) -> str:
        if not self.properties:
            return self.id
        props = ",".join(f"{k}={v}" for k, v in sorted(self.properties.items()))
        return f"{self.id}[{props}]"


def strip_namespace(block_id: str) -> str:
    block_id = block_id.split("[", 1)[0].strip()
    if block_id.startswith(DEFAULT_NAMESPACE):
        return block_id[len(DEFAULT_NAMESPACE):]
    return block_id


class Subscription:
    """Handle returned by a feed; ``cancel()`` stops delivery."""

    def __init__(self, feed: "Feed", callback):
        self._feed = feed
        self._callback = callback

    def cancel(self) -> None:
        self._feed.remove(self._callback)


class Feed(Generic[T]):
    """
    Thread-safe fan-out of one event stream (chat lines, tick counters).
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[T], None]] = []

    def add(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            self._callbacks.append(callback)
        return Subscription(self, callback)

    def remove(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def publish(self, value: T) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb(value)


class BotClient(ABC):
    """
    Protocol-client seam.

    The engine only ever talks to the simulation through this interface:
    commands go out as text, world state comes back through reads and feeds.
    Implementations own the wire protocol; ``send_command`` must raise
    ConnectionLost once the connection is gone.
    """

    def __init__(self):
        self.chat_feed: Feed[str] = Feed("chat")
        self.tick_feed: Feed[int] = Feed("ticks")

    # -------------------------
    # lifecycle
    # -------------------------
    @abstractmethod
    def connect(self, address: str, username: str) -> None:
        ...

    @abstractmethod
    def disconnect(self) -> None:
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    # -------------------------
    # commands / world state
    # -------------------------
    @abstractmethod
    def send_command(self, text: str) -> None:
        ...

    @abstractmethod
    def current_block_state(self, pos: Position) -> Optional[BlockState]:
        """None when the position is not loaded."""

    @abstractmethod
    def wait_for_block_change(self, pos: Position, timeout: float) -> Optional[BlockState]:
        """Block until ``pos`` changes or ``timeout`` expires (then None)."""

    # -------------------------
    # feeds
    # -------------------------
    def subscribe_chat(self, callback: Callable[[str], None]) -> Subscription:
        return self.chat_feed.add(callback)

    def subscribe_ticks(self, callback: Callable[[int], None]) -> Subscription:
        """Authoritative world tick counter, as reported by the server."""
        return self.tick_feed.add(callback)
