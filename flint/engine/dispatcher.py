#!filepath: flint/engine/dispatcher.py
from __future__ import annotations

from typing import List

from flint.client.base import BotClient
from flint.spec.models import AIR, Action, Fill, Place, PlaceEach, Position, Region, Remove
from flint.utils.logger import logs


class ActionDispatcher:
    """
    Declarative action -> state-setting commands.

    Every command sets absolute state (setblock / fill), so re-applying an
    action leaves the world unchanged. Success is not checked here.
    """

    def __init__(self, client: BotClient):
        self.client = client

    def apply(self, action: Action) -> List[str]:
        if isinstance(action, Place):
            return [self.place(action.pos, action.block)]
        if isinstance(action, PlaceEach):
            return [self.place(p.pos, p.block) for p in action.blocks]
        if isinstance(action, Fill):
            return [self.fill(action.region, action.block)]
        if isinstance(action, Remove):
            return [self.place(action.pos, AIR)]
        raise TypeError(f"unsupported action: {action!r}")

    def place(self, pos: Position, block: str) -> str:
        return self._send(f"setblock {pos} {block}")

    def fill(self, region: Region, block: str) -> str:
        return self._send(f"fill {region.min} {region.max} {block}")

    def clear(self, region: Region) -> str:
        return self.fill(region, AIR)

    def _send(self, command: str) -> str:
        logs.debug(f"[Dispatch] {command}")
        self.client.send_command(command)
        return command
