# tests/client/test_local_simulation.py
import threading

import pytest

from flint.client.base import BlockState, strip_namespace
from flint.client.factory import create_client, resolve_client_class
from flint.client.local import LocalSimulation
from flint.config.server_config import ServerConfig
from flint.spec.models import Position
from flint.utils.errors import ConnectionLost, UserInputError


def test_block_state_parse_and_render():
    state = BlockState.parse("minecraft:lever[face=floor, powered=true]")

    assert state.id == "minecraft:lever"
    assert state.name == "lever"
    assert state.get("powered") == "true"
    assert state.get("missing") is None
    assert str(state) == "minecraft:lever[face=floor,powered=true]"


def test_strip_namespace():
    assert strip_namespace("minecraft:stone") == "stone"
    assert strip_namespace("stone") == "stone"
    assert strip_namespace("mymod:stone") == "mymod:stone"
    assert strip_namespace("minecraft:lever[powered=true]") == "lever"


def test_setblock_and_fill(sim):
    sim.send_command("/setblock 1 2 3 minecraft:stone")
    sim.send_command("fill 0 0 0 1 0 1 glass")

    assert sim.current_block_state(Position(1, 2, 3)).id == "minecraft:stone"
    assert sim.current_block_state(Position(1, 0, 1)).id == "glass"
    assert sim.current_block_state(Position(9, 9, 9)).name == "air"


def test_tick_step_reports_world_tick(sim):
    seen = []
    sim.subscribe_ticks(seen.append)

    sim.send_command("tick freeze")
    sim.send_command("tick step 3")
    sim.send_command("tick step")

    assert sim.frozen
    assert seen == [3, 4]
    assert sim.steps == 4


def test_reactions_run_on_their_step(sim):
    pos = Position(0, 0, 0)
    sim.at_step(2, lambda s: s.set_block(pos, "redstone_lamp[lit=true]"))

    sim.send_command("tick step 1")
    assert sim.current_block_state(pos).name == "air"
    sim.send_command("tick step 1")
    assert sim.current_block_state(pos).get("lit") == "true"


def test_wait_for_block_change(sim):
    pos = Position(0, 0, 0)
    timer = threading.Timer(0.05, sim.set_block, args=(pos, "stone"))
    timer.start()

    changed = sim.wait_for_block_change(pos, timeout=2)
    assert changed is not None and changed.id == "stone"
    assert sim.wait_for_block_change(pos, timeout=0.01) is None


def test_unsubscribe_stops_delivery(sim):
    seen = []
    sub = sim.subscribe_chat(seen.append)
    sim.say("hello")
    sub.cancel()
    sim.say("again")

    assert seen == ["hello"]


def test_send_after_disconnect_raises(sim):
    sim.disconnect()
    with pytest.raises(ConnectionLost):
        sim.send_command("tick step 1")


def test_disconnect_after_n_commands(sim):
    sim.disconnect_after = 2
    sim.send_command("tick freeze")
    with pytest.raises(ConnectionLost):
        sim.send_command("tick step 1")
    assert not sim.is_connected


def test_resolve_client_class():
    assert resolve_client_class("local") is LocalSimulation
    assert resolve_client_class("flint.client.local:LocalSimulation") is LocalSimulation

    with pytest.raises(UserInputError):
        resolve_client_class("no-colon")
    with pytest.raises(UserInputError):
        resolve_client_class("flint.nope:Client")
    with pytest.raises(UserInputError):
        resolve_client_class("flint.spec.models:Position")


class _FlakyClient(LocalSimulation):
    attempts = 0

    def connect(self, address, username):
        type(self).attempts += 1
        if type(self).attempts < 3:
            raise ConnectionRefusedError("not yet")
        super().connect(address, username)


class _DeadClient(LocalSimulation):
    def connect(self, address, username):
        raise ConnectionRefusedError("refused")


def test_create_client_retries_connection(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda s: None)
    _FlakyClient.attempts = 0
    cfg = ServerConfig(client=f"{__name__}:_FlakyClient", connect_attempts=3, connect_delay=0)

    client = create_client(cfg)

    assert client.is_connected
    assert _FlakyClient.attempts == 3


def test_create_client_gives_up(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda s: None)
    cfg = ServerConfig(client=f"{__name__}:_DeadClient", connect_attempts=2, connect_delay=0)

    with pytest.raises(ConnectionLost):
        create_client(cfg)
