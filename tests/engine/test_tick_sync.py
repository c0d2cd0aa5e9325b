# tests/engine/test_tick_sync.py
import threading

import pytest

from flint.client.local import LocalSimulation
from flint.engine.tick_sync import TickSynchronizer
from flint.utils.errors import ConnectionLost, SyncTimeout


def test_freeze_and_step_wait_for_confirmation(sim):
    sync = TickSynchronizer(sim, timeout=1.0)
    sync.freeze()

    assert sync.step() == 1
    assert sync.step(4) == 5
    assert sim.commands == ["tick freeze", "tick step 1", "tick step 4"]


def test_step_with_delayed_confirmation():
    sim = LocalSimulation(latency=0.05, start_tick=100)
    sim.connect()
    sync = TickSynchronizer(sim, timeout=2.0)
    sync.freeze()

    assert sync.step() == 101
    assert sync.step(2) == 103
    sim.disconnect()


def test_stale_and_duplicate_updates_are_ignored(sim):
    sync = TickSynchronizer(sim, timeout=1.0)
    sync.attach()

    sim.tick_feed.publish(10)
    sim.tick_feed.publish(10)
    sim.tick_feed.publish(7)
    assert sync.observed_tick == 10


def test_step_times_out_without_confirmation(sim):
    sync = TickSynchronizer(sim, timeout=0.05)
    sync.freeze()
    sim.confirm_steps = False

    with pytest.raises(SyncTimeout) as exc:
        sync.step()
    # command issued exactly once, never retried
    assert sim.commands.count("tick step 1") == 1
    assert exc.value.timeout == 0.05


def test_unrelated_lower_update_does_not_confirm(sim):
    sync = TickSynchronizer(sim, timeout=0.3)
    sync.freeze()
    sync.step()  # baseline = 1
    sim.confirm_steps = False

    # a late duplicate of an old counter arrives mid-wait
    threading.Timer(0.02, sim.tick_feed.publish, args=(1,)).start()
    with pytest.raises(SyncTimeout) as exc:
        sync.step()
    assert exc.value.target_tick == 2


def test_disconnect_during_wait_raises_connection_lost(sim):
    sync = TickSynchronizer(sim, timeout=5.0)
    sync.freeze()
    sim.confirm_steps = False
    threading.Timer(0.05, sim.disconnect).start()

    with pytest.raises(ConnectionLost):
        sync.step()


def test_step_count_must_be_positive(sim):
    sync = TickSynchronizer(sim)
    with pytest.raises(ValueError):
        sync.step(0)


def test_detach_stops_listening(sim):
    sync = TickSynchronizer(sim)
    sync.attach()
    sync.detach()
    sim.tick_feed.publish(42)
    assert sync.observed_tick is None


def test_late_report_for_abandoned_step_does_not_confirm_next_step():
    sim = LocalSimulation(latency=0.3, start_tick=10)
    sim.connect()
    sync = TickSynchronizer(sim, timeout=0.05)
    sync.freeze()
    sim.tick_feed.publish(10)

    with pytest.raises(SyncTimeout) as exc:
        sync.step()
    assert exc.value.target_tick == 11

    # the report for tick 11 lands mid-wait and must not count
    sync.timeout = 2.0
    confirmed = sync.step()

    assert confirmed == 12
    assert confirmed >= sim.world_tick
    sim.disconnect()


def test_first_multi_tick_step_is_measured_from_a_real_report(sim):
    sync = TickSynchronizer(sim, timeout=1.0)
    sync.freeze()

    assert sync.step(5) == 5
    assert sim.commands == ["tick freeze", "tick step 1", "tick step 4"]


def test_first_multi_tick_step_is_not_confirmed_by_one_report():
    sim = LocalSimulation(latency=0.0)
    sim.connect()
    sync = TickSynchronizer(sim, timeout=0.1)
    sync.freeze()
    # the server only answers the first command
    sim.at_step(2, lambda s: setattr(s, "confirm_steps", False))

    with pytest.raises(SyncTimeout) as exc:
        sync.step(3)
    assert exc.value.target_tick == 3
    sim.disconnect()
