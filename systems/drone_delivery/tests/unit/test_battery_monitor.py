# systems/drone_delivery/tests/unit/test_battery_monitor.py
"""
Тесты компонента BatteryMonitor (разряд батарей и история).
"""

import time

import pytest
from unittest.mock import Mock

from systems.drone_delivery.components.battery_monitor.src.battery_monitor import BatteryMonitor
from systems.drone_delivery.src.errors import BatteryUpdateError
from systems.drone_delivery.src.models import Drone, DroneModel


def wait_until(condition, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def test_tick_discharges_drones(registry, monitor):
    registry.register("D-001", "Heavyweight", 50)
    registry.register("D-002", "Lightweight", 1)

    readings = monitor.tick()

    assert [(r.serial_number, r.battery_level) for r in readings] == [
        ("D-001", 49),
        ("D-002", 0),
    ]
    assert registry.get("D-001").battery_level == 49
    assert registry.get("D-002").battery_level == 0


def test_tick_skips_empty_battery(registry, monitor, state_store):
    registry.register("D-001", "Heavyweight", 0)

    assert monitor.tick() == []
    assert registry.get("D-001").battery_level == 0
    assert state_store.list_readings("D-001") == []


def test_tick_never_goes_below_zero(registry, state_store):
    registry.register("D-001", "Heavyweight", 3)
    monitor = BatteryMonitor(registry, state_store, discharge_per_tick=5)

    readings = monitor.tick()

    assert readings[0].battery_level == 0
    assert registry.get("D-001").battery_level == 0


def test_tick_without_drones(monitor):
    assert monitor.tick() == []


def test_history_newest_first(registry, monitor):
    registry.register("D-001", "Heavyweight", 10)
    monitor.tick()
    monitor.tick()
    monitor.tick()

    history = monitor.history("D-001")

    assert [r.battery_level for r in history] == [7, 8, 9]
    assert all(r.timestamp for r in history)


def test_listeners_receive_readings(registry, monitor):
    registry.register("D-001", "Heavyweight", 10)
    listener = Mock()
    monitor.add_listener(listener)

    readings = monitor.tick()

    listener.assert_called_once_with(readings[0])


def test_tick_raises_when_drone_vanished():
    registry = Mock()
    registry.list_discharging.return_value = [
        Drone("D-001", DroneModel.HEAVYWEIGHT, 500, 40),
    ]
    registry.set_battery_level.side_effect = BatteryUpdateError("D-001")
    state_store = Mock()
    monitor = BatteryMonitor(registry, state_store)

    with pytest.raises(BatteryUpdateError):
        monitor.tick()

    state_store.append_reading.assert_not_called()


def test_start_and_stop(registry, monitor):
    registry.register("D-001", "Heavyweight", 100)

    monitor.start()
    try:
        assert monitor.running
        assert wait_until(lambda: registry.get("D-001").battery_level < 100)
    finally:
        monitor.stop(timeout=1.0)

    assert not monitor.running


def test_start_is_idempotent(monitor):
    monitor.start()
    thread = monitor._thread
    try:
        monitor.start()
        assert monitor._thread is thread
    finally:
        monitor.stop(timeout=1.0)


def test_failing_tick_keeps_timer_running(registry, state_store):
    monitor = BatteryMonitor(registry, state_store, interval_sec=0.01)
    calls = []

    def failing_tick():
        calls.append(1)
        raise RuntimeError("store unavailable")

    monitor.tick = failing_tick
    monitor.start()
    try:
        assert wait_until(lambda: len(calls) >= 2)
        assert monitor.running
    finally:
        monitor.stop(timeout=1.0)


def test_failing_listener_does_not_stop_discharge(registry, monitor):
    registry.register("D-001", "Heavyweight", 50)
    registry.register("D-002", "Heavyweight", 50)
    received = []

    def failing_listener(reading):
        raise ConnectionError("broker down")

    monitor.add_listener(failing_listener)
    monitor.add_listener(received.append)

    readings = monitor.tick()

    assert [r.battery_level for r in readings] == [49, 49]
    assert registry.get("D-001").battery_level == 49
    assert registry.get("D-002").battery_level == 49
    assert received == readings
