# systems/drone_delivery/tests/unit/test_drone_registry.py
"""
Тесты компонента DroneRegistry (учёт дронов и их состояния).
"""

import pytest
from unittest.mock import Mock

from systems.drone_delivery.components.drone_registry.src.drone_registry import DroneRegistry
from systems.drone_delivery.src.errors import (
    BatteryTooLowError,
    BatteryUpdateError,
    DroneNotFoundError,
    DuplicateDroneError,
    ValidationError,
)
from systems.drone_delivery.src.models import DroneModel, DroneState


@pytest.mark.parametrize("model, weight_limit", [
    ("Lightweight", 100),
    ("Middleweight", 200),
    ("Cruiserweight", 300),
    ("Heavyweight", 500),
])
def test_register_drone_weight_limit_from_model(registry, model, weight_limit):
    drone = registry.register(f"D-{model}", model, 50)

    assert drone.weight_limit == weight_limit
    assert drone.model is DroneModel(model)
    assert drone.state is DroneState.IDLE
    assert drone.battery_level == 50


def test_register_drone_is_persisted(registry, state_store):
    registry.register("D-001", "Heavyweight", 60)

    stored = state_store.get_drone("D-001")
    assert stored.to_dict() == {
        "serial_number": "D-001",
        "model": "Heavyweight",
        "weight_limit": 500,
        "battery_level": 60,
        "state": "IDLE",
    }


@pytest.mark.parametrize("serial_number, model, battery_level, field, message", [
    (None, "Heavyweight", 50, "serial_number", "serial_number string field required"),
    ("a" * 101, "Heavyweight", 50, "serial_number", "maximum serial_number length reached"),
    ("D-001", 7, 50, "model", "model string field required"),
    ("D-001", "invalidModel", 50, "model", "invalid model field value"),
    ("D-001", "Heavyweight", "50", "battery_level", "battery_level number field required"),
    ("D-001", "Heavyweight", True, "battery_level", "battery_level number field required"),
    ("D-001", "Heavyweight", 150, "battery_level", "invalid battery_level field value"),
    ("D-001", "Heavyweight", -1, "battery_level", "invalid battery_level field value"),
    ("D-001", "Heavyweight", 50.5, "battery_level", "invalid battery_level field value"),
])
def test_register_drone_validation(registry, state_store, serial_number, model, battery_level, field, message):
    with pytest.raises(ValidationError) as exc_info:
        registry.register(serial_number, model, battery_level)

    assert exc_info.value.field == field
    assert str(exc_info.value) == message
    assert state_store.list_drones() == []


def test_register_serial_number_of_max_length(registry):
    drone = registry.register("a" * 100, "Lightweight", 0)
    assert drone.serial_number == "a" * 100


def test_register_same_serial_number_twice(registry):
    registry.register("D-001", "Heavyweight", 60)

    with pytest.raises(DuplicateDroneError) as exc_info:
        registry.register("D-001", "Lightweight", 10)

    assert str(exc_info.value) == "drone already exists"
    drone = registry.get("D-001")
    assert drone.model is DroneModel.HEAVYWEIGHT
    assert drone.battery_level == 60


def test_get_unknown_drone(registry):
    assert registry.get("missing") is None
    with pytest.raises(DroneNotFoundError):
        registry.require("missing")


def test_list_available_for_loading(registry):
    registry.register("D-IDLE-OK", "Heavyweight", 75)
    registry.register("D-IDLE-25", "Heavyweight", 25)
    registry.register("D-IDLE-LOW", "Heavyweight", 24)
    loaded = registry.register("D-LOADED", "Heavyweight", 90)
    registry.transition(loaded, DroneState.LOADED)

    available = registry.list_available_for_loading()

    assert [d.serial_number for d in available] == ["D-IDLE-25", "D-IDLE-OK"]


def test_transition_to_loading_requires_battery(registry):
    drone = registry.register("D-001", "Heavyweight", 24)

    with pytest.raises(BatteryTooLowError) as exc_info:
        registry.transition(drone, DroneState.LOADING)

    assert exc_info.value.min_battery == 25
    assert "drone without enough battery level" in str(exc_info.value)
    assert registry.get("D-001").state is DroneState.IDLE


def test_transition_other_states_have_no_threshold(registry):
    drone = registry.register("D-001", "Heavyweight", 0)

    registry.transition(drone, DroneState.LOADED)

    assert registry.get("D-001").state is DroneState.LOADED


def test_transition_is_single_conditional_update():
    store = Mock()
    store.update_state_if_battery.return_value = 1
    registry = DroneRegistry(store)
    drone = Mock(serial_number="D-001")

    registry.transition(drone, DroneState.LOADING)

    store.update_state_if_battery.assert_called_once_with("D-001", DroneState.LOADING, 25)
    store.get_drone.assert_not_called()


def test_transition_vanished_drone(registry):
    drone = registry.register("D-001", "Heavyweight", 80)
    registry.reset()

    with pytest.raises(BatteryTooLowError):
        registry.transition(drone, DroneState.LOADED)


def test_loading_session_releases_on_error(registry):
    drone = registry.register("D-001", "Heavyweight", 80)

    with pytest.raises(RuntimeError):
        with registry.loading(drone):
            assert registry.get("D-001").state is DroneState.LOADING
            raise RuntimeError("boom")

    assert registry.get("D-001").state is DroneState.LOADED


def test_loading_session_not_entered_with_low_battery(registry):
    drone = registry.register("D-001", "Heavyweight", 10)
    body = Mock()

    with pytest.raises(BatteryTooLowError):
        with registry.loading(drone):
            body()

    body.assert_not_called()
    assert registry.get("D-001").state is DroneState.IDLE


def test_loading_cleanup_failure_does_not_mask_error():
    store = Mock()
    # LOADING проходит, LOADED нет
    store.update_state_if_battery.side_effect = [1, 0]
    registry = DroneRegistry(store)
    drone = Mock(serial_number="D-001")

    with pytest.raises(ValueError) as exc_info:
        with registry.loading(drone):
            raise ValueError("primary")

    assert str(exc_info.value) == "primary"
    assert isinstance(exc_info.value.cleanup_error, BatteryTooLowError)


def test_set_battery_level_of_vanished_drone(registry):
    drone = registry.register("D-001", "Heavyweight", 80)
    registry.reset()

    with pytest.raises(BatteryUpdateError):
        registry.set_battery_level(drone, 79)


def test_reset_clears_fleet(registry, state_store):
    registry.register("D-001", "Heavyweight", 80)
    state_store.append_reading("D-001", 79)

    registry.reset()

    assert state_store.list_drones() == []
    assert state_store.list_readings("D-001") == []


def test_custom_loading_threshold(state_store):
    registry = DroneRegistry(state_store, loading_min_battery=50)
    drone = registry.register("D-001", "Heavyweight", 40)

    with pytest.raises(BatteryTooLowError):
        registry.transition(drone, DroneState.LOADING)
    assert registry.list_available_for_loading() == []


def test_lifecycle_next_state():
    state = DroneState.IDLE
    visited = []
    for _ in range(6):
        visited.append(state)
        state = state.next_state()

    assert state is DroneState.IDLE
    assert visited == [
        DroneState.IDLE,
        DroneState.LOADING,
        DroneState.LOADED,
        DroneState.DELIVERING,
        DroneState.DELIVERED,
        DroneState.RETURNING,
    ]


@pytest.mark.parametrize("battery_level", [float("nan"), float("inf"), float("-inf")])
def test_register_non_finite_battery_level(registry, state_store, battery_level):
    with pytest.raises(ValidationError) as exc_info:
        registry.register("D-001", "Heavyweight", battery_level)

    assert exc_info.value.field == "battery_level"
    assert str(exc_info.value) == "invalid battery_level field value"
    assert state_store.list_drones() == []
