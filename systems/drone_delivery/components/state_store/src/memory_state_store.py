"""
MemoryStateStore — хранилище в памяти процесса.

Используется для локального запуска без Redis (STORE_BACKEND=memory)
и в тестах. Каждая операция выполняется под одной блокировкой, поэтому
условные обновления атомарны так же, как Lua-скрипты в Redis.
"""
import threading
from copy import copy
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from systems.drone_delivery.components.state_store.src.state_store import (
    ConflictError,
    StateStore,
)
from systems.drone_delivery.src.models import (
    BatteryReading,
    Drone,
    DroneState,
    MedicationItem,
)


class MemoryStateStore(StateStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._drones: Dict[str, Drone] = {}
        self._items: Dict[str, List[MedicationItem]] = {}
        self._readings: Dict[str, List[BatteryReading]] = {}

    def create_drone_if_absent(self, drone: Drone) -> None:
        with self._lock:
            if drone.serial_number in self._drones:
                raise ConflictError(drone.serial_number)
            self._drones[drone.serial_number] = copy(drone)

    def get_drone(self, serial_number: str) -> Optional[Drone]:
        with self._lock:
            drone = self._drones.get(serial_number)
            return copy(drone) if drone else None

    def list_drones(
        self, predicate: Optional[Callable[[Drone], bool]] = None
    ) -> List[Drone]:
        with self._lock:
            drones = [copy(self._drones[sn]) for sn in sorted(self._drones)]
        if predicate is None:
            return drones
        return [d for d in drones if predicate(d)]

    def update_state_if_battery(
        self, serial_number: str, state: DroneState, min_battery: int
    ) -> int:
        with self._lock:
            drone = self._drones.get(serial_number)
            if drone is None or drone.battery_level < min_battery:
                return 0
            drone.state = state
            return 1

    def update_battery(self, serial_number: str, battery_level: int) -> int:
        with self._lock:
            drone = self._drones.get(serial_number)
            if drone is None:
                return 0
            drone.battery_level = battery_level
            return 1

    def sum_item_weight(self, serial_number: str) -> int:
        with self._lock:
            return sum(item.weight for item in self._items.get(serial_number, []))

    def insert_items(self, serial_number: str, items: List[MedicationItem]) -> int:
        with self._lock:
            loaded = self._items.setdefault(serial_number, [])
            codes = {item.code for item in loaded}
            for item in items:
                if item.code in codes:
                    raise ConflictError(item.code)
                codes.add(item.code)
            loaded.extend(copy(item) for item in items)
            return len(items)

    def list_items(self, serial_number: str) -> List[MedicationItem]:
        with self._lock:
            return [copy(item) for item in self._items.get(serial_number, [])]

    def append_reading(self, serial_number: str, battery_level: int) -> BatteryReading:
        reading = BatteryReading(
            serial_number=serial_number,
            battery_level=battery_level,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._readings.setdefault(serial_number, []).append(reading)
        return copy(reading)

    def list_readings(self, serial_number: str) -> List[BatteryReading]:
        with self._lock:
            return [copy(r) for r in reversed(self._readings.get(serial_number, []))]

    def clear_all(self) -> None:
        with self._lock:
            self._drones.clear()
            self._items.clear()
            self._readings.clear()
