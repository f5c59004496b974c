"""
DroneDeliverySystem — служба доставки медикаментов дронами.

Архитектура:
- Система оркестрирует работу компонентов:
  - DroneRegistry — учёт дронов, переходы состояний
  - LoadCoordinator — загрузка медикаментов с проверкой веса
  - BatteryMonitor — периодический разряд батарей и история
  - StateStore — хранение в Redis (или в памяти)
- Команды принимаются через SystemBus (маршрутизация по action)
  и через HTTP API
- Снимки заряда публикуются в топик событий
"""

from typing import Dict, Any, Optional
import logging

from flask import Flask

from broker.src.system_bus import SystemBus
from shared.base_system import BaseSystem
from shared.messages import create_event
from shared.topics import DroneDeliveryActions, DroneDeliveryEvents, SystemTopics
from shared import ports
from systems.drone_delivery.components.battery_monitor.src.battery_monitor import (
    BatteryMonitor,
)
from systems.drone_delivery.components.drone_registry.src.drone_registry import (
    DroneRegistry,
)
from systems.drone_delivery.components.load_coordinator.src.load_coordinator import (
    LoadCoordinator,
)
from systems.drone_delivery.components.state_store.src.memory_state_store import (
    MemoryStateStore,
)
from systems.drone_delivery.components.state_store.src.redis_state_store import (
    RedisStateStore,
)
from systems.drone_delivery.components.state_store.src.state_store import StateStore
from systems.drone_delivery.src.errors import ValidationError
from systems.drone_delivery.src.http_api import create_blueprint
from systems.drone_delivery.src.models import BatteryReading


logger = logging.getLogger(__name__)


def create_state_store(backend: Optional[str] = None) -> StateStore:
    """Создаёт хранилище по STORE_BACKEND: redis (по умолчанию) или memory."""
    backend = (backend or ports.STORE_BACKEND).lower()
    if backend == "memory":
        logger.warning("Running with in-memory state store (data is not persisted)")
        return MemoryStateStore()
    if backend == "redis":
        logger.info(f"Using Redis state store at {ports.get_redis_url()}")
        return RedisStateStore(
            host=ports.REDIS_HOST,
            port=ports.REDIS_PORT,
            db=ports.REDIS_DB,
            password=ports.REDIS_PASSWORD,
            prefix=ports.REDIS_KEY_PREFIX,
            socket_timeout=ports.REDIS_SOCKET_TIMEOUT,
        )
    raise ValueError(f"Unknown store backend: {backend}. Supported: 'redis', 'memory'")


def _required(payload: Dict[str, Any], key: str) -> Any:
    if key not in payload:
        raise ValidationError(key, f"{key} field required")
    return payload[key]


class DroneDeliverySystem(BaseSystem):
    """Служба доставки как сервис на SystemBus и HTTP."""

    def __init__(
        self,
        system_id: str,
        name: str,
        bus: Optional[SystemBus],
        http_port: Optional[int] = None,
        state_store: Optional[StateStore] = None,
        loading_min_battery: int = ports.LOADING_MIN_BATTERY,
        discharge_per_tick: int = ports.BATTERY_DISCHARGE_PER_TICK,
        battery_check_interval_sec: float = ports.BATTERY_CHECK_INTERVAL_SEC,
    ):
        self.name = name
        self.state_store = state_store or create_state_store()
        self.registry = DroneRegistry(self.state_store, loading_min_battery)
        self.coordinator = LoadCoordinator(self.registry, self.state_store)
        self.monitor = BatteryMonitor(
            self.registry,
            self.state_store,
            discharge_per_tick=discharge_per_tick,
            interval_sec=battery_check_interval_sec,
        )
        self.monitor.add_listener(self._publish_battery_reading)

        super().__init__(
            system_id=system_id,
            system_type="drone_delivery",
            topic=SystemTopics.DRONE_DELIVERY,
            bus=bus,
            http_port=http_port,
        )
        logger.info(f"DroneDeliverySystem '{name}' initialized")

    def _register_handlers(self) -> None:
        self.register_handler(DroneDeliveryActions.REGISTER_DRONE, self._handle_register_drone)
        self.register_handler(DroneDeliveryActions.GET_DRONE, self._handle_get_drone)
        self.register_handler(DroneDeliveryActions.LOAD_DRONE, self._handle_load_drone)
        self.register_handler(DroneDeliveryActions.GET_MEDICATION_ITEMS, self._handle_get_medication_items)
        self.register_handler(DroneDeliveryActions.GET_AVAILABLE_DRONES, self._handle_get_available_drones)
        self.register_handler(DroneDeliveryActions.GET_BATTERY_LEVEL, self._handle_get_battery_level)
        self.register_handler(DroneDeliveryActions.GET_BATTERY_HISTORY, self._handle_get_battery_history)
        self.register_handler(DroneDeliveryActions.RESET_FLEET, self._handle_reset_fleet)

    def _register_routes(self, app: Flask) -> None:
        app.register_blueprint(create_blueprint(self))

    # ==================== Обработчики команд ====================

    def _handle_register_drone(self, message: Dict[str, Any]) -> Dict[str, Any]:
        payload = message.get("payload", {})
        drone = self.registry.register(
            payload.get("serial_number"),
            payload.get("model"),
            payload.get("battery_level"),
        )
        return {"drone": drone.to_dict()}

    def _handle_get_drone(self, message: Dict[str, Any]) -> Dict[str, Any]:
        serial_number = _required(message.get("payload", {}), "serial_number")
        return {"drone": self.registry.require(serial_number).to_dict()}

    def _handle_load_drone(self, message: Dict[str, Any]) -> Dict[str, Any]:
        payload = message.get("payload", {})
        serial_number = _required(payload, "serial_number")
        items = self.coordinator.load_drone(serial_number, payload.get("medication_items"))
        return {"size": len(items), "results": [i.to_dict() for i in items]}

    def _handle_get_medication_items(self, message: Dict[str, Any]) -> Dict[str, Any]:
        serial_number = _required(message.get("payload", {}), "serial_number")
        items = self.coordinator.get_load(serial_number)
        return {"size": len(items), "results": [i.to_dict() for i in items]}

    def _handle_get_available_drones(self, message: Dict[str, Any]) -> Dict[str, Any]:
        drones = self.registry.list_available_for_loading()
        return {"size": len(drones), "results": [d.to_dict() for d in drones]}

    def _handle_get_battery_level(self, message: Dict[str, Any]) -> Dict[str, Any]:
        serial_number = _required(message.get("payload", {}), "serial_number")
        drone = self.registry.require(serial_number)
        return {"serial_number": serial_number, "battery_level": drone.battery_level}

    def _handle_get_battery_history(self, message: Dict[str, Any]) -> Dict[str, Any]:
        serial_number = _required(message.get("payload", {}), "serial_number")
        self.registry.require(serial_number)
        readings = self.monitor.history(serial_number)
        return {"size": len(readings), "results": [r.to_dict() for r in readings]}

    def _handle_reset_fleet(self, message: Dict[str, Any]) -> Dict[str, Any]:
        self.registry.reset()
        return {"reset": True}

    # ==================== События ====================

    def _publish_battery_reading(self, reading: BatteryReading) -> None:
        if self.bus is None:
            return
        event = create_event(DroneDeliveryEvents.BATTERY_READING, reading.to_dict(), self.system_id)
        if not self.bus.publish(SystemTopics.DRONE_DELIVERY_EVENTS, event):
            logger.warning(f"Battery reading for {reading.serial_number} not published")

    # ==================== Жизненный цикл ====================

    def start(self):
        super().start()
        self.monitor.start()

    def stop(self):
        self.monitor.stop(timeout=5.0)
        super().stop()

    def get_status(self) -> Dict[str, Any]:
        """Расширенный статус системы для healthcheck."""
        status = super().get_status()
        status.update({
            "name": self.name,
            "store": type(self.state_store).__name__,
            "store_connected": self.state_store.ping(),
            "battery_monitor_running": self.monitor.running,
            "battery_check_interval_sec": self.monitor.interval_sec,
        })
        return status
