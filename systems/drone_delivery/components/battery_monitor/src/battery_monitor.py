"""
BatteryMonitor — периодический разряд батарей и история заряда.

Каждый проход (tick) уменьшает заряд всех дронов с ненулевой батареей
на фиксированную величину и записывает снимок в историю. Проходы
запускаются таймером в отдельном потоке, параллельно с запросами.
"""
import logging
import threading
from typing import Callable, List, Optional

from systems.drone_delivery.components.drone_registry.src.drone_registry import (
    DroneRegistry,
)
from systems.drone_delivery.components.state_store.src.state_store import StateStore
from systems.drone_delivery.src.models import BatteryReading


logger = logging.getLogger(__name__)

DEFAULT_DISCHARGE_PER_TICK = 1
DEFAULT_INTERVAL_SEC = 60.0


class BatteryMonitor:
    """Разряд батарей дронов и учёт истории заряда."""

    def __init__(
        self,
        registry: DroneRegistry,
        state_store: StateStore,
        discharge_per_tick: int = DEFAULT_DISCHARGE_PER_TICK,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
    ):
        self.registry = registry
        self.state = state_store
        self.discharge_per_tick = discharge_per_tick
        self.interval_sec = interval_sec

        self._listeners: List[Callable[[BatteryReading], None]] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_listener(self, callback: Callable[[BatteryReading], None]) -> None:
        """Подписать callback на новые снимки заряда."""
        self._listeners.append(callback)

    def tick(self) -> List[BatteryReading]:
        """
        Один проход разряда по всем дронам с ненулевым зарядом.

        Returns:
            Снимки заряда, записанные за проход

        Raises:
            BatteryUpdateError: дрон пропал между выборкой и обновлением
        """
        readings = []
        for drone in self.registry.list_discharging():
            level = max(drone.battery_level - self.discharge_per_tick, 0)
            self.registry.set_battery_level(drone, level)
            reading = self.state.append_reading(drone.serial_number, level)
            readings.append(reading)
        logger.info(f"Battery check: {len(readings)} drone(s) discharged")
        self._notify(readings)
        return readings

    def _notify(self, readings: List[BatteryReading]) -> None:
        """Слушатели получают снимки после прохода; их ошибки проход не прерывают."""
        for reading in readings:
            for callback in self._listeners:
                try:
                    callback(reading)
                except Exception:
                    logger.exception(
                        f"Battery reading listener failed for {reading.serial_number}"
                    )

    def history(self, serial_number: str) -> List[BatteryReading]:
        """История заряда дрона, самые свежие записи первыми."""
        return self.state.list_readings(serial_number)

    # ==================== Таймер ====================

    def start(self) -> None:
        """Запустить периодические проходы в фоновом потоке."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="battery-monitor",
        )
        self._thread.start()
        logger.info(f"Battery monitor started (every {self.interval_sec}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Остановить таймер и дождаться текущего прохода."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Battery monitor stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_sec):
            try:
                self.tick()
            except Exception:
                logger.exception("Battery check failed")
