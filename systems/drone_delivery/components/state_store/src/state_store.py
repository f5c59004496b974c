"""
StateStore — интерфейс хранилища состояния системы доставки.

Хранит три вида записей: дроны, медикаменты (по дрону) и историю
заряда батареи. Условные обновления возвращают число затронутых
записей (0 или 1) и выполняются хранилищем атомарно.
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from systems.drone_delivery.src.models import (
    BatteryReading,
    Drone,
    DroneState,
    MedicationItem,
)


class ConflictError(Exception):
    """Запись с таким ключом уже существует."""


class StateStore(ABC):
    """Абстрактное хранилище дронов, медикаментов и истории батарей."""

    # ==================== Дроны ====================

    @abstractmethod
    def create_drone_if_absent(self, drone: Drone) -> None:
        """
        Сохраняет новый дрон.

        Raises:
            ConflictError: дрон с таким serial_number уже есть
        """

    @abstractmethod
    def get_drone(self, serial_number: str) -> Optional[Drone]:
        """Возвращает дрон или None."""

    @abstractmethod
    def list_drones(
        self, predicate: Optional[Callable[[Drone], bool]] = None
    ) -> List[Drone]:
        """Возвращает дроны, удовлетворяющие predicate, по serial_number."""

    @abstractmethod
    def update_state_if_battery(
        self, serial_number: str, state: DroneState, min_battery: int
    ) -> int:
        """
        Одна атомарная операция: state = state, если battery_level >= min_battery.

        Returns:
            int: 1 если обновлено, 0 если дрона нет или заряда мало
        """

    @abstractmethod
    def update_battery(self, serial_number: str, battery_level: int) -> int:
        """Записывает уровень заряда существующего дрона. Возвращает 0 или 1."""

    # ==================== Медикаменты ====================

    @abstractmethod
    def sum_item_weight(self, serial_number: str) -> int:
        """Суммарный вес загруженных медикаментов (0, если их нет)."""

    @abstractmethod
    def insert_items(self, serial_number: str, items: List[MedicationItem]) -> int:
        """
        Сохраняет всю партию медикаментов атомарно.

        Raises:
            ConflictError: код уже загружен на этот дрон (ничего не сохранено)
        """

    @abstractmethod
    def list_items(self, serial_number: str) -> List[MedicationItem]:
        """Медикаменты дрона в порядке загрузки."""

    # ==================== История батарей ====================

    @abstractmethod
    def append_reading(self, serial_number: str, battery_level: int) -> BatteryReading:
        """Добавляет снимок заряда с текущим временем сервера."""

    @abstractmethod
    def list_readings(self, serial_number: str) -> List[BatteryReading]:
        """История заряда дрона, самые свежие записи первыми."""

    # ==================== Служебное ====================

    @abstractmethod
    def clear_all(self) -> None:
        """Удаляет все дроны, медикаменты и историю (сброс парка)."""

    def ping(self) -> bool:
        """Проверка доступности хранилища."""
        return True
