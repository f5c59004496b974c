"""
Модели данных системы доставки медикаментов дронами.

- DroneModel — модель дрона и связанная с ней грузоподъёмность
- DroneState — жизненный цикл дрона
- Drone, MedicationItem, BatteryReading — записи хранилища
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, Optional


MAX_SERIAL_NUMBER_LENGTH = 100
MAX_BATTERY_CAPACITY = 100
MAX_WEIGHT_LIMIT = 500


class DroneModel(Enum):
    """Модели дронов. Значение — имя модели во внешнем API."""
    LIGHTWEIGHT = "Lightweight"
    MIDDLEWEIGHT = "Middleweight"
    CRUISERWEIGHT = "Cruiserweight"
    HEAVYWEIGHT = "Heavyweight"

    @property
    def weight_limit(self) -> int:
        """Максимальный суммарный вес груза (граммы) для модели."""
        return _MODEL_WEIGHT_LIMITS[self]

    @classmethod
    def parse(cls, value: str) -> Optional["DroneModel"]:
        """Возвращает модель по имени или None, если имя неизвестно."""
        for model in cls:
            if model.value == value:
                return model
        return None


_MODEL_WEIGHT_LIMITS = {
    DroneModel.LIGHTWEIGHT: 100,
    DroneModel.MIDDLEWEIGHT: 200,
    DroneModel.CRUISERWEIGHT: 300,
    DroneModel.HEAVYWEIGHT: MAX_WEIGHT_LIMIT,
}


class DroneState(Enum):
    """Состояния жизненного цикла дрона."""
    IDLE = "IDLE"  # Свободен
    LOADING = "LOADING"  # Идёт загрузка
    LOADED = "LOADED"  # Загружен
    DELIVERING = "DELIVERING"  # В пути к получателю
    DELIVERED = "DELIVERED"  # Груз доставлен
    RETURNING = "RETURNING"  # Возвращается на базу

    def next_state(self) -> "DroneState":
        """Следующее состояние по штатному циклу доставки."""
        return _LIFECYCLE[self]


_LIFECYCLE = {
    DroneState.IDLE: DroneState.LOADING,
    DroneState.LOADING: DroneState.LOADED,
    DroneState.LOADED: DroneState.DELIVERING,
    DroneState.DELIVERING: DroneState.DELIVERED,
    DroneState.DELIVERED: DroneState.RETURNING,
    DroneState.RETURNING: DroneState.IDLE,
}


@dataclass
class Drone:
    serial_number: str
    model: DroneModel
    weight_limit: int
    battery_level: int
    state: DroneState = DroneState.IDLE

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует дрон в dict для ответа API."""
        return {
            "serial_number": self.serial_number,
            "model": self.model.value,
            "weight_limit": self.weight_limit,
            "battery_level": self.battery_level,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Drone":
        """Создаёт Drone из dict (значения могут быть строками, как в Redis)."""
        return cls(
            serial_number=data["serial_number"],
            model=DroneModel(data["model"]),
            weight_limit=int(data["weight_limit"]),
            battery_level=int(data["battery_level"]),
            state=DroneState(data["state"]),
        )


@dataclass
class MedicationItem:
    drone_serial_number: str
    code: str
    name: str
    weight: int
    image_base64: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicationItem":
        return cls(
            drone_serial_number=data["drone_serial_number"],
            code=data["code"],
            name=data["name"],
            weight=int(data["weight"]),
            image_base64=data["image_base64"],
        )


@dataclass
class BatteryReading:
    serial_number: str
    battery_level: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatteryReading":
        return cls(
            serial_number=data["serial_number"],
            battery_level=int(data["battery_level"]),
            timestamp=data["timestamp"],
        )
