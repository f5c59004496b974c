"""
Доменные ошибки системы доставки.

Каждая ошибка несёт kind (класс ошибки) и error_code (код для ответа
через SystemBus и HTTP). Сообщение указывает поле, дрон или порог,
который не прошёл проверку.
"""
from typing import Optional


class DeliveryError(Exception):
    """Базовая ошибка системы доставки."""

    kind = "internal"
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Ошибка очистки (перевод в LOADED), если она случилась поверх этой
        self.cleanup_error: Optional[Exception] = None


class ValidationError(DeliveryError):
    kind = "validation"
    error_code = "INVALID_REQUEST"

    def __init__(self, field: str, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.field = field
        self.index = index


class DuplicateDroneError(DeliveryError):
    kind = "conflict"
    error_code = "DRONE_ALREADY_EXISTS"

    def __init__(self, serial_number: str):
        super().__init__("drone already exists")
        self.serial_number = serial_number


class DuplicateItemError(DeliveryError):
    kind = "conflict"
    error_code = "MEDICATION_ALREADY_LOADED"

    def __init__(self, serial_number: str, code: Optional[str] = None):
        if code is None:
            message = f"medication item already loaded on drone {serial_number}"
        else:
            message = f"medication item {code} already loaded on drone {serial_number}"
        super().__init__(message)
        self.serial_number = serial_number
        self.code = code


class DroneNotFoundError(DeliveryError):
    kind = "not_found"
    error_code = "DRONE_NOT_FOUND"

    def __init__(self, serial_number: str):
        super().__init__("drone not found")
        self.serial_number = serial_number


class AlreadyLoadingError(DeliveryError):
    kind = "state_conflict"
    error_code = "DRONE_ALREADY_LOADING"

    def __init__(self, serial_number: str):
        super().__init__("drone already in loading state")
        self.serial_number = serial_number


class BatteryTooLowError(DeliveryError):
    kind = "state_conflict"
    error_code = "BATTERY_TOO_LOW"

    def __init__(self, serial_number: str, target_state: str, min_battery: int):
        super().__init__(
            f"drone without enough battery level "
            f"({min_battery}% required for {target_state})"
        )
        self.serial_number = serial_number
        self.target_state = target_state
        self.min_battery = min_battery


class WeightLimitExceededError(DeliveryError):
    kind = "capacity_exceeded"
    error_code = "WEIGHT_LIMIT_EXCEEDED"

    def __init__(self, serial_number: str, weight_limit: int, total_weight: int):
        super().__init__(
            f"drone weight limit reached ({total_weight} > {weight_limit})"
        )
        self.serial_number = serial_number
        self.weight_limit = weight_limit
        self.total_weight = total_weight


class BatteryUpdateError(DeliveryError):
    """Обновление батареи не затронуло ни одной записи."""

    def __init__(self, serial_number: str):
        super().__init__(f"drone {serial_number} battery level update failed")
        self.serial_number = serial_number
