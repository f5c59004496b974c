"""
DroneRegistry — компонент для учёта дронов и их состояния.

Единственный компонент, который пишет state и battery_level дрона.
Переходы состояний выполняются одним условным обновлением хранилища,
чтобы разряд батареи не мог вклиниться между проверкой и записью.
"""
import logging
import math
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from systems.drone_delivery.components.state_store.src.state_store import (
    ConflictError,
    StateStore,
)
from systems.drone_delivery.src.errors import (
    BatteryTooLowError,
    BatteryUpdateError,
    DroneNotFoundError,
    DuplicateDroneError,
    ValidationError,
)
from systems.drone_delivery.src.models import (
    MAX_BATTERY_CAPACITY,
    MAX_SERIAL_NUMBER_LENGTH,
    Drone,
    DroneModel,
    DroneState,
)


logger = logging.getLogger(__name__)

DEFAULT_LOADING_MIN_BATTERY = 25


def is_number(value: Any) -> bool:
    """bool в Python — подкласс int, но числом поля не считается."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_whole(value: Any) -> bool:
    """Конечное целое значение: 10 и 10.0, но не 10.5, nan или inf."""
    return math.isfinite(value) and int(value) == value


class DroneRegistry:
    """Реестр дронов службы доставки."""

    def __init__(
        self,
        state_store: StateStore,
        loading_min_battery: int = DEFAULT_LOADING_MIN_BATTERY,
    ):
        self.state = state_store
        self.loading_min_battery = loading_min_battery

    # ==================== Регистрация и чтение ====================

    def register(self, serial_number: Any, model: Any, battery_level: Any) -> Drone:
        """
        Зарегистрировать новый дрон в состоянии IDLE.

        Args:
            serial_number: Уникальный номер (строка до 100 символов)
            model: Имя модели (Lightweight, Middleweight, Cruiserweight, Heavyweight)
            battery_level: Начальный заряд, целое 0..100

        Raises:
            ValidationError: поле не прошло проверку (field указывает какое)
            DuplicateDroneError: дрон с таким номером уже зарегистрирован
        """
        if not isinstance(serial_number, str):
            raise ValidationError("serial_number", "serial_number string field required")
        if len(serial_number) > MAX_SERIAL_NUMBER_LENGTH:
            raise ValidationError("serial_number", "maximum serial_number length reached")
        if not isinstance(model, str):
            raise ValidationError("model", "model string field required")
        drone_model = DroneModel.parse(model)
        if drone_model is None:
            raise ValidationError("model", "invalid model field value")
        if not is_number(battery_level):
            raise ValidationError("battery_level", "battery_level number field required")
        if (
            battery_level < 0
            or battery_level > MAX_BATTERY_CAPACITY
            or not is_whole(battery_level)
        ):
            raise ValidationError("battery_level", "invalid battery_level field value")

        drone = Drone(
            serial_number=serial_number,
            model=drone_model,
            weight_limit=drone_model.weight_limit,
            battery_level=int(battery_level),
            state=DroneState.IDLE,
        )
        try:
            self.state.create_drone_if_absent(drone)
        except ConflictError:
            raise DuplicateDroneError(serial_number) from None

        logger.info(
            f"Registered drone {serial_number} ({drone_model.value}, "
            f"battery {drone.battery_level}%)"
        )
        return self.state.get_drone(serial_number) or drone

    def get(self, serial_number: str) -> Optional[Drone]:
        """Получить дрон или None."""
        return self.state.get_drone(serial_number)

    def require(self, serial_number: str) -> Drone:
        """Получить дрон или DroneNotFoundError."""
        drone = self.state.get_drone(serial_number)
        if drone is None:
            raise DroneNotFoundError(serial_number)
        return drone

    def list_available_for_loading(self) -> List[Drone]:
        """Свободные (IDLE) дроны с зарядом не ниже порога загрузки."""
        return self.state.list_drones(
            lambda d: d.state is DroneState.IDLE
            and d.battery_level >= self.loading_min_battery
        )

    def list_discharging(self) -> List[Drone]:
        """Дроны с ненулевым зарядом — их разряжает монитор батарей."""
        return self.state.list_drones(lambda d: d.battery_level > 0)

    # ==================== Переходы состояний ====================

    def min_battery_for(self, target_state: DroneState) -> int:
        return self.loading_min_battery if target_state is DroneState.LOADING else 0

    def transition(self, drone: Drone, target_state: DroneState) -> None:
        """
        Перевести дрон в target_state, если его текущий заряд в хранилище
        не ниже порога (25% для LOADING, для остальных порога нет).

        Raises:
            BatteryTooLowError: обновление не затронуло записей (заряд
                ниже порога или дрона больше нет)
        """
        min_battery = self.min_battery_for(target_state)
        updated = self.state.update_state_if_battery(
            drone.serial_number, target_state, min_battery
        )
        if updated == 0:
            raise BatteryTooLowError(drone.serial_number, target_state.value, min_battery)
        logger.debug(f"Drone {drone.serial_number} -> {target_state.value}")

    @contextmanager
    def loading(self, drone: Drone) -> Iterator[Drone]:
        """
        Сессия загрузки: LOADING на входе, LOADED на любом выходе.

        Если перевод в LOADING не удался, блок не выполняется и очистки нет.
        Ошибка очистки не заменяет исходную ошибку блока: она пишется
        в лог и прикрепляется к ней как cleanup_error.
        """
        self.transition(drone, DroneState.LOADING)
        try:
            yield drone
        except BaseException as primary:
            self._release_after_failure(drone, primary)
            raise
        self.transition(drone, DroneState.LOADED)

    def _release_after_failure(self, drone: Drone, primary: BaseException) -> None:
        try:
            self.transition(drone, DroneState.LOADED)
        except Exception as cleanup_error:
            logger.error(
                f"Drone {drone.serial_number} not released to LOADED "
                f"after failed load: {cleanup_error}"
            )
            primary.cleanup_error = cleanup_error

    # ==================== Батарея ====================

    def set_battery_level(self, drone: Drone, battery_level: int) -> int:
        """
        Записать уровень заряда дрона.

        Raises:
            BatteryUpdateError: дрона больше нет в хранилище
        """
        if self.state.update_battery(drone.serial_number, battery_level) == 0:
            raise BatteryUpdateError(drone.serial_number)
        return battery_level

    # ==================== Служебное ====================

    def reset(self) -> None:
        """Сбросить весь парк: дроны, медикаменты и историю батарей."""
        self.state.clear_all()
        logger.warning("Fleet reset: all drones, medication items and readings removed")
