"""
LoadCoordinator — загрузка дрона партией медикаментов.

Партия проверяется целиком (поля и суммарный вес) до записи и
сохраняется одной атомарной операцией хранилища: либо все позиции,
либо ни одной. После перевода дрона в LOADING он на любом выходе
возвращается в LOADED (см. DroneRegistry.loading).
"""
import logging
import re
from typing import Any, Dict, List

from systems.drone_delivery.components.drone_registry.src.drone_registry import (
    DroneRegistry,
    is_number,
    is_whole,
)
from systems.drone_delivery.components.state_store.src.state_store import (
    ConflictError,
    StateStore,
)
from systems.drone_delivery.src.errors import (
    AlreadyLoadingError,
    DroneNotFoundError,
    DuplicateItemError,
    ValidationError,
    WeightLimitExceededError,
)
from systems.drone_delivery.src.models import (
    MAX_WEIGHT_LIMIT,
    DroneState,
    MedicationItem,
)


logger = logging.getLogger(__name__)

MEDICATION_CODE_PATTERN = re.compile(r"[A-Z0-9_]*")
MEDICATION_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]*")
IMAGE_DATA_URI_PREFIX = "data:"


def validate_item(serial_number: str, raw: Any, index: int) -> MedicationItem:
    """
    Проверить одну позицию партии и собрать MedicationItem.

    Поля проверяются в порядке code, name, weight, image_base64;
    первая ошибка прерывает проверку.
    """
    if not isinstance(raw, dict):
        raise ValidationError("medication_items", "medication item object required", index)

    code = raw.get("code")
    if not isinstance(code, str):
        raise ValidationError("code", "code string field required", index)
    if not MEDICATION_CODE_PATTERN.fullmatch(code):
        raise ValidationError("code", "invalid code field value", index)

    name = raw.get("name")
    if not isinstance(name, str):
        raise ValidationError("name", "name string field required", index)
    if not MEDICATION_NAME_PATTERN.fullmatch(name):
        raise ValidationError("name", "invalid name field value", index)

    weight = raw.get("weight")
    if not is_number(weight):
        raise ValidationError("weight", "weight number field required", index)
    if weight < 0 or weight > MAX_WEIGHT_LIMIT or not is_whole(weight):
        raise ValidationError("weight", "invalid weight field value", index)

    image_base64 = raw.get("image_base64")
    if not isinstance(image_base64, str):
        raise ValidationError("image_base64", "image_base64 string field required", index)
    if not image_base64.startswith(IMAGE_DATA_URI_PREFIX):
        raise ValidationError("image_base64", "invalid image_base64 field value", index)

    return MedicationItem(
        drone_serial_number=serial_number,
        code=code,
        name=name,
        weight=int(weight),
        image_base64=image_base64,
    )


class LoadCoordinator:
    """Транзакция загрузки медикаментов на дрон."""

    def __init__(self, registry: DroneRegistry, state_store: StateStore):
        self.registry = registry
        self.state = state_store

    def load_drone(
        self, serial_number: str, items: List[Dict[str, Any]]
    ) -> List[MedicationItem]:
        """
        Загрузить дрон партией медикаментов.

        Args:
            serial_number: Номер дрона
            items: Непустой список {code, name, weight, image_base64}

        Returns:
            Все медикаменты дрона (ранее загруженные и новые)

        Raises:
            ValidationError: партия не список/пуста или позиция не прошла проверку
            DroneNotFoundError: дрон не зарегистрирован
            AlreadyLoadingError: дрон уже в состоянии LOADING
            BatteryTooLowError: заряд ниже порога загрузки
            WeightLimitExceededError: суммарный вес превышает weight_limit
            DuplicateItemError: код уже загружен на этот дрон
        """
        drone = self.registry.get(serial_number)
        if drone is None:
            raise DroneNotFoundError(serial_number)
        if not isinstance(items, list) or not items:
            raise ValidationError("medication_items", "medication_items array field required")
        # Проверка не эксклюзивна: параллельная загрузка может пройти её
        # до того, как первая зафиксирует LOADING.
        if drone.state is DroneState.LOADING:
            raise AlreadyLoadingError(serial_number)

        try:
            with self.registry.loading(drone):
                batch = self._build_batch(drone.serial_number, drone.weight_limit, items)
                try:
                    self.state.insert_items(serial_number, batch)
                except ConflictError as exc:
                    raise DuplicateItemError(serial_number, str(exc) or None) from None
        except Exception as exc:
            logger.warning(f"Load of drone {serial_number} rejected: {exc}")
            raise

        logger.info(f"Loaded {len(batch)} medication item(s) on drone {serial_number}")
        return self.state.list_items(serial_number)

    def _build_batch(
        self, serial_number: str, weight_limit: int, items: List[Dict[str, Any]]
    ) -> List[MedicationItem]:
        total_weight = self.state.sum_item_weight(serial_number)
        codes = set()
        batch = []
        for index, raw in enumerate(items):
            item = validate_item(serial_number, raw, index)
            total_weight += item.weight
            if total_weight > weight_limit:
                raise WeightLimitExceededError(serial_number, weight_limit, total_weight)
            if item.code in codes:
                raise DuplicateItemError(serial_number, item.code)
            codes.add(item.code)
            batch.append(item)
        return batch

    def get_load(self, serial_number: str) -> List[MedicationItem]:
        """Медикаменты дрона. DroneNotFoundError, если дрона нет."""
        self.registry.require(serial_number)
        return self.state.list_items(serial_number)
