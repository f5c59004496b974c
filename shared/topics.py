"""
Константы топиков для SystemBus.

Политика: 1 топик = 1 система/модуль
Маршрутизация по полю "action" внутри сообщения.
"""


# ============================================================================
# Топики для систем (systems)
# ============================================================================

class SystemTopics:
    """Топики для межсистемного взаимодействия."""

    # Служба доставки медикаментов дронами
    DRONE_DELIVERY = "systems.drone_delivery"

    # События службы доставки (снимки заряда батарей)
    DRONE_DELIVERY_EVENTS = "systems.drone_delivery.events"

    @classmethod
    def all(cls) -> list:
        """Возвращает список всех системных топиков."""
        return [
            cls.DRONE_DELIVERY,
            cls.DRONE_DELIVERY_EVENTS,
        ]


# ============================================================================
# Actions для службы доставки
# ============================================================================

class DroneDeliveryActions:
    """Действия службы доставки."""

    REGISTER_DRONE = "register_drone"
    GET_DRONE = "get_drone"
    LOAD_DRONE = "load_drone"
    GET_MEDICATION_ITEMS = "get_medication_items"
    GET_AVAILABLE_DRONES = "get_available_drones"
    GET_BATTERY_LEVEL = "get_battery_level"
    GET_BATTERY_HISTORY = "get_battery_history"
    RESET_FLEET = "reset_fleet"
    RESPONSE = "response"


class DroneDeliveryEvents:
    """События, публикуемые службой доставки."""

    BATTERY_READING = "battery.reading"
