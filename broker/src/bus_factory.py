"""
Factory для создания SystemBus на основе конфигурации.
Поддерживаемые типы: mqtt, none (система работает только через HTTP).
"""
from typing import Dict, Optional

from broker.mqtt.mqtt_system_bus import MQTTSystemBus
from shared import ports
from .system_bus import SystemBus


def create_system_bus(
    bus_type: Optional[str] = None,
    client_id: Optional[str] = None,
    config: Optional[Dict] = None
) -> Optional[SystemBus]:
    """
    Создает SystemBus указанного типа для межсистемного взаимодействия.

    Args:
        bus_type: Тип SystemBus ("mqtt", "none").
                  Если None, берется из config или BROKER_TYPE.
        client_id: Идентификатор клиента MQTT
        config: Словарь с конфигурацией:
                - broker.type: тип брокера
                - broker.mqtt: настройки MQTT

    Returns:
        SystemBus или None для типа "none"

    Raises:
        ValueError: Если указан неизвестный тип
    """
    if bus_type is None:
        if config and "broker" in config and "type" in config["broker"]:
            bus_type = config["broker"]["type"]
        else:
            bus_type = ports.BROKER_TYPE

    bus_type = bus_type.lower()

    mqtt_config = {}
    if config and "broker" in config:
        mqtt_config = config["broker"].get("mqtt", {})

    if bus_type == "mqtt":
        host, default_port = ports.get_mqtt_broker()
        broker = mqtt_config.get("broker", host)
        port = mqtt_config.get("port", default_port)
        cid = client_id or mqtt_config.get("client_id", "system_bus")
        qos = mqtt_config.get("qos", ports.MQTT_QOS)
        return MQTTSystemBus(broker=broker, port=port, client_id=cid, qos=qos)

    elif bus_type == "none":
        return None

    else:
        raise ValueError(
            f"Unknown broker type: {bus_type}. Supported types: 'mqtt', 'none'"
        )
