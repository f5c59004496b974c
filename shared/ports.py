"""
Конфигурация портов, хостов и параметров систем.

Поддерживает переменные окружения для Docker-развертывания.
В Docker хосты = имена контейнеров, локально = localhost.
"""
import os

# =============================================================================
# Порты систем
# =============================================================================

# HTTP API системы доставки (0 = HTTP не поднимается)
DELIVERY_HTTP_PORT = int(os.environ.get("HTTP_PORT", "0") or "0")

# MQTT
MQTT_PORT = int(os.environ.get("MQTT_PORT", "1883"))
MQTT_QOS = int(os.environ.get("MQTT_QOS", "1"))

# Redis
REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
REDIS_DB = int(os.environ.get("REDIS_DB", "0"))


# =============================================================================
# Хосты систем (для Docker используем имена контейнеров)
# =============================================================================

MQTT_HOST = os.environ.get("MQTT_HOST", os.environ.get("MQTT_BROKER", "localhost"))
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD")


# =============================================================================
# Хранилище и брокер
# =============================================================================

BROKER_TYPE = os.environ.get("BROKER_TYPE", "mqtt").strip().lower()
STORE_BACKEND = os.environ.get("STORE_BACKEND", "redis").strip().lower()
REDIS_KEY_PREFIX = os.environ.get("REDIS_KEY_PREFIX", "delivery:")
# Таймаут вызовов Redis (секунды)
REDIS_SOCKET_TIMEOUT = float(os.environ.get("REDIS_SOCKET_TIMEOUT", "2"))


# =============================================================================
# Параметры доставки
# =============================================================================

# Минимальный заряд для перехода в LOADING (%)
LOADING_MIN_BATTERY = int(os.environ.get("LOADING_MIN_BATTERY", "25"))
# Разряд батареи за один проход монитора (%)
BATTERY_DISCHARGE_PER_TICK = int(os.environ.get("BATTERY_DISCHARGE_PER_TICK", "1"))
BATTERY_CHECK_INTERVAL_SEC = float(os.environ.get("BATTERY_CHECK_INTERVAL_SEC", "60"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


# =============================================================================
# Функции для получения адресов сервисов
# =============================================================================

def get_mqtt_broker() -> tuple[str, int]:
    """Возвращает (host, port) для MQTT брокера."""
    return MQTT_HOST, MQTT_PORT


def get_redis_url() -> str:
    """Возвращает URL Redis (без пароля) для логов и статуса."""
    return f"redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"
