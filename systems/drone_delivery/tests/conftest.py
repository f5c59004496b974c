"""
Общие фикстуры для всех тестов службы доставки.
"""

import fakeredis
import pytest
from unittest.mock import Mock

from systems.drone_delivery.components.battery_monitor.src.battery_monitor import BatteryMonitor
from systems.drone_delivery.components.drone_registry.src.drone_registry import DroneRegistry
from systems.drone_delivery.components.load_coordinator.src.load_coordinator import LoadCoordinator
from systems.drone_delivery.components.state_store.src.memory_state_store import MemoryStateStore
from systems.drone_delivery.components.state_store.src.redis_state_store import RedisStateStore
from systems.drone_delivery.src.delivery_system import DroneDeliverySystem


@pytest.fixture
def state_store():
    """Фикстура: чистое хранилище в памяти."""
    return MemoryStateStore()


@pytest.fixture
def registry(state_store):
    return DroneRegistry(state_store)


@pytest.fixture
def coordinator(registry, state_store):
    return LoadCoordinator(registry, state_store)


@pytest.fixture
def monitor(registry, state_store):
    return BatteryMonitor(registry, state_store, discharge_per_tick=1, interval_sec=0.01)


@pytest.fixture
def mock_redis():
    """Мок Redis-клиента: каждый Lua-скрипт — отдельный мок."""
    mock = Mock()
    mock.register_script.side_effect = lambda source: Mock(name="script")
    mock.hgetall.return_value = {}
    mock.smembers.return_value = set()
    mock.lrange.return_value = []
    mock.scan_iter.return_value = iter([])
    return mock


@pytest.fixture
def redis_store(mock_redis):
    """Фикстура: RedisStateStore с моком Redis."""
    return RedisStateStore(client=mock_redis)


@pytest.fixture
def fake_redis():
    """In-process Redis с исполнением Lua-скриптов."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def fake_redis_store(fake_redis):
    """Фикстура: RedisStateStore поверх fakeredis, скрипты выполняются."""
    return RedisStateStore(client=fake_redis)


@pytest.fixture
def mock_bus():
    """Мок SystemBus для изоляции от реального брокера."""
    bus = Mock()
    bus.request = Mock(return_value=None)
    bus.publish = Mock(return_value=True)
    return bus


@pytest.fixture
def delivery_system(mock_bus, state_store):
    """Фикстура: система доставки на хранилище в памяти."""
    return DroneDeliverySystem(
        system_id="drone-delivery-test",
        name="TestDelivery",
        bus=mock_bus,
        http_port=None,
        state_store=state_store,
        battery_check_interval_sec=0.01,
    )


@pytest.fixture
def http_client(delivery_system):
    app = delivery_system.create_http_app()
    app.config["TESTING"] = True
    return app.test_client()
