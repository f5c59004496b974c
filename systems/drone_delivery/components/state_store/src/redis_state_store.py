"""
RedisStateStore — хранение состояния системы доставки в Redis.

Схема ключей (prefix по умолчанию "delivery:"):
- drone:<serial>     — hash с полями дрона
- drones             — set всех serial_number
- items:<serial>     — list медикаментов (JSON) в порядке загрузки
- codes:<serial>     — set кодов медикаментов дрона
- readings:<serial>  — list снимков заряда (JSON), новые в начале

Условные обновления и загрузка партии — Lua-скрипты: Redis выполняет
скрипт целиком, без чередования с командами других клиентов.
"""
import json
from datetime import datetime, timezone
from typing import Callable, List, Optional

import redis

from systems.drone_delivery.components.state_store.src.state_store import (
    ConflictError,
    StateStore,
)
from systems.drone_delivery.src.models import (
    BatteryReading,
    Drone,
    DroneState,
    MedicationItem,
)


# KEYS: drone, drones index. ARGV: serial, field/value pairs
CREATE_DRONE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
for i = 2, #ARGV, 2 do
    redis.call('HSET', KEYS[1], ARGV[i], ARGV[i + 1])
end
redis.call('SADD', KEYS[2], ARGV[1])
return 1
"""

# KEYS: drone. ARGV: state, min_battery
UPDATE_STATE_IF_BATTERY_LUA = """
local level = redis.call('HGET', KEYS[1], 'battery_level')
if not level then
    return 0
end
if tonumber(level) < tonumber(ARGV[2]) then
    return 0
end
redis.call('HSET', KEYS[1], 'state', ARGV[1])
return 1
"""

# KEYS: drone. ARGV: battery_level
UPDATE_BATTERY_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
redis.call('HSET', KEYS[1], 'battery_level', ARGV[1])
return 1
"""

# KEYS: items, codes. ARGV: code/json pairs. Возвращает код-дубликат или число записей
INSERT_ITEMS_LUA = """
local seen = {}
for i = 1, #ARGV, 2 do
    if seen[ARGV[i]] or redis.call('SISMEMBER', KEYS[2], ARGV[i]) == 1 then
        return ARGV[i]
    end
    seen[ARGV[i]] = true
end
local count = 0
for i = 1, #ARGV, 2 do
    redis.call('SADD', KEYS[2], ARGV[i])
    redis.call('RPUSH', KEYS[1], ARGV[i + 1])
    count = count + 1
end
return count
"""


class RedisStateStore(StateStore):
    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        prefix: str = "delivery:",
        socket_timeout: float = 2.0,
        client: Optional[redis.Redis] = None,
    ):
        self.prefix = prefix
        self.redis = client or redis.Redis(
            host=host,
            port=port,
            db=db,
            password=password,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        self._create_drone_script = self.redis.register_script(CREATE_DRONE_LUA)
        self._update_state_script = self.redis.register_script(UPDATE_STATE_IF_BATTERY_LUA)
        self._update_battery_script = self.redis.register_script(UPDATE_BATTERY_LUA)
        self._insert_items_script = self.redis.register_script(INSERT_ITEMS_LUA)

    # ==================== Ключи ====================

    def _drone_key(self, serial_number: str) -> str:
        return f"{self.prefix}drone:{serial_number}"

    def _index_key(self) -> str:
        return f"{self.prefix}drones"

    def _items_key(self, serial_number: str) -> str:
        return f"{self.prefix}items:{serial_number}"

    def _codes_key(self, serial_number: str) -> str:
        return f"{self.prefix}codes:{serial_number}"

    def _readings_key(self, serial_number: str) -> str:
        return f"{self.prefix}readings:{serial_number}"

    # ==================== Дроны ====================

    def create_drone_if_absent(self, drone: Drone) -> None:
        fields = []
        for key, value in drone.to_dict().items():
            fields.extend([key, value])
        created = self._create_drone_script(
            keys=[self._drone_key(drone.serial_number), self._index_key()],
            args=[drone.serial_number, *fields],
        )
        if int(created) == 0:
            raise ConflictError(drone.serial_number)

    def get_drone(self, serial_number: str) -> Optional[Drone]:
        data = self.redis.hgetall(self._drone_key(serial_number))
        return Drone.from_dict(data) if data else None

    def list_drones(
        self, predicate: Optional[Callable[[Drone], bool]] = None
    ) -> List[Drone]:
        serials = sorted(self.redis.smembers(self._index_key()))
        if not serials:
            return []
        pipe = self.redis.pipeline(transaction=False)
        for serial_number in serials:
            pipe.hgetall(self._drone_key(serial_number))
        drones = [Drone.from_dict(row) for row in pipe.execute() if row]
        if predicate is None:
            return drones
        return [d for d in drones if predicate(d)]

    def update_state_if_battery(
        self, serial_number: str, state: DroneState, min_battery: int
    ) -> int:
        return int(self._update_state_script(
            keys=[self._drone_key(serial_number)],
            args=[state.value, min_battery],
        ))

    def update_battery(self, serial_number: str, battery_level: int) -> int:
        return int(self._update_battery_script(
            keys=[self._drone_key(serial_number)],
            args=[battery_level],
        ))

    # ==================== Медикаменты ====================

    def sum_item_weight(self, serial_number: str) -> int:
        return sum(item.weight for item in self.list_items(serial_number))

    def insert_items(self, serial_number: str, items: List[MedicationItem]) -> int:
        if not items:
            return 0
        args = []
        for item in items:
            args.extend([item.code, json.dumps(item.to_dict(), ensure_ascii=False)])
        result = self._insert_items_script(
            keys=[self._items_key(serial_number), self._codes_key(serial_number)],
            args=args,
        )
        if isinstance(result, (str, bytes)):
            code = result.decode("utf-8") if isinstance(result, bytes) else result
            raise ConflictError(code)
        return int(result)

    def list_items(self, serial_number: str) -> List[MedicationItem]:
        raw = self.redis.lrange(self._items_key(serial_number), 0, -1)
        return [MedicationItem.from_dict(json.loads(r)) for r in raw]

    # ==================== История батарей ====================

    def append_reading(self, serial_number: str, battery_level: int) -> BatteryReading:
        reading = BatteryReading(
            serial_number=serial_number,
            battery_level=battery_level,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        self.redis.lpush(
            self._readings_key(serial_number),
            json.dumps(reading.to_dict(), ensure_ascii=False),
        )
        return reading

    def list_readings(self, serial_number: str) -> List[BatteryReading]:
        raw = self.redis.lrange(self._readings_key(serial_number), 0, -1)
        return [BatteryReading.from_dict(json.loads(r)) for r in raw]

    # ==================== Служебное ====================

    def clear_all(self) -> None:
        keys = list(self.redis.scan_iter(match=f"{self.prefix}*"))
        if keys:
            self.redis.delete(*keys)

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False
