from .system_bus import SystemBus
from .bus_factory import create_system_bus

__all__ = ["SystemBus", "create_system_bus"]
