"""Точка входа для систем: python -m systems.

Тип системы выбирается через переменную окружения SYSTEM_TYPE:
    - drone_delivery (по умолчанию)
"""
import logging
import os
import sys

from broker.src.bus_factory import create_system_bus
from shared import ports
from systems.drone_delivery.src.delivery_system import DroneDeliverySystem


def main() -> None:
    logging.basicConfig(
        level=ports.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system_type = os.environ.get("SYSTEM_TYPE", "drone_delivery").strip().lower()
    system_id = os.environ.get("SYSTEM_ID", f"{system_type}_001")
    name = os.environ.get("SYSTEM_NAME", system_id.replace("_", " ").title())

    if system_type not in {"drone_delivery", "delivery"}:
        print("Unsupported SYSTEM_TYPE. Use 'drone_delivery'", file=sys.stderr)
        sys.exit(1)

    bus = create_system_bus(client_id=system_id)
    system = DroneDeliverySystem(
        system_id=system_id,
        name=name,
        bus=bus,
        http_port=ports.DELIVERY_HTTP_PORT or None,
    )
    system.run_forever()


if __name__ == "__main__":
    main()
