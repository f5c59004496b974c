"""Запуск DroneDeliverySystem без брокера, только HTTP API на хранилище в памяти.

Env: SYSTEM_ID, SYSTEM_NAME, HTTP_PORT (по умолчанию 3000), LOG_LEVEL.
"""
import logging
import os

from shared import ports
from systems.drone_delivery.src.delivery_system import DroneDeliverySystem, create_state_store


def main():
    logging.basicConfig(level=ports.LOG_LEVEL)
    system_id = os.environ.get("SYSTEM_ID", "drone_delivery_dev")
    name = os.environ.get("SYSTEM_NAME", system_id.replace("_", " ").title())

    system = DroneDeliverySystem(
        system_id=system_id,
        name=name,
        bus=None,
        http_port=ports.DELIVERY_HTTP_PORT or 3000,
        state_store=create_state_store("memory"),
    )
    system.run_forever()


if __name__ == "__main__":
    main()
