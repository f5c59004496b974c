"""
HTTP API службы доставки (Flask Blueprint).

Переводит запросы в вызовы компонентов системы и доменные ошибки
в HTTP-статусы.
"""
from typing import Any, Dict, List, TYPE_CHECKING

from flask import Blueprint, jsonify, request

from systems.drone_delivery.src.errors import (
    AlreadyLoadingError,
    BatteryTooLowError,
    DeliveryError,
    DroneNotFoundError,
    DuplicateDroneError,
    DuplicateItemError,
    ValidationError,
    WeightLimitExceededError,
)

if TYPE_CHECKING:
    from systems.drone_delivery.src.delivery_system import DroneDeliverySystem


HTTP_STATUS_BY_ERROR = {
    ValidationError: 400,
    DuplicateDroneError: 400,
    DuplicateItemError: 400,
    AlreadyLoadingError: 400,
    BatteryTooLowError: 400,
    WeightLimitExceededError: 400,
    DroneNotFoundError: 404,
}


def error_status(error: DeliveryError) -> int:
    for error_cls, status in HTTP_STATUS_BY_ERROR.items():
        if isinstance(error, error_cls):
            return status
    return 500


def error_body(error: DeliveryError) -> Dict[str, Any]:
    body = {"message": error.message, "error_code": error.error_code}
    if isinstance(error, ValidationError):
        body["field"] = error.field
        if error.index is not None:
            body["index"] = error.index
    return body


def results(records: List[Any]) -> Dict[str, Any]:
    return {"size": len(records), "results": [r.to_dict() for r in records]}


def create_blueprint(system: "DroneDeliverySystem") -> Blueprint:
    api = Blueprint("drone_delivery", __name__)

    @api.errorhandler(DeliveryError)
    def handle_delivery_error(error: DeliveryError):
        return jsonify(error_body(error)), error_status(error)

    @api.route("/drones", methods=["POST"])
    def register_drone():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("body", "drone object required")
        drone = system.registry.register(
            body.get("serial_number"),
            body.get("model"),
            body.get("battery_level"),
        )
        return jsonify(drone.to_dict())

    @api.route("/drones/availability/loading", methods=["GET"])
    def get_available_drones():
        return jsonify(results(system.registry.list_available_for_loading()))

    @api.route("/drones/<serial_number>", methods=["GET"])
    def get_drone(serial_number: str):
        return jsonify(system.registry.require(serial_number).to_dict())

    @api.route("/drones/<serial_number>/medication-items", methods=["POST"])
    def load_drone(serial_number: str):
        items = system.coordinator.load_drone(serial_number, request.get_json(silent=True))
        return jsonify(results(items))

    @api.route("/drones/<serial_number>/medication-items", methods=["GET"])
    def get_medication_items(serial_number: str):
        return jsonify(results(system.coordinator.get_load(serial_number)))

    @api.route("/drones/<serial_number>/battery-level", methods=["GET"])
    def get_battery_level(serial_number: str):
        return jsonify(system.registry.require(serial_number).battery_level)

    @api.route("/drones/<serial_number>/battery-history", methods=["GET"])
    def get_battery_history(serial_number: str):
        system.registry.require(serial_number)
        return jsonify(results(system.monitor.history(serial_number)))

    return api
