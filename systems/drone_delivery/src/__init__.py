from .errors import (
	DeliveryError,
	ValidationError,
	DuplicateDroneError,
	DuplicateItemError,
	DroneNotFoundError,
	AlreadyLoadingError,
	BatteryTooLowError,
	WeightLimitExceededError,
	BatteryUpdateError,
)
from .models import (
	Drone,
	DroneModel,
	DroneState,
	MedicationItem,
	BatteryReading,
)

__all__ = [
	"DeliveryError",
	"ValidationError",
	"DuplicateDroneError",
	"DuplicateItemError",
	"DroneNotFoundError",
	"AlreadyLoadingError",
	"BatteryTooLowError",
	"WeightLimitExceededError",
	"BatteryUpdateError",
	"Drone",
	"DroneModel",
	"DroneState",
	"MedicationItem",
	"BatteryReading",
]
