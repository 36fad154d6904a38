# vdc/services/vehicle_service.py
"""Vehicle lookup helpers behind the scanner VIN lookup (GET /api/vehicle_no/{vin})."""

import enum
from typing import Optional

from sqlalchemy.orm import Session
from vdc.models.vehicle import VehicleRecord


class VehicleState(str, enum.Enum):
    AWAITING_RECEIPT = "AWAITING_RECEIPT"
    RECEIVED = "RECEIVED"
    DELIVERED = "DELIVERED"


# Lookup status codes returned to scanners
LOOKUP_NOT_FOUND = 0
LOOKUP_WAITING_RECEIVE = 1
LOOKUP_RECEIVED = 2


def lookup_vehicle_by_vin(db: Session, vin: str) -> Optional[VehicleRecord]:
    """Find a vehicle by VIN. Returns None if not found."""
    return db.query(VehicleRecord).filter(VehicleRecord.vin_number == vin).first()


def vehicle_state(vehicle: VehicleRecord) -> VehicleState:
    """Derived from the flags; nothing stores the state itself."""
    if vehicle.delivery_flg == 1:
        return VehicleState.DELIVERED
    if vehicle.pdiin_flg == 1:
        return VehicleState.RECEIVED
    return VehicleState.AWAITING_RECEIPT


def lookup_status(vehicle: Optional[VehicleRecord]) -> int:
    if vehicle is None:
        return LOOKUP_NOT_FOUND
    if vehicle.pdiin_flg == 1:
        return LOOKUP_RECEIVED
    return LOOKUP_WAITING_RECEIVE
