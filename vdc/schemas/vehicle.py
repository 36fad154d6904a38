# vdc/schemas/vehicle.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ReceiveRequest(BaseModel):
    vin_number: str
    received_at: Optional[datetime] = None   # defaults to server time


class DeliveryRequest(BaseModel):
    vin_number: str
    delivered_at: Optional[datetime] = None  # defaults to server time


class TransitionOut(BaseModel):
    status: int
    message: str
    vin_number: str


class VehicleLookupOut(BaseModel):
    status: int
    message: str
    vehicle_number: str
    vehicle_code: Optional[str] = None
    engine_code: Optional[str] = None
    ga_off_time: Optional[datetime] = None
    pdiin_flg: Optional[int] = None
    delivery_flg: Optional[int] = None
    state: Optional[str] = None
