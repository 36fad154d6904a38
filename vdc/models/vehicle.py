# vdc/models/vehicle.py
"""
GA-off vehicle table — one row per produced vehicle, keyed by VIN.
Rows are created by the production line (hand-off); this service only
moves the milestone flags forward: pdiin_flg (receipt), delivery_flg,
and api_flg (exported to the logistics platform).
"""

from sqlalchemy import Column, Integer, String, DateTime
from vdc.database import Base


class VehicleRecord(Base):
    __tablename__ = "gaoff"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vin_number = Column(String(50), unique=True, nullable=False, index=True)
    vc_code = Column(String(50), nullable=False, index=True)
    engine_code = Column(String(50))
    ga_off_time = Column(DateTime)
    pdiin_flg = Column(Integer, default=0, nullable=False)
    pdiin_time = Column(DateTime)
    delivery_flg = Column(Integer, default=0, nullable=False)
    delivery_time = Column(DateTime)
    api_flg = Column(Integer, default=0, nullable=False, index=True)

    def __repr__(self):
        return (f"<VehicleRecord {self.vin_number} pdiin={self.pdiin_flg} "
                f"delivery={self.delivery_flg} api={self.api_flg}>")
