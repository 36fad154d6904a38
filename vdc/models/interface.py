# vdc/models/interface.py
"""
Interface tables shared with downstream systems.
pdiin_interface: created on receipt, picked up by the printing/interface job.
outbound_interface: existing per-VIN row whose ready_flg is reset on delivery
so the downstream system re-processes the vehicle.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from vdc.database import Base


class InboundInterfaceRecord(Base):
    __tablename__ = "pdiin_interface"

    id = Column(Integer, primary_key=True, autoincrement=True)
    gaoff_id = Column(Integer, ForeignKey("gaoff.id"), nullable=False)
    vin_number = Column(String(50), unique=True, nullable=False, index=True)
    interface_flg = Column(Integer, default=0, nullable=False)
    print_flg = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<InboundInterfaceRecord {self.vin_number} interfaced={self.interface_flg}>"


class OutboundInterfaceFlag(Base):
    __tablename__ = "outbound_interface"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vin_number = Column(String(50), unique=True, nullable=False, index=True)
    ready_flg = Column(Integer, default=1, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<OutboundInterfaceFlag {self.vin_number} ready={self.ready_flg}>"
