# vdc/models/catalog.py
"""
Vehicle-code master. Maintained elsewhere; read here only to resolve
model and color for label records.
"""

from sqlalchemy import Column, Integer, String
from vdc.database import Base


class VehicleCatalog(Base):
    __tablename__ = "vc_master"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vc_code = Column(String(50), unique=True, nullable=False, index=True)
    model_name = Column(String(100), nullable=False)
    color_name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<VehicleCatalog {self.vc_code} {self.model_name}/{self.color_name}>"
