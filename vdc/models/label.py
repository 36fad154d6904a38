# vdc/models/label.py
"""Label print queue — one row per received vehicle, consumed by the label printer."""

from sqlalchemy import Column, Integer, String, DateTime
from vdc.database import Base

DEFAULT_LOCATION = "-"


class LabelRecord(Base):
    __tablename__ = "label_print"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vin_number = Column(String(50), unique=True, nullable=False, index=True)
    vc_code = Column(String(50), nullable=False)
    model_name = Column(String(100))
    color_name = Column(String(100))
    location = Column(String(50), default=DEFAULT_LOCATION, nullable=False)
    print_flg = Column(Integer, default=0, nullable=False)
    received_at = Column(DateTime)

    def __repr__(self):
        return f"<LabelRecord {self.vin_number} printed={self.print_flg}>"
