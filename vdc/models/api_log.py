# vdc/models/api_log.py
"""
Append-only audit log. Written by AuditLog, read by the monitor endpoints.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from vdc.database import Base


class ApiLog(Base):
    __tablename__ = "api_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    log_level = Column(String(10), nullable=False, index=True)   # INFO | WARN | ERROR
    source = Column(String(50), nullable=False, index=True)
    message = Column(String(255), nullable=False)
    details = Column(Text)
    actor = Column(String(100))
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<ApiLog {self.id} {self.log_level} {self.source}>"
