# vdc/schemas/log.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ApiLogOut(BaseModel):
    id: int
    log_level: str
    source: str
    message: str
    details: Optional[str]
    actor: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class MonitorStatsOut(BaseModel):
    pending_sync: int
    waiting_receive: int
    error_today: int
    sync_running: bool
    logs: list[ApiLogOut]
