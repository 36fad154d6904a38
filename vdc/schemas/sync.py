# vdc/schemas/sync.py
from pydantic import BaseModel
from typing import Optional


class SyncItemOut(BaseModel):
    vin_number: str
    outcome: str
    http_status: Optional[int]
    remote_code: Optional[str]
    detail: Optional[str]

    class Config:
        from_attributes = True


class SyncSummaryOut(BaseModel):
    found: int
    success_count: int
    rejected_count: int
    network_error_count: int
    error_count: int
    marked_count: int
    skipped: bool
    items: list[SyncItemOut]

    class Config:
        from_attributes = True
