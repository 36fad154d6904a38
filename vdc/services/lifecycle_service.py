# vdc/services/lifecycle_service.py
"""
Vehicle lifecycle: AWAITING_RECEIPT → RECEIVED → DELIVERED.

receive_vehicle   PUT /api/receiving   pdiin_flg 0 → 1
deliver_vehicle   PUT /api/delivery    delivery_flg 0 → 1 (only after receipt)

Result codes (TransitionResult):
  0 NOT_FOUND       unknown VIN
  1 SUCCESS         flag moved forward
  2 CONFLICT        milestone already applied, nothing changed
  3 BLOCKED         delivery requested before receipt, nothing changed
  500 INTERNAL_ERROR flags outside {0, 1}; rolled back

Mutations for one VIN are serialised: an in-process lock per VIN covers the
whole check → update → hooks span, and the row is read FOR UPDATE so other
workers wait on the database.

The derived records (label, interface, outbound flag) run as post-commit
hooks. They are not atomic with the milestone: if they fail, the milestone
stands and the failure is only visible in the audit log.
"""

import asyncio
import enum
import weakref
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Awaitable, Optional

from sqlalchemy.orm import Session
from vdc.models.vehicle import VehicleRecord
from vdc.services.audit_service import AuditLog
from vdc.services.derived_record_service import write_receipt_records, reset_outbound_flag
from vdc.utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_RECEIVE = "RECEIVING"
SOURCE_DELIVER = "DELIVERY"


class TransitionResult(enum.IntEnum):
    NOT_FOUND = 0
    SUCCESS = 1
    CONFLICT = 2
    BLOCKED = 3
    INTERNAL_ERROR = 500


class VinLocks:
    """One asyncio.Lock per VIN, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    @asynccontextmanager
    async def hold(self, vin: str):
        lock = self._locks.get(vin)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[vin] = lock
        async with lock:
            yield


_vin_locks = VinLocks()


def _load_for_update(db: Session, vin: str) -> Optional[VehicleRecord]:
    return (
        db.query(VehicleRecord)
        .filter(VehicleRecord.vin_number == vin)
        .with_for_update()
        .first()
    )


async def _run_post_commit_hook(name: str, hook: Awaitable, db: Session, vin: str,
                                source: str, audit: AuditLog, actor: Optional[str]):
    try:
        await hook
    except Exception as e:
        db.rollback()
        audit.error(source, f"Post-commit hook {name} failed",
                    {"vin_number": vin, "error": str(e)}, actor)


def _internal_error(db: Session, vin: str, source: str, flags: dict,
                    audit: AuditLog, actor: Optional[str]) -> TransitionResult:
    db.rollback()
    audit.error(source, "Unexpected flag combination, nothing updated",
                {"vin_number": vin, **flags}, actor)
    return TransitionResult.INTERNAL_ERROR


async def receive_vehicle(db: Session, vin: str, received_at: datetime,
                          audit: AuditLog, actor: Optional[str] = None) -> TransitionResult:
    async with _vin_locks.hold(vin):
        vehicle = _load_for_update(db, vin)
        await asyncio.sleep(0)  # scans of other VINs may run here
        if vehicle is None:
            db.rollback()
            audit.warn(SOURCE_RECEIVE, "VIN not found", {"vin_number": vin}, actor)
            return TransitionResult.NOT_FOUND

        current_flag = vehicle.pdiin_flg
        if current_flag == 1:
            received_before = vehicle.pdiin_time
            db.rollback()
            audit.warn(SOURCE_RECEIVE, "Vehicle already received",
                       {"vin_number": vin, "pdiin_time": received_before}, actor)
            return TransitionResult.CONFLICT
        if current_flag != 0:
            return _internal_error(db, vin, SOURCE_RECEIVE, {"pdiin_flg": current_flag}, audit, actor)

        vehicle.pdiin_flg = 1
        vehicle.pdiin_time = received_at
        db.commit()
        audit.info(SOURCE_RECEIVE, "pdiin_flg updated to 1",
                   {"vin_number": vin, "pdiin_time": received_at}, actor)

        await _run_post_commit_hook(
            "receipt_records", write_receipt_records(db, vin, received_at, audit, actor),
            db, vin, SOURCE_RECEIVE, audit, actor,
        )
        return TransitionResult.SUCCESS


async def deliver_vehicle(db: Session, vin: str, delivered_at: datetime,
                          audit: AuditLog, actor: Optional[str] = None) -> TransitionResult:
    async with _vin_locks.hold(vin):
        vehicle = _load_for_update(db, vin)
        await asyncio.sleep(0)  # scans of other VINs may run here
        if vehicle is None:
            db.rollback()
            audit.warn(SOURCE_DELIVER, "VIN not found", {"vin_number": vin}, actor)
            return TransitionResult.NOT_FOUND

        flags = {"pdiin_flg": vehicle.pdiin_flg, "delivery_flg": vehicle.delivery_flg}

        # Precedence: already delivered, then waiting receive
        if flags["delivery_flg"] == 1:
            db.rollback()
            audit.warn(SOURCE_DELIVER, "Vehicle already delivered", {"vin_number": vin}, actor)
            return TransitionResult.CONFLICT
        if flags["pdiin_flg"] == 0:
            db.rollback()
            audit.warn(SOURCE_DELIVER, "Waiting receive, delivery blocked", {"vin_number": vin}, actor)
            return TransitionResult.BLOCKED
        if not (flags["delivery_flg"] == 0 and flags["pdiin_flg"] == 1):
            return _internal_error(db, vin, SOURCE_DELIVER, flags, audit, actor)

        vehicle.delivery_flg = 1
        vehicle.delivery_time = delivered_at
        db.commit()
        audit.info(SOURCE_DELIVER, "delivery_flg updated to 1",
                   {"vin_number": vin, "delivery_time": delivered_at}, actor)

        await _run_post_commit_hook(
            "outbound_reset", reset_outbound_flag(db, vin, audit, actor),
            db, vin, SOURCE_DELIVER, audit, actor,
        )
        return TransitionResult.SUCCESS
