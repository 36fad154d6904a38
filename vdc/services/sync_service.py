# vdc/services/sync_service.py
"""
Sync reconciliation: export every vehicle with api_flg = 0 to the logistics
platform, then mark the batch.

One cycle:
  1. select the pending batch (exact id set)
  2. push each vehicle once; every outcome is logged, none aborts the batch
  3. set api_flg = 1 on the selected ids only
  4. return a SyncSummary

With SYNC_MARK_FAILED_AS_SYNCED (default) step 3 marks the whole batch, so a
rejected or failed push is not retried unless someone resets its api_flg.
With it off, only accepted vehicles are marked and the rest stay pending for
the next cycle.

Scheduled ("AUTO") and on-demand calls share this code path. Cycles never
overlap: a request arriving while one runs returns a skipped summary.
"""

import asyncio
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from vdc.models.vehicle import VehicleRecord
from vdc.services.audit_service import AuditLog, INFO, WARN
from vdc.services.export_client import ExportClient, PushResult, build_payload, SUCCESS, REJECTED, NETWORK_ERROR
from vdc.utils.logger import get_logger

logger = get_logger(__name__)

SOURCE = "SYNC"
AUTO_ACTOR = "AUTO"


@dataclass
class SyncSummary:
    found: int = 0
    success_count: int = 0
    rejected_count: int = 0
    network_error_count: int = 0
    marked_count: int = 0
    skipped: bool = False
    items: list = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return self.rejected_count + self.network_error_count

    def add(self, result: PushResult):
        self.items.append(result)
        if result.outcome == SUCCESS:
            self.success_count += 1
        elif result.outcome == REJECTED:
            self.rejected_count += 1
        else:
            self.network_error_count += 1

    def as_dict(self) -> dict:
        data = asdict(self)
        data["error_count"] = self.error_count
        return data


class SyncEngine:
    def __init__(self, session_factory: Callable[[], Session], audit: AuditLog,
                 client: ExportClient, mark_failed_as_synced: bool = True):
        self._session_factory = session_factory
        self._audit = audit
        self._client = client
        self.mark_failed_as_synced = mark_failed_as_synced
        self._cycle_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._cycle_lock.locked()

    async def sync_pending(self, actor: Optional[str] = AUTO_ACTOR) -> SyncSummary:
        if self._cycle_lock.locked():
            self._audit.warn(SOURCE, "Sync cycle already running, request skipped", None, actor)
            return SyncSummary(skipped=True)
        async with self._cycle_lock:
            return await self._run_cycle(actor)

    async def _run_cycle(self, actor: Optional[str]) -> SyncSummary:
        summary = SyncSummary()
        db = self._session_factory()
        try:
            pending = (
                db.query(VehicleRecord)
                .filter(VehicleRecord.api_flg == 0)
                .order_by(VehicleRecord.id)
                .all()
            )
            batch = [(vehicle.id, build_payload(vehicle)) for vehicle in pending]
            # Release the connection while the batch is pushed
            db.commit()

            summary.found = len(batch)
            if not batch:
                self._audit.info(SOURCE, "No pending vehicles to sync", {"found": 0}, actor)
                return summary

            logger.info(f"Sync cycle started by {actor}: {len(batch)} pending")
            accepted_ids = []
            async with self._client.session() as http:
                for vehicle_id, payload in batch:
                    result = await self._client.push(http, payload)
                    summary.add(result)
                    self._log_result(result, payload, actor)
                    if result.outcome == SUCCESS:
                        accepted_ids.append(vehicle_id)

            to_mark = [vehicle_id for vehicle_id, _ in batch] if self.mark_failed_as_synced else accepted_ids
            summary.marked_count = self._mark_synced(db, to_mark)
        except SQLAlchemyError as e:
            db.rollback()
            self._audit.error(SOURCE, "Sync cycle aborted by database error", {"error": str(e)}, actor)
            raise
        finally:
            db.close()

        level = INFO if summary.error_count == 0 else WARN
        self._audit.record(level, SOURCE, "Sync cycle finished", {
            "found": summary.found,
            "success_count": summary.success_count,
            "rejected_count": summary.rejected_count,
            "network_error_count": summary.network_error_count,
            "marked_count": summary.marked_count,
        }, actor)
        return summary

    def _mark_synced(self, db: Session, ids: list) -> int:
        if not ids:
            return 0
        marked = (
            db.query(VehicleRecord)
            .filter(VehicleRecord.id.in_(ids))
            .update({VehicleRecord.api_flg: 1}, synchronize_session=False)
        )
        db.commit()
        return marked

    def _log_result(self, result: PushResult, payload: dict, actor: Optional[str]):
        details = {"vin_number": result.vin_number, "http_status": result.http_status,
                   "code": result.remote_code, "detail": result.detail}
        if result.outcome == SUCCESS:
            self._audit.info(SOURCE, "Vehicle exported", details, actor)
        elif result.outcome == REJECTED:
            self._audit.warn(SOURCE, "Vehicle rejected by platform", {**details, "payload": payload}, actor)
        elif result.outcome == NETWORK_ERROR:
            self._audit.error(SOURCE, "Vehicle export failed", details, actor)
