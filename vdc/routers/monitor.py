# vdc/routers/monitor.py
"""
Monitoring feed: queue counters and the audit log.
Backs the read-only dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from vdc.database import get_db
from vdc.dependencies import get_current_principal, get_sync_engine
from vdc.models.vehicle import VehicleRecord
from vdc.schemas.log import ApiLogOut, MonitorStatsOut
from vdc.services.audit_service import recent_logs, count_errors_today
from vdc.services.auth_service import Principal
from vdc.services.sync_service import SyncEngine

router = APIRouter()


@router.get("/monitor/stats", response_model=MonitorStatsOut, summary="Queue counters + latest logs")
def get_stats(db: Session = Depends(get_db),
              engine: SyncEngine = Depends(get_sync_engine),
              principal: Principal = Depends(get_current_principal)):
    pending_sync = db.query(func.count(VehicleRecord.id)).filter(VehicleRecord.api_flg == 0).scalar()
    waiting_receive = db.query(func.count(VehicleRecord.id)).filter(VehicleRecord.pdiin_flg == 0).scalar()
    return MonitorStatsOut(
        pending_sync=pending_sync or 0,
        waiting_receive=waiting_receive or 0,
        error_today=count_errors_today(db),
        sync_running=engine.running,
        logs=[ApiLogOut.model_validate(log) for log in recent_logs(db, limit=20)],
    )


@router.get("/logs", response_model=list[ApiLogOut], summary="Audit log — filterable by level and source")
def get_logs(level: Optional[str] = None, source: Optional[str] = None,
             limit: int = Query(50, ge=1, le=500),
             db: Session = Depends(get_db),
             principal: Principal = Depends(get_current_principal)):
    return recent_logs(db, limit=limit, level=level, source=source)
