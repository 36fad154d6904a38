# vdc/routers/sync.py
"""On-demand sync — same cycle the scheduler runs, attributed to the caller."""

from fastapi import APIRouter, Depends
from vdc.dependencies import get_sync_engine, get_current_principal
from vdc.schemas.sync import SyncSummaryOut
from vdc.services.auth_service import Principal
from vdc.services.sync_service import SyncEngine

router = APIRouter()


@router.post("/sync", response_model=SyncSummaryOut, summary="Export pending vehicles now")
async def sync_now(engine: SyncEngine = Depends(get_sync_engine),
                   principal: Principal = Depends(get_current_principal)):
    summary = await engine.sync_pending(principal.username)
    return SyncSummaryOut.model_validate(summary)
