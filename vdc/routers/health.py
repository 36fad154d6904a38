# vdc/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + export platform reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from vdc.database import get_db
from vdc.config import settings
from vdc.utils.time import now

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": now().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "export_platform": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    # Any HTTP answer means the platform is reachable
    try:
        resp = requests.head(settings.EXPORT_URL, timeout=3)
        result["export_platform"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
    except requests.exceptions.ConnectionError:
        result["export_platform"] = "unreachable"
        result["status"] = "degraded"
    except requests.exceptions.RequestException as e:
        result["export_platform"] = f"error: {str(e)}"

    return result
