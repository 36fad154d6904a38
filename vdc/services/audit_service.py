# vdc/services/audit_service.py
"""
Audit log sink.
Every significant event is mirrored to the application logger and appended
to the api_logs table through a short-lived session of its own, so it never
shares a transaction with the business operation that produced it.
A failed append falls back to the application logger only — logging never
fails the caller.
"""

import json
import logging
from datetime import datetime, time
from typing import Any, Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from vdc.models.api_log import ApiLog
from vdc.utils.logger import get_logger
from vdc.utils.time import now

logger = get_logger(__name__)

INFO = "INFO"
WARN = "WARN"
ERROR = "ERROR"

_PY_LEVELS = {INFO: logging.INFO, WARN: logging.WARNING, ERROR: logging.ERROR}
_ALIASES = {"WARNING": WARN}

_MESSAGE_MAX = 255


def _serialize_details(details: Any) -> Optional[str]:
    if details is None:
        return None
    if isinstance(details, str):
        return details
    return json.dumps(details, default=str, ensure_ascii=False)


class AuditLog:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def record(self, level: str, source: str, message: str,
               details: Any = None, actor: Optional[str] = None) -> None:
        """Fire-and-forget append. Never raises."""
        try:
            level = str(level).upper()
            level = _ALIASES.get(level, level)
            text = _serialize_details(details)
            logger.log(
                _PY_LEVELS.get(level, logging.INFO),
                f"[{source}] {message} | actor={actor or '-'}" + (f" | {text}" if text else ""),
            )

            db = self._session_factory()
            try:
                db.add(ApiLog(
                    log_level=level,
                    source=source,
                    message=message[:_MESSAGE_MAX],
                    details=text,
                    actor=actor,
                    created_at=now(),
                ))
                db.commit()
            finally:
                db.close()
        except Exception as e:
            logger.error(f"Audit log write failed [{source}] {message}: {e}")

    def info(self, source, message, details=None, actor=None):
        self.record(INFO, source, message, details, actor)

    def warn(self, source, message, details=None, actor=None):
        self.record(WARN, source, message, details, actor)

    def error(self, source, message, details=None, actor=None):
        self.record(ERROR, source, message, details, actor)


def recent_logs(db: Session, limit: int = 20, level: Optional[str] = None,
                source: Optional[str] = None) -> list:
    q = db.query(ApiLog)
    if level:
        q = q.filter(ApiLog.log_level == level.upper())
    if source:
        q = q.filter(ApiLog.source == source)
    return q.order_by(ApiLog.id.desc()).limit(limit).all()


def count_errors_today(db: Session) -> int:
    start_of_day = datetime.combine(now().date(), time.min)
    return db.query(func.count(ApiLog.id)).filter(
        ApiLog.log_level == ERROR,
        ApiLog.created_at >= start_of_day,
    ).scalar() or 0
