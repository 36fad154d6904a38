# vdc/dependencies.py
"""FastAPI dependencies for the per-process handles kept on app.state."""

from fastapi import Request
from vdc.services.audit_service import AuditLog
from vdc.services.auth_service import Principal, principal_from_header
from vdc.services.sync_service import SyncEngine


def get_audit(request: Request) -> AuditLog:
    return request.app.state.audit


def get_sync_engine(request: Request) -> SyncEngine:
    return request.app.state.sync_engine


def get_current_principal(request: Request) -> Principal:
    """Raises AuthenticationError (401/403); handled in vdc.main."""
    return principal_from_header(request.headers.get("Authorization"))
