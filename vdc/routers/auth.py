# vdc/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vdc.database import get_db
from vdc.dependencies import get_audit
from vdc.exceptions import AuthenticationError
from vdc.schemas.auth import LoginRequest, LoginOut, PrincipalOut
from vdc.services.audit_service import AuditLog
from vdc.services.auth_service import authenticate, issue_token

router = APIRouter()

SOURCE = "AUTH"


@router.post("/login", response_model=LoginOut, summary="Exchange username/password for a bearer token")
def login(body: LoginRequest, db: Session = Depends(get_db), audit: AuditLog = Depends(get_audit)):
    try:
        principal = authenticate(db, body.username, body.password)
    except AuthenticationError as e:
        audit.warn(SOURCE, "Login rejected", {"reason": e.message, "status": e.status_code}, body.username)
        raise

    audit.info(SOURCE, "Login successful", None, principal.username)
    return LoginOut(
        message=f"Login successful for user: {principal.username}. Use this token for secured endpoints.",
        accessToken=issue_token(principal),
        user=PrincipalOut.model_validate(principal),
    )
