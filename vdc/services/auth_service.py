# vdc/services/auth_service.py
"""
Credential check and bearer tokens.
Passwords are bcrypt hashes in api_user; tokens are HS256 JWTs carrying
{id, username, role}. The rest of the service trusts the decoded principal.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session
from vdc.config import settings
from vdc.exceptions import AuthenticationError
from vdc.models.api_user import ApiUser
from vdc.utils.logger import get_logger

logger = get_logger(__name__)

ROLE_ACTIVE = "active_api"
ROLE_INACTIVE = "inactive_api"


@dataclass
class Principal:
    id: int
    username: str
    role: str


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in api_user
        return False


def authenticate(db: Session, username: str, password: str) -> Principal:
    if not username or not password:
        raise AuthenticationError(400, "Authentication failed", "Username and password are required.")

    user = db.query(ApiUser).filter(ApiUser.username == username).first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(401, "Authentication failed", "Invalid username or password.")
    if user.api_key_status != 1:
        raise AuthenticationError(403, "Access Denied", "API key is inactive.")

    return Principal(id=user.id, username=user.username, role=ROLE_ACTIVE)


def issue_token(principal: Principal, expires_seconds: Optional[int] = None) -> str:
    expires = datetime.now(timezone.utc) + timedelta(
        seconds=expires_seconds if expires_seconds is not None else settings.JWT_EXPIRES_SECONDS
    )
    payload = {
        "id": principal.id,
        "username": principal.username,
        "role": principal.role,
        "exp": expires,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise AuthenticationError(403, "Forbidden", "Invalid, expired, or tampered token.")
    return Principal(id=payload.get("id"), username=payload.get("username"), role=payload.get("role"))


def principal_from_header(auth_header: Optional[str]) -> Principal:
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError(401, "Access Denied",
                                  'Authorization header format must be "Bearer <token>".')
    return decode_token(auth_header.split(" ", 1)[1])
