# vdc/schemas/auth.py
from pydantic import BaseModel
from typing import Optional


class LoginRequest(BaseModel):
    # Optional so missing fields get the service's own 400 instead of a 422
    username: Optional[str] = None
    password: Optional[str] = None


class PrincipalOut(BaseModel):
    id: int
    username: str
    role: str

    class Config:
        from_attributes = True


class LoginOut(BaseModel):
    message: str
    accessToken: str
    user: PrincipalOut
