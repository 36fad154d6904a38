# tests/conftest.py
"""
Shared fixtures: in-memory SQLite store, audit log, seed helpers,
and a scriptable stand-in for the logistics platform.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
from datetime import datetime

import bcrypt
import httpx
import pytest
from sqlalchemy.pool import StaticPool

from vdc.database import Base, Database
from vdc.models.api_user import ApiUser
from vdc.models.catalog import VehicleCatalog
from vdc.models.interface import OutboundInterfaceFlag
from vdc.models.vehicle import VehicleRecord
from vdc.services.audit_service import AuditLog

GA_OFF_TIME = datetime(2026, 3, 1, 8, 15, 30)


@pytest.fixture
def database():
    db = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.create_tables()
    yield db
    Base.metadata.drop_all(bind=db.engine)
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def audit(database):
    return AuditLog(database.SessionLocal)


def add_vehicle(session, vin, vc_code="VC-A01", pdiin_flg=0, delivery_flg=0, api_flg=0,
                engine_code="ENG-001", ga_off_time=GA_OFF_TIME, outbound=True):
    vehicle = VehicleRecord(
        vin_number=vin,
        vc_code=vc_code,
        engine_code=engine_code,
        ga_off_time=ga_off_time,
        pdiin_flg=pdiin_flg,
        delivery_flg=delivery_flg,
        api_flg=api_flg,
    )
    session.add(vehicle)
    if outbound:
        session.add(OutboundInterfaceFlag(vin_number=vin, ready_flg=1))
    session.commit()
    return vehicle


def add_catalog(session, vc_code="VC-A01", model_name="SUV-X", color_name="PEARL WHITE"):
    session.add(VehicleCatalog(vc_code=vc_code, model_name=model_name, color_name=color_name))
    session.commit()


def add_user(session, username="scanner01", password="P@ss1234", api_key_status=1):
    password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(4)).decode("utf-8")
    session.add(ApiUser(username=username, password_hash=password_hash, api_key_status=api_key_status))
    session.commit()


def fetch_vehicle(database, vin):
    """Read through a fresh session so nothing comes from an identity map."""
    session = database.SessionLocal()
    try:
        return session.query(VehicleRecord).filter(VehicleRecord.vin_number == vin).one()
    finally:
        session.close()


class FakePlatform:
    """
    httpx.MockTransport handler. Answers per VIN:
      "accept"      200 {"code": "200"}
      "reject"      200 {"code": "E102"}
      "http_error"  503
      "malformed"   200 non-JSON body
      "down"        raises httpx.ConnectError
      "timeout"     raises httpx.ReadTimeout
    """

    def __init__(self, default="accept", **by_vin):
        self.default = default
        self.by_vin = by_vin
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append((request, payload))
        mode = self.by_vin.get(payload["vinCode"], self.default)
        if mode == "down":
            raise httpx.ConnectError("connection refused", request=request)
        if mode == "timeout":
            raise httpx.ReadTimeout("read timed out", request=request)
        if mode == "http_error":
            return httpx.Response(503, text="Service Unavailable")
        if mode == "malformed":
            return httpx.Response(200, text="<html>gateway</html>")
        if mode == "reject":
            return httpx.Response(200, json={"code": "E102", "msg": "material code not found"})
        return httpx.Response(200, json={"code": "200", "msg": "success"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
