# tests/test_lifecycle_service.py
"""Unit tests for the lifecycle service (receive / deliver transitions)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import random
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import add_vehicle, add_catalog, fetch_vehicle
from vdc.models.api_log import ApiLog
from vdc.models.interface import InboundInterfaceRecord, OutboundInterfaceFlag
from vdc.models.label import LabelRecord
from vdc.models.vehicle import VehicleRecord
from vdc.services.audit_service import AuditLog
from vdc.services import lifecycle_service
from vdc.services.lifecycle_service import receive_vehicle, deliver_vehicle, TransitionResult

T1 = datetime(2026, 3, 2, 9, 0, 0)
T2 = datetime(2026, 3, 3, 14, 30, 0)


class TestReceive:
    @pytest.mark.asyncio
    async def test_first_receive_sets_flag_and_creates_derived_records(self, database, db_session, audit):
        add_catalog(db_session)
        add_vehicle(db_session, "V1")

        result = await receive_vehicle(db_session, "V1", T1, audit, "scanner01")

        assert result == TransitionResult.SUCCESS
        vehicle = fetch_vehicle(database, "V1")
        assert vehicle.pdiin_flg == 1
        assert vehicle.pdiin_time == T1
        assert db_session.query(LabelRecord).filter(LabelRecord.vin_number == "V1").count() == 1
        assert db_session.query(InboundInterfaceRecord).filter(InboundInterfaceRecord.vin_number == "V1").count() == 1

    @pytest.mark.asyncio
    async def test_second_receive_is_conflict_and_keeps_first_time(self, database, db_session, audit):
        add_catalog(db_session)
        add_vehicle(db_session, "V1")

        assert await receive_vehicle(db_session, "V1", T1, audit) == TransitionResult.SUCCESS
        assert await receive_vehicle(db_session, "V1", T2, audit) == TransitionResult.CONFLICT

        vehicle = fetch_vehicle(database, "V1")
        assert vehicle.pdiin_flg == 1
        assert vehicle.pdiin_time == T1
        assert db_session.query(LabelRecord).count() == 1
        assert db_session.query(InboundInterfaceRecord).count() == 1

    @pytest.mark.asyncio
    async def test_unknown_vin_is_not_found(self, db_session, audit):
        result = await receive_vehicle(db_session, "NOPE", T1, audit)
        assert result == TransitionResult.NOT_FOUND
        assert db_session.query(LabelRecord).count() == 0

    @pytest.mark.asyncio
    async def test_catalog_miss_keeps_transition_and_logs_warn(self, database, db_session, audit):
        add_vehicle(db_session, "V1", vc_code="UNKNOWN")

        result = await receive_vehicle(db_session, "V1", T1, audit)

        assert result == TransitionResult.SUCCESS
        assert fetch_vehicle(database, "V1").pdiin_flg == 1
        assert db_session.query(LabelRecord).count() == 0
        assert db_session.query(InboundInterfaceRecord).count() == 0
        warns = db_session.query(ApiLog).filter(ApiLog.log_level == "WARN",
                                                ApiLog.source == "DERIVED_RECORD").count()
        assert warns == 1

    @pytest.mark.asyncio
    async def test_hook_crash_does_not_change_result(self, database, db_session, audit):
        add_vehicle(db_session, "V1")

        with patch("vdc.services.lifecycle_service.write_receipt_records",
                   new_callable=AsyncMock, side_effect=RuntimeError("printer table gone")):
            result = await receive_vehicle(db_session, "V1", T1, audit)

        assert result == TransitionResult.SUCCESS
        assert fetch_vehicle(database, "V1").pdiin_flg == 1
        errors = db_session.query(ApiLog).filter(ApiLog.log_level == "ERROR",
                                                 ApiLog.source == "RECEIVING").all()
        assert len(errors) == 1
        assert "printer table gone" in errors[0].details

    @pytest.mark.asyncio
    async def test_out_of_domain_flag_is_internal_error(self, database, db_session, audit):
        add_vehicle(db_session, "V1", pdiin_flg=7)

        result = await receive_vehicle(db_session, "V1", T1, audit)

        assert result == TransitionResult.INTERNAL_ERROR
        vehicle = fetch_vehicle(database, "V1")
        assert vehicle.pdiin_flg == 7
        assert vehicle.pdiin_time is None


class TestDeliver:
    @pytest.mark.asyncio
    async def test_deliver_before_receive_is_blocked(self, database, db_session, audit):
        add_vehicle(db_session, "V2")

        result = await deliver_vehicle(db_session, "V2", T1, audit)

        assert result == TransitionResult.BLOCKED
        vehicle = fetch_vehicle(database, "V2")
        assert vehicle.delivery_flg == 0
        assert vehicle.delivery_time is None

    @pytest.mark.asyncio
    async def test_deliver_received_vehicle_resets_outbound_flag(self, database, db_session, audit):
        add_vehicle(db_session, "V3", pdiin_flg=1)

        result = await deliver_vehicle(db_session, "V3", T1, audit)

        assert result == TransitionResult.SUCCESS
        vehicle = fetch_vehicle(database, "V3")
        assert vehicle.delivery_flg == 1
        assert vehicle.delivery_time == T1
        flag = db_session.query(OutboundInterfaceFlag).filter(OutboundInterfaceFlag.vin_number == "V3").one()
        assert flag.ready_flg == 0

    @pytest.mark.asyncio
    async def test_second_deliver_is_conflict(self, database, db_session, audit):
        add_vehicle(db_session, "V3", pdiin_flg=1)

        assert await deliver_vehicle(db_session, "V3", T1, audit) == TransitionResult.SUCCESS
        assert await deliver_vehicle(db_session, "V3", T2, audit) == TransitionResult.CONFLICT
        assert fetch_vehicle(database, "V3").delivery_time == T1

    @pytest.mark.asyncio
    async def test_delivered_takes_precedence_over_waiting_receive(self, db_session, audit):
        # Corrupt row: delivered without receipt still answers "already delivered"
        add_vehicle(db_session, "V4", pdiin_flg=0, delivery_flg=1)
        assert await deliver_vehicle(db_session, "V4", T1, audit) == TransitionResult.CONFLICT

    @pytest.mark.asyncio
    async def test_unknown_vin_is_not_found(self, db_session, audit):
        assert await deliver_vehicle(db_session, "NOPE", T1, audit) == TransitionResult.NOT_FOUND

    @pytest.mark.asyncio
    async def test_missing_outbound_row_still_delivers(self, database, db_session, audit):
        add_vehicle(db_session, "V5", pdiin_flg=1, outbound=False)

        result = await deliver_vehicle(db_session, "V5", T1, audit)

        assert result == TransitionResult.SUCCESS
        assert fetch_vehicle(database, "V5").delivery_flg == 1

    @pytest.mark.asyncio
    async def test_out_of_domain_flag_is_internal_error(self, database, db_session, audit):
        add_vehicle(db_session, "V6", pdiin_flg=2)

        result = await deliver_vehicle(db_session, "V6", T1, audit)

        assert result == TransitionResult.INTERNAL_ERROR
        assert fetch_vehicle(database, "V6").delivery_flg == 0

    @pytest.mark.asyncio
    async def test_audit_store_failure_never_reaches_caller(self, database, db_session):
        add_vehicle(db_session, "V7", pdiin_flg=1)
        broken_audit = AuditLog(MagicMock(side_effect=RuntimeError("api_logs locked")))

        result = await deliver_vehicle(db_session, "V7", T1, broken_audit)

        assert result == TransitionResult.SUCCESS
        assert fetch_vehicle(database, "V7").delivery_flg == 1


class _NoVinLocks:
    @asynccontextmanager
    async def hold(self, vin):
        yield


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_deliveries_deliver_once(self, database, db_session, audit):
        add_vehicle(db_session, "V3", pdiin_flg=1)
        first, second = database.SessionLocal(), database.SessionLocal()
        try:
            results = await asyncio.gather(
                deliver_vehicle(first, "V3", T1, audit),
                deliver_vehicle(second, "V3", T2, audit),
            )
        finally:
            first.close()
            second.close()

        assert sorted(results) == [TransitionResult.SUCCESS, TransitionResult.CONFLICT]
        assert fetch_vehicle(database, "V3").delivery_time == T1

    @pytest.mark.asyncio
    async def test_without_vin_lock_both_deliveries_apply(self, database, db_session, audit, monkeypatch):
        # Both coroutines read the row before either writes; only the VIN lock prevents that
        monkeypatch.setattr(lifecycle_service, "_vin_locks", _NoVinLocks())
        add_vehicle(db_session, "V3", pdiin_flg=1)
        first, second = database.SessionLocal(), database.SessionLocal()
        try:
            results = await asyncio.gather(
                deliver_vehicle(first, "V3", T1, audit),
                deliver_vehicle(second, "V3", T2, audit),
            )
        finally:
            first.close()
            second.close()

        assert results == [TransitionResult.SUCCESS, TransitionResult.SUCCESS]
        assert fetch_vehicle(database, "V3").delivery_time == T2

    @pytest.mark.asyncio
    async def test_concurrent_receives_write_derived_records_once(self, database, db_session, audit):
        add_catalog(db_session)
        add_vehicle(db_session, "V8")
        sessions = [database.SessionLocal() for _ in range(3)]
        try:
            results = await asyncio.gather(*(
                receive_vehicle(session, "V8", T1 + timedelta(minutes=i), audit)
                for i, session in enumerate(sessions)
            ))
        finally:
            for session in sessions:
                session.close()

        assert sorted(results) == [TransitionResult.SUCCESS] + [TransitionResult.CONFLICT] * 2
        assert fetch_vehicle(database, "V8").pdiin_time == T1
        assert db_session.query(LabelRecord).filter(LabelRecord.vin_number == "V8").count() == 1

    @pytest.mark.asyncio
    async def test_random_interleavings_never_deliver_before_receipt(self, database, db_session, audit):
        add_catalog(db_session)
        vins = [f"VR{i:02d}" for i in range(6)]
        for vin in vins:
            add_vehicle(db_session, vin)

        rng = random.Random(20260301)
        for round_no in range(8):
            ops = []
            sessions = []
            for _ in range(10):
                session = database.SessionLocal()
                sessions.append(session)
                vin = rng.choice(vins)
                ts = T1 + timedelta(minutes=round_no * 10 + len(ops))
                op = rng.choice((receive_vehicle, deliver_vehicle))
                ops.append(op(session, vin, ts, audit))
            try:
                await asyncio.gather(*ops)
            finally:
                for session in sessions:
                    session.close()

            check = database.SessionLocal()
            try:
                for vehicle in check.query(VehicleRecord).all():
                    if vehicle.delivery_flg == 1:
                        assert vehicle.pdiin_flg == 1
                        assert vehicle.pdiin_time <= vehicle.delivery_time
                    assert check.query(LabelRecord).filter(
                        LabelRecord.vin_number == vehicle.vin_number).count() == vehicle.pdiin_flg
            finally:
                check.close()
