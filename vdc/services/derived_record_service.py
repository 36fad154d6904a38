# vdc/services/derived_record_service.py
"""
Post-commit hooks for milestone transitions.

On receipt (pdiin_flg 0 → 1):
  - resolve model/color from vc_master
  - write one label_print row and one pdiin_interface row
On delivery (delivery_flg 0 → 1):
  - reset outbound_interface.ready_flg to 0

These run after the milestone has been committed. Each write commits on its
own; a failure is rolled back and logged at ERROR but never undoes the
milestone. No deduplication happens here: the lifecycle service calls the
receipt hook once per genuine transition, and the unique vin_number
constraints catch anything else.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from vdc.models.catalog import VehicleCatalog
from vdc.models.interface import InboundInterfaceRecord, OutboundInterfaceFlag
from vdc.models.label import LabelRecord, DEFAULT_LOCATION
from vdc.models.vehicle import VehicleRecord
from vdc.services.audit_service import AuditLog
from vdc.utils.logger import get_logger
from vdc.utils.time import now

logger = get_logger(__name__)

SOURCE = "DERIVED_RECORD"


def _commit_one(db: Session, record, table: str, vin: str,
                audit: AuditLog, actor: Optional[str]) -> bool:
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        audit.error(SOURCE, f"Failed to write {table}", {"vin_number": vin, "error": str(e)}, actor)
        return False
    logger.debug(f"{table} written for {vin}")
    return True


async def write_receipt_records(db: Session, vin: str, received_at: datetime,
                                audit: AuditLog, actor: Optional[str] = None) -> dict:
    """Returns {"label": bool, "interface": bool} — which rows were written."""
    written = {"label": False, "interface": False}

    row = (
        db.query(VehicleRecord.id, VehicleRecord.vc_code,
                 VehicleCatalog.model_name, VehicleCatalog.color_name)
        .join(VehicleCatalog, VehicleCatalog.vc_code == VehicleRecord.vc_code)
        .filter(VehicleRecord.vin_number == vin)
        .first()
    )
    if row is None:
        audit.warn(SOURCE, "No vc_master match, label and interface records skipped",
                   {"vin_number": vin}, actor)
        return written

    gaoff_id, vc_code, model_name, color_name = row

    written["label"] = _commit_one(db, LabelRecord(
        vin_number=vin,
        vc_code=vc_code,
        model_name=model_name,
        color_name=color_name,
        location=DEFAULT_LOCATION,
        print_flg=0,
        received_at=received_at,
    ), "label_print", vin, audit, actor)

    written["interface"] = _commit_one(db, InboundInterfaceRecord(
        gaoff_id=gaoff_id,
        vin_number=vin,
        interface_flg=0,
        print_flg=0,
        created_at=now(),
    ), "pdiin_interface", vin, audit, actor)

    if written["label"] and written["interface"]:
        audit.info(SOURCE, "Label and interface records created",
                   {"vin_number": vin, "model": model_name, "color": color_name}, actor)
    return written


async def reset_outbound_flag(db: Session, vin: str, audit: AuditLog,
                              actor: Optional[str] = None) -> bool:
    try:
        flag = db.query(OutboundInterfaceFlag).filter(OutboundInterfaceFlag.vin_number == vin).first()
        if flag is None:
            audit.warn(SOURCE, "No outbound_interface row to reset", {"vin_number": vin}, actor)
            return False
        flag.ready_flg = 0
        flag.updated_at = now()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        audit.error(SOURCE, "Failed to reset outbound_interface flag",
                    {"vin_number": vin, "error": str(e)}, actor)
        return False
    return True
