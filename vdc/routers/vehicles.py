# vdc/routers/vehicles.py
"""
Vehicle lookup and milestone transitions (scanner-facing).
GET /vehicle_no/{vin}   status 0 no data | 1 waiting receive | 2 received
PUT /receiving          PDI-in
PUT /delivery           delivery, only after PDI-in
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from vdc.database import get_db
from vdc.dependencies import get_audit, get_current_principal
from vdc.schemas.vehicle import ReceiveRequest, DeliveryRequest, TransitionOut, VehicleLookupOut
from vdc.services.audit_service import AuditLog
from vdc.services.auth_service import Principal
from vdc.services.lifecycle_service import receive_vehicle, deliver_vehicle, TransitionResult
from vdc.services.vehicle_service import (
    lookup_vehicle_by_vin, lookup_status, vehicle_state, LOOKUP_NOT_FOUND, LOOKUP_RECEIVED,
)
from vdc.utils.logger import get_logger
from vdc.utils.time import now

router = APIRouter()
logger = get_logger(__name__)

_RECEIVE_HTTP = {
    TransitionResult.NOT_FOUND: 404,
    TransitionResult.SUCCESS: 200,
    TransitionResult.CONFLICT: 409,
    TransitionResult.INTERNAL_ERROR: 500,
}
_RECEIVE_MESSAGES = {
    TransitionResult.NOT_FOUND: "VIN number '{vin}' not found in gaoff table.",
    TransitionResult.SUCCESS: "Successfully updated pdiin_flg to 1 for VIN: {vin}.",
    TransitionResult.CONFLICT: "Vehicle with VIN '{vin}' has already been received.",
    TransitionResult.INTERNAL_ERROR: "An unexpected state occurred during the receive update for VIN: {vin}.",
}

# Conflict and blocked are business answers, not HTTP errors
_DELIVER_HTTP = {
    TransitionResult.NOT_FOUND: 404,
    TransitionResult.SUCCESS: 200,
    TransitionResult.CONFLICT: 200,
    TransitionResult.BLOCKED: 200,
    TransitionResult.INTERNAL_ERROR: 500,
}
_DELIVER_MESSAGES = {
    TransitionResult.NOT_FOUND: "VIN number '{vin}' not found in System.",
    TransitionResult.SUCCESS: "Successfully updated delivery_flg to 1 for VIN: {vin}.",
    TransitionResult.CONFLICT: "Vehicle with VIN '{vin}' is already marked as delivered.",
    TransitionResult.BLOCKED: "Vehicle with VIN '{vin}' is waiting for receive. Cannot set delivery_flg.",
    TransitionResult.INTERNAL_ERROR: "An unexpected state occurred during the delivery flag update process.",
}


def _transition_response(result: TransitionResult, vin: str, codes: dict, messages: dict) -> JSONResponse:
    body = TransitionOut(status=int(result), message=messages[result].format(vin=vin), vin_number=vin)
    return JSONResponse(status_code=codes[result], content=body.model_dump())


@router.get("/vehicle_no/{vin_number}", response_model=VehicleLookupOut, summary="Look up a VIN")
def get_vehicle(vin_number: str, db: Session = Depends(get_db),
                principal: Principal = Depends(get_current_principal)):
    logger.info(f"Lookup {vin_number} by {principal.username} ({principal.role})")
    vehicle = lookup_vehicle_by_vin(db, vin_number)
    status = lookup_status(vehicle)
    if status == LOOKUP_NOT_FOUND:
        body = VehicleLookupOut(status=status, message="No Data", vehicle_number=vin_number)
        return JSONResponse(status_code=404, content=body.model_dump(mode="json"))

    return VehicleLookupOut(
        status=status,
        message="Received" if status == LOOKUP_RECEIVED else "Waiting Receive",
        vehicle_number=vehicle.vin_number,
        vehicle_code=vehicle.vc_code,
        engine_code=vehicle.engine_code,
        ga_off_time=vehicle.ga_off_time,
        pdiin_flg=vehicle.pdiin_flg,
        delivery_flg=vehicle.delivery_flg,
        state=vehicle_state(vehicle).value,
    )


@router.put("/receiving", response_model=TransitionOut, summary="PDI-in — mark a vehicle received")
async def receive(body: ReceiveRequest, db: Session = Depends(get_db),
                  audit: AuditLog = Depends(get_audit),
                  principal: Principal = Depends(get_current_principal)):
    result = await receive_vehicle(db, body.vin_number, body.received_at or now(), audit, principal.username)
    return _transition_response(result, body.vin_number, _RECEIVE_HTTP, _RECEIVE_MESSAGES)


@router.put("/delivery", response_model=TransitionOut, summary="Delivery — mark a received vehicle delivered")
async def deliver(body: DeliveryRequest, db: Session = Depends(get_db),
                  audit: AuditLog = Depends(get_audit),
                  principal: Principal = Depends(get_current_principal)):
    result = await deliver_vehicle(db, body.vin_number, body.delivered_at or now(), audit, principal.username)
    return _transition_response(result, body.vin_number, _DELIVER_HTTP, _DELIVER_MESSAGES)
