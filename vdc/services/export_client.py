# vdc/services/export_client.py
"""
Client for the external logistics platform.

One POST per vehicle:
  headers  App-Id / Api-Code
  body     {vinCode, materialCode, engine_code, productionDate, flag}
The platform answers HTTP 200 with its own status embedded in the body,
e.g. {"code": "200", "msg": "success"}.

Outcomes:
  success        HTTP 2xx and embedded code in EXPORT_ACCEPT_CODES
  rejected       HTTP 2xx and any other embedded code
  network_error  transport failure, timeout, non-2xx status, or a body
                 without a readable code
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import httpx
from vdc.config import settings
from vdc.models.vehicle import VehicleRecord
from vdc.utils.logger import get_logger
from vdc.utils.time import format_export_date

logger = get_logger(__name__)

SUCCESS = "success"
REJECTED = "rejected"
NETWORK_ERROR = "network_error"


@dataclass
class PushResult:
    vin_number: str
    outcome: str                       # success | rejected | network_error
    http_status: Optional[int] = None
    remote_code: Optional[str] = None
    detail: Optional[str] = None


def build_payload(vehicle: VehicleRecord) -> dict:
    return {
        "vinCode": vehicle.vin_number,
        "materialCode": vehicle.vc_code,
        "engine_code": vehicle.engine_code,
        "productionDate": format_export_date(vehicle.ga_off_time),
        "flag": str(vehicle.pdiin_flg),
    }


class ExportClient:
    def __init__(self, url: str, app_id: str, api_code: str, timeout: float,
                 accept_codes: Iterable[str], transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.headers = {"App-Id": app_id, "Api-Code": api_code}
        self.timeout = timeout
        self.accept_codes = {str(code) for code in accept_codes}
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ExportClient":
        return cls(
            url=settings.EXPORT_URL,
            app_id=settings.EXPORT_APP_ID,
            api_code=settings.EXPORT_API_CODE,
            timeout=settings.EXPORT_TIMEOUT_SECONDS,
            accept_codes=settings.export_accept_codes,
            transport=transport,
        )

    def session(self) -> httpx.AsyncClient:
        """One client per sync cycle; every request is bounded by self.timeout."""
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def push(self, client: httpx.AsyncClient, payload: dict) -> PushResult:
        vin = payload["vinCode"]
        try:
            response = await client.post(self.url, json=payload, headers=self.headers)
        except httpx.TimeoutException as e:
            return PushResult(vin, NETWORK_ERROR, detail=f"timeout: {e!r}")
        except httpx.HTTPError as e:
            return PushResult(vin, NETWORK_ERROR, detail=f"{type(e).__name__}: {e}")

        if not response.is_success:
            return PushResult(vin, NETWORK_ERROR, http_status=response.status_code,
                              detail=response.text[:200])

        try:
            body = response.json()
            code = body.get("code")
        except (ValueError, AttributeError):
            return PushResult(vin, NETWORK_ERROR, http_status=response.status_code,
                              detail=f"malformed response: {response.text[:200]}")
        if code is None:
            return PushResult(vin, NETWORK_ERROR, http_status=response.status_code,
                              detail="response has no code field")

        message = body.get("msg") or body.get("message")
        if str(code) in self.accept_codes:
            return PushResult(vin, SUCCESS, response.status_code, str(code), message)
        return PushResult(vin, REJECTED, response.status_code, str(code), message)
