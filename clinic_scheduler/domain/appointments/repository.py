"""Appointment repository - remote clinic API operations for appointments and patients"""

import logging
from collections.abc import Callable
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ... import config
from ...exceptions import RemoteError
from .schemas import Appointment, PageQuery, PageResult, PatientOption, Status

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Pull a human readable message out of an error response"""
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or body.get("error")
    return None


class AppointmentRepository:
    """Gateway to the remote appointment and patient endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        """Attach the latest bearer token, when there is one"""
        headers = {"Accept": "application/json"}
        if self.token_provider is not None:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=self._headers(), **kwargs)

                if response.status_code >= 400:
                    logger.error(f"❌ {method} {path} failed: {response.status_code}")
                    logger.error(f"❌ Error response: {response.text}")

                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response) or f"Request failed with status {e.response.status_code}"
            raise RemoteError(detail, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"❌ {method} {path} could not reach the clinic API: {e}")
            raise RemoteError("Could not reach the clinic API. Please try again.") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"❌ {method} {path} returned a body that is not JSON: {e}")
            raise RemoteError("The clinic API returned an unreadable response") from e

    @staticmethod
    def _parse_appointments(payload: Any) -> list[Appointment]:
        if isinstance(payload, dict):
            payload = payload.get("items", payload.get("data", []))
        if not isinstance(payload, list):
            raise RemoteError("Unexpected appointment list payload")
        try:
            return [Appointment.model_validate(record) for record in payload]
        except PydanticValidationError as e:
            logger.error(f"❌ Malformed appointment record: {e}")
            raise RemoteError("The clinic API returned a malformed appointment") from e

    # =========================================================================
    # Queries
    # =========================================================================

    async def fetch_by_range(self, start_iso: str, end_iso: str) -> list[Appointment]:
        """Appointments whose start lies inside [start_iso, end_iso], ordered by start"""
        logger.debug(f"🔄 Fetching appointments {start_iso} .. {end_iso}")
        payload = await self._request(
            "GET", "/incidents/range", params={"start": start_iso, "end": end_iso}
        )
        appointments = self._parse_appointments(payload or [])
        return sorted(appointments, key=lambda appt: appt.start)

    async def fetch_page(self, query: PageQuery) -> PageResult:
        """One page of the filtered appointment list plus header counts"""
        logger.debug(f"🔄 Fetching appointment page {query.page} (size {query.page_size})")
        payload = await self._request("GET", "/incidents", params=query.to_params())
        if not isinstance(payload, dict):
            raise RemoteError("Unexpected appointment page payload")
        try:
            return PageResult.model_validate(payload)
        except PydanticValidationError as e:
            logger.error(f"❌ Malformed appointment page: {e}")
            raise RemoteError("The clinic API returned a malformed appointment page") from e

    async def fetch_patient_dropdown(self) -> list[PatientOption]:
        payload = await self._request("GET", "/patients/dropdown")
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        try:
            return [PatientOption.model_validate(item) for item in payload or []]
        except PydanticValidationError as e:
            logger.error(f"❌ Malformed patient dropdown: {e}")
            raise RemoteError("The clinic API returned a malformed patient list") from e

    # =========================================================================
    # Commands
    # =========================================================================

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        logger.info(f"📥 Creating appointment '{payload.get('title')}' on {payload.get('date')}")
        return await self._request("POST", "/incidents", json=payload) or {}

    async def update(self, appointment_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        logger.info(f"📥 Updating appointment {appointment_id}")
        return await self._request("PUT", f"/incidents/{appointment_id}", json=payload) or {}

    async def update_status(self, appointment_id: str, status: Status) -> dict[str, Any]:
        logger.info(f"📥 Setting appointment {appointment_id} status to {status.value}")
        return (
            await self._request(
                "PATCH", f"/incidents/{appointment_id}/status", json={"status": status.value}
            )
            or {}
        )

    async def delete(self, appointment_id: str) -> None:
        logger.info(f"🗑️ Deleting appointment {appointment_id}")
        await self._request("DELETE", f"/incidents/{appointment_id}")
