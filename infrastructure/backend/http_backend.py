"""HTTP client for the reservation REST backend"""
import logging
from typing import Any, List, Optional

import httpx

from domain.exceptions import BackendError
from domain.records import (
    AvailabilityQuery, AvailabilityRecord, CreateReservationRecord,
    ReservationRecord, UpdateReservationRecord
)
from domain.repositories import ReservationBackend

logger = logging.getLogger(__name__)


def _server_message(response: httpx.Response) -> Optional[str]:
    """Error text supplied by the server, if any"""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


class HttpReservationBackend(ReservationBackend):
    """httpx implementation of ReservationBackend"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, fallback: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise BackendError(fallback) from e

        if response.is_error:
            message = _server_message(response)
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
            raise BackendError(message or fallback, status_code=response.status_code, server_message=message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def fetch_reservations(self) -> List[ReservationRecord]:
        body = await self._request("GET", "/reservations", "Failed to load reservations.")
        return [ReservationRecord.model_validate(item) for item in body.get("reservations", [])]

    async def create_reservation(self, payload: CreateReservationRecord) -> ReservationRecord:
        body = await self._request("POST", "/reservations", "Failed to create reservation.", json=payload.to_wire())
        return ReservationRecord.model_validate(body["reservation"])

    async def update_reservation(self, reservation_id: str, payload: UpdateReservationRecord) -> ReservationRecord:
        body = await self._request(
            "PUT", f"/reservations/{reservation_id}", "Failed to update reservation.", json=payload.to_wire()
        )
        return ReservationRecord.model_validate(body["reservation"])

    async def delete_reservation(self, reservation_id: str) -> None:
        await self._request("DELETE", f"/reservations/{reservation_id}", "Failed to delete reservation.")

    async def check_availability(self, query: AvailabilityQuery) -> AvailabilityRecord:
        params = {k: v for k, v in query.to_wire().items() if v is not None}
        body = await self._request(
            "GET", "/reservations/availability", "Failed to check availability", params=params
        )
        return AvailabilityRecord.model_validate(body)
