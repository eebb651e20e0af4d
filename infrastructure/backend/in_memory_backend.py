"""In-memory backend of record

Behaves like the reservation REST backend (ids, billing block, availability
counts, status timestamps) without a network. Used for local runs and tests.
"""
import logging
from datetime import datetime
from typing import Dict, List
from uuid import uuid4

from domain.exceptions import BackendError
from domain.records import (
    AvailabilityQuery, AvailabilityRecord, AvailableRoomRecord, BillingRecord,
    CreateReservationRecord, ReservationRecord, ReservationStatusCode, UpdateReservationRecord
)
from domain.repositories import PropertyRepository, ReservationBackend
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)

_HOLDING_STATUSES = {
    ReservationStatusCode.DRAFT,
    ReservationStatusCode.CONFIRMED,
    ReservationStatusCode.CHECKED_IN,
}


class InMemoryReservationBackend(ReservationBackend):
    """In-memory implementation of ReservationBackend"""

    def __init__(self, property_repo: PropertyRepository):
        self.property_repo = property_repo
        self._records: Dict[str, ReservationRecord] = {}

    def _billing(self, record: ReservationRecord, currency: str = "INR") -> BillingRecord:
        nights = DateRange(check_in=record.arrival_date, check_out=record.departure_date).nights()
        total = record.nightly_rate * nights
        return BillingRecord(currency=currency, total_amount=total, balance_due=total)

    async def fetch_reservations(self) -> List[ReservationRecord]:
        return [r.model_copy(deep=True) for r in self._records.values()]

    async def create_reservation(self, payload: CreateReservationRecord) -> ReservationRecord:
        if payload.departure_date < payload.arrival_date:
            raise BackendError("Departure date must not be before arrival date", status_code=422,
                               server_message="Departure date must not be before arrival date")
        now = datetime.now()
        data = payload.model_dump(exclude={"currency"})
        data["status"] = payload.status or ReservationStatusCode.DRAFT
        record = ReservationRecord(id=uuid4().hex[:10], created_at=now, updated_at=now, **data)
        record.billing = self._billing(record, payload.currency)
        self._records[record.id] = record
        logger.debug("Backend created reservation %s", record.id)
        return record.model_copy(deep=True)

    async def update_reservation(self, reservation_id: str, payload: UpdateReservationRecord) -> ReservationRecord:
        record = self._records.get(reservation_id)
        if record is None:
            raise BackendError("Reservation not found", status_code=404, server_message="Reservation not found")

        changes = payload.model_dump(exclude_unset=True, exclude={"currency"})
        now = datetime.now()
        if changes.get("status") == ReservationStatusCode.CHECKED_IN and record.check_in_at is None:
            changes["check_in_at"] = now
        if changes.get("status") == ReservationStatusCode.CHECKED_OUT and record.check_out_at is None:
            changes["check_out_at"] = now

        updated = record.model_copy(update={**changes, "updated_at": now})
        currency = payload.currency or (record.billing.currency if record.billing else "INR")
        updated.billing = self._billing(updated, currency)
        self._records[reservation_id] = updated
        return updated.model_copy(deep=True)

    async def delete_reservation(self, reservation_id: str) -> None:
        if self._records.pop(reservation_id, None) is None:
            raise BackendError("Reservation not found", status_code=404, server_message="Reservation not found")

    async def check_availability(self, query: AvailabilityQuery) -> AvailabilityRecord:
        room_types = await self.property_repo.find_all_room_types()
        matching = [rt for rt in room_types if query.room_type in (None, rt.short_code, rt.id)]
        type_ids = {rt.id for rt in matching}
        codes = {rt.short_code for rt in matching} | type_ids

        rooms = [
            room for room in await self.property_repo.find_all_rooms()
            if room.room_type_id in type_ids and room.is_active
        ]
        overlapping = [
            r for r in self._records.values()
            if r.status in _HOLDING_STATUSES
            and r.room_type in codes
            and r.arrival_date < query.departure_date
            and query.arrival_date < r.departure_date
        ]
        taken_room_ids = {r.room_id for r in overlapping if r.room_id}
        total_available = max(len(rooms) - len(overlapping), 0)

        free = [room for room in rooms if room.id not in taken_room_ids][:total_available]
        rates = {rt.id: rt for rt in matching}
        return AvailabilityRecord(
            arrival_date=query.arrival_date,
            departure_date=query.departure_date,
            room_type=query.room_type,
            available_rooms=[
                AvailableRoomRecord(
                    id=room.id,
                    number=room.room_number,
                    type=rates[room.room_type_id].short_code,
                    room_type_id=room.room_type_id,
                    status=room.status.value,
                    rate=rates[room.room_type_id].base_rate,
                    is_active=room.is_active,
                )
                for room in free
            ],
            total_available=total_available,
        )
