"""Mapping between backend records and the Reservation aggregate"""
from decimal import Decimal
from typing import Optional

from domain.entities import CheckInDetails, CheckOutDetails, Guest, Reservation
from domain.enums import BookingSource, ReservationStatus
from domain.records import (
    RatePlanCode, ReservationRecord, ReservationSourceCode, ReservationStatusCode, UpdateReservationRecord
)
from domain.repositories import GuestRepository, PropertyRepository, RatePlanRepository
from domain.settlement import SettlementSummary
from domain.value_objects import DateRange

ZERO = Decimal("0")

STATUS_FROM_BACKEND = {
    ReservationStatusCode.DRAFT: ReservationStatus.PENDING,
    ReservationStatusCode.CONFIRMED: ReservationStatus.CONFIRMED,
    ReservationStatusCode.CHECKED_IN: ReservationStatus.CHECKED_IN,
    ReservationStatusCode.CHECKED_OUT: ReservationStatus.CHECKED_OUT,
    ReservationStatusCode.CANCELLED: ReservationStatus.CANCELLED,
}

# The wire contract has no NO_SHOW code: a no-show is persisted as
# CANCELLED and reads back as cancelled after the next hydration.
STATUS_TO_BACKEND = {
    ReservationStatus.PENDING: ReservationStatusCode.DRAFT,
    ReservationStatus.CONFIRMED: ReservationStatusCode.CONFIRMED,
    ReservationStatus.CHECKED_IN: ReservationStatusCode.CHECKED_IN,
    ReservationStatus.CHECKED_OUT: ReservationStatusCode.CHECKED_OUT,
    ReservationStatus.CANCELLED: ReservationStatusCode.CANCELLED,
    ReservationStatus.NO_SHOW: ReservationStatusCode.CANCELLED,
}

SOURCE_FROM_BACKEND = {
    ReservationSourceCode.DIRECT: BookingSource.WEBSITE,
    ReservationSourceCode.OTA: BookingSource.OTA,
    ReservationSourceCode.CORPORATE: BookingSource.AGENT,
    ReservationSourceCode.WALK_IN: BookingSource.WALK_IN,
}

SOURCE_TO_BACKEND = {
    BookingSource.WALK_IN: ReservationSourceCode.WALK_IN,
    BookingSource.PHONE: ReservationSourceCode.DIRECT,
    BookingSource.EMAIL: ReservationSourceCode.DIRECT,
    BookingSource.WEBSITE: ReservationSourceCode.DIRECT,
    BookingSource.OTA: ReservationSourceCode.OTA,
    BookingSource.AGENT: ReservationSourceCode.CORPORATE,
}


def normalize_rate_plan_code(code: Optional[str]) -> RatePlanCode:
    """Fold local plan codes onto the three codes the backend accepts"""
    value = (code or "").upper()
    if value in ("CORPORATE", "CORP"):
        return RatePlanCode.CORPORATE
    if value in ("PACKAGE", "PKG", "WEEKEND"):
        return RatePlanCode.PACKAGE
    return RatePlanCode.BAR


class ReservationMapper:
    """Translates backend records to aggregates and updates to partial records"""

    def __init__(
        self,
        property_repo: PropertyRepository,
        guest_repo: GuestRepository,
        rate_plan_repo: RatePlanRepository,
    ):
        self.property_repo = property_repo
        self.guest_repo = guest_repo
        self.rate_plan_repo = rate_plan_repo

    async def _room_type_id(self, code: str) -> str:
        for room_type in await self.property_repo.find_all_room_types():
            if code in (room_type.short_code, room_type.id):
                return room_type.id
        return code

    async def _rate_plan_id(self, code: RatePlanCode) -> str:
        plans = await self.rate_plan_repo.find_all()
        for plan in plans:
            if normalize_rate_plan_code(plan.code) == code:
                return plan.id
        return plans[0].id if plans else "RP001"

    async def from_record(self, record: ReservationRecord) -> Reservation:
        guest = await self.guest_repo.find_by_id(record.guest_id) or Guest.placeholder(record.guest_id)
        room = await self.property_repo.find_room(record.room_id) if record.room_id else None
        room_numbers = [room.room_number] if room else []

        nights = DateRange(check_in=record.arrival_date, check_out=record.departure_date).nights()
        subtotal = record.nightly_rate * nights
        total = record.billing.total_amount if record.billing else subtotal
        balance_due = record.billing.balance_due if record.billing else total
        amount_paid = max(total - balance_due, ZERO)
        # billing total above the room subtotal is tax, below it a discount
        tax = max(total - subtotal, ZERO)
        discount = max(subtotal - total, ZERO)

        check_in_details = None
        if record.check_in_at:
            check_in_details = CheckInDetails(assigned_rooms=room_numbers, check_in_time=record.check_in_at)

        check_out_details = None
        if record.check_out_at:
            check_out_details = CheckOutDetails(
                settlement=SettlementSummary(
                    room_charges=subtotal,
                    taxes=tax,
                    discounts=discount,
                    total_charges=total,
                    payments_total=amount_paid,
                    balance_due=balance_due,
                    refund_due=max(amount_paid - total, ZERO),
                    notes=record.notes,
                ),
                check_out_time=record.check_out_at,
            )

        return Reservation(
            id=record.id,
            confirmation_number=record.ota_reference or record.id.upper(),
            guest_id=record.guest_id,
            guest_name=guest.full_name,
            room_type_id=await self._room_type_id(record.room_type),
            room_numbers=room_numbers,
            check_in=record.arrival_date,
            check_out=record.departure_date,
            adults=record.adults,
            children=record.children,
            rate_plan_id=await self._rate_plan_id(record.rate_plan),
            nightly_rate=record.nightly_rate,
            tax=tax,
            discount=discount,
            amount_paid=amount_paid,
            status=STATUS_FROM_BACKEND.get(record.status, ReservationStatus.PENDING),
            source=SOURCE_FROM_BACKEND.get(record.source, BookingSource.WEBSITE),
            ota_reference=record.ota_reference,
            notes=record.notes,
            check_in_details=check_in_details,
            check_out_details=check_out_details,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    async def to_update_record(self, changes: dict) -> UpdateReservationRecord:
        """Partial backend record for the server-relevant fields in changes"""
        payload = {}
        if changes.get("check_in"):
            payload["arrival_date"] = changes["check_in"]
        if changes.get("check_out"):
            payload["departure_date"] = changes["check_out"]
        if changes.get("adults") is not None:
            payload["adults"] = changes["adults"]
        if changes.get("children") is not None:
            payload["children"] = changes["children"]
        if changes.get("status"):
            payload["status"] = STATUS_TO_BACKEND[changes["status"]]
        if changes.get("nightly_rate") is not None:
            payload["nightly_rate"] = changes["nightly_rate"]
        if changes.get("rate_plan_id"):
            plan = await self.rate_plan_repo.find_by_id(changes["rate_plan_id"])
            payload["rate_plan"] = normalize_rate_plan_code(plan.code if plan else None)
        if changes.get("source"):
            payload["source"] = SOURCE_TO_BACKEND[changes["source"]]
        if changes.get("ota_reference"):
            payload["ota_reference"] = changes["ota_reference"]
        if "notes" in changes:
            payload["notes"] = changes["notes"] or ""
        if changes.get("room_type_id"):
            room_type = await self.property_repo.find_room_type(changes["room_type_id"])
            if room_type:
                payload["room_type"] = room_type.short_code
        if changes.get("room_numbers"):
            room = await self.property_repo.find_room_by_number(changes["room_numbers"][0])
            if room:
                payload["room_id"] = room.id
        return UpdateReservationRecord(**payload)
