"""Application Services - Business use cases"""
import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from application.commands import (
    SERVER_FIELDS, AvailabilityCheck, CheckInPayload, CheckOutPayload, SettlementInput,
    ReservationInput, ReservationUpdate
)
from application.mapping import SOURCE_TO_BACKEND, ReservationMapper, normalize_rate_plan_code
from domain.entities import CheckInDetails, CheckOutDetails, RatePlan, Reservation
from domain.enums import BookingSource, ReservationStatus, RoomStatus
from domain.exceptions import (
    BackendError, CapacityError, InsufficientPaymentError, InvalidTransitionError,
    ReservationNotFoundError, ReservationValidationError
)
from domain.records import AvailabilityQuery, CreateReservationRecord, ReservationStatusCode, UpdateReservationRecord
from domain.repositories import (
    PropertyRepository, RatePlanRepository, ReservationBackend, ReservationRepository
)
from domain.settlement import SettlementSummary, build_settlement, payment_records, tax_from_rate
from domain.value_objects import IdentityDocument

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def settle(settlement: SettlementInput, collected_by: Optional[str], timestamp: datetime) -> SettlementSummary:
    """Settlement summary for a submitted folio

    Taxes are taken as given, else computed from tax_rate on the taxable
    folio, else zero.
    """
    charges = [charge.to_charge() for charge in settlement.additional_charges]
    if settlement.taxes is not None:
        taxes = settlement.taxes
    elif settlement.tax_rate is not None:
        taxes = tax_from_rate(settlement.room_charges, charges, settlement.discounts, settlement.tax_rate)
    else:
        taxes = ZERO
    return build_settlement(
        room_charges=settlement.room_charges,
        additional_charges=charges,
        taxes=taxes,
        discounts=settlement.discounts,
        payments=payment_records(settlement.payments, collected_by, timestamp),
        notes=settlement.notes,
    )


class AvailabilityService:
    """Rate & availability resolver"""

    def __init__(
        self,
        backend: ReservationBackend,
        property_repo: PropertyRepository,
        rate_plan_repo: RatePlanRepository,
        low_inventory_threshold: int = 2,
    ):
        self.backend = backend
        self.property_repo = property_repo
        self.rate_plan_repo = rate_plan_repo
        self.low_inventory_threshold = low_inventory_threshold

    async def check_availability(self, room_type_id: str, check_in: date, check_out: date) -> AvailabilityCheck:
        """Remaining inventory for a room type over the stay, as counted by the backend"""
        room_type = await self.property_repo.find_room_type(room_type_id)
        if not room_type:
            return AvailabilityCheck(available=False, available_rooms=0, message="Unknown room type")

        try:
            result = await self.backend.check_availability(
                AvailabilityQuery(arrival_date=check_in, departure_date=check_out, room_type=room_type.short_code)
            )
        except BackendError as e:
            logger.warning("Availability check for %s failed: %s", room_type.short_code, e.message)
            return AvailabilityCheck(
                available=False, available_rooms=0, message=e.server_message or "Failed to check availability"
            )

        if result.total_available <= 0:
            return AvailabilityCheck(
                available=False, available_rooms=0, message="No rooms available for selected dates"
            )
        if result.total_available <= self.low_inventory_threshold:
            return AvailabilityCheck(
                available=True,
                available_rooms=result.total_available,
                message=f"Only {result.total_available} room(s) remaining",
            )
        return AvailabilityCheck(available=True, available_rooms=result.total_available)

    async def nightly_rate(self, room_type_id: str, rate_plan_id: str) -> Decimal:
        """Nightly rate for a room type after the rate plan discount"""
        rate_plan = await self.rate_plan_repo.find_by_id(rate_plan_id)
        if not rate_plan:
            raise ReservationValidationError("Invalid rate plan selected")
        room_type = await self.property_repo.find_room_type(room_type_id)
        if not room_type:
            raise ReservationValidationError("Unknown room type selected")
        return rate_plan.nightly_rate_for(room_type)


class ReservationService:
    """Reservation lifecycle engine

    Owns the local reservation collection and keeps it consistent with the
    backend of record. Operations against the same reservation id run one
    at a time.
    """

    def __init__(
        self,
        repository: ReservationRepository,
        backend: ReservationBackend,
        availability: AvailabilityService,
        mapper: ReservationMapper,
        property_repo: PropertyRepository,
        rate_plan_repo: RatePlanRepository,
        hotel_id: str,
        hotel_code: str,
        currency: str = "INR",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.backend = backend
        self.availability = availability
        self.mapper = mapper
        self.property_repo = property_repo
        self.rate_plan_repo = rate_plan_repo
        self.hotel_id = hotel_id
        self.hotel_code = hotel_code
        self.currency = currency
        self.clock = clock
        self.last_error: Optional[str] = None
        self.is_hydrated = False
        self._locks: Dict[str, asyncio.Lock] = {}
        self._write_seq: Dict[str, int] = {}

    # ==================== INTERNALS ====================
    def _lock(self, reservation_id: str) -> asyncio.Lock:
        return self._locks.setdefault(reservation_id, asyncio.Lock())

    def _fail(self, error: BackendError, fallback: str) -> BackendError:
        failure = error.with_fallback(fallback)
        self.last_error = failure.message
        logger.warning("%s (%s)", fallback, failure.message)
        return failure

    async def _commit(self, reservation: Reservation) -> Reservation:
        await self.repository.save(reservation)
        self._write_seq[reservation.id] = self._write_seq.get(reservation.id, 0) + 1
        self.last_error = None
        return reservation

    async def _require(self, reservation_id: str) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFoundError("Reservation not found")
        return reservation

    async def _same_wire_plan(self, first_id: str, second_id: str) -> bool:
        first = await self.rate_plan_repo.find_by_id(first_id)
        second = await self.rate_plan_repo.find_by_id(second_id)
        if not first or not second:
            return False
        return normalize_rate_plan_code(first.code) == normalize_rate_plan_code(second.code)

    async def _reconcile(self, mapped: Reservation, local: Reservation, bump: bool = True) -> Reservation:
        """Server record merged with details only the local copy holds"""
        changes = {
            "check_in_details": local.check_in_details or mapped.check_in_details,
            "check_out_details": local.check_out_details or mapped.check_out_details,
            "created_by": local.created_by,
            "version": local.version + 1 if bump else local.version,
        }
        if local.room_numbers and len(local.room_numbers) >= len(mapped.room_numbers):
            changes["room_numbers"] = local.room_numbers
        if local.check_out_details:
            changes.update(
                extra_charges=local.extra_charges,
                tax=local.tax,
                discount=local.discount,
                amount_paid=local.amount_paid,
            )
        if local.status == ReservationStatus.NO_SHOW and mapped.status == ReservationStatus.CANCELLED:
            changes["status"] = ReservationStatus.NO_SHOW
        if local.rate_plan_id != mapped.rate_plan_id and await self._same_wire_plan(local.rate_plan_id, mapped.rate_plan_id):
            # the backend only knows the folded plan code
            changes["rate_plan_id"] = local.rate_plan_id
        return mapped.revise(updated_at=mapped.updated_at, **changes)

    async def _apply_update(self, existing: Reservation, changes: dict) -> Reservation:
        """Apply field changes; persist through the backend when a server field differs"""
        target = changes.get("status")
        if target in (ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT):
            raise InvalidTransitionError(
                f"Status {target.value} can only be set through the check-in or check-out flow"
            )
        if target:
            existing.ensure_can_transition(target)
        if changes.get("check_out", existing.check_out) < changes.get("check_in", existing.check_in):
            raise ReservationValidationError("Check-out must not be before check-in")
        if changes.get("rate_plan_id") and not await self.rate_plan_repo.find_by_id(changes["rate_plan_id"]):
            raise ReservationValidationError("Invalid rate plan selected")
        if changes.get("room_type_id") and not await self.property_repo.find_room_type(changes["room_type_id"]):
            raise ReservationValidationError("Unknown room type selected")

        differing = {
            name: value for name, value in changes.items()
            if name in SERVER_FIELDS and getattr(existing, name) != value
        }
        payload = await self.mapper.to_update_record(differing) if differing else UpdateReservationRecord()

        if payload.is_empty():
            updated = existing.revise(updated_at=self.clock(), **changes)
            return await self._commit(updated)

        try:
            record = await self.backend.update_reservation(existing.id, payload)
        except BackendError as e:
            raise self._fail(e, "Failed to update reservation.") from e

        mapped = await self.mapper.from_record(record)
        updated = await self._reconcile(mapped, existing)
        local_overrides = {}
        if "notes" in changes:
            local_overrides["notes"] = changes["notes"]
        if changes.get("room_numbers"):
            local_overrides["room_numbers"] = changes["room_numbers"]
        if changes.get("rate_plan_id"):
            local_overrides["rate_plan_id"] = changes["rate_plan_id"]
        if target == ReservationStatus.NO_SHOW:
            local_overrides["status"] = ReservationStatus.NO_SHOW
        if local_overrides:
            updated = updated.revise(version=updated.version, updated_at=updated.updated_at, **local_overrides)
        return await self._commit(updated)

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_reservation_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Get reservation by confirmation number"""
        return await self.repository.find_by_confirmation_number(confirmation_number)

    async def get_reservations_by_guest(self, guest_id: str) -> List[Reservation]:
        """Get all reservations for a guest"""
        return await self.repository.find_by_guest_id(guest_id)

    async def get_all_reservations(self) -> List[Reservation]:
        """Get all reservations"""
        return await self.repository.find_all()

    # ==================== SYNC ====================
    async def hydrate(self) -> List[Reservation]:
        """Reconcile the local collection with a fresh backend fetch"""
        self.is_hydrated = False
        seq_at_start = dict(self._write_seq)
        try:
            records = await self.backend.fetch_reservations()
        except BackendError as e:
            raise self._fail(e, "Failed to load reservations.") from e

        local = {r.id: r for r in await self.repository.find_all()}
        fetched_ids = set()
        result = []
        for record in records:
            fetched_ids.add(record.id)
            current = local.get(record.id)
            if current and self._write_seq.get(record.id, 0) != seq_at_start.get(record.id, 0):
                # written while the fetch was in flight; the local copy is newer
                result.append(current)
                continue
            mapped = await self.mapper.from_record(record)
            result.append(await self._reconcile(mapped, current, bump=False) if current else mapped)

        for reservation_id, reservation in local.items():
            if reservation_id not in fetched_ids and self._write_seq.get(reservation_id, 0) != seq_at_start.get(reservation_id, 0):
                result.append(reservation)

        await self.repository.replace_all(result)
        self.is_hydrated = True
        self.last_error = None
        logger.info("Hydrated %d reservations from backend", len(result))
        return result

    # ==================== LIFECYCLE ====================
    async def create_reservation(self, reservation_input: ReservationInput) -> Reservation:
        """Create new reservation after rate plan, room type and inventory checks"""
        rate_plan = await self.rate_plan_repo.find_by_id(reservation_input.rate_plan_id)
        if not rate_plan:
            raise ReservationValidationError("Invalid rate plan selected")
        room_type = await self.property_repo.find_room_type(reservation_input.room_type_id)
        if not room_type:
            raise ReservationValidationError("Unknown room type selected")

        availability = await self.availability.check_availability(
            reservation_input.room_type_id, reservation_input.check_in, reservation_input.check_out
        )
        if not availability.available:
            raise CapacityError(availability.message or "Room not available for the selected dates")

        payload = CreateReservationRecord(
            hotel_id=self.hotel_id,
            hotel_code=self.hotel_code,
            guest_id=reservation_input.guest_id,
            room_type=room_type.short_code,
            arrival_date=reservation_input.check_in,
            departure_date=reservation_input.check_out,
            adults=reservation_input.adults,
            children=reservation_input.children,
            nightly_rate=rate_plan.nightly_rate_for(room_type),
            rate_plan=normalize_rate_plan_code(rate_plan.code),
            source=SOURCE_TO_BACKEND.get(reservation_input.source, SOURCE_TO_BACKEND[BookingSource.WEBSITE]),
            ota_reference=reservation_input.ota_reference,
            is_walk_in=reservation_input.source == BookingSource.WALK_IN,
            notes=reservation_input.notes,
            currency=self.currency,
        )

        try:
            record = await self.backend.create_reservation(payload)
        except BackendError as e:
            raise self._fail(e, "Failed to create reservation.") from e

        mapped = await self.mapper.from_record(record)
        reservation = mapped.revise(
            rate_plan_id=rate_plan.id,
            created_by=reservation_input.created_by,
            updated_at=mapped.updated_at,
            version=1,
        )
        await self._commit(reservation)
        logger.info("Created reservation %s for guest %s", reservation.confirmation_number, reservation.guest_id)
        return reservation

    async def update_reservation(self, reservation_id: str, update: ReservationUpdate) -> Reservation:
        """Apply a partial update"""
        async with self._lock(reservation_id):
            existing = await self._require(reservation_id)
            return await self._apply_update(existing, update.changes())

    async def confirm_reservation(self, reservation_id: str) -> Reservation:
        async with self._lock(reservation_id):
            existing = await self._require(reservation_id)
            if existing.status != ReservationStatus.PENDING:
                raise InvalidTransitionError(f"Cannot confirm reservation with status {existing.status.value}")
            return await self._apply_update(existing, {"status": ReservationStatus.CONFIRMED})

    async def cancel_reservation(self, reservation_id: str, reason: Optional[str] = None) -> Reservation:
        """Cancel, appending the reason to existing notes"""
        async with self._lock(reservation_id):
            existing = await self._require(reservation_id)
            notes = existing.notes
            if reason:
                prefix = f"{existing.notes}\n" if existing.notes else ""
                notes = f"{prefix}Cancellation reason: {reason}".strip()
            updated = await self._apply_update(existing, {"status": ReservationStatus.CANCELLED, "notes": notes})
        logger.info("Cancelled reservation %s", updated.confirmation_number)
        return updated

    async def mark_no_show(self, reservation_id: str) -> Reservation:
        async with self._lock(reservation_id):
            existing = await self._require(reservation_id)
            if existing.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
                raise InvalidTransitionError(f"Cannot mark as no-show with status {existing.status.value}")
            return await self._apply_update(existing, {"status": ReservationStatus.NO_SHOW})

    async def delete_reservation(self, reservation_id: str) -> None:
        """Hard delete; cancellation is preferred"""
        async with self._lock(reservation_id):
            await self._require(reservation_id)
            try:
                await self.backend.delete_reservation(reservation_id)
            except BackendError as e:
                raise self._fail(e, "Failed to delete reservation.") from e
            await self.repository.delete(reservation_id)
            self._write_seq[reservation_id] = self._write_seq.get(reservation_id, 0) + 1

    async def check_in(self, payload: CheckInPayload) -> Reservation:
        """Check in guest and mark the assigned rooms occupied"""
        async with self._lock(payload.reservation_id):
            existing = await self._require(payload.reservation_id)
            if existing.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
                raise InvalidTransitionError(f"Cannot check in with status {existing.status.value}")
            if not payload.assigned_rooms:
                raise ReservationValidationError("At least one room must be assigned for check-in")

            rooms = []
            for room_number in payload.assigned_rooms:
                room = await self.property_repo.find_room_by_number(room_number)
                if not room:
                    raise ReservationValidationError(f"Unknown room {room_number}")
                rooms.append(room)

            try:
                record = await self.backend.update_reservation(
                    existing.id,
                    UpdateReservationRecord(status=ReservationStatusCode.CHECKED_IN, room_id=rooms[0].id),
                )
            except BackendError as e:
                raise self._fail(e, "Failed to check in reservation.") from e

            now = self.clock()
            documents = [
                IdentityDocument(verified_at=now, **doc.model_dump())
                for doc in payload.documents
            ]
            details = CheckInDetails(
                documents=documents,
                assigned_rooms=list(payload.assigned_rooms),
                check_in_time=payload.check_in_time or now,
                handled_by=payload.handled_by,
                early_check_in=payload.early_check_in,
                remarks=payload.remarks,
            )
            mapped = await self.mapper.from_record(record)
            updated = (await self._reconcile(mapped, existing)).revise(
                room_numbers=list(payload.assigned_rooms),
                check_in_details=details,
                updated_at=now,
            )
            await self._commit(updated)

            for room in rooms:
                await self.property_repo.update_room_status(room.id, RoomStatus.OCCUPIED)

        logger.info("Checked in %s to room(s) %s", updated.confirmation_number, ", ".join(updated.room_numbers))
        return updated

    async def check_out(self, payload: CheckOutPayload) -> Reservation:
        """Settle the folio, check out, and mark occupied rooms dirty"""
        async with self._lock(payload.reservation_id):
            existing = await self._require(payload.reservation_id)
            if existing.status != ReservationStatus.CHECKED_IN:
                raise InvalidTransitionError(f"Cannot check out with status {existing.status.value}")

            now = self.clock()
            summary = settle(payload.settlement, payload.handled_by, payload.check_out_time or now)
            if summary.payments_total < summary.total_charges:
                raise InsufficientPaymentError(
                    f"Payment amount must cover the total bill of {summary.total_charges}",
                    shortfall=summary.balance_due,
                )

            try:
                record = await self.backend.update_reservation(
                    existing.id, UpdateReservationRecord(status=ReservationStatusCode.CHECKED_OUT)
                )
            except BackendError as e:
                raise self._fail(e, "Failed to check out reservation.") from e

            base = await self._reconcile(await self.mapper.from_record(record), existing)
            updated = base.revise(
                # room charge adjustments and folio extras beyond nights x rate
                extra_charges=summary.total_charges - (base.subtotal + summary.taxes - summary.discounts),
                tax=summary.taxes,
                discount=summary.discounts,
                amount_paid=summary.payments_total,
                check_out_details=CheckOutDetails(
                    settlement=summary,
                    late_checkout=payload.late_checkout,
                    check_out_time=payload.check_out_time or now,
                    handled_by=payload.handled_by,
                    guest_feedback=payload.guest_feedback,
                ),
                updated_at=now,
            )
            await self._commit(updated)

            for room_number in updated.room_numbers:
                room = await self.property_repo.find_room_by_number(room_number)
                if room:
                    await self.property_repo.update_room_status(room.id, RoomStatus.DIRTY)

        logger.info(
            "Checked out %s: charges %s, paid %s, status %s",
            updated.confirmation_number, summary.total_charges, summary.payments_total, updated.payment_status.value,
        )
        return updated


class RatePlanService:
    """Rate plan table maintenance"""

    def __init__(self, repository: RatePlanRepository):
        self.repository = repository

    async def get_rate_plans(self) -> List[RatePlan]:
        return await self.repository.find_all()

    async def get_rate_plan(self, rate_plan_id: str) -> Optional[RatePlan]:
        return await self.repository.find_by_id(rate_plan_id)

    async def add_rate_plan(self, **fields) -> RatePlan:
        return await self.repository.save(RatePlan(**fields))

    async def update_rate_plan(self, rate_plan_id: str, **changes) -> Optional[RatePlan]:
        plan = await self.repository.find_by_id(rate_plan_id)
        if not plan:
            return None
        updated = RatePlan.model_validate({**dict(plan), **changes, "id": plan.id})
        return await self.repository.update(updated)

    async def delete_rate_plan(self, rate_plan_id: str) -> bool:
        return await self.repository.delete(rate_plan_id)
