"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, model_validator
from datetime import datetime, date
from typing import Optional, List, Dict, Any
from decimal import Decimal

from domain.enums import (
    ReservationStatus, PaymentStatus, BookingSource, RoomStatus, RateType,
    AlertCategory, AlertSeverity, LoyaltyTier, ALLOWED_TRANSITIONS, TERMINAL_STATUSES
)
from domain.exceptions import InvalidTransitionError
from domain.settlement import SettlementSummary, classify_payment_status
from domain.value_objects import (
    Address, DateRange, EarlyCheckInDetail, IdentityDocument, LateCheckoutDetail,
    new_id, round_whole
)

ZERO = Decimal("0")


class Guest(BaseModel):
    """Guest profile, owned by guest management"""
    id: str = Field(default_factory=new_id)
    first_name: str
    last_name: str = ""
    email: str = ""
    phone: str = ""
    nationality: str = ""
    id_type: str = "passport"
    id_number: str = ""
    date_of_birth: Optional[date] = None
    address: Optional[Address] = None
    preferences: Dict[str, Any] = {}
    loyalty_tier: Optional[LoyaltyTier] = None
    total_spent: Decimal = ZERO
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def placeholder(guest_id: str) -> "Guest":
        """Stand-in for a guest the directory does not know"""
        return Guest(id=guest_id, first_name="Guest")


class RoomType(BaseModel):
    id: str
    name: str
    short_code: str
    capacity: int = Field(ge=1, default=2)
    base_rate: Decimal = Field(ge=0)
    extra_bed_rate: Decimal = ZERO
    is_active: bool = True

    class Config:
        frozen = True


class RoomInventory(BaseModel):
    """A physical room"""
    id: str
    room_number: str
    room_type_id: str
    floor_id: str = ""
    status: RoomStatus = RoomStatus.VACANT
    max_occupancy: int = 2
    is_active: bool = True
    last_cleaned: Optional[datetime] = None


class RatePlan(BaseModel):
    """Named discount policy applied on top of a room type's base rate"""
    id: str = Field(default_factory=new_id)
    name: str
    code: str
    type: RateType = RateType.BAR
    base_rate: Optional[Decimal] = Field(None, ge=0)
    room_type_rates: Dict[str, Decimal] = {}
    discount_percentage: Decimal = Field(ZERO, ge=0, le=100)
    is_active: bool = True
    description: Optional[str] = None

    def base_rate_for(self, room_type: RoomType) -> Decimal:
        """Plan override for the room type, else room type rate, else plan rate"""
        if room_type.id in self.room_type_rates:
            return self.room_type_rates[room_type.id]
        if room_type.base_rate:
            return room_type.base_rate
        return self.base_rate or ZERO

    def nightly_rate_for(self, room_type: RoomType) -> Decimal:
        base = self.base_rate_for(room_type)
        rate = round_whole(base * (1 - self.discount_percentage / 100))
        return max(rate, ZERO)


class CheckInDetails(BaseModel):
    documents: List[IdentityDocument] = []
    assigned_rooms: List[str] = []
    check_in_time: datetime
    handled_by: Optional[str] = None
    early_check_in: Optional[EarlyCheckInDetail] = None
    remarks: Optional[str] = None


class CheckOutDetails(BaseModel):
    settlement: SettlementSummary
    late_checkout: Optional[LateCheckoutDetail] = None
    check_out_time: datetime
    handled_by: Optional[str] = None
    guest_feedback: Optional[str] = None


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity

    nights, subtotal, total_amount and payment_status are derived on every
    construction; build changed copies with ``revise`` so they stay in step.
    """

    # Identity
    id: str = Field(default_factory=new_id)
    confirmation_number: str

    # Stay
    guest_id: str
    guest_name: str = "Guest"
    room_type_id: str
    room_numbers: List[str] = []
    check_in: date
    check_out: date
    adults: int = Field(ge=0, default=1)
    children: int = Field(ge=0, default=0)
    nights: int = 1

    # Commercial
    rate_plan_id: str
    nightly_rate: Decimal = Field(ge=0)
    subtotal: Decimal = ZERO
    extra_charges: Decimal = ZERO
    tax: Decimal = ZERO
    discount: Decimal = ZERO
    total_amount: Decimal = ZERO
    amount_paid: Decimal = ZERO
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    status: ReservationStatus = ReservationStatus.PENDING
    source: BookingSource = BookingSource.WEBSITE
    ota_reference: Optional[str] = None
    notes: Optional[str] = None

    check_in_details: Optional[CheckInDetails] = None
    check_out_details: Optional[CheckOutDetails] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    created_by: str = "system"
    version: int = 1

    @model_validator(mode="after")
    def _derive_amounts(self) -> "Reservation":
        self.nights = self.date_range.nights()
        self.subtotal = self.nightly_rate * self.nights
        self.total_amount = self.subtotal + self.extra_charges + self.tax - self.discount
        self.payment_status = classify_payment_status(
            self.total_amount, self.balance_due, self.amount_paid
        )
        return self

    # ==================== QUERY METHODS ====================
    @property
    def date_range(self) -> DateRange:
        return DateRange(check_in=self.check_in, check_out=self.check_out)

    @property
    def balance_due(self) -> Decimal:
        return max(self.total_amount - self.amount_paid, ZERO)

    @property
    def guest_first_name(self) -> str:
        return self.guest_name.split(" ")[0] if self.guest_name else "Guest"

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def occupies_inventory(self) -> bool:
        return self.status not in (ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW)

    def can_transition_to(self, target: ReservationStatus) -> bool:
        return target == self.status or target in ALLOWED_TRANSITIONS[self.status]

    def ensure_can_transition(self, target: ReservationStatus) -> None:
        """Raise if the lifecycle does not allow moving to target"""
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot move reservation {self.confirmation_number} from {self.status.value} to {target.value}"
            )

    # ==================== MODIFICATION METHODS ====================
    def revise(self, **changes) -> "Reservation":
        """Validated copy with changes applied and derived fields recomputed"""
        data = dict(self)
        data.update(changes)
        if "updated_at" not in changes:
            data["updated_at"] = datetime.now()
        if "version" not in changes:
            data["version"] = self.version + 1
        return Reservation.model_validate(data)


class AlertRule(BaseModel):
    id: str
    category: AlertCategory
    name: str
    description: str = ""
    severity: AlertSeverity
    is_active: bool = True


class AlertItem(BaseModel):
    """Alert raised by a rule match"""
    id: str = Field(default_factory=new_id)
    rule_id: str
    category: AlertCategory
    severity: AlertSeverity
    title: str
    message: str
    created_at: datetime = Field(default_factory=datetime.now)
    is_read: bool = False
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None

    @staticmethod
    def from_rule(rule: AlertRule, title: str, message: str, created_at: datetime) -> "AlertItem":
        return AlertItem(
            rule_id=rule.id,
            category=rule.category,
            severity=rule.severity,
            title=title,
            message=message,
            created_at=created_at,
        )

    def is_acknowledged(self) -> bool:
        return self.acknowledged_at is not None

    def mark_read(self) -> None:
        self.is_read = True

    def acknowledge(self, actor: str, at: datetime) -> None:
        self.acknowledged_by = actor
        self.acknowledged_at = at
        self.is_read = True
