"""Backend record shapes

The backend of record speaks camelCase JSON and its own status/source/rate
plan vocabularies. These models describe that wire contract; mapping to the
domain model lives in application.mapping.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ReservationStatusCode(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


class ReservationSourceCode(str, Enum):
    DIRECT = "DIRECT"
    OTA = "OTA"
    CORPORATE = "CORPORATE"
    WALK_IN = "WALK_IN"


class RatePlanCode(str, Enum):
    BAR = "BAR"
    CORPORATE = "CORPORATE"
    PACKAGE = "PACKAGE"


class WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_wire(self) -> dict:
        """JSON-ready camelCase body with unset fields left out"""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ChargeRecord(WireModel):
    description: str
    amount: Decimal


class BillingRecord(WireModel):
    currency: str = "INR"
    total_amount: Decimal
    balance_due: Decimal
    charges: List[ChargeRecord] = []


class ReservationRecord(WireModel):
    id: str
    hotel_id: str
    hotel_code: str
    guest_id: str
    room_type: str
    room_id: Optional[str] = None
    status: ReservationStatusCode
    arrival_date: date
    departure_date: date
    adults: int
    children: int = 0
    nightly_rate: Decimal
    rate_plan: RatePlanCode = RatePlanCode.BAR
    source: ReservationSourceCode = ReservationSourceCode.DIRECT
    ota_reference: Optional[str] = None
    is_walk_in: bool = False
    notes: Optional[str] = None
    billing: Optional[BillingRecord] = None
    check_in_at: Optional[datetime] = None
    check_out_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CreateReservationRecord(WireModel):
    hotel_id: str
    hotel_code: str
    guest_id: str
    room_type: str
    room_id: Optional[str] = None
    status: Optional[ReservationStatusCode] = None
    arrival_date: date
    departure_date: date
    adults: int
    children: int
    nightly_rate: Decimal
    rate_plan: RatePlanCode
    source: ReservationSourceCode
    ota_reference: Optional[str] = None
    is_walk_in: bool = False
    notes: Optional[str] = None
    currency: str = "INR"


class UpdateReservationRecord(WireModel):
    """Partial update; only fields explicitly set are sent"""
    room_id: Optional[str] = None
    room_type: Optional[str] = None
    status: Optional[ReservationStatusCode] = None
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None
    adults: Optional[int] = None
    children: Optional[int] = None
    nightly_rate: Optional[Decimal] = None
    rate_plan: Optional[RatePlanCode] = None
    source: Optional[ReservationSourceCode] = None
    ota_reference: Optional[str] = None
    is_walk_in: Optional[bool] = None
    notes: Optional[str] = None
    currency: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_fields_set


class AvailabilityQuery(WireModel):
    arrival_date: date
    departure_date: date
    room_type: Optional[str] = None


class AvailableRoomRecord(WireModel):
    id: str
    number: str
    type: str
    room_type_id: str
    status: str
    rate: Decimal = Decimal("0")
    is_active: bool = True


class AvailabilityRecord(WireModel):
    arrival_date: date
    departure_date: date
    room_type: Optional[str] = None
    available_rooms: List[AvailableRoomRecord] = []
    total_available: int
