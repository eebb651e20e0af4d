"""Application commands - typed inputs for lifecycle operations"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from domain.enums import BookingSource, ChargeCategory, DocumentType, PaymentMethod, ReservationStatus
from domain.value_objects import ChargeItem, EarlyCheckInDetail, LateCheckoutDetail

# ReservationUpdate fields the backend record carries
SERVER_FIELDS = frozenset({
    "check_in", "check_out", "adults", "children", "status", "nightly_rate",
    "rate_plan_id", "source", "ota_reference", "notes", "room_type_id", "room_numbers",
})


class ReservationInput(BaseModel):
    """New booking"""
    guest_id: str
    room_type_id: str
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    rate_plan_id: str
    source: BookingSource = BookingSource.WEBSITE
    ota_reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: str = "system"

    @validator('check_out')
    def check_out_not_before_check_in(cls, v, values):
        if 'check_in' in values and v < values['check_in']:
            raise ValueError('Check-out must not be before check-in')
        return v


class ReservationUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied"""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    adults: Optional[int] = Field(None, ge=1, le=10)
    children: Optional[int] = Field(None, ge=0, le=10)
    status: Optional[ReservationStatus] = None
    nightly_rate: Optional[Decimal] = Field(None, ge=0)
    rate_plan_id: Optional[str] = None
    room_type_id: Optional[str] = None
    room_numbers: Optional[List[str]] = None
    source: Optional[BookingSource] = None
    ota_reference: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"

    def changes(self) -> dict:
        # only notes and ota_reference may be cleared with an explicit null
        return {
            name: getattr(self, name) for name in self.model_fields_set
            if getattr(self, name) is not None or name in ("notes", "ota_reference")
        }


class CheckInDocumentInput(BaseModel):
    type: DocumentType
    number: str = Field(min_length=1)
    issued_country: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None


class CheckInPayload(BaseModel):
    reservation_id: str
    assigned_rooms: List[str] = []
    documents: List[CheckInDocumentInput] = []
    handled_by: Optional[str] = None
    check_in_time: Optional[datetime] = None
    early_check_in: Optional[EarlyCheckInDetail] = None
    remarks: Optional[str] = None


class PaymentInput(BaseModel):
    method: PaymentMethod = PaymentMethod.CASH
    amount: Decimal = Field(ge=0)
    reference: Optional[str] = None
    notes: Optional[str] = None


class ChargeInput(BaseModel):
    description: str
    amount: Decimal
    category: ChargeCategory = ChargeCategory.OTHER
    tax_amount: Optional[Decimal] = None

    def to_charge(self) -> ChargeItem:
        return ChargeItem(
            description=self.description,
            amount=self.amount,
            category=self.category,
            tax_amount=self.tax_amount,
        )


class SettlementInput(BaseModel):
    """Folio at check-out; give either a tax amount or a tax rate in percent"""
    room_charges: Decimal = Field(ge=0)
    additional_charges: List[ChargeInput] = []
    taxes: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0)
    discounts: Decimal = Field(Decimal("0"), ge=0)
    payments: List[PaymentInput] = []
    notes: Optional[str] = None


class CheckOutPayload(BaseModel):
    reservation_id: str
    settlement: SettlementInput
    late_checkout: Optional[LateCheckoutDetail] = None
    handled_by: Optional[str] = None
    guest_feedback: Optional[str] = None
    check_out_time: Optional[datetime] = None


class AvailabilityCheck(BaseModel):
    available: bool
    available_rooms: int
    message: Optional[str] = None
