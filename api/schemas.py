"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from application.commands import CheckInDocumentInput, SettlementInput
from domain.entities import CheckInDetails, CheckOutDetails
from domain.enums import BookingSource, RateType
from domain.value_objects import EarlyCheckInDetail, LateCheckoutDetail


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    guest_id: str
    room_type_id: str
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    rate_plan_id: str = "RP001"
    source: BookingSource = Field(default=BookingSource.WEBSITE, description="Booking channel")
    ota_reference: Optional[str] = None
    notes: Optional[str] = None

    @validator('check_out')
    def check_out_not_before_check_in(cls, v, values):
        if 'check_in' in values and v < values['check_in']:
            raise ValueError('Check-out must not be before check-in')
        return v


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    reason: Optional[str] = None


class CheckInRequest(BaseModel):
    """Check-in request DTO"""
    assigned_rooms: List[str] = Field(min_length=1)
    documents: List[CheckInDocumentInput] = []
    early_check_in: Optional[EarlyCheckInDetail] = None
    remarks: Optional[str] = None
    check_in_time: Optional[datetime] = None


class CheckOutRequest(BaseModel):
    """Check-out request DTO"""
    settlement: SettlementInput
    late_checkout: Optional[LateCheckoutDetail] = None
    guest_feedback: Optional[str] = None
    check_out_time: Optional[datetime] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    id: str
    confirmation_number: str
    guest_id: str
    guest_name: str
    room_type_id: str
    room_numbers: List[str]
    check_in: date
    check_out: date
    adults: int
    children: int
    nights: int
    rate_plan_id: str
    nightly_rate: Decimal
    subtotal: Decimal
    extra_charges: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_status: str
    status: str
    source: str
    ota_reference: Optional[str] = None
    notes: Optional[str] = None
    check_in_details: Optional[CheckInDetails] = None
    check_out_details: Optional[CheckOutDetails] = None
    created_at: datetime
    updated_at: datetime
    created_by: str
    version: int


# ============================================================================
# AVAILABILITY & BILLING SCHEMAS
# ============================================================================

class AvailabilityResponse(BaseModel):
    """Availability response DTO"""
    room_type_id: str
    check_in: date
    check_out: date
    available: bool
    available_rooms: int
    message: Optional[str] = None
    rate_plan_id: Optional[str] = None
    nightly_rate: Optional[Decimal] = None


class TaxSplitResponse(BaseModel):
    total: Decimal
    cgst: Decimal
    sgst: Decimal


# ============================================================================
# RATE PLAN SCHEMAS
# ============================================================================

class RatePlanRequest(BaseModel):
    """Create rate plan request DTO"""
    name: str
    code: str
    type: RateType = RateType.BAR
    base_rate: Optional[Decimal] = Field(None, ge=0)
    room_type_rates: Dict[str, Decimal] = {}
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    is_active: bool = True
    description: Optional[str] = None


class UpdateRatePlanRequest(BaseModel):
    """Update rate plan request DTO; only fields sent are changed"""
    name: Optional[str] = None
    code: Optional[str] = None
    base_rate: Optional[Decimal] = Field(None, ge=0)
    room_type_rates: Optional[Dict[str, Decimal]] = None
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None
    description: Optional[str] = None


# ============================================================================
# ALERT SCHEMAS
# ============================================================================

class AlertRuleToggleRequest(BaseModel):
    is_active: bool


class UnreadCountResponse(BaseModel):
    unread: int
    last_evaluation_at: Optional[datetime] = None


class SyncResponse(BaseModel):
    """Result of a backend hydration"""
    reservations: int
    synced_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class OperatorResponse(BaseModel):
    """Operator response DTO"""
    username: str
    full_name: str
    role: str
    email: Optional[str] = None
    disabled: bool
