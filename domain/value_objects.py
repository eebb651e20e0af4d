"""Domain Value Objects"""
import math
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from uuid import uuid4
from typing import Optional

from domain.enums import ChargeCategory, DocumentType, PaymentMethod

CENTS = Decimal("0.01")


def new_id() -> str:
    return str(uuid4())


def to_money(value) -> Decimal:
    """Round to 2 decimals, half-up"""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_whole(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


class DateRange(BaseModel):
    """Value Object for stay dates"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_not_before_check_in(cls, v, values):
        if 'check_in' in values and v < values['check_in']:
            raise ValueError('Check-out must not be before check-in')
        return v

    def nights(self) -> int:
        """Whole nights between the dates, at least one"""
        seconds = (self.check_out - self.check_in).total_seconds()
        return max(math.ceil(seconds / 86400), 1)

    def days(self):
        """Calendar days occupied: check-in inclusive, check-out exclusive"""
        current = self.check_in
        while current < self.check_out:
            yield current
            current = date.fromordinal(current.toordinal() + 1)

    class Config:
        frozen = True


class Address(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""


class IdentityDocument(BaseModel):
    """Identity document verified at the front desk"""
    id: str = Field(default_factory=new_id)
    type: DocumentType
    number: str
    issued_country: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    verified_at: datetime

    class Config:
        frozen = True


class EarlyCheckInDetail(BaseModel):
    is_early: bool = True
    approved_by: Optional[str] = None
    fee: Optional[Decimal] = Field(None, ge=0)
    remarks: Optional[str] = None

    class Config:
        frozen = True


class LateCheckoutDetail(BaseModel):
    applied: bool = True
    fee: Optional[Decimal] = Field(None, ge=0)
    reason: Optional[str] = None
    approved_by: Optional[str] = None

    class Config:
        frozen = True


class ChargeItem(BaseModel):
    """Folio charge posted at settlement"""
    id: str = Field(default_factory=new_id)
    description: str
    amount: Decimal
    category: ChargeCategory = ChargeCategory.OTHER
    tax_amount: Optional[Decimal] = None

    def total(self) -> Decimal:
        return self.amount + (self.tax_amount or Decimal("0"))

    class Config:
        frozen = True


class PaymentRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    method: PaymentMethod
    amount: Decimal
    reference: Optional[str] = None
    timestamp: datetime
    collected_by: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        frozen = True


class TaxSplit(BaseModel):
    """Combined GST shown as two equal components"""
    cgst: Decimal
    sgst: Decimal

    def total(self) -> Decimal:
        return self.cgst + self.sgst

    class Config:
        frozen = True


def format_currency(amount, symbol: str = "₹") -> str:
    """Display amount with thousands separators, e.g. ₹12,500.00"""
    return f"{symbol}{to_money(amount):,.2f}"
