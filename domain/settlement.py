"""Settlement calculator

Pure functions for check-out billing: folio totals, balance and refund due,
payment status classification and the CGST/SGST display split.
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from pydantic import BaseModel

from domain.enums import PaymentStatus
from domain.value_objects import ChargeItem, PaymentRecord, TaxSplit, to_money

ZERO = Decimal("0")


class SettlementSummary(BaseModel):
    """Final charge/payment reconciliation, produced once at check-out"""
    room_charges: Decimal
    additional_charges: List[ChargeItem] = []
    taxes: Decimal = ZERO
    discounts: Decimal = ZERO
    payments: List[PaymentRecord] = []
    total_charges: Decimal
    payments_total: Decimal
    balance_due: Decimal
    refund_due: Decimal
    notes: Optional[str] = None

    class Config:
        frozen = True


def additional_total(charges: Iterable[ChargeItem]) -> Decimal:
    return sum((charge.total() for charge in charges), ZERO)


def tax_from_rate(room_charges: Decimal, charges: Iterable[ChargeItem], discounts: Decimal, tax_rate: Decimal) -> Decimal:
    """Tax on the taxable folio (room + charges - discounts) at a percentage rate"""
    taxable = room_charges + sum((charge.amount for charge in charges), ZERO) - discounts
    return to_money(taxable * Decimal(str(tax_rate)) / 100)


def build_settlement(
    room_charges: Decimal,
    additional_charges: List[ChargeItem],
    taxes: Decimal,
    discounts: Decimal,
    payments: List[PaymentRecord],
    notes: Optional[str] = None,
) -> SettlementSummary:
    """Reconcile charges against payments"""
    room_charges = Decimal(str(room_charges))
    taxes = Decimal(str(taxes))
    discounts = Decimal(str(discounts))

    total_charges = room_charges + additional_total(additional_charges) + taxes - discounts
    payments_total = sum((payment.amount for payment in payments), ZERO)

    return SettlementSummary(
        room_charges=room_charges,
        additional_charges=list(additional_charges),
        taxes=taxes,
        discounts=discounts,
        payments=list(payments),
        total_charges=total_charges,
        payments_total=payments_total,
        balance_due=max(to_money(total_charges - payments_total), ZERO),
        refund_due=max(to_money(payments_total - total_charges), ZERO),
        notes=notes,
    )


def classify_payment_status(total_amount: Decimal, balance_due: Decimal, amount_paid: Decimal) -> PaymentStatus:
    if amount_paid > total_amount:
        return PaymentStatus.REFUNDED
    if balance_due <= 0:
        return PaymentStatus.PAID
    if balance_due >= total_amount:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def split_tax(total_tax: Decimal) -> TaxSplit:
    # second half absorbs the rounding so both halves add back to the total
    total_tax = Decimal(str(total_tax))
    half = to_money(total_tax / 2)
    return TaxSplit(cgst=half, sgst=total_tax - half)


def payment_records(payments, collected_by: Optional[str], timestamp: datetime) -> List[PaymentRecord]:
    """Stamp submitted payments with ids, collector and time"""
    return [
        PaymentRecord(
            method=payment.method,
            amount=payment.amount,
            reference=payment.reference,
            notes=payment.notes,
            collected_by=collected_by,
            timestamp=timestamp,
        )
        for payment in payments
    ]
