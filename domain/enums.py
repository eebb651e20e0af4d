"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


TERMINAL_STATUSES = frozenset({
    ReservationStatus.CHECKED_OUT,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})

# current status -> statuses reachable from it
ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CHECKED_IN: frozenset({
        ReservationStatus.CHECKED_OUT,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class BookingSource(str, Enum):
    WALK_IN = "walk-in"
    PHONE = "phone"
    EMAIL = "email"
    WEBSITE = "website"
    OTA = "ota"
    AGENT = "agent"


class RoomStatus(str, Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    DIRTY = "dirty"
    OUT_OF_SERVICE = "oos"
    MAINTENANCE = "maintenance"


class RateType(str, Enum):
    BAR = "bar"
    CORPORATE = "corporate"
    PACKAGE = "package"
    GOVERNMENT = "government"
    PROMOTIONAL = "promotional"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    BANK_TRANSFER = "bank-transfer"
    FOLIO_TRANSFER = "folio-transfer"


class DocumentType(str, Enum):
    PASSPORT = "passport"
    NATIONAL_ID = "national-id"
    DRIVING_LICENSE = "driving-license"
    VOTER_ID = "voter-id"
    OTHER = "other"


class ChargeCategory(str, Enum):
    ROOM = "room"
    MINI_BAR = "mini-bar"
    RESTAURANT = "restaurant"
    LAUNDRY = "laundry"
    LATE_CHECKOUT = "late-checkout"
    EARLY_CHECKIN = "early-checkin"
    OTHER = "other"


class AlertCategory(str, Enum):
    LATE_CHECKOUT = "late-checkout"
    ROOM_NOT_CLEANED = "room-not-cleaned"
    PAYMENT_PENDING = "payment-pending"
    OVERBOOKING = "overbooking"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class LoyaltyTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
