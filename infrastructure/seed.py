"""Default lookup tables and demo property"""
from decimal import Decimal
from typing import List

from domain.entities import AlertRule, Guest, RatePlan, RoomInventory, RoomType
from domain.enums import AlertCategory, AlertSeverity, RateType

DEFAULT_RATE_PLANS: List[RatePlan] = [
    RatePlan(
        id="RP001",
        name="Best Available Rate",
        code="BAR",
        type=RateType.BAR,
        base_rate=Decimal("7500"),
        discount_percentage=Decimal("0"),
        description="Standard public rate",
    ),
    RatePlan(
        id="RP002",
        name="Corporate Rate",
        code="CORPORATE",
        type=RateType.CORPORATE,
        base_rate=Decimal("7000"),
        discount_percentage=Decimal("15"),
        description="Discounted rate for corporate bookings",
    ),
    RatePlan(
        id="RP003",
        name="Weekend Package",
        code="PACKAGE",
        type=RateType.PACKAGE,
        base_rate=Decimal("6800"),
        discount_percentage=Decimal("10"),
        description="Weekend package with breakfast",
    ),
]

DEFAULT_ALERT_RULES: List[AlertRule] = [
    AlertRule(
        id="ALRT-R1",
        category=AlertCategory.LATE_CHECKOUT,
        name="Late checkout",
        description="Guests past their scheduled checkout time",
        severity=AlertSeverity.HIGH,
    ),
    AlertRule(
        id="ALRT-R2",
        category=AlertCategory.ROOM_NOT_CLEANED,
        name="Room awaiting cleaning",
        description="Dirty rooms pending beyond SLA",
        severity=AlertSeverity.MEDIUM,
    ),
    AlertRule(
        id="ALRT-R3",
        category=AlertCategory.PAYMENT_PENDING,
        name="Payment pending",
        description="Reservations with outstanding folios",
        severity=AlertSeverity.HIGH,
    ),
    AlertRule(
        id="ALRT-R4",
        category=AlertCategory.OVERBOOKING,
        name="Potential overbooking",
        description="Occupancy exceeds available inventory",
        severity=AlertSeverity.CRITICAL,
    ),
]

DEMO_ROOM_TYPES: List[RoomType] = [
    RoomType(id="RT-STD", name="Standard Room", short_code="STD", capacity=2, base_rate=Decimal("4500")),
    RoomType(id="RT-DLX", name="Deluxe Room", short_code="DLX", capacity=3, base_rate=Decimal("5000")),
    RoomType(id="RT-SUT", name="Suite", short_code="SUT", capacity=4, base_rate=Decimal("9000")),
]


def demo_rooms() -> List[RoomInventory]:
    """Two floors: 101-104 standard, 201-203 deluxe, 204 suite"""
    rooms = [
        RoomInventory(id=f"R{n}", room_number=str(n), room_type_id="RT-STD", floor_id="F1")
        for n in range(101, 105)
    ]
    rooms += [
        RoomInventory(id=f"R{n}", room_number=str(n), room_type_id="RT-DLX", floor_id="F2", max_occupancy=3)
        for n in range(201, 204)
    ]
    rooms.append(RoomInventory(id="R204", room_number="204", room_type_id="RT-SUT", floor_id="F2", max_occupancy=4))
    return rooms


def demo_guests() -> List[Guest]:
    return [
        Guest(id="G001", first_name="Asha", last_name="Menon", email="asha.menon@example.com",
              phone="+91-98450-00001", nationality="IN"),
        Guest(id="G002", first_name="Rahul", last_name="Verma", email="rahul.verma@example.com",
              phone="+91-98450-00002", nationality="IN"),
    ]
