"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict

from pydantic import TypeAdapter

from domain.repositories import (
    ReservationRepository, RatePlanRepository, PropertyRepository, GuestRepository, AlertRepository
)
from domain.entities import Reservation, RatePlan, RoomType, RoomInventory, Guest, AlertItem
from domain.enums import RoomStatus
from infrastructure.snapshot import SnapshotStore

_reservations_adapter = TypeAdapter(List[Reservation])
_rate_plans_adapter = TypeAdapter(List[RatePlan])
_alerts_adapter = TypeAdapter(List[AlertItem])


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    SNAPSHOT_KEY = "reservations"

    def __init__(self, snapshot: Optional[SnapshotStore] = None):
        self._storage: Dict[str, Reservation] = {}
        self._snapshot = snapshot
        if snapshot and snapshot.load(self.SNAPSHOT_KEY):
            for reservation in _reservations_adapter.validate_python(snapshot.load(self.SNAPSHOT_KEY)):
                self._storage[reservation.id] = reservation

    def _persist(self) -> None:
        if self._snapshot:
            self._snapshot.save(
                self.SNAPSHOT_KEY,
                _reservations_adapter.dump_python(list(self._storage.values()), mode="json"),
            )

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.id] = reservation
        self._persist()
        return reservation

    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._storage.get(reservation_id)

    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        for reservation in self._storage.values():
            if reservation.confirmation_number == confirmation_number:
                return reservation
        return None

    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        """Find reservations by guest ID"""
        return [r for r in self._storage.values() if r.guest_id == guest_id]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return list(self._storage.values())

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.id in self._storage:
            self._storage[reservation.id] = reservation
            self._persist()
            return reservation
        raise ValueError("Reservation not found")

    async def delete(self, reservation_id: str) -> bool:
        """Delete reservation"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            self._persist()
            return True
        return False

    async def replace_all(self, reservations: List[Reservation]) -> None:
        self._storage = {r.id: r for r in reservations}
        self._persist()


class InMemoryRatePlanRepository(RatePlanRepository):
    """In-memory rate plan table"""

    SNAPSHOT_KEY = "rate_plans"

    def __init__(self, defaults: Optional[List[RatePlan]] = None, snapshot: Optional[SnapshotStore] = None):
        self._snapshot = snapshot
        stored = snapshot.load(self.SNAPSHOT_KEY) if snapshot else None
        plans = _rate_plans_adapter.validate_python(stored) if stored else [p.model_copy() for p in defaults or []]
        self._storage: Dict[str, RatePlan] = {p.id: p for p in plans}

    def _persist(self) -> None:
        if self._snapshot:
            self._snapshot.save(
                self.SNAPSHOT_KEY,
                _rate_plans_adapter.dump_python(list(self._storage.values()), mode="json"),
            )

    async def save(self, rate_plan: RatePlan) -> RatePlan:
        self._storage[rate_plan.id] = rate_plan
        self._persist()
        return rate_plan

    async def find_by_id(self, rate_plan_id: str) -> Optional[RatePlan]:
        return self._storage.get(rate_plan_id)

    async def find_all(self) -> List[RatePlan]:
        return list(self._storage.values())

    async def update(self, rate_plan: RatePlan) -> RatePlan:
        if rate_plan.id in self._storage:
            self._storage[rate_plan.id] = rate_plan
            self._persist()
            return rate_plan
        raise ValueError("Rate plan not found")

    async def delete(self, rate_plan_id: str) -> bool:
        if rate_plan_id in self._storage:
            del self._storage[rate_plan_id]
            self._persist()
            return True
        return False


class InMemoryPropertyRepository(PropertyRepository):
    """In-memory room types and rooms"""

    def __init__(self, room_types: Optional[List[RoomType]] = None, rooms: Optional[List[RoomInventory]] = None):
        self._room_types: Dict[str, RoomType] = {rt.id: rt for rt in room_types or []}
        self._rooms: Dict[str, RoomInventory] = {r.id: r.model_copy() for r in rooms or []}

    async def find_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self._room_types.get(room_type_id)

    async def find_all_room_types(self) -> List[RoomType]:
        return list(self._room_types.values())

    async def find_all_rooms(self) -> List[RoomInventory]:
        return list(self._rooms.values())

    async def find_room(self, room_id: str) -> Optional[RoomInventory]:
        return self._rooms.get(room_id)

    async def find_room_by_number(self, room_number: str) -> Optional[RoomInventory]:
        for room in self._rooms.values():
            if room.room_number == room_number:
                return room
        return None

    async def update_room_status(self, room_id: str, status: RoomStatus) -> RoomInventory:
        room = self._rooms.get(room_id)
        if room is None:
            raise ValueError("Room not found")
        room.status = status
        return room


class InMemoryGuestRepository(GuestRepository):
    """In-memory guest directory"""

    def __init__(self, guests: Optional[List[Guest]] = None):
        self._storage: Dict[str, Guest] = {g.id: g for g in guests or []}

    async def save(self, guest: Guest) -> Guest:
        self._storage[guest.id] = guest
        return guest

    async def find_by_id(self, guest_id: str) -> Optional[Guest]:
        return self._storage.get(guest_id)

    async def find_all(self) -> List[Guest]:
        return list(self._storage.values())


class InMemoryAlertRepository(AlertRepository):
    """In-memory alert list"""

    SNAPSHOT_KEY = "alerts"

    def __init__(self, snapshot: Optional[SnapshotStore] = None):
        self._snapshot = snapshot
        stored = snapshot.load(self.SNAPSHOT_KEY) if snapshot else None
        self._alerts: List[AlertItem] = _alerts_adapter.validate_python(stored) if stored else []

    async def find_all(self) -> List[AlertItem]:
        return list(self._alerts)

    async def replace_all(self, alerts: List[AlertItem]) -> None:
        self._alerts = list(alerts)
        if self._snapshot:
            self._snapshot.save(self.SNAPSHOT_KEY, _alerts_adapter.dump_python(self._alerts, mode="json"))
