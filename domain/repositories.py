"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List

from domain.entities import Reservation, RatePlan, RoomType, RoomInventory, Guest, AlertItem
from domain.enums import RoomStatus
from domain.records import (
    ReservationRecord, CreateReservationRecord, UpdateReservationRecord,
    AvailabilityQuery, AvailabilityRecord
)


class ReservationRepository(ABC):
    """Local reservation collection"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        """Find reservations by guest ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: str) -> bool:
        """Delete reservation"""
        pass

    @abstractmethod
    async def replace_all(self, reservations: List[Reservation]) -> None:
        """Replace the whole collection (hydration)"""
        pass


class RatePlanRepository(ABC):
    """Rate plan lookup table"""

    @abstractmethod
    async def save(self, rate_plan: RatePlan) -> RatePlan:
        pass

    @abstractmethod
    async def find_by_id(self, rate_plan_id: str) -> Optional[RatePlan]:
        pass

    @abstractmethod
    async def find_all(self) -> List[RatePlan]:
        pass

    @abstractmethod
    async def update(self, rate_plan: RatePlan) -> RatePlan:
        pass

    @abstractmethod
    async def delete(self, rate_plan_id: str) -> bool:
        pass


class PropertyRepository(ABC):
    """Room types and room inventory, owned by property setup and housekeeping"""

    @abstractmethod
    async def find_room_type(self, room_type_id: str) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_all_room_types(self) -> List[RoomType]:
        pass

    @abstractmethod
    async def find_all_rooms(self) -> List[RoomInventory]:
        pass

    @abstractmethod
    async def find_room(self, room_id: str) -> Optional[RoomInventory]:
        pass

    @abstractmethod
    async def find_room_by_number(self, room_number: str) -> Optional[RoomInventory]:
        pass

    @abstractmethod
    async def update_room_status(self, room_id: str, status: RoomStatus) -> RoomInventory:
        """Room inventory mutation invoked by check-in and check-out"""
        pass


class GuestRepository(ABC):
    """Guest directory, owned by guest management"""

    @abstractmethod
    async def save(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: str) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Guest]:
        pass


class AlertRepository(ABC):
    """Working alert list"""

    @abstractmethod
    async def find_all(self) -> List[AlertItem]:
        pass

    @abstractmethod
    async def replace_all(self, alerts: List[AlertItem]) -> None:
        pass


class ReservationBackend(ABC):
    """Backend of record for reservations

    Implementations raise domain.exceptions.BackendError on any failure.
    """

    @abstractmethod
    async def fetch_reservations(self) -> List[ReservationRecord]:
        """GET /reservations"""
        pass

    @abstractmethod
    async def create_reservation(self, payload: CreateReservationRecord) -> ReservationRecord:
        """POST /reservations"""
        pass

    @abstractmethod
    async def update_reservation(self, reservation_id: str, payload: UpdateReservationRecord) -> ReservationRecord:
        """PUT /reservations/:id"""
        pass

    @abstractmethod
    async def delete_reservation(self, reservation_id: str) -> None:
        """DELETE /reservations/:id"""
        pass

    @abstractmethod
    async def check_availability(self, query: AvailabilityQuery) -> AvailabilityRecord:
        """GET /reservations/availability"""
        pass
