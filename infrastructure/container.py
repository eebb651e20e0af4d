"""Service wiring

Builds every repository, backend and service once; the API layer hands them
out through FastAPI dependency providers.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from application.alerts import AlertScheduler, AlertService
from application.mapping import ReservationMapper
from application.services import AvailabilityService, RatePlanService, ReservationService
from config import Settings
from domain.repositories import ReservationBackend
from infrastructure.backend.http_backend import HttpReservationBackend
from infrastructure.backend.in_memory_backend import InMemoryReservationBackend
from infrastructure.repositories.in_memory_repositories import (
    InMemoryAlertRepository, InMemoryGuestRepository, InMemoryPropertyRepository,
    InMemoryRatePlanRepository, InMemoryReservationRepository
)
from infrastructure.seed import DEFAULT_ALERT_RULES, DEFAULT_RATE_PLANS, DEMO_ROOM_TYPES, demo_guests, demo_rooms
from infrastructure.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


class Container:
    """Process-wide services for one property"""

    def __init__(
        self,
        settings: Settings,
        backend: Optional[ReservationBackend] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.snapshot = SnapshotStore(settings.SNAPSHOT_PATH)

        self.property_repo = InMemoryPropertyRepository(DEMO_ROOM_TYPES, demo_rooms())
        self.guest_repo = InMemoryGuestRepository(demo_guests())
        self.rate_plan_repo = InMemoryRatePlanRepository(DEFAULT_RATE_PLANS, self.snapshot)
        self.reservation_repo = InMemoryReservationRepository(self.snapshot)
        self.alert_repo = InMemoryAlertRepository(self.snapshot)

        if backend is not None:
            self.backend = backend
        elif settings.BACKEND_URL:
            logger.info("Using reservation backend at %s", settings.BACKEND_URL)
            self.backend = HttpReservationBackend(
                settings.BACKEND_URL,
                token=settings.BACKEND_TOKEN,
                timeout=settings.BACKEND_TIMEOUT_SECONDS,
            )
        else:
            logger.info("No backend URL configured, using in-memory reservation backend")
            self.backend = InMemoryReservationBackend(self.property_repo)

        self.mapper = ReservationMapper(self.property_repo, self.guest_repo, self.rate_plan_repo)
        self.availability_service = AvailabilityService(
            self.backend, self.property_repo, self.rate_plan_repo,
            low_inventory_threshold=settings.LOW_INVENTORY_THRESHOLD,
        )
        self.reservation_service = ReservationService(
            self.reservation_repo,
            self.backend,
            self.availability_service,
            self.mapper,
            self.property_repo,
            self.rate_plan_repo,
            hotel_id=settings.HOTEL_ID,
            hotel_code=settings.HOTEL_CODE,
            currency=settings.CURRENCY,
            clock=clock,
        )
        self.rate_plan_service = RatePlanService(self.rate_plan_repo)
        self.alert_service = AlertService(
            self.alert_repo,
            self.reservation_repo,
            self.property_repo,
            DEFAULT_ALERT_RULES,
            checkout_cutoff_hour=settings.CHECKOUT_CUTOFF_HOUR,
            cleaning_sla_minutes=settings.ROOM_CLEANING_SLA_MINUTES,
            limit=settings.ALERT_LIMIT,
            clock=clock,
        )
        self.alert_scheduler = AlertScheduler(self.alert_service, settings.ALERT_INTERVAL_SECONDS)

    async def aclose(self) -> None:
        await self.alert_scheduler.stop()
        if isinstance(self.backend, HttpReservationBackend):
            await self.backend.aclose()
