"""Alert rule engine

Scans reservations and rooms against the active alert rules and keeps a
deduplicated working list of alerts.
"""
import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Callable, Dict, List, Optional

from domain.entities import AlertItem, AlertRule
from domain.enums import AlertCategory, PaymentStatus, ReservationStatus, RoomStatus
from domain.repositories import AlertRepository, PropertyRepository, ReservationRepository
from domain.value_objects import format_currency

logger = logging.getLogger(__name__)


class AlertService:
    """Evaluates alert rules and manages the alert list"""

    def __init__(
        self,
        alert_repo: AlertRepository,
        reservation_repo: ReservationRepository,
        property_repo: PropertyRepository,
        rules: List[AlertRule],
        checkout_cutoff_hour: int = 12,
        cleaning_sla_minutes: int = 90,
        limit: int = 40,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.alert_repo = alert_repo
        self.reservation_repo = reservation_repo
        self.property_repo = property_repo
        self.rules = [rule.model_copy() for rule in rules]
        self.checkout_cutoff_hour = checkout_cutoff_hour
        self.cleaning_sla_minutes = cleaning_sla_minutes
        self.limit = limit
        self.clock = clock
        self.last_evaluation_at: Optional[datetime] = None

    # ==================== EVALUATION ====================
    async def evaluate(self) -> List[AlertItem]:
        """Run every active rule once and merge the matches into the alert list

        An unacknowledged alert with the same rule and message is kept as is
        rather than duplicated. Alerts not rediscovered stay in the list.
        """
        active: Dict[AlertCategory, AlertRule] = {}
        for rule in self.rules:
            if rule.is_active and rule.category not in active:
                active[rule.category] = rule
        current = await self.alert_repo.find_all()
        if not active:
            return current

        now = self.clock()
        found: List[AlertItem] = []

        def ensure(category: AlertCategory, title: str, message: str) -> None:
            rule = active.get(category)
            if not rule:
                return
            for alert in found:
                if alert.rule_id == rule.id and alert.message == message:
                    return
            for alert in current:
                if alert.rule_id == rule.id and alert.message == message and not alert.is_acknowledged():
                    found.append(alert)
                    return
            found.append(AlertItem.from_rule(rule, title, message, created_at=now))

        reservations = await self.reservation_repo.find_all()
        rooms = await self.property_repo.find_all_rooms()

        for reservation in reservations:
            if reservation.status != ReservationStatus.CHECKED_IN:
                continue
            cutoff = datetime.combine(reservation.check_out, time(hour=self.checkout_cutoff_hour))
            if cutoff < now:
                overdue = int((now - cutoff).total_seconds() // 60)
                ensure(
                    AlertCategory.LATE_CHECKOUT,
                    f"Late checkout · {reservation.guest_first_name}",
                    f"Reservation {reservation.confirmation_number} is {overdue} minutes past checkout.",
                )

        sla = timedelta(minutes=self.cleaning_sla_minutes)
        for room in rooms:
            if room.status != RoomStatus.DIRTY:
                continue
            if room.last_cleaned is None or now > room.last_cleaned + sla:
                ensure(
                    AlertCategory.ROOM_NOT_CLEANED,
                    f"Room {room.room_number} pending cleaning",
                    f"Housekeeping delay for room {room.room_number}.",
                )

        for reservation in reservations:
            if reservation.payment_status == PaymentStatus.PAID:
                continue
            if reservation.status in (ReservationStatus.CHECKED_OUT, ReservationStatus.CONFIRMED):
                ensure(
                    AlertCategory.PAYMENT_PENDING,
                    f"Payment pending · {reservation.guest_first_name}",
                    f"Balance due {format_currency(reservation.balance_due)} for reservation "
                    f"{reservation.confirmation_number}.",
                )

        occupancy = {}
        for reservation in reservations:
            if not reservation.occupies_inventory():
                continue
            for day in reservation.date_range.days():
                occupancy[day] = occupancy.get(day, 0) + 1
        inventory = len(rooms)
        for day, count in occupancy.items():
            if inventory and count > inventory:
                ensure(
                    AlertCategory.OVERBOOKING,
                    "Overbooking risk",
                    f"Occupancy demand of {count} rooms exceeds inventory of {inventory} "
                    f"on {day.strftime('%a %b %d %Y')}.",
                )

        self.last_evaluation_at = now
        if not found:
            return current

        found_ids = {alert.id for alert in found}
        merged = found + [alert for alert in current if alert.id not in found_ids]
        merged.sort(key=lambda alert: alert.created_at, reverse=True)
        merged = merged[:self.limit]
        await self.alert_repo.replace_all(merged)

        existing_ids = {alert.id for alert in current}
        new_count = sum(1 for alert in found if alert.id not in existing_ids)
        if new_count:
            logger.info("Alert evaluation raised %d new alert(s)", new_count)
        return merged

    # ==================== READ / ACK / DISMISS ====================
    async def get_alerts(self) -> List[AlertItem]:
        return await self.alert_repo.find_all()

    async def unread_count(self) -> int:
        return sum(1 for alert in await self.alert_repo.find_all() if not alert.is_read)

    @staticmethod
    def _find(alerts: List[AlertItem], alert_id: str) -> Optional[AlertItem]:
        for alert in alerts:
            if alert.id == alert_id:
                return alert
        return None

    async def mark_as_read(self, alert_id: str) -> Optional[AlertItem]:
        alerts = await self.alert_repo.find_all()
        alert = self._find(alerts, alert_id)
        if alert:
            alert.mark_read()
            await self.alert_repo.replace_all(alerts)
        return alert

    async def mark_all_read(self) -> None:
        alerts = await self.alert_repo.find_all()
        for alert in alerts:
            alert.mark_read()
        await self.alert_repo.replace_all(alerts)

    async def acknowledge_alert(self, alert_id: str, actor: str) -> Optional[AlertItem]:
        """Stamp the acknowledger; the alert stays listed until dismissed"""
        alerts = await self.alert_repo.find_all()
        alert = self._find(alerts, alert_id)
        if alert:
            alert.acknowledge(actor, self.clock())
            await self.alert_repo.replace_all(alerts)
        return alert

    async def dismiss_alert(self, alert_id: str) -> bool:
        alerts = await self.alert_repo.find_all()
        remaining = [alert for alert in alerts if alert.id != alert_id]
        if len(remaining) == len(alerts):
            return False
        await self.alert_repo.replace_all(remaining)
        return True

    # ==================== RULES ====================
    def get_rules(self) -> List[AlertRule]:
        return list(self.rules)

    def set_rule_active(self, rule_id: str, is_active: bool) -> Optional[AlertRule]:
        for rule in self.rules:
            if rule.id == rule_id:
                rule.is_active = is_active
                logger.info("Alert rule %s %s", rule_id, "activated" if is_active else "deactivated")
                return rule
        return None


class AlertScheduler:
    """Runs AlertService.evaluate on a fixed interval"""

    def __init__(self, alert_service: AlertService, interval_seconds: float = 60.0):
        self.alert_service = alert_service
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            try:
                await self.alert_service.evaluate()
            except Exception:
                logger.exception("Alert evaluation failed")
            await asyncio.sleep(self.interval_seconds)
