import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, CancelReservationRequest, CheckInRequest, CheckOutRequest,
    ReservationResponse,
    # Availability & billing
    AvailabilityResponse, TaxSplitResponse,
    # Rate plans
    RatePlanRequest, UpdateRatePlanRequest,
    # Alerts & sync
    AlertRuleToggleRequest, UnreadCountResponse, SyncResponse,
    # Auth
    Token, OperatorResponse
)
from api.dependencies import get_current_active_operator, operators_db, get_operator
from infrastructure.security import verify_password, create_access_token
from domain.auth import Operator

from application.alerts import AlertService
from application.commands import (
    CheckInPayload, CheckOutPayload, ReservationInput, ReservationUpdate, SettlementInput
)
from application.services import AvailabilityService, RatePlanService, ReservationService, settle
from config import settings
from domain.entities import AlertItem, AlertRule, RatePlan, RoomInventory
from domain.enums import BookingSource, PaymentStatus, ReservationStatus, RoomStatus
from domain.exceptions import BackendError, ReservationNotFoundError
from domain.settlement import SettlementSummary, classify_payment_status, split_tax
from infrastructure.container import Container

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

container = Container(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await container.reservation_service.hydrate()
    except BackendError as e:
        logger.warning("Initial hydration failed: %s", e.message)
    container.alert_scheduler.start()
    yield
    await container.aclose()


app = FastAPI(
    title="Hotel Front Office API",
    description="Reservation lifecycle, settlement and operational alerts for the front desk",
    version="1.0.0",
    lifespan=lifespan,
)


# Dependency injection
def get_reservation_service() -> ReservationService:
    return container.reservation_service

def get_availability_service() -> AvailabilityService:
    return container.availability_service

def get_rate_plan_service() -> RatePlanService:
    return container.rate_plan_service

def get_alert_service() -> AlertService:
    return container.alert_service


@app.exception_handler(ReservationNotFoundError)
async def not_found_handler(request: Request, exc: ReservationNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    return JSONResponse(status_code=502, content={"detail": exc.message})

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "hotel_code": settings.HOTEL_CODE,
        "hydrated": container.reservation_service.is_hydrated,
        "alert_scheduler": container.alert_scheduler.running,
    }

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "description": "Lifecycle: pending -> confirmed -> checked-in -> checked-out; cancelled and no-show are terminal"
    }

@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus enum values"""
    return {"values": [item.value for item in PaymentStatus]}

@app.get("/api/enums/booking-source", tags=["Enum Reference"])
async def get_booking_sources():
    """Get all BookingSource enum values"""
    return {"values": [item.value for item in BookingSource]}

@app.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus enum values"""
    return {"values": [item.value for item in RoomStatus]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    operator = get_operator(operators_db, form_data.username)
    if not operator or not verify_password(form_data.password, operator.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": operator.username})
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=OperatorResponse, tags=["Auth"])
async def read_users_me(current_operator: Operator = Depends(get_current_active_operator)):
    return current_operator

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Create new reservation"""
    try:
        reservation = await service.create_reservation(
            ReservationInput(created_by=current_operator.full_name, **request.model_dump())
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get all reservations"""
    reservations = await service.get_all_reservations()
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.get("/api/reservations/guest/{guest_id}", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_guest_reservations(
    guest_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get all reservations for a guest"""
    reservations = await service.get_reservations_by_guest(guest_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/code/{confirmation_number}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_code(
    confirmation_number: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get reservation by confirmation number"""
    reservation = await service.get_reservation_by_confirmation_number(confirmation_number)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: str,
    request: ReservationUpdate,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Partial update; only fields sent are changed"""
    try:
        reservation = await service.update_reservation(reservation_id, request)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/confirm", response_model=ReservationResponse, tags=["Reservations"])
async def confirm_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Confirm pending reservation"""
    try:
        reservation = await service.confirm_reservation(reservation_id)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: str,
    request: CancelReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Cancel reservation"""
    try:
        reservation = await service.cancel_reservation(reservation_id, reason=request.reason)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/no-show", response_model=ReservationResponse, tags=["Reservations"])
async def mark_no_show(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Mark guest as no-show"""
    try:
        reservation = await service.mark_no_show(reservation_id)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_guest(
    reservation_id: str,
    request: CheckInRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Check in guest to the assigned rooms"""
    try:
        reservation = await service.check_in(
            CheckInPayload(
                reservation_id=reservation_id,
                handled_by=current_operator.full_name,
                **request.model_dump()
            )
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_guest(
    reservation_id: str,
    request: CheckOutRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Settle the folio and check out guest"""
    try:
        reservation = await service.check_out(
            CheckOutPayload(
                reservation_id=reservation_id,
                handled_by=current_operator.full_name,
                **request.model_dump()
            )
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/reservations/{reservation_id}", status_code=204, tags=["Reservations"])
async def delete_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Hard delete; prefer cancel"""
    await service.delete_reservation(reservation_id)

@app.post("/api/sync", response_model=SyncResponse, tags=["Reservations"])
async def sync_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Reconcile local reservations with the backend of record"""
    reservations = await service.hydrate()
    return SyncResponse(reservations=len(reservations), synced_at=datetime.now())

# ============================================================================
# AVAILABILITY & BILLING ENDPOINTS
# ============================================================================

@app.get("/api/availability", response_model=AvailabilityResponse, tags=["Availability"])
async def check_availability(
    room_type_id: str,
    check_in: date,
    check_out: date,
    rate_plan_id: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Check remaining inventory and, given a rate plan, the nightly rate"""
    if check_out < check_in:
        raise HTTPException(status_code=400, detail="Check-out must not be before check-in")
    result = await service.check_availability(room_type_id, check_in, check_out)
    nightly_rate = None
    if rate_plan_id and result.available:
        try:
            nightly_rate = await service.nightly_rate(room_type_id, rate_plan_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return AvailabilityResponse(
        room_type_id=room_type_id,
        check_in=check_in,
        check_out=check_out,
        rate_plan_id=rate_plan_id,
        nightly_rate=nightly_rate,
        **result.model_dump()
    )

@app.post("/api/billing/settlement-preview", tags=["Billing"])
async def preview_settlement(
    request: SettlementInput,
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Settlement totals without checking out"""
    summary: SettlementSummary = settle(request, current_operator.full_name, datetime.now())
    return {
        "summary": summary,
        "payment_status": classify_payment_status(
            summary.total_charges, summary.balance_due, summary.payments_total
        ).value,
        "tax_split": split_tax(summary.taxes),
    }

@app.get("/api/billing/tax-split", response_model=TaxSplitResponse, tags=["Billing"])
async def get_tax_split(total: Decimal = Query(ge=0)):
    """CGST/SGST display split of a combined tax amount"""
    split = split_tax(total)
    return TaxSplitResponse(total=total, cgst=split.cgst, sgst=split.sgst)

# ============================================================================
# RATE PLAN & PROPERTY ENDPOINTS
# ============================================================================

@app.get("/api/rate-plans", response_model=List[RatePlan], tags=["Rate Plans"])
async def get_rate_plans(service: RatePlanService = Depends(get_rate_plan_service)):
    """Get all rate plans"""
    return await service.get_rate_plans()

@app.post("/api/rate-plans", response_model=RatePlan, status_code=201, tags=["Rate Plans"])
async def add_rate_plan(
    request: RatePlanRequest,
    service: RatePlanService = Depends(get_rate_plan_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Add rate plan"""
    return await service.add_rate_plan(**request.model_dump())

@app.put("/api/rate-plans/{rate_plan_id}", response_model=RatePlan, tags=["Rate Plans"])
async def update_rate_plan(
    rate_plan_id: str,
    request: UpdateRatePlanRequest,
    service: RatePlanService = Depends(get_rate_plan_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Update rate plan"""
    try:
        plan = await service.update_rate_plan(rate_plan_id, **request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not plan:
        raise HTTPException(status_code=404, detail="Rate plan not found")
    return plan

@app.delete("/api/rate-plans/{rate_plan_id}", status_code=204, tags=["Rate Plans"])
async def delete_rate_plan(
    rate_plan_id: str,
    service: RatePlanService = Depends(get_rate_plan_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Delete rate plan"""
    if not await service.delete_rate_plan(rate_plan_id):
        raise HTTPException(status_code=404, detail="Rate plan not found")

@app.get("/api/rooms", response_model=List[RoomInventory], tags=["Property"])
async def get_rooms(current_operator: Operator = Depends(get_current_active_operator)):
    """Get room inventory with current status"""
    return await container.property_repo.find_all_rooms()

# ============================================================================
# ALERT ENDPOINTS
# ============================================================================

@app.get("/api/alerts", response_model=List[AlertItem], tags=["Alerts"])
async def get_alerts(
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get alert list, newest first"""
    return await service.get_alerts()

@app.get("/api/alerts/unread-count", response_model=UnreadCountResponse, tags=["Alerts"])
async def get_unread_count(
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    return UnreadCountResponse(unread=await service.unread_count(), last_evaluation_at=service.last_evaluation_at)

@app.post("/api/alerts/evaluate", response_model=List[AlertItem], tags=["Alerts"])
async def evaluate_alerts(
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Run the alert rules now"""
    return await service.evaluate()

@app.post("/api/alerts/read-all", status_code=204, tags=["Alerts"])
async def mark_all_alerts_read(
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    await service.mark_all_read()

@app.post("/api/alerts/{alert_id}/read", response_model=AlertItem, tags=["Alerts"])
async def mark_alert_read(
    alert_id: str,
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    alert = await service.mark_as_read(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert

@app.post("/api/alerts/{alert_id}/acknowledge", response_model=AlertItem, tags=["Alerts"])
async def acknowledge_alert(
    alert_id: str,
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Acknowledge alert as the current operator"""
    alert = await service.acknowledge_alert(alert_id, current_operator.full_name)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert

@app.delete("/api/alerts/{alert_id}", status_code=204, tags=["Alerts"])
async def dismiss_alert(
    alert_id: str,
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Dismiss alert permanently"""
    if not await service.dismiss_alert(alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")

@app.get("/api/alerts/rules", response_model=List[AlertRule], tags=["Alerts"])
async def get_alert_rules(
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    return service.get_rules()

@app.put("/api/alerts/rules/{rule_id}", response_model=AlertRule, tags=["Alerts"])
async def toggle_alert_rule(
    rule_id: str,
    request: AlertRuleToggleRequest,
    service: AlertService = Depends(get_alert_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Activate or deactivate an alert rule"""
    rule = service.set_rule_active(rule_id, request.is_active)
    if not rule:
        raise HTTPException(status_code=404, detail="Alert rule not found")
    return rule

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        **reservation.model_dump(exclude={"payment_status", "status", "source"}),
        balance_due=reservation.balance_due,
        payment_status=reservation.payment_status.value,
        status=reservation.status.value,
        source=reservation.source.value,
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
