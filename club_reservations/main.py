import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm
from uuid import UUID
from datetime import timedelta
from typing import List

from club_reservations.api.schemas import (
    # Reservation
    ReservationRequestBody, EvaluateReservationRequest, CheckInRequest, CheckOutRequest,
    CancelReservationRequest, RecordPaymentRequest, SweepRequest, ReminderRequest,
    ReservationResponse, DecisionResponse, RuleViolationResponse, RulesSummaryResponse,
    CheckInDetailsResponse, CheckOutDetailsResponse,
    # Auth
    Token, UserResponse
)

from club_reservations.api.dependencies import (
    get_current_active_user, get_front_desk_user, fake_users_db, get_user
)
from club_reservations.infrastructure.config import settings
from club_reservations.infrastructure.security import verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from club_reservations.domain.auth import User

from club_reservations.application.services import ReservationService, ExpirationSweeper
from club_reservations.infrastructure.events import EventDispatcher, InMemoryEventBus
from club_reservations.infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryMemberDirectory, InMemoryAccommodationCatalog,
    StaticHolidayCalendarProvider
)
from club_reservations.infrastructure.seed import default_accommodations, default_calendar, default_members
from club_reservations.domain.enums import MemberType, ReservationStatus, PaymentStatus, RoomCondition, ViolationCode
from club_reservations.domain.exceptions import (
    InvalidStateTransition, ReservationNotFound, ReservationRejected, UnknownMemberType
)
from club_reservations.domain.policies import MembershipPolicyResolver
from club_reservations.domain.value_objects import CheckInDetails, CheckOutDetails, Decision

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize repositories and collaborators
reservation_repo = InMemoryReservationRepository()
member_directory = InMemoryMemberDirectory(default_members())
accommodation_catalog = InMemoryAccommodationCatalog(default_accommodations())
calendar_provider = StaticHolidayCalendarProvider(default_calendar())
event_bus = InMemoryEventBus(maxsize=settings.event_queue_maxsize)
event_dispatcher = EventDispatcher(event_bus)

reservation_service = ReservationService(
    reservation_repo, member_directory, accommodation_catalog, calendar_provider, event_bus
)
sweeper = ExpirationSweeper(
    reservation_service, settings.sweep_interval_seconds, settings.reminder_window_hours
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    event_dispatcher.start()
    sweeper.start()
    yield
    await sweeper.stop()
    await event_dispatcher.stop()


app = FastAPI(
    title="Club Reservations API",
    description="Reservation eligibility and lifecycle engine for club accommodations",
    version="1.0.0",
    lifespan=lifespan
)

# Dependency injection
def get_reservation_service() -> ReservationService:
    return reservation_service

def get_policy_resolver() -> MembershipPolicyResolver:
    return reservation_service.orchestrator.resolver

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "description": "Reservation status values: CONFIRMED, CHECKED_IN, CHECKED_OUT, CANCELLED"
    }

@app.get("/api/enums/member-type", tags=["Enum Reference"])
async def get_member_types():
    """Get all MemberType enum values"""
    return {
        "values": [item.value for item in MemberType],
        "description": "Member type values: regular, widow, specialVisitor, transientVisitor, youthVisitor, director"
    }

@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus enum values"""
    return {
        "values": [item.value for item in PaymentStatus],
        "description": "Payment status values: PENDING, PAID, EXEMPT"
    }

@app.get("/api/enums/room-condition", tags=["Enum Reference"])
async def get_room_conditions():
    """Get all RoomCondition enum values"""
    return {
        "values": [item.value for item in RoomCondition],
        "description": "Room condition values: excellent, good, fair, poor"
    }

@app.get("/api/enums/violation-code", tags=["Enum Reference"])
async def get_violation_codes():
    """Get all admission rejection codes"""
    return {
        "values": [item.value for item in ViolationCode],
        "description": "Machine-readable reasons returned when a reservation request is rejected"
    }

@app.get("/api/rules/{member_type}", response_model=RulesSummaryResponse, tags=["Rules"])
async def get_member_type_rules(
    member_type: str,
    resolver: MembershipPolicyResolver = Depends(get_policy_resolver)
):
    """Summary of the booking rules for a member type"""
    try:
        return resolver.rules_summary(member_type)
    except UnknownMemberType as e:
        raise HTTPException(status_code=404, detail=str(e))

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations/evaluate", response_model=DecisionResponse, tags=["Reservations"])
async def evaluate_reservation(
    request: EvaluateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check a booking request against the member's rules without booking"""
    decision = await service.evaluate_reservation_request(
        member_id=request.member_id,
        accommodation_id=request.accommodation_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guests=request.guests,
        titular_member_id=request.titular_member_id,
        full_report=request.full_report
    )
    return _decision_to_response(decision)

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: ReservationRequestBody,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Evaluate and confirm a reservation"""
    try:
        reservation = await service.create_reservation(
            member_id=request.member_id,
            accommodation_id=request.accommodation_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests,
            titular_member_id=request.titular_member_id
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all reservations"""
    reservations = await service.get_all_reservations()
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/code/{reservation_code}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_code(
    reservation_code: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Front-desk search by reservation code"""
    reservation = await service.get_reservation_by_code(reservation_code)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.get("/api/reservations/member/{member_id}", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_member_reservations(
    member_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all reservations for a member"""
    reservations = await service.get_member_reservations(member_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_guests(
    reservation_id: UUID,
    request: CheckInRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_front_desk_user)
):
    """Check in guests"""
    try:
        reservation = await service.perform_check_in(
            reservation_id, CheckInDetails(**request.dict())
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_guests(
    reservation_id: UUID,
    request: CheckOutRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_front_desk_user)
):
    """Check out guests"""
    try:
        reservation = await service.perform_check_out(
            reservation_id, CheckOutDetails(**request.dict())
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    request: CancelReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation"""
    try:
        reservation = await service.cancel_reservation(reservation_id, request.reason)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/payment", response_model=ReservationResponse, tags=["Reservations"])
async def record_payment(
    reservation_id: UUID,
    request: RecordPaymentRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Payment service callback"""
    try:
        reservation = await service.record_payment(reservation_id, request.paid_at)
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/expire", response_model=List[ReservationResponse], tags=["Maintenance"])
async def run_expiration_sweep(
    request: SweepRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservations whose payment window has lapsed"""
    expired = await service.run_expiration_sweep(request.now)
    return [_reservation_to_response(r) for r in expired]

@app.post("/api/reservations/payment-reminders", response_model=List[ReservationResponse], tags=["Maintenance"])
async def send_payment_reminders(
    request: ReminderRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Emit reminders for payment deadlines that are close"""
    reminded = await service.notify_payment_deadlines(request.now, request.within_hours)
    return [_reservation_to_response(r) for r in reminded]

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _to_http_error(e: ValueError) -> HTTPException:
    """Map domain errors to HTTP errors"""
    if isinstance(e, ReservationNotFound):
        return HTTPException(status_code=404, detail="Reservation not found")
    if isinstance(e, InvalidStateTransition):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ReservationRejected):
        return HTTPException(status_code=422, detail={
            "message": str(e),
            "reasons": [_violation_to_response(r).dict() for r in e.reasons]
        })
    return HTTPException(status_code=400, detail=str(e))

def _violation_to_response(violation) -> RuleViolationResponse:
    return RuleViolationResponse(
        code=violation.code.value,
        message=violation.message,
        details=violation.details
    )

def _decision_to_response(decision: Decision) -> DecisionResponse:
    """Convert Decision to DecisionResponse"""
    return DecisionResponse(
        allowed=decision.allowed,
        reasons=[_violation_to_response(r) for r in decision.reasons],
        warnings=decision.warnings,
        member_type=decision.rule_set.member_type.value if decision.rule_set else None,
        max_nights=decision.rule_set.max_consecutive_nights if decision.rule_set else None,
        nights=decision.nights,
        payment_exempt=decision.payment_exempt,
        payment_deadline=decision.payment_deadline,
        evaluated_at=decision.evaluated_at
    )

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    check_in_details = None
    if reservation.check_in_details:
        check_in_details = CheckInDetailsResponse(**reservation.check_in_details.dict())
    check_out_details = None
    if reservation.check_out_details:
        details = reservation.check_out_details.dict()
        details["room_condition"] = reservation.check_out_details.room_condition.value
        check_out_details = CheckOutDetailsResponse(**details)

    resolver = get_policy_resolver()
    times = resolver.check_in_out_times(resolver.resolve(reservation.member_type), reservation.accommodation_type)

    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        reservation_code=reservation.reservation_code,
        member_id=reservation.member_id,
        member_type=reservation.member_type.value,
        titular_member_id=reservation.titular_member_id,
        accommodation_id=reservation.accommodation_id,
        location=reservation.location,
        accommodation_type=reservation.accommodation_type,
        check_in=reservation.date_range.check_in,
        check_out=reservation.date_range.check_out,
        check_in_time=times["check_in"],
        check_out_time=times["check_out"],
        nights=reservation.get_nights(),
        number_of_guests=reservation.number_of_guests,
        status=reservation.status.value,
        payment_exempt=reservation.payment_exempt,
        payment_deadline=reservation.payment_deadline,
        payment_status=reservation.payment_status.value,
        paid_at=reservation.paid_at,
        check_in_details=check_in_details,
        check_out_details=check_out_details,
        cancellation_reason=reservation.cancellation_reason,
        cancelled_at=reservation.cancelled_at,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
