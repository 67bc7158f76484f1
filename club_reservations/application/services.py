"""Application Services - Business use cases"""
import asyncio
import logging
from uuid import UUID
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from club_reservations.domain.entities import Reservation
from club_reservations.domain.enums import EventType, ViolationCode
from club_reservations.domain.events import DomainEvent
from club_reservations.domain.exceptions import (
    DuplicateReservationCode, ReservationError, ReservationNotFound, ReservationRejected, UnknownMemberType
)
from club_reservations.domain.orchestrator import ValidationOrchestrator
from club_reservations.domain.repositories import (
    AccommodationCatalog, EventPublisher, HolidayCalendarProvider, MemberDirectory,
    ReservationRepository
)
from club_reservations.domain.value_objects import (
    CheckInDetails, CheckOutDetails, Decision, ReservationRequest, RuleViolation
)
from club_reservations.infrastructure.locks import KeyedLock

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CODE_ATTEMPTS = 5


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self,
                 repository: ReservationRepository,
                 members: MemberDirectory,
                 accommodations: AccommodationCatalog,
                 calendar_provider: HolidayCalendarProvider,
                 publisher: EventPublisher,
                 orchestrator: Optional[ValidationOrchestrator] = None,
                 clock: Optional[Clock] = None):
        self.repository = repository
        self.members = members
        self.accommodations = accommodations
        self.calendar_provider = calendar_provider
        self.publisher = publisher
        self.orchestrator = orchestrator or ValidationOrchestrator()
        self.clock = clock or datetime.utcnow
        self._locks = KeyedLock()
        self._sweep_lock = asyncio.Lock()

    # ==================== ADMISSION ====================
    async def build_request(
        self,
        member_id: str,
        accommodation_id: str,
        check_in: date,
        check_out: date,
        guests: int,
        titular_member_id: Optional[str] = None
    ) -> Tuple[Optional[ReservationRequest], List[RuleViolation]]:
        """Resolve member and accommodation facts; returns (request, violations)"""
        violations: List[RuleViolation] = []

        member = await self.members.get_member(member_id)
        if member is None:
            violations.append(RuleViolation(
                code=ViolationCode.MEMBER_NOT_FOUND,
                message=f"Member {member_id} not found",
                details={"member_id": member_id}
            ))
        elif not member.active:
            violations.append(RuleViolation(
                code=ViolationCode.INACTIVE_MEMBER,
                message=f"Member {member_id} is inactive",
                details={"member_id": member_id}
            ))

        titular_type = None
        if titular_member_id and member is not None:
            titular = await self.members.get_member(titular_member_id)
            if not self._books_through_titular(member.member_type):
                violations.append(RuleViolation(
                    code=ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT,
                    message=f"Members of type {member.member_type} book on their own behalf",
                    details={"member_id": member_id, "titular_member_id": titular_member_id}
                ))
            elif member.titular_member_id != titular_member_id:
                violations.append(RuleViolation(
                    code=ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT,
                    message=f"Member {titular_member_id} is not the titular member of {member_id}",
                    details={"member_id": member_id, "titular_member_id": titular_member_id}
                ))
            elif titular is None or not titular.active:
                violations.append(RuleViolation(
                    code=ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT,
                    message=f"Titular member {titular_member_id} cannot book",
                    details={"titular_member_id": titular_member_id}
                ))
            else:
                titular_type = titular.member_type

        accommodation = await self.accommodations.get_accommodation(accommodation_id)
        if accommodation is None:
            violations.append(RuleViolation(
                code=ViolationCode.ACCOMMODATION_NOT_FOUND,
                message=f"Accommodation {accommodation_id} not found",
                details={"accommodation_id": accommodation_id}
            ))

        if violations:
            return None, violations

        request = ReservationRequest(
            member_id=member_id,
            member_type=member.member_type,
            accommodation_id=accommodation_id,
            location=accommodation.location,
            accommodation_type=accommodation.accommodation_type,
            capacity=accommodation.capacity,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=guests,
            titular_member_id=titular_member_id,
            titular_member_type=titular_type
        )
        return request, []

    def _books_through_titular(self, member_type: str) -> bool:
        """Unknown types pass through; the orchestrator rejects them"""
        try:
            return self.orchestrator.resolver.resolve(member_type).requires_titular_member
        except UnknownMemberType:
            return True

    async def evaluate_reservation_request(
        self,
        member_id: str,
        accommodation_id: str,
        check_in: date,
        check_out: date,
        guests: int,
        titular_member_id: Optional[str] = None,
        full_report: bool = False
    ) -> Decision:
        """Read-only admission decision"""
        now = self.clock()
        request, violations = await self.build_request(
            member_id, accommodation_id, check_in, check_out, guests, titular_member_id
        )
        if request is None:
            return Decision(allowed=False, reasons=violations, evaluated_at=now)
        return await self._evaluate(request, now, full_report)

    async def _evaluate(self, request: ReservationRequest, now: datetime, full_report: bool = False) -> Decision:
        existing = await self._existing_for(request)
        calendar = await self.calendar_provider.get_calendar()
        return self.orchestrator.evaluate(request, existing, now, calendar, full_report=full_report)

    async def _existing_for(self, request: ReservationRequest) -> List[Reservation]:
        seen = {}
        for reservation in await self.repository.find_by_member(request.holder_id):
            seen[reservation.reservation_id] = reservation
        if request.check_out > request.check_in:
            for reservation in await self.repository.find_by_accommodation(
                request.accommodation_id, request.check_in, request.check_out
            ):
                seen[reservation.reservation_id] = reservation
        return list(seen.values())

    async def confirm_reservation(self, decision: Decision, request: ReservationRequest) -> Reservation:
        """
        Persist an accepted request as a CONFIRMED reservation.

        Quotas and availability are re-checked while holding the member and
        accommodation locks, so two concurrent confirmations cannot both pass.
        """
        if not decision.allowed:
            raise ReservationRejected(decision.reasons)

        async with self._locks.hold(f"member:{request.holder_id}", f"accommodation:{request.accommodation_id}"):
            now = self.clock()
            fresh = await self._evaluate(request, now)
            if not fresh.allowed:
                raise ReservationRejected(fresh.reasons)

            saved = await self._save_with_unique_code(fresh, request, now)

        logger.info(
            "Reservation %s confirmed for member %s (%s, %s to %s)",
            saved.reservation_code, saved.member_id, saved.accommodation_id,
            saved.date_range.check_in, saved.date_range.check_out
        )
        await self._publish(
            EventType.RESERVATION_CONFIRMED, saved, now,
            payment_exempt=saved.payment_exempt,
            payment_deadline=saved.payment_deadline.isoformat() if saved.payment_deadline else None
        )
        return saved

    async def _save_with_unique_code(self, decision: Decision, request: ReservationRequest, now: datetime) -> Reservation:
        """Regenerate the reservation code when it collides with a stored one"""
        for attempt in range(1, CODE_ATTEMPTS + 1):
            reservation = Reservation.create(decision, request, created_at=now)
            try:
                return await self.repository.save(reservation)
            except DuplicateReservationCode as e:
                if attempt == CODE_ATTEMPTS:
                    raise
                logger.warning("%s, regenerating (attempt %d)", e, attempt)

    async def create_reservation(
        self,
        member_id: str,
        accommodation_id: str,
        check_in: date,
        check_out: date,
        guests: int,
        titular_member_id: Optional[str] = None
    ) -> Reservation:
        """Evaluate and confirm in one step"""
        request, violations = await self.build_request(
            member_id, accommodation_id, check_in, check_out, guests, titular_member_id
        )
        if request is None:
            raise ReservationRejected(violations)
        decision = await self._evaluate(request, self.clock())
        return await self.confirm_reservation(decision, request)

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_reservation_by_code(self, code: str) -> Optional[Reservation]:
        """Get reservation by reservation code"""
        return await self.repository.find_by_reservation_code(code)

    async def get_member_reservations(self, member_id: str) -> List[Reservation]:
        """Get all reservations for a member"""
        return await self.repository.find_by_member(member_id)

    async def get_all_reservations(self) -> List[Reservation]:
        """Get all reservations"""
        return await self.repository.find_all()

    # ==================== STATE TRANSITIONS ====================
    async def _transition(
        self,
        reservation_id: UUID,
        apply: Callable[[Reservation, datetime], None]
    ) -> Reservation:
        """Load, mutate and compare-and-swap one reservation under its id lock"""
        async with self._locks.hold(f"reservation:{reservation_id}"):
            reservation = await self.repository.find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            expected_version = reservation.version
            now = self.clock()
            apply(reservation, now)
            return await self.repository.update(reservation, expected_version)

    async def perform_check_in(self, reservation_id: UUID, details: CheckInDetails) -> Reservation:
        """Check in guests"""
        reservation = await self._transition(
            reservation_id, lambda r, now: r.check_in(details, now)
        )
        logger.info("Reservation %s checked in by %s", reservation.reservation_code, details.checked_in_by)
        await self._publish(
            EventType.CHECKED_IN, reservation, reservation.modified_at,
            guests_present=details.guests_present,
            checked_in_by=details.checked_in_by
        )
        return reservation

    async def perform_check_out(self, reservation_id: UUID, details: CheckOutDetails) -> Reservation:
        """Check out guests"""
        reservation = await self._transition(
            reservation_id, lambda r, now: r.check_out(details, now)
        )
        logger.info("Reservation %s checked out by %s", reservation.reservation_code, details.checked_out_by)
        await self._publish(
            EventType.CHECKED_OUT, reservation, reservation.modified_at,
            room_condition=details.room_condition.value,
            damages_reported=details.damages_reported,
            additional_charges=str(details.additional_charges) if details.additional_charges is not None else None
        )
        return reservation

    async def cancel_reservation(self, reservation_id: UUID, reason: str = "Member requested cancellation") -> Reservation:
        """Cancel reservation; frees the member's quota and the accommodation"""
        warnings: List[str] = []

        def apply(reservation: Reservation, now: datetime) -> None:
            notice = self.orchestrator.resolver.resolve(reservation.member_type).cancellation_notice_hours
            if notice and reservation.hours_until_check_in(now) < notice:
                warnings.append(f"Cancellation notified less than {notice} hours before check-in")
            reservation.cancel(reason, now)

        reservation = await self._transition(reservation_id, apply)
        for warning in warnings:
            logger.warning("Reservation %s: %s", reservation.reservation_code, warning)
        logger.info("Reservation %s cancelled: %s", reservation.reservation_code, reason)
        await self._publish(
            EventType.RESERVATION_CANCELLED, reservation, reservation.modified_at,
            reason=reason, warnings=warnings
        )
        return reservation

    async def record_payment(self, reservation_id: UUID, paid_at: Optional[datetime] = None) -> Reservation:
        """Payment service callback; a paid reservation is never expired"""
        reservation = await self._transition(
            reservation_id, lambda r, now: r.record_payment(paid_at or now)
        )
        logger.info("Payment recorded for reservation %s", reservation.reservation_code)
        await self._publish(EventType.PAYMENT_RECORDED, reservation, reservation.modified_at)
        return reservation

    # ==================== BACKGROUND SWEEPS ====================
    async def run_expiration_sweep(self, now: Optional[datetime] = None) -> List[Reservation]:
        """Cancel CONFIRMED reservations whose payment window has lapsed"""
        if self._sweep_lock.locked():
            logger.warning("Expiration sweep already running, skipping")
            return []

        async with self._sweep_lock:
            now = now or self.clock()
            expired: List[Reservation] = []
            for candidate in await self.repository.find_awaiting_payment():
                if not candidate.is_payment_overdue(now):
                    continue
                try:
                    reservation = await self._expire_one(candidate.reservation_id, now)
                except ReservationError as e:
                    logger.warning("Skipping expiration of %s: %s", candidate.reservation_code, e)
                    continue
                if reservation is not None:
                    expired.append(reservation)

        if expired:
            logger.info("Expiration sweep cancelled %d reservation(s)", len(expired))
        for reservation in expired:
            await self._publish(
                EventType.RESERVATION_CANCELLED, reservation, now,
                reason=reservation.cancellation_reason, warnings=[]
            )
        return expired

    async def _expire_one(self, reservation_id: UUID, now: datetime) -> Optional[Reservation]:
        async with self._locks.hold(f"reservation:{reservation_id}"):
            reservation = await self.repository.find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            expected_version = reservation.version
            if not reservation.expire(now):
                return None
            return await self.repository.update(reservation, expected_version)

    async def notify_payment_deadlines(
        self,
        now: Optional[datetime] = None,
        within_hours: int = 24
    ) -> List[Reservation]:
        """Emit one reminder per unpaid reservation whose deadline is near"""
        now = now or self.clock()
        horizon = now + timedelta(hours=within_hours)
        reminded: List[Reservation] = []
        for candidate in await self.repository.find_awaiting_payment():
            if candidate.deadline_reminder_sent or not now <= candidate.payment_deadline <= horizon:
                continue
            try:
                reservation = await self._transition(
                    candidate.reservation_id, lambda r, ts: r.mark_reminder_sent(ts)
                )
            except ReservationError as e:
                logger.warning("Skipping reminder for %s: %s", candidate.reservation_code, e)
                continue
            reminded.append(reservation)
            await self._publish(
                EventType.PAYMENT_DEADLINE_APPROACHING, reservation, now,
                payment_deadline=reservation.payment_deadline.isoformat()
            )
        return reminded

    async def _publish(self, event_type: EventType, reservation: Reservation, occurred_at: datetime, **data) -> None:
        await self.publisher.publish(DomainEvent.for_reservation(event_type, reservation, occurred_at, **data))


class ExpirationSweeper:
    """Periodic background runner for the expiration sweep and payment reminders"""

    def __init__(self, service: ReservationService, interval_seconds: int, reminder_window_hours: int = 24):
        self.service = service
        self.interval_seconds = interval_seconds
        self.reminder_window_hours = reminder_window_hours
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> List[Reservation]:
        expired = await self.service.run_expiration_sweep()
        await self.service.notify_payment_deadlines(within_hours=self.reminder_window_hours)
        return expired

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Expiration sweep failed; retrying next cycle")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.interval_seconds <= 0:
            logger.info("Expiration sweeper disabled")
            return
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Expiration sweeper started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiration sweeper stopped")
