"""Domain Entities - Aggregates"""
import random
import string
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timedelta
from typing import Optional

from club_reservations.domain.enums import MemberType, PaymentStatus, ReservationStatus
from club_reservations.domain.exceptions import (
    InvalidCheckInDetails, InvalidCheckOutDetails, InvalidStateTransition, KeyNotReturned
)
from club_reservations.domain.value_objects import (
    CheckInDetails, CheckOutDetails, DateRange, Decision, ReservationRequest
)

PAYMENT_WINDOW_EXPIRED = "PaymentWindowExpired"


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    reservation_code: str

    # References to other contexts
    member_id: str
    member_type: MemberType
    titular_member_id: Optional[str] = None
    accommodation_id: str
    location: str
    accommodation_type: Optional[str] = None

    # Value Objects
    date_range: DateRange
    number_of_guests: int = Field(ge=1)

    # Status
    status: ReservationStatus = ReservationStatus.CONFIRMED

    # Payment
    payment_exempt: bool = False
    payment_deadline: Optional[datetime] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None
    deadline_reminder_sent: bool = False

    # Lifecycle details
    check_in_details: Optional[CheckInDetails] = None
    check_out_details: Optional[CheckOutDetails] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        decision: Decision,
        request: ReservationRequest,
        created_at: Optional[datetime] = None
    ) -> "Reservation":
        """Create a CONFIRMED reservation from an accepted decision"""
        if not decision.allowed or decision.rule_set is None:
            raise ValueError("Only accepted decisions can be confirmed")

        created_at = created_at or datetime.utcnow()
        if decision.payment_exempt:
            payment_deadline = None
            payment_status = PaymentStatus.EXEMPT
        else:
            payment_deadline = created_at + timedelta(hours=decision.rule_set.payment_window_hours)
            payment_status = PaymentStatus.PENDING

        return Reservation(
            reservation_code=Reservation._generate_reservation_code(created_at),
            member_id=request.member_id,
            member_type=MemberType(request.member_type),
            titular_member_id=request.titular_member_id,
            accommodation_id=request.accommodation_id,
            location=request.location,
            accommodation_type=request.accommodation_type,
            date_range=DateRange(check_in=request.check_in, check_out=request.check_out),
            number_of_guests=request.number_of_guests,
            status=ReservationStatus.CONFIRMED,
            payment_exempt=decision.payment_exempt,
            payment_deadline=payment_deadline,
            payment_status=payment_status,
            created_at=created_at,
            modified_at=created_at
        )

    # ==================== STATE TRANSITION METHODS ====================
    def check_in(self, details: CheckInDetails, now: Optional[datetime] = None) -> None:
        """Record guest arrival"""
        if self.status != ReservationStatus.CONFIRMED:
            raise InvalidStateTransition(self.reservation_id, self.status.value, "check in")

        if details.actual_arrival_time is None:
            raise InvalidCheckInDetails("Actual arrival time is required")

        if not 1 <= details.guests_present <= self.number_of_guests:
            raise InvalidCheckInDetails(
                f"Guests present must be between 1 and {self.number_of_guests}"
            )

        now = now or datetime.utcnow()
        self.check_in_details = details.copy(update={"checked_in_at": now})
        self.status = ReservationStatus.CHECKED_IN
        self._touch(now)

    def check_out(self, details: CheckOutDetails, now: Optional[datetime] = None) -> None:
        """Process guest departure"""
        if self.status != ReservationStatus.CHECKED_IN:
            raise InvalidStateTransition(self.reservation_id, self.status.value, "check out")

        if not details.key_returned:
            raise KeyNotReturned(self.reservation_id)

        if details.damages_reported and not (details.damage_description or "").strip():
            raise InvalidCheckOutDetails("Damage description is required when damages are reported")

        now = now or datetime.utcnow()
        self.check_out_details = details.copy(update={"checked_out_at": now})
        self.status = ReservationStatus.CHECKED_OUT
        self._touch(now)

    def cancel(self, reason: str, now: Optional[datetime] = None) -> None:
        """Cancel reservation; the record is retained"""
        if not self.is_cancellable():
            raise InvalidStateTransition(self.reservation_id, self.status.value, "cancel")

        now = now or datetime.utcnow()
        self.status = ReservationStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = now
        self._touch(now)

    def expire(self, now: datetime) -> bool:
        """Cancel if the payment window has lapsed; returns whether it did"""
        if not self.is_payment_overdue(now):
            return False

        self.cancel(PAYMENT_WINDOW_EXPIRED, now)
        return True

    def record_payment(self, paid_at: Optional[datetime] = None) -> None:
        """Mark reservation as paid"""
        if self.status not in [ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN]:
            raise InvalidStateTransition(self.reservation_id, self.status.value, "record payment for")

        if self.payment_status != PaymentStatus.PENDING:
            raise ValueError(
                f"Reservation {self.reservation_code} payment is already {self.payment_status.value}"
            )

        paid_at = paid_at or datetime.utcnow()
        self.payment_status = PaymentStatus.PAID
        self.paid_at = paid_at
        self._touch(paid_at)

    def mark_reminder_sent(self, now: datetime) -> None:
        self.deadline_reminder_sent = True
        self._touch(now)

    # ==================== QUERY METHODS ====================
    def is_active(self) -> bool:
        """Non-cancelled reservations count toward quotas and availability"""
        return self.status != ReservationStatus.CANCELLED

    def is_cancellable(self) -> bool:
        return self.status in [ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN]

    def is_awaiting_payment(self) -> bool:
        return (
            self.status == ReservationStatus.CONFIRMED
            and not self.payment_exempt
            and self.payment_status == PaymentStatus.PENDING
            and self.payment_deadline is not None
        )

    def is_payment_overdue(self, now: datetime) -> bool:
        return self.is_awaiting_payment() and now > self.payment_deadline

    def hours_until_check_in(self, now: datetime) -> float:
        check_in_at = datetime.combine(self.date_range.check_in, datetime.min.time())
        return (check_in_at - now).total_seconds() / 3600

    @property
    def holder_id(self) -> str:
        return self.titular_member_id or self.member_id

    def get_nights(self) -> int:
        return self.date_range.nights()

    # ==================== PRIVATE METHODS ====================
    def _touch(self, now: datetime) -> None:
        self.modified_at = now
        self.version += 1

    @staticmethod
    def _generate_reservation_code(created_at: datetime) -> str:
        """Generate human-searchable reservation code, e.g. CS2025K7Q2ZD"""
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"CS{created_at.year}{suffix}"
