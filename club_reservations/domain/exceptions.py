"""Domain Exceptions - state errors surfaced to the caller"""
from typing import List, Optional
from uuid import UUID


class ReservationError(ValueError):
    """Base class for reservation state errors"""


class UnknownMemberType(ReservationError):
    def __init__(self, member_type) -> None:
        super().__init__(f"Unknown member type: {member_type}")
        self.member_type = member_type


class ReservationNotFound(ReservationError):
    def __init__(self, reservation_id) -> None:
        super().__init__(f"Reservation not found: {reservation_id}")
        self.reservation_id = reservation_id


class InvalidStateTransition(ReservationError):
    """Raised when an operation is not legal from the reservation's current status."""

    def __init__(self, reservation_id: UUID, current: str, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} reservation {reservation_id} with status {current}"
        )
        self.reservation_id = reservation_id
        self.current = current
        self.operation = operation


class KeyNotReturned(ReservationError):
    def __init__(self, reservation_id: UUID) -> None:
        super().__init__(f"Key must be returned before check-out of reservation {reservation_id}")
        self.reservation_id = reservation_id


class InvalidCheckInDetails(ReservationError):
    pass


class InvalidCheckOutDetails(ReservationError):
    pass


class ConcurrentModification(ReservationError):
    def __init__(self, reservation_id: UUID, expected: int, actual: Optional[int]) -> None:
        super().__init__(
            f"Reservation {reservation_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.reservation_id = reservation_id
        self.expected = expected
        self.actual = actual


class ReservationRejected(ReservationError):
    """Raised when confirmation is attempted with a request the rules do not admit."""

    def __init__(self, reasons: List) -> None:
        codes = ", ".join(r.code.value for r in reasons) or "not allowed"
        super().__init__(f"Reservation request rejected: {codes}")
        self.reasons = reasons


class DuplicateReservationCode(ReservationError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Reservation code {code} already in use")
        self.code = code
