"""Domain Enums"""
from enum import Enum


class MemberType(str, Enum):
    REGULAR = "regular"
    WIDOW = "widow"
    SPECIAL_VISITOR = "specialVisitor"
    TRANSIENT_VISITOR = "transientVisitor"
    YOUTH_VISITOR = "youthVisitor"
    DIRECTOR = "director"


class ReservationStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    EXEMPT = "EXEMPT"


class DayPolicyKind(str, Enum):
    ANY_DAY = "anyDay"
    WEEKDAY_ONLY = "weekdayOnly"
    NONE = "none"


class DayKind(str, Enum):
    WEEKDAY = "WEEKDAY"
    WEEKEND = "WEEKEND"


class AccommodationType(str, Enum):
    CORINTO_CASAS = "corinto_casas"
    EL_SUNZAL_CASAS = "el_sunzal_casas"
    APARTAMENTOS = "apartamentos"
    SUITES = "suites"


class RoomCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ViolationCode(str, Enum):
    INVALID_DATE_RANGE = "InvalidDateRange"
    EXCEEDS_MAX_DURATION = "ExceedsMaxDuration"
    ADVANCE_NOTICE_VIOLATION = "AdvanceNoticeViolation"
    UNAUTHORIZED_BOOKING_ATTEMPT = "UnauthorizedBookingAttempt"
    QUOTA_EXCEEDED = "QuotaExceeded"
    UNKNOWN_MEMBER_TYPE = "UnknownMemberType"
    MEMBER_NOT_FOUND = "MemberNotFound"
    INACTIVE_MEMBER = "InactiveMember"
    ACCOMMODATION_NOT_FOUND = "AccommodationNotFound"
    ACCOMMODATION_UNAVAILABLE = "AccommodationUnavailable"
    OVERLAPPING_RESERVATION = "OverlappingReservation"
    CAPACITY_EXCEEDED = "CapacityExceeded"


class EventType(str, Enum):
    RESERVATION_CONFIRMED = "reservation.confirmed"
    CHECKED_IN = "reservation.checked_in"
    CHECKED_OUT = "reservation.checked_out"
    RESERVATION_CANCELLED = "reservation.cancelled"
    PAYMENT_RECORDED = "reservation.payment_recorded"
    PAYMENT_DEADLINE_APPROACHING = "reservation.payment_deadline_approaching"
