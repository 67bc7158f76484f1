"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

from club_reservations.domain.enums import (
    DayKind, DayPolicyKind, MemberType, RoomCondition, ViolationCode
)


class DateRange(BaseModel):
    """Value Object for a stay; nights are the dates in [check_in, check_out)"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def each_night(self) -> Iterator[date]:
        return iter_nights(self.check_in, self.check_out)

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return self.check_in < check_out and check_in < self.check_out

    class Config:
        frozen = True


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def weekend_key(day: date) -> Optional[date]:
    """Saturday that opens the weekend containing ``day``, or None for weekdays"""
    if day.weekday() == 5:
        return day
    if day.weekday() == 6:
        return day - timedelta(days=1)
    return None


# ==================== RULE SET ====================

class AllowedDayPolicy(BaseModel):
    """Day-of-week admission policy"""
    kind: DayPolicyKind
    min_weekend_advance_days: int = Field(default=0, ge=0)

    @staticmethod
    def any_day() -> "AllowedDayPolicy":
        return AllowedDayPolicy(kind=DayPolicyKind.ANY_DAY)

    @staticmethod
    def weekday_only(min_weekend_advance_days: int) -> "AllowedDayPolicy":
        return AllowedDayPolicy(
            kind=DayPolicyKind.WEEKDAY_ONLY,
            min_weekend_advance_days=min_weekend_advance_days
        )

    @staticmethod
    def none() -> "AllowedDayPolicy":
        return AllowedDayPolicy(kind=DayPolicyKind.NONE)

    class Config:
        frozen = True


class MonthlyQuota(BaseModel):
    max_reservations: int = Field(ge=1)
    max_per_location: int = Field(ge=1)

    class Config:
        frozen = True


class RuleSet(BaseModel):
    """Immutable booking rules for one member type"""
    member_type: MemberType
    max_consecutive_nights: int = Field(ge=0)
    allowed_day_policy: AllowedDayPolicy
    payment_window_hours: int = Field(ge=0)
    monthly_quota: Optional[MonthlyQuota] = None
    per_weekend_limit: Optional[int] = None
    payment_exempt_except_holidays: bool = False
    requires_titular_member: bool = False
    check_in_time: str = "15:00"
    check_out_time: str = "12:00"
    modification_notice_hours: int = 72
    cancellation_notice_hours: Optional[int] = None

    class Config:
        frozen = True


# ==================== CALENDAR ====================

class VacationPeriod(BaseModel):
    """Inclusive date span during which exemptions do not apply"""
    name: str
    start: date
    end: date

    @validator('end')
    def end_not_before_start(cls, v, values):
        if 'start' in values and v < values['start']:
            raise ValueError('Vacation period end must not precede its start')
        return v

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    class Config:
        frozen = True


class HolidayCalendar(BaseModel):
    """Holidays and vacation periods supplied by the calendar service"""
    holidays: FrozenSet[date] = frozenset()
    vacation_periods: Tuple[VacationPeriod, ...] = ()

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def is_vacation(self, day: date) -> bool:
        return any(period.contains(day) for period in self.vacation_periods)

    def is_special(self, day: date) -> bool:
        return self.is_holiday(day) or self.is_vacation(day)

    def intersects(self, check_in: date, check_out: date) -> bool:
        return any(self.is_special(night) for night in iter_nights(check_in, check_out))

    class Config:
        frozen = True


class NightClassification(BaseModel):
    night: date
    kind: DayKind
    holiday: bool = False

    class Config:
        frozen = True


# ==================== DECISIONS ====================

class RuleViolation(BaseModel):
    """Machine-readable admission rejection"""
    code: ViolationCode
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True


class ReservationRequest(BaseModel):
    """Booking request, with identity and inventory facts already resolved"""
    member_id: str
    member_type: str
    accommodation_id: str
    location: str
    accommodation_type: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    check_in: date
    check_out: date
    number_of_guests: int = Field(ge=1)
    titular_member_id: Optional[str] = None
    titular_member_type: Optional[str] = None

    @property
    def holder_id(self) -> str:
        """Member whose quota the booking consumes"""
        return self.titular_member_id or self.member_id

    class Config:
        frozen = True


class Decision(BaseModel):
    """Outcome of evaluating a reservation request"""
    allowed: bool
    reasons: List[RuleViolation] = []
    warnings: List[str] = []
    rule_set: Optional[RuleSet] = None
    payment_exempt: bool = False
    payment_deadline: Optional[datetime] = None
    nights: int = 0
    evaluated_at: datetime

    def codes(self) -> List[ViolationCode]:
        return [r.code for r in self.reasons]


# ==================== LIFECYCLE DETAILS ====================

class CheckInDetails(BaseModel):
    """Front-desk facts recorded at check-in"""
    checked_in_by: str
    actual_arrival_time: Optional[datetime] = None
    guests_present: int
    documents_verified: bool = False
    key_provided: bool = False
    notes: Optional[str] = None
    checked_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CheckOutDetails(BaseModel):
    """Front-desk facts recorded at check-out"""
    checked_out_by: str
    actual_departure_time: datetime
    room_condition: RoomCondition
    damages_reported: bool = False
    damage_description: Optional[str] = None
    cleaning_required: bool = False
    key_returned: bool
    additional_charges: Optional[Decimal] = Field(default=None, ge=0)
    guest_comments: Optional[str] = None
    host_comments: Optional[str] = None
    checked_out_at: Optional[datetime] = None

    class Config:
        from_attributes = True
