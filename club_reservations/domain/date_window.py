"""Date window validation - stay length, advance notice and day-of-week rules"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from club_reservations.domain.enums import DayKind, DayPolicyKind, ViolationCode
from club_reservations.domain.value_objects import (
    HolidayCalendar, NightClassification, RuleSet, RuleViolation, is_weekend, iter_nights
)


class DateWindowResult(BaseModel):
    """Outcome of a date window check"""
    violation: Optional[RuleViolation] = None
    nights: List[NightClassification] = []
    warnings: List[str] = []
    rule_set: Optional[RuleSet] = None

    @property
    def ok(self) -> bool:
        return self.violation is None


class DateWindowValidator:
    """Checks a proposed stay against a resolved RuleSet"""

    def classify(self, check_in: date, check_out: date, calendar: HolidayCalendar) -> List[NightClassification]:
        """Classify each night of [check_in, check_out)"""
        return [
            NightClassification(
                night=night,
                kind=DayKind.WEEKEND if is_weekend(night) else DayKind.WEEKDAY,
                holiday=calendar.is_special(night)
            )
            for night in iter_nights(check_in, check_out)
        ]

    def validate(
        self,
        rule_set: RuleSet,
        check_in: date,
        check_out: date,
        now: datetime,
        calendar: HolidayCalendar,
        titular_rule_set: Optional[RuleSet] = None
    ) -> DateWindowResult:
        if check_out <= check_in:
            return DateWindowResult(violation=RuleViolation(
                code=ViolationCode.INVALID_DATE_RANGE,
                message="Check-out must be after check-in",
                details={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()}
            ))

        if rule_set.allowed_day_policy.kind == DayPolicyKind.NONE:
            if titular_rule_set is None or titular_rule_set.allowed_day_policy.kind == DayPolicyKind.NONE:
                return DateWindowResult(violation=RuleViolation(
                    code=ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT,
                    message=f"Members of type {rule_set.member_type.value} cannot book; "
                            "only the titular member may book on their behalf",
                    details={"member_type": rule_set.member_type.value}
                ))
            return self.validate(titular_rule_set, check_in, check_out, now, calendar)

        nights = (check_out - check_in).days
        if nights > rule_set.max_consecutive_nights:
            return DateWindowResult(violation=RuleViolation(
                code=ViolationCode.EXCEEDS_MAX_DURATION,
                message=f"Stay cannot exceed {rule_set.max_consecutive_nights} consecutive nights",
                details={"nights": nights, "max_nights": rule_set.max_consecutive_nights}
            ), rule_set=rule_set)

        classified = self.classify(check_in, check_out, calendar)
        warnings: List[str] = []

        policy = rule_set.allowed_day_policy
        if policy.kind == DayPolicyKind.WEEKDAY_ONLY:
            weekend_nights = [c.night for c in classified if c.kind == DayKind.WEEKEND]
            today = now.date()
            too_soon = [
                night for night in weekend_nights
                if (night - today).days < policy.min_weekend_advance_days
            ]
            if too_soon:
                return DateWindowResult(violation=RuleViolation(
                    code=ViolationCode.ADVANCE_NOTICE_VIOLATION,
                    message=f"Weekend nights require at least {policy.min_weekend_advance_days} "
                            "days of advance notice",
                    details={
                        "nights": [night.isoformat() for night in too_soon],
                        "min_advance_days": policy.min_weekend_advance_days
                    }
                ), nights=classified, rule_set=rule_set)
            if weekend_nights:
                warnings.append("Weekend booking authorised by sufficient advance notice")

        return DateWindowResult(nights=classified, warnings=warnings, rule_set=rule_set)
