"""Quota and payment exemption rules"""
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from club_reservations.domain.entities import Reservation
from club_reservations.domain.enums import ViolationCode
from club_reservations.domain.value_objects import (
    HolidayCalendar, RuleSet, RuleViolation, iter_nights, weekend_key
)


def _weekends(check_in: date, check_out: date) -> set:
    keys = (weekend_key(night) for night in iter_nights(check_in, check_out))
    return {key for key in keys if key is not None}


def _active_for_holder(existing: Iterable[Reservation], holder_id: str) -> List[Reservation]:
    return [r for r in existing if r.is_active() and r.holder_id == holder_id]


class QuotaExemptionCalculator:
    """Per-member quotas, availability conflicts and payment exemption"""

    def check_quota(
        self,
        rule_set: RuleSet,
        member_id: str,
        location: str,
        check_in: date,
        check_out: date,
        existing: Iterable[Reservation]
    ) -> Optional[RuleViolation]:
        """Weekend and monthly quotas; ``existing`` may hold other members' records"""
        held = _active_for_holder(existing, member_id)

        if rule_set.per_weekend_limit is not None:
            requested = _weekends(check_in, check_out)
            for weekend in sorted(requested):
                taken = [
                    r for r in held
                    if weekend in _weekends(r.date_range.check_in, r.date_range.check_out)
                ]
                if len(taken) >= rule_set.per_weekend_limit:
                    return RuleViolation(
                        code=ViolationCode.QUOTA_EXCEEDED,
                        message=f"Only {rule_set.per_weekend_limit} reservation per member "
                                "is allowed during a weekend",
                        details={
                            "weekend": weekend.isoformat(),
                            "existing": [r.reservation_code for r in taken]
                        }
                    )

        quota = rule_set.monthly_quota
        if quota is not None:
            in_month = [
                r for r in held
                if (r.date_range.check_in.year, r.date_range.check_in.month) == (check_in.year, check_in.month)
            ]
            if len(in_month) >= quota.max_reservations:
                return RuleViolation(
                    code=ViolationCode.QUOTA_EXCEEDED,
                    message=f"At most {quota.max_reservations} reservations per month are allowed",
                    details={"month": f"{check_in.year:04d}-{check_in.month:02d}", "count": len(in_month)}
                )
            at_location = [r for r in in_month if r.location == location]
            if len(at_location) >= quota.max_per_location:
                return RuleViolation(
                    code=ViolationCode.QUOTA_EXCEEDED,
                    message=f"A reservation at {location} already exists for this month",
                    details={
                        "month": f"{check_in.year:04d}-{check_in.month:02d}",
                        "location": location,
                        "existing": [r.reservation_code for r in at_location]
                    }
                )

        return None

    def check_availability(
        self,
        accommodation_id: str,
        check_in: date,
        check_out: date,
        existing: Iterable[Reservation]
    ) -> Optional[RuleViolation]:
        conflicts = [
            r for r in existing
            if r.is_active()
            and r.accommodation_id == accommodation_id
            and r.date_range.overlaps(check_in, check_out)
        ]
        if conflicts:
            return RuleViolation(
                code=ViolationCode.ACCOMMODATION_UNAVAILABLE,
                message=f"Accommodation {accommodation_id} is not available for the selected dates",
                details={"accommodation_id": accommodation_id}
            )
        return None

    def check_member_overlap(
        self,
        member_id: str,
        check_in: date,
        check_out: date,
        existing: Iterable[Reservation]
    ) -> Optional[RuleViolation]:
        overlapping = [
            r for r in _active_for_holder(existing, member_id)
            if r.date_range.overlaps(check_in, check_out)
        ]
        if overlapping:
            return RuleViolation(
                code=ViolationCode.OVERLAPPING_RESERVATION,
                message="Member already holds a reservation overlapping these dates",
                details={"existing": [r.reservation_code for r in overlapping]}
            )
        return None

    def compute_exemption(
        self,
        rule_set: RuleSet,
        check_in: date,
        check_out: date,
        calendar: HolidayCalendar,
        created_at: datetime
    ) -> Tuple[bool, Optional[datetime]]:
        """Return (exempt, payment_deadline); the deadline is None when exempt"""
        exempt = (
            rule_set.payment_exempt_except_holidays
            and not calendar.intersects(check_in, check_out)
        )
        if exempt:
            return True, None
        return False, created_at + timedelta(hours=rule_set.payment_window_hours)
