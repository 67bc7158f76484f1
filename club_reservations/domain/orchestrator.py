"""Validation orchestration - one admit/reject decision per booking request"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from club_reservations.domain.date_window import DateWindowValidator
from club_reservations.domain.entities import Reservation
from club_reservations.domain.enums import ViolationCode
from club_reservations.domain.exceptions import UnknownMemberType
from club_reservations.domain.policies import MembershipPolicyResolver
from club_reservations.domain.quota import QuotaExemptionCalculator
from club_reservations.domain.value_objects import (
    Decision, HolidayCalendar, ReservationRequest, RuleSet, RuleViolation
)

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """
    Runs resolver, date window and quota stages in order.

    Stops at the first rejecting stage unless ``full_report`` is requested, in which
    case every stage that can still run contributes its reasons. Read-only: the
    caller persists the reservation when the decision allows it.
    """

    def __init__(
        self,
        resolver: Optional[MembershipPolicyResolver] = None,
        date_validator: Optional[DateWindowValidator] = None,
        quota_calculator: Optional[QuotaExemptionCalculator] = None
    ):
        self.resolver = resolver or MembershipPolicyResolver()
        self.date_validator = date_validator or DateWindowValidator()
        self.quota_calculator = quota_calculator or QuotaExemptionCalculator()

    def evaluate(
        self,
        request: ReservationRequest,
        existing: Iterable[Reservation],
        now: datetime,
        calendar: Optional[HolidayCalendar] = None,
        full_report: bool = False
    ) -> Decision:
        calendar = calendar or HolidayCalendar()
        existing = list(existing)
        reasons: List[RuleViolation] = []
        warnings: List[str] = []

        def reject() -> Decision:
            logger.info(
                "Reservation request for member %s rejected: %s",
                request.member_id, ", ".join(r.code.value for r in reasons)
            )
            return Decision(allowed=False, reasons=reasons, warnings=warnings, evaluated_at=now)

        # Stage 1: membership rules
        try:
            rule_set = self.resolver.resolve(request.member_type)
        except UnknownMemberType as e:
            reasons.append(RuleViolation(
                code=ViolationCode.UNKNOWN_MEMBER_TYPE,
                message=str(e),
                details={"member_type": str(request.member_type)}
            ))
            return reject()

        titular_rule_set = None
        if request.titular_member_id and not rule_set.requires_titular_member:
            # Only dependents book through a titular member.
            reasons.append(self._unauthorized(
                request, f"Members of type {rule_set.member_type.value} book on their own behalf"
            ))
            return reject()
        if rule_set.requires_titular_member:
            titular_rule_set = self._titular_rules(request, reasons)
            if titular_rule_set is None and not reasons:
                reasons.append(self._unauthorized(request))
            if reasons:
                return reject()

        # Stage 2: date window
        window = self.date_validator.validate(
            rule_set, request.check_in, request.check_out, now, calendar, titular_rule_set
        )
        effective_rules: RuleSet = window.rule_set or titular_rule_set or rule_set
        warnings.extend(window.warnings)
        if not window.ok:
            reasons.append(window.violation)
            if not full_report or window.violation.code in (
                ViolationCode.INVALID_DATE_RANGE, ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT
            ):
                return reject()

        # Stage 3: quotas and availability
        stage_checks = [
            lambda: self.quota_calculator.check_quota(
                effective_rules, request.holder_id, request.location,
                request.check_in, request.check_out, existing
            ),
            lambda: self.quota_calculator.check_availability(
                request.accommodation_id, request.check_in, request.check_out, existing
            ),
            lambda: self.quota_calculator.check_member_overlap(
                request.holder_id, request.check_in, request.check_out, existing
            ),
            lambda: self._check_capacity(request),
        ]
        for check in stage_checks:
            violation = check()
            if violation is not None:
                reasons.append(violation)
                if not full_report:
                    return reject()

        if reasons:
            return reject()

        exempt, deadline = self.quota_calculator.compute_exemption(
            effective_rules, request.check_in, request.check_out, calendar, now
        )
        return Decision(
            allowed=True,
            warnings=warnings,
            rule_set=effective_rules,
            payment_exempt=exempt,
            payment_deadline=deadline,
            nights=(request.check_out - request.check_in).days,
            evaluated_at=now
        )

    def _titular_rules(self, request: ReservationRequest, reasons: List[RuleViolation]) -> Optional[RuleSet]:
        """Rules of the titular member booking on behalf of the requester"""
        if not request.titular_member_id or request.titular_member_id == request.member_id:
            return None
        if request.titular_member_type is None:
            return None
        try:
            titular_rules = self.resolver.resolve(request.titular_member_type)
        except UnknownMemberType as e:
            reasons.append(RuleViolation(
                code=ViolationCode.UNKNOWN_MEMBER_TYPE,
                message=str(e),
                details={"member_type": str(request.titular_member_type)}
            ))
            return None
        if titular_rules.requires_titular_member:
            return None
        return titular_rules

    @staticmethod
    def _unauthorized(
        request: ReservationRequest,
        message: str = "Youth visitors cannot book; only the titular member may book on their behalf"
    ) -> RuleViolation:
        return RuleViolation(
            code=ViolationCode.UNAUTHORIZED_BOOKING_ATTEMPT,
            message=message,
            details={"member_id": request.member_id, "titular_member_id": request.titular_member_id}
        )

    @staticmethod
    def _check_capacity(request: ReservationRequest) -> Optional[RuleViolation]:
        if request.capacity is not None and request.number_of_guests > request.capacity:
            return RuleViolation(
                code=ViolationCode.CAPACITY_EXCEEDED,
                message=f"Accommodation {request.accommodation_id} holds at most {request.capacity} guests",
                details={"capacity": request.capacity, "guests": request.number_of_guests}
            )
        return None
