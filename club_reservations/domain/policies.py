"""Membership policy resolution - booking rules per member type"""
from typing import Dict, List, Optional, Union

from club_reservations.domain.enums import AccommodationType, DayPolicyKind, MemberType
from club_reservations.domain.exceptions import UnknownMemberType
from club_reservations.domain.value_objects import AllowedDayPolicy, MonthlyQuota, RuleSet


STANDARD_PAYMENT_WINDOW_HOURS = 72
SUITE_CHECK_IN_TIME = "14:00"
SUITE_CHECK_OUT_TIME = "13:00"


def _weekday_visitor_rules(member_type: MemberType) -> RuleSet:
    return RuleSet(
        member_type=member_type,
        max_consecutive_nights=7,
        allowed_day_policy=AllowedDayPolicy.weekday_only(3),
        payment_window_hours=STANDARD_PAYMENT_WINDOW_HOURS,
        per_weekend_limit=1
    )


_RULES: Dict[MemberType, RuleSet] = {
    MemberType.REGULAR: RuleSet(
        member_type=MemberType.REGULAR,
        max_consecutive_nights=7,
        allowed_day_policy=AllowedDayPolicy.any_day(),
        payment_window_hours=STANDARD_PAYMENT_WINDOW_HOURS,
        per_weekend_limit=1
    ),
    MemberType.WIDOW: _weekday_visitor_rules(MemberType.WIDOW),
    MemberType.SPECIAL_VISITOR: _weekday_visitor_rules(MemberType.SPECIAL_VISITOR),
    MemberType.TRANSIENT_VISITOR: _weekday_visitor_rules(MemberType.TRANSIENT_VISITOR),
    MemberType.YOUTH_VISITOR: RuleSet(
        member_type=MemberType.YOUTH_VISITOR,
        max_consecutive_nights=0,
        allowed_day_policy=AllowedDayPolicy.none(),
        payment_window_hours=0,
        requires_titular_member=True
    ),
    MemberType.DIRECTOR: RuleSet(
        member_type=MemberType.DIRECTOR,
        max_consecutive_nights=3,
        allowed_day_policy=AllowedDayPolicy.any_day(),
        payment_window_hours=STANDARD_PAYMENT_WINDOW_HOURS,
        monthly_quota=MonthlyQuota(max_reservations=3, max_per_location=1),
        payment_exempt_except_holidays=True,
        cancellation_notice_hours=72
    ),
}

# Every member type must have exactly one rule set.
if set(_RULES) != set(MemberType):
    raise RuntimeError("rule table out of sync with MemberType")


class MembershipPolicyResolver:
    """Maps a member type tag to its immutable RuleSet"""

    def resolve(self, member_type: Union[MemberType, str]) -> RuleSet:
        """Resolve rules; raises UnknownMemberType for tags outside MemberType"""
        try:
            key = MemberType(member_type)
        except ValueError:
            raise UnknownMemberType(member_type)
        return _RULES[key]

    def check_in_out_times(self, rule_set: RuleSet, accommodation_type: Optional[str] = None) -> Dict[str, str]:
        """Check-in/out times; suites use their own schedule"""
        if accommodation_type == AccommodationType.SUITES.value:
            return {"check_in": SUITE_CHECK_IN_TIME, "check_out": SUITE_CHECK_OUT_TIME}
        return {"check_in": rule_set.check_in_time, "check_out": rule_set.check_out_time}

    def rules_summary(self, member_type: Union[MemberType, str]) -> Dict[str, object]:
        """Human-readable summary of the rules that apply to a member type"""
        rule_set = self.resolve(member_type)
        policy = rule_set.allowed_day_policy
        special_rules: List[str] = []

        if policy.kind == DayPolicyKind.WEEKDAY_ONLY:
            allowed_days = "Monday to Friday (weekends with advance notice)"
            special_rules.append(
                f"Weekend nights require at least {policy.min_weekend_advance_days} days of advance notice"
            )
        elif policy.kind == DayPolicyKind.NONE:
            allowed_days = "None (the titular member must book)"
            special_rules.append("Cannot book directly; only the titular member may book")
        else:
            allowed_days = "Every day"

        if rule_set.per_weekend_limit:
            special_rules.append(f"At most {rule_set.per_weekend_limit} reservation per weekend")
        if rule_set.monthly_quota:
            special_rules.append(
                f"At most {rule_set.monthly_quota.max_reservations} reservations per month, "
                f"{rule_set.monthly_quota.max_per_location} per location"
            )
        if rule_set.payment_exempt_except_holidays:
            special_rules.append("Exempt from payment except on holidays and vacation periods")
        if rule_set.cancellation_notice_hours:
            special_rules.append(
                f"Cancellations should be notified {rule_set.cancellation_notice_hours} hours in advance"
            )
        special_rules.append("Reservations are not transferable")

        return {
            "member_type": rule_set.member_type.value,
            "max_nights": rule_set.max_consecutive_nights,
            "allowed_days": allowed_days,
            "payment_window_hours": rule_set.payment_window_hours,
            "check_in_time": rule_set.check_in_time,
            "check_out_time": rule_set.check_out_time,
            "special_rules": special_rules,
        }
