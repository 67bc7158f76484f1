"""Reference data loaded when the API starts without external collaborators"""
from datetime import date
from typing import List

from club_reservations.domain.enums import AccommodationType, MemberType
from club_reservations.domain.repositories import Accommodation, Member
from club_reservations.domain.value_objects import HolidayCalendar

CORINTO = "Corinto"
EL_SUNZAL = "El Sunzal"
APARTAMENTOS = "Apartamentos"

HOLIDAYS_2025 = [
    date(2025, 1, 1),
    date(2025, 3, 28),
    date(2025, 3, 29),
    date(2025, 3, 30),
    date(2025, 5, 1),
    date(2025, 5, 10),
    date(2025, 6, 17),
    date(2025, 8, 6),
    date(2025, 9, 15),
    date(2025, 11, 2),
    date(2025, 12, 25),
]


def default_accommodations() -> List[Accommodation]:
    return [
        Accommodation(accommodation_id="corinto-casa-1", name="Casa Familiar Corinto",
                      location=CORINTO, accommodation_type=AccommodationType.CORINTO_CASAS.value, capacity=6),
        Accommodation(accommodation_id="corinto-casa-2", name="Casa Lago Corinto",
                      location=CORINTO, accommodation_type=AccommodationType.CORINTO_CASAS.value, capacity=8),
        Accommodation(accommodation_id="sunzal-casa-1", name="Casa Playa El Sunzal",
                      location=EL_SUNZAL, accommodation_type=AccommodationType.EL_SUNZAL_CASAS.value, capacity=6),
        Accommodation(accommodation_id="sunzal-apto-1", name="Apartamento Vista Mar",
                      location=APARTAMENTOS, accommodation_type=AccommodationType.APARTAMENTOS.value, capacity=4),
        Accommodation(accommodation_id="sunzal-suite-1", name="Suite Presidencial",
                      location=EL_SUNZAL, accommodation_type=AccommodationType.SUITES.value, capacity=2),
    ]


def default_members() -> List[Member]:
    return [
        Member(member_id="M-1001", member_type=MemberType.REGULAR.value, full_name="Roberto Martinez"),
        Member(member_id="M-1002", member_type=MemberType.WIDOW.value, full_name="Ana Patricia Lopez"),
        Member(member_id="M-1003", member_type=MemberType.SPECIAL_VISITOR.value, full_name="Carlos Hernandez"),
        Member(member_id="M-1004", member_type=MemberType.TRANSIENT_VISITOR.value, full_name="Maria Sanchez"),
        Member(member_id="M-1005", member_type=MemberType.YOUTH_VISITOR.value, full_name="Diego Martinez",
               titular_member_id="M-1001"),
        Member(member_id="M-1006", member_type=MemberType.DIRECTOR.value, full_name="Director JCD"),
    ]


def default_calendar() -> HolidayCalendar:
    return HolidayCalendar(holidays=frozenset(HOLIDAYS_2025))
