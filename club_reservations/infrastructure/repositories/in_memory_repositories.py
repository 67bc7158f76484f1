"""In-Memory Repository Implementations"""
import bisect
import logging
from collections import defaultdict
from typing import Optional, List, Dict, Tuple
from uuid import UUID
from datetime import date

from club_reservations.domain.repositories import (
    Accommodation, AccommodationCatalog, HolidayCalendarProvider, Member, MemberDirectory,
    ReservationRepository
)
from club_reservations.domain.entities import Reservation
from club_reservations.domain.exceptions import (
    ConcurrentModification, DuplicateReservationCode, ReservationNotFound
)
from club_reservations.domain.value_objects import HolidayCalendar

logger = logging.getLogger(__name__)


class InMemoryReservationRepository(ReservationRepository):
    """
    In-memory implementation of ReservationRepository.

    Records live in an id -> reservation map. Secondary indices: member id ->
    reservation ids, and accommodation id -> list of (check_in, id) kept sorted so
    overlap queries bisect instead of scanning every stay.
    """

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._by_code: Dict[str, UUID] = {}
        self._by_member: Dict[str, List[UUID]] = defaultdict(list)
        self._by_accommodation: Dict[str, List[Tuple[date, UUID]]] = defaultdict(list)
        self._max_nights: Dict[str, int] = defaultdict(int)

    async def save(self, reservation: Reservation) -> Reservation:
        """Save new reservation to memory"""
        if reservation.reservation_id in self._storage:
            raise ValueError(f"Reservation {reservation.reservation_id} already exists")
        code = reservation.reservation_code.upper()
        if code in self._by_code:
            raise DuplicateReservationCode(reservation.reservation_code)

        stored = reservation.copy(deep=True)
        self._storage[stored.reservation_id] = stored
        self._by_code[code] = stored.reservation_id
        self._by_member[stored.member_id].append(stored.reservation_id)
        if stored.titular_member_id and stored.titular_member_id != stored.member_id:
            self._by_member[stored.titular_member_id].append(stored.reservation_id)
        bisect.insort(
            self._by_accommodation[stored.accommodation_id],
            (stored.date_range.check_in, stored.reservation_id)
        )
        self._max_nights[stored.accommodation_id] = max(
            self._max_nights[stored.accommodation_id], stored.get_nights()
        )
        return stored.copy(deep=True)

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return reservation.copy(deep=True) if reservation else None

    async def find_by_reservation_code(self, code: str) -> Optional[Reservation]:
        """Find reservation by reservation code"""
        reservation_id = self._by_code.get(code.strip().upper())
        if reservation_id is None:
            return None
        return await self.find_by_id(reservation_id)

    async def find_by_member(self, member_id: str) -> List[Reservation]:
        """Find reservations by member ID"""
        return [self._storage[rid].copy(deep=True) for rid in self._by_member.get(member_id, [])]

    async def find_by_accommodation(
        self, accommodation_id: str, start_date: date, end_date: date
    ) -> List[Reservation]:
        """Find reservations for an accommodation overlapping [start_date, end_date)"""
        entries = self._by_accommodation.get(accommodation_id, [])
        if not entries:
            return []
        # A stay overlapping the window starts before end_date and at most
        # max_nights before start_date.
        earliest = date.fromordinal(start_date.toordinal() - self._max_nights[accommodation_id])
        lo = bisect.bisect_left(entries, (earliest,))
        hi = bisect.bisect_left(entries, (end_date,))
        results = []
        for _, rid in entries[lo:hi]:
            reservation = self._storage[rid]
            if reservation.date_range.overlaps(start_date, end_date):
                results.append(reservation.copy(deep=True))
        return results

    async def find_awaiting_payment(self) -> List[Reservation]:
        """Find reservations whose payment window is still open or lapsed"""
        return [r.copy(deep=True) for r in self._storage.values() if r.is_awaiting_payment()]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return [r.copy(deep=True) for r in self._storage.values()]

    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Compare-and-swap update on the stored version"""
        current = self._storage.get(reservation.reservation_id)
        if current is None:
            raise ReservationNotFound(reservation.reservation_id)
        if current.version != expected_version:
            raise ConcurrentModification(reservation.reservation_id, expected_version, current.version)

        self._storage[reservation.reservation_id] = reservation.copy(deep=True)
        return reservation


class InMemoryMemberDirectory(MemberDirectory):
    """In-memory implementation of MemberDirectory"""

    def __init__(self, members: Optional[List[Member]] = None):
        self._storage: Dict[str, Member] = {m.member_id: m for m in members or []}

    def add(self, member: Member) -> Member:
        self._storage[member.member_id] = member
        return member

    async def get_member(self, member_id: str) -> Optional[Member]:
        return self._storage.get(member_id)


class InMemoryAccommodationCatalog(AccommodationCatalog):
    """In-memory implementation of AccommodationCatalog"""

    def __init__(self, accommodations: Optional[List[Accommodation]] = None):
        self._storage: Dict[str, Accommodation] = {
            a.accommodation_id: a for a in accommodations or []
        }

    def add(self, accommodation: Accommodation) -> Accommodation:
        self._storage[accommodation.accommodation_id] = accommodation
        return accommodation

    async def get_accommodation(self, accommodation_id: str) -> Optional[Accommodation]:
        return self._storage.get(accommodation_id)


class StaticHolidayCalendarProvider(HolidayCalendarProvider):
    """Serves a fixed calendar; replace() swaps it when the calendar service pushes updates"""

    def __init__(self, calendar: Optional[HolidayCalendar] = None):
        self._calendar = calendar or HolidayCalendar()

    def replace(self, calendar: HolidayCalendar) -> None:
        logger.info(
            "Holiday calendar replaced: %d holidays, %d vacation periods",
            len(calendar.holidays), len(calendar.vacation_periods)
        )
        self._calendar = calendar

    async def get_calendar(self) -> HolidayCalendar:
        return self._calendar
