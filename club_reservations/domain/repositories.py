"""Domain Repository and Collaborator Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date

from pydantic import BaseModel, Field

from club_reservations.domain.entities import Reservation
from club_reservations.domain.events import DomainEvent
from club_reservations.domain.value_objects import HolidayCalendar


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate; records are never deleted"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save new reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_reservation_code(self, code: str) -> Optional[Reservation]:
        """Find reservation by reservation code (case-insensitive)"""
        pass

    @abstractmethod
    async def find_by_member(self, member_id: str) -> List[Reservation]:
        """Find reservations booked by or on behalf of a member"""
        pass

    @abstractmethod
    async def find_by_accommodation(
        self, accommodation_id: str, start_date: date, end_date: date
    ) -> List[Reservation]:
        """Find reservations for an accommodation overlapping [start_date, end_date)"""
        pass

    @abstractmethod
    async def find_awaiting_payment(self) -> List[Reservation]:
        """Find CONFIRMED, unpaid, non-exempt reservations"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Update reservation if the stored version still equals expected_version"""
        pass


# ============================================================================
# EXTERNAL COLLABORATORS
# ============================================================================

class Member(BaseModel):
    """Member facts supplied by the identity service"""
    member_id: str
    member_type: str
    full_name: Optional[str] = None
    active: bool = True
    titular_member_id: Optional[str] = None


class Accommodation(BaseModel):
    """Accommodation facts supplied by the inventory service"""
    accommodation_id: str
    name: str
    location: str
    accommodation_type: Optional[str] = None
    capacity: int = Field(ge=1)


class MemberDirectory(ABC):

    @abstractmethod
    async def get_member(self, member_id: str) -> Optional[Member]:
        pass


class AccommodationCatalog(ABC):

    @abstractmethod
    async def get_accommodation(self, accommodation_id: str) -> Optional[Accommodation]:
        pass


class HolidayCalendarProvider(ABC):

    @abstractmethod
    async def get_calendar(self) -> HolidayCalendar:
        pass


class EventPublisher(ABC):

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Enqueue an event; must not wait for downstream delivery"""
        pass

