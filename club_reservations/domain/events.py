"""Domain Events emitted after a reservation transition commits"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Any, Dict

from club_reservations.domain.enums import EventType


class DomainEvent(BaseModel):
    """Outbound lifecycle event"""
    event_id: UUID = Field(default_factory=uuid4)
    event_type: EventType
    reservation_id: UUID
    reservation_code: str
    member_id: str
    occurred_at: datetime = Field(default_factory=datetime.utcnow)
    data: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True

    @staticmethod
    def for_reservation(event_type: EventType, reservation, occurred_at: datetime, **data) -> "DomainEvent":
        """Build an event describing ``reservation``"""
        return DomainEvent(
            event_type=event_type,
            reservation_id=reservation.reservation_id,
            reservation_code=reservation.reservation_code,
            member_id=reservation.member_id,
            occurred_at=occurred_at,
            data=data
        )
