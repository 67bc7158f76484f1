"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from club_reservations.domain.enums import RoomCondition


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class ReservationRequestBody(BaseModel):
    """Evaluate / create reservation request DTO"""
    member_id: str
    accommodation_id: str
    check_in: date
    check_out: date
    guests: int = Field(ge=1)
    titular_member_id: Optional[str] = None


class EvaluateReservationRequest(ReservationRequestBody):
    """Evaluate request DTO"""
    full_report: bool = False


class CheckInRequest(BaseModel):
    """Check-in request DTO"""
    checked_in_by: str
    actual_arrival_time: Optional[datetime] = None
    guests_present: int
    documents_verified: bool = False
    key_provided: bool = False
    notes: Optional[str] = None


class CheckOutRequest(BaseModel):
    """Check-out request DTO"""
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


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    reason: str = "Member requested cancellation"


class RecordPaymentRequest(BaseModel):
    """Payment callback DTO"""
    paid_at: Optional[datetime] = None


class SweepRequest(BaseModel):
    """Manual sweep trigger DTO"""
    now: Optional[datetime] = None


class ReminderRequest(BaseModel):
    """Manual reminder trigger DTO"""
    now: Optional[datetime] = None
    within_hours: int = Field(default=24, ge=1)


class RuleViolationResponse(BaseModel):
    """Rule violation DTO"""
    code: str
    message: str
    details: Dict[str, Any] = {}


class DecisionResponse(BaseModel):
    """Admission decision DTO"""
    allowed: bool
    reasons: List[RuleViolationResponse] = []
    warnings: List[str] = []
    member_type: Optional[str] = None
    max_nights: Optional[int] = None
    nights: int = 0
    payment_exempt: bool = False
    payment_deadline: Optional[datetime] = None
    evaluated_at: datetime


class CheckInDetailsResponse(BaseModel):
    """Check-in details DTO"""
    checked_in_by: str
    actual_arrival_time: Optional[datetime] = None
    guests_present: int
    documents_verified: bool
    key_provided: bool
    notes: Optional[str] = None
    checked_in_at: Optional[datetime] = None


class CheckOutDetailsResponse(BaseModel):
    """Check-out details DTO"""
    checked_out_by: str
    actual_departure_time: datetime
    room_condition: str
    damages_reported: bool
    damage_description: Optional[str] = None
    cleaning_required: bool
    key_returned: bool
    additional_charges: Optional[Decimal] = None
    guest_comments: Optional[str] = None
    host_comments: Optional[str] = None
    checked_out_at: Optional[datetime] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    reservation_code: str
    member_id: str
    member_type: str
    titular_member_id: Optional[str] = None
    accommodation_id: str
    location: str
    accommodation_type: Optional[str] = None
    check_in: date
    check_out: date
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    nights: int
    number_of_guests: int
    status: str
    payment_exempt: bool
    payment_deadline: Optional[datetime] = None
    payment_status: str
    paid_at: Optional[datetime] = None
    check_in_details: Optional[CheckInDetailsResponse] = None
    check_out_details: Optional[CheckOutDetailsResponse] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    modified_at: datetime
    version: int


class RulesSummaryResponse(BaseModel):
    """Member type rules DTO"""
    member_type: str
    max_nights: int
    allowed_days: str
    payment_window_hours: int
    check_in_time: str
    check_out_time: str
    special_rules: List[str]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    roles: List[str] = []
    disabled: bool
