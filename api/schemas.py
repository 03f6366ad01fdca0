"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union

from domain.coercion import MAX_AMOUNT, RoomId
from domain.enums import ReservationStatus

# Form fields are coerced by the draft builder, so raw strings like "12,50" pass through
MoneyInput = Union[str, int, float, None]


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class ExtrasInput(BaseModel):
    """Extras of one room (group) or of the stay (single)"""
    extra_bar: MoneyInput = None
    extra_servizi: MoneyInput = None
    pet_allowed: bool = False
    crib: Optional[bool] = None


class ReservationFormRequest(BaseModel):
    """Reservation form state, as edited in the back office"""
    is_group: bool = False
    guest_name: str = ""
    agency_group_name: str = ""
    phone_number: str = ""
    status: Optional[ReservationStatus] = None
    payment_completed: bool = False
    total_people: Union[int, str, None] = None
    additional_notes: str = ""

    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    room_numbers: List[RoomId] = []
    room_number: Optional[RoomId] = None

    single_pricing_mode: Optional[str] = Field(None, description="perNight | total")
    single_price_per_night: MoneyInput = None
    single_total_price: MoneyInput = None
    group_pricing_mode: Optional[str] = Field(
        None, description="perNightPerRoom | perNightUniform | totalForStay"
    )
    group_per_room_rates: Dict[str, MoneyInput] = {}
    group_uniform_per_night: MoneyInput = None
    group_total_for_stay: MoneyInput = None

    single_extras: Optional[ExtrasInput] = None
    group_extras: Dict[str, ExtrasInput] = {}
    group_cribs: Dict[str, bool] = {}
    room_cribs: Union[bool, Dict[str, bool], None] = None

    deposit: MoneyInput = None
    custom_price: MoneyInput = Field(None, description="Manual final price, blank for none")
    price: MoneyInput = None
    price_with_extras: MoneyInput = None
    price_without_extras: MoneyInput = None
    room_prices: Dict[str, MoneyInput] = {}

    def to_form(self) -> dict:
        """Only what the client actually sent; absent keys drive the legacy fallback"""
        return self.model_dump(exclude_unset=True)


class ChangeStatusRequest(BaseModel):
    """Change status request DTO"""
    status: ReservationStatus


class AddExtrasRequest(BaseModel):
    """Extras top-up request DTO"""
    room: Optional[RoomId] = Field(None, description="Required for group reservations")
    extra_bar: Decimal = Field(default=Decimal("0"), ge=0, lt=MAX_AMOUNT)
    extra_servizi: Decimal = Field(default=Decimal("0"), ge=0, lt=MAX_AMOUNT)
    pet_allowed: bool = False
    crib: bool = False


class ExtrasResponse(BaseModel):
    """Extras response DTO"""
    extra_bar: Decimal
    extra_servizi: Decimal
    pet_allowed: bool
    crib: bool
    total: Decimal


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: str
    is_group: bool
    guest_name: str
    agency_group_name: str
    phone_number: str
    total_people: int
    additional_notes: str
    room_numbers: List[RoomId]
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    pricing_mode: str
    pricing: dict
    room_prices: Dict[RoomId, Decimal]
    extras: Dict[RoomId, ExtrasResponse]
    deposit: Decimal
    final_price_override: Optional[Decimal] = None
    price: Decimal
    price_with_extras: Decimal
    price_without_extras: Decimal
    currency: str
    status: str
    payment_completed: bool
    invoice_number: Optional[str] = None
    created_at: datetime
    modified_at: datetime
    version: int


class PricingSummaryResponse(BaseModel):
    """Pricing summary response DTO"""
    pricing_kind: str
    nights: int
    base: Decimal
    extras_total: Decimal
    per_room_extras: Dict[RoomId, ExtrasResponse]
    calculated_total: Decimal
    saved_price: Decimal
    final_price: Decimal
    final_price_includes_extras: bool
    extras_applied_to_due: Decimal
    amount_due_basis: Decimal
    deposit: Decimal
    amount_due: Decimal
    currency: str


class PreviewResponse(BaseModel):
    """Live preview of an unsaved form"""
    reservation: ReservationResponse
    pricing: PricingSummaryResponse


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class CheckAvailabilityRequest(BaseModel):
    """Check availability request DTO"""
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    exclude_id: Optional[str] = Field(None, description="Reservation being edited")
    rooms: List[RoomId] = []


class ConflictResponse(BaseModel):
    """Conflict response DTO"""
    reservation_id: str
    guest_name: str
    agency_group_name: str
    is_group: bool
    status: str
    check_in_date: date
    check_out_date: date


class AvailabilityResponse(BaseModel):
    """Availability response DTO"""
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    available_rooms: List[RoomId]
    conflicts: Dict[RoomId, List[ConflictResponse]]
    requested_rooms: List[RoomId] = []
    conflicting_rooms: List[RoomId] = []


class RoomResponse(BaseModel):
    """Room catalogue entry"""
    room: int
    room_type: str
    capacity: int


class RoomOccupancyResponse(BaseModel):
    room: RoomId
    room_type: str
    reservation_id: str
    guest_name: str
    total_people: int
    check_out_date: date
    additional_notes: str
    extras: List[str]


class DailyRoomStatusResponse(BaseModel):
    """Daily room status response DTO"""
    day: date
    staying: List[RoomOccupancyResponse]
    checking_in: List[RoomOccupancyResponse]
    checking_out: List[RoomOccupancyResponse]
    available: List[RoomId]


# ============================================================================
# EXPENSE SCHEMAS
# ============================================================================

class CreateExpenseRequest(BaseModel):
    """Create expense request DTO"""
    description: str
    amount: Decimal = Field(ge=0, lt=MAX_AMOUNT)
    expense_date: date
    category: str
    reservation_id: Optional[str] = None


class UpdateExpenseRequest(BaseModel):
    """Update expense request DTO"""
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0, lt=MAX_AMOUNT)
    expense_date: Optional[date] = None
    category: Optional[str] = None
    reservation_id: Optional[str] = None


class ExpenseResponse(BaseModel):
    """Expense response DTO"""
    expense_id: str
    description: str
    amount: Decimal
    expense_date: date
    category: str
    reservation_id: Optional[str] = None
    created_at: datetime


# ============================================================================
# REPORT SCHEMAS
# ============================================================================

class ReportResponse(BaseModel):
    """Period report response DTO"""
    start: Optional[date] = None
    end: Optional[date] = None
    status: str
    bookings: int
    rooms_booked: int
    revenue: Decimal
    revenue_by_room: Dict[RoomId, Decimal]
    expenses: Decimal
    expenses_by_category: Dict[str, Decimal]
    profit: Decimal
    currency: str
    generated_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class OperatorResponse(BaseModel):
    """Operator response DTO"""
    username: str
    full_name: Optional[str] = None
    disabled: bool
