"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import uuid4
from datetime import datetime, date
from typing import Optional, List, Dict
from decimal import Decimal

from domain.coercion import RoomId, ZERO
from domain.enums import ReservationStatus, STATUS_TRANSITIONS
from domain.value_objects import (
    DateRange, Extras, ExtrasSet, GroupExtras, PricingMode, PerNightPricing, SingleExtras,
)


def _new_id() -> str:
    return uuid4().hex


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity (persisted booking or unsaved draft)"""

    # Identity
    reservation_id: str = Field(default_factory=_new_id)

    # Occupant
    is_group: bool = False
    guest_name: str = ""
    agency_group_name: str = ""
    phone_number: str = ""
    total_people: int = Field(default=0, ge=0)
    additional_notes: str = ""

    # Stay; dates stay None when missing or unparseable
    room_numbers: List[RoomId] = []
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None

    # Pricing inputs
    pricing: PricingMode = Field(default_factory=PerNightPricing)
    room_prices: Dict[RoomId, Decimal] = {}
    extras: Extras = Field(default_factory=SingleExtras)
    deposit: Decimal = Field(default=ZERO, ge=0)
    final_price_override: Optional[Decimal] = Field(default=None, ge=0)

    # Derived totals as last written
    price: Decimal = Field(default=ZERO, ge=0)
    price_with_extras: Decimal = Field(default=ZERO, ge=0)
    price_without_extras: Decimal = Field(default=ZERO, ge=0)

    # Lifecycle
    status: ReservationStatus = ReservationStatus.IN_ATTESA
    payment_completed: bool = False
    invoice_number: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== QUERY METHODS ====================
    @property
    def display_name(self) -> str:
        if self.is_group and self.agency_group_name:
            return self.agency_group_name
        return self.guest_name or self.agency_group_name

    def date_range(self) -> Optional[DateRange]:
        """Stay interval, or None when the dates are missing or inverted"""
        if self.check_in_date is None or self.check_out_date is None:
            return None
        if self.check_out_date <= self.check_in_date:
            return None
        return DateRange(check_in=self.check_in_date, check_out=self.check_out_date)

    def blocks_rooms(self) -> bool:
        """Cancelled reservations never hold rooms"""
        return self.status != ReservationStatus.ANNULLATA

    def is_price_frozen(self) -> bool:
        return self.status == ReservationStatus.CONCLUSA

    def can_transition_to(self, new_status: ReservationStatus) -> bool:
        return new_status in STATUS_TRANSITIONS[self.status]

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, new_status: ReservationStatus) -> None:
        """Move along the lifecycle, refusing moves out of terminal states"""
        if new_status == self.status:
            return
        if not self.can_transition_to(new_status):
            raise ValueError(
                f"Cannot change status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        if new_status == ReservationStatus.CONCLUSA:
            self.payment_completed = True
        self._touch()

    def confirm(self) -> None:
        self.transition_to(ReservationStatus.CONFERMATA)

    def cancel(self) -> None:
        self.transition_to(ReservationStatus.ANNULLATA)

    def conclude(self) -> None:
        self.transition_to(ReservationStatus.CONCLUSA)

    # ==================== MODIFICATION METHODS ====================
    def add_extras(self, top_up: ExtrasSet, room: Optional[RoomId] = None) -> None:
        """Accumulate extras on one room (group) or on the stay (single)"""
        if self.is_price_frozen():
            raise ValueError("Cannot add extras to a concluded reservation")
        if self.status == ReservationStatus.ANNULLATA:
            raise ValueError("Cannot add extras to a cancelled reservation")
        if isinstance(self.extras, GroupExtras):
            if room is None or room not in self.room_numbers:
                raise ValueError(f"Room {room} is not part of this reservation")
        self.extras = self.extras.top_up(room, top_up)
        self._touch()

    def store_totals(
        self,
        price_without_extras: Decimal,
        price_with_extras: Decimal,
        price: Optional[Decimal] = None,
    ) -> None:
        """Write back totals computed by the pricing engine"""
        self.price_without_extras = price_without_extras
        self.price_with_extras = price_with_extras
        if price is not None:
            self.price = price
        self._touch()

    def align_price(self, base: Decimal, calculated_total: Decimal) -> None:
        """Drop the manual override and adopt the calculated total"""
        if self.is_price_frozen():
            raise ValueError("Cannot change the price of a concluded reservation")
        self.final_price_override = None
        self.store_totals(base, calculated_total, calculated_total)

    def _touch(self) -> None:
        self.modified_at = datetime.utcnow()
        self.version += 1


class Expense(BaseModel):
    """Operating expense of the property"""

    expense_id: str = Field(default_factory=_new_id)
    description: str
    amount: Decimal = Field(ge=0)
    expense_date: date
    category: str
    reservation_id: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True
