"""Reservation pricing: base price, extras and reconciliation with the saved price

Saved reservations come from two generations of write paths. Older ones stored a
``price`` that already contained the extras, newer ones may store the base only.
Nothing records which convention a document follows, so the engine infers it by
comparing the saved price with ``base + extras`` (see ``PriceInclusionPolicy``).
"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel

from domain.coercion import RoomId, ZERO, round2
from domain.entities import Reservation
from domain.value_objects import (
    ExtrasSet,
    LegacyPricing,
    PerNightPerRoomPricing,
    PerNightPricing,
    PerNightUniformPricing,
    TotalForStayPricing,
    TotalPricing,
)

INCLUSION_EPSILON = Decimal("0.01")


def nights_between(check_in: Optional[date], check_out: Optional[date]) -> int:
    """Whole nights between two calendar dates, never negative"""
    if check_in is None or check_out is None:
        return 0
    return max(0, (check_out - check_in).days)


class PriceInclusionPolicy(ABC):
    """Decides whether a final price already contains the extras"""

    @abstractmethod
    def includes_extras(self, final_price: Decimal, base: Decimal, extras_total: Decimal) -> bool:
        pass


class EpsilonPriceInclusionPolicy(PriceInclusionPolicy):
    """Price includes extras when it matches base + extras to within a cent.

    Heuristic: when extras are zero the comparison degenerates to price == base.
    """

    def __init__(self, epsilon: Decimal = INCLUSION_EPSILON):
        self.epsilon = epsilon

    def includes_extras(self, final_price: Decimal, base: Decimal, extras_total: Decimal) -> bool:
        return abs(final_price - (base + extras_total)) < self.epsilon


class RoomExtrasBreakdown(BaseModel):
    extra_bar: Decimal
    extra_servizi: Decimal
    pet_allowed: bool
    crib: bool
    total: Decimal

    class Config:
        frozen = True


class PricingSummary(BaseModel):
    """Everything a caller needs to display or persist the price of a reservation"""
    pricing_kind: str
    nights: int
    base: Decimal
    extras_total: Decimal
    per_room_extras: Dict[RoomId, RoomExtrasBreakdown]
    calculated_total: Decimal
    saved_price: Decimal
    final_price: Decimal
    final_price_includes_extras: bool
    extras_applied_to_due: Decimal
    amount_due_basis: Decimal
    deposit: Decimal
    amount_due: Decimal

    class Config:
        frozen = True


class PricingEngine:
    """Pure pricing calculator; never touches the reservation it is given"""

    def __init__(self, inclusion_policy: Optional[PriceInclusionPolicy] = None):
        self.inclusion_policy = inclusion_policy or EpsilonPriceInclusionPolicy()

    def summarize(self, reservation: Reservation) -> PricingSummary:
        nights = nights_between(reservation.check_in_date, reservation.check_out_date)
        base = self.base_price(reservation, nights)
        extras_total, per_room = self.extras(reservation)
        stay_total = base + extras_total

        calculated_total = round2(max(reservation.price_with_extras, stay_total))
        saved_price = round2(reservation.price)

        if reservation.final_price_override is not None:
            final_price = round2(reservation.final_price_override)
        elif saved_price > 0:
            final_price = saved_price
        else:
            final_price = calculated_total

        includes = self.inclusion_policy.includes_extras(final_price, base, extras_total)
        applied = extras_total if not includes and extras_total > 0 else ZERO
        amount_due_basis = round2(final_price + applied)
        deposit = round2(reservation.deposit)

        return PricingSummary(
            pricing_kind=reservation.pricing.kind,
            nights=nights,
            base=round2(base),
            extras_total=round2(extras_total),
            per_room_extras=per_room,
            calculated_total=calculated_total,
            saved_price=saved_price,
            final_price=final_price,
            final_price_includes_extras=includes,
            extras_applied_to_due=round2(applied),
            amount_due_basis=amount_due_basis,
            deposit=deposit,
            amount_due=max(ZERO, round2(amount_due_basis - deposit)),
        )

    def base_price(self, reservation: Reservation, nights: int) -> Decimal:
        """Room price before extras, unrounded"""
        pricing = reservation.pricing
        # Legacy records carry no mode; their stored base is authoritative
        if isinstance(pricing, LegacyPricing):
            return pricing.price_without_extras

        if isinstance(pricing, PerNightPricing):
            return pricing.price_per_night * nights
        if isinstance(pricing, TotalPricing):
            return pricing.total_for_stay
        if isinstance(pricing, PerNightPerRoomPricing):
            return sum(
                (pricing.rates.get(room, ZERO) * nights for room in reservation.room_numbers),
                ZERO,
            )
        if isinstance(pricing, PerNightUniformPricing):
            return pricing.rate * nights * len(reservation.room_numbers)
        if isinstance(pricing, TotalForStayPricing):
            return pricing.total
        return ZERO

    def extras(self, reservation: Reservation):
        """Extras total (unrounded) and the per-room breakdown"""
        per_room: Dict[RoomId, RoomExtrasBreakdown] = {}
        total = ZERO
        for room, extras in reservation.extras.by_room(reservation.room_numbers).items():
            per_room[room] = _breakdown(extras)
            total += extras.total()
        return total, per_room

    def apply_to(self, reservation: Reservation, summary: PricingSummary, update_price: bool = True) -> None:
        """Write the derived totals back, the way every save path stores them"""
        reservation.store_totals(
            price_without_extras=summary.base,
            price_with_extras=round2(summary.base + summary.extras_total),
            price=summary.final_price if update_price else None,
        )


def _breakdown(extras: ExtrasSet) -> RoomExtrasBreakdown:
    return RoomExtrasBreakdown(
        extra_bar=round2(extras.extra_bar),
        extra_servizi=round2(extras.extra_servizi),
        pet_allowed=extras.pet_allowed,
        crib=extras.crib,
        total=round2(extras.total()),
    )
