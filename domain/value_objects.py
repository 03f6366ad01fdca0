"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Union

from domain.coercion import RoomId, ZERO

# Flat charge for a pet or a crib; the only place this amount is defined
FLAT_EXTRA_SURCHARGE = Decimal("10")

SINGLE_EXTRAS_KEY = "single"


class DateRange(BaseModel):
    """Value Object for a stay, half-open: [check_in, check_out)"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        return self.check_in < other.check_out and self.check_out > other.check_in

    class Config:
        frozen = True


class ExtrasSet(BaseModel):
    """Chargeable add-ons for one room (or for a whole single booking)"""
    extra_bar: Decimal = Field(default=ZERO, ge=0)
    extra_servizi: Decimal = Field(default=ZERO, ge=0)
    pet_allowed: bool = False
    crib: bool = False

    class Config:
        frozen = True

    def total(self) -> Decimal:
        surcharges = (FLAT_EXTRA_SURCHARGE if self.pet_allowed else ZERO) + (
            FLAT_EXTRA_SURCHARGE if self.crib else ZERO
        )
        return self.extra_bar + self.extra_servizi + surcharges

    def add(self, top_up: "ExtrasSet") -> "ExtrasSet":
        """Amounts accumulate, flags can only be switched on"""
        return ExtrasSet(
            extra_bar=self.extra_bar + top_up.extra_bar,
            extra_servizi=self.extra_servizi + top_up.extra_servizi,
            pet_allowed=self.pet_allowed or top_up.pet_allowed,
            crib=self.crib or top_up.crib,
        )


class SingleExtras(BaseModel):
    """Extras of a single-room booking: one scalar set"""
    kind: Literal["single"] = "single"
    extras: ExtrasSet = Field(default_factory=ExtrasSet)

    class Config:
        frozen = True

    def by_room(self, room_numbers: List[RoomId]) -> Dict[RoomId, ExtrasSet]:
        return {SINGLE_EXTRAS_KEY: self.extras}

    def top_up(self, room: RoomId, extra: ExtrasSet) -> "SingleExtras":
        return SingleExtras(extras=self.extras.add(extra))


class GroupExtras(BaseModel):
    """Extras of a group booking: one set per room"""
    kind: Literal["group"] = "group"
    per_room: Dict[RoomId, ExtrasSet] = {}

    class Config:
        frozen = True

    def by_room(self, room_numbers: List[RoomId]) -> Dict[RoomId, ExtrasSet]:
        return {room: self.per_room.get(room, ExtrasSet()) for room in room_numbers}

    def top_up(self, room: RoomId, extra: ExtrasSet) -> "GroupExtras":
        per_room = dict(self.per_room)
        per_room[room] = per_room.get(room, ExtrasSet()).add(extra)
        return GroupExtras(per_room=per_room)


Extras = Annotated[Union[SingleExtras, GroupExtras], Field(discriminator="kind")]


# ==================== PRICING MODES ====================

class PerNightPricing(BaseModel):
    kind: Literal["perNight"] = "perNight"
    price_per_night: Decimal = Field(default=ZERO, ge=0)

    class Config:
        frozen = True


class TotalPricing(BaseModel):
    kind: Literal["total"] = "total"
    total_for_stay: Decimal = Field(default=ZERO, ge=0)

    class Config:
        frozen = True


class PerNightPerRoomPricing(BaseModel):
    kind: Literal["perNightPerRoom"] = "perNightPerRoom"
    rates: Dict[RoomId, Decimal] = {}

    class Config:
        frozen = True


class PerNightUniformPricing(BaseModel):
    kind: Literal["perNightUniform"] = "perNightUniform"
    rate: Decimal = Field(default=ZERO, ge=0)

    class Config:
        frozen = True


class TotalForStayPricing(BaseModel):
    kind: Literal["totalForStay"] = "totalForStay"
    total: Decimal = Field(default=ZERO, ge=0)

    class Config:
        frozen = True


class LegacyPricing(BaseModel):
    """Record saved before pricing modes existed: only the flat base survives"""
    kind: Literal["legacy"] = "legacy"
    price_without_extras: Decimal = Field(default=ZERO, ge=0)

    class Config:
        frozen = True


PricingMode = Annotated[
    Union[
        PerNightPricing,
        TotalPricing,
        PerNightPerRoomPricing,
        PerNightUniformPricing,
        TotalForStayPricing,
        LegacyPricing,
    ],
    Field(discriminator="kind"),
]

SINGLE_PRICING_KINDS = ("perNight", "total")
GROUP_PRICING_KINDS = ("perNightPerRoom", "perNightUniform", "totalForStay")


class RoomCatalogue(BaseModel):
    """Static room list of the property with capacities per room type"""
    room_types: Dict[int, str]
    capacities: Dict[str, int] = {}

    class Config:
        frozen = True

    def rooms(self) -> List[int]:
        return sorted(self.room_types)

    def room_type(self, room: RoomId) -> str:
        return self.room_types.get(room, "")

    def capacity(self, room: RoomId) -> int:
        return self.capacities.get(self.room_type(room), 0)

    def suggested_occupancy(self, rooms: List[RoomId]) -> int:
        """Total guests the selected rooms can host"""
        return sum(self.capacity(room) for room in rooms)
