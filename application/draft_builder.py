"""Form state -> canonical Reservation

The live price preview and the submit path both go through ReservationDraftBuilder,
so the figure shown while typing is the figure that gets saved.

Form state is whatever the client sends: strings (possibly empty), numbers,
string-keyed room maps. Recognised keys:

* ``is_group``, ``guest_name``, ``agency_group_name``, ``phone_number``,
  ``status``, ``payment_completed``, ``total_people``, ``additional_notes``
* ``check_in_date``, ``check_out_date``
* ``room_numbers`` (or a single ``room_number``)
* ``single_pricing_mode`` (``perNight`` | ``total``), ``single_price_per_night``,
  ``single_total_price``
* ``group_pricing_mode`` (``perNightPerRoom`` | ``perNightUniform`` |
  ``totalForStay``), ``group_per_room_rates``, ``group_uniform_per_night``,
  ``group_total_for_stay``
* ``single_extras`` (``extra_bar``, ``extra_servizi``, ``pet_allowed``, ``crib``),
  ``group_extras`` (room -> extras), ``group_cribs`` (room -> bool)
* ``deposit``, ``custom_price`` (manual override), ``price``,
  ``price_with_extras``, ``price_without_extras``, ``room_prices``
"""
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.coercion import (
    RoomId, ZERO, normalize_room_list, room_lookup, round2,
    to_bool, to_date, to_int, to_money, to_optional_money,
)
from domain.entities import Reservation
from domain.enums import GroupPricingMode, ReservationStatus, SinglePricingMode
from domain.pricing import nights_between
from domain.value_objects import (
    ExtrasSet, GroupExtras, LegacyPricing, PerNightPerRoomPricing, PerNightPricing,
    PerNightUniformPricing, RoomCatalogue, SingleExtras, TotalForStayPricing, TotalPricing,
)


class ReservationDraftBuilder:
    """Single parsing path from raw form state to a Reservation draft"""

    def __init__(self, catalogue: Optional[RoomCatalogue] = None):
        self.catalogue = catalogue

    def build(self, form: Mapping[str, Any]) -> Reservation:
        is_group = to_bool(form.get("is_group"))
        rooms = normalize_room_list(form.get("room_numbers"))
        if not rooms and form.get("room_number") not in (None, ""):
            rooms = normalize_room_list([form.get("room_number")])

        check_in = to_date(form.get("check_in_date"))
        check_out = to_date(form.get("check_out_date"))
        nights = nights_between(check_in, check_out)

        pricing = self._pricing(form, is_group, rooms)
        agency_group_name = str(form.get("agency_group_name") or "").strip()
        guest_name = agency_group_name if is_group else str(form.get("guest_name") or "").strip()

        draft = Reservation(
            is_group=is_group,
            guest_name=guest_name,
            agency_group_name=agency_group_name if is_group else "",
            phone_number=str(form.get("phone_number") or "").strip(),
            total_people=self._total_people(form, rooms),
            additional_notes=str(form.get("additional_notes") or "").strip(),
            room_numbers=rooms,
            check_in_date=check_in,
            check_out_date=check_out,
            pricing=pricing,
            room_prices=self._room_prices(form, pricing, rooms, nights),
            extras=self._extras(form, is_group, rooms),
            deposit=to_money(form.get("deposit")),
            final_price_override=to_optional_money(form.get("custom_price")),
            price=to_money(form.get("price")),
            price_with_extras=to_money(form.get("price_with_extras")),
            price_without_extras=to_money(form.get("price_without_extras")),
            status=_status(form.get("status")),
            payment_completed=to_bool(form.get("payment_completed")),
        )
        if form.get("reservation_id"):
            draft.reservation_id = str(form["reservation_id"])
        return draft

    def to_form(self, reservation: Reservation) -> Dict[str, Any]:
        """Form state that builds back into an equivalent reservation"""
        pricing = reservation.pricing
        form: Dict[str, Any] = {
            "reservation_id": reservation.reservation_id,
            "is_group": reservation.is_group,
            "guest_name": reservation.guest_name,
            "agency_group_name": reservation.agency_group_name,
            "phone_number": reservation.phone_number,
            "status": reservation.status.value,
            "payment_completed": reservation.payment_completed,
            "total_people": reservation.total_people,
            "additional_notes": reservation.additional_notes,
            "check_in_date": reservation.check_in_date.isoformat() if reservation.check_in_date else "",
            "check_out_date": reservation.check_out_date.isoformat() if reservation.check_out_date else "",
            "room_numbers": [str(room) for room in reservation.room_numbers],
            "room_prices": {str(room): str(value) for room, value in reservation.room_prices.items()},
            "deposit": str(reservation.deposit),
            "custom_price": (
                str(reservation.final_price_override)
                if reservation.final_price_override is not None else ""
            ),
            "price": str(reservation.price),
            "price_with_extras": str(reservation.price_with_extras),
            "price_without_extras": str(reservation.price_without_extras),
            "single_pricing_mode": None,
            "group_pricing_mode": None,
        }

        if isinstance(pricing, LegacyPricing):
            form["price_without_extras"] = str(pricing.price_without_extras)
        elif reservation.is_group:
            form["group_pricing_mode"] = pricing.kind
            if isinstance(pricing, PerNightPerRoomPricing):
                form["group_per_room_rates"] = {str(room): str(rate) for room, rate in pricing.rates.items()}
            elif isinstance(pricing, PerNightUniformPricing):
                form["group_uniform_per_night"] = str(pricing.rate)
            elif isinstance(pricing, TotalForStayPricing):
                form["group_total_for_stay"] = str(pricing.total)
        else:
            form["single_pricing_mode"] = pricing.kind
            if isinstance(pricing, PerNightPricing):
                form["single_price_per_night"] = str(pricing.price_per_night)
            elif isinstance(pricing, TotalPricing):
                form["single_total_price"] = str(pricing.total_for_stay)

        extras = reservation.extras
        if isinstance(extras, GroupExtras):
            per_room = extras.by_room(reservation.room_numbers)
            form["group_extras"] = {
                str(room): {
                    "extra_bar": str(item.extra_bar),
                    "extra_servizi": str(item.extra_servizi),
                    "pet_allowed": item.pet_allowed,
                }
                for room, item in per_room.items()
            }
            form["group_cribs"] = {str(room): item.crib for room, item in per_room.items()}
        else:
            form["single_extras"] = {
                "extra_bar": str(extras.extras.extra_bar),
                "extra_servizi": str(extras.extras.extra_servizi),
                "pet_allowed": extras.extras.pet_allowed,
                "crib": extras.extras.crib,
            }
        return form

    # ==================== PRIVATE HELPERS ====================
    def _pricing(self, form: Mapping[str, Any], is_group: bool, rooms: List[RoomId]):
        mode = form.get("group_pricing_mode" if is_group else "single_pricing_mode")
        if not mode:
            # Drafts loaded from records that predate pricing modes
            if form.get("price_without_extras") not in (None, ""):
                return LegacyPricing(price_without_extras=to_money(form.get("price_without_extras")))
            mode = (
                GroupPricingMode.PER_NIGHT_PER_ROOM.value if is_group
                else SinglePricingMode.PER_NIGHT.value
            )

        if is_group:
            if mode == GroupPricingMode.PER_NIGHT_UNIFORM.value:
                return PerNightUniformPricing(rate=to_money(form.get("group_uniform_per_night")))
            if mode == GroupPricingMode.TOTAL_FOR_STAY.value:
                return TotalForStayPricing(total=to_money(form.get("group_total_for_stay")))
            rates = form.get("group_per_room_rates") or {}
            return PerNightPerRoomPricing(
                rates={room: to_money(room_lookup(rates, room)) for room in rooms}
            )

        if mode == SinglePricingMode.TOTAL.value:
            return TotalPricing(total_for_stay=to_money(form.get("single_total_price")))
        return PerNightPricing(price_per_night=to_money(form.get("single_price_per_night")))

    def _room_prices(self, form, pricing, rooms: List[RoomId], nights: int) -> Dict[RoomId, Decimal]:
        """Per-night rate table stored alongside the pricing mode"""
        if isinstance(pricing, PerNightPerRoomPricing):
            return dict(pricing.rates)
        if isinstance(pricing, PerNightUniformPricing):
            return {room: pricing.rate for room in rooms}
        if isinstance(pricing, PerNightPricing):
            return {room: pricing.price_per_night for room in rooms}
        if isinstance(pricing, TotalForStayPricing):
            divisor = nights * len(rooms)
            per_night = round2(pricing.total / divisor) if divisor > 0 else ZERO
            return {room: per_night for room in rooms}
        if isinstance(pricing, TotalPricing):
            per_night = round2(pricing.total_for_stay / nights) if nights > 0 else ZERO
            return {room: per_night for room in rooms}

        raw = form.get("room_prices") or {}
        return {room: to_money(room_lookup(raw, room)) for room in rooms if room_lookup(raw, room) is not None}

    def _extras(self, form: Mapping[str, Any], is_group: bool, rooms: List[RoomId]):
        if is_group:
            raw_extras = form.get("group_extras") or {}
            raw_cribs = form.get("group_cribs") or {}
            per_room = {}
            for room in rooms:
                raw = room_lookup(raw_extras, room)
                crib = room_lookup(raw_cribs, room)
                if crib is None and isinstance(raw, Mapping):
                    crib = raw.get("crib")
                per_room[room] = _extras_set(raw, to_bool(crib))
            return GroupExtras(per_room=per_room)

        raw = form.get("single_extras") or {}
        crib = raw.get("crib") if isinstance(raw, Mapping) else None
        if crib is None:
            crib = form.get("room_cribs")
        return SingleExtras(extras=_extras_set(raw, to_bool(crib)))

    def _total_people(self, form: Mapping[str, Any], rooms: List[RoomId]) -> int:
        explicit = max(0, to_int(form.get("total_people")))
        if explicit > 0 or self.catalogue is None:
            return explicit
        return self.catalogue.suggested_occupancy(rooms)


def _extras_set(raw: Any, crib: bool) -> ExtrasSet:
    raw = raw if isinstance(raw, Mapping) else {}
    return ExtrasSet(
        extra_bar=to_money(raw.get("extra_bar")),
        extra_servizi=to_money(raw.get("extra_servizi")),
        pet_allowed=to_bool(raw.get("pet_allowed")),
        crib=crib,
    )


def _status(value: Any) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        return ReservationStatus.IN_ATTESA
