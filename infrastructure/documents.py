"""Mapping between stored documents and domain entities

Documents keep the camelCase layout of the remote store. Historical documents
come in several shapes (single ``roomNumber`` field, no pricing metadata,
string-keyed room maps, crib flags outside the extras); all of that is resolved
here, once, so the domain never has to ask "is this an old record?".
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from domain.coercion import (
    RoomId, ZERO, normalize_room_id, normalize_room_list, room_lookup,
    to_bool, to_date, to_int, to_money, to_optional_money,
)
from domain.entities import Expense, Reservation
from domain.enums import GroupPricingMode, ReservationStatus, SinglePricingMode
from domain.value_objects import (
    ExtrasSet, GroupExtras, LegacyPricing, PerNightPerRoomPricing, PerNightPricing,
    PerNightUniformPricing, SingleExtras, TotalForStayPricing, TotalPricing,
)

logger = logging.getLogger(__name__)

_EXTRAS_FIELDS = ("extraBar", "extraServizi", "petAllowed")


# ============================================================================
# RESERVATIONS
# ============================================================================

def reservation_from_document(document: Mapping[str, Any]) -> Reservation:
    """Build a Reservation from any generation of stored reservation document"""
    is_group = to_bool(document.get("isGroup"))
    rooms = normalize_room_list(document.get("roomNumbers"))
    if not rooms and document.get("roomNumber") not in (None, ""):
        rooms = normalize_room_list([document.get("roomNumber")])

    check_in = to_date(document.get("checkInDate"))
    check_out = to_date(document.get("checkOutDate"))
    if check_in is None or check_out is None:
        logger.warning("Reservation document %s has missing or malformed dates", document.get("id"))

    reservation = Reservation(
        is_group=is_group,
        guest_name=str(document.get("guestName") or ""),
        agency_group_name=str(document.get("agencyGroupName") or ""),
        phone_number=str(document.get("phoneNumber") or ""),
        total_people=max(0, to_int(document.get("totalPeople"))),
        additional_notes=str(document.get("additionalNotes") or ""),
        room_numbers=rooms,
        check_in_date=check_in,
        check_out_date=check_out,
        pricing=_pricing_from_document(document, is_group, rooms),
        room_prices=_money_map(document.get("roomPrices")),
        extras=_extras_from_document(document, is_group, rooms),
        deposit=to_money(document.get("deposit")),
        final_price_override=to_optional_money(document.get("finalPriceOverride")),
        price=to_money(document.get("price")),
        price_with_extras=to_money(document.get("priceWithExtras")),
        price_without_extras=to_money(document.get("priceWithoutExtras")),
        status=_status(document.get("status")),
        payment_completed=to_bool(document.get("paymentCompleted")),
        invoice_number=document.get("invoiceNumber") or None,
        version=max(1, to_int(document.get("version"))),
    )
    if document.get("id"):
        reservation.reservation_id = str(document["id"])
    created_at = _timestamp(document.get("createdAt"))
    if created_at is not None:
        reservation.created_at = created_at
    modified_at = _timestamp(document.get("updatedAt"))
    if modified_at is not None:
        reservation.modified_at = modified_at
    return reservation


def reservation_to_document(reservation: Reservation) -> Dict[str, Any]:
    """Serialize a Reservation into the store's document layout"""
    document: Dict[str, Any] = {
        "id": reservation.reservation_id,
        "isGroup": reservation.is_group,
        "guestName": reservation.guest_name,
        "agencyGroupName": reservation.agency_group_name,
        "phoneNumber": reservation.phone_number,
        "totalPeople": reservation.total_people,
        "additionalNotes": reservation.additional_notes,
        "roomNumbers": list(reservation.room_numbers),
        "checkInDate": reservation.check_in_date.isoformat() if reservation.check_in_date else None,
        "checkOutDate": reservation.check_out_date.isoformat() if reservation.check_out_date else None,
        "roomPrices": {str(room): _number(value) for room, value in reservation.room_prices.items()},
        "deposit": _number(reservation.deposit),
        "finalPriceOverride": (
            _number(reservation.final_price_override)
            if reservation.final_price_override is not None else None
        ),
        "price": _number(reservation.price),
        "priceWithExtras": _number(reservation.price_with_extras),
        "priceWithoutExtras": _number(reservation.price_without_extras),
        "status": reservation.status.value,
        "paymentCompleted": reservation.payment_completed,
        "invoiceNumber": reservation.invoice_number,
        "version": reservation.version,
        "createdAt": reservation.created_at.isoformat(),
        "updatedAt": reservation.modified_at.isoformat(),
    }
    document.update(_pricing_to_document(reservation))
    document.update(_extras_to_document(reservation))
    return document


def _status(value: Any) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        return ReservationStatus.IN_ATTESA


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _number(value: Decimal) -> float:
    # The store keeps plain JSON numbers
    return float(value)


def _money_map(values: Any) -> Dict[RoomId, Decimal]:
    result: Dict[RoomId, Decimal] = {}
    if not isinstance(values, Mapping):
        return result
    for key, value in values.items():
        room = normalize_room_id(key)
        if room is not None:
            result[room] = to_money(value)
    return result


def _money_or(value: Any, fallback: Decimal) -> Decimal:
    """Stored value when present, else the fallback"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return fallback
    return to_money(value)


def _pricing_from_document(document: Mapping[str, Any], is_group: bool, rooms):
    mode = document.get("pricingMode")
    room_prices = _money_map(document.get("roomPrices"))
    stored_base = to_money(document.get("priceWithoutExtras"))

    if is_group and mode in {m.value for m in GroupPricingMode}:
        details = document.get("groupPricing") or {}
        if mode == GroupPricingMode.PER_NIGHT_PER_ROOM.value:
            rates = _money_map(details.get("perRoomRates")) or room_prices
            return PerNightPerRoomPricing(rates={room: rates.get(room, ZERO) for room in rooms})
        if mode == GroupPricingMode.PER_NIGHT_UNIFORM.value:
            first_rate = next(iter(room_prices.values()), ZERO)
            return PerNightUniformPricing(rate=_money_or(details.get("uniformPerNight"), first_rate))
        return TotalForStayPricing(total=_money_or(details.get("totalForStay"), stored_base))

    if not is_group and mode in {m.value for m in SinglePricingMode}:
        details = document.get("singlePricing") or {}
        if mode == SinglePricingMode.PER_NIGHT.value:
            room_rate = room_prices.get(rooms[0], ZERO) if rooms else ZERO
            return PerNightPricing(price_per_night=_money_or(details.get("pricePerNight"), room_rate))
        return TotalPricing(total_for_stay=_money_or(details.get("totalForStay"), stored_base))

    # No (usable) pricing metadata: written before pricing modes existed
    return LegacyPricing(price_without_extras=stored_base)


def _pricing_to_document(reservation: Reservation) -> Dict[str, Any]:
    pricing = reservation.pricing
    if isinstance(pricing, LegacyPricing):
        return {"pricingMode": None, "singlePricing": None, "groupPricing": None}

    if reservation.is_group:
        return {
            "pricingMode": pricing.kind,
            "singlePricing": None,
            "groupPricing": {
                "mode": pricing.kind,
                "perRoomRates": (
                    {str(room): _number(rate) for room, rate in pricing.rates.items()}
                    if isinstance(pricing, PerNightPerRoomPricing) else {}
                ),
                "uniformPerNight": (
                    _number(pricing.rate) if isinstance(pricing, PerNightUniformPricing) else None
                ),
                "totalForStay": (
                    _number(pricing.total) if isinstance(pricing, TotalForStayPricing) else None
                ),
            },
        }

    return {
        "pricingMode": pricing.kind,
        "groupPricing": None,
        "singlePricing": {
            "mode": pricing.kind,
            "pricePerNight": (
                _number(pricing.price_per_night) if isinstance(pricing, PerNightPricing) else None
            ),
            "totalForStay": (
                _number(pricing.total_for_stay) if isinstance(pricing, TotalPricing) else None
            ),
        },
    }


def _extras_set(raw: Any, crib: bool) -> ExtrasSet:
    raw = raw if isinstance(raw, Mapping) else {}
    return ExtrasSet(
        extra_bar=to_money(raw.get("extraBar")),
        extra_servizi=to_money(raw.get("extraServizi")),
        pet_allowed=to_bool(raw.get("petAllowed")),
        crib=crib,
    )


def _extras_from_document(document: Mapping[str, Any], is_group: bool, rooms):
    raw_extras = document.get("extraPerRoom")
    raw_cribs = document.get("roomCribs")

    if is_group:
        return GroupExtras(per_room={
            room: _extras_set(room_lookup(raw_extras, room), to_bool(room_lookup(raw_cribs, room)))
            for room in rooms
        })

    if isinstance(raw_cribs, Mapping):
        crib = any(to_bool(value) for value in raw_cribs.values())
    else:
        crib = to_bool(raw_cribs)

    raw = raw_extras if isinstance(raw_extras, Mapping) else {}
    if rooms and not any(field in raw for field in _EXTRAS_FIELDS):
        # Some single bookings were saved with the extras keyed by their room
        raw = room_lookup(raw, rooms[0]) or {}
    return SingleExtras(extras=_extras_set(raw, crib))


def _extras_to_document(reservation: Reservation) -> Dict[str, Any]:
    extras = reservation.extras
    if isinstance(extras, GroupExtras):
        per_room = extras.by_room(reservation.room_numbers)
        return {
            "extraPerRoom": {
                str(room): {
                    "extraBar": _number(item.extra_bar),
                    "extraServizi": _number(item.extra_servizi),
                    "petAllowed": item.pet_allowed,
                }
                for room, item in per_room.items()
            },
            "roomCribs": {str(room): item.crib for room, item in per_room.items()},
        }

    item = extras.extras
    return {
        "extraPerRoom": {
            "extraBar": _number(item.extra_bar),
            "extraServizi": _number(item.extra_servizi),
            "petAllowed": item.pet_allowed,
        },
        "roomCribs": item.crib,
    }


# ============================================================================
# EXPENSES
# ============================================================================

def expense_from_document(document: Mapping[str, Any]) -> Expense:
    expense = Expense(
        description=str(document.get("description") or ""),
        amount=to_money(document.get("amount")),
        expense_date=to_date(document.get("date")) or datetime.utcnow().date(),
        category=str(document.get("category") or ""),
        reservation_id=document.get("reservationId") or None,
    )
    if document.get("id"):
        expense.expense_id = str(document["id"])
    created_at = _timestamp(document.get("createdAt"))
    if created_at is not None:
        expense.created_at = created_at
    return expense


def expense_to_document(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.expense_id,
        "description": expense.description,
        "amount": _number(expense.amount),
        "date": expense.expense_date.isoformat(),
        "category": expense.category,
        "reservationId": expense.reservation_id,
        "createdAt": expense.created_at.isoformat(),
    }
