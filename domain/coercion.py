"""Total conversions for loosely typed input (form fields, stored documents)

Every function here accepts anything and never raises: unusable input maps to a
neutral value (0, None, False) so that callers never see NaN-like states.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Union

RoomId = Union[int, str]

ZERO = Decimal("0")
CENT = Decimal("0.01")
# Amounts at or beyond this are treated as unusable input
MAX_AMOUNT = Decimal("1e12")

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S")


def round2(value: Decimal) -> Decimal:
    """Round to the cent, half away from zero"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Convert to Decimal; None, blanks, garbage, NaN, infinities and absurd magnitudes become 0"""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(" ", "")
        if not text:
            return ZERO
        # Italian input uses a comma as decimal separator
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return ZERO
    if not result.is_finite() or abs(result) >= MAX_AMOUNT:
        return ZERO
    return result


def to_money(value: Any) -> Decimal:
    """Like to_decimal, clamped at zero"""
    return max(ZERO, to_decimal(value))


def to_optional_money(value: Any) -> Optional[Decimal]:
    """None for an absent value (None or blank string), else to_money"""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return to_money(value)


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on", "si", "sì")
    return bool(value)


def to_int(value: Any) -> int:
    try:
        return int(to_decimal(value))
    except (ValueError, OverflowError):
        return 0


def to_date(value: Any) -> Optional[date]:
    """Calendar date of a date/datetime/ISO string; time of day is dropped"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        try:
            return to_datetime().date()
        except (TypeError, ValueError, AttributeError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_room_id(value: Any) -> Optional[RoomId]:
    """Room numbers become ints where parseable, other labels stay strings"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return text


def normalize_room_list(values: Any) -> List[RoomId]:
    """Ordered, de-duplicated list of normalized room ids"""
    if values is None:
        return []
    if isinstance(values, (str, int)):
        values = [values]
    rooms: List[RoomId] = []
    for value in values if isinstance(values, Iterable) else []:
        room = normalize_room_id(value)
        if room is not None and room not in rooms:
            rooms.append(room)
    return rooms


def room_lookup(mapping: Any, room: RoomId) -> Any:
    """Fetch a per-room value whether the map is keyed by int or by string"""
    if not isinstance(mapping, dict):
        return None
    if room in mapping:
        return mapping[room]
    return mapping.get(str(room))
