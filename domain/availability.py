"""Room availability for a candidate stay"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel

from domain.coercion import RoomId, to_date
from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.value_objects import SINGLE_EXTRAS_KEY, RoomCatalogue

logger = logging.getLogger(__name__)


class ConflictInfo(BaseModel):
    """Reference to a reservation occupying a room; deliberately not the full record"""
    reservation_id: str
    guest_name: str = ""
    agency_group_name: str = ""
    is_group: bool = False
    status: ReservationStatus
    check_in_date: date
    check_out_date: date

    class Config:
        frozen = True


class AvailabilityResult(BaseModel):
    conflicts: Dict[RoomId, List[ConflictInfo]] = {}
    available_rooms: List[RoomId] = []

    class Config:
        frozen = True

    def is_available(self, room: RoomId) -> bool:
        return room in self.available_rooms

    def conflicting_rooms(self, rooms: Iterable[RoomId]) -> List[RoomId]:
        return [room for room in rooms if self.conflicts.get(room)]


class AvailabilityResolver:
    """Maps every room to the reservations overlapping a candidate interval.

    Advisory only: nothing here locks rooms, so two writers that both saw a
    room as free can still both book it.
    """

    def __init__(self, catalogue: RoomCatalogue):
        self.catalogue = catalogue

    def resolve(
        self,
        candidate_start: Any,
        candidate_end: Any,
        reservations: Iterable[Reservation],
        exclude_id: Optional[str] = None,
    ) -> AvailabilityResult:
        start = to_date(candidate_start)
        end = to_date(candidate_end)
        # An unusable range must never read as "everything is free"
        if start is None or end is None or end <= start:
            return AvailabilityResult(conflicts={}, available_rooms=[])

        conflicts: Dict[RoomId, List[ConflictInfo]] = {}
        for reservation in reservations:
            if not reservation.blocks_rooms():
                continue
            if exclude_id is not None and reservation.reservation_id == exclude_id:
                continue

            existing_start = reservation.check_in_date
            existing_end = reservation.check_out_date
            if reservation.date_range() is None:
                logger.warning(
                    "Skipping reservation %s in availability check: missing or malformed dates",
                    reservation.reservation_id,
                )
                continue

            if not (existing_start < end and existing_end > start):
                continue

            info = ConflictInfo(
                reservation_id=reservation.reservation_id,
                guest_name=reservation.guest_name,
                agency_group_name=reservation.agency_group_name,
                is_group=reservation.is_group,
                status=reservation.status,
                check_in_date=existing_start,
                check_out_date=existing_end,
            )
            for room in reservation.room_numbers:
                conflicts.setdefault(room, []).append(info)

        available = [room for room in self.catalogue.rooms() if not conflicts.get(room)]
        return AvailabilityResult(conflicts=conflicts, available_rooms=available)

    def daily_status(self, target: date, reservations: Iterable[Reservation]) -> "DailyRoomStatus":
        """Front-desk view of one calendar day: arrivals, departures, stayovers and free rooms"""
        status = DailyRoomStatus(day=target)
        occupied = set()
        for reservation in reservations:
            if not reservation.blocks_rooms():
                continue
            check_in = reservation.check_in_date
            check_out = reservation.check_out_date
            if reservation.date_range() is None:
                continue

            if check_in < target and check_out == target:
                bucket = status.checking_out
            elif check_in == target:
                bucket = status.checking_in
            elif check_in < target < check_out:
                bucket = status.staying
            else:
                continue

            per_room = reservation.extras.by_room(reservation.room_numbers)
            for room in reservation.room_numbers:
                if bucket is not status.checking_out:
                    occupied.add(room)
                bucket.append(RoomOccupancy(
                    room=room,
                    room_type=self.catalogue.room_type(room),
                    reservation_id=reservation.reservation_id,
                    guest_name=reservation.display_name,
                    total_people=reservation.total_people,
                    check_out_date=check_out,
                    additional_notes=reservation.additional_notes,
                    extras=_extras_labels(per_room.get(room, per_room.get(SINGLE_EXTRAS_KEY))),
                ))

        for bucket in (status.staying, status.checking_in, status.checking_out):
            bucket.sort(key=lambda item: _room_sort_key(item.room))
        status.available = [room for room in self.catalogue.rooms() if room not in occupied]
        return status


class RoomOccupancy(BaseModel):
    room: RoomId
    room_type: str = ""
    reservation_id: str
    guest_name: str = ""
    total_people: int = 0
    check_out_date: date
    additional_notes: str = ""
    extras: List[str] = []


class DailyRoomStatus(BaseModel):
    day: date
    staying: List[RoomOccupancy] = []
    checking_in: List[RoomOccupancy] = []
    checking_out: List[RoomOccupancy] = []
    available: List[RoomId] = []


def _extras_labels(extras) -> List[str]:
    if extras is None:
        return []
    labels = []
    if extras.pet_allowed:
        labels.append("Pet")
    if extras.extra_bar > 0:
        labels.append(f"Bar: {extras.extra_bar}")
    if extras.extra_servizi > 0:
        labels.append(f"Servizi: {extras.extra_servizi}")
    if extras.crib:
        labels.append("Culla")
    return labels


def _room_sort_key(room: RoomId):
    return (0, room, "") if isinstance(room, int) else (1, 0, str(room))
