"""Application Services - Business use cases"""
import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from application.draft_builder import ReservationDraftBuilder
from domain.availability import AvailabilityResolver, AvailabilityResult, DailyRoomStatus
from domain.coercion import RoomId, ZERO, round2, to_date
from domain.entities import Expense, Reservation
from domain.enums import ReservationStatus
from domain.invoicing import InvoiceIssuer
from domain.pricing import PricingEngine, PricingSummary
from domain.repositories import ExpenseRepository, ReservationRepository
from domain.value_objects import ExtrasSet

logger = logging.getLogger(__name__)


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self,
                 repository: ReservationRepository,
                 resolver: AvailabilityResolver,
                 engine: Optional[PricingEngine] = None,
                 builder: Optional[ReservationDraftBuilder] = None,
                 invoice_issuer: Optional[InvoiceIssuer] = None):
        self.repository = repository
        self.resolver = resolver
        self.engine = engine or PricingEngine()
        self.builder = builder or ReservationDraftBuilder(resolver.catalogue)
        self.invoice_issuer = invoice_issuer

    # ==================== PREVIEW ====================
    def preview(self, form: Mapping[str, Any]) -> Tuple[Reservation, PricingSummary]:
        """Live price of the form being edited; nothing is stored"""
        draft = self.builder.build(form)
        return draft, self.engine.summarize(draft)

    async def pricing_summary(self, reservation_id: str) -> Optional[PricingSummary]:
        """Reconciled price of a stored reservation"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None
        return self.engine.summarize(reservation)

    # ==================== CRUD ====================
    async def create_reservation(self, form: Mapping[str, Any]) -> Reservation:
        """Create new reservation with full validation"""
        draft = self.builder.build(form)
        self._validate(draft)

        summary = self._submit_summary(draft)
        if summary.base <= 0:
            raise ValueError("Price must be greater than zero")
        await self._ensure_rooms_free(draft)

        if draft.status == ReservationStatus.CONCLUSA:
            draft.payment_completed = True
        self.engine.apply_to(draft, summary)
        saved = await self.repository.save(draft)
        logger.info(
            "Created reservation %s for %s: rooms %s, %s -> %s, price %s",
            saved.reservation_id, saved.display_name, saved.room_numbers,
            saved.check_in_date, saved.check_out_date, saved.price,
        )
        if saved.status == ReservationStatus.CONCLUSA:
            saved = await self._issue_invoice(saved)
        return saved

    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_all_reservations(
        self,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        """All reservations, most recent check-in first"""
        reservations = await self.repository.find_all()
        if status is not None:
            reservations = [r for r in reservations if r.status == status]
        return sorted(
            reservations,
            key=lambda r: r.check_in_date or date.min,
            reverse=True,
        )

    async def update_reservation(
        self,
        reservation_id: str,
        form: Mapping[str, Any],
    ) -> Optional[Reservation]:
        """Replace a reservation with the submitted form state"""
        existing = await self.repository.find_by_id(reservation_id)
        if not existing:
            return None
        if existing.is_price_frozen():
            raise ValueError("Cannot modify reservation: it is already concluded")

        draft = self.builder.build(form)
        draft.reservation_id = existing.reservation_id
        draft.created_at = existing.created_at
        draft.version = existing.version
        draft.invoice_number = existing.invoice_number

        # A form without a status keeps the stored one
        requested_status = draft.status if form.get("status") else existing.status
        draft.status = existing.status
        try:
            self._validate(draft)
            summary = self._submit_summary(draft)
            if summary.base <= 0:
                raise ValueError("Price must be greater than zero")
            draft.transition_to(requested_status)
        except ValueError as e:
            raise ValueError(f"Cannot modify reservation: {str(e)}")

        await self._ensure_rooms_free(draft, exclude_id=reservation_id)
        self.engine.apply_to(draft, summary)
        updated = await self.repository.update(draft)
        logger.info("Updated reservation %s (version %s)", updated.reservation_id, updated.version)

        if updated.status == ReservationStatus.CONCLUSA and existing.status != ReservationStatus.CONCLUSA:
            updated = await self._issue_invoice(updated)
        return updated

    async def delete_reservation(self, reservation_id: str) -> bool:
        deleted = await self.repository.delete(reservation_id)
        if deleted:
            logger.info("Deleted reservation %s", reservation_id)
        return deleted

    # ==================== QUICK EDITS ====================
    async def change_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
    ) -> Optional[Reservation]:
        """Move a reservation along its lifecycle"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        previous = reservation.status
        try:
            reservation.transition_to(new_status)
        except ValueError as e:
            raise ValueError(f"Cannot change status: {str(e)}")

        summary = self.engine.summarize(reservation)
        updated = await self.repository.update(reservation)
        logger.info(
            "Reservation %s status %s -> %s",
            reservation_id, previous.value, updated.status.value,
        )

        if updated.status == ReservationStatus.CONCLUSA and previous != ReservationStatus.CONCLUSA:
            updated = await self._issue_invoice(updated, summary)
        return updated

    async def add_extras(
        self,
        reservation_id: str,
        top_up: ExtrasSet,
        room: Optional[RoomId] = None,
    ) -> Optional[Reservation]:
        """Top up bar/services amounts and switch on pet or crib"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        before = self.engine.summarize(reservation)
        try:
            reservation.add_extras(top_up, room)
        except ValueError as e:
            raise ValueError(f"Cannot add extras: {str(e)}")

        after = self.engine.summarize(reservation)
        self.engine.apply_to(reservation, after, update_price=False)
        # A price that already held the extras keeps holding them
        if reservation.final_price_override is None and before.final_price_includes_extras:
            reservation.price = after.calculated_total

        updated = await self.repository.update(reservation)
        logger.info(
            "Added extras to reservation %s (room %s): extras total %s -> %s",
            reservation_id, room, before.extras_total, after.extras_total,
        )
        return updated

    async def align_price(self, reservation_id: str) -> Optional[Reservation]:
        """Replace the saved price with the calculated total"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        summary = self.engine.summarize(reservation)
        try:
            reservation.align_price(summary.base, summary.calculated_total)
        except ValueError as e:
            raise ValueError(f"Cannot align price: {str(e)}")

        updated = await self.repository.update(reservation)
        logger.info("Aligned price of reservation %s to %s", reservation_id, updated.price)
        return updated

    # ==================== PRIVATE HELPERS ====================
    def _validate(self, draft: Reservation) -> None:
        if draft.is_group and not draft.agency_group_name:
            raise ValueError("Agency or group name is required")
        if not draft.is_group and not draft.guest_name:
            raise ValueError("Guest name is required")
        if draft.check_in_date is None or draft.check_out_date is None:
            raise ValueError("Check-in and check-out dates are required")
        if draft.date_range() is None:
            raise ValueError("Check-out must be after check-in")
        if not draft.room_numbers:
            raise ValueError("At least one room is required")
        if not draft.is_group and len(draft.room_numbers) > 1:
            raise ValueError("A single reservation can hold only one room")

        known = set(self.resolver.catalogue.rooms())
        unknown = [room for room in draft.room_numbers if room not in known]
        if unknown:
            raise ValueError(f"Unknown rooms: {', '.join(str(room) for room in unknown)}")

    def _submit_summary(self, draft: Reservation) -> PricingSummary:
        """Submitted forms are priced fresh: override, else the calculated total"""
        draft.price = ZERO
        draft.price_with_extras = ZERO
        return self.engine.summarize(draft)

    async def _ensure_rooms_free(self, draft: Reservation, exclude_id: Optional[str] = None) -> None:
        if not draft.blocks_rooms():
            return
        result = self.resolver.resolve(
            draft.check_in_date,
            draft.check_out_date,
            await self.repository.find_all(),
            exclude_id=exclude_id,
        )
        taken = result.conflicting_rooms(draft.room_numbers)
        if taken:
            raise ValueError(
                f"Rooms not available for the selected dates: {', '.join(str(room) for room in taken)}"
            )

    async def _issue_invoice(
        self,
        reservation: Reservation,
        summary: Optional[PricingSummary] = None,
    ) -> Reservation:
        if self.invoice_issuer is None:
            return reservation
        summary = summary or self.engine.summarize(reservation)
        try:
            invoice_number = await self.invoice_issuer.issue(reservation, summary)
        except Exception:
            logger.exception("Invoice issuance failed for reservation %s", reservation.reservation_id)
            return reservation

        if invoice_number:
            reservation.invoice_number = invoice_number
            reservation = await self.repository.update(reservation)
            logger.info("Reservation %s invoiced as %s", reservation.reservation_id, invoice_number)
        return reservation


class AvailabilityService:
    """Service for Availability business use cases"""

    def __init__(self, repository: ReservationRepository, resolver: AvailabilityResolver):
        self.repository = repository
        self.resolver = resolver

    async def check_availability(
        self,
        check_in: Any,
        check_out: Any,
        exclude_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Rooms free for the stay, plus who holds the others"""
        reservations = await self.repository.find_all()
        return self.resolver.resolve(check_in, check_out, reservations, exclude_id=exclude_id)

    async def daily_room_status(self, day: Any) -> DailyRoomStatus:
        target = to_date(day)
        if target is None:
            raise ValueError("Invalid date")
        reservations = await self.repository.find_all()
        return self.resolver.daily_status(target, reservations)


class ExpenseService:
    """Service for Expense business use cases"""

    def __init__(self, repository: ExpenseRepository):
        self.repository = repository

    async def add_expense(
        self,
        description: str,
        amount: Decimal,
        expense_date: date,
        category: str,
        reservation_id: Optional[str] = None,
    ) -> Expense:
        if not description or not description.strip():
            raise ValueError("Description is required")
        if not category or not category.strip():
            raise ValueError("Category is required")
        expense = Expense(
            description=description.strip(),
            amount=round2(amount),
            expense_date=expense_date,
            category=category.strip(),
            reservation_id=reservation_id,
        )
        saved = await self.repository.save(expense)
        logger.info("Recorded expense %s: %s %s", saved.expense_id, saved.category, saved.amount)
        return saved

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        return await self.repository.find_by_id(expense_id)

    async def get_all_expenses(self) -> List[Expense]:
        """Newest first"""
        expenses = await self.repository.find_all()
        return sorted(expenses, key=lambda e: (e.expense_date, e.created_at), reverse=True)

    async def update_expense(self, expense_id: str, **changes) -> Optional[Expense]:
        expense = await self.repository.find_by_id(expense_id)
        if not expense:
            return None

        values = expense.model_dump()
        values.update({key: value for key, value in changes.items() if value is not None})
        if "amount" in changes and changes["amount"] is not None:
            values["amount"] = round2(changes["amount"])
        try:
            updated = Expense(**values)
        except ValueError as e:
            raise ValueError(f"Cannot update expense: {str(e)}")
        return await self.repository.update(updated)

    async def delete_expense(self, expense_id: str) -> bool:
        return await self.repository.delete(expense_id)

    async def totals_by_category(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for expense in await self.repository.find_all():
            if _within(expense.expense_date, start, end):
                totals[expense.category] += expense.amount
        return {category: round2(total) for category, total in sorted(totals.items())}


class ReportService:
    """Revenue, expenses and profit over a period"""

    def __init__(
        self,
        reservation_repository: ReservationRepository,
        expense_repository: ExpenseRepository,
        engine: Optional[PricingEngine] = None,
    ):
        self.reservation_repository = reservation_repository
        self.expense_repository = expense_repository
        self.engine = engine or PricingEngine()

    async def summary(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[str] = ReservationStatus.CONCLUSA.value,
    ) -> Dict[str, Any]:
        """Bookings are selected by check-in date, expenses by expense date"""
        if start is not None and end is not None and end < start:
            raise ValueError("End date must not be before start date")
        status_filter = _status_filter(status)

        bookings = 0
        rooms_booked = 0
        revenue = ZERO
        revenue_by_room: Dict[RoomId, Decimal] = defaultdict(lambda: ZERO)
        for reservation in await self.reservation_repository.find_all():
            if status_filter is not None and reservation.status != status_filter:
                continue
            if reservation.check_in_date is None or not _within(reservation.check_in_date, start, end):
                continue

            summary = self.engine.summarize(reservation)
            bookings += 1
            rooms_booked += len(reservation.room_numbers)
            revenue += summary.amount_due_basis
            if reservation.room_numbers:
                share = summary.amount_due_basis / len(reservation.room_numbers)
                for room in reservation.room_numbers:
                    revenue_by_room[room] += share

        expenses = ZERO
        for expense in await self.expense_repository.find_all():
            if _within(expense.expense_date, start, end):
                expenses += expense.amount

        revenue = round2(revenue)
        expenses = round2(expenses)
        return {
            "start": start,
            "end": end,
            "status": status_filter.value if status_filter is not None else "all",
            "bookings": bookings,
            "rooms_booked": rooms_booked,
            "revenue": revenue,
            "revenue_by_room": {
                room: round2(total)
                for room, total in sorted(revenue_by_room.items(), key=lambda item: str(item[0]).zfill(4))
            },
            "expenses": expenses,
            "profit": round2(revenue - expenses),
            "generated_at": datetime.utcnow(),
        }


def _within(value: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def _status_filter(status: Optional[str]) -> Optional[ReservationStatus]:
    if status is None or status == "all":
        return None
    try:
        return ReservationStatus(status)
    except ValueError:
        raise ValueError(f"Unknown status filter: {status}")
