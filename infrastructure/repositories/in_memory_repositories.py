"""In-Memory Repository Implementations

Both repositories keep raw documents, as the remote document store does, and
convert through infrastructure.documents on every read and write.
"""
import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional

from domain.repositories import ReservationRepository, ExpenseRepository
from domain.entities import Reservation, Expense
from infrastructure.documents import (
    expense_from_document, expense_to_document,
    reservation_from_document, reservation_to_document,
)


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self, documents: Optional[Iterable[Mapping[str, Any]]] = None):
        self._storage: Dict[str, Dict[str, Any]] = {}
        for document in documents or []:
            self._storage[str(document["id"])] = copy.deepcopy(dict(document))

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.reservation_id] = reservation_to_document(reservation)
        return reservation

    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        document = self._storage.get(reservation_id)
        return reservation_from_document(document) if document is not None else None

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return [reservation_from_document(document) for document in self._storage.values()]

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.reservation_id in self._storage:
            self._storage[reservation.reservation_id] = reservation_to_document(reservation)
            return reservation
        raise ValueError("Reservation not found")

    async def delete(self, reservation_id: str) -> bool:
        """Delete reservation"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            return True
        return False

    def raw_document(self, reservation_id: str) -> Optional[Dict[str, Any]]:
        """Stored document as-is, for inspection"""
        document = self._storage.get(reservation_id)
        return copy.deepcopy(document) if document is not None else None


class InMemoryExpenseRepository(ExpenseRepository):
    """In-memory implementation of ExpenseRepository"""

    def __init__(self):
        self._storage: Dict[str, Dict[str, Any]] = {}

    async def save(self, expense: Expense) -> Expense:
        self._storage[expense.expense_id] = expense_to_document(expense)
        return expense

    async def find_by_id(self, expense_id: str) -> Optional[Expense]:
        document = self._storage.get(expense_id)
        return expense_from_document(document) if document is not None else None

    async def find_all(self) -> List[Expense]:
        return [expense_from_document(document) for document in self._storage.values()]

    async def update(self, expense: Expense) -> Expense:
        if expense.expense_id in self._storage:
            self._storage[expense.expense_id] = expense_to_document(expense)
            return expense
        raise ValueError("Expense not found")

    async def delete(self, expense_id: str) -> bool:
        if expense_id in self._storage:
            del self._storage[expense_id]
            return True
        return False
