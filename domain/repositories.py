"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List

from domain.entities import Reservation, Expense


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Full snapshot of the reservations collection"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: str) -> bool:
        """Delete reservation"""
        pass


class ExpenseRepository(ABC):
    """Repository interface for Expense entities"""

    @abstractmethod
    async def save(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def find_by_id(self, expense_id: str) -> Optional[Expense]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Expense]:
        pass

    @abstractmethod
    async def update(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def delete(self, expense_id: str) -> bool:
        pass
