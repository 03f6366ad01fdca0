"""Hook for the external invoice issuer"""
from abc import ABC, abstractmethod
from typing import Optional

from domain.entities import Reservation
from domain.pricing import PricingSummary


class InvoiceIssuer(ABC):
    """Called once when a reservation is concluded.

    Numbering, persistence and rendering of the invoice belong to the issuer.
    Returns the invoice number it assigned, if any.
    """

    @abstractmethod
    async def issue(self, reservation: Reservation, summary: PricingSummary) -> Optional[str]:
        pass
