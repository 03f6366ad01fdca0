"""Default invoice issuer: the real one lives outside this service"""
import logging
from typing import Optional

from domain.entities import Reservation
from domain.invoicing import InvoiceIssuer
from domain.pricing import PricingSummary

logger = logging.getLogger(__name__)


class LoggingInvoiceIssuer(InvoiceIssuer):
    """Records the issuance request in the log and assigns no number"""

    async def issue(self, reservation: Reservation, summary: PricingSummary) -> Optional[str]:
        logger.info(
            "Invoice requested for reservation %s (%s): final price %s, amount due %s",
            reservation.reservation_id,
            reservation.display_name,
            summary.final_price,
            summary.amount_due,
        )
        return None
