"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    IN_ATTESA = "in_attesa"
    CONFERMATA = "confermata"
    ANNULLATA = "annullata"
    CONCLUSA = "conclusa"


class SinglePricingMode(str, Enum):
    PER_NIGHT = "perNight"
    TOTAL = "total"


class GroupPricingMode(str, Enum):
    PER_NIGHT_PER_ROOM = "perNightPerRoom"
    PER_NIGHT_UNIFORM = "perNightUniform"
    TOTAL_FOR_STAY = "totalForStay"


# Allowed lifecycle moves; annullata and conclusa are terminal
STATUS_TRANSITIONS = {
    ReservationStatus.IN_ATTESA: {ReservationStatus.CONFERMATA, ReservationStatus.ANNULLATA},
    ReservationStatus.CONFERMATA: {ReservationStatus.CONCLUSA, ReservationStatus.ANNULLATA},
    ReservationStatus.ANNULLATA: set(),
    ReservationStatus.CONCLUSA: set(),
}
