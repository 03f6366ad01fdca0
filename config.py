"""Application configuration, read once from the environment"""
import os

from dotenv import load_dotenv

load_dotenv()

# Operator tokens are issued by the external identity provider and only verified here
SECRET_KEY = os.getenv("HOTEL_SECRET_KEY", "dev-secret-key-change-me")
ALGORITHM = os.getenv("HOTEL_TOKEN_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("HOTEL_TOKEN_EXPIRE_MINUTES", "30"))

CURRENCY = os.getenv("HOTEL_CURRENCY", "EUR")
LOG_LEVEL = os.getenv("HOTEL_LOG_LEVEL", "INFO")

# Room catalogue: room number -> room type
ROOM_TYPES = {
    1: "Quadrupla",
    2: "Tripla",
    3: "Doppia + Bagno per Handicap",
    4: "Matrimoniale",
    5: "Singola",
    6: "Matrimoniale/Doppia",
    7: "Tripla",
    8: "Matrimoniale",
    9: "Matrimoniale/Doppia",
    10: "Tripla",
    11: "Quadrupla",
    12: "Matrimoniale",
    13: "Matrimoniale",
    14: "Matrimoniale/Doppia",
    15: "Tripla",
    16: "Matrimoniale",
}

# Room type -> number of guests
ROOM_CAPACITIES = {
    "Quadrupla": 4,
    "Tripla": 3,
    "Doppia + Bagno per Handicap": 2,
    "Matrimoniale": 2,
    "Singola": 1,
    "Matrimoniale/Doppia": 2,
}
