import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

APP_NAME = "Laundry Pickup API"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./laundry.db")

# Slots are wall-clock windows in the service area
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Europe/Helsinki")
SLOT_HORIZON_DAYS = int(os.getenv("SLOT_HORIZON_DAYS", "7"))

POINTS_EXPIRY_DAYS = int(os.getenv("POINTS_EXPIRY_DAYS", "365"))
CURRENCY = os.getenv("CURRENCY", "eur").strip().lower()

GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "").strip()
GEOAPIFY_API_KEY = os.getenv("GEOAPIFY_API_KEY", "").strip()

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", "http://localhost:5173").rstrip("/")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
