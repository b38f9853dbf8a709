"""
Configuration for the Flex Living reviews service and dashboard.

Values come from environment variables (a local .env file is loaded first).
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent

# Hostaway: either a ready API key + account id, or client credentials
HOSTAWAY_ACCOUNT_ID = os.getenv("HOSTAWAY_ACCOUNT_ID", "")
HOSTAWAY_API_KEY = os.getenv("HOSTAWAY_API_KEY", "")
HOSTAWAY_CLIENT_ID = os.getenv("HOSTAWAY_CLIENT_ID", "")
HOSTAWAY_CLIENT_SECRET = os.getenv("HOSTAWAY_CLIENT_SECRET", "")
HOSTAWAY_BASE_URL = os.getenv("HOSTAWAY_BASE_URL", "https://api.hostaway.com/v1")
HOSTAWAY_REVIEW_LIMIT = int(os.getenv("HOSTAWAY_REVIEW_LIMIT", "50"))

# Google Places
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY", "")
GOOGLE_PLACES_URL = "https://maps.googleapis.com/maps/api/place/details/json"

# Sample data used when Hostaway is not configured or returns nothing
MOCK_DATA_PATH = Path(os.getenv("MOCK_DATA_PATH", str(PROJECT_ROOT / "mock_reviews.json")))

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))

# Reviews rated at or above this start out selected for the public page
AUTO_SELECT_MIN_RATING = float(os.getenv("AUTO_SELECT_MIN_RATING", "9"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def hostaway_configured() -> bool:
    return bool(HOSTAWAY_API_KEY or (HOSTAWAY_CLIENT_ID and HOSTAWAY_CLIENT_SECRET))


def setup_logging(log_level: str = LOG_LEVEL):
    """Configure logging for the API and the dashboard."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
