"""
Upstream review providers: Hostaway, Google Places and the local sample file.

These only fetch raw payloads; normalization happens in review_normalizer.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

import config

logger = logging.getLogger(__name__)

# Google Places status codes mapped to the HTTP status we answer with
GOOGLE_STATUS_CODES = {
    "INVALID_REQUEST": 400,
    "OVER_QUERY_LIMIT": 429,
}


class ProviderError(Exception):
    """An upstream provider call failed."""

    def __init__(self, message: str, status_code: int = 500, upstream_status: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.upstream_status = upstream_status


# ----------------- Hostaway -----------------

def get_hostaway_token(client_id: str, client_secret: str, timeout: Optional[float] = None) -> str:
    """Exchange client credentials for a Hostaway access token."""
    resp = requests.post(
        f"{config.HOSTAWAY_BASE_URL}/accessTokens",
        data={
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": "general",
        },
        headers={"Cache-Control": "no-cache"},
        timeout=config.REQUEST_TIMEOUT if timeout is None else timeout,
    )
    resp.raise_for_status()
    token = resp.json().get("access_token")
    if not token:
        raise ProviderError("Hostaway token response had no access_token")
    return token


def fetch_hostaway_reviews(account_id: Optional[str] = None,
                           api_key: Optional[str] = None,
                           client_id: Optional[str] = None,
                           client_secret: Optional[str] = None,
                           limit: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """
    Fetch reviews from Hostaway. Returns raw JSON or None if unconfigured/failed/empty.

    Arguments left as None are read from config when called.
    """
    account_id = config.HOSTAWAY_ACCOUNT_ID if account_id is None else account_id
    api_key = config.HOSTAWAY_API_KEY if api_key is None else api_key
    client_id = config.HOSTAWAY_CLIENT_ID if client_id is None else client_id
    client_secret = config.HOSTAWAY_CLIENT_SECRET if client_secret is None else client_secret
    limit = config.HOSTAWAY_REVIEW_LIMIT if limit is None else limit

    if not api_key and not (client_id and client_secret):
        return None

    try:
        token = api_key or get_hostaway_token(client_id, client_secret)
        headers = {"Authorization": f"Bearer {token}", "Cache-Control": "no-cache"}
        if account_id:
            headers["Account-Id"] = str(account_id)
        resp = requests.get(
            f"{config.HOSTAWAY_BASE_URL}/reviews",
            params={"limit": limit},
            headers=headers,
            timeout=config.REQUEST_TIMEOUT,
        )
        if resp.status_code == 200:
            data = resp.json()
            if data.get("result"):
                return data
            logger.info("Hostaway returned no reviews")
        else:
            logger.warning(f"Hostaway API error: HTTP {resp.status_code}")
    except (requests.RequestException, ValueError, ProviderError) as e:
        logger.warning(f"Hostaway API error: {e}")
    return None


# ----------------- Google Places -----------------

def fetch_google_place(place_id: str, api_key: str) -> Dict[str, Any]:
    """
    Fetch place details (name, rating, reviews) from Google Places.

    Raises:
        ProviderError: on HTTP failure or a non-OK Places status.
    """
    try:
        resp = requests.get(
            config.GOOGLE_PLACES_URL,
            params={
                "place_id": place_id,
                "fields": "name,reviews,rating,user_ratings_total",
                "key": api_key,
            },
            timeout=config.REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise ProviderError(f"Google API request failed: {e}") from e

    if not resp.ok:
        raise ProviderError(f"Google API error: {resp.status_code}")

    data = resp.json()
    status = data.get("status")
    if status != "OK":
        message = data.get("error_message") or "Unknown error"
        raise ProviderError(
            f"Google API status: {status} - {message}",
            status_code=GOOGLE_STATUS_CODES.get(status, 500),
            upstream_status=status,
        )
    return data.get("result") or {}


# ----------------- Sample data -----------------

def load_mock_reviews(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the sample reviews file (``{"result": [...]}``)."""
    with Path(path or config.MOCK_DATA_PATH).open("r", encoding="utf-8") as f:
        return json.load(f)
