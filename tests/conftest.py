"""Shared test fixtures for the reviews tests."""

import pytest

from review_normalizer import normalize_mock_review


@pytest.fixture
def hostaway_review():
    """A review as returned by Hostaway's /v1/reviews."""
    return {
        "id": 1,
        "rating": "8",
        "comment": "Nice",
        "reviewCategoryScores": [{"category": "Cleanliness", "rating": "9"}],
        "createdAt": "2024-01-01T00:00:00Z",
        "guestName": "A",
        "listingMapName": "L1",
        "channelName": "Airbnb",
    }


@pytest.fixture
def google_review():
    """A review from the Google Places details endpoint."""
    return {
        "author_name": "Jane Doe",
        "rating": 4.5,
        "text": "Lovely flat, great host.",
        "time": 1700000000,
        "profile_photo_url": "https://lh3.googleusercontent.com/a/photo",
        "relative_time_description": "a month ago",
    }


@pytest.fixture
def google_place(google_review):
    return {
        "name": "29 Shoreditch Heights",
        "rating": 4.6,
        "user_ratings_total": 120,
        "reviews": [google_review],
    }


@pytest.fixture
def make_review():
    """Build a normalized review from a few sample-data fields."""
    def _make(**fields):
        fields.setdefault("listingName", "P1")
        fields.setdefault("channel", "Airbnb")
        fields.setdefault("submittedAt", "2024-12-01T00:00:00Z")
        return normalize_mock_review(fields)
    return _make
