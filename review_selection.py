"""
Filtering, sorting and statistics over normalized reviews.

Everything here is a pure function of its inputs. The public/hidden choice is
a set of review ids kept by the caller, never a field on the review.
"""

from collections import namedtuple
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import AbstractSet, Any, FrozenSet, Iterable, List, Optional, Sequence

import pandas as pd

from review_normalizer import Review, _to_float

ALL = "all"

SORT_BY_DATE = "date"
SORT_BY_RATING = "rating"

CATEGORY_NAMES = ("cleanliness", "communication", "location", "value")

PropertyStats = namedtuple("PropertyStats", ["count", "avg_rating", "selected"])

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in ("", ALL))


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    # half-up, so 8.25 shows as 8.3
    mean = sum(values) / len(values)
    return float(Decimal(repr(mean)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _submitted(review: Review) -> datetime:
    try:
        return datetime.fromisoformat(review.submitted_at)
    except (TypeError, ValueError):
        return _EPOCH


# ----------------- Listing helpers -----------------

def list_properties(reviews: Iterable[Review]) -> List[str]:
    """Distinct listing names, in first-seen order."""
    return list(dict.fromkeys(r.listing_name for r in reviews))


def list_channels(reviews: Iterable[Review]) -> List[str]:
    return list(dict.fromkeys(r.channel for r in reviews))


# ----------------- Filter & sort -----------------

def filter_reviews(reviews: Iterable[Review], listing_name: Optional[str] = ALL,
                   channel: Optional[str] = ALL, min_rating: Any = ALL) -> List[Review]:
    """
    Keep reviews matching every active constraint.

    ``None`` or ``"all"`` switches a constraint off. ``min_rating`` is
    inclusive and may be a number or a numeric string; anything non-numeric
    leaves the rating unconstrained.
    """
    threshold = None if _is_unset(min_rating) else _to_float(min_rating)

    filtered = []
    for review in reviews:
        if not _is_unset(listing_name) and review.listing_name != listing_name:
            continue
        if not _is_unset(channel) and review.channel != channel:
            continue
        if threshold is not None and review.rating < threshold:
            continue
        filtered.append(review)
    return filtered


def sort_reviews(reviews: Iterable[Review], by: str = SORT_BY_DATE) -> List[Review]:
    """Newest first for ``"date"``, best first for ``"rating"``; ties keep their order."""
    reviews = list(reviews)
    if by == SORT_BY_DATE:
        return sorted(reviews, key=_submitted, reverse=True)
    if by == SORT_BY_RATING:
        return sorted(reviews, key=lambda r: r.rating, reverse=True)
    return reviews


# ----------------- Statistics -----------------

def overall_average(reviews: Iterable[Review]) -> float:
    return _mean([r.rating for r in reviews])


def property_stats(reviews: Iterable[Review], listing_name: str,
                   selected_ids: AbstractSet[Any] = frozenset()) -> PropertyStats:
    """Review count, mean rating (1 decimal) and selected count for one listing."""
    property_reviews = [r for r in reviews if r.listing_name == listing_name]
    return PropertyStats(
        count=len(property_reviews),
        avg_rating=_mean([r.rating for r in property_reviews]),
        selected=sum(1 for r in property_reviews if r.id in selected_ids),
    )


def category_average(reviews: Iterable[Review], category: str) -> float:
    """Mean score for one category across the given reviews; 0 when it never appears."""
    name = str(category or "").strip().lower()
    ratings = [
        c.rating
        for r in reviews
        for c in r.review_category
        if c.category == name
    ]
    return _mean(ratings)


def property_overview(reviews: Sequence[Review], selected_ids: AbstractSet[Any] = frozenset(),
                      categories: Sequence[str] = CATEGORY_NAMES) -> pd.DataFrame:
    """One row per listing: stats plus the average of each category."""
    rows = []
    for name in list_properties(reviews):
        stats = property_stats(reviews, name, selected_ids)
        property_reviews = [r for r in reviews if r.listing_name == name]
        row = {
            "listingName": name,
            "reviews": stats.count,
            "avg_rating": stats.avg_rating,
            "public": stats.selected,
        }
        for category in categories:
            row[category] = category_average(property_reviews, category)
        rows.append(row)
    return pd.DataFrame(rows, columns=["listingName", "reviews", "avg_rating", "public", *categories])


# ----------------- Selection -----------------

def auto_select_ids(reviews: Iterable[Review], min_rating: float = 9) -> FrozenSet[Any]:
    """Initial public selection: every review rated ``min_rating`` or better."""
    return frozenset(r.id for r in reviews if r.rating >= min_rating)


def toggle_selection(selected_ids: AbstractSet[Any], review_id: Any) -> FrozenSet[Any]:
    if review_id in selected_ids:
        return frozenset(selected_ids) - {review_id}
    return frozenset(selected_ids) | {review_id}


def public_reviews(reviews: Iterable[Review], selected_ids: AbstractSet[Any],
                   listing_name: Optional[str] = ALL) -> List[Review]:
    """Selected reviews (optionally for one listing), newest first."""
    chosen = [r for r in filter_reviews(reviews, listing_name=listing_name) if r.id in selected_ids]
    return sort_reviews(chosen, SORT_BY_DATE)


# ----------------- Dashboard frames -----------------

def reviews_to_frame(reviews: Iterable[Review], selected_ids: AbstractSet[Any] = frozenset()) -> pd.DataFrame:
    """Flatten reviews for charting: one row each, categories as ``cat_<name>`` columns."""
    rows = []
    for r in reviews:
        base = {
            "id": r.id,
            "listingName": r.listing_name,
            "type": r.type,
            "status": r.status,
            "rating": r.rating,
            "publicReview": r.public_review,
            "channel": r.channel,
            "guestName": r.guest_name,
            "rawSource": r.raw_source,
            "displayOnWebsite": r.id in selected_ids,
            "date": r.submitted_at,
        }
        for cat in r.review_category:
            base[f"cat_{cat.category}"] = cat.rating
        rows.append(base)

    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=["id", "listingName", "rating", "channel", "date", "year_month", "displayOnWebsite"])

    df["date"] = pd.to_datetime(df["date"], utc=True, errors="coerce")
    df["year_month"] = df["date"].dt.strftime("%Y-%m")
    return df


def monthly_trend(df: pd.DataFrame) -> pd.DataFrame:
    """Average rating and review count per month."""
    if df.empty:
        return pd.DataFrame(columns=["year_month", "avg_rating", "count"])
    trend = df.groupby("year_month").agg(avg_rating=("rating", "mean"), count=("id", "count")).reset_index()
    return trend.sort_values("year_month").reset_index(drop=True)
