"""
Review normalization.

Turns raw review payloads from Hostaway, Google Places and the local sample
file into one canonical ``Review`` shape. Every mapper here is total: bad or
missing input falls back to defaults instead of raising, so a single broken
record never takes down a whole batch.
"""

import logging
import math
import random
import re
import string
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

logger = logging.getLogger(__name__)


class ReviewSource(str, Enum):
    HOSTAWAY = "hostaway"
    GOOGLE = "google"
    MOCK = "mock"
    UNKNOWN = "unknown"


AUTO = "auto"

REVIEW_DEFAULTS = {
    "type": "guest-to-host",
    "status": "published",
    "rating": 0.0,
    "guestName": "Anonymous",
    "listingName": "Unknown Property",
    "channel": "Unknown",
    "publicReview": "",
}

GOOGLE_CHANNEL = "Google"

REQUIRED_FIELDS = ("id", "rating", "publicReview", "guestName", "listingName", "channel")

# leading numeric prefix, the way a lenient float parser reads "8.5/10"
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


# ----------------- Canonical record -----------------

@dataclass(frozen=True)
class ReviewCategory:
    category: str
    rating: float

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "rating": self.rating}


@dataclass(frozen=True)
class Review:
    """
    Canonical guest review.

    ``extras`` carries provider-specific attributes (original payload, profile
    photo, ...). It is not part of equality and is never validated.
    """
    id: Union[int, str]
    type: str
    status: str
    rating: float
    public_review: str
    review_category: Tuple[ReviewCategory, ...]
    submitted_at: str
    guest_name: str
    listing_name: str
    channel: str
    raw_source: str
    extras: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self, include_extras: bool = True) -> Dict[str, Any]:
        """JSON interchange shape (camelCase keys)."""
        data = {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "rating": self.rating,
            "publicReview": self.public_review,
            "reviewCategory": [c.to_dict() for c in self.review_category],
            "submittedAt": self.submitted_at,
            "guestName": self.guest_name,
            "listingName": self.listing_name,
            "channel": self.channel,
            "rawSource": self.raw_source,
        }
        if include_extras:
            for key, value in self.extras.items():
                data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Review":
        """Rebuild a Review from an already-canonical JSON record."""
        core = {
            "id", "type", "status", "rating", "publicReview", "reviewCategory",
            "submittedAt", "guestName", "listingName", "channel", "rawSource",
        }
        return cls(
            id=_review_id(data.get("id")),
            type=_text(data.get("type"), REVIEW_DEFAULTS["type"]),
            status=_text(data.get("status"), REVIEW_DEFAULTS["status"]),
            rating=_to_float(data.get("rating")) or 0.0,
            public_review=_text(data.get("publicReview"), REVIEW_DEFAULTS["publicReview"]),
            review_category=normalize_review_categories(data.get("reviewCategory")),
            submitted_at=normalize_date(data.get("submittedAt")),
            guest_name=_text(data.get("guestName"), REVIEW_DEFAULTS["guestName"]),
            listing_name=_text(data.get("listingName"), REVIEW_DEFAULTS["listingName"]),
            channel=_text(data.get("channel"), REVIEW_DEFAULTS["channel"]),
            raw_source=_text(data.get("rawSource"), ReviewSource.UNKNOWN.value),
            extras={k: v for k, v in data.items() if k not in core},
        )


# ----------------- Value coercion -----------------

def _truthy(value: Any) -> bool:
    """Loose truthiness used by the source payloads: None, "", 0, NaN and False are empty."""
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (int, float)):
        return value == value and value != 0
    if isinstance(value, str):
        return value != ""
    return True


def _first(*values: Any) -> Any:
    for value in values:
        if _truthy(value):
            return value
    return None


def _to_float(value: Any) -> Optional[float]:
    """Parse a finite float, or None when the value is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            result = float(value)
        elif isinstance(value, str):
            match = _NUMBER_PREFIX.match(value)
            if not match:
                return None
            result = float(match.group())
        else:
            return None
    except OverflowError:
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _text(value: Any, default: str) -> str:
    if not _truthy(value):
        return default
    return value if isinstance(value, str) else str(value)


def _review_id(value: Any) -> Union[int, str]:
    if not _truthy(value):
        return generate_id()
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return str(value)


def generate_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"review_{int(time.time() * 1000)}_{suffix}"


# ----------------- Categories -----------------

def normalize_review_categories(categories: Any) -> Tuple[ReviewCategory, ...]:
    """
    Normalize category scores to ``(category, rating)`` pairs.

    Names are trimmed and lowercased; entries with an empty name or a
    non-numeric rating are dropped. Input order is kept, duplicates included.
    """
    if not isinstance(categories, (list, tuple)):
        return ()

    normalized = []
    for cat in categories:
        if isinstance(cat, ReviewCategory):
            cat = cat.to_dict()
        if not isinstance(cat, Mapping):
            continue
        name = str(_first(cat.get("category"), cat.get("name")) or "").strip().lower()
        rating = _to_float(_first(cat.get("rating"), cat.get("score")) or 0)
        if name and rating is not None:
            normalized.append(ReviewCategory(category=name, rating=rating))
    return tuple(normalized)


# ----------------- Dates -----------------

def _format_iso(dt: datetime) -> str:
    if isinstance(dt, pd.Timestamp):
        dt = dt.to_pydatetime()
    if pd.isna(dt):
        raise ValueError("not a timestamp")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _now_iso() -> str:
    return _format_iso(datetime.now(timezone.utc))


def _parse_iso(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        parsed = pd.to_datetime(value, utc=True, errors="coerce")
        if pd.isna(parsed):
            raise ValueError(f"invalid ISO date {value!r}")
        return parsed.to_pydatetime()


def normalize_date(value: Any = None) -> str:
    """
    Coerce a date-ish value to ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Numbers are epoch milliseconds. Naive datetimes are read as UTC.
    Anything missing or unparseable becomes the current time.
    """
    try:
        if not _truthy(value):
            return _now_iso()

        if isinstance(value, str) and "T" in value:
            return _format_iso(_parse_iso(value))

        if isinstance(value, str):
            parsed = pd.to_datetime(value, utc=True, errors="coerce")
            if not pd.isna(parsed):
                return _format_iso(parsed.to_pydatetime())

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _format_iso(datetime.fromtimestamp(value / 1000, tz=timezone.utc))

        if isinstance(value, datetime):
            return _format_iso(value)

        if isinstance(value, date):
            return _format_iso(datetime(value.year, value.month, value.day))
    except Exception as e:
        logger.warning(f"Date normalization error for {value!r}: {e}")

    return _now_iso()


# ----------------- Source detection -----------------

def _has_any(*keys: str) -> Callable[[Mapping[str, Any]], bool]:
    return lambda raw: any(_truthy(raw.get(key)) for key in keys)


# Checked in order; first match wins
SOURCE_RULES: List[Tuple[Callable[[Mapping[str, Any]], bool], ReviewSource]] = [
    (_has_any("channelName", "listingMapName"), ReviewSource.HOSTAWAY),
    (_has_any("author_name", "profile_photo_url"), ReviewSource.GOOGLE),
]


def detect_source(raw: Any, hint: Optional[str] = AUTO) -> str:
    """
    Work out which provider schema a raw record came from.

    An explicit hint wins. With ``"auto"`` the provider-specific fields are
    checked, then a ``rawSource`` tag already on the record, then sample data.
    """
    if hint is not None and hint != AUTO:
        return str(hint.value if isinstance(hint, ReviewSource) else hint)
    if not isinstance(raw, Mapping):
        return ReviewSource.MOCK.value

    for predicate, tag in SOURCE_RULES:
        if predicate(raw):
            return tag.value

    tagged = raw.get("rawSource")
    if _truthy(tagged):
        return str(tagged)
    return ReviewSource.MOCK.value


# ----------------- Mappers -----------------

def create_default_review() -> Review:
    return Review(
        id=generate_id(),
        type=REVIEW_DEFAULTS["type"],
        status=REVIEW_DEFAULTS["status"],
        rating=REVIEW_DEFAULTS["rating"],
        public_review=REVIEW_DEFAULTS["publicReview"],
        review_category=(),
        submitted_at=_now_iso(),
        guest_name=REVIEW_DEFAULTS["guestName"],
        listing_name=REVIEW_DEFAULTS["listingName"],
        channel=REVIEW_DEFAULTS["channel"],
        raw_source=ReviewSource.UNKNOWN.value,
    )


def normalize_hostaway_review(review: Any) -> Review:
    """Map a Hostaway ``/v1/reviews`` record. Ratings are already out of 10."""
    if not isinstance(review, Mapping):
        return create_default_review()

    return Review(
        id=_review_id(review.get("id")),
        type=_text(review.get("type"), REVIEW_DEFAULTS["type"]),
        status=_text(review.get("status"), REVIEW_DEFAULTS["status"]),
        rating=_to_float(review.get("rating")) or REVIEW_DEFAULTS["rating"],
        public_review=_text(
            _first(review.get("reply"), review.get("comment"), review.get("publicReview")),
            REVIEW_DEFAULTS["publicReview"],
        ),
        review_category=normalize_review_categories(
            _first(review.get("reviewCategoryScores"), review.get("reviewCategory"))
        ),
        submitted_at=normalize_date(_first(review.get("createdAt"), review.get("submittedAt"))),
        guest_name=_text(review.get("guestName"), REVIEW_DEFAULTS["guestName"]),
        listing_name=_text(
            _first(review.get("listingMapName"), review.get("listingName")),
            REVIEW_DEFAULTS["listingName"],
        ),
        channel=_text(_first(review.get("channelName"), review.get("channel")), REVIEW_DEFAULTS["channel"]),
        raw_source=ReviewSource.HOSTAWAY.value,
        extras={"originalData": review},
    )


def normalize_google_review(review: Any, place_info: Optional[Mapping[str, Any]] = None) -> Review:
    """
    Map a Google Places review.

    Google rates out of 5, so ratings are doubled. Ids get a ``google_``
    prefix to stay clear of Hostaway's numeric ids. A missing rating ends up
    as 0, same as a genuine zero.
    """
    if not isinstance(review, Mapping):
        return create_default_review()
    place_info = place_info if isinstance(place_info, Mapping) else {}

    stars = _to_float(review.get("rating"))
    seconds = _to_float(review.get("time")) if _truthy(review.get("time")) else None
    reviewer = review.get("reviewer")
    reviewer_name = reviewer.get("displayName") if isinstance(reviewer, Mapping) else None

    extras = {
        "profilePhoto": review.get("profile_photo_url"),
        "relativeTime": review.get("relative_time_description"),
        "originalData": review,
    }
    return Review(
        id=f"google_{_first(review.get('time'), review.get('reviewId')) or generate_id()}",
        type=REVIEW_DEFAULTS["type"],
        status=REVIEW_DEFAULTS["status"],
        rating=stars * 2 if stars else REVIEW_DEFAULTS["rating"],
        public_review=_text(_first(review.get("text"), review.get("comment")), REVIEW_DEFAULTS["publicReview"]),
        review_category=(),
        submitted_at=normalize_date(seconds * 1000 if seconds is not None else review.get("createTime")),
        guest_name=_text(_first(review.get("author_name"), reviewer_name), REVIEW_DEFAULTS["guestName"]),
        listing_name=_text(place_info.get("name"), REVIEW_DEFAULTS["listingName"]),
        channel=GOOGLE_CHANNEL,
        raw_source=ReviewSource.GOOGLE.value,
        extras=extras,
    )


def normalize_mock_review(review: Any) -> Review:
    """Map a record from the sample data file (already close to canonical)."""
    if not isinstance(review, Mapping):
        return create_default_review()

    return Review(
        id=_review_id(review.get("id")),
        type=_text(review.get("type"), REVIEW_DEFAULTS["type"]),
        status=_text(review.get("status"), REVIEW_DEFAULTS["status"]),
        rating=_to_float(review.get("rating")) or REVIEW_DEFAULTS["rating"],
        public_review=_text(review.get("publicReview"), REVIEW_DEFAULTS["publicReview"]),
        review_category=normalize_review_categories(review.get("reviewCategory")),
        submitted_at=normalize_date(review.get("submittedAt")),
        guest_name=_text(review.get("guestName"), REVIEW_DEFAULTS["guestName"]),
        listing_name=_text(review.get("listingName"), REVIEW_DEFAULTS["listingName"]),
        channel=_text(review.get("channel"), REVIEW_DEFAULTS["channel"]),
        raw_source=ReviewSource.MOCK.value,
        extras={"originalData": review},
    )


MAPPERS: Dict[str, Callable[[Any], Review]] = {
    ReviewSource.HOSTAWAY.value: normalize_hostaway_review,
    ReviewSource.GOOGLE.value: normalize_google_review,
    ReviewSource.MOCK.value: normalize_mock_review,
}


# ----------------- Facade -----------------

def normalize_review(review: Any, source: Optional[str] = AUTO,
                     place_info: Optional[Mapping[str, Any]] = None) -> Review:
    """Normalize one raw review, detecting its source unless one is given."""
    if not isinstance(review, Mapping):
        return create_default_review()

    tag = detect_source(review, source)
    if tag == ReviewSource.GOOGLE.value:
        return normalize_google_review(review, place_info)
    return MAPPERS.get(tag, normalize_mock_review)(review)


def normalize_reviews(reviews: Any, source: Optional[str] = AUTO,
                      place_info: Optional[Mapping[str, Any]] = None) -> List[Review]:
    """Normalize a batch; one output per input, ``[]`` for a non-list."""
    if not isinstance(reviews, (list, tuple)):
        logger.debug(f"Expected a list of reviews, got {type(reviews).__name__}")
        return []
    return [normalize_review(review, source, place_info) for review in reviews]


# ----------------- Validation -----------------

def is_valid_normalized_review(record: Any) -> bool:
    """
    Check a record carries every required canonical field.

    Only a missing key counts as missing; ``None``, ``0``, ``""`` and
    ``False`` are present values.
    """
    if isinstance(record, Review):
        record = record.to_dict(include_extras=False)
    if not isinstance(record, Mapping):
        return False
    return all(name in record for name in REQUIRED_FIELDS)


def filter_valid_reviews(records: Iterable[Any]) -> List[Review]:
    """Drop corrupt records (e.g. after a network hop) and rebuild the rest."""
    valid = []
    dropped = 0
    for record in records:
        if not is_valid_normalized_review(record):
            dropped += 1
            continue
        valid.append(record if isinstance(record, Review) else Review.from_dict(record))
    if dropped:
        logger.warning(f"Dropped {dropped} invalid review records")
    return valid
