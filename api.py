import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import providers
from review_normalizer import ReviewSource, normalize_reviews

config.setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Flex Living Reviews API")


def error_response(status_code: int, error: str, message: str = "") -> JSONResponse:
    body = {"status": "error", "result": [], "error": error}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_error(request, exc):
    if exc.status_code == 405:
        return error_response(405, "Method not allowed")
    return error_response(exc.status_code, str(exc.detail))


@app.get("/")
def index():
    return {
        "message": "Flex Living Reviews API",
        "endpoints": {
            "health": "/health",
            "reviews": "/api/reviews/hostaway",
            "google": "/api/reviews/google?placeId=...",
        },
    }


@app.get("/health")
def health():
    return {"status": "ok", "message": "Flex Living API is running"}


# Hostaway reviews, falling back to the sample file
@app.get("/api/reviews/hostaway")
def get_reviews():
    try:
        raw = providers.fetch_hostaway_reviews() if config.hostaway_configured() else None
        if raw:
            reviews = normalize_reviews(raw.get("result", []), ReviewSource.HOSTAWAY.value)
            source = "hostaway_api"
        else:
            raw = providers.load_mock_reviews(config.MOCK_DATA_PATH)
            reviews = normalize_reviews(raw.get("result", []), ReviewSource.MOCK.value)
            source = ReviewSource.MOCK.value
    except Exception as e:
        logger.exception("Error fetching Hostaway reviews")
        return error_response(500, "Failed to fetch reviews", str(e))

    return {
        "status": "success",
        "result": [r.to_dict() for r in reviews],
        "meta": {
            "count": len(reviews),
            "source": source,
            "normalized": True,
            "timeStamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        },
    }


@app.get("/api/reviews/google")
def get_google_reviews(placeId: str = ""):
    api_key = config.GOOGLE_PLACES_API_KEY
    if not api_key:
        return error_response(
            500, "Google Places API key not configured",
            "Please set GOOGLE_PLACES_API_KEY in environment variables",
        )
    if not placeId:
        return error_response(400, "Missing required parameter", "placeId query parameter is required")

    try:
        place = providers.fetch_google_place(placeId, api_key)
    except providers.ProviderError as e:
        logger.error(f"Error fetching Google reviews: {e}")
        if e.status_code == 400:
            return error_response(400, "Invalid Place ID", "The provided placeId is not valid")
        if e.status_code == 429:
            return error_response(
                429, "API quota exceeded", "Google Places API quota exceeded. Please try again later.",
            )
        return error_response(500, "Failed to fetch Google reviews", str(e))
    except Exception as e:
        logger.exception("Error fetching Google reviews")
        return error_response(500, "Failed to fetch Google reviews", str(e))

    meta = {
        "propertyName": place.get("name"),
        "totalRating": place.get("rating"),
        "totalReviews": place.get("user_ratings_total"),
    }
    raw_reviews = place.get("reviews") or []
    if not raw_reviews:
        meta["message"] = "No reviews found for this property"
        return {"status": "success", "result": [], "meta": meta}

    reviews = normalize_reviews(raw_reviews, ReviewSource.GOOGLE.value, place_info={"name": place.get("name")})
    meta["reviewsReturned"] = len(reviews)
    meta["source"] = "Google Places API"
    return {"status": "success", "result": [r.to_dict() for r in reviews], "meta": meta}
