"""
Review Data Processor - Validation and normalization of raw actor output.

Each platform actor returns its own raw schema. This module maps raw records
to one canonical shape per platform:

GOOGLE_MAPS: reviewerId, name, text, stars, rating, publishedAtDate, placeId, ...
FACEBOOK:    facebookReviewId, userName, text, isRecommended, date, ...
TRIPADVISOR: tripAdvisorReviewId, reviewerName, text, rating, tripType, ...
BOOKING:     bookingReviewId, reviewerName, rating, guestType, sub-ratings, ...

Defaulting rules:
- Missing author -> "Anonymous"
- Missing numeric rating -> 0
- Missing or unparseable date -> processing time
- Booking guestType -> "OTHER"; Booking sub-ratings stay None when absent

All dates are emitted as ISO-8601 strings in UTC.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from dateutil import parser as date_parser

from .errors import DataFormatError, ErrorKind
from .models.result import NormalizationResult
from .platforms import Platform

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

TRIP_TYPES = frozenset({"FAMILY", "COUPLES", "SOLO", "BUSINESS", "FRIENDS", "NONE"})

BOOKING_SUB_RATINGS = (
    "cleanlinessRating",
    "comfortRating",
    "locationRating",
    "facilitiesRating",
    "staffRating",
    "valueForMoneyRating",
    "wifiRating",
)

# Required field -> accepted raw keys. Dotted keys read nested dicts.
GENERIC_REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "text": ("text", "reviewText"),
    "rating": ("rating", "stars"),
    "author": ("author", "reviewerName"),
}

PLATFORM_REQUIRED_FIELDS: Dict[Platform, Dict[str, Tuple[str, ...]]] = {
    Platform.GOOGLE_MAPS: {
        "text": ("text", "reviewText"),
        "rating": ("stars", "rating"),
        "author": ("name", "reviewerName"),
    },
    Platform.FACEBOOK: {
        "text": ("text", "reviewText"),
        "rating": ("isRecommended", "rating"),
        "author": ("userName", "user.name"),
    },
    Platform.TRIPADVISOR: {
        "text": ("text", "reviewText"),
        "rating": ("rating", "stars"),
        "author": ("reviewerName", "user.name"),
    },
    Platform.BOOKING: {
        "text": ("text", "reviewText"),
        "rating": ("rating", "stars"),
        "author": ("reviewerName", "userName"),
    },
}


# =============================================================================
# Field helpers
# =============================================================================

def _lookup(item: Dict[str, Any], key: str) -> Any:
    value: Any = item
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _first(item: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present value among keys, else default."""
    for key in keys:
        value = _lookup(item, key)
        if _present(value):
            return value
    return default


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not _present(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or not _present(value):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _parse_date(value: Any) -> Optional[datetime]:
    """Parse a raw date (ISO string, datetime or epoch ms) into aware UTC."""
    if not _present(value):
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            parsed = date_parser.parse(str(value))
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _iso(value: Any) -> Optional[str]:
    parsed = _parse_date(value)
    return parsed.isoformat() if parsed else None


def normalize_trip_type(value: Any) -> str:
    """Map a raw trip type to the known set, else NONE."""
    if not _present(value):
        return "NONE"
    trip_type = str(value).strip().upper()
    return trip_type if trip_type in TRIP_TYPES else "NONE"


# =============================================================================
# Processor
# =============================================================================

class ReviewDataProcessor:
    """
    Validate and normalize raw review records per platform.

    Example:
        processor = ReviewDataProcessor()
        result = processor.transform_review_data(items, Platform.GOOGLE_MAPS)
        if result.success:
            gateway.save_reviews(business_id, result.records)
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: Returns the processing time used for missing dates
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._mappers: Dict[Platform, Callable[[Dict[str, Any], str], Dict[str, Any]]] = {
            Platform.GOOGLE_MAPS: self._process_google,
            Platform.FACEBOOK: self._process_facebook,
            Platform.TRIPADVISOR: self._process_tripadvisor,
            Platform.BOOKING: self._process_booking,
        }

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _required_fields(platform: Optional[Platform]) -> Dict[str, Tuple[str, ...]]:
        if platform is None:
            return GENERIC_REQUIRED_FIELDS
        platform_fields = PLATFORM_REQUIRED_FIELDS.get(platform, {})
        return {
            name: tuple(dict.fromkeys(platform_fields.get(name, ()) + keys))
            for name, keys in GENERIC_REQUIRED_FIELDS.items()
        }

    def find_invalid_record(
        self,
        records: Any,
        platform: Optional[Platform] = None,
    ) -> Optional[str]:
        """Describe the first validation problem, or None if records are valid."""
        if not isinstance(records, list):
            return f"Expected a list of records, got {type(records).__name__}"
        if not records:
            return "No records"

        required = self._required_fields(platform)
        for index, item in enumerate(records):
            if not isinstance(item, dict):
                return f"Record {index} is not an object"
            text = _first(item, *required["text"])
            if not isinstance(text, str) or not text.strip():
                return f"Record {index} has no review text"
            if _first(item, *required["rating"]) is None:
                return f"Record {index} has no rating"
            if _first(item, *required["author"]) is None:
                return f"Record {index} has no author"
        return None

    def validate_review_data(self, records: Any, platform: Optional[Platform] = None) -> bool:
        """
        Check raw records before normalization.

        True only if records is a non-empty list and every record is a dict
        with non-empty text, a rating and an author (platform-specific key
        names accepted in addition to text/reviewText, rating/stars,
        author/reviewerName).
        """
        return self.find_invalid_record(records, platform) is None

    # =========================================================================
    # Normalization
    # =========================================================================

    def process_review_data(
        self,
        records: Iterable[Dict[str, Any]],
        platform: Platform,
    ) -> List[Dict[str, Any]]:
        """
        Map raw records to the platform's canonical shape.

        Raises:
            DataFormatError: If the platform has no mapping
        """
        mapper = self._mappers.get(platform)
        if mapper is None:
            raise DataFormatError(f"No review mapping for platform {platform}")

        now = self._clock().astimezone(timezone.utc).isoformat()
        processed = [mapper(item, now) for item in records]
        logger.info(f"Normalized {len(processed)} {platform.value} reviews")
        return processed

    def transform_review_data(self, records: Any, platform: Platform) -> NormalizationResult:
        """
        Validate then normalize. Never raises for bad data.

        Returns:
            NormalizationResult with records, or DATA_FORMAT failure
        """
        problem = self.find_invalid_record(records, platform)
        if problem:
            logger.warning(f"Invalid {platform.value} review data: {problem}")
            return NormalizationResult.failure(f"Invalid review data format: {problem}")

        try:
            return NormalizationResult.ok(self.process_review_data(records, platform))
        except DataFormatError as e:
            return NormalizationResult.failure(str(e))
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to normalize {platform.value} reviews: {e}")
            return NormalizationResult.failure(f"Failed to normalize reviews: {e}", ErrorKind.DATA_FORMAT)

    # =========================================================================
    # Platform mappings
    # =========================================================================

    def _process_google(self, item: Dict[str, Any], now: str) -> Dict[str, Any]:
        published = _iso(_first(item, "publishedAtDate", "publishAt", "publishedAt")) or now
        return {
            "reviewerId": _first(item, "reviewerId", "userId", default=""),
            "reviewerUrl": _first(item, "reviewerUrl", "profileUrl", default=""),
            "name": _first(item, "name", "reviewerName", "author", default=ANONYMOUS),
            "reviewerNumberOfReviews": _to_int(_first(item, "reviewerNumberOfReviews", "totalReviews")),
            "isLocalGuide": bool(item.get("isLocalGuide", False)),
            "reviewerPhotoUrl": _first(item, "reviewerPhotoUrl", "profileImage", default=""),
            "text": _first(item, "text", "reviewText", default=""),
            "textTranslated": _first(item, "textTranslated"),
            "publishAt": _first(item, "publishAt", default=published),
            "publishedAtDate": published,
            "likesCount": _to_int(_first(item, "likesCount", "helpfulVotes")),
            "reviewUrl": _first(item, "reviewUrl", "url", default=""),
            "reviewOrigin": _first(item, "reviewOrigin", default="google_maps"),
            "stars": _to_float(_first(item, "stars", "rating")) or 0.0,
            "rating": _to_float(_first(item, "rating", "stars")) or 0.0,
            "responseFromOwnerDate": _iso(item.get("responseFromOwnerDate")),
            "responseFromOwnerText": _first(item, "responseFromOwnerText"),
            "reviewImageUrls": _first(item, "reviewImageUrls", "photos", default=[]),
            "reviewContext": _first(item, "reviewContext"),
            "reviewDetailedRating": _first(item, "reviewDetailedRating"),
            "visitedIn": _first(item, "visitedIn"),
            "originalLanguage": _first(item, "originalLanguage", default="en"),
            "translatedLanguage": _first(item, "translatedLanguage"),
            "isAdvertisement": bool(item.get("isAdvertisement", False)),
            "placeId": _first(item, "placeId", default=""),
            "location": _first(item, "location", default={}),
            "address": _first(item, "address", default=""),
            "city": _first(item, "city"),
            "postalCode": _first(item, "postalCode"),
            "countryCode": _first(item, "countryCode"),
            "categoryName": _first(item, "categoryName"),
            "categories": _first(item, "categories", default=[]),
            "title": _first(item, "title", default=""),
            "totalScore": _to_float(item.get("totalScore")),
            "reviewsCount": _first(item, "reviewsCount"),
            "url": _first(item, "url", default=""),
            "scrapedAt": now,
            "language": _first(item, "language", default="en"),
        }

    def _process_facebook(self, item: Dict[str, Any], now: str) -> Dict[str, Any]:
        return {
            "facebookReviewId": _first(item, "facebookReviewId", "reviewId", default=""),
            "legacyId": _first(item, "legacyId", "id", default=""),
            "date": _iso(_first(item, "date", "publishedAt")) or now,
            "url": _first(item, "url", "reviewUrl", default=""),
            "text": _first(item, "text", "reviewText", default=""),
            "isRecommended": bool(_first(item, "isRecommended", "recommended", default=False)),
            "userId": _first(item, "userId", "user.id", "reviewerId", default=""),
            "userName": _first(item, "userName", "user.name", "reviewerName", "author", default=ANONYMOUS),
            "userProfileUrl": _first(item, "userProfileUrl", "user.profileUrl", "profileUrl"),
            "userProfilePic": _first(item, "userProfilePic", "user.profilePic", "profileImage"),
            "likesCount": _to_int(_first(item, "likesCount", "helpfulVotes")),
            "commentsCount": _to_int(item.get("commentsCount")),
            "tags": _first(item, "tags", default=[]),
            "facebookPageId": _first(item, "facebookPageId", "pageId", default=""),
            "pageName": _first(item, "pageName", default=""),
            "inputUrl": _first(item, "inputUrl", default=""),
            "scrapedAt": now,
        }

    def _process_tripadvisor(self, item: Dict[str, Any], now: str) -> Dict[str, Any]:
        owner_text = _first(item, "responseFromOwnerText", "ownerResponse.text")
        return {
            "tripAdvisorReviewId": str(_first(item, "tripAdvisorReviewId", "reviewId", "id", default="")),
            "reviewUrl": _first(item, "reviewUrl", "url"),
            "title": _first(item, "title"),
            "text": _first(item, "text", "reviewText"),
            "rating": _to_float(_first(item, "rating", "stars")) or 0.0,
            "publishedDate": _iso(_first(item, "publishedDate", "publishedAt")) or now,
            "visitDate": _iso(_first(item, "visitDate", "travelDate")),
            "reviewerId": _first(item, "reviewerId", "userId", "user.userId", default=""),
            "reviewerName": _first(item, "reviewerName", "user.name", "author", default=ANONYMOUS),
            "reviewerLocation": _first(item, "reviewerLocation", "user.userLocation.name"),
            "reviewerLevel": _first(item, "reviewerLevel"),
            "reviewerPhotoUrl": _first(item, "reviewerPhotoUrl", "profileImage"),
            "helpfulVotes": _to_int(_first(item, "helpfulVotes", "likesCount")),
            "tripType": normalize_trip_type(item.get("tripType")),
            "roomTip": _first(item, "roomTip"),
            "responseFromOwnerText": owner_text,
            "responseFromOwnerDate": _iso(_first(item, "responseFromOwnerDate", "ownerResponse.publishedDate")),
            "hasOwnerResponse": bool(item.get("hasOwnerResponse") or owner_text),
            "locationId": str(_first(item, "locationId", default="")),
            "businessName": _first(item, "businessName", "placeInfo.name"),
            "businessType": _first(item, "businessType"),
            "scrapedAt": now,
        }

    def _process_booking(self, item: Dict[str, Any], now: str) -> Dict[str, Any]:
        owner_text = _first(item, "responseFromOwnerText", "hotelResponse")
        record = {
            "bookingReviewId": _first(item, "bookingReviewId", "reviewId", "id"),
            "title": _first(item, "title", "reviewTitle"),
            "text": _first(item, "text", "reviewText"),
            "rating": _to_float(_first(item, "rating", "stars")) or 0.0,
            "publishedDate": _iso(_first(item, "publishedDate", "reviewDate", "publishedAt")) or now,
            "stayDate": _iso(_first(item, "stayDate", "checkInDate")),
            "reviewerId": _first(item, "reviewerId", "userId"),
            "reviewerName": _first(item, "reviewerName", "userName", "author", default=ANONYMOUS),
            "reviewerNationality": _first(item, "reviewerNationality", "userLocation"),
            "lengthOfStay": _first(item, "lengthOfStay", "numberOfNights"),
            "roomType": _first(item, "roomType", "roomInfo"),
            "guestType": _first(item, "guestType", "travelerType", default="OTHER"),
            "likedMost": _first(item, "likedMost", "likedText"),
            "dislikedMost": _first(item, "dislikedMost", "dislikedText"),
        }
        for field in BOOKING_SUB_RATINGS:
            record[field] = _to_float(item.get(field))
        record.update({
            "responseFromOwnerText": owner_text,
            "responseFromOwnerDate": _iso(item.get("responseFromOwnerDate")),
            "hasOwnerResponse": bool(item.get("hasOwnerResponse") or owner_text),
            "isVerifiedStay": bool(item.get("isVerifiedStay", False)),
            "scrapedAt": now,
        })
        return record
