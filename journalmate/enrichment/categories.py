"""Category tables shared by the detector, router, validator and normalizer.

Two vocabularies meet here:
- venue types: fine-grained tags on an EnrichedData record (book, movie, bar, ...)
- journal categories: the user-facing buckets (books, movies, restaurants, ...)

The category of a record is always a lookup of its venue type, never set on
its own.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
import re


# =============================================================================
# Venue type -> journal category
# =============================================================================

VENUE_TYPE_TO_CATEGORY: Dict[str, str] = {
    # Dining & drinks
    "restaurant": "restaurants",
    "cafe": "restaurants",
    "coffee_shop": "restaurants",
    "bar": "restaurants",
    "pub": "restaurants",
    "lounge": "restaurants",
    "nightclub": "activities",
    "wine_bar": "restaurants",
    "brewery": "restaurants",
    "bakery": "restaurants",

    # Movies & TV
    "movie_theater": "movies",
    "cinema": "movies",
    "movie": "movies",
    "film": "movies",
    "tv_show": "movies",

    # Music & live entertainment
    "concert_venue": "music",
    "theater": "activities",
    "comedy_club": "activities",
    "arena": "music",
    "stadium": "activities",
    "music": "music",
    "artist": "music",
    "album": "music",

    # Books
    "book": "books",
    "biography": "books",
    "novel": "books",
    "memoir": "books",
    "textbook": "books",
    "bookstore": "books",
    "library": "books",

    # Fitness
    "exercise": "fitness",
    "workout": "fitness",
    "yoga": "fitness",
    "gym": "fitness",
    "spa": "fitness",
    "yoga_studio": "fitness",
    "fitness_center": "fitness",
    "fitness": "fitness",

    # Travel & places
    "hotel": "travel",
    "resort": "travel",
    "hostel": "travel",
    "airbnb": "travel",
    "vacation_rental": "travel",
    "attraction": "travel",
    "landmark": "travel",
    "museum": "travel",
    "park": "travel",
    "beach": "travel",
    "airport": "travel",

    # Shopping
    "store": "shopping",
    "mall": "shopping",
    "boutique": "style",
    "fashion_store": "style",

    # Other
    "school": "books",
    "office": "notes",
    "unknown": "notes",
}

DEFAULT_CATEGORY = "notes"
MAPPED_CONFIDENCE = 0.85
UNMAPPED_CONFIDENCE = 0.5

# Tags accepted from the LLM; anything else becomes "unknown".
VALID_VENUE_TYPES = frozenset({
    "restaurant", "cafe", "bar", "nightclub", "pub", "lounge",
    "movie_theater", "movie", "film", "tv_show", "concert_venue", "music",
    "artist", "album", "theater",
    "hotel", "resort", "museum", "park", "beach",
    "gym", "exercise", "workout", "yoga", "fitness",
    "book", "biography", "novel", "memoir", "textbook", "bookstore",
    "spa", "store", "mall", "boutique",
    "unknown",
})

BOOK_VENUE_TYPES = frozenset({"book", "biography", "novel", "memoir", "textbook"})
SCREEN_VENUE_TYPES = frozenset({"movie", "film", "tv_show"})
MUSIC_VENUE_TYPES = frozenset({"music", "artist", "album"})
FITNESS_VENUE_TYPES = frozenset({"exercise", "workout", "yoga", "fitness"})
TRAVEL_VENUE_TYPES = frozenset({"hotel", "resort", "museum", "park", "beach"})
SHOPPING_VENUE_TYPES = frozenset({"store", "mall", "boutique"})
# Things you can read, watch, hear or do anywhere: no directions link.
PLACELESS_VENUE_TYPES = BOOK_VENUE_TYPES | SCREEN_VENUE_TYPES | MUSIC_VENUE_TYPES | FITNESS_VENUE_TYPES


def map_venue_type_to_category(venue_type: Optional[str]) -> str:
    """Journal category for a venue type (default: notes)."""
    return VENUE_TYPE_TO_CATEGORY.get(venue_type or "", DEFAULT_CATEGORY)


def category_confidence_for(venue_type: Optional[str]) -> float:
    """Confidence attached to the venue type -> category lookup."""
    if venue_type and venue_type != "unknown" and venue_type in VENUE_TYPE_TO_CATEGORY:
        return MAPPED_CONFIDENCE
    return UNMAPPED_CONFIDENCE


def coerce_venue_type(value: Optional[str]) -> Optional[str]:
    """Normalize a free-form venue type tag, or None if it isn't one we know."""
    if not value:
        return None
    tag = re.sub(r"[\s\-]+", "_", value.strip().lower())
    return tag if tag in VALID_VENUE_TYPES else None


# =============================================================================
# Category classes (match validation strictness)
# =============================================================================


class CategoryClass(str, Enum):
    STRICT = "strict"      # specific media entities: movies, books, music
    RELAXED = "relaxed"    # user activities with no canonical match
    MODERATE = "moderate"  # restaurants and everything else


_CATEGORY_ALIASES: Dict[str, str] = {
    # media
    "movie": "movies",
    "film": "movies",
    "tv": "movies",
    "tv_show": "movies",
    "movies & tv shows": "movies",
    "book": "books",
    "biography": "books",
    "novel": "books",
    "memoir": "books",
    "books & reading": "books",
    "artist": "music",
    "album": "music",
    "music & artists": "music",
    # activities
    "event": "events",
    "activity": "activities",
    "travel & places": "travel",
    "hobby": "hobbies",
    "hobbies & interests": "hobbies",
    "note": "notes",
    # everything else
    "restaurant": "restaurants",
    "restaurants & food": "restaurants",
    "exercise": "fitness",
    "hotel": "hotels",
    "bar": "bars",
}

STRICT_CATEGORIES = frozenset({"movies", "books", "music"})
RELAXED_CATEGORIES = frozenset({
    "activities", "events", "travel", "hobbies", "entertainment", "notes",
})


def normalize_category(category: Optional[str]) -> str:
    """Canonical lowercase category name for a label or venue type."""
    if not category:
        return DEFAULT_CATEGORY
    key = category.strip().lower()
    return _CATEGORY_ALIASES.get(key, key)


def classify_category(category: Optional[str]) -> CategoryClass:
    name = normalize_category(category)
    if name in STRICT_CATEGORIES:
        return CategoryClass.STRICT
    if name in RELAXED_CATEGORIES:
        return CategoryClass.RELAXED
    return CategoryClass.MODERATE


# =============================================================================
# Web search query shaping
# =============================================================================

_SEARCH_SUFFIXES: Dict[str, str] = {
    "books": "book cover author ISBN",
    "movies": "movie film IMDB poster",
    "music": "artist band album concert",
    "fitness": "exercise workout pose form",
    "wellness": "wellness spa health",
    "restaurants": "restaurant menu photos",
    "bars": "bar cocktail nightlife",
    "travel": "destination hotel attraction photos",
    "hotels": "hotel resort accommodation photos",
    "activities": "activity event venue",
    "entertainment": "entertainment show event",
    "hobbies": "hobby activity",
}

_LOCAL_CATEGORIES = frozenset({"restaurants", "bars", "hotels", "activities", "entertainment"})


def build_search_query(venue_name: str, city: Optional[str] = None, category: Optional[str] = None) -> str:
    """Free-text web query for a venue/title, shaped by category."""
    name = normalize_category(category) if category else None
    suffix = _SEARCH_SUFFIXES.get(name) if name else None

    query = venue_name
    if suffix:
        query += f" {suffix}"
        if city and name in _LOCAL_CATEGORIES:
            query += f" {city}"
    elif city:
        query += f" {city}"
    return query


# Trusted domains per category for the generic web search.
SEARCH_DOMAINS: Dict[str, List[str]] = {
    "restaurants": ["yelp.com", "tripadvisor.com", "opentable.com", "infatuation.com", "eater.com"],
    "bars": ["yelp.com", "tripadvisor.com", "timeout.com"],
    "hotels": ["tripadvisor.com", "booking.com", "expedia.com", "hotels.com"],
    "travel": ["tripadvisor.com", "lonelyplanet.com", "wikipedia.org", "timeout.com"],
    "movies": ["imdb.com", "rottentomatoes.com", "themoviedb.org", "letterboxd.com", "wikipedia.org"],
    "books": ["goodreads.com", "amazon.com", "books.google.com", "barnesandnoble.com", "wikipedia.org"],
    "music": ["spotify.com", "music.apple.com", "allmusic.com", "genius.com", "wikipedia.org"],
    "fitness": ["verywellfit.com", "healthline.com", "acefitness.org", "yogajournal.com"],
}


def search_domains_for(category: Optional[str]) -> Optional[List[str]]:
    return SEARCH_DOMAINS.get(normalize_category(category)) if category else None


# =============================================================================
# Keyword-based category suggestion (no enrichment available)
# =============================================================================

# Ordered; first match wins.
CATEGORY_KEYWORD_PATTERNS: List[Tuple[re.Pattern, str, str]] = [
    (re.compile(r"restaurant|cafe|diner|bistro|eatery|food|cuisine|dish|meal", re.I), "restaurants", "restaurant"),
    (re.compile(r"bar|pub|lounge|cocktail|beer|wine|drinks?", re.I), "restaurants", "bar"),
    (re.compile(r"nightclub|club|dancing|dj|party venue", re.I), "activities", "nightclub"),
    (re.compile(r"movie|cinema|film|theater|screening", re.I), "movies", "movie"),
    (re.compile(r"concert|music|live show|band|artist|album", re.I), "music", "music"),
    (re.compile(r"hotel|resort|airbnb|hostel|stay|vacation|trip|travel|visit", re.I), "travel", "hotel"),
    (re.compile(r"museum|gallery|exhibit|art|attraction", re.I), "travel", "museum"),
    (re.compile(r"book|read|author|novel|library", re.I), "books", "book"),
    (re.compile(r"shop|store|buy|purchase|mall|boutique", re.I), "shopping", "store"),
    (re.compile(r"gym|workout|fitness|yoga|exercise|spa|wellness", re.I), "fitness", "exercise"),
    (re.compile(r"outfit|style|fashion|clothes|wear", re.I), "style", "boutique"),
]

KEYWORD_CONFIDENCE = 0.7
