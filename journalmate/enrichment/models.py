"""Pydantic models for the journal enrichment pipeline.

Defines data structures for:
- Journal entries submitted for enrichment and the per-entry result
- The canonical EnrichedData record shared by every provider
- Tagged provider outputs (book, movie, music, web search)
- Validation outcomes and cache entries

Wire names are camelCase (venueVerified, primaryImageUrl, ...); Python
attributes are snake_case. Both are accepted on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models exchanged with the journal layer."""
    model_config = ConfigDict(
        extra='forbid',
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ContentType(str, Enum):
    """Coarse content classes produced by the detector."""
    BOOK = "book"
    MOVIE = "movie"
    MUSIC = "music"
    EXERCISE = "exercise"


class ProviderID(str, Enum):
    """External data sources the router can pick."""
    GOOGLE_BOOKS = "google_books"
    TMDB = "tmdb"
    SPOTIFY = "spotify"
    WEB_SEARCH = "web_search"


class EnrichmentSource(str, Enum):
    """Provider tag recorded on an EnrichedData record."""
    GOOGLE_BOOKS = "google_books"
    TMDB = "tmdb"
    SPOTIFY = "spotify"
    TAVILY = "tavily"
    # Tags on records stored by earlier journal versions
    CLAUDE = "claude"
    GOOGLE = "google"
    MANUAL = "manual"


# =============================================================================
# Shared pieces
# =============================================================================


class Link(CamelModel):
    """An outbound link (purchase, streaming)."""
    platform: str
    url: str


class MediaItem(CamelModel):
    url: str
    type: Literal["image", "video"] = "image"
    source: Optional[str] = None
    alt: Optional[str] = None


class Coordinates(CamelModel):
    lat: float
    lng: float


class EntryLocation(CamelModel):
    """Location hint supplied with a journal entry."""
    city: Optional[str] = None
    country: Optional[str] = None


class VenueLocation(CamelModel):
    """Resolved venue location on an enrichment record."""
    address: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    directions_url: Optional[str] = None


# =============================================================================
# Canonical enrichment record
# =============================================================================


class EnrichedData(CamelModel):
    """Normalized enrichment record, identical in shape for every provider.

    venue_verified is true only when the record came from an authoritative
    API (Google Books, TMDB, Spotify) or from web results that passed match
    validation. suggested_category is always the table lookup of venue_type.

    Unknown fields are ignored: entries carry previously stored records
    (existing_enrichment) that may hold fields this model no longer has,
    such as rawSearchResults or imdbRating.
    """
    model_config = ConfigDict(extra='ignore')

    venue_verified: bool = False
    venue_type: str = "unknown"
    venue_name: Optional[str] = None
    venue_description: Optional[str] = None

    location: Optional[VenueLocation] = None

    # Business details
    price_range: Optional[Literal["$", "$$", "$$$", "$$$$"]] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: Optional[int] = None
    business_hours: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    reservation_url: Optional[str] = None

    # Media
    primary_image_url: Optional[str] = None
    media_urls: List[MediaItem] = Field(default_factory=list)

    # Category mapping
    suggested_category: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0, le=1)

    # Books
    author: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[str] = None
    isbn: Optional[str] = None
    purchase_links: List[Link] = Field(default_factory=list)

    # Movies / TV
    director: Optional[str] = None
    cast: List[str] = Field(default_factory=list)
    release_year: Optional[str] = None
    runtime: Optional[str] = None
    genre: Optional[str] = None
    streaming_links: List[Link] = Field(default_factory=list)

    # Music
    artist_name: Optional[str] = None
    album_name: Optional[str] = None
    popularity: Optional[int] = None

    # Fitness
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty: Optional[str] = None
    duration: Optional[str] = None
    equipment: List[str] = Field(default_factory=list)

    # Travel / shopping
    highlights: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    product_categories: List[str] = Field(default_factory=list)

    # Metadata
    enriched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    enrichment_source: EnrichmentSource


class JournalEntryForEnrichment(CamelModel):
    """A journal entry submitted for enrichment.

    text is the only required signal; venue_name bypasses extraction and
    location.city overrides any city found in the text.
    """
    id: str
    text: str
    category: str = "notes"
    venue_name: Optional[str] = None
    location: Optional[EntryLocation] = None
    existing_enrichment: Optional[EnrichedData] = None


class EnrichmentResult(CamelModel):
    """Outcome of enriching one entry.

    preserve_existing is set when web results were found but none matched
    the expected entity; the caller should keep the entry's existing
    enrichment instead of overwriting it.
    """
    entry_id: str
    success: bool
    enriched_data: Optional[EnrichedData] = None
    error: Optional[str] = None
    preserve_existing: bool = False


class CategorySuggestion(CamelModel):
    category: str
    venue_type: str
    confidence: float = Field(ge=0, le=1)


# =============================================================================
# Extraction / validation
# =============================================================================


class ExtractedEntity(BaseModel):
    """What the extractor could pull out of free text."""
    title: Optional[str] = None
    author: Optional[str] = None
    artist: Optional[str] = None
    year: Optional[int] = None
    city: Optional[str] = None


class SearchHit(BaseModel):
    """One text result from the generic web search."""
    model_config = ConfigDict(extra='ignore')

    title: str = ""
    content: str = ""
    url: str = ""
    score: Optional[float] = None


class ValidationOutcome(BaseModel):
    is_valid: bool
    confidence: float = Field(ge=0.0, le=1.0)
    matched_result: Optional[SearchHit] = None


class StructuredExtraction(BaseModel):
    """Optional-field subset of EnrichedData pulled from web text.

    Populated from the LLM's JSON object (camelCase keys) or from the
    regex fallback.
    """
    model_config = ConfigDict(
        extra='ignore',
        alias_generator=to_camel,
        populate_by_name=True,
    )

    venue_type: Optional[str] = None
    venue_description: Optional[str] = None
    price_range: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    business_hours: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    reservation_url: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    author: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[str] = None
    purchase_links: List[Link] = Field(default_factory=list)
    director: Optional[str] = None
    release_year: Optional[str] = None
    runtime: Optional[str] = None
    genre: Optional[str] = None
    streaming_links: List[Link] = Field(default_factory=list)
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty: Optional[str] = None
    duration: Optional[str] = None
    equipment: List[str] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    product_categories: List[str] = Field(default_factory=list)


# =============================================================================
# Provider outputs (tagged variants)
# =============================================================================


class BookResult(BaseModel):
    kind: Literal["book"] = "book"
    title: str
    authors: List[str] = Field(default_factory=list)
    publisher: Optional[str] = None
    published_date: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    isbn: Optional[str] = None
    info_link: Optional[str] = None
    purchase_links: List[Link] = Field(default_factory=list)


class MovieResult(BaseModel):
    kind: Literal["movie"] = "movie"
    media_type: Literal["movie", "tv"] = "movie"
    tmdb_id: int
    title: str
    overview: Optional[str] = None
    release_year: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    rating: Optional[float] = None  # TMDB vote average, 0-10
    genres: List[str] = Field(default_factory=list)
    director: Optional[str] = None
    cast: List[str] = Field(default_factory=list)
    runtime: Optional[str] = None
    similarity: float = 0.0


class MusicResult(BaseModel):
    kind: Literal["music"] = "music"
    item_type: Literal["track", "artist", "album"]
    name: str
    artist_name: Optional[str] = None
    album_name: Optional[str] = None
    release_year: Optional[str] = None
    image_url: Optional[str] = None
    spotify_url: Optional[str] = None
    preview_url: Optional[str] = None
    popularity: Optional[int] = None
    streaming_links: List[Link] = Field(default_factory=list)


class WebSearchResult(BaseModel):
    kind: Literal["web_search"] = "web_search"
    query: str
    results: List[SearchHit] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    validation: ValidationOutcome
    extraction: StructuredExtraction = Field(default_factory=StructuredExtraction)


ProviderOutput = Union[BookResult, MovieResult, MusicResult, WebSearchResult]


class ProviderErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    NO_RESULT = "no_result"
    NETWORK = "network"
    VALIDATION_FAILED = "validation_failed"


class ProviderError(BaseModel):
    kind: ProviderErrorKind
    message: str = ""
    validation: Optional[ValidationOutcome] = None


class ProviderResponse(BaseModel):
    """Result-style return from an adapter: exactly one of result / error."""
    provider: ProviderID
    result: Optional[ProviderOutput] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, provider: ProviderID, result: ProviderOutput) -> "ProviderResponse":
        return cls(provider=provider, result=result)

    @classmethod
    def failure(
        cls,
        provider: ProviderID,
        kind: ProviderErrorKind,
        message: str = "",
        validation: Optional[ValidationOutcome] = None,
    ) -> "ProviderResponse":
        return cls(
            provider=provider,
            error=ProviderError(kind=kind, message=message, validation=validation),
        )


class CacheEntry(BaseModel):
    """Cache entry for a normalized enrichment record."""
    data: EnrichedData
    timestamp: float  # epoch seconds at insertion
