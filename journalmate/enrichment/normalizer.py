"""Normalize tagged provider outputs into the canonical EnrichedData record.

Every branch ends in `_finalize`, which derives suggested_category and
category_confidence from venue_type by table lookup and fills in any
missing purchase / streaming / directions links.
"""

from typing import List, Optional
from urllib.parse import quote_plus

from journalmate.enrichment.categories import (
    BOOK_VENUE_TYPES,
    MUSIC_VENUE_TYPES,
    PLACELESS_VENUE_TYPES,
    SCREEN_VENUE_TYPES,
    category_confidence_for,
    coerce_venue_type,
    map_venue_type_to_category,
)
from journalmate.enrichment.models import (
    BookResult,
    ContentType,
    EnrichedData,
    EnrichmentSource,
    Link,
    MediaItem,
    MovieResult,
    MusicResult,
    ProviderOutput,
    VenueLocation,
    WebSearchResult,
)
from journalmate.enrichment.providers.google_books import book_purchase_links
from journalmate.enrichment.providers.spotify import music_streaming_links


PRICE_RANGES = ("$", "$$", "$$$", "$$$$")
DESCRIPTION_CHARS = 300
MEDIA_LIMIT = 5

# Web-search venue type when the LLM gives none
CONTENT_TYPE_VENUE_TYPES = {
    ContentType.BOOK: "book",
    ContentType.MOVIE: "movie",
    ContentType.MUSIC: "music",
    ContentType.EXERCISE: "exercise",
}


# =============================================================================
# Link synthesis
# =============================================================================


def movie_streaming_links(title: str, year: Optional[str] = None) -> List[Link]:
    query = quote_plus(f"{title} {year}" if year else title)
    return [
        Link(platform="JustWatch", url=f"https://www.justwatch.com/us/search?q={query}"),
        Link(platform="Google", url=f"https://www.google.com/search?q={query}+watch+online"),
    ]


def directions_url(venue_name: str, address: Optional[str] = None, city: Optional[str] = None) -> str:
    parts = [venue_name] + [p for p in (address, city) if p]
    return f"https://www.google.com/maps/search/?api=1&query={quote_plus(', '.join(parts))}"


def clamp_rating(value: Optional[float], scale: float = 5.0) -> Optional[float]:
    """Rescale to 0-5 and clamp; None stays None."""
    if value is None:
        return None
    rating = float(value) * 5.0 / scale
    return round(min(max(rating, 0.0), 5.0), 1)


def _price_range(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value if value in PRICE_RANGES else None


def _media(urls: List[Optional[str]], source: str, alt: Optional[str]) -> List[MediaItem]:
    return [MediaItem(url=u, type="image", source=source, alt=alt) for u in urls if u][:MEDIA_LIMIT]


# =============================================================================
# Per-variant mapping
# =============================================================================


def _from_book(book: BookResult) -> EnrichedData:
    return EnrichedData(
        venue_verified=True,
        venue_type="book",
        venue_name=book.title,
        venue_description=(book.description or "")[:DESCRIPTION_CHARS] or None,
        author=", ".join(book.authors) or None,
        publisher=book.publisher,
        publication_year=(book.published_date or "")[:4] or None,
        isbn=book.isbn,
        purchase_links=book.purchase_links,
        website=book.info_link,
        primary_image_url=book.cover_url,
        media_urls=_media([book.cover_url], "google_books", book.title),
        enrichment_source=EnrichmentSource.GOOGLE_BOOKS,
    )


def _from_movie(movie: MovieResult) -> EnrichedData:
    return EnrichedData(
        venue_verified=True,
        venue_type="movie" if movie.media_type == "movie" else "tv_show",
        venue_name=movie.title,
        venue_description=(movie.overview or "")[:DESCRIPTION_CHARS] or None,
        rating=clamp_rating(movie.rating, scale=10.0),
        director=movie.director,
        cast=movie.cast,
        release_year=movie.release_year,
        runtime=movie.runtime,
        genre=", ".join(movie.genres) or None,
        primary_image_url=movie.poster_url or movie.backdrop_url,
        media_urls=_media([movie.poster_url, movie.backdrop_url], "tmdb", movie.title),
        enrichment_source=EnrichmentSource.TMDB,
    )


def _from_music(music: MusicResult) -> EnrichedData:
    venue_type = {"artist": "artist", "album": "album"}.get(music.item_type, "music")
    return EnrichedData(
        venue_verified=True,
        venue_type=venue_type,
        venue_name=music.name,
        artist_name=music.artist_name,
        album_name=music.album_name,
        release_year=music.release_year,
        popularity=music.popularity,
        website=music.spotify_url,
        streaming_links=music.streaming_links,
        primary_image_url=music.image_url,
        media_urls=_media([music.image_url], "spotify", music.name),
        enrichment_source=EnrichmentSource.SPOTIFY,
    )


def _from_web(
    web: WebSearchResult,
    venue_name: str,
    city: Optional[str],
    content_type: Optional[ContentType],
) -> EnrichedData:
    extraction = web.extraction
    venue_type = (
        coerce_venue_type(extraction.venue_type)
        or CONTENT_TYPE_VENUE_TYPES.get(content_type)
        or "unknown"
    )
    matched = web.validation.matched_result
    description = extraction.venue_description or (matched.content[:DESCRIPTION_CHARS] if matched else None)

    location = None
    if extraction.address or extraction.city or extraction.neighborhood or city:
        location = VenueLocation(
            address=extraction.address,
            city=extraction.city or city,
            neighborhood=extraction.neighborhood,
        )

    return EnrichedData(
        venue_verified=web.validation.is_valid,
        venue_type=venue_type,
        venue_name=venue_name,
        venue_description=description or None,
        location=location,
        price_range=_price_range(extraction.price_range),
        rating=clamp_rating(extraction.rating),
        review_count=extraction.review_count,
        business_hours=extraction.business_hours,
        phone=extraction.phone,
        website=extraction.website,
        reservation_url=extraction.reservation_url,
        primary_image_url=web.images[0] if web.images else None,
        media_urls=_media(list(web.images), "web", venue_name),
        author=extraction.author,
        publisher=extraction.publisher,
        publication_year=extraction.publication_year,
        purchase_links=extraction.purchase_links,
        director=extraction.director,
        release_year=extraction.release_year,
        runtime=extraction.runtime,
        genre=extraction.genre,
        streaming_links=extraction.streaming_links,
        muscle_groups=extraction.muscle_groups,
        difficulty=extraction.difficulty,
        duration=extraction.duration,
        equipment=extraction.equipment,
        highlights=extraction.highlights,
        amenities=extraction.amenities,
        product_categories=extraction.product_categories,
        enrichment_source=EnrichmentSource.TAVILY,
    )


# =============================================================================
# Entry point
# =============================================================================


def _finalize(data: EnrichedData) -> EnrichedData:
    venue_type = data.venue_type
    data.suggested_category = map_venue_type_to_category(venue_type)
    data.category_confidence = category_confidence_for(venue_type)

    name = data.venue_name or ""
    if venue_type in BOOK_VENUE_TYPES and not data.purchase_links and name:
        data.purchase_links = book_purchase_links(name, data.author, data.isbn)
    if venue_type in SCREEN_VENUE_TYPES and not data.streaming_links and name:
        data.streaming_links = movie_streaming_links(name, data.release_year)
    if venue_type in MUSIC_VENUE_TYPES and not data.streaming_links and name:
        data.streaming_links = music_streaming_links(name, data.artist_name)

    if venue_type not in PLACELESS_VENUE_TYPES and name:
        if data.location is None:
            data.location = VenueLocation()
        if not data.location.directions_url:
            data.location.directions_url = directions_url(name, data.location.address, data.location.city)
    return data


def normalize(
    output: ProviderOutput,
    venue_name: str,
    city: Optional[str] = None,
    category: Optional[str] = None,
    content_type: Optional[ContentType] = None,
) -> EnrichedData:
    """Map one provider output to EnrichedData.

    Args:
        output: Tagged provider result (book, movie, music or web search)
        venue_name: Title / venue name the entry was enriched for
        city: City hint for venue records
        category: The entry's journal category (kept for callers; the
            suggested category always comes from venue_type)
        content_type: Detected content type, used as the web-search
            venue type when the page classification is missing

    Returns:
        EnrichedData
    """
    if isinstance(output, BookResult):
        data = _from_book(output)
    elif isinstance(output, MovieResult):
        data = _from_movie(output)
    elif isinstance(output, MusicResult):
        data = _from_music(output)
    elif isinstance(output, WebSearchResult):
        data = _from_web(output, venue_name, city, content_type)
    else:
        raise TypeError(f"Unsupported provider output: {type(output).__name__}")
    return _finalize(data)
