"""Title / venue extraction from free journal text.

Extraction is table driven: each content type has an ordered list of
templates, each a compiled pattern plus a function turning the match into
an ExtractedEntity. Templates are tried in order and the first match wins.
When nothing type-specific matches, generic venue templates run, followed
by a separate city lookup. Books have one more fallback: the text before
the first dash, minus a leading "read"/"reading"/"started".

Usage:
------
from journalmate.enrichment.extraction import extract_entity
from journalmate.enrichment.models import ContentType

entity = extract_entity("Watch Wicked for Good", ContentType.MOVIE)
# ExtractedEntity(title='Wicked for Good', ...)
"""

import re
from typing import Callable, Dict, List, NamedTuple, Optional

from journalmate.enrichment.models import ContentType, ExtractedEntity


# Capitalized personal/band name, up to four words ("James Clear", "J.R.R. Tolkien")
NAME = r"[A-Z][A-Za-z.'\-]+(?:\s+[A-Z][A-Za-z.'\-]+){0,3}"
QUOTED = r"[\"“]([^\"”]{2,})[\"”]"
YEAR = r"(?:19|20)\d{2}"


class Template(NamedTuple):
    pattern: re.Pattern
    build: Callable[[re.Match], ExtractedEntity]


def _groups(*fields: str) -> Callable[[re.Match], ExtractedEntity]:
    """Map positional groups onto ExtractedEntity fields."""
    def build(match: re.Match) -> ExtractedEntity:
        values = {}
        for field, value in zip(fields, match.groups()):
            if value is None:
                continue
            values[field] = int(value) if field == "year" else value
        return ExtractedEntity(**values)
    return build


def _t(pattern: str, *fields: str, flags: int = 0) -> Template:
    return Template(re.compile(pattern, flags), _groups(*fields))


# =============================================================================
# Templates
# =============================================================================

BOOK_TEMPLATES: List[Template] = [
    # "Atomic Habits" by James Clear
    _t(QUOTED + rf"(?:\s+(?i:by)\s+({NAME}))?", "title", "author"),
    # Reading Atomic Habits by James Clear
    _t(
        r"^(?:(?i:i\s+)?(?i:started reading|finished reading|just finished|reading|read|started|finished)\s+)?"
        rf"(.+?)\s+(?i:by)\s+({NAME})",
        "title", "author",
    ),
    # Started reading Dune - loving it
    _t(
        r"^(?i:started reading|finished reading|just finished|reading|read|started|finished)\s+"
        r"(.+?)\s*(?:[-–—.!,]|$)",
        "title",
    ),
    # Sapiens book / Leonardo da Vinci - Biography
    _t(r"^(.+?)\s+(?i:book|novel|memoir|biography|audiobook)\b", "title"),
]

MOVIE_TEMPLATES: List[Template] = [
    # Watch Wicked for Good
    _t(
        r"^(?i:find and watch|re-?watch(?:ed)?|watch(?:ed|ing)?|see|saw)\s+[\"“']?(.+?)[\"”']?\s*$",
        "title",
    ),
    _t(QUOTED, "title"),
    # Dune (2021)
    _t(rf"^(.+?)\s*[\(\[]({YEAR})[\)\]]", "title", "year"),
    # Oppenheimer movie
    _t(r"^(.+?)\s+(?i:movie|film|documentary|series|tv show)\b", "title"),
    # Movie: Past Lives
    _t(r"^(?i:movie|film|show)\s*[:\-–—]\s*(.+)$", "title"),
]

MUSIC_TEMPLATES: List[Template] = [
    # "Hello" by Adele
    _t(QUOTED + r"\s+(?i:by|from)\s+(.+?)\s*$", "title", "artist"),
    # Listen to Hello by Adele
    _t(
        r"^(?i:listen(?:ed|ing)? to|play(?:ed|ing)?)\s+[\"“']?(.+?)[\"”']?"
        rf"(?:\s+(?i:by)\s+({NAME}))?\s*$",
        "title", "artist",
    ),
    # Renaissance album
    _t(r"^(.+?)\s+(?i:song|track|album|music|playlist)\b", "title"),
    _t(QUOTED, "title"),
]

EXERCISE_TEMPLATES: List[Template] = [
    # Warrior II pose
    _t(r"^(.+?\s+(?i:pose|stretch|press|curls?|squats?|lunges?|plank|deadlifts?|push-?ups?|pull-?ups?))\b", "title"),
    # Did a HIIT workout
    _t(
        r"^(?i:did|do|doing|tried|practiced|practicing)\s+(?:(?i:a|an|the|some)\s+)?"
        r"(.+?)(?:\s+(?i:for)\s+\d+.*)?\s*$",
        "title",
    ),
    _t(r"^(.+?)\s+(?i:exercise|workout|routine|class)\b", "title"),
]

CONTENT_TEMPLATES: Dict[ContentType, List[Template]] = {
    ContentType.BOOK: BOOK_TEMPLATES,
    ContentType.MOVIE: MOVIE_TEMPLATES,
    ContentType.MUSIC: MUSIC_TEMPLATES,
    ContentType.EXERCISE: EXERCISE_TEMPLATES,
}

VENUE_TEMPLATES: List[Template] = [
    # Nobu - amazing omakase
    _t(r"^[\"']?([A-Z][^-–—]+?)[\"']?\s*[-–—]\s*", "title"),
    # The Louvre (Paris)
    _t(r"^[\"']?([A-Z][^(]+?)[\"']?\s*\(([^)]+)\)", "title", "city"),
    # Dinner at Nobu in Malibu
    _t(
        r"\b(?i:at|visit(?:ed|ing)?|tried|went to)\s+[\"']?([A-Z][A-Za-z0-9\s'&-]{2,40}?)[\"']?"
        r"(?=\s+(?i:in|on|with|for|and|last|yesterday|today|tonight|this)\b|[.,!?;]|$)",
        "title",
    ),
    # Carbone restaurant
    _t(r"^([A-Z][A-Za-z0-9\s'&-]{2,30}?)\s+(?i:restaurant|cafe|bar|hotel|resort|museum)", "title"),
]

CITY_PATTERNS: List[re.Pattern] = [
    re.compile(r"\b(?i:in)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"),
    re.compile(r",\s*([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\s*$"),
]

_BOOK_PREFIX = re.compile(r"^(?:started reading|finished reading|reading|read|started)\s+", re.I)
_DASH_SPLIT = re.compile(r"\s*[-–—]\s*")
_TRAILING_DASH_SEGMENT = re.compile(r"\s+[-–—]\s+.*$")
_TRAILING_PAREN = re.compile(r"\s*\([^)]*\)\s*$")
_WATCH_CONTEXT = re.compile(
    r"\s+(?:on|at|in)\s+(?:netflix|hulu|hbo(?: max)?|max|disney\+|amazon prime|prime video|apple tv\+?|"
    r"the cinema|the theaters?|the movies|cinema|theaters?|imax)\b.*$",
    re.I,
)
_EDGE_JUNK = " \t\"'“”‘’.,!?:;-–—"


# =============================================================================
# Extraction
# =============================================================================


def clean_title(value: Optional[str]) -> Optional[str]:
    """Trim quotes, trailing commentary, a trailing (...) and watch context."""
    if not value:
        return None
    title = value.strip()
    title = _WATCH_CONTEXT.sub("", title)
    title = _TRAILING_DASH_SEGMENT.sub("", title)
    title = _TRAILING_PAREN.sub("", title)
    title = title.strip(_EDGE_JUNK)
    return title if len(title) >= 2 else None


def extract_city(text: str) -> Optional[str]:
    for pattern in CITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _apply(templates: List[Template], text: str) -> Optional[ExtractedEntity]:
    for template in templates:
        match = template.pattern.search(text)
        if not match:
            continue
        entity = template.build(match)
        entity.title = clean_title(entity.title)
        if entity.author:
            entity.author = entity.author.strip(_EDGE_JUNK)
        if entity.artist:
            entity.artist = entity.artist.strip(_EDGE_JUNK)
        if entity.title:
            return entity
    return None


def _book_dash_fallback(text: str) -> Optional[str]:
    head = _DASH_SPLIT.split(text.strip(), maxsplit=1)[0]
    head = _BOOK_PREFIX.sub("", head)
    return clean_title(head)


def extract_entity(text: str, content_type: Optional[ContentType] = None) -> ExtractedEntity:
    """Pull a title / venue name (plus author, artist, year, city) from text.

    Args:
        text: Free journal text
        content_type: Detected content type, or None for generic venues

    Returns:
        ExtractedEntity; title is None when nothing usable was found and the
        entry should not be sent to any provider.
    """
    text = (text or "").strip()
    if not text:
        return ExtractedEntity()

    if content_type is not None:
        entity = _apply(CONTENT_TEMPLATES[content_type], text)
        if entity:
            return entity

    entity = _apply(VENUE_TEMPLATES, text) or ExtractedEntity()
    if not entity.city:
        entity.city = extract_city(text)

    if not entity.title and content_type == ContentType.BOOK:
        entity.title = _book_dash_fallback(text)

    return entity
