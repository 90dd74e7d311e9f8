"""Content-type detection from free journal text.

Each content type owns a list of regex signals. The type with the most
matching signals wins; ties go to the earlier type in DETECTION_ORDER
(book > movie > music > exercise). Zero matches means "no content type".
"""

import re
from typing import Dict, List, Optional

from journalmate.enrichment.categories import (
    CATEGORY_KEYWORD_PATTERNS,
    DEFAULT_CATEGORY,
    KEYWORD_CONFIDENCE,
    UNMAPPED_CONFIDENCE,
    VENUE_TYPE_TO_CATEGORY,
)
from journalmate.enrichment.models import (
    CategorySuggestion,
    ContentType,
    JournalEntryForEnrichment,
)


BOOK_SIGNALS = [
    re.compile(r"\bbiography\b", re.I),
    re.compile(r"\bmemoir\b", re.I),
    re.compile(r"\bnovel\b", re.I),
    re.compile(r"\bauthor\b", re.I),
    re.compile(r"\bwritten by\b", re.I),
    re.compile(r"\bby\s+[A-Z][a-z]+\s+[A-Z][a-z]+"),  # "by John Smith"
    re.compile(r"\bbook\b", re.I),
    re.compile(r"\bread(?:ing)?\b", re.I),
    re.compile(r"\bpublished\b", re.I),
    re.compile(r"\bedition\b", re.I),
    re.compile(r"\bchapter\b", re.I),
    re.compile(r"\bpages?\b", re.I),
    re.compile(r"\bisbn\b", re.I),
    re.compile(r"\bbest-?seller\b", re.I),
    re.compile(r"\btextbook\b", re.I),
    re.compile(r"\bguide\s+to\b", re.I),
    re.compile(r"\bself-help\b", re.I),
    re.compile(r"\bpaperback\b", re.I),
    re.compile(r"\bhardcover\b", re.I),
    re.compile(r"\baudiobook\b", re.I),
]

MOVIE_SIGNALS = [
    re.compile(r"\bwatch\b", re.I),
    re.compile(r"\bstream(?:ing)?\b", re.I),
    re.compile(r"\bmovie\b", re.I),
    re.compile(r"\bfilm\b", re.I),
    re.compile(r"\btheaters?\b", re.I),
    re.compile(r"\bcinema\b", re.I),
    re.compile(r"\bdirector\b", re.I),
    re.compile(r"\bdirected by\b", re.I),
    re.compile(r"\bstarring\b", re.I),
    re.compile(r"\bcast\b", re.I),
    re.compile(r"\bimdb\b", re.I),
    re.compile(r"\brotten tomatoes\b", re.I),
    re.compile(r"\bnetflix\b", re.I),
    re.compile(r"\bhulu\b", re.I),
    re.compile(r"\bdisney\+", re.I),
    re.compile(r"\bamazon prime\b", re.I),
    re.compile(r"\bhbo\b", re.I),
    re.compile(r"\brental\b", re.I),
    re.compile(r"\bseason\s+\d", re.I),
    re.compile(r"\bepisode\b", re.I),
    re.compile(r"\bseries\b", re.I),
    re.compile(r"\btv show\b", re.I),
    re.compile(r"\bdocumentary\b", re.I),
]

MUSIC_SIGNALS = [
    re.compile(r"\balbum\b", re.I),
    re.compile(r"\bsong\b", re.I),
    re.compile(r"\btrack\b", re.I),
    re.compile(r"\bartist\b", re.I),
    re.compile(r"\bband\b", re.I),
    re.compile(r"\bconcert\b", re.I),
    re.compile(r"\bspotify\b", re.I),
    re.compile(r"\bapple music\b", re.I),
    re.compile(r"\blisten to\b", re.I),
    re.compile(r"\bplaylist\b", re.I),
    re.compile(r"\bmusician\b", re.I),
    re.compile(r"\bsinger\b", re.I),
]

EXERCISE_SIGNALS = [
    re.compile(r"\bexercise\b", re.I),
    re.compile(r"\bworkout\b", re.I),
    re.compile(r"\byoga\b", re.I),
    re.compile(r"\bpose\b", re.I),
    re.compile(r"\breps?\b", re.I),
    re.compile(r"\bsets?\b", re.I),
    re.compile(r"\bmuscle\b", re.I),
    re.compile(r"\bstretch(?:ing)?\b", re.I),
    re.compile(r"\bcardio\b", re.I),
    re.compile(r"\bstrength\b", re.I),
    re.compile(r"\bweights?\b", re.I),
    re.compile(r"\bgym\b", re.I),
    re.compile(r"\bpilates\b", re.I),
    re.compile(r"\bhiit\b", re.I),
    re.compile(r"\bfitness\b", re.I),
    re.compile(r"\btraining\b", re.I),
]

# Order doubles as the tie-break priority.
DETECTION_ORDER: List[tuple] = [
    (ContentType.BOOK, BOOK_SIGNALS),
    (ContentType.MOVIE, MOVIE_SIGNALS),
    (ContentType.MUSIC, MUSIC_SIGNALS),
    (ContentType.EXERCISE, EXERCISE_SIGNALS),
]


def count_signals(text: str) -> Dict[ContentType, int]:
    """Number of matching signals per content type."""
    return {
        content_type: sum(1 for pattern in signals if pattern.search(text))
        for content_type, signals in DETECTION_ORDER
    }


def detect_content_type(text: str) -> Optional[ContentType]:
    """Best-scoring content type for the text, or None without any signal."""
    if not text:
        return None

    counts = count_signals(text)
    max_count = max(counts.values())
    if max_count == 0:
        return None

    for content_type, _ in DETECTION_ORDER:
        if counts[content_type] == max_count:
            return content_type
    return None


def suggest_category_for_entry(entry: JournalEntryForEnrichment) -> CategorySuggestion:
    """Suggest a journal category for an entry.

    Uses the venue type of an existing enrichment when there is one,
    then falls back to keyword matching on the entry text.
    """
    existing = entry.existing_enrichment
    if existing and existing.venue_type:
        return CategorySuggestion(
            category=VENUE_TYPE_TO_CATEGORY.get(existing.venue_type, entry.category),
            venue_type=existing.venue_type,
            confidence=existing.category_confidence or 0.85,
        )

    for pattern, category, venue_type in CATEGORY_KEYWORD_PATTERNS:
        if pattern.search(entry.text):
            return CategorySuggestion(
                category=category,
                venue_type=venue_type,
                confidence=KEYWORD_CONFIDENCE,
            )

    return CategorySuggestion(
        category=entry.category or DEFAULT_CATEGORY,
        venue_type="unknown",
        confidence=UNMAPPED_CONFIDENCE,
    )
