"""Match validation: does a search result actually describe the expected title?

Two measures live here:
- title_similarity(): used by the TMDB adapter to rank candidates.
  Exact normalized match = 1.0, containment = 0.9, otherwise the share of
  query words found in the candidate title.
- validate_search_results(): used on generic web results. Strictness
  depends on the category class (see categories.classify_category).

Thresholds:
    TMDB_SIMILARITY_FLOOR   0.4  candidates below are rejected
    STRICT_WORD_OVERLAP     0.7  movies / books / music
    MODERATE_WORD_OVERLAP   0.5  restaurants and everything else
    RELAXED_CONFIDENCE      0.6  activities, events, travel, hobbies, ...
"""

import re
from typing import List, Optional, Sequence, Set

from journalmate.enrichment.categories import CategoryClass, classify_category
from journalmate.enrichment.models import SearchHit, ValidationOutcome


TMDB_SIMILARITY_FLOOR = 0.4
STRICT_WORD_OVERLAP = 0.7
MODERATE_WORD_OVERLAP = 0.5
RELAXED_CONFIDENCE = 0.6
CONTAINS_CONFIDENCE = 0.95

_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_URL_SPLIT = re.compile(r"[^a-z0-9]+")


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    if not value:
        return ""
    value = _PUNCTUATION.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", value).strip()


def words(value: Optional[str]) -> List[str]:
    normalized = normalize_text(value)
    return normalized.split(" ") if normalized else []


def title_similarity(query: str, candidate: str) -> float:
    """Word-overlap similarity between a query title and a candidate title.

    >>> title_similarity("Wicked for Good", "Wicked for Good")
    1.0
    >>> title_similarity("Wicked", "Wicked: For Good")
    0.9
    """
    q = normalize_text(query)
    c = normalize_text(candidate)
    if not q or not c:
        return 0.0
    if q == c:
        return 1.0
    if q in c or c in q:
        return 0.9

    query_words = q.split(" ")
    candidate_words = set(c.split(" "))
    present = sum(1 for word in query_words if word in candidate_words)
    return present / len(query_words)


def word_overlap(expected_title: str, haystack_words: Set[str]) -> float:
    """Share of expected-title words present in a set of words."""
    expected = words(expected_title)
    if not expected:
        return 0.0
    present = sum(1 for word in expected if word in haystack_words)
    return present / len(expected)


def _result_words(result: SearchHit) -> Set[str]:
    found = set(words(result.title)) | set(words(result.content))
    found.update(part for part in _URL_SPLIT.split(result.url.lower()) if part)
    return found


def validate_search_results(
    results: Sequence[SearchHit],
    expected_title: str,
    category: Optional[str],
) -> ValidationOutcome:
    """Check that at least one result refers to the expected title.

    Args:
        results: Web search results, best first
        expected_title: Title / venue name the entry is about
        category: Effective category (content type or journal category)

    Returns:
        ValidationOutcome with the best matching result. Invalid outcomes
        must not be turned into enrichment records.
    """
    if not results:
        return ValidationOutcome(is_valid=False, confidence=0.0)

    category_class = classify_category(category)
    if category_class == CategoryClass.RELAXED:
        return ValidationOutcome(
            is_valid=True,
            confidence=RELAXED_CONFIDENCE,
            matched_result=results[0],
        )

    threshold = STRICT_WORD_OVERLAP if category_class == CategoryClass.STRICT else MODERATE_WORD_OVERLAP
    expected_lower = expected_title.strip().lower()

    best: Optional[SearchHit] = None
    best_confidence = 0.0
    for result in results:
        if expected_lower and expected_lower in result.title.lower():
            confidence = CONTAINS_CONFIDENCE
        else:
            confidence = word_overlap(expected_title, _result_words(result))
        if confidence > best_confidence:
            best, best_confidence = result, confidence

    if best is None or best_confidence < threshold:
        return ValidationOutcome(is_valid=False, confidence=best_confidence, matched_result=best)
    return ValidationOutcome(is_valid=True, confidence=best_confidence, matched_result=best)


# =============================================================================
# Image relevance
# =============================================================================

_NON_CONTENT_MARKERS = re.compile(
    r"logo|icon|favicon|avatar|placeholder|sprite|blank|"
    r"[-_](?:16|24|32|48|64|72|96|100|120|150)x(?:16|24|32|48|64|72|96|100|120|150)\b|"
    r"[-_]thumb(?:nail)?s?\b|/thumbs?/",
    re.I,
)

AUTHORITATIVE_IMAGE_HOSTS = (
    "imdb.com",
    "media-amazon.com",
    "tmdb.org",
    "amazon.com",
    "goodreads.com",
    "gr-assets.com",
    "books.google.com",
    "googleapis.com",
)
AUTHORITATIVE_BONUS = 2


def is_content_image(url: str) -> bool:
    return bool(url) and not _NON_CONTENT_MARKERS.search(url)


def filter_and_rank_images(images: Sequence[str], expected_title: str, limit: int = 5) -> List[str]:
    """Drop logos/icons/thumbnails and rank the rest by title relevance.

    Score = number of expected-title words in the URL, plus a fixed bonus
    for authoritative hosts. Ties keep the search engine's order.
    """
    title_words = [w for w in words(expected_title) if len(w) > 1]
    scored = []
    for position, url in enumerate(images):
        if not is_content_image(url):
            continue
        lowered = url.lower()
        url_words = set(part for part in _URL_SPLIT.split(lowered) if part)
        score = sum(1 for word in title_words if word in url_words)
        if any(host in lowered for host in AUTHORITATIVE_IMAGE_HOSTS):
            score += AUTHORITATIVE_BONUS
        scored.append((-score, position, url))
    scored.sort()
    return [url for _, _, url in scored[:limit]]
