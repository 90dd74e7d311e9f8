"""Structured extraction from web text: LLM first, regex fallback.

The LLM is called through LiteLLM (provider-agnostic; the default model is
an Anthropic one). Only the first balanced {...} object in the reply is
parsed, after stripping markdown fences. Any failure (no key, API error,
unparseable reply, schema mismatch) falls back to regex extraction.

Usage:
------
extractor = LLMExtractor(settings)
extraction = await extractor.extract(content, "Nobu", city="Malibu", category="restaurants")
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

import litellm
from pydantic import ValidationError

from journalmate.enrichment.exceptions import LLMExtractionError
from journalmate.enrichment.models import StructuredExtraction
from journalmate.utils.config_loader import EnrichmentSettings
from journalmate.utils.logger import LoggerManager

logger = LoggerManager.get_logger("llm_extractor")


# =============================================================================
# Prompt
# =============================================================================

_BOOK_HINT = "This is a BOOK. Extract: title, author name, genre, publication year, rating (1-5 stars), publisher, where to buy."
_MOVIE_HINT = "This is a MOVIE/FILM. Extract: title, year, director, genre, IMDB rating (0-10), runtime, streaming platforms."
_MUSIC_HINT = "This is MUSIC/ARTIST. Extract: artist/band name, genre, popular albums, streaming platforms."
_EXERCISE_HINT = "This is an EXERCISE/WORKOUT. Extract: exercise name, muscle groups worked, difficulty level, equipment needed, duration."

CATEGORY_HINTS: Dict[str, str] = {
    "book": _BOOK_HINT,
    "books": _BOOK_HINT,
    "books & reading": _BOOK_HINT,
    "movie": _MOVIE_HINT,
    "movies": _MOVIE_HINT,
    "movies & tv shows": _MOVIE_HINT,
    "music": _MUSIC_HINT,
    "music & artists": _MUSIC_HINT,
    "exercise": _EXERCISE_HINT,
    "fitness": _EXERCISE_HINT,
}

EXTRACTION_INSTRUCTIONS = """IMPORTANT: Correctly identify the content type. If it's about a book/biography/novel, venueType MUST be "book". If it's about a movie/film, venueType MUST be "movie". Do NOT confuse books about people with places named after them.

Return JSON with these fields (omit if not found):
{
  "venueType": "book|movie|music|exercise|restaurant|bar|hotel|museum|park|gym|spa|other",
  "venueDescription": "brief description (1-2 sentences)",
  "priceRange": "$|$$|$$$|$$$$",
  "rating": 0-5 number (convert IMDB 0-10 to 0-5 scale),
  "reviewCount": number,

  // For BOOKS only:
  "author": "author name",
  "publisher": "publisher name",
  "publicationYear": "year",
  "purchaseLinks": [{"platform": "Amazon", "url": "..."}],

  // For MOVIES only:
  "director": "director name",
  "releaseYear": "year",
  "runtime": "duration",
  "genre": "genre",
  "streamingLinks": [{"platform": "Netflix", "url": "..."}],

  // For FITNESS only:
  "muscleGroups": ["chest", "triceps"],
  "difficulty": "beginner|intermediate|advanced",
  "duration": "30 mins",
  "equipment": ["dumbbells", "bench"],

  // For VENUES (restaurants, hotels, etc.):
  "address": "full address",
  "city": "city",
  "businessHours": "hours",
  "phone": "phone",
  "website": "main website URL"
}

Return only valid JSON, no explanation."""


def build_extraction_prompt(
    content: str,
    venue_name: str,
    city: Optional[str] = None,
    category: Optional[str] = None,
    max_chars: int = 2500,
) -> str:
    snippet = content[:max_chars]
    hint = CATEGORY_HINTS.get((category or "").strip().lower())
    if hint:
        head = f"{hint}\n\nContent about \"{venue_name}\":\n{snippet}"
    else:
        where = f" in {city}" if city else ""
        head = (
            f"Extract structured information from this web content about "
            f"\"{venue_name}\"{where}.\n\nContent:\n{snippet}"
        )
    return f"{head}\n\n{EXTRACTION_INSTRUCTIONS}"


# =============================================================================
# Reply parsing
# =============================================================================

_FENCE = re.compile(r"```(?:json)?\s*", re.I)


def first_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} substring, or None."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_llm_json(text: str) -> Dict[str, Any]:
    """Parse the JSON object in an LLM reply.

    Raises:
        LLMExtractionError: When no parseable object is present
    """
    cleaned = _FENCE.sub("", (text or "").strip())
    candidate = first_json_object(cleaned)
    if candidate is None:
        raise LLMExtractionError.from_unparseable(text or "")
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise LLMExtractionError.from_unparseable(text) from e
    if not isinstance(parsed, dict):
        raise LLMExtractionError.from_unparseable(text)
    return parsed


def _drop_nulls(data: Dict[str, Any]) -> Dict[str, Any]:
    # Models sometimes send "" or null for "omit"; list fields must be lists.
    cleaned = {}
    for key, value in data.items():
        if value is None or value == "":
            continue
        if key in {"purchaseLinks", "streamingLinks", "muscleGroups", "equipment",
                   "highlights", "amenities", "productCategories"} and not isinstance(value, list):
            continue
        cleaned[key] = value
    return cleaned


# =============================================================================
# Regex fallback
# =============================================================================

_PRICE = re.compile(r"(?<!\$)\${1,4}(?=\s|$)")
_RATING = re.compile(r"(\d(?:\.\d)?)\s*(?:/\s*5|stars?|out of 5)", re.I)
_PHONE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_RESERVATION_HOSTS = re.compile(r"opentable|resy|yelp.*reservations|bookatable|sevenrooms", re.I)
_AGGREGATOR_HOSTS = ("yelp", "tripadvisor", "google")


def extract_with_regex(content: str, urls: Sequence[str]) -> StructuredExtraction:
    """Pull price range, rating, phone and links out of raw text and URLs."""
    values: Dict[str, Any] = {}

    price = _PRICE.search(content)
    if price:
        values["price_range"] = price.group(0)

    rating = _RATING.search(content)
    if rating:
        values["rating"] = float(rating.group(1))

    phone = _PHONE.search(content)
    if phone:
        values["phone"] = phone.group(0)

    reservation = next((url for url in urls if _RESERVATION_HOSTS.search(url)), None)
    if reservation:
        values["reservation_url"] = reservation

    website = next(
        (url for url in urls if not any(host in url for host in _AGGREGATOR_HOSTS)),
        None,
    )
    if website:
        values["website"] = website

    return StructuredExtraction(**values)


# =============================================================================
# Extractor
# =============================================================================


class LLMExtractor:
    """LLM-backed structured extractor with a regex fallback."""

    def __init__(self, settings: EnrichmentSettings):
        self.model = settings.llm_model
        self.api_key = settings.anthropic_api_key
        self.max_tokens = settings.llm_max_tokens
        self.content_chars = settings.llm_content_chars

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def complete(self, prompt: str) -> str:
        """Single-turn completion.

        Raises:
            LLMExtractionError: On any API failure or empty reply
        """
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                api_key=self.api_key,
            )
        except Exception as e:
            raise LLMExtractionError.from_api_error(e) from e

        choices = getattr(response, "choices", None)
        content = choices[0].message.content if choices else None
        if not content:
            raise LLMExtractionError("LLM returned an empty completion")
        return content

    async def extract_with_llm(
        self,
        content: str,
        venue_name: str,
        city: Optional[str] = None,
        category: Optional[str] = None,
    ) -> StructuredExtraction:
        """Raises LLMExtractionError when the reply is unusable."""
        prompt = build_extraction_prompt(content, venue_name, city, category, self.content_chars)
        reply = await self.complete(prompt)
        parsed = _drop_nulls(parse_llm_json(reply))
        try:
            extraction = StructuredExtraction.model_validate(parsed)
        except ValidationError as e:
            raise LLMExtractionError(f"LLM JSON did not match schema: {e}", original_error=e) from e

        logger.debug(
            f"LLM extracted venueType={extraction.venue_type} author={extraction.author} "
            f"director={extraction.director}"
        )
        return extraction

    async def extract(
        self,
        content: str,
        venue_name: str,
        urls: Sequence[str] = (),
        city: Optional[str] = None,
        category: Optional[str] = None,
    ) -> StructuredExtraction:
        """Structured fields for the content. Never raises."""
        if self.is_available:
            try:
                return await self.extract_with_llm(content, venue_name, city, category)
            except LLMExtractionError as e:
                logger.warning(f"LLM extraction failed for '{venue_name}', using regex: {e}")
        return extract_with_regex(content, list(urls))
