"""Tests for LLM reply parsing, regex extraction and the fallback chain."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from journalmate.enrichment.exceptions import LLMExtractionError
from journalmate.enrichment.llm_extractor import (
    LLMExtractor,
    build_extraction_prompt,
    extract_with_regex,
    first_json_object,
    parse_llm_json,
)


NOBU_CONTENT = (
    "Nobu Malibu - Japanese fusion on the beach. Price: $$ · Rated 4.5 stars "
    "by 812 diners. Call (310) 317-9140 to book."
)
NOBU_URLS = [
    "https://www.yelp.com/biz/nobu-malibu",
    "https://www.noburestaurants.com/malibu",
    "https://www.opentable.com/r/nobu-malibu",
]


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def llm_settings(settings):
    return settings.model_copy(update={"anthropic_api_key": "sk-test"})


# =============================================================================
# Reply parsing
# =============================================================================


def test_parse_fenced_json():
    reply = '```json\n{"venueType": "restaurant", "rating": 4.2}\n```'
    assert parse_llm_json(reply) == {"venueType": "restaurant", "rating": 4.2}


def test_parse_object_surrounded_by_prose():
    reply = 'Sure! Here it is: {"venueType": "book", "purchaseLinks": [{"platform": "Amazon", "url": "u"}]} Hope that helps.'
    parsed = parse_llm_json(reply)
    assert parsed["venueType"] == "book"
    assert parsed["purchaseLinks"][0]["platform"] == "Amazon"


def test_brace_inside_string_does_not_end_object():
    text = '{"venueDescription": "a } tricky {one}", "rating": 3} trailing }'
    assert first_json_object(text) == '{"venueDescription": "a } tricky {one}", "rating": 3}'


def test_reply_without_object_raises():
    with pytest.raises(LLMExtractionError):
        parse_llm_json("I could not find anything about this venue.")


def test_truncated_object_raises():
    with pytest.raises(LLMExtractionError):
        parse_llm_json('{"venueType": "bar", "rating": ')


# =============================================================================
# Prompt
# =============================================================================


def test_prompt_uses_category_hint():
    prompt = build_extraction_prompt("text", "Dune", category="books")
    assert prompt.startswith("This is a BOOK.")
    assert 'Content about "Dune"' in prompt


def test_prompt_for_venue_mentions_city_and_truncates():
    prompt = build_extraction_prompt("x" * 5000, "Nobu", city="Malibu", category="restaurants", max_chars=100)
    assert '"Nobu" in Malibu' in prompt
    assert "x" * 101 not in prompt


# =============================================================================
# Regex fallback
# =============================================================================


def test_regex_extraction():
    extraction = extract_with_regex(NOBU_CONTENT, NOBU_URLS)
    assert extraction.price_range == "$$"
    assert extraction.rating == 4.5
    assert extraction.phone == "(310) 317-9140"
    assert extraction.reservation_url == "https://www.opentable.com/r/nobu-malibu"
    assert extraction.website == "https://www.noburestaurants.com/malibu"


def test_regex_extraction_with_nothing_to_find():
    extraction = extract_with_regex("No details here.", ["https://www.yelp.com/biz/x"])
    assert extraction.price_range is None
    assert extraction.rating is None
    assert extraction.website is None


# =============================================================================
# Extractor
# =============================================================================


@pytest.mark.asyncio
async def test_no_key_skips_llm(settings):
    extractor = LLMExtractor(settings)
    assert not extractor.is_available

    with patch("journalmate.enrichment.llm_extractor.litellm.acompletion", new=AsyncMock()) as mock_call:
        extraction = await extractor.extract(NOBU_CONTENT, "Nobu", urls=NOBU_URLS)

    mock_call.assert_not_called()
    assert extraction.price_range == "$$"


@pytest.mark.asyncio
async def test_llm_extraction(llm_settings):
    reply = (
        '```json\n{"venueType": "restaurant", "priceRange": "$$$$", "rating": 4.6, '
        '"address": "22706 Pacific Coast Hwy", "phone": null, "muscleGroups": "none"}\n```'
    )
    extractor = LLMExtractor(llm_settings)

    with patch(
        "journalmate.enrichment.llm_extractor.litellm.acompletion",
        new=AsyncMock(return_value=completion(reply)),
    ) as mock_call:
        extraction = await extractor.extract(NOBU_CONTENT, "Nobu", urls=NOBU_URLS, city="Malibu", category="restaurants")

    assert extraction.venue_type == "restaurant"
    assert extraction.price_range == "$$$$"
    assert extraction.rating == 4.6
    assert extraction.address == "22706 Pacific Coast Hwy"
    assert extraction.phone is None
    assert extraction.muscle_groups == []

    kwargs = mock_call.call_args.kwargs
    assert kwargs["model"] == llm_settings.llm_model
    assert kwargs["api_key"] == "sk-test"
    assert '"Nobu" in Malibu' in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_api_error_falls_back_to_regex(llm_settings):
    extractor = LLMExtractor(llm_settings)

    with patch(
        "journalmate.enrichment.llm_extractor.litellm.acompletion",
        new=AsyncMock(side_effect=RuntimeError("rate limited")),
    ):
        extraction = await extractor.extract(NOBU_CONTENT, "Nobu", urls=NOBU_URLS)

    assert extraction.venue_type is None
    assert extraction.rating == 4.5
    assert extraction.reservation_url == "https://www.opentable.com/r/nobu-malibu"


@pytest.mark.asyncio
async def test_unparseable_reply_falls_back_to_regex(llm_settings):
    extractor = LLMExtractor(llm_settings)

    with patch(
        "journalmate.enrichment.llm_extractor.litellm.acompletion",
        new=AsyncMock(return_value=completion("Sorry, I can't help with that.")),
    ):
        extraction = await extractor.extract(NOBU_CONTENT, "Nobu", urls=NOBU_URLS)

    assert extraction.price_range == "$$"
    assert extraction.phone == "(310) 317-9140"


@pytest.mark.asyncio
async def test_complete_wraps_api_errors(llm_settings):
    extractor = LLMExtractor(llm_settings)

    with patch(
        "journalmate.enrichment.llm_extractor.litellm.acompletion",
        new=AsyncMock(side_effect=ConnectionError("down")),
    ):
        with pytest.raises(LLMExtractionError) as exc_info:
            await extractor.complete("prompt")

    assert isinstance(exc_info.value.original_error, ConnectionError)
