"""Tests for the journal enrichment service (single entry + batch)."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from journalmate.enrichment.enrichment_service import (
    NO_RESULTS_ERROR,
    NO_VENUE_ERROR,
    JournalEnrichmentService,
)
from journalmate.enrichment.models import (
    EnrichedData,
    EnrichmentSource,
    EntryLocation,
    JournalEntryForEnrichment,
    ProviderID,
)
from journalmate.enrichment.providers.tmdb import TMDBAdapter


@pytest.fixture
def web(fake_adapter, responses):
    async def found(entity, category):
        return responses.success(entity.title)

    return fake_adapter(ProviderID.WEB_SEARCH, found)


@pytest.fixture
def service(settings, web, clock):
    return JournalEnrichmentService(
        settings=settings,
        adapters={ProviderID.WEB_SEARCH: web},
        clock=clock,
        sleep=AsyncMock(),
    )


def entry(entry_id="1", text="great evening out", **kwargs):
    return JournalEntryForEnrichment(id=entry_id, text=text, **kwargs)


# =============================================================================
# Single entry
# =============================================================================


@pytest.mark.asyncio
async def test_movie_entry_uses_tmdb_best_match(settings, mock_client, fake_adapter, clock):
    candidates = [
        {"id": 1, "title": "Puppy Love", "poster_path": "/puppy.jpg"},
        {"id": 3, "title": "Wicked: For Good", "release_date": "2025-11-21", "poster_path": "/wfg.jpg"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/3/search/movie":
            return httpx.Response(200, json={"results": candidates})
        return httpx.Response(200, json={"id": 3, "runtime": 137, "credits": {"crew": [], "cast": []}})

    web = fake_adapter(ProviderID.WEB_SEARCH)
    service = JournalEnrichmentService(
        settings=settings,
        adapters={
            ProviderID.TMDB: TMDBAdapter(settings, mock_client(handler)),
            ProviderID.WEB_SEARCH: web,
        },
        clock=clock,
    )

    result = await service.enrich_journal_entry(entry(text="Watch Wicked for Good"))

    assert result.success
    data = result.enriched_data
    assert data.enrichment_source == EnrichmentSource.TMDB
    assert data.venue_type == "movie"
    assert data.venue_name == "Wicked: For Good"
    assert data.primary_image_url == "https://image.tmdb.org/t/p/w500/wfg.jpg"
    assert data.runtime == "137 min"
    assert data.suggested_category == "movies"
    assert web.calls == []


@pytest.mark.asyncio
async def test_malformed_tmdb_payload_falls_back_to_web(settings, mock_client, web, clock):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": [None, "x"]})

    service = JournalEnrichmentService(
        settings=settings,
        adapters={
            ProviderID.TMDB: TMDBAdapter(settings, mock_client(handler)),
            ProviderID.WEB_SEARCH: web,
        },
        clock=clock,
    )

    result = await service.enrich_journal_entry(entry(text="Watch Dune"))

    assert result.success
    assert result.enriched_data.enrichment_source == EnrichmentSource.TAVILY
    assert [title for title, _ in web.calls] == ["Dune"]


@pytest.mark.asyncio
async def test_no_venue_detected(service, web):
    result = await service.enrich_journal_entry(entry(text="just thinking about life today"))

    assert not result.success
    assert result.error == NO_VENUE_ERROR
    assert web.calls == []


@pytest.mark.asyncio
async def test_entry_overrides_title_and_city(service, web):
    result = await service.enrich_journal_entry(
        entry(venue_name="  Carbone ", location=EntryLocation(city="New York"), category="restaurants")
    )

    assert result.success
    assert web.calls == [("Carbone", "restaurants")]
    assert result.enriched_data.location.city == "New York"


@pytest.mark.asyncio
async def test_cache_hit_then_expiry(service, web, clock):
    nobu = entry(text="Dinner at Nobu in Malibu", category="restaurants")

    first = await service.enrich_journal_entry(nobu)
    second = await service.enrich_journal_entry(nobu)

    assert first.success and second.success
    assert len(web.calls) == 1
    assert second.enriched_data == first.enriched_data

    clock.advance(service.ttl_seconds)
    await service.enrich_journal_entry(nobu)
    assert len(web.calls) == 2


@pytest.mark.asyncio
async def test_force_refresh_bypasses_cache(service, web):
    nobu = entry(text="Dinner at Nobu in Malibu", category="restaurants")

    await service.enrich_journal_entry(nobu)
    await service.enrich_journal_entry(nobu, force_refresh=True)

    assert len(web.calls) == 2


@pytest.mark.asyncio
async def test_validation_failure_preserves_existing(settings, fake_adapter, responses, clock):
    async def rejected(entity, category):
        return responses.validation_failed()

    service = JournalEnrichmentService(
        settings=settings,
        adapters={ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH, rejected)},
        clock=clock,
    )

    result = await service.enrich_journal_entry(entry(venue_name="Wicked for Good", category="movies"))

    assert not result.success
    assert result.preserve_existing
    assert result.enriched_data is None
    assert result.error.startswith("Content validation failed")
    assert len(service.cache) == 0


@pytest.mark.asyncio
async def test_no_results(settings, fake_adapter, clock):
    service = JournalEnrichmentService(
        settings=settings,
        adapters={ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH)},
        clock=clock,
    )

    result = await service.enrich_journal_entry(entry(venue_name="Nowhere Cafe"))

    assert not result.success
    assert result.error == NO_RESULTS_ERROR
    assert not result.preserve_existing


@pytest.mark.asyncio
async def test_unexpected_error_is_reported(settings, fake_adapter, clock):
    async def boom(entity, category):
        raise RuntimeError("boom")

    service = JournalEnrichmentService(
        settings=settings,
        adapters={ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH, boom)},
        clock=clock,
    )

    result = await service.enrich_journal_entry(entry(venue_name="Nobu"))

    assert not result.success
    assert result.error == "boom"


# =============================================================================
# Batch
# =============================================================================


@pytest.mark.asyncio
async def test_batch_concurrency_and_pacing(settings, fake_adapter, responses, clock):
    in_flight = 0
    peak = 0

    async def slow(entity, category):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return responses.success(entity.title)

    sleep = AsyncMock()
    service = JournalEnrichmentService(
        settings=settings,
        adapters={ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH, slow)},
        clock=clock,
        sleep=sleep,
    )
    entries = [entry(str(i), venue_name=f"Venue {i}") for i in range(7)]

    results = await service.enrich_batch(entries)

    assert len(results) == 7
    assert all(r.success for r in results)
    assert {r.entry_id for r in results} == {str(i) for i in range(7)}
    assert peak == 3
    assert sleep.await_count == 2
    sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
async def test_batch_skips_recently_enriched(service, web, clock):
    now = datetime.fromtimestamp(clock.now, tz=timezone.utc)
    fresh = EnrichedData(enrichment_source=EnrichmentSource.TAVILY, enriched_at=now - timedelta(minutes=1))
    stale = EnrichedData(enrichment_source=EnrichmentSource.TAVILY, enriched_at=now - timedelta(hours=6))
    entries = [
        entry("fresh", venue_name="Fresh Place", existing_enrichment=fresh),
        entry("stale", venue_name="Stale Place", existing_enrichment=stale),
        entry("new", venue_name="New Place"),
    ]

    results = await service.enrich_batch(entries)

    assert {r.entry_id for r in results} == {"stale", "new"}
    assert ("Fresh Place", "notes") not in web.calls


@pytest.mark.asyncio
async def test_batch_force_refresh_includes_fresh_entries(service, clock):
    now = datetime.fromtimestamp(clock.now, tz=timezone.utc)
    fresh = EnrichedData(enrichment_source=EnrichmentSource.TAVILY, enriched_at=now)

    results = await service.enrich_batch(
        [entry("fresh", venue_name="Fresh Place", existing_enrichment=fresh)],
        force_refresh=True,
    )

    assert [r.entry_id for r in results] == ["fresh"]
    service._sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_batch(service):
    assert await service.enrich_batch([]) == []


def test_suggest_category(service):
    suggestion = service.suggest_category(entry(text="Amazing ramen dinner, the food was perfect"))
    assert suggestion.category == "restaurants"
    assert suggestion.venue_type == "restaurant"
