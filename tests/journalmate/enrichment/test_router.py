"""Tests for provider routing and the web-search fallback chain."""

import pytest

from journalmate.enrichment.exceptions import ContentValidationError
from journalmate.enrichment.models import (
    BookResult,
    ContentType,
    ExtractedEntity,
    ProviderErrorKind,
    ProviderID,
    ProviderResponse,
)
from journalmate.enrichment.router import ProviderRouter, effective_category, route


@pytest.mark.parametrize(
    "content_type, category, expected",
    [
        (ContentType.BOOK, "notes", ProviderID.GOOGLE_BOOKS),
        (ContentType.MOVIE, "books", ProviderID.TMDB),
        (ContentType.MUSIC, None, ProviderID.SPOTIFY),
        (ContentType.EXERCISE, "fitness", ProviderID.WEB_SEARCH),
        (None, "Movies & TV Shows", ProviderID.TMDB),
        (None, "books", ProviderID.GOOGLE_BOOKS),
        (None, "restaurants", ProviderID.WEB_SEARCH),
        (None, None, ProviderID.WEB_SEARCH),
    ],
)
def test_route(content_type, category, expected):
    assert route(content_type, category) == expected


def test_detected_type_overrides_category():
    assert effective_category(ContentType.MOVIE, "books") == "movie"
    assert effective_category(None, "books") == "books"


@pytest.mark.asyncio
async def test_primary_success_skips_web_search(fake_adapter, responses):
    async def found(entity, category):
        return ProviderResponse.success(ProviderID.GOOGLE_BOOKS, BookResult(title=entity.title))

    books = fake_adapter(ProviderID.GOOGLE_BOOKS, found)
    web = fake_adapter(ProviderID.WEB_SEARCH)
    router = ProviderRouter({ProviderID.GOOGLE_BOOKS: books, ProviderID.WEB_SEARCH: web})

    response = await router.resolve(ExtractedEntity(title="Dune"), ContentType.BOOK, "notes")

    assert response.provider == ProviderID.GOOGLE_BOOKS
    assert books.calls == [("Dune", "book")]
    assert web.calls == []


@pytest.mark.asyncio
async def test_falls_back_to_web_search(fake_adapter, responses):
    async def web_ok(entity, category):
        return responses.success(entity.title)

    tmdb = fake_adapter(ProviderID.TMDB)
    web = fake_adapter(ProviderID.WEB_SEARCH, web_ok)
    router = ProviderRouter({ProviderID.TMDB: tmdb, ProviderID.WEB_SEARCH: web})

    response = await router.resolve(ExtractedEntity(title="Obscure Film"), ContentType.MOVIE)

    assert response.ok
    assert response.provider == ProviderID.WEB_SEARCH
    assert tmdb.calls == [("Obscure Film", "movie")]
    assert web.calls == [("Obscure Film", "movie")]


@pytest.mark.asyncio
async def test_unconfigured_primary_falls_through(fake_adapter, responses):
    async def web_ok(entity, category):
        return responses.success(entity.title)

    spotify = fake_adapter(ProviderID.SPOTIFY, configured=False)
    web = fake_adapter(ProviderID.WEB_SEARCH, web_ok)
    router = ProviderRouter({ProviderID.SPOTIFY: spotify, ProviderID.WEB_SEARCH: web})

    response = await router.resolve(ExtractedEntity(title="Hello"), ContentType.MUSIC)

    assert response.provider == ProviderID.WEB_SEARCH
    assert spotify.calls == []


@pytest.mark.asyncio
async def test_validation_failure_raises(fake_adapter, responses):
    async def rejected(entity, category):
        return responses.validation_failed()

    router = ProviderRouter({
        ProviderID.TMDB: fake_adapter(ProviderID.TMDB),
        ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH, rejected),
    })

    with pytest.raises(ContentValidationError) as exc_info:
        await router.resolve(ExtractedEntity(title="Wicked for Good"), ContentType.MOVIE)

    error = exc_info.value
    assert error.expected_title == "Wicked for Good"
    assert error.category == "movie"
    assert str(error).startswith("Content validation failed")


@pytest.mark.asyncio
async def test_everything_empty_returns_last_failure(fake_adapter):
    router = ProviderRouter({
        ProviderID.GOOGLE_BOOKS: fake_adapter(ProviderID.GOOGLE_BOOKS),
        ProviderID.WEB_SEARCH: fake_adapter(ProviderID.WEB_SEARCH),
    })

    response = await router.resolve(ExtractedEntity(title="Dune"), ContentType.BOOK)

    assert not response.ok
    assert response.provider == ProviderID.WEB_SEARCH
    assert response.error.kind == ProviderErrorKind.NO_RESULT


@pytest.mark.asyncio
async def test_no_adapters():
    response = await ProviderRouter({}).resolve(ExtractedEntity(title="Dune"), None, "notes")

    assert response.error.kind == ProviderErrorKind.NOT_CONFIGURED
