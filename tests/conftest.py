"""Shared fixtures: settings, mock HTTP clients, fake provider adapters."""

import httpx
import pytest

from journalmate.enrichment.models import (
    ExtractedEntity,
    ProviderErrorKind,
    ProviderResponse,
    ProviderID,
    SearchHit,
    ValidationOutcome,
    WebSearchResult,
)
from journalmate.enrichment.providers.base import ProviderAdapter
from journalmate.utils.config_loader import EnrichmentSettings


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAdapter(ProviderAdapter):
    """Adapter whose lookups are answered by an async handler.

    Records every (title, category) it was asked for in `calls`.
    """

    def __init__(self, provider: ProviderID, handler=None, configured: bool = True):
        super().__init__(EnrichmentSettings())
        self.provider = provider
        self.handler = handler
        self.configured = configured
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def _lookup(self, entity: ExtractedEntity, category):
        self.calls.append((entity.title, category))
        if self.handler is None:
            return self.no_result("no handler")
        return await self.handler(entity, category)


def web_success(title: str = "Result") -> ProviderResponse:
    return ProviderResponse.success(
        ProviderID.WEB_SEARCH,
        WebSearchResult(
            query=title,
            results=[SearchHit(title=title, content="", url="https://example.com")],
            validation=ValidationOutcome(
                is_valid=True,
                confidence=0.95,
                matched_result=SearchHit(title=title, content="", url="https://example.com"),
            ),
        ),
    )


def web_validation_failed() -> ProviderResponse:
    return ProviderResponse.failure(
        ProviderID.WEB_SEARCH,
        ProviderErrorKind.VALIDATION_FAILED,
        "no match",
        validation=ValidationOutcome(is_valid=False, confidence=0.2),
    )


@pytest.fixture
def settings() -> EnrichmentSettings:
    """Settings with every provider credential present."""
    return EnrichmentSettings(
        tavily_api_key="tvly-test",
        tmdb_api_key="tmdb-test",
        spotify_client_id="spotify-id",
        spotify_client_secret="spotify-secret",
        google_books_api_key=None,
        anthropic_api_key=None,
    )


@pytest.fixture
def mock_client():
    """Factory: httpx.AsyncClient backed by a request handler."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_adapter():
    return FakeAdapter


@pytest.fixture
def responses():
    """Canned ProviderResponse builders."""

    class Responses:
        success = staticmethod(web_success)
        validation_failed = staticmethod(web_validation_failed)

    return Responses
