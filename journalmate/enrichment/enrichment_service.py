"""Journal enrichment service: the single-entry pipeline and the batch runner.

Pipeline per entry:
    detect content type -> extract title/city -> cache lookup
    -> route (primary adapter, web search fallback) -> normalize -> cache

Batch runner:
    drop entries enriched within the TTL (unless force_refresh), then run
    the rest in groups of `batch_concurrency` with a pacing delay between
    groups. Within a group results arrive in completion order; group order
    is preserved.
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional

import httpx

from journalmate.enrichment.cache import EnrichmentCache
from journalmate.enrichment.detection import detect_content_type, suggest_category_for_entry
from journalmate.enrichment.exceptions import ContentValidationError
from journalmate.enrichment.extraction import extract_entity
from journalmate.enrichment.llm_extractor import LLMExtractor
from journalmate.enrichment.models import (
    CategorySuggestion,
    EnrichmentResult,
    JournalEntryForEnrichment,
    ProviderID,
)
from journalmate.enrichment.normalizer import normalize
from journalmate.enrichment.providers import (
    GoogleBooksAdapter,
    ProviderAdapter,
    SpotifyAdapter,
    TMDBAdapter,
    WebSearchAdapter,
)
from journalmate.enrichment.router import ProviderRouter
from journalmate.utils.config_loader import EnrichmentSettings, load_settings
from journalmate.utils.logger import LoggerManager

logger = LoggerManager.get_logger("journal_enrichment")

NO_VENUE_ERROR = "No venue name detected"
NO_RESULTS_ERROR = "No web results found"


def build_default_adapters(
    settings: EnrichmentSettings,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[ProviderID, ProviderAdapter]:
    """One adapter per provider, sharing an optional HTTP client."""
    return {
        ProviderID.GOOGLE_BOOKS: GoogleBooksAdapter(settings, client),
        ProviderID.TMDB: TMDBAdapter(settings, client),
        ProviderID.SPOTIFY: SpotifyAdapter(settings, client),
        ProviderID.WEB_SEARCH: WebSearchAdapter(settings, client, extractor=LLMExtractor(settings)),
    }


class JournalEnrichmentService:
    """Enriches journal entries with external metadata.

    Args:
        settings: Service settings (default: load_settings())
        cache: Shared EnrichmentCache (default: new cache with the configured TTL)
        adapters: Provider adapters (default: build_default_adapters)
        clock: Epoch-seconds clock used for freshness checks
        sleep: Awaitable sleep used for batch pacing
    """

    def __init__(
        self,
        settings: Optional[EnrichmentSettings] = None,
        cache: Optional[EnrichmentCache] = None,
        adapters: Optional[Dict[ProviderID, ProviderAdapter]] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or load_settings()
        self.ttl_seconds = self.settings.cache_ttl_hours * 3600
        self.cache = cache if cache is not None else EnrichmentCache(ttl_seconds=self.ttl_seconds, clock=clock)
        self.router = ProviderRouter(adapters if adapters is not None else build_default_adapters(self.settings))
        self.batch_concurrency = self.settings.batch_concurrency
        self.batch_delay = self.settings.batch_delay_seconds
        self._clock = clock
        self._sleep = sleep

    # =========================================================================
    # Single entry
    # =========================================================================

    async def enrich_journal_entry(
        self,
        entry: JournalEntryForEnrichment,
        force_refresh: bool = False,
    ) -> EnrichmentResult:
        """Enrich one entry. Never raises.

        Args:
            entry: The journal entry
            force_refresh: Skip the cache lookup

        Returns:
            EnrichmentResult. On a failed match validation, success is False
            and preserve_existing is True: keep the entry's old enrichment.
        """
        started = time.monotonic()
        logger.info(f"Enriching entry {entry.id}: '{entry.text[:50]}'")

        try:
            content_type = detect_content_type(entry.text)
            entity = extract_entity(entry.text, content_type)
            if entry.venue_name and entry.venue_name.strip():
                entity.title = entry.venue_name.strip()
            if entry.location and entry.location.city:
                entity.city = entry.location.city

            if not entity.title:
                logger.info(f"No venue name found in entry {entry.id}")
                return EnrichmentResult(entry_id=entry.id, success=False, error=NO_VENUE_ERROR)

            cache_key = self.cache.make_key(entity.title, entity.city)
            if not force_refresh:
                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.info(f"Cache hit for {entry.id} ({cache_key})")
                    return EnrichmentResult(entry_id=entry.id, success=True, enriched_data=cached)

            logger.info(
                f"Content type for {entry.id}: category='{entry.category}', "
                f"detected='{content_type.value if content_type else 'none'}', title='{entity.title}'"
            )

            try:
                response = await self.router.resolve(entity, content_type, entry.category)
            except ContentValidationError as e:
                logger.warning(f"Entry {entry.id}: {e}")
                return EnrichmentResult(
                    entry_id=entry.id,
                    success=False,
                    error=str(e),
                    preserve_existing=True,
                )

            if not response.ok:
                logger.info(f"No provider results for '{entity.title}' ({response.error.kind.value})")
                return EnrichmentResult(entry_id=entry.id, success=False, error=NO_RESULTS_ERROR)

            enriched = normalize(
                response.result,
                venue_name=entity.title,
                city=entity.city,
                category=entry.category,
                content_type=content_type,
            )
            self.cache.set(cache_key, enriched)

            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(
                f"Enriched {entry.id} in {elapsed_ms:.0f}ms via {enriched.enrichment_source.value} - "
                f"venue type: {enriched.venue_type}, category: {enriched.suggested_category}"
            )
            return EnrichmentResult(entry_id=entry.id, success=True, enriched_data=enriched)

        except Exception as e:
            logger.error(f"Error enriching {entry.id}: {e}", exc_info=True)
            return EnrichmentResult(entry_id=entry.id, success=False, error=str(e) or type(e).__name__)

    # =========================================================================
    # Batch
    # =========================================================================

    def is_recently_enriched(self, entry: JournalEntryForEnrichment) -> bool:
        existing = entry.existing_enrichment
        if existing is None or existing.enriched_at is None:
            return False
        return self._clock() - existing.enriched_at.timestamp() < self.ttl_seconds

    async def enrich_batch(
        self,
        entries: List[JournalEntryForEnrichment],
        force_refresh: bool = False,
    ) -> List[EnrichmentResult]:
        """Enrich many entries with bounded concurrency and pacing.

        Args:
            entries: Entries to enrich
            force_refresh: Ignore both the freshness filter and the cache

        Returns:
            Results for the entries that needed enrichment (fresh entries
            are skipped and produce no result)
        """
        pending = entries if force_refresh else [e for e in entries if not self.is_recently_enriched(e)]
        logger.info(f"Batch enrichment: {len(pending)} of {len(entries)} entries need enrichment")

        size = self.batch_concurrency
        semaphore = asyncio.Semaphore(size)

        async def run(entry: JournalEntryForEnrichment) -> EnrichmentResult:
            async with semaphore:
                return await self.enrich_journal_entry(entry, force_refresh=force_refresh)

        results: List[EnrichmentResult] = []
        for start in range(0, len(pending), size):
            group = pending[start:start + size]
            for finished in asyncio.as_completed([run(entry) for entry in group]):
                results.append(await finished)

            if start + size < len(pending):
                await self._sleep(self.batch_delay)

        success_count = sum(1 for r in results if r.success)
        logger.info(f"Batch complete: {success_count}/{len(results)} successful")
        return results

    # =========================================================================
    # Category suggestion
    # =========================================================================

    def suggest_category(self, entry: JournalEntryForEnrichment) -> CategorySuggestion:
        return suggest_category_for_entry(entry)
