"""Journal web enrichment.

Turns free-text journal entries into structured enrichment records:
- Content-type detection (book / movie / music / exercise) from text signals
- Title, author and city extraction with ordered regex templates
- Provider routing: Google Books, TMDB, Spotify, with Tavily web search
  as the universal fallback
- Match validation of web results before anything is trusted
- Normalization into one EnrichedData shape, with a TTL cache and a
  rate-limited batch runner

Architecture:
-----------

    entry text
      -> detection.detect_content_type
      -> extraction.extract_entity
      -> router.ProviderRouter  (providers.*, validation for web search)
      -> normalizer.normalize
      -> cache.EnrichmentCache

Modules:
-------
- models: Pydantic data model (entries, EnrichedData, provider variants)
- categories: venue type / category tables, query shaping, search domains
- detection: content-type detection and category suggestion
- extraction: entity extraction templates
- validation: title similarity, match validation, image ranking
- providers: Google Books, TMDB, Spotify and web search adapters
- llm_extractor: LiteLLM structured extraction with regex fallback
- router: provider routing and fallback chain
- normalizer: provider output -> EnrichedData
- cache: in-memory TTL cache
- enrichment_service: single-entry pipeline and batch runner
"""

from journalmate.enrichment.cache import EnrichmentCache
from journalmate.enrichment.enrichment_service import JournalEnrichmentService
from journalmate.enrichment.exceptions import (
    ContentValidationError,
    EnrichmentError,
    LLMExtractionError,
    ProviderUnavailableError,
)
from journalmate.enrichment.models import (
    CategorySuggestion,
    ContentType,
    EnrichedData,
    EnrichmentResult,
    JournalEntryForEnrichment,
    ProviderID,
)

__all__ = [
    "EnrichmentCache",
    "JournalEnrichmentService",
    "ContentValidationError",
    "EnrichmentError",
    "LLMExtractionError",
    "ProviderUnavailableError",
    "CategorySuggestion",
    "ContentType",
    "EnrichedData",
    "EnrichmentResult",
    "JournalEntryForEnrichment",
    "ProviderID",
]
