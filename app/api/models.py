"""Request and response models for FastAPI endpoints.

These Pydantic models define the API contract between clients and the server.
Field names are camelCase on the wire, like the enrichment models they wrap.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from journalmate.enrichment.models import (
    CamelModel,
    EnrichmentResult,
    JournalEntryForEnrichment,
)


class EnrichRequest(CamelModel):
    """Request to /enrich.

    Attributes:
        entry: The journal entry to enrich
        force_refresh: Bypass the cache
    """

    entry: JournalEntryForEnrichment
    force_refresh: bool = Field(False, description="Skip cache lookup")


class BatchEnrichRequest(CamelModel):
    """Request to /enrich/batch.

    Attributes:
        entries: Journal entries to enrich
        force_refresh: Bypass the freshness filter and the cache
    """

    entries: List[JournalEntryForEnrichment] = Field(..., min_length=1, max_length=100)
    force_refresh: bool = False


class BatchEnrichResponse(CamelModel):
    results: List[EnrichmentResult]
    success_count: int
    total: int


class SuggestCategoryRequest(CamelModel):
    entry: JournalEntryForEnrichment


class HealthResponse(BaseModel):
    """Response from /health endpoint.

    Attributes:
        status: healthy when web search is configured, degraded otherwise
        providers: Configured flag per provider
        llm_available: Whether structured extraction can use the LLM
    """

    status: str = Field(..., description="Overall health status")
    providers: Dict[str, bool] = Field(default_factory=dict)
    llm_available: bool = False
