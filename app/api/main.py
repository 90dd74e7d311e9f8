"""FastAPI application exposing journal enrichment.

Endpoints:
- POST /enrich: enrich a single entry
- POST /enrich/batch: rate-limited batch enrichment
- POST /suggest-category: category suggestion without external calls
- GET /health: provider configuration status
"""

from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.api.models import (
    BatchEnrichRequest,
    BatchEnrichResponse,
    EnrichRequest,
    HealthResponse,
    SuggestCategoryRequest,
)
from journalmate.enrichment.enrichment_service import JournalEnrichmentService
from journalmate.enrichment.llm_extractor import LLMExtractor
from journalmate.enrichment.models import CategorySuggestion, EnrichmentResult, ProviderID
from journalmate.utils.config_loader import load_settings
from journalmate.utils.logger import LoggerManager

# Initialize logger
logger = LoggerManager.get_logger(__name__)

# Initialize rate limiter (30 requests per minute per client)
limiter = Limiter(key_func=get_remote_address, default_limits=["30/minute"])

app = FastAPI(
    title="JournalMate Enrichment API",
    description="Web enrichment for free-text journal entries",
    version="0.1.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state (initialized on startup, or lazily on first use)
service: Optional[JournalEnrichmentService] = None


def get_service() -> JournalEnrichmentService:
    """Get the enrichment service, creating it from settings if needed.

    Raises:
        HTTPException: If the service cannot be configured
    """
    global service
    if service is None:
        try:
            service = JournalEnrichmentService(load_settings())
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Enrichment service misconfigured: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Enrichment service not configured: {e}",
            )
    return service


@app.on_event("startup")
async def startup_event():
    """Build the enrichment service on startup."""
    svc = get_service()
    LoggerManager.set_level(svc.settings.log_level)
    logger.info(
        "API started",
        extra={"extra_data": {"providers": _provider_flags(svc)}},
    )


def _provider_flags(svc: JournalEnrichmentService) -> dict:
    return {
        provider.value: adapter.is_configured
        for provider, adapter in svc.router.adapters.items()
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint.

    Returns:
        HealthResponse with per-provider configuration flags
    """
    svc = get_service()
    providers = _provider_flags(svc)

    if providers.get(ProviderID.WEB_SEARCH.value):
        overall_status = "healthy"
    elif any(providers.values()):
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    return HealthResponse(
        status=overall_status,
        providers=providers,
        llm_available=LLMExtractor(svc.settings).is_available,
    )


@app.post("/enrich", response_model=EnrichmentResult)
@limiter.limit("30/minute")
async def enrich(request: Request, payload: EnrichRequest):
    """Enrich one journal entry.

    Failures come back as success=false results, not HTTP errors.
    """
    svc = get_service()
    return await svc.enrich_journal_entry(payload.entry, force_refresh=payload.force_refresh)


@app.post("/enrich/batch", response_model=BatchEnrichResponse)
@limiter.limit("5/minute")
async def enrich_batch(request: Request, payload: BatchEnrichRequest):
    """Enrich a list of entries with bounded concurrency.

    Rate limited to 5 requests per minute per IP address.
    """
    svc = get_service()
    results = await svc.enrich_batch(payload.entries, force_refresh=payload.force_refresh)
    success_count = sum(1 for r in results if r.success)
    logger.info(
        "Batch request complete",
        extra={"extra_data": {"submitted": len(payload.entries), "enriched": success_count}},
    )
    return BatchEnrichResponse(results=results, success_count=success_count, total=len(results))


@app.post("/suggest-category", response_model=CategorySuggestion)
async def suggest_category(payload: SuggestCategoryRequest):
    """Suggest a journal category from existing enrichment or keywords."""
    return get_service().suggest_category(payload.entry)
