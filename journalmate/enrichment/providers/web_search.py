"""Generic web search adapter (Tavily REST API).

This is the universal backstop. Unlike the authoritative APIs, its results
must pass match validation before they may become an enrichment record.
"""

from typing import Any, Dict, List, Optional

import httpx

from journalmate.enrichment.categories import build_search_query, search_domains_for
from journalmate.enrichment.llm_extractor import LLMExtractor
from journalmate.enrichment.models import (
    ExtractedEntity,
    ProviderErrorKind,
    ProviderID,
    ProviderResponse,
    SearchHit,
    WebSearchResult,
)
from journalmate.enrichment.providers.base import ProviderAdapter, logger
from journalmate.enrichment.validation import filter_and_rank_images, validate_search_results
from journalmate.utils.config_loader import EnrichmentSettings


TAVILY_SEARCH_URL = "https://api.tavily.com/search"


def normalize_images(images: Optional[List[Any]]) -> List[str]:
    """Image entries come back as plain URLs or {"url": ...} objects."""
    urls = []
    for image in images or []:
        if isinstance(image, str):
            url = image
        elif isinstance(image, dict):
            url = image.get("url") or ""
        else:
            url = ""
        if url:
            urls.append(url)
    return urls


class WebSearchAdapter(ProviderAdapter):
    provider = ProviderID.WEB_SEARCH

    def __init__(
        self,
        settings: EnrichmentSettings,
        client: Optional[httpx.AsyncClient] = None,
        extractor: Optional[LLMExtractor] = None,
    ):
        super().__init__(settings, client)
        self.extractor = extractor or LLMExtractor(settings)

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.tavily_api_key)

    async def search(
        self,
        query: str,
        include_domains: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Raw search call: {results: [{title, content, url}], images: [...]}."""
        payload: Dict[str, Any] = {
            "query": query,
            "search_depth": self.settings.web_search_depth,
            "max_results": self.settings.web_search_max_results,
            "include_images": True,
            "include_answer": False,
        }
        if include_domains:
            payload["include_domains"] = include_domains
        return await self.request_json(
            "POST",
            TAVILY_SEARCH_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.settings.tavily_api_key}"},
        )

    async def _lookup(self, entity: ExtractedEntity, category: Optional[str]) -> ProviderResponse:
        title = entity.title
        query = build_search_query(title, entity.city, category)
        data = await self.search(query, search_domains_for(category))

        hits = [SearchHit.model_validate(r) for r in data.get("results") or [] if isinstance(r, dict)]
        images = normalize_images(data.get("images"))
        logger.info(f"[web_search] {len(hits)} results, {len(images)} images for '{query[:60]}'")
        if not hits:
            return self.no_result(f"no web results for '{query}'")

        validation = validate_search_results(hits, title, category)
        if not validation.is_valid:
            logger.warning(
                f"[web_search] no result matched '{title}' "
                f"(category={category}, confidence={validation.confidence:.2f})"
            )
            return ProviderResponse.failure(
                self.provider,
                ProviderErrorKind.VALIDATION_FAILED,
                f"no search result matched '{title}'",
                validation=validation,
            )

        content = "\n\n".join(f"{hit.title}\n{hit.content}" for hit in hits)
        extraction = await self.extractor.extract(
            content,
            title,
            urls=[hit.url for hit in hits if hit.url],
            city=entity.city,
            category=category,
        )

        result = WebSearchResult(
            query=query,
            results=hits,
            images=filter_and_rank_images(images, title),
            validation=validation,
            extraction=extraction,
        )
        return ProviderResponse.success(self.provider, result)
