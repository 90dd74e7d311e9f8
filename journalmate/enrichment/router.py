"""Provider routing and the fallback chain.

    book     -> Google Books
    movie/tv -> TMDB
    music    -> Spotify
    other    -> generic web search

When the primary adapter has nothing usable, generic web search is tried
as the universal backstop. A web search whose results all fail match
validation is a hard failure (ContentValidationError), never a
low-confidence success.
"""

from typing import Dict, List, Optional

from journalmate.enrichment.categories import normalize_category
from journalmate.enrichment.exceptions import ContentValidationError
from journalmate.enrichment.models import (
    ContentType,
    ExtractedEntity,
    ProviderErrorKind,
    ProviderID,
    ProviderResponse,
)
from journalmate.enrichment.providers.base import ProviderAdapter
from journalmate.utils.logger import LoggerManager

logger = LoggerManager.get_logger("router")


CONTENT_TYPE_ROUTES: Dict[ContentType, ProviderID] = {
    ContentType.BOOK: ProviderID.GOOGLE_BOOKS,
    ContentType.MOVIE: ProviderID.TMDB,
    ContentType.MUSIC: ProviderID.SPOTIFY,
}

# Used only when no content type was detected.
CATEGORY_ROUTES: Dict[str, ProviderID] = {
    "books": ProviderID.GOOGLE_BOOKS,
    "movies": ProviderID.TMDB,
    "music": ProviderID.SPOTIFY,
}


def route(content_type: Optional[ContentType], category: Optional[str] = None) -> ProviderID:
    """Preferred provider for a detected content type / journal category."""
    if content_type is not None:
        return CONTENT_TYPE_ROUTES.get(content_type, ProviderID.WEB_SEARCH)
    return CATEGORY_ROUTES.get(normalize_category(category), ProviderID.WEB_SEARCH)


def effective_category(content_type: Optional[ContentType], category: Optional[str]) -> Optional[str]:
    """The detected content type overrides the user's category label."""
    return content_type.value if content_type is not None else category


class ProviderRouter:
    """Runs the primary adapter, then falls back to generic web search.

    Args:
        adapters: Adapter per provider. Missing providers are skipped.
    """

    def __init__(self, adapters: Dict[ProviderID, ProviderAdapter]):
        self.adapters = adapters

    def chain(self, content_type: Optional[ContentType], category: Optional[str]) -> List[ProviderID]:
        primary = route(content_type, category)
        providers = [primary]
        if primary != ProviderID.WEB_SEARCH:
            providers.append(ProviderID.WEB_SEARCH)
        return providers

    async def resolve(
        self,
        entity: ExtractedEntity,
        content_type: Optional[ContentType],
        category: Optional[str] = None,
    ) -> ProviderResponse:
        """First usable response along the fallback chain.

        Returns:
            The successful ProviderResponse, or the last failure when every
            provider came back empty.

        Raises:
            ContentValidationError: Web search found results but none matched
        """
        search_category = effective_category(content_type, category)
        last: Optional[ProviderResponse] = None

        for provider in self.chain(content_type, category):
            adapter = self.adapters.get(provider)
            if adapter is None:
                continue

            response = await adapter.lookup(entity, search_category)
            if response.ok:
                return response

            error = response.error
            if error.kind == ProviderErrorKind.VALIDATION_FAILED:
                raise ContentValidationError.from_outcome(entity.title, search_category, error.validation)

            logger.info(f"[router] {provider.value} gave {error.kind.value} for '{entity.title}': {error.message}")
            last = response

        if last is None:
            return ProviderResponse.failure(ProviderID.WEB_SEARCH, ProviderErrorKind.NOT_CONFIGURED, "no adapters")
        return last
