"""Common adapter plumbing: configuration check, HTTP helper, error mapping."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from journalmate.enrichment.exceptions import ProviderUnavailableError
from journalmate.enrichment.models import (
    ExtractedEntity,
    ProviderErrorKind,
    ProviderID,
    ProviderResponse,
)
from journalmate.utils.config_loader import EnrichmentSettings
from journalmate.utils.logger import LoggerManager

logger = LoggerManager.get_logger("providers")

USER_AGENT = "JournalMate/1.0 (journal enrichment)"


class ProviderAdapter(ABC):
    """One external data source.

    Subclasses implement `_lookup`; callers use `lookup`, which never raises
    for expected failures and always returns a ProviderResponse.

    Args:
        settings: Service settings (credentials, timeouts, image sizes)
        client: Optional shared httpx.AsyncClient. When omitted, a client
            is opened per request.
    """

    provider: ProviderID

    def __init__(self, settings: EnrichmentSettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.timeout = settings.provider_timeout_seconds
        self._client = client

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the credentials this provider needs are present."""

    @abstractmethod
    async def _lookup(self, entity: ExtractedEntity, category: Optional[str]) -> ProviderResponse:
        ...

    async def lookup(self, entity: ExtractedEntity, category: Optional[str] = None) -> ProviderResponse:
        """Query the provider for an extracted entity.

        Returns:
            ProviderResponse carrying either a tagged result or an error
            (not_configured, no_result, network, validation_failed).
        """
        if not self.is_configured:
            return ProviderResponse.failure(
                self.provider,
                ProviderErrorKind.NOT_CONFIGURED,
                f"{self.provider.value} credentials are not set",
            )
        if not entity.title:
            return ProviderResponse.failure(self.provider, ProviderErrorKind.NO_RESULT, "empty title")

        try:
            return await self._lookup(entity, category)
        except ProviderUnavailableError as e:
            logger.warning(f"[{self.provider.value}] unavailable: {e}")
            return ProviderResponse.failure(self.provider, ProviderErrorKind.NETWORK, str(e))
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
            # Unexpected payload shape
            logger.error(f"[{self.provider.value}] malformed response: {e}", exc_info=True)
            return ProviderResponse.failure(self.provider, ProviderErrorKind.NETWORK, f"malformed response: {e}")

    def no_result(self, message: str) -> ProviderResponse:
        return ProviderResponse.failure(self.provider, ProviderErrorKind.NO_RESULT, message)

    # =========================================================================
    # HTTP
    # =========================================================================

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}) as client:
                yield client

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request and decode the JSON body.

        Raises:
            ProviderUnavailableError: On timeouts, transport errors, non-2xx
                status or a non-JSON body
        """
        async with self._session() as client:
            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    headers=headers,
                    json=json,
                    data=data,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                return response.json()
            except (httpx.TimeoutException, httpx.RequestError, httpx.HTTPStatusError, ValueError) as e:
                raise ProviderUnavailableError.from_http_error(self.provider.value, e) from e

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request_json("GET", url, **kwargs)
