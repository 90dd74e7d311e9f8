"""Custom exceptions for the enrichment pipeline."""

from typing import Optional

from journalmate.enrichment.models import ValidationOutcome


class EnrichmentError(Exception):
    """Base class for enrichment failures.

    Carries the underlying exception (if any) for logging.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class ProviderUnavailableError(EnrichmentError):
    """Raised inside an adapter when its provider cannot be reached.

    Never leaves the adapter: `ProviderAdapter.lookup` converts it into a
    `network` provider error so the router can move down the chain.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(f"{provider}: {message}", original_error=original_error)
        self.provider = provider

    @classmethod
    def from_http_error(cls, provider: str, error: Exception) -> "ProviderUnavailableError":
        """Create error for timeouts, transport failures and non-2xx replies."""
        return cls(provider, f"{type(error).__name__}: {error}", original_error=error)


class ContentValidationError(EnrichmentError):
    """Web results were found but none refers to the expected entity.

    The caller must keep the entry's previous enrichment instead of
    replacing it with data about a different title.
    """

    def __init__(
        self,
        message: str,
        expected_title: str,
        category: Optional[str] = None,
        outcome: Optional[ValidationOutcome] = None,
    ):
        super().__init__(message)
        self.expected_title = expected_title
        self.category = category
        self.outcome = outcome

    @classmethod
    def from_outcome(
        cls,
        expected_title: str,
        category: Optional[str],
        outcome: Optional[ValidationOutcome],
    ) -> "ContentValidationError":
        confidence = outcome.confidence if outcome else 0.0
        message = (
            f"Content validation failed: no search result matched "
            f"\"{expected_title}\" (category={category or 'unknown'}, "
            f"best confidence={confidence:.2f})"
        )
        return cls(message, expected_title, category=category, outcome=outcome)


class LLMExtractionError(EnrichmentError):
    """The structured-extraction LLM call failed or returned unusable output.

    Always handled by falling back to regex extraction.
    """

    @classmethod
    def from_api_error(cls, error: Exception) -> "LLMExtractionError":
        return cls(f"LLM API error: {type(error).__name__}: {error}", original_error=error)

    @classmethod
    def from_unparseable(cls, text: str) -> "LLMExtractionError":
        preview = text[:120].replace("\n", " ")
        return cls(f"LLM returned no parseable JSON object: '{preview}'")
