"""External data source adapters.

Each adapter implements `ProviderAdapter.lookup(entity, category)` and
returns a ProviderResponse; none of them raise for expected failures.
"""

from journalmate.enrichment.providers.base import ProviderAdapter
from journalmate.enrichment.providers.google_books import GoogleBooksAdapter
from journalmate.enrichment.providers.spotify import SpotifyAdapter
from journalmate.enrichment.providers.tmdb import TMDBAdapter
from journalmate.enrichment.providers.web_search import WebSearchAdapter

__all__ = [
    "ProviderAdapter",
    "GoogleBooksAdapter",
    "SpotifyAdapter",
    "TMDBAdapter",
    "WebSearchAdapter",
]
