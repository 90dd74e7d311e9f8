"""Google Books adapter.

Query: GET /volumes?q=intitle:<title>[+inauthor:<author>]
Among the returned volumes, the first one with a cover wins (else the first
volume). The largest available cover is used, upgraded to https.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from journalmate.enrichment.models import (
    BookResult,
    ExtractedEntity,
    Link,
    ProviderID,
    ProviderResponse,
)
from journalmate.enrichment.providers.base import ProviderAdapter, logger


GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
MAX_RESULTS = 5

# Largest first
COVER_SIZES = ("extraLarge", "large", "medium", "small", "thumbnail", "smallThumbnail")


def best_cover_url(image_links: Optional[Dict[str, str]]) -> Optional[str]:
    """Largest available cover, forced to https."""
    if not image_links:
        return None
    for size in COVER_SIZES:
        url = image_links.get(size)
        if url:
            if url.startswith("http://"):
                url = "https://" + url[len("http://"):]
            return url
    return None


def pick_isbn(identifiers: Optional[List[Dict[str, str]]]) -> Optional[str]:
    """ISBN-13 when present, else ISBN-10."""
    by_type = {i.get("type"): i.get("identifier") for i in identifiers or []}
    return by_type.get("ISBN_13") or by_type.get("ISBN_10")


def book_purchase_links(title: str, author: Optional[str], isbn: Optional[str]) -> List[Link]:
    """Store links: direct by ISBN when known, otherwise title+author searches."""
    if isbn:
        return [
            Link(platform="Amazon", url=f"https://www.amazon.com/s?k={isbn}"),
            Link(platform="Goodreads", url=f"https://www.goodreads.com/search?q={isbn}"),
            Link(platform="Barnes & Noble", url=f"https://www.barnesandnoble.com/s/{isbn}"),
        ]
    query = quote_plus(f"{title} {author}" if author else title)
    return [
        Link(platform="Amazon", url=f"https://www.amazon.com/s?k={query}&i=stripbooks"),
        Link(platform="Goodreads", url=f"https://www.goodreads.com/search?q={query}"),
    ]


def build_query(title: str, author: Optional[str] = None) -> str:
    query = f"intitle:{title}"
    if author:
        query += f"+inauthor:{author}"
    return query


class GoogleBooksAdapter(ProviderAdapter):
    provider = ProviderID.GOOGLE_BOOKS

    @property
    def is_configured(self) -> bool:
        # The public volumes endpoint works without a key; the key only raises quota.
        return True

    async def _lookup(self, entity: ExtractedEntity, category: Optional[str]) -> ProviderResponse:
        params: Dict[str, Any] = {
            "q": build_query(entity.title, entity.author),
            "maxResults": MAX_RESULTS,
            "printType": "books",
        }
        if self.settings.google_books_api_key:
            params["key"] = self.settings.google_books_api_key

        data = await self.get_json(GOOGLE_BOOKS_URL, params=params)
        items = data.get("items") or []
        if not items:
            logger.info(f"[google_books] no volumes for '{entity.title}'")
            return self.no_result(f"no volumes for '{entity.title}'")

        volume = next(
            (item.get("volumeInfo", {}) for item in items if item.get("volumeInfo", {}).get("imageLinks")),
            items[0].get("volumeInfo", {}),
        )

        title = volume.get("title") or entity.title
        authors = volume.get("authors") or []
        isbn = pick_isbn(volume.get("industryIdentifiers"))
        result = BookResult(
            title=title,
            authors=authors,
            publisher=volume.get("publisher"),
            published_date=volume.get("publishedDate"),
            description=volume.get("description"),
            cover_url=best_cover_url(volume.get("imageLinks")),
            isbn=isbn,
            info_link=volume.get("infoLink"),
            purchase_links=book_purchase_links(title, authors[0] if authors else entity.author, isbn),
        )
        logger.info(f"[google_books] matched '{entity.title}' -> '{result.title}'")
        return ProviderResponse.success(self.provider, result)
