"""Spotify adapter (client-credentials flow).

One search across track, artist and album; the first non-empty list in
that priority order wins. Streaming links always include Spotify, Apple
Music and YouTube Music, falling back to URL-encoded search URLs.
"""

import asyncio
import base64
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote_plus

from journalmate.enrichment.models import (
    ExtractedEntity,
    Link,
    MusicResult,
    ProviderID,
    ProviderResponse,
)
from journalmate.enrichment.providers.base import ProviderAdapter, logger


SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_SEARCH_URL = "https://api.spotify.com/v1/search"
SEARCH_TYPES = ("track", "artist", "album")
SEARCH_LIMIT = 5
SEARCH_MARKET = "US"
TOKEN_EXPIRY_MARGIN_SECONDS = 60


def music_streaming_links(name: str, artist: Optional[str] = None, spotify_url: Optional[str] = None) -> List[Link]:
    """Spotify / Apple Music / YouTube Music links for a track, album or artist."""
    query = quote_plus(f"{name} {artist}" if artist else name)
    return [
        Link(platform="Spotify", url=spotify_url or f"https://open.spotify.com/search/{query}"),
        Link(platform="Apple Music", url=f"https://music.apple.com/us/search?term={query}"),
        Link(platform="YouTube Music", url=f"https://music.youtube.com/search?q={query}"),
    ]


def _first_image(images: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    # Spotify lists images largest first
    return images[0].get("url") if images else None


def _year(date: Optional[str]) -> Optional[str]:
    return date[:4] if date else None


class SpotifyAdapter(ProviderAdapter):
    provider = ProviderID.SPOTIFY

    def __init__(self, *args: Any, clock: Callable[[], float] = time.time, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._clock = clock
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.spotify_client_id and self.settings.spotify_client_secret)

    async def access_token(self) -> str:
        """Cached client-credentials token, refreshed shortly before expiry."""
        async with self._token_lock:
            if self._token and self._clock() < self._token_expires_at:
                return self._token

            raw = f"{self.settings.spotify_client_id}:{self.settings.spotify_client_secret}"
            basic = base64.b64encode(raw.encode("utf-8")).decode("ascii")
            data = await self.request_json(
                "POST",
                SPOTIFY_TOKEN_URL,
                data={"grant_type": "client_credentials"},
                headers={"Authorization": f"Basic {basic}"},
            )
            self._token = data["access_token"]
            expires_in = float(data.get("expires_in", 3600))
            self._token_expires_at = self._clock() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
            logger.debug("[spotify] obtained new access token")
            return self._token

    @staticmethod
    def build_query(entity: ExtractedEntity) -> str:
        return f"{entity.title} {entity.artist}" if entity.artist else entity.title

    async def _lookup(self, entity: ExtractedEntity, category: Optional[str]) -> ProviderResponse:
        token = await self.access_token()
        query = self.build_query(entity)
        data = await self.get_json(
            SPOTIFY_SEARCH_URL,
            params={
                "q": query,
                "type": ",".join(SEARCH_TYPES),
                "market": SEARCH_MARKET,
                "limit": SEARCH_LIMIT,
            },
            headers={"Authorization": f"Bearer {token}"},
        )

        result = self.pick_result(data)
        if result is None:
            logger.info(f"[spotify] no results for '{query}'")
            return self.no_result(f"no Spotify results for '{query}'")

        logger.info(f"[spotify] '{query}' -> {result.item_type} '{result.name}'")
        return ProviderResponse.success(self.provider, result)

    @staticmethod
    def pick_result(data: Dict[str, Any]) -> Optional[MusicResult]:
        """First hit in track > artist > album order."""
        tracks = (data.get("tracks") or {}).get("items") or []
        if tracks:
            track = tracks[0]
            album = track.get("album") or {}
            artist = ((track.get("artists") or [{}])[0]).get("name")
            url = (track.get("external_urls") or {}).get("spotify")
            return MusicResult(
                item_type="track",
                name=track["name"],
                artist_name=artist,
                album_name=album.get("name"),
                release_year=_year(album.get("release_date")),
                image_url=_first_image(album.get("images")),
                spotify_url=url,
                preview_url=track.get("preview_url"),
                popularity=track.get("popularity"),
                streaming_links=music_streaming_links(track["name"], artist, url),
            )

        artists = (data.get("artists") or {}).get("items") or []
        if artists:
            artist = artists[0]
            url = (artist.get("external_urls") or {}).get("spotify")
            return MusicResult(
                item_type="artist",
                name=artist["name"],
                artist_name=artist["name"],
                image_url=_first_image(artist.get("images")),
                spotify_url=url,
                popularity=artist.get("popularity"),
                streaming_links=music_streaming_links(artist["name"], None, url),
            )

        albums = (data.get("albums") or {}).get("items") or []
        if albums:
            album = albums[0]
            artist = ((album.get("artists") or [{}])[0]).get("name")
            url = (album.get("external_urls") or {}).get("spotify")
            return MusicResult(
                item_type="album",
                name=album["name"],
                artist_name=artist,
                album_name=album["name"],
                release_year=_year(album.get("release_date")),
                image_url=_first_image(album.get("images")),
                spotify_url=url,
                streaming_links=music_streaming_links(album["name"], artist, url),
            )

        return None
