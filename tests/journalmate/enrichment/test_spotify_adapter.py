"""Tests for the Spotify adapter: token caching and result priority."""

import base64

import httpx
import pytest

from journalmate.enrichment.models import ExtractedEntity, ProviderErrorKind
from journalmate.enrichment.providers.spotify import SpotifyAdapter


HELLO_TRACK = {
    "name": "Hello",
    "artists": [{"name": "Adele"}],
    "album": {
        "name": "25",
        "release_date": "2015-11-20",
        "images": [{"url": "https://i.scdn.co/image/big"}, {"url": "https://i.scdn.co/image/small"}],
    },
    "external_urls": {"spotify": "https://open.spotify.com/track/hello"},
    "preview_url": None,
    "popularity": 82,
}


class SpotifyStub:
    """MockTransport handler that counts token and search calls."""

    def __init__(self, search_payload):
        self.search_payload = search_payload
        self.token_calls = 0
        self.search_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "accounts.spotify.com":
            self.token_calls += 1
            expected = base64.b64encode(b"spotify-id:spotify-secret").decode("ascii")
            assert request.headers["Authorization"] == f"Basic {expected}"
            assert b"grant_type=client_credentials" in request.content
            return httpx.Response(200, json={"access_token": f"token-{self.token_calls}", "expires_in": 3600})
        self.search_requests.append(request)
        return httpx.Response(200, json=self.search_payload)


@pytest.mark.asyncio
async def test_track_result_and_cached_token(settings, mock_client, clock):
    stub = SpotifyStub({"tracks": {"items": [HELLO_TRACK]}, "artists": {"items": [{"name": "Adele"}]}})
    adapter = SpotifyAdapter(settings, mock_client(stub), clock=clock)

    first = await adapter.lookup(ExtractedEntity(title="Hello", artist="Adele"))
    second = await adapter.lookup(ExtractedEntity(title="Hello", artist="Adele"))

    assert stub.token_calls == 1
    assert first.ok and second.ok

    request = stub.search_requests[0]
    assert request.headers["Authorization"] == "Bearer token-1"
    assert request.url.params["q"] == "Hello Adele"
    assert request.url.params["type"] == "track,artist,album"

    track = first.result
    assert track.item_type == "track"
    assert track.artist_name == "Adele"
    assert track.album_name == "25"
    assert track.release_year == "2015"
    assert track.image_url == "https://i.scdn.co/image/big"
    assert [link.platform for link in track.streaming_links] == ["Spotify", "Apple Music", "YouTube Music"]
    assert track.streaming_links[0].url == "https://open.spotify.com/track/hello"


@pytest.mark.asyncio
async def test_token_refreshed_after_expiry(settings, mock_client, clock):
    stub = SpotifyStub({"tracks": {"items": [HELLO_TRACK]}})
    adapter = SpotifyAdapter(settings, mock_client(stub), clock=clock)

    await adapter.lookup(ExtractedEntity(title="Hello"))
    clock.advance(3600 - 60 + 1)
    await adapter.lookup(ExtractedEntity(title="Hello"))

    assert stub.token_calls == 2
    assert stub.search_requests[-1].headers["Authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_artist_when_no_tracks(settings, mock_client, clock):
    stub = SpotifyStub({
        "tracks": {"items": []},
        "artists": {"items": [{
            "name": "Radiohead",
            "images": [{"url": "https://i.scdn.co/image/rh"}],
            "external_urls": {"spotify": "https://open.spotify.com/artist/rh"},
            "popularity": 79,
        }]},
        "albums": {"items": [{"name": "OK Computer"}]},
    })
    adapter = SpotifyAdapter(settings, mock_client(stub), clock=clock)

    response = await adapter.lookup(ExtractedEntity(title="Radiohead"))

    assert response.result.item_type == "artist"
    assert response.result.name == "Radiohead"
    assert response.result.popularity == 79


@pytest.mark.asyncio
async def test_album_fallback_builds_search_links(settings, mock_client, clock):
    stub = SpotifyStub({"albums": {"items": [{"name": "Blue", "artists": [{"name": "Joni Mitchell"}]}]}})
    adapter = SpotifyAdapter(settings, mock_client(stub), clock=clock)

    response = await adapter.lookup(ExtractedEntity(title="Blue"))

    album = response.result
    assert album.item_type == "album"
    assert album.streaming_links[0].url == "https://open.spotify.com/search/Blue+Joni+Mitchell"
    assert album.streaming_links[1].url == "https://music.apple.com/us/search?term=Blue+Joni+Mitchell"


@pytest.mark.asyncio
async def test_empty_search(settings, mock_client, clock):
    adapter = SpotifyAdapter(settings, mock_client(SpotifyStub({})), clock=clock)

    response = await adapter.lookup(ExtractedEntity(title="zzzz"))

    assert response.error.kind == ProviderErrorKind.NO_RESULT


@pytest.mark.asyncio
async def test_missing_secret_is_not_configured(settings, mock_client, clock):
    stub = SpotifyStub({})
    partial = settings.model_copy(update={"spotify_client_secret": None})
    adapter = SpotifyAdapter(partial, mock_client(stub), clock=clock)

    response = await adapter.lookup(ExtractedEntity(title="Hello"))

    assert response.error.kind == ProviderErrorKind.NOT_CONFIGURED
    assert stub.token_calls == 0
