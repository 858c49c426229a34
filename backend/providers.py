"""Search clients for the destination platforms.

Each client exposes ``search(query) -> list[Candidate]`` and raises
``ProviderError`` when the upstream call fails; the resolver decides what to
do with a failed query.

The iTunes Search API needs no authentication: it is a GET request to
``https://itunes.apple.com/search`` where ``term`` holds the search string and
``entity=musicTrack`` restricts results to songs. Spotify's ``GET /v1/search``
needs an OAuth token, which we obtain with the client-credentials flow and
keep until shortly before it expires. YouTube Music has no public search API,
so we go through ``ytmusicapi`` in unauthenticated mode.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests
from ytmusicapi import YTMusic

from .errors import ProviderError
from .models import Candidate

_LOG = logging.getLogger(__name__)

# Refresh the Spotify token this many seconds before it actually expires.
_TOKEN_EXPIRY_MARGIN = 60


class SpotifyAPI:
    """Helper class to interact with the Spotify Web API."""

    name = "spotify"

    TOKEN_URL = "https://accounts.spotify.com/api/token"
    SEARCH_URL = "https://api.spotify.com/v1/search"
    TRACK_URL = "https://api.spotify.com/v1/tracks/{id}"

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        timeout: float = 10.0,
        result_limit: int = 10,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.result_limit = result_limit
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _get_access_token(self) -> str:
        with self._lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token
            if not self.available:
                raise ProviderError(self.name, "client credentials are not configured")
            try:
                auth_response = requests.post(
                    self.TOKEN_URL,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                    timeout=self.timeout,
                )
                auth_response.raise_for_status()
                payload = auth_response.json()
            except (requests.RequestException, ValueError) as exc:
                raise ProviderError(self.name, f"token request failed: {exc}") from exc
            token = payload.get("access_token")
            if not token:
                raise ProviderError(self.name, "token response had no access_token")
            expires_in = payload.get("expires_in") or 3600
            self._token = token
            self._token_expires_at = time.monotonic() + max(0, int(expires_in) - _TOKEN_EXPIRY_MARGIN)
            return token

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = {"Authorization": f"Bearer {self._get_access_token()}"}
        try:
            return requests.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

    def get_track(self, track_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a track object, or None when Spotify does not know the ID."""
        resp = self._get(self.TRACK_URL.format(id=track_id))
        if resp.status_code in (400, 404):
            return None
        try:
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderError(self.name, f"track lookup failed: {exc}") from exc

    def search(self, query: str) -> List[Candidate]:
        params = {"q": query, "type": "track", "limit": self.result_limit}
        _LOG.debug("[spotify.query] params=%s", params)
        resp = self._get(self.SEARCH_URL, params=params)
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderError(self.name, f"search failed: {exc}") from exc
        items = (data.get("tracks") or {}).get("items") or []
        candidates = []
        for item in items:
            candidate = self._to_candidate(item)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    @staticmethod
    def _to_candidate(item: Any) -> Optional[Candidate]:
        if not isinstance(item, dict):
            return None
        url = (item.get("external_urls") or {}).get("spotify")
        name = item.get("name")
        if not (name and url):
            return None
        artists = tuple(a.get("name") for a in item.get("artists") or [] if isinstance(a, dict) and a.get("name"))
        return Candidate(
            name=name,
            artist_names=artists,
            url=url,
            album=(item.get("album") or {}).get("name"),
        )


class YouTubeMusicAPI:
    """Search YouTube Music songs through ``ytmusicapi``."""

    name = "youtubeMusic"
    available = True

    WATCH_URL = "https://music.youtube.com/watch?v={video_id}"

    def __init__(self, result_limit: int = 5, timeout: float = 10.0, client: Optional[YTMusic] = None) -> None:
        self.result_limit = result_limit
        self.timeout = timeout
        self._ytmusic = client
        self._lock = threading.Lock()

    @property
    def ytmusic(self) -> YTMusic:
        # The session is set up once, before the first search.
        with self._lock:
            if self._ytmusic is None:
                try:
                    self._ytmusic = YTMusic(requests_session=self._session())
                except Exception as exc:
                    raise ProviderError(self.name, f"initialization failed: {exc}") from exc
                _LOG.info("[ytmusic.init] YouTube Music client initialized")
            return self._ytmusic

    def _session(self) -> requests.Session:
        # ytmusicapi otherwise applies its own 30 s default to every request.
        session = requests.Session()
        session.request = functools.partial(session.request, timeout=self.timeout)  # type: ignore[method-assign]
        return session

    def search(self, query: str) -> List[Candidate]:
        client = self.ytmusic
        _LOG.debug("[ytmusic.query] q=%r", query)
        try:
            results = client.search(query, filter="songs", limit=self.result_limit)
        except Exception as exc:
            raise ProviderError(self.name, f"search failed: {exc}") from exc
        candidates = []
        for item in (results or [])[: self.result_limit]:
            candidate = self._to_candidate(item)
            if candidate is None:
                _LOG.debug("[ytmusic.skip] unexpected item %r", item)
                continue
            candidates.append(candidate)
        return candidates

    @classmethod
    def _to_candidate(cls, item: Any) -> Optional[Candidate]:
        if not isinstance(item, dict):
            return None
        title = item.get("title")
        video_id = item.get("videoId")
        if not (title and video_id):
            return None
        album = item.get("album") if isinstance(item.get("album"), dict) else {}
        artists = tuple(a.get("name") for a in item.get("artists") or [] if isinstance(a, dict) and a.get("name"))
        if not artists:
            # Auto-generated uploads sometimes come back without artists.
            artists = (album.get("name") or "Unknown Artist",)
        return Candidate(
            name=title,
            artist_names=artists,
            url=cls.WATCH_URL.format(video_id=video_id),
            album=album.get("name"),
        )


class ITunesAPI:
    """Helper class to query the iTunes Search API."""

    name = "appleMusic"
    available = True

    SEARCH_URL = "https://itunes.apple.com/search"
    LOOKUP_URL = "https://itunes.apple.com/lookup"

    def __init__(self, country: str = "US", timeout: float = 10.0, result_limit: int = 10) -> None:
        self.country = country
        self.timeout = timeout
        self.result_limit = result_limit

    def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

    def search(self, query: str) -> List[Candidate]:
        params = {
            "term": query,
            "media": "music",
            "entity": "musicTrack",
            "limit": self.result_limit,
            "country": self.country,
        }
        _LOG.debug("[itunes.query] params=%s", params)
        data = self._get_json(self.SEARCH_URL, params)
        candidates = []
        for result in data.get("results") or []:
            if not isinstance(result, dict):
                continue
            name = result.get("trackName")
            url = result.get("trackViewUrl")
            if not (name and url):
                continue
            artist = result.get("artistName")
            candidates.append(
                Candidate(
                    name=name,
                    artist_names=(artist,) if artist else (),
                    url=url,
                    album=result.get("collectionName"),
                )
            )
        return candidates

    def lookup_track(self, track_id: str) -> Optional[Dict[str, Any]]:
        data = self._get_json(self.LOOKUP_URL, {"id": track_id, "country": self.country})
        for result in data.get("results") or []:
            if isinstance(result, dict) and result.get("wrapperType") in (None, "track"):
                return result
        return None
