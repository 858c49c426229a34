"""Turn a source link into track metadata.

Platform detection works on the hostname; each extractor then parses its own
track identifier out of the URL and asks the platform for title and artist.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import requests

from .errors import ExtractionError, ProviderError
from .models import TrackMetadata
from .providers import ITunesAPI, SpotifyAPI

_LOG = logging.getLogger(__name__)

SPOTIFY = "spotify"
YOUTUBE_MUSIC = "youtubeMusic"
APPLE_MUSIC = "appleMusic"

_SPOTIFY_TRACK_RE = re.compile(r"track/([A-Za-z0-9]+)")
_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_TOPIC_SUFFIX = " - Topic"


def _parse(link: str):
    link = link.strip()
    if "://" not in link:
        link = "https://" + link
    return urlparse(link)


def detect_platform(link: str) -> Optional[str]:
    """Detect the music platform from the hostname."""
    if not isinstance(link, str) or not link.strip():
        return None
    try:
        host = (_parse(link).hostname or "").lower()
    except ValueError:
        return None
    if host == "spotify.com" or host.endswith(".spotify.com"):
        return SPOTIFY
    if host in ("music.apple.com", "itunes.apple.com"):
        return APPLE_MUSIC
    if host == "youtu.be" or host == "youtube.com" or host.endswith(".youtube.com"):
        return YOUTUBE_MUSIC
    return None


def extract_spotify_id(link: str) -> Optional[str]:
    match = _SPOTIFY_TRACK_RE.search(_parse(link).path)
    return match.group(1) if match else None


def extract_youtube_id(link: str) -> Optional[str]:
    """Extract the video ID from ``watch?v=ID`` and ``youtu.be/ID`` links."""
    parsed = _parse(link)
    qs = parse_qs(parsed.query)
    if "v" in qs:
        video_id = qs["v"][0]
    elif (parsed.hostname or "").lower() == "youtu.be":
        parts = [p for p in parsed.path.split("/") if p]
        video_id = parts[0] if parts else ""
    else:
        return None
    return video_id if _YOUTUBE_ID_RE.match(video_id) else None


def extract_apple_id(link: str) -> Optional[str]:
    """Extract the Apple Music track ID from the URL.

    Apple Music URLs may look like
    ``https://music.apple.com/us/album/album-name/albumId?i=songId``, in which
    case the ``i`` query parameter is the track. Song pages carry the ID as
    the last path segment instead.
    """
    parsed = _parse(link)
    qs = parse_qs(parsed.query)
    if "i" in qs and qs["i"][0].isdigit():
        return qs["i"][0]
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) >= 2 and parts[-2] == "song" and parts[-1].isdigit():
        return parts[-1]
    return None


class SpotifyExtractor:
    def __init__(self, api: SpotifyAPI) -> None:
        self.api = api

    def extract(self, link: str) -> TrackMetadata:
        track_id = extract_spotify_id(link)
        if not track_id:
            raise ExtractionError(f"No Spotify track ID in {link}", client_error=True)
        try:
            data = self.api.get_track(track_id)
        except ProviderError as exc:
            raise ExtractionError(str(exc)) from exc
        if not data:
            raise ExtractionError(f"Spotify track {track_id} not found", client_error=True)
        artists = [a.get("name") for a in data.get("artists") or [] if a.get("name")]
        return TrackMetadata(
            title=data.get("name") or "",
            artist=", ".join(artists),
            album=(data.get("album") or {}).get("name"),
            isrc=(data.get("external_ids") or {}).get("isrc"),
        )


class YouTubeExtractor:
    """Read title and channel from YouTube's oEmbed endpoint.

    oEmbed needs no API key, but it only gives us the video title and the
    channel name, so the artist has to be inferred from those.
    """

    OEMBED_URL = "https://www.youtube.com/oembed"

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def extract(self, link: str) -> TrackMetadata:
        video_id = extract_youtube_id(link)
        if not video_id:
            raise ExtractionError(f"No YouTube video ID in {link}", client_error=True)
        params = {"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"}
        try:
            resp = requests.get(self.OEMBED_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExtractionError(f"YouTube oEmbed request failed: {exc}") from exc
        if resp.status_code in (400, 401, 404):
            raise ExtractionError(f"YouTube video {video_id} not found", client_error=True)
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ExtractionError(f"YouTube oEmbed lookup failed: {exc}") from exc
        title = (data.get("title") or "").strip()
        if not title:
            raise ExtractionError(f"YouTube video {video_id} has no title")
        return parse_youtube_title(title, data.get("author_name"))


def parse_youtube_title(title: str, author: Optional[str]) -> TrackMetadata:
    """Infer title/artist from a video title and its channel name."""
    author = (author or "").strip()
    if author.endswith(_TOPIC_SUFFIX):
        # "Artist - Topic" channels are auto-generated from label metadata.
        artist = author[: -len(_TOPIC_SUFFIX)].strip()
        clean_title = re.sub(r'\s*\(From the Album "[^"]*"\)\s*', " ", title)
        clean_title = re.sub(r"\s*\([^)]*\)\s*$", "", clean_title).strip()
        return TrackMetadata(title=clean_title or title, artist=artist)
    if author:
        return TrackMetadata(title=title, artist=author)
    parts = title.split(" - ")
    if len(parts) >= 2:
        return TrackMetadata(title=parts[1].strip(), artist=parts[0].strip())
    return TrackMetadata(title=title, artist="Unknown Artist")


class AppleMusicExtractor:
    def __init__(self, api: ITunesAPI) -> None:
        self.api = api

    def extract(self, link: str) -> TrackMetadata:
        track_id = extract_apple_id(link)
        if not track_id:
            raise ExtractionError(f"No Apple Music track ID in {link}", client_error=True)
        try:
            data = self.api.lookup_track(track_id)
        except ProviderError as exc:
            raise ExtractionError(str(exc)) from exc
        if not data:
            raise ExtractionError(f"Apple Music track {track_id} not found", client_error=True)
        return TrackMetadata(
            title=data.get("trackName") or "",
            artist=data.get("artistName") or "",
            album=data.get("collectionName"),
        )
