"""Link conversion: extract metadata from the source, resolve the other platforms."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from .config import Settings
from .errors import UnsupportedLinkError
from .extractors import (
    APPLE_MUSIC,
    SPOTIFY,
    YOUTUBE_MUSIC,
    AppleMusicExtractor,
    SpotifyExtractor,
    YouTubeExtractor,
    detect_platform,
)
from .matching import build_queries, strip_annotations
from .models import Candidate, MatchResult, TrackMetadata
from .providers import ITunesAPI, SpotifyAPI, YouTubeMusicAPI
from .resolver import SearchProvider, resolve_best_match

_LOG = logging.getLogger(__name__)


class MetadataExtractor(Protocol):
    def extract(self, link: str) -> TrackMetadata:
        ...


@dataclass
class Platform:
    key: str
    display_name: str
    extractor: MetadataExtractor
    provider: SearchProvider

    @property
    def available(self) -> bool:
        return bool(getattr(self.provider, "available", True))


@dataclass
class ConversionResult:
    source: Platform
    metadata: TrackMetadata
    links: Dict[str, str] = field(default_factory=dict)
    matches: Dict[str, MatchResult] = field(default_factory=dict)


class LinkConverter:
    def __init__(self, platforms: Sequence[Platform], settings: Optional[Settings] = None) -> None:
        self.platforms: Dict[str, Platform] = {p.key: p for p in platforms}
        self.settings = settings or Settings()

    def platform_for(self, link: str) -> Platform:
        key = detect_platform(link)
        if key is None or key not in self.platforms:
            raise UnsupportedLinkError(link)
        return self.platforms[key]

    def extract(self, link: str) -> TrackMetadata:
        return self.platform_for(link).extractor.extract(link)

    def search(self, platform_key: str, query: str, limit: int = 5) -> List[Candidate]:
        platform = self.platforms.get(platform_key)
        if platform is None:
            raise KeyError(platform_key)
        return list(platform.provider.search(query))[:limit]

    def find_links(self, metadata: TrackMetadata, exclude: Sequence[str] = ()) -> Dict[str, MatchResult]:
        """Resolve ``metadata`` on every available platform not in ``exclude``.

        Platforms are resolved in parallel; each keeps its own running best.
        All of them share one deadline. A platform still searching when it
        passes is not waited for; its best match so far is used instead.
        """
        clean_title = strip_annotations(metadata.title)
        clean_artist = strip_annotations(metadata.artist)
        queries = build_queries(metadata.title, metadata.artist, self.settings.extra_query_terms)
        _LOG.info("[convert.queries] %s", queries)

        targets = [p for key, p in self.platforms.items() if key not in exclude and p.available]
        skipped = [key for key, p in self.platforms.items() if key not in exclude and not p.available]
        if skipped:
            _LOG.info("[convert.skip] unavailable platforms: %s", ", ".join(skipped))
        if not targets:
            return {}

        deadline = time.monotonic() + self.settings.resolve_timeout
        partial: Dict[str, MatchResult] = {}

        def run(platform: Platform) -> Optional[MatchResult]:
            def record(match: MatchResult) -> None:
                partial[platform.key] = match

            return resolve_best_match(
                queries,
                platform.provider,
                clean_title,
                clean_artist,
                max_queries=self.settings.max_queries or None,
                threshold=self.settings.match_threshold,
                deadline=deadline,
                on_best=record,
            )

        pool = ThreadPoolExecutor(max_workers=len(targets))
        try:
            futures = {p.key: pool.submit(run, p) for p in targets}
            wait(futures.values(), timeout=max(0.0, deadline - time.monotonic()))
        finally:
            # Threads stuck in a slow call finish in the background.
            pool.shutdown(wait=False)

        results: Dict[str, MatchResult] = {}
        for key, future in futures.items():
            if future.done():
                match = future.result()
            else:
                match = partial.get(key)
                _LOG.warning(
                    "[convert.timeout] platform=%s still searching; using %s",
                    key,
                    "best so far" if match else "no match",
                )
            if match is not None:
                results[key] = match
        return results

    def convert(self, link: str) -> ConversionResult:
        """Convert ``link`` into links on every other supported platform.

        The original link is always included under its own platform key.
        """
        source = self.platform_for(link)
        metadata = source.extractor.extract(link)
        _LOG.info(
            "[convert.source] platform=%s title='%s' artist='%s' album='%s'",
            source.key,
            metadata.title,
            metadata.artist,
            metadata.album,
        )
        matches = self.find_links(metadata, exclude=(source.key,))
        links = {key: match.candidate.url for key, match in matches.items()}
        links[source.key] = link
        return ConversionResult(source=source, metadata=metadata, links=links, matches=matches)


def build_converter(settings: Settings) -> LinkConverter:
    """Wire the real platform clients from ``settings``."""
    spotify_api = SpotifyAPI(
        settings.spotify_client_id,
        settings.spotify_client_secret,
        timeout=settings.http_timeout,
    )
    itunes_api = ITunesAPI(country=settings.itunes_country, timeout=settings.http_timeout)
    platforms = [
        Platform(SPOTIFY, "Spotify", SpotifyExtractor(spotify_api), spotify_api),
        Platform(
            YOUTUBE_MUSIC,
            "YouTube Music",
            YouTubeExtractor(timeout=settings.http_timeout),
            YouTubeMusicAPI(timeout=settings.http_timeout),
        ),
        Platform(APPLE_MUSIC, "Apple Music", AppleMusicExtractor(itunes_api), itunes_api),
    ]
    if not spotify_api.available:
        _LOG.warning("[config] SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET not set; Spotify disabled")
    return LinkConverter(platforms, settings)
