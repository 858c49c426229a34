"""Value types passed between extractors, providers and the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class TrackMetadata:
    """Title/artist metadata read from the source platform."""

    title: str
    artist: str
    album: Optional[str] = None
    isrc: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    """One search result returned by a destination platform."""

    name: str
    artist_names: Tuple[str, ...] = field(default_factory=tuple)
    url: str = ""
    album: Optional[str] = None

    @property
    def artist(self) -> str:
        return ", ".join(self.artist_names)

    @property
    def is_complete(self) -> bool:
        return bool(self.name) and bool(self.url)


@dataclass(frozen=True)
class MatchResult:
    candidate: Candidate
    score: float
    query: str = ""
