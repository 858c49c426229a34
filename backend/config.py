"""Environment configuration for the link converter.

Settings are read from the process environment, after loading an optional
``.env`` file from the working directory:

* ``SPOTIFY_CLIENT_ID`` and ``SPOTIFY_CLIENT_SECRET`` - client-credentials
  for the Spotify Web API. Without them Spotify links cannot be extracted
  and Spotify is skipped as a search target.
* ``ITUNES_COUNTRY`` - storefront used for iTunes search and lookup.
* ``MATCH_THRESHOLD`` - minimum similarity score for a candidate to count.
* ``MAX_QUERIES`` - cap on generated queries issued per platform (0 = all).
* ``EXTRA_QUERY_TERMS`` - comma separated terms appended to extra queries.
* ``RESOLVE_TIMEOUT_SECONDS`` - wall-clock budget for resolving one link.
* ``HTTP_TIMEOUT_SECONDS`` - timeout for each outgoing HTTP request.
* ``LOG_LEVEL``, ``STATIC_DIR`` and ``PORT``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _parse_terms(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(term.strip() for term in raw.split(",") if term.strip())


@dataclass(frozen=True)
class Settings:
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    itunes_country: str = "US"
    match_threshold: float = 0.5
    max_queries: int = 0
    extra_query_terms: Tuple[str, ...] = field(default_factory=tuple)
    resolve_timeout: float = 20.0
    http_timeout: float = 10.0
    log_level: str = "INFO"
    static_dir: str = "frontend"
    port: int = 3000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        threshold = _parse_float(env, "MATCH_THRESHOLD", 0.5)
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"MATCH_THRESHOLD must be between 0 and 1, got {threshold}")
        max_queries = _parse_int(env, "MAX_QUERIES", 0)
        if max_queries < 0:
            raise ConfigError("MAX_QUERIES must not be negative")
        return cls(
            spotify_client_id=env.get("SPOTIFY_CLIENT_ID") or None,
            spotify_client_secret=env.get("SPOTIFY_CLIENT_SECRET") or None,
            itunes_country=env.get("ITUNES_COUNTRY") or "US",
            match_threshold=threshold,
            max_queries=max_queries,
            extra_query_terms=_parse_terms(env.get("EXTRA_QUERY_TERMS")),
            resolve_timeout=_parse_float(env, "RESOLVE_TIMEOUT_SECONDS", 20.0),
            http_timeout=_parse_float(env, "HTTP_TIMEOUT_SECONDS", 10.0),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            static_dir=env.get("STATIC_DIR") or "frontend",
            port=_parse_int(env, "PORT", 3000),
        )
