"""Best-match resolution against a single destination platform."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from .matching import score_match
from .models import Candidate, MatchResult

_LOG = logging.getLogger(__name__)

ACCEPTANCE_THRESHOLD = 0.5


class SearchProvider(Protocol):
    def search(self, query: str) -> Sequence[Candidate]:
        ...


def fetch_candidates(provider: SearchProvider, query: str) -> List[Candidate]:
    """Run one provider search, returning an empty list if the call fails."""
    try:
        # Lazy providers can fail mid-iteration, so materialize inside the try.
        return list(provider.search(query) or [])
    except Exception as exc:
        _LOG.warning("[resolver.search_failed] query=%r provider=%s error=%s", query, type(provider).__name__, exc)
        return []


def score_candidate(candidate: Candidate, ref_title: str, ref_artist: str) -> Optional[float]:
    """Score a candidate, or return None when it is missing required fields."""
    if not isinstance(candidate, Candidate) or not candidate.is_complete:
        _LOG.debug("[resolver.skip] malformed candidate %r", candidate)
        return None
    return score_match(candidate.name, candidate.artist, ref_title, ref_artist)


def resolve_best_match(
    queries: Iterable[str],
    provider: SearchProvider,
    ref_title: str,
    ref_artist: str,
    max_queries: Optional[int] = None,
    threshold: float = ACCEPTANCE_THRESHOLD,
    deadline: Optional[float] = None,
    on_best: Optional[Callable[[MatchResult], None]] = None,
) -> Optional[MatchResult]:
    """Search ``provider`` with each query and return the best candidate.

    Queries run one at a time, in order, up to ``max_queries`` (None or 0
    means all of them). The best candidate is tracked across every query; a
    candidate only replaces it when its score is strictly greater than both
    the current best and ``threshold``, so ties keep the earlier result.

    ``deadline`` is a ``time.monotonic()`` value. Once it has passed no more
    queries are issued and whatever was found so far is returned.
    ``on_best`` is called with each new running best as soon as it is found,
    so a caller that stops waiting early still sees the partial result.

    Returns None when nothing cleared the threshold. Provider failures are
    logged and never raised.
    """
    selected = list(queries)
    if max_queries:
        selected = selected[:max_queries]

    best: Optional[MatchResult] = None
    best_score = 0.0

    for query in selected:
        if deadline is not None and time.monotonic() >= deadline:
            _LOG.warning("[resolver.timeout] stopping before query=%r", query)
            break
        candidates = fetch_candidates(provider, query)
        _LOG.debug("[resolver.results] query=%r count=%d", query, len(candidates))
        for candidate in candidates:
            score = score_candidate(candidate, ref_title, ref_artist)
            if score is None:
                continue
            if score > best_score and score > threshold:
                best_score = score
                best = MatchResult(candidate=candidate, score=score, query=query)
                _LOG.info(
                    "[resolver.best] '%s' by '%s' score=%.3f query=%r",
                    candidate.name,
                    candidate.artist,
                    score,
                    query,
                )
                if on_best is not None:
                    on_best(best)

    if best is None:
        _LOG.info("[resolver.no_match] ref='%s' by '%s'", ref_title, ref_artist)
    return best
