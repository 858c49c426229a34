"""Text normalization, similarity scoring and query generation.

Everything in this module is pure: no network access and no logging, so the
scoring rules can be tested without any provider in the loop.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

TITLE_WEIGHT = 0.7
ARTIST_WEIGHT = 0.3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_ARTIST_SEPARATOR_RE = re.compile(r"[,&]|\sand\s")
_ANNOTATION_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")


def normalize(s: str) -> str:
    """Lowercase, drop everything that is not a word character or whitespace, and trim."""
    if not isinstance(s, str):
        return ""
    return _PUNCTUATION_RE.sub("", s.lower()).strip()


def split_artists(s: str) -> List[str]:
    """Split an artist field into normalized individual names.

    Separators are commas, ``&`` and the word ``and`` surrounded by
    whitespace. Empty fragments and repeated names are dropped.
    """
    if not isinstance(s, str):
        return []
    names = [normalize(part) for part in _ARTIST_SEPARATOR_RE.split(s)]
    return list(dict.fromkeys(name for name in names if name))


def _word_overlap(words1: Sequence[str], words2: Sequence[str]) -> float:
    if not words1 or not words2:
        return 0.0
    other = set(words2)
    common = sum(1 for word in words1 if word in other)
    return common / max(len(words1), len(words2))


def title_similarity(title1: str, title2: str) -> float:
    """Score two track titles in [0, 1]."""
    norm1 = normalize(title1)
    norm2 = normalize(title2)

    if norm1 == norm2:
        score = 1.0
    elif norm1 in norm2 or norm2 in norm1:
        score = 0.8
    else:
        score = _word_overlap(norm1.split(), norm2.split()) * 0.6

    # Titles that differ only by trailing extras ("feat. X", "Remastered")
    # still share their first few words.
    core1 = norm1.split()[:3]
    core2 = norm2.split()[:3]
    if any(word in core2 for word in core1) and any(word in core1 for word in core2):
        score = max(score, 0.6)
    return score


def artist_similarity(artist1: str, artist2: str) -> float:
    """Score two artist fields in [0, 1], treating each as a set of names."""
    artists1 = split_artists(artist1)
    artists2 = split_artists(artist2)
    denominator = max(len(artists1), len(artists2))

    if denominator:
        exact = sum(1 for name in artists1 if name in artists2)
        if exact:
            return min(1.0, exact / denominator * 1.2)
        partial = sum(
            1 for a1 in artists1 if any(a1 in a2 or a2 in a1 for a2 in artists2)
        )
        if partial:
            return min(0.8, partial / denominator * 0.8)

    words1 = " ".join(artists1).split()
    words2 = " ".join(artists2).split()
    return _word_overlap(words1, words2) * 0.6


def score_match(candidate_title: str, candidate_artist: str, ref_title: str, ref_artist: str) -> float:
    """Combined similarity of a candidate against the reference track.

    Returns ``0.7 * title_similarity + 0.3 * artist_similarity``.
    """
    title_score = title_similarity(candidate_title, ref_title)
    artist_score = artist_similarity(candidate_artist, ref_artist)
    return TITLE_WEIGHT * title_score + ARTIST_WEIGHT * artist_score


def strip_annotations(s: str) -> str:
    """Remove ``(...)`` and ``[...]`` groups such as "(feat. X)" or "[Remastered]"."""
    if not isinstance(s, str):
        return ""
    return " ".join(_ANNOTATION_RE.sub("", s).split())


def build_queries(title: str, artist: str, extra_terms: Iterable[str] = ()) -> List[str]:
    """Build search queries from source metadata, most specific first.

    The two combined forms always come before the single-field forms so that
    callers capping the number of queries keep the strongest ones.
    """
    clean_title = strip_annotations(title)
    clean_artist = strip_annotations(artist)

    queries = [
        f"{clean_title} {clean_artist}",
        f"{clean_artist} {clean_title}",
        clean_title,
    ]
    if clean_artist:
        queries.append(f"{clean_title} artist:{clean_artist}")
    for term in extra_terms:
        term = term.strip()
        if not term:
            continue
        queries.append(f"{clean_title} {clean_artist} {term}")
        queries.append(f"{clean_title} {term}")

    cleaned = (" ".join(query.split()) for query in queries)
    return list(dict.fromkeys(query for query in cleaned if query))
