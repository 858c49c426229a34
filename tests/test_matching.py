import pytest

from backend.matching import (
    artist_similarity,
    build_queries,
    normalize,
    score_match,
    split_artists,
    strip_annotations,
    title_similarity,
)


def test_normalize_lowercases_and_strips_punctuation() -> None:
    assert normalize("  Don't Stop Me Now!  ") == "dont stop me now"


def test_normalize_keeps_unicode_letters() -> None:
    assert normalize("Beyoncé — Halo") == "beyoncé  halo"


def test_normalize_non_string_is_empty() -> None:
    assert normalize(None) == ""


def test_split_artists_on_ampersand() -> None:
    assert split_artists("Jay & Bee") == ["jay", "bee"]


def test_split_artists_single_artist() -> None:
    assert split_artists("Solo Artist") == ["solo artist"]


def test_split_artists_commas_and_word_and() -> None:
    assert split_artists("Simon and Garfunkel, Paul") == ["simon", "garfunkel", "paul"]


def test_split_artists_and_is_case_sensitive_token() -> None:
    assert split_artists("Sandy AND Andy") == ["sandy and andy"]


def test_split_artists_drops_empty_and_duplicate_fragments() -> None:
    assert split_artists("A, , A & !") == ["a"]


def test_title_exact_match() -> None:
    assert title_similarity("Blinding Lights", "blinding lights!") == 1.0


def test_title_containment() -> None:
    assert title_similarity("Blinding Lights", "Blinding Lights Remix") == 0.8
    assert title_similarity("Blinding Lights Remix", "Blinding Lights") == 0.8


def test_title_word_overlap_without_core_match() -> None:
    assert title_similarity("one two three four", "four five six seven") == pytest.approx(0.15)


def test_title_core_word_boost_floors_at_point_six() -> None:
    assert title_similarity("love story taylor", "story of love") == pytest.approx(0.6)


def test_title_no_overlap() -> None:
    assert title_similarity("hello world", "goodbye moon") == 0.0


def test_artist_exact_match_ratio() -> None:
    assert artist_similarity("Jay & Bee", "Jay") == pytest.approx(0.6)
    assert artist_similarity("Jay & Bee", "Bee, Jay") == pytest.approx(1.0)


def test_artist_partial_match() -> None:
    assert artist_similarity("The Weeknd", "Weeknd") == pytest.approx(0.8)


def test_artist_word_overlap_fallback() -> None:
    assert artist_similarity("John Smith", "Smith Jones") == pytest.approx(0.3)


def test_artist_empty() -> None:
    assert artist_similarity("", "Someone") == 0.0


def test_score_reflexive() -> None:
    assert score_match("Midnight City", "M83", "Midnight City", "M83") == pytest.approx(1.0)


def test_score_weights_title_over_artist() -> None:
    assert score_match("Midnight City", "Someone Else", "Midnight City", "M83") == pytest.approx(0.7)
    assert score_match("Unrelated Song", "M83", "Midnight City", "M83") == pytest.approx(0.3)


def test_strip_annotations() -> None:
    assert strip_annotations("Song (feat. X) [Remastered 2011]") == "Song"
    assert strip_annotations("Song (Live) Version") == "Song Version"


def test_build_queries_order() -> None:
    assert build_queries("Midnight City", "M83") == [
        "Midnight City M83",
        "M83 Midnight City",
        "Midnight City",
        "Midnight City artist:M83",
    ]


def test_build_queries_strips_brackets() -> None:
    queries = build_queries("Blinding Lights (Remix)", "The Weeknd")
    assert " ".join(queries[0].split()) == "Blinding Lights The Weeknd"
    assert all("(" not in q for q in queries)


def test_build_queries_extra_terms_come_last() -> None:
    queries = build_queries("Saiyaara", "Tanishk", extra_terms=["soundtrack", " "])
    assert queries[:4] == [
        "Saiyaara Tanishk",
        "Tanishk Saiyaara",
        "Saiyaara",
        "Saiyaara artist:Tanishk",
    ]
    assert queries[4:] == ["Saiyaara Tanishk soundtrack", "Saiyaara soundtrack"]


def test_build_queries_without_artist_has_no_duplicates() -> None:
    assert build_queries("Intro", "") == ["Intro"]
