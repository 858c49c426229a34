from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.config import Settings
from backend.converter import LinkConverter, Platform
from backend.errors import ExtractionError, ProviderError
from backend.main import GENERIC_FAILURE, app, get_converter
from backend.models import TrackMetadata
from fakes import FakeExtractor, FakeProvider, make_candidate

SPOTIFY_LINK = "https://open.spotify.com/track/abc123"


def _build_client(extractor=None, youtube=None, apple=None) -> TestClient:
    extractor = extractor or FakeExtractor(TrackMetadata(title="Midnight City", artist="M83"))
    converter = LinkConverter(
        [
            Platform("spotify", "Spotify", extractor, FakeProvider()),
            Platform("youtubeMusic", "YouTube Music", extractor, youtube or FakeProvider()),
            Platform("appleMusic", "Apple Music", extractor, apple or FakeProvider()),
        ],
        Settings(),
    )
    app.dependency_overrides[get_converter] = lambda: converter
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


def test_convert_returns_links() -> None:
    youtube = FakeProvider(default=[make_candidate("Midnight City", "M83", url="https://music.youtube.com/watch?v=yt")])
    client = _build_client(youtube=youtube)

    response = client.post("/convert", json={"link": SPOTIFY_LINK})

    assert response.status_code == 200
    assert response.json() == {
        "source": "Spotify",
        "title": "Midnight City",
        "artist": "M83",
        "links": {"spotify": SPOTIFY_LINK, "youtubeMusic": "https://music.youtube.com/watch?v=yt"},
    }


def test_convert_requires_link() -> None:
    client = _build_client()

    response = client.post("/convert", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Link is required"


def test_convert_unsupported_link_is_400() -> None:
    client = _build_client()

    response = client.post("/convert", json={"link": "https://soundcloud.com/a/b"})

    assert response.status_code == 400
    assert "Unsupported link provider" in response.json()["detail"]


def test_convert_malformed_track_link_is_400() -> None:
    client = _build_client(extractor=FakeExtractor(error=ExtractionError("bad id", client_error=True)))

    response = client.post("/convert", json={"link": SPOTIFY_LINK})

    assert response.status_code == 400


def test_convert_upstream_failure_is_generic_500() -> None:
    extractor = FakeExtractor(error=ExtractionError("spotify: secret internal detail"))
    client = _build_client(extractor=extractor)

    response = client.post("/convert", json={"link": SPOTIFY_LINK})

    assert response.status_code == 500
    assert response.json()["detail"] == GENERIC_FAILURE
    assert "secret internal detail" not in response.text


def test_convert_with_failing_providers_still_succeeds() -> None:
    class _FailingProvider:
        available = True

        def search(self, query):
            raise ProviderError("ytmusic", "quota exceeded")

    client = _build_client(youtube=_FailingProvider())

    response = client.post("/convert", json={"link": SPOTIFY_LINK})

    assert response.status_code == 200
    assert response.json()["links"] == {"spotify": SPOTIFY_LINK}
    assert "quota" not in response.text


def test_convert_single_returns_plain_text() -> None:
    apple = FakeProvider(default=[make_candidate("Midnight City", "M83", url="https://music.apple.com/x?i=1")])
    client = _build_client(apple=apple)

    response = client.post("/convert-single", json={"link": SPOTIFY_LINK, "target": "appleMusic"})

    assert response.status_code == 200
    assert response.text == "https://music.apple.com/x?i=1"
    assert response.headers["content-type"].startswith("text/plain")


def test_convert_single_not_found() -> None:
    client = _build_client()

    response = client.post("/convert-single", json={"link": SPOTIFY_LINK})

    assert response.status_code == 404
    assert response.text == "No alternative link found"
    assert response.headers["content-type"].startswith("text/plain")


def test_convert_single_errors_are_plain_text() -> None:
    client = _build_client()

    unsupported = client.post("/convert-single", json={"link": "https://soundcloud.com/a/b"})
    missing = client.post("/convert-single", json={})

    assert unsupported.status_code == 400
    assert unsupported.text.startswith("Unsupported link provider")
    assert unsupported.headers["content-type"].startswith("text/plain")
    assert missing.status_code == 400
    assert missing.text == "Link is required"


def test_convert_single_upstream_failure_is_plain_text_500() -> None:
    client = _build_client(extractor=FakeExtractor(error=ExtractionError("spotify: secret internal detail")))

    response = client.post("/convert-single", json={"link": SPOTIFY_LINK})

    assert response.status_code == 500
    assert response.text == GENERIC_FAILURE


def test_debug_search() -> None:
    youtube = FakeProvider(default=[make_candidate("Midnight City", "M83", url="https://music.youtube.com/watch?v=yt")])
    client = _build_client(youtube=youtube)

    response = client.get("/debug/search/youtubeMusic", params={"q": "midnight city"})

    assert response.status_code == 200
    assert response.json()["results"] == [
        {"name": "Midnight City", "artist": "M83", "url": "https://music.youtube.com/watch?v=yt"}
    ]


def test_debug_search_requires_query_and_known_platform() -> None:
    client = _build_client()

    assert client.get("/debug/search/youtubeMusic").status_code == 400
    assert client.get("/debug/search/tidal", params={"q": "x"}).status_code == 400


def test_debug_extract() -> None:
    client = _build_client()

    response = client.get("/debug/extract", params={"link": SPOTIFY_LINK})

    assert response.status_code == 200
    assert response.json()["extractedMetadata"]["title"] == "Midnight City"


def test_health() -> None:
    client = _build_client()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
