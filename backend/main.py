"""
Music link converter backend

This FastAPI application exposes a ``/convert`` endpoint that accepts a track
link from Spotify, YouTube Music or Apple Music and returns the equivalent
track links on the other platforms. Track metadata is read from the source
platform (Spotify Web API, YouTube oEmbed, iTunes lookup), then every other
platform's catalog search is queried with a handful of title/artist queries
and the best-scoring result above the match threshold is picked.

Configuration comes from environment variables (optionally from a ``.env``
file); see ``backend.config`` for the full list.

To run the development server locally:

    uvicorn backend.main:app --reload --port 3000

or ``python -m backend.main``, which listens on ``PORT``.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .config import Settings
from .converter import LinkConverter, build_converter
from .errors import ExtractionError, ProviderError, UnsupportedLinkError

_LOG = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to convert link. The API might be down or the link is invalid."
UNSUPPORTED_LINK = "Unsupported link provider. Please use Spotify, YouTube Music or Apple Music links."


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_converter() -> LinkConverter:
    return build_converter(get_settings())


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


configure_logging(get_settings())

app = FastAPI(title="Music Link Converter")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files for frontend
if os.path.isdir(get_settings().static_dir):
    app.mount("/static", StaticFiles(directory=get_settings().static_dir), name="static")


class ConvertRequest(BaseModel):
    link: Optional[str] = None
    target: Optional[str] = None


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "music-link-converter",
    }


# Serve frontend files
@app.get("/")
async def serve_frontend():
    index = os.path.join(get_settings().static_dir, "index.html")
    if os.path.exists(index):
        return FileResponse(index)
    return {"message": "Music Link Converter API is running", "docs": "/docs"}


def _run_conversion(converter: LinkConverter, link: Optional[str]):
    link = (link or "").strip()
    if not link:
        raise HTTPException(status_code=400, detail="Link is required")
    try:
        return converter.convert(link)
    except UnsupportedLinkError as exc:
        _LOG.info("[convert.rejected] %s", exc)
        raise HTTPException(status_code=400, detail=UNSUPPORTED_LINK) from exc
    except ExtractionError as exc:
        if exc.client_error:
            _LOG.info("[convert.rejected] %s", exc)
            raise HTTPException(status_code=400, detail="Invalid track link") from exc
        _LOG.error("[convert.failed] link=%s error=%s", link, exc)
        raise HTTPException(status_code=500, detail=GENERIC_FAILURE) from exc
    except Exception as exc:
        _LOG.exception("[convert.failed] link=%s", link)
        raise HTTPException(status_code=500, detail=GENERIC_FAILURE) from exc


@app.post("/convert")
def convert(body: ConvertRequest, converter: LinkConverter = Depends(get_converter)):
    """Convert a track link into links on every supported platform.

    The response maps platform keys (``spotify``, ``youtubeMusic``,
    ``appleMusic``) to track URLs; the submitted link is always included
    under its own platform.
    """
    result = _run_conversion(converter, body.link)
    return {
        "source": result.source.display_name,
        "title": result.metadata.title,
        "artist": result.metadata.artist,
        "links": result.links,
    }


@app.post("/convert-single", response_class=PlainTextResponse)
def convert_single(body: ConvertRequest, converter: LinkConverter = Depends(get_converter)):
    """Return just one converted URL as plain text.

    ``target`` picks the platform; without it the first platform other than
    the source that produced a match is used. Errors are plain text too.
    """
    try:
        result = _run_conversion(converter, body.link)
    except HTTPException as exc:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)
    alternatives = {k: v for k, v in result.links.items() if k != result.source.key}
    if body.target:
        url = alternatives.get(body.target)
    else:
        url = next(iter(alternatives.values()), None)
    if not url:
        return PlainTextResponse("No alternative link found", status_code=404)
    return url


@app.get("/debug/search/{platform}")
def debug_search(platform: str, q: Optional[str] = None, converter: LinkConverter = Depends(get_converter)):
    """Run a raw catalog search on one platform and list the first results."""
    if not q:
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')
    if platform not in converter.platforms:
        raise HTTPException(status_code=400, detail="Unsupported platform")
    try:
        candidates = converter.search(platform, q, limit=5)
    except ProviderError as exc:
        _LOG.error("[debug.search] platform=%s error=%s", platform, exc)
        raise HTTPException(status_code=502, detail="Search failed") from exc
    return {
        "query": q,
        "results": [{"name": c.name, "artist": c.artist, "url": c.url} for c in candidates],
    }


@app.get("/debug/extract")
def debug_extract(link: str, converter: LinkConverter = Depends(get_converter)):
    """Show the metadata the converter would search with for ``link``."""
    try:
        metadata = converter.extract(link)
    except ExtractionError as exc:
        status = 400 if exc.client_error else 502
        _LOG.info("[debug.extract] link=%s error=%s", link, exc)
        raise HTTPException(status_code=status, detail="Could not extract metadata") from exc
    return {
        "link": link,
        "extractedMetadata": {
            "title": metadata.title,
            "artist": metadata.artist,
            "album": metadata.album,
            "isrc": metadata.isrc,
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
