"""
Helpers for turning stock-media provider payloads into candidates.

Parsers raise ``MalformedProviderResponse`` when the payload does not
have the expected top-level shape; individual items without a usable
source URL are skipped.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from beatcut.core.exceptions import MalformedProviderResponse
from beatcut.core.models import AssetType, Candidate

logger = logging.getLogger(__name__)


def frames_from(pictures: Sequence[Any], count: int) -> List[str]:
    """Pick up to ``count`` evenly stepped preview frames.

    Accepts either plain URL strings or Pexels-style ``{"picture": url}`` dicts.
    """
    urls = [
        p.get("picture") if isinstance(p, dict) else p
        for p in (pictures or [])
    ]
    urls = [u for u in urls if isinstance(u, str) and u]
    if count <= 0 or not urls:
        return []
    if len(urls) <= count:
        return urls
    step = max(1, len(urls) // count)
    return urls[::step][:count]


def pick_sd_file(video_files: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """SD rendition if present, else the first file."""
    files = [f for f in (video_files or []) if isinstance(f, dict)]
    for f in files:
        if f.get("quality") == "sd":
            return f
    return files[0] if files else None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _require_list(payload: Any, key: str, provider: str) -> List[Any]:
    if not isinstance(payload, dict):
        raise MalformedProviderResponse(
            f"{provider} response is not a JSON object", provider=provider
        )
    items = payload.get(key, [])
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedProviderResponse(
            f"{provider} response field '{key}' is not a list", provider=provider
        )
    return items


def parse_pexels_videos(
    payload: Any, *, limit: int, frames_per_candidate: int = 2
) -> List[Candidate]:
    """Parse a Pexels ``/videos/search`` response (deduplicated by id)."""
    seen = set()
    out: List[Candidate] = []
    for video in _require_list(payload, "videos", "pexels"):
        if not isinstance(video, dict) or video.get("id") is None:
            continue
        vid = str(video["id"])
        if vid in seen:
            continue
        seen.add(vid)

        file = pick_sd_file(video.get("video_files") or [])
        src = (file or {}).get("link")
        if not src:
            continue
        frames = frames_from(video.get("video_pictures") or [], frames_per_candidate)
        if not frames and video.get("image"):
            frames = [video["image"]]
        out.append(
            Candidate(
                id=vid,
                src=src,
                asset_type=AssetType.VIDEO,
                width=_as_int(video.get("width")),
                height=_as_int(video.get("height")),
                duration=_as_float(video.get("duration")),
                frames=tuple(frames),
            )
        )
        if len(out) >= limit:
            break
    return out


def parse_pexels_photos(payload: Any, *, limit: int) -> List[Candidate]:
    """Parse a Pexels ``/v1/search`` response."""
    out: List[Candidate] = []
    for photo in _require_list(payload, "photos", "pexels"):
        if not isinstance(photo, dict) or photo.get("id") is None:
            continue
        src_map = photo.get("src") or {}
        src = src_map.get("original") or src_map.get("large2x") or src_map.get("large")
        if not src:
            continue
        frame = src_map.get("medium") or src_map.get("large") or src_map.get("original")
        out.append(
            Candidate(
                id=str(photo["id"]),
                src=src,
                asset_type=AssetType.IMAGE,
                width=_as_int(photo.get("width")),
                height=_as_int(photo.get("height")),
                duration=0.0,
                frames=(frame,) if frame else (),
            )
        )
        if len(out) >= limit:
            break
    return out


def parse_pixabay_images(payload: Any, *, limit: int) -> List[Candidate]:
    """Parse a Pixabay ``/api/`` response, preferring the largest image URL."""
    out: List[Candidate] = []
    for hit in _require_list(payload, "hits", "pixabay"):
        if not isinstance(hit, dict) or hit.get("id") is None:
            continue
        src = hit.get("largeImageURL") or hit.get("fullHDURL") or hit.get("imageURL")
        if not src:
            continue
        frame = hit.get("webformatURL") or hit.get("previewURL") or src
        out.append(
            Candidate(
                id=str(hit["id"]),
                src=src,
                asset_type=AssetType.IMAGE,
                width=_as_int(hit.get("imageWidth")),
                height=_as_int(hit.get("imageHeight")),
                duration=0.0,
                frames=(frame,),
            )
        )
        if len(out) >= limit:
            break
    return out


def parse_pixabay_videos(payload: Any, *, limit: int) -> List[Candidate]:
    """Parse a Pixabay ``/api/videos/`` response using the medium rendition."""
    out: List[Candidate] = []
    for hit in _require_list(payload, "hits", "pixabay"):
        if not isinstance(hit, dict) or hit.get("id") is None:
            continue
        renditions = hit.get("videos") or {}
        rendition = renditions.get("medium") or renditions.get("small") or {}
        src = rendition.get("url")
        if not src:
            continue
        thumb = rendition.get("thumbnail")
        out.append(
            Candidate(
                id=str(hit["id"]),
                src=src,
                asset_type=AssetType.VIDEO,
                width=_as_int(rendition.get("width")),
                height=_as_int(rendition.get("height")),
                duration=_as_float(hit.get("duration")),
                frames=(thumb,) if thumb else (),
            )
        )
        if len(out) >= limit:
            break
    return out
