from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from beatcut.application.interfaces import ICandidateProvider
from beatcut.core.config import settings
from beatcut.core.exceptions import ProviderUnavailable
from beatcut.core.models import AssetType, Candidate, Orientation
from utils.media_utils import parse_pixabay_images, parse_pixabay_videos

logger = logging.getLogger(__name__)

PIXABAY_IMAGE_SEARCH_URL = "https://pixabay.com/api/"
PIXABAY_VIDEO_SEARCH_URL = "https://pixabay.com/api/videos/"

_PIXABAY_ORIENTATION = {
    Orientation.PORTRAIT: "vertical",
    Orientation.LANDSCAPE: "horizontal",
}


class PixabayCandidateProvider(ICandidateProvider):
    """ICandidateProvider implementation using the Pixabay API.

    The blocking ``requests`` call runs in a worker thread so the event loop
    stays free while several beats search concurrently.
    """

    name = "pixabay"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        max_candidates: Optional[int] = None,
        min_short_side: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.pixabay_api_key
        self.max_candidates = max_candidates or settings.max_candidates
        self.min_short_side = min_short_side or settings.min_short_side_px
        self.timeout = timeout or settings.search_timeout_sec

    async def search(
        self,
        query: str,
        asset_kind: AssetType,
        orientation_hint: Orientation,
    ) -> List[Candidate]:
        if not self.api_key:
            logger.debug("PixabayCandidateProvider: missing API key; returning []")
            return []
        if not query.strip():
            return []

        # Pixabay rejects per_page below 3
        params: Dict[str, Any] = {
            "key": self.api_key,
            "q": query[:100],
            "lang": "en",
            "safesearch": "true",
            "order": "popular",
            "per_page": max(3, self.max_candidates),
        }
        try:
            if asset_kind is AssetType.VIDEO:
                params["video_type"] = "film"
                payload = await asyncio.to_thread(
                    self._get_json, PIXABAY_VIDEO_SEARCH_URL, params
                )
                found = parse_pixabay_videos(payload, limit=self.max_candidates)
            else:
                params.update(
                    {
                        "image_type": "photo",
                        "orientation": _PIXABAY_ORIENTATION.get(orientation_hint, "all"),
                        "min_width": self.min_short_side,
                        "min_height": self.min_short_side,
                    }
                )
                payload = await asyncio.to_thread(
                    self._get_json, PIXABAY_IMAGE_SEARCH_URL, params
                )
                found = parse_pixabay_images(payload, limit=self.max_candidates)
        except ProviderUnavailable as e:
            logger.warning("Pixabay %s search failed: %s", asset_kind.value, e.message)
            return []

        logger.debug(
            "🔎 Pixabay %s search '%s' -> %d candidates",
            asset_kind.value,
            query,
            len(found),
        )
        return found

    def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise ProviderUnavailable(
                f"request to {url} failed: {e}", provider=self.name
            ) from e
        except ValueError as e:
            raise ProviderUnavailable(
                f"invalid JSON from {url}: {e}", provider=self.name
            ) from e
