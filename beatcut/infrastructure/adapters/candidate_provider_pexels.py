from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from beatcut.application.interfaces import ICandidateProvider
from beatcut.core.config import settings
from beatcut.core.exceptions import ProviderUnavailable
from beatcut.core.models import AssetType, Candidate, Orientation
from utils.media_utils import parse_pexels_photos, parse_pexels_videos

logger = logging.getLogger(__name__)

PEXELS_VIDEO_SEARCH_URL = "https://api.pexels.com/videos/search"
PEXELS_PHOTO_SEARCH_URL = "https://api.pexels.com/v1/search"


class PexelsCandidateProvider(ICandidateProvider):
    """ICandidateProvider backed by the Pexels video and photo search APIs.

    Video searches over-fetch (``max_candidates * 2``) because duplicates and
    items without a playable file are dropped while parsing. Photo searches
    pass the orientation hint through. Any transport or payload failure is
    logged and yields an empty list.
    """

    name = "pexels"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        max_candidates: Optional[int] = None,
        frames_per_candidate: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.pexels_api_key
        self.max_candidates = max_candidates or settings.max_candidates
        self.frames_per_candidate = (
            frames_per_candidate
            if frames_per_candidate is not None
            else settings.frames_per_candidate
        )
        self.timeout = timeout or settings.search_timeout_sec

    async def search(
        self,
        query: str,
        asset_kind: AssetType,
        orientation_hint: Orientation,
    ) -> List[Candidate]:
        if not self.api_key:
            logger.debug("PexelsCandidateProvider: missing API key; returning []")
            return []
        if not query.strip():
            return []

        try:
            if asset_kind is AssetType.VIDEO:
                payload = await self._get_json(
                    PEXELS_VIDEO_SEARCH_URL,
                    {"query": query, "per_page": self.max_candidates * 2},
                )
                found = parse_pexels_videos(
                    payload,
                    limit=self.max_candidates,
                    frames_per_candidate=self.frames_per_candidate,
                )
            else:
                params: Dict[str, Any] = {
                    "query": query,
                    "per_page": self.max_candidates,
                }
                if orientation_hint in (Orientation.PORTRAIT, Orientation.LANDSCAPE):
                    params["orientation"] = orientation_hint.value
                payload = await self._get_json(PEXELS_PHOTO_SEARCH_URL, params)
                found = parse_pexels_photos(payload, limit=self.max_candidates)
        except ProviderUnavailable as e:
            logger.warning("Pexels %s search failed: %s", asset_kind.value, e.message)
            return []

        logger.debug(
            "🔎 Pexels %s search '%s' -> %d candidates",
            asset_kind.value,
            query,
            len(found),
        )
        return found

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        headers = {"Authorization": self.api_key}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params=params, headers=headers) as response:
                    response.raise_for_status()
                    return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderUnavailable(
                f"request to {url} failed: {e}", provider=self.name
            ) from e
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(
                f"request to {url} timed out after {self.timeout}s", provider=self.name
            ) from e
        except ValueError as e:
            raise ProviderUnavailable(
                f"invalid JSON from {url}: {e}", provider=self.name
            ) from e
