from __future__ import annotations

from typing import Optional, Sequence

from beatcut.application.interfaces import ICandidateReranker
from beatcut.core.models import AssetType, Candidate, Orientation


class NullReranker(ICandidateReranker):
    """Always "no opinion"; used when smart picking is disabled."""

    async def rerank(
        self,
        beat_text: str,
        orientation: Orientation,
        preferred_type: AssetType,
        candidates: Sequence[Candidate],
    ) -> Optional[int]:
        return None
