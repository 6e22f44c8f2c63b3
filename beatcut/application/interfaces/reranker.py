from __future__ import annotations

from typing import Optional, Protocol, Sequence

from beatcut.core.models import AssetType, Candidate, Orientation


class ICandidateReranker(Protocol):
    """Optional richer-signal selection among the top heuristic candidates.

    Returns a zero-based index into ``candidates`` or None for "no opinion".
    Out-of-range answers are treated as no opinion by the caller.
    """

    async def rerank(
        self,
        beat_text: str,
        orientation: Orientation,
        preferred_type: AssetType,
        candidates: Sequence[Candidate],
    ) -> Optional[int]:
        ...
