from __future__ import annotations

from typing import List, Protocol, Sequence

from utils.boundary_utils import PhraseChunk


class IBeatGrouper(Protocol):
    async def group(
        self,
        chunks: Sequence[PhraseChunk],
        *,
        desired_beats: int,
        min_beat_sec: float,
        max_beat_sec: float,
    ) -> List[int]:
        """Group adjacent phrase chunks into scenes.

        Returns the end chunk index of every group, in order. Chunks are
        never split and never reordered.
        """
        ...
