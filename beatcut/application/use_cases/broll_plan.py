from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from beatcut.application.interfaces import IBrollPipelineAdapters
from beatcut.application.pipeline.base import PipelineContext
from beatcut.application.pipeline.broll.builder import build_broll_pipeline
from beatcut.core.models import Beat, BeatSelection
from beatcut.core.pyd_schemas import (
    BeatOut,
    BeatSelectionOut,
    PlanBeatsResponse,
    SelectClipsResponse,
)


class PlanBeatsUseCase:
    """Run the beat stage only: validate words, then plan beats."""

    def __init__(self, adapters: IBrollPipelineAdapters) -> None:
        self._adapters = adapters

    async def execute(self, payload: Dict) -> PlanBeatsResponse:
        ctx = PipelineContext(input=payload)
        pipeline = build_broll_pipeline(self._adapters, select_clips=False)
        result = await pipeline.execute(ctx)
        beats: List[Beat] = result["context"].get("beats") or []
        return PlanBeatsResponse(beats=[BeatOut.from_beat(b) for b in beats])


class SelectClipsUseCase:
    """Plan beats (unless given) and choose one clip per beat."""

    def __init__(self, adapters: IBrollPipelineAdapters) -> None:
        self._adapters = adapters

    async def execute(
        self, payload: Dict, *, cancel_event: Optional[asyncio.Event] = None
    ) -> SelectClipsResponse:
        ctx = PipelineContext(input=payload, cancel_event=cancel_event)
        pipeline = build_broll_pipeline(self._adapters, select_clips=True)
        result = await pipeline.execute(ctx)
        ctx = result["context"]

        beats: List[Beat] = ctx.get("beats") or []
        selections: List[BeatSelection] = ctx.get("selections") or []
        return SelectClipsResponse(
            beats=[BeatOut.from_beat(b) for b in beats],
            selections=[BeatSelectionOut.from_selection(s) for s in selections],
            used_ids=list(ctx.get("used_ids") or []),
        )
