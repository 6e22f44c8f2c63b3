from __future__ import annotations

import asyncio
import logging
from typing import AbstractSet, List, Optional

from beatcut.application.clip_selector import ClipSelector
from beatcut.application.pipeline.base import PipelineContext, BaseStep
from beatcut.core.models import AssetType, Beat, BeatSelection, Orientation

logger = logging.getLogger(__name__)


class SelectClipsStep(BaseStep):
    """Pick one clip per beat with bounded concurrency.

    Results keep beat order regardless of completion order. A beat whose
    selection fails, or which is still unresolved when the run is
    cancelled, is reported as ``no_candidates``.

    Input:  beats, orientation, asset_override, exclude_ids
    Output: selections, used_ids
    """

    name = "select_clips"
    required_keys = ["beats"]

    def __init__(self, selector: ClipSelector, *, max_concurrency: int = 3) -> None:
        self.selector = selector
        self.max_concurrency = max(1, int(max_concurrency))

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        beats: List[Beat] = context.get("beats") or []
        orientation: Orientation = context.get("orientation", Orientation.LANDSCAPE)
        override: Optional[AssetType] = context.get("asset_override")
        exclude_ids: AbstractSet[str] = frozenset(context.get("exclude_ids") or ())

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _one(index: int, beat: Beat) -> BeatSelection:
            async with semaphore:
                if context.is_cancelled():
                    return BeatSelection.no_candidates(index, beat)
                return await self._select_one(
                    context, index, beat, orientation, override, exclude_ids
                )

        selections = list(
            await asyncio.gather(*(_one(i, b) for i, b in enumerate(beats)))
        )

        used_ids: List[str] = []
        for result in selections:
            cid = result.selection.candidate_id if result.selection else None
            if cid and cid not in used_ids:
                used_ids.append(cid)

        missing = sum(1 for s in selections if not s.ok)
        logger.info(
            "✅ Selected clips for %d/%d beats", len(selections) - missing, len(beats)
        )
        context.update(selections=selections, used_ids=used_ids)

    async def _select_one(
        self,
        context: PipelineContext,
        index: int,
        beat: Beat,
        orientation: Orientation,
        override: Optional[AssetType],
        exclude_ids: AbstractSet[str],
    ) -> BeatSelection:
        work = asyncio.ensure_future(
            self.selector.select(
                beat,
                index=index,
                orientation=orientation,
                asset_override=override,
                exclude_ids=exclude_ids,
            )
        )
        if context.cancel_event is None:
            waiters = {work}
            cancel_wait = None
        else:
            cancel_wait = asyncio.ensure_future(context.cancel_event.wait())
            waiters = {work, cancel_wait}

        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            if cancel_wait is not None and not cancel_wait.done():
                cancel_wait.cancel()

        if not work.done():
            work.cancel()
            logger.info("Beat %d cancelled before a clip was chosen", index)
            return BeatSelection.no_candidates(index, beat)

        try:
            selection = work.result()
        except asyncio.CancelledError:
            return BeatSelection.no_candidates(index, beat)
        except Exception as e:  # noqa: BLE001
            logger.warning("Beat %d: no clip selected (%s)", index, e)
            return BeatSelection.no_candidates(index, beat)
        return BeatSelection(index=index, beat=beat, selection=selection)
