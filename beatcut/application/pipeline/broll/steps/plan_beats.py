from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from beatcut.application.pipeline.base import PipelineContext, BaseStep
from beatcut.application.interfaces import IBeatGrouper
from beatcut.core.config import BeatConfig
from beatcut.core.models import Beat, Word
from utils.beat_utils import (
    audio_length_of,
    beats_from_chunk_groups,
    desired_beat_count,
    normalize_beats,
    plan_beats,
)
from utils.boundary_utils import build_phrase_chunks

logger = logging.getLogger(__name__)


class PlanBeatsStep(BaseStep):
    """Turn the word stream into contiguous, duration-bounded beats.

    Strategy ``heuristic`` walks word boundaries directly. Strategy ``llm``
    lets the beat grouper merge phrase chunks into scenes and falls back to
    the heuristic on any grouper failure. Skipped when beats were supplied.
    """

    name = "plan_beats"
    required_keys = ["words", "beat_config"]

    def __init__(
        self,
        beat_grouper: Optional[IBeatGrouper] = None,
        *,
        strategy: str = "heuristic",
        grouper_timeout: float = 20.0,
    ) -> None:
        self.beat_grouper = beat_grouper
        self.strategy = strategy
        self.grouper_timeout = grouper_timeout

    def can_skip(self, context: PipelineContext) -> bool:
        return bool(context.get("beats"))

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        words: List[Word] = context.get("words") or []
        config: BeatConfig = context.get("beat_config")
        audio_length: Optional[float] = context.get("audio_length")

        beats: List[Beat] = []
        if words and self.strategy == "llm" and self.beat_grouper is not None:
            beats = await self._grouped_beats(
                words, config, audio_length, context.get("target_duration")
            )
        if words and not beats:
            beats = plan_beats(words, config, audio_length)

        logger.info("🎬 Planned %d beats from %d words", len(beats), len(words))
        context.set("beats", beats)

    async def _grouped_beats(
        self,
        words: Sequence[Word],
        config: BeatConfig,
        audio_length: Optional[float],
        target_duration: Optional[float],
    ) -> List[Beat]:
        chunks = build_phrase_chunks(words, config)
        if len(chunks) < 2:
            return []
        total = audio_length or audio_length_of(words)
        desired = desired_beat_count(total, config, target_duration)
        try:
            ends = await asyncio.wait_for(
                self.beat_grouper.group(
                    chunks,
                    desired_beats=desired,
                    min_beat_sec=config.min_beat_sec,
                    max_beat_sec=config.max_beat_sec,
                ),
                timeout=self.grouper_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Beat grouping timed out, fallback to heuristic beats")
            return []
        except Exception as e:  # noqa: BLE001
            logger.warning("Beat grouping failed, fallback to heuristic beats: %s", e)
            return []
        if not ends:
            return []
        raw = beats_from_chunk_groups(chunks, ends, config)
        return normalize_beats(raw, words, config, audio_length)
