from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, field_validator
from pydantic_ai import Agent  # type: ignore
from pydantic_ai.models.openai import OpenAIModel  # type: ignore

from beatcut.application.interfaces import IBeatGrouper
from beatcut.core.config import settings
from beatcut.core.exceptions import MalformedProviderResponse
from utils.boundary_utils import PhraseChunk

logger = logging.getLogger(__name__)


class _SceneGroup(BaseModel):
    start_index: int
    end_index: int
    label: str = ""


class _SceneGroups(BaseModel):
    beats: List[_SceneGroup]

    @field_validator("beats", mode="after")
    @classmethod
    def _non_empty(cls, v: List[_SceneGroup]) -> List[_SceneGroup]:
        if not v:
            raise ValueError("at least one scene is required")
        return v


class LLMBeatGrouper(IBeatGrouper):
    """Group adjacent phrase chunks into scenes using an LLM.

    Only group end indices are returned; the caller maps them back onto
    word timings and normalizes the result, so the model can never move a
    cut off a word boundary.
    """

    def __init__(self, model_name: Optional[str] = None) -> None:
        self._model_name = model_name or settings.ai_pydantic_model

    @staticmethod
    def format_chunks(chunks: Sequence[PhraseChunk]) -> str:
        lines = []
        for i, c in enumerate(chunks):
            text = re.sub(r"\s+", " ", c.text)[:120]
            lines.append(f"{i}. ({c.duration:.2f}s) {text}")
        return "\n".join(lines)

    async def group(
        self,
        chunks: Sequence[PhraseChunk],
        *,
        desired_beats: int,
        min_beat_sec: float,
        max_beat_sec: float,
    ) -> List[int]:
        if not chunks:
            return []

        model = OpenAIModel(model_name=self._model_name)
        logger.info(
            "LLMBeatGrouper: grouping %d chunks into ~%d scenes (model=%s)",
            len(chunks),
            desired_beats,
            self._model_name,
        )
        agent = Agent(
            model,
            output_type=_SceneGroups,
            system_prompt=(
                "You are a video editor. Group narration chunks into engaging "
                "SCENES (beats).\n"
                "Keep original order, don't overlap. Prefer an early hook, then "
                "logical transitions and payoff.\n"
                f"Aim for {desired_beats} scenes total. Each scene "
                f"~{min_beat_sec}-{max_beat_sec}s.\n"
                "Only merge adjacent chunks; do not split chunks. Keep concise labels."
            ),
            model_settings={"temperature": 0},
        )
        user_prompt = f"Chunks (index: duration text):\n{self.format_chunks(chunks)}"

        result = await agent.run(user_prompt=user_prompt)
        return self.end_indices(result.output, len(chunks))

    @staticmethod
    def end_indices(groups: _SceneGroups, chunk_count: int) -> List[int]:
        """Validated, strictly increasing group end indices."""
        last = chunk_count - 1
        ends: List[int] = []
        for g in groups.beats:
            end = max(0, min(last, int(g.end_index)))
            if ends and end <= ends[-1]:
                continue
            ends.append(end)
        if not ends:
            raise MalformedProviderResponse(
                "beat grouping returned no usable scene", provider="openai"
            )
        if ends[-1] != last:
            ends.append(last)
        return ends
