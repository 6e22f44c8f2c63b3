from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel
from pydantic_ai import Agent, ImageUrl  # type: ignore
from pydantic_ai.models.openai import OpenAIModel  # type: ignore

from beatcut.application.interfaces import ICandidateReranker
from beatcut.core.config import settings
from beatcut.core.models import AssetType, Candidate, Orientation
from utils.scoring_utils import orientation_of

logger = logging.getLogger(__name__)


class _RerankPick(BaseModel):
    best_index: int
    reason: str = ""


class PydanticAIReranker(ICandidateReranker):
    """Vision reranker implemented via pydantic-ai + an OpenAI vision model.

    Every candidate is shown as a short text label followed by its sample
    frames. If initialization fails or the call errors, ``rerank`` returns
    None and the caller keeps the heuristic choice.
    """

    def __init__(
        self, model_name: Optional[str] = None, *, frames_per_candidate: int = 2
    ) -> None:
        self._agent = None
        self._model_name = model_name or settings.vision_model
        self._frames_per_candidate = frames_per_candidate
        self._initialize()

    def _initialize(self) -> None:
        if not settings.openai_api_key:
            logger.debug("PydanticAIReranker: missing API key; running in no-opinion mode")
            return
        try:
            model = OpenAIModel(model_name=self._model_name)
            self._agent = Agent(
                model=model,
                output_type=_RerankPick,
                system_prompt=(
                    "You pick the best b-roll clip for a narration segment.\n"
                    "Score for: (1) semantic relevance, (2) framing clarity, "
                    "(3) motion/energy fit, (4) safety/brand-friendly, "
                    "(5) orientation suitability.\n"
                    "Answer with the 0-based index of the best candidate."
                ),
                model_settings={"temperature": 0},
            )
            logger.info("🤖 PydanticAIReranker initialized (model=%s)", self._model_name)
        except Exception as e:  # noqa: BLE001
            self._agent = None
            logger.warning("PydanticAIReranker init failed: %s", e)

    def build_prompt(
        self,
        beat_text: str,
        orientation: Orientation,
        preferred_type: AssetType,
        candidates: Sequence[Candidate],
    ) -> List[Union[str, ImageUrl]]:
        parts: List[Union[str, ImageUrl]] = [
            f'Pick the best b-roll for this narration segment:\n"{beat_text}"\n'
            f"Target aspect: {orientation.value}. "
            f"Preferred asset type: {preferred_type.value}."
        ]
        for i, c in enumerate(candidates):
            label = (
                f"Candidate {i} - {c.asset_type.value.upper()} · "
                f"{orientation_of(c.width, c.height).value}"
            )
            if c.asset_type is AssetType.VIDEO:
                label += f" · ~{c.duration:.1f}s"
            parts.append(label)
            for url in c.frames[: self._frames_per_candidate]:
                parts.append(ImageUrl(url=url))
        return parts

    async def rerank(
        self,
        beat_text: str,
        orientation: Orientation,
        preferred_type: AssetType,
        candidates: Sequence[Candidate],
    ) -> Optional[int]:
        if self._agent is None or not candidates:
            return None
        try:
            prompt = self.build_prompt(beat_text, orientation, preferred_type, candidates)
            result = await self._agent.run(prompt)  # type: ignore[attr-defined]
            pick = result.output
            logger.info("🤖 Rerank picked %d: %s", pick.best_index, pick.reason)
            return int(pick.best_index)
        except Exception as e:  # noqa: BLE001
            logger.warning("PydanticAIReranker.rerank failed: %s", e)
            return None
