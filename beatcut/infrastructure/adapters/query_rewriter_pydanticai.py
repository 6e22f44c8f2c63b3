from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel
from pydantic_ai import Agent  # type: ignore
from pydantic_ai.models.openai import OpenAIModel  # type: ignore

from beatcut.application.interfaces import IQueryRewriter
from beatcut.core.config import settings
from beatcut.core.models import Orientation

logger = logging.getLogger(__name__)


class _SearchTerms(BaseModel):
    terms: List[str] = []


class PydanticAIQueryRewriter(IQueryRewriter):
    """Query rewriter implemented via pydantic-ai + OpenAI model.

    If initialization fails (e.g., missing API key) it runs in fallback
    mode and returns the raw text unchanged.
    """

    def __init__(self, model_name: Optional[str] = None, *, max_terms: int = 5) -> None:
        self._agent = None
        self._model_name = model_name or settings.ai_pydantic_model
        self._max_terms = max_terms
        self._initialize()

    def _initialize(self) -> None:
        if not settings.openai_api_key or not settings.smart_query:
            logger.debug(
                "PydanticAIQueryRewriter: disabled or missing API key; running in fallback mode"
            )
            return
        try:
            model = OpenAIModel(model_name=self._model_name)
            self._agent = Agent(
                model=model,
                output_type=_SearchTerms,
                system_prompt=(
                    "Extract 2-5 *visual* stock-search terms (objects, actions, "
                    "setting, mood) from a narration line."
                ),
                model_settings={"temperature": 0.2},
            )
            logger.info("🤖 PydanticAIQueryRewriter initialized")
        except Exception as e:  # noqa: BLE001
            self._agent = None
            logger.warning("PydanticAIQueryRewriter init failed: %s", e)

    async def rewrite(self, text: str, orientation: Orientation) -> str:
        if self._agent is None or not text.strip():
            return text
        try:
            user_prompt = (
                f'Line: "{text}"  Orientation: {orientation.value}. '
                "Avoid abstract words; prefer concrete visuals (e.g., "
                '"pour over coffee", "steam", "barista", "kitchen counter", "close-up").'
            )
            result = await self._agent.run(user_prompt=user_prompt)  # type: ignore[attr-defined]
            terms = [t.strip() for t in result.output.terms if t and t.strip()]
            query = " ".join(terms[: self._max_terms]).strip()
            return query or text
        except Exception as e:  # noqa: BLE001
            logger.warning("PydanticAIQueryRewriter.rewrite failed: %s", e)
            return text
