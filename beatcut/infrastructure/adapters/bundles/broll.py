from __future__ import annotations

from beatcut.application.interfaces import IBrollPipelineAdapters
from beatcut.application.pipeline.broll.adapter_bundle import BrollPipelineAdapters
from beatcut.infrastructure.adapters import (
    LLMBeatGrouper,
    NullReranker,
    PexelsCandidateProvider,
    PixabayCandidateProvider,
    PydanticAIQueryRewriter,
    PydanticAIReranker,
)
from beatcut.core.config import settings


def get_broll_adapter_bundle() -> IBrollPipelineAdapters:
    """Provide the adapters container for the b-roll pipeline.

    Model-backed collaborators are only wired when an OpenAI key is set and
    the matching feature flag is on; otherwise their null variants are used.
    """
    if settings.candidate_provider == "pixabay":
        provider = PixabayCandidateProvider()
    else:
        provider = PexelsCandidateProvider()

    ai_enabled = bool(settings.openai_api_key)
    return BrollPipelineAdapters(
        candidate_provider=provider,
        reranker=(
            PydanticAIReranker(frames_per_candidate=settings.frames_per_candidate)
            if ai_enabled and settings.smart_pick
            else NullReranker()
        ),
        query_rewriter=(
            PydanticAIQueryRewriter() if ai_enabled and settings.smart_query else None
        ),
        beat_grouper=(
            LLMBeatGrouper()
            if ai_enabled and settings.beat_strategy == "llm"
            else None
        ),
    )
