from __future__ import annotations

from typing import Optional

from beatcut.application.clip_selector import ClipSelector
from beatcut.application.interfaces import IBrollPipelineAdapters
from beatcut.application.pipeline.base import Pipeline, make_logging_middleware
from beatcut.application.pipeline.broll.steps.plan_beats import PlanBeatsStep
from beatcut.application.pipeline.broll.steps.select_clips import SelectClipsStep
from beatcut.application.pipeline.broll.steps.validate_words import (
    ValidateWordsStep,
)
from beatcut.application.pipeline.factory import PipelineFactory
from beatcut.core.config import BeatConfig, SelectionConfig, settings


def build_broll_pipeline(
    adapters: IBrollPipelineAdapters,
    *,
    select_clips: bool = True,
    beat_config: Optional[BeatConfig] = None,
    selection_config: Optional[SelectionConfig] = None,
    beat_strategy: Optional[str] = None,
    enable_logging_middleware: bool = True,
    fail_fast: bool = True,
) -> Pipeline:
    """Assemble validate → plan → (select) from settings and the adapters.

    With ``select_clips=False`` the pipeline only plans beats and needs no
    candidate provider or reranker.
    """
    beat_config = beat_config or settings.beat_config()
    strategy = beat_strategy or settings.beat_strategy

    middlewares = [make_logging_middleware()] if enable_logging_middleware else []
    factory = PipelineFactory(middlewares=middlewares, fail_fast=fail_fast)
    factory.add(ValidateWordsStep(beat_config, selecting=select_clips))
    factory.add(
        PlanBeatsStep(
            getattr(adapters, "beat_grouper", None),
            strategy=strategy,
            grouper_timeout=settings.llm_beat_timeout_sec,
        )
    )
    if select_clips:
        validate = getattr(adapters, "validate_required", None)
        if validate is not None:
            validate(["candidate_provider"])
        selection_config = selection_config or settings.selection_config()
        selector = ClipSelector(
            adapters.candidate_provider,
            adapters.reranker,
            selection_config,
            query_rewriter=getattr(adapters, "query_rewriter", None),
        )
        factory.add(
            SelectClipsStep(selector, max_concurrency=selection_config.max_concurrency)
        )

    return factory.build()
