import asyncio
from unittest.mock import AsyncMock

import pytest

from beatcut.application.pipeline.base import PipelineContext, StepStatus
from beatcut.application.pipeline.broll.steps.plan_beats import PlanBeatsStep
from beatcut.core.models import Beat

from conftest import make_words


def _ctx(words, config, **extra):
    ctx = PipelineContext(input={})
    ctx.update(words=words, beat_config=config, audio_length=None, **extra)
    return ctx


def _spans(beats):
    return [(pytest.approx(b.start), pytest.approx(b.end)) for b in beats]


@pytest.mark.asyncio
async def test_heuristic_strategy_plans_beats(paused_words, beat_config):
    ctx = _ctx(paused_words, beat_config)
    await PlanBeatsStep()(ctx)

    beats = ctx.get("beats")
    assert _spans(beats) == [(0.0, 2.4), (2.4, 6.0)]
    assert beats[0].text == "Grind the beans finely"


@pytest.mark.asyncio
async def test_empty_words_give_no_beats(beat_config):
    ctx = _ctx([], beat_config)
    await PlanBeatsStep()(ctx)
    assert ctx.get("beats") == []


@pytest.mark.asyncio
async def test_supplied_beats_skip_planning(paused_words, beat_config):
    given = [Beat(0.0, 6.0, "all of it", "all of it")]
    step = PlanBeatsStep()
    ctx = _ctx(paused_words, beat_config, beats=given)
    await step(ctx)

    assert step.status is StepStatus.SKIPPED
    assert ctx.get("beats") == given


@pytest.mark.asyncio
async def test_missing_words_raise_key_error(beat_config):
    ctx = PipelineContext(input={})
    ctx.set("beat_config", beat_config)
    with pytest.raises(KeyError):
        await PlanBeatsStep()(ctx)


@pytest.mark.asyncio
async def test_llm_grouping_is_normalized(paused_words, beat_config):
    grouper = AsyncMock()
    # both phrase chunks in a single 6s scene; normalization splits it
    grouper.group.return_value = [1]
    ctx = _ctx(paused_words, beat_config)

    await PlanBeatsStep(grouper, strategy="llm")(ctx)

    beats = ctx.get("beats")
    assert _spans(beats) == [(0.0, 2.4), (2.4, 4.2), (4.2, 6.0)]
    assert {b.text for b in beats} == {
        "Grind the beans finely then pour the water slowly"
    }
    chunks = grouper.group.await_args.args[0]
    assert len(chunks) == 2
    assert grouper.group.await_args.kwargs == {
        "desired_beats": 4,
        "min_beat_sec": beat_config.min_beat_sec,
        "max_beat_sec": beat_config.max_beat_sec,
    }


@pytest.mark.asyncio
async def test_llm_failure_falls_back_to_heuristic(paused_words, beat_config):
    grouper = AsyncMock()
    grouper.group.side_effect = RuntimeError("model unavailable")
    ctx = _ctx(paused_words, beat_config)

    await PlanBeatsStep(grouper, strategy="llm")(ctx)

    assert _spans(ctx.get("beats")) == [(0.0, 2.4), (2.4, 6.0)]


@pytest.mark.asyncio
async def test_llm_timeout_falls_back_to_heuristic(paused_words, beat_config):
    class SlowGrouper:
        async def group(self, chunks, **kwargs):
            await asyncio.sleep(1.0)
            return [1]

    ctx = _ctx(paused_words, beat_config)
    await PlanBeatsStep(SlowGrouper(), strategy="llm", grouper_timeout=0.05)(ctx)

    assert len(ctx.get("beats")) == 2


@pytest.mark.asyncio
async def test_single_phrase_does_not_consult_grouper(beat_config):
    words = make_words([(0.0, 0.4, "just"), (0.4, 0.9, "one"), (0.9, 1.8, "phrase")])
    grouper = AsyncMock()
    ctx = _ctx(words, beat_config)

    await PlanBeatsStep(grouper, strategy="llm")(ctx)

    grouper.group.assert_not_awaited()
    assert len(ctx.get("beats")) == 1
