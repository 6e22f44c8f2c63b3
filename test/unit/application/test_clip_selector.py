import asyncio
from dataclasses import replace

import pytest

from beatcut.application.clip_selector import ClipSelector
from beatcut.core.config import SelectionConfig
from beatcut.core.exceptions import NoCandidates, ProviderUnavailable
from beatcut.core.models import AssetType, Beat, Orientation

from conftest import FakeProvider, FixedReranker, image, video


def _beat(start=1.0, end=4.0, pref=AssetType.IMAGE, text="pour the water"):
    return Beat(start=start, end=end, text=text, visual_query=text, asset_preference=pref)


def _selector(provider, reranker=None, **config):
    return ClipSelector(provider, reranker or FixedReranker(None), SelectionConfig(**config))


@pytest.mark.asyncio
async def test_picks_top_heuristic_candidate_of_preferred_kind():
    provider = FakeProvider(
        {AssetType.IMAGE: [image("low", width=1080, height=1920), image("best")]}
    )
    selection = await _selector(provider).select(
        _beat(), index=0, orientation=Orientation.LANDSCAPE
    )

    assert selection.candidate_id == "best"
    assert selection.asset_type is AssetType.IMAGE
    assert (selection.start, selection.length) == (1.0, 3.0)
    assert provider.calls == [("pour the water", AssetType.IMAGE, Orientation.LANDSCAPE)]


@pytest.mark.asyncio
async def test_other_kind_is_searched_only_when_preferred_is_empty():
    provider = FakeProvider({AssetType.IMAGE: [image("i")]})
    selection = await _selector(provider).select(
        _beat(pref=AssetType.VIDEO), index=0, orientation=Orientation.LANDSCAPE
    )

    assert selection.candidate_id == "i"
    assert [c[1] for c in provider.calls] == [AssetType.VIDEO, AssetType.IMAGE]


@pytest.mark.asyncio
async def test_override_beats_inferred_preference():
    provider = FakeProvider({AssetType.VIDEO: [video("v")], AssetType.IMAGE: [image("i")]})
    selection = await _selector(provider).select(
        _beat(pref=AssetType.VIDEO),
        index=0,
        orientation=Orientation.LANDSCAPE,
        asset_override=AssetType.IMAGE,
    )
    assert selection.candidate_id == "i"


@pytest.mark.asyncio
async def test_video_length_is_capped_by_beat_duration():
    provider = FakeProvider({AssetType.VIDEO: [video("v", duration=10.0)]})
    selection = await _selector(provider).select(
        _beat(pref=AssetType.VIDEO), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.asset_type is AssetType.VIDEO
    assert selection.length == pytest.approx(3.0)


@pytest.mark.asyncio
async def test_no_results_raise_no_candidates():
    with pytest.raises(NoCandidates) as exc:
        await _selector(FakeProvider()).select(
            _beat(), index=4, orientation=Orientation.LANDSCAPE
        )
    assert exc.value.beat_index == 4


@pytest.mark.asyncio
async def test_provider_errors_degrade_to_empty_results():
    provider = FakeProvider(error=ProviderUnavailable("down", provider="fake"))
    with pytest.raises(NoCandidates):
        await _selector(provider).select(_beat(), index=0, orientation=Orientation.LANDSCAPE)
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_slow_search_times_out_and_falls_back_to_other_kind():
    class SlowVideos(FakeProvider):
        async def search(self, query, asset_kind, orientation_hint):
            if asset_kind is AssetType.VIDEO:
                await asyncio.sleep(1.0)
            return await super().search(query, asset_kind, orientation_hint)

    provider = SlowVideos({AssetType.VIDEO: [video("v")], AssetType.IMAGE: [image("i")]})
    selection = await _selector(provider, search_timeout_sec=0.05).select(
        _beat(pref=AssetType.VIDEO), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.candidate_id == "i"


@pytest.mark.asyncio
async def test_excluded_ids_are_never_selected():
    provider = FakeProvider(
        {AssetType.VIDEO: [video("used")], AssetType.IMAGE: [image("used-too"), image("fresh")]}
    )
    exclude = frozenset({"used", "used-too"})
    selection = await _selector(provider).select(
        _beat(pref=AssetType.VIDEO),
        index=0,
        orientation=Orientation.LANDSCAPE,
        exclude_ids=exclude,
    )
    assert selection.candidate_id == "fresh"
    assert exclude == {"used", "used-too"}


# -------------------- reranking --------------------
def _ranked_pool():
    return FakeProvider(
        {
            AssetType.IMAGE: [
                image("top"),
                image("second", width=1080, height=1080),
                image("third", width=1080, height=1920),
            ]
        }
    )


@pytest.mark.asyncio
async def test_valid_rerank_answer_wins():
    reranker = FixedReranker(2)
    selection = await _selector(_ranked_pool(), reranker, rerank_enabled=True).select(
        _beat(), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.candidate_id == "third"
    assert [c.id for c in reranker.seen[0]] == ["top", "second", "third"]


@pytest.mark.asyncio
async def test_reranker_only_sees_top_n():
    reranker = FixedReranker(0)
    await _selector(
        _ranked_pool(), reranker, rerank_enabled=True, max_candidates=2
    ).select(_beat(), index=0, orientation=Orientation.LANDSCAPE)
    assert [c.id for c in reranker.seen[0]] == ["top", "second"]


@pytest.mark.asyncio
async def test_reranker_disabled_is_not_called():
    reranker = FixedReranker(2)
    selection = await _selector(_ranked_pool(), reranker).select(
        _beat(), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.candidate_id == "top"
    assert reranker.seen == []


@pytest.mark.parametrize(
    "reranker",
    [
        FixedReranker(None),
        FixedReranker(7),
        FixedReranker(-1),
        FixedReranker(True),
        FixedReranker("1"),
        FixedReranker(error=RuntimeError("vision model down")),
    ],
)
@pytest.mark.asyncio
async def test_rerank_failure_equals_heuristic_selection(reranker):
    beat = _beat()
    heuristic = await _selector(_ranked_pool()).select(
        beat, index=0, orientation=Orientation.LANDSCAPE
    )
    reranked = await _selector(_ranked_pool(), reranker, rerank_enabled=True).select(
        beat, index=0, orientation=Orientation.LANDSCAPE
    )
    assert reranked == heuristic


@pytest.mark.asyncio
async def test_rerank_timeout_keeps_heuristic_choice():
    class SlowReranker:
        async def rerank(self, beat_text, orientation, preferred_type, candidates):
            await asyncio.sleep(1.0)
            return 2

    selection = await _selector(
        _ranked_pool(), SlowReranker(), rerank_enabled=True, rerank_timeout_sec=0.05
    ).select(_beat(), index=0, orientation=Orientation.LANDSCAPE)
    assert selection.candidate_id == "top"


# -------------------- coverage enforcement --------------------
@pytest.mark.asyncio
async def test_short_video_is_replaced_by_a_still():
    provider = FakeProvider(
        {AssetType.VIDEO: [video("short", duration=2.0)], AssetType.IMAGE: [image("still")]}
    )
    beat = _beat(0.0, 5.0, pref=AssetType.VIDEO)
    selection = await _selector(provider).select(
        beat, index=0, orientation=Orientation.LANDSCAPE
    )

    assert selection.candidate_id == "still"
    assert selection.asset_type is AssetType.IMAGE
    assert selection.length >= beat.duration
    assert [c[1] for c in provider.calls] == [AssetType.VIDEO, AssetType.IMAGE]


@pytest.mark.asyncio
async def test_reranked_short_video_is_still_replaced():
    provider = FakeProvider(
        {
            AssetType.VIDEO: [video("long", duration=9.0), video("short", duration=1.0)],
            AssetType.IMAGE: [image("still")],
        }
    )
    selection = await _selector(provider, FixedReranker(1), rerank_enabled=True).select(
        _beat(0.0, 5.0, pref=AssetType.VIDEO), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.candidate_id == "still"


@pytest.mark.asyncio
async def test_short_video_without_stills_reports_no_candidates():
    provider = FakeProvider({AssetType.VIDEO: [video("short", duration=2.0)]})
    with pytest.raises(NoCandidates):
        await _selector(provider).select(
            _beat(0.0, 5.0, pref=AssetType.VIDEO), index=2, orientation=Orientation.LANDSCAPE
        )


@pytest.mark.asyncio
async def test_video_within_tolerance_is_kept():
    provider = FakeProvider({AssetType.VIDEO: [video("nearly", duration=4.97)]})
    selection = await _selector(provider).select(
        _beat(0.0, 5.0, pref=AssetType.VIDEO), index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.candidate_id == "nearly"
    assert selection.length == pytest.approx(4.97)


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [4.96, 4.99, 5.0, 8.0])
async def test_video_length_never_falls_short_by_more_than_tolerance(duration):
    config = SelectionConfig()
    beat = _beat(0.0, 5.0, pref=AssetType.VIDEO)
    provider = FakeProvider({AssetType.VIDEO: [video("clip", duration=duration)]})
    selection = await ClipSelector(provider, FixedReranker(None), config).select(
        beat, index=0, orientation=Orientation.LANDSCAPE
    )
    assert selection.asset_type is AssetType.VIDEO
    assert selection.length <= beat.duration
    assert selection.length >= beat.duration - config.coverage_tolerance_sec - 1e-9
    assert selection.length == pytest.approx(min(duration, beat.duration))


# -------------------- query rewriting --------------------
class _Rewriter:
    def __init__(self, answer="", *, error=None, delay=0.0):
        self.answer = answer
        self.error = error
        self.delay = delay

    async def rewrite(self, text, orientation):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.answer


@pytest.mark.parametrize(
    "rewriter,expected_query",
    [
        (_Rewriter("pour over coffee steam"), "pour over coffee steam"),
        (_Rewriter("   "), "pour the water"),
        (_Rewriter(error=RuntimeError("llm down")), "pour the water"),
        (_Rewriter("late answer", delay=1.0), "pour the water"),
    ],
)
@pytest.mark.asyncio
async def test_query_rewrite_with_fallback(rewriter, expected_query):
    provider = FakeProvider({AssetType.IMAGE: [image("i")]})
    selector = ClipSelector(
        provider,
        None,
        SelectionConfig(query_rewrite_enabled=True, query_rewrite_timeout_sec=0.05),
        query_rewriter=rewriter,
    )
    await selector.select(_beat(), index=0, orientation=Orientation.PORTRAIT)
    assert provider.calls[0][0] == expected_query


@pytest.mark.asyncio
async def test_visual_query_is_used_when_present():
    provider = FakeProvider({AssetType.IMAGE: [image("i")]})
    beat = replace(_beat(), visual_query="kettle close-up")
    await _selector(provider).select(beat, index=0, orientation=Orientation.ANY)
    assert provider.calls[0] == ("kettle close-up", AssetType.IMAGE, Orientation.ANY)
