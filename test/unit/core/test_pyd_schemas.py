import pytest
from pydantic import ValidationError

from beatcut.core.models import (
    AssetType,
    Beat,
    BeatSelection,
    NO_CANDIDATES,
    Selection,
)
from beatcut.core.pyd_schemas import (
    BeatOut,
    BeatSelectionOut,
    PlanBeatsRequest,
    SelectClipsRequest,
    WordIn,
)


def test_word_accepts_text_aliases():
    assert WordIn.model_validate({"start": 0, "end": 1, "word": "hi"}).text == "hi"
    assert WordIn.model_validate({"start": 0, "end": 1, "token": "yo"}).text == "yo"


@pytest.mark.parametrize(
    "word",
    [
        {"start": -1, "end": 1, "text": "a"},
        {"start": 2, "end": 1, "text": "a"},
        {"start": 0, "end": float("inf"), "text": "a"},
    ],
)
def test_word_rejects_bad_timestamps(word):
    with pytest.raises(ValidationError):
        WordIn.model_validate(word)


def test_plan_request_rejects_unordered_words():
    with pytest.raises(ValidationError, match="ordered by start"):
        PlanBeatsRequest.model_validate(
            {
                "words": [
                    {"start": 1.0, "end": 1.5, "text": "b"},
                    {"start": 0.0, "end": 0.5, "text": "a"},
                ]
            }
        )


def test_plan_request_camel_case_fields():
    req = PlanBeatsRequest.model_validate(
        {
            "words": [{"start": 0, "end": 1, "text": "a"}],
            "config": {"minBeatSec": 2.0, "pauseBreakSec": 0.3},
            "audioLength": 3.0,
        }
    )
    assert req.config.min_beat_sec == 2.0
    assert req.config.max_beat_sec is None
    assert req.audio_length == 3.0


def test_plan_request_audio_length_must_cover_words():
    with pytest.raises(ValidationError, match="audioLength"):
        PlanBeatsRequest.model_validate(
            {"words": [{"start": 0, "end": 4, "text": "a"}], "audioLength": 3.0}
        )


def test_select_request_needs_words_or_beats():
    with pytest.raises(ValidationError, match="either 'words' or 'beats'"):
        SelectClipsRequest.model_validate({"words": []})

    req = SelectClipsRequest.model_validate(
        {
            "beats": [{"start": 0, "end": 2, "text": "pour", "assetPreference": "video"}],
            "outputs": {"portrait": True},
            "excludeIds": ["a"],
        }
    )
    beat = req.beats[0].to_beat()
    assert beat.visual_query == "pour"
    assert beat.asset_preference is AssetType.VIDEO
    assert req.exclude_ids == ["a"]


def test_beat_out_serializes_camel_case():
    beat = Beat(0.0, 2.0, "grind", "coffee grinder", AssetType.VIDEO)
    dumped = BeatOut.from_beat(beat).model_dump(by_alias=True)
    assert dumped == {
        "start": 0.0,
        "end": 2.0,
        "text": "grind",
        "visualQuery": "coffee grinder",
        "assetPreference": "video",
    }
    assert beat.to_dict() == dumped


def test_selection_out_is_clip_or_error():
    beat = Beat(0.0, 2.0, "grind", "grind", AssetType.VIDEO)
    ok = BeatSelection(
        index=0,
        beat=beat,
        selection=Selection("https://v/1.mp4", 0.0, 2.0, AssetType.VIDEO, "1"),
    )
    missing = BeatSelection.no_candidates(1, beat)

    assert BeatSelectionOut.from_selection(ok).model_dump(
        by_alias=True, exclude_none=True
    ) == {"clip": {"src": "https://v/1.mp4", "start": 0.0, "length": 2.0, "assetType": "video"}}
    assert BeatSelectionOut.from_selection(missing).model_dump(exclude_none=True) == {
        "error": NO_CANDIDATES
    }
    assert ok.to_dict()["clip"]["assetType"] == "video"
    assert missing.to_dict() == {"error": "no_candidates"}
