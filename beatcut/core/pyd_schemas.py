from __future__ import annotations

import math
from typing import List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from beatcut.core.models import AssetType, Beat, BeatSelection, Word


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WordIn(_CamelModel):
    start: float = Field(ge=0)
    end: float = Field(ge=0)
    text: str = Field(
        default="",
        validation_alias=AliasChoices("text", "word", "token"),
    )

    @field_validator("start", "end")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("timestamp must be finite")
        return v

    @model_validator(mode="after")
    def _start_before_end(self) -> "WordIn":
        if self.start > self.end:
            raise ValueError(f"word starts after it ends ({self.start} > {self.end})")
        return self

    def to_word(self) -> Word:
        return Word(start=self.start, end=self.end, text=self.text)


def _check_word_order(words: List[WordIn]) -> None:
    for i in range(1, len(words)):
        if words[i].start < words[i - 1].start:
            raise ValueError(
                f"words must be ordered by start time (word {i} starts at "
                f"{words[i].start} before word {i - 1} at {words[i - 1].start})"
            )


class BeatConfigOverrides(_CamelModel):
    min_beat_sec: Optional[float] = Field(default=None, gt=0)
    max_beat_sec: Optional[float] = Field(default=None, gt=0)
    pause_break_sec: Optional[float] = Field(default=None, ge=0)


class PlanBeatsRequest(_CamelModel):
    words: List[WordIn]
    config: Optional[BeatConfigOverrides] = None
    audio_length: Optional[float] = Field(default=None, gt=0)
    target_duration_sec: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_stream(self) -> "PlanBeatsRequest":
        _check_word_order(self.words)
        if self.words and self.audio_length is not None:
            last_end = max(w.end for w in self.words)
            if self.audio_length < last_end:
                raise ValueError(
                    f"audioLength ({self.audio_length}) is shorter than the last "
                    f"word end ({last_end})"
                )
        return self


class BeatIn(_CamelModel):
    start: float = Field(ge=0)
    end: float = Field(gt=0)
    text: str
    visual_query: Optional[str] = None
    asset_preference: AssetType = AssetType.IMAGE

    @model_validator(mode="after")
    def _positive_span(self) -> "BeatIn":
        if self.end <= self.start:
            raise ValueError("beat end must be after its start")
        return self

    def to_beat(self) -> Beat:
        return Beat(
            start=self.start,
            end=self.end,
            text=self.text,
            visual_query=self.visual_query or self.text,
            asset_preference=self.asset_preference,
        )


class OutputTargets(_CamelModel):
    portrait: Optional[bool] = None
    landscape: Optional[bool] = None


class SelectClipsRequest(PlanBeatsRequest):
    """Either ``words`` (beats are planned first) or ready-made ``beats``."""

    words: List[WordIn] = Field(default_factory=list)
    beats: Optional[List[BeatIn]] = None
    outputs: Optional[OutputTargets] = None
    orientation: Optional[Literal["portrait", "landscape", "any"]] = None
    asset_preference: Optional[AssetType] = None
    exclude_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _words_or_beats(self) -> "SelectClipsRequest":
        if not self.words and not self.beats:
            raise ValueError("either 'words' or 'beats' must be provided")
        return self


class BeatOut(_CamelModel):
    start: float
    end: float
    text: str
    visual_query: str
    asset_preference: AssetType

    @classmethod
    def from_beat(cls, beat: Beat) -> "BeatOut":
        return cls(
            start=beat.start,
            end=beat.end,
            text=beat.text,
            visual_query=beat.visual_query,
            asset_preference=beat.asset_preference,
        )


class PlanBeatsResponse(_CamelModel):
    beats: List[BeatOut]


class ClipOut(_CamelModel):
    src: str
    start: float
    length: float
    asset_type: AssetType


class BeatSelectionOut(_CamelModel):
    clip: Optional[ClipOut] = None
    error: Optional[str] = None

    @classmethod
    def from_selection(cls, result: BeatSelection) -> "BeatSelectionOut":
        if result.selection is None:
            return cls(error=result.error)
        s = result.selection
        return cls(
            clip=ClipOut(
                src=s.src, start=s.start, length=s.length, asset_type=s.asset_type
            )
        )


class SelectClipsResponse(_CamelModel):
    beats: List[BeatOut]
    selections: List[BeatSelectionOut]
    used_ids: List[str]
