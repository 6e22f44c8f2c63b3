"""
Core value types for beat planning and clip selection.

Words are read-only once produced. Beats are rebuilt (never mutated in
place) by the builder/normalizer passes and are frozen afterwards.
Candidates live only for the duration of one beat's selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AssetType(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"
    UNKNOWN = "unknown"
    # Only valid as a requested orientation, never derived from a candidate
    ANY = "any"


@dataclass(frozen=True, slots=True)
class Word:
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class Beat:
    start: float
    end: float
    text: str
    visual_query: str
    asset_preference: AssetType = AssetType.IMAGE

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "visualQuery": self.visual_query,
            "assetPreference": self.asset_preference.value,
        }


@dataclass(frozen=True, slots=True)
class Candidate:
    """A stock media item returned by a candidate provider.

    ``duration`` is 0 for stills; a still can cover any beat length.
    """

    id: str
    src: str
    asset_type: AssetType
    width: Optional[int] = None
    height: Optional[int] = None
    duration: float = 0.0
    frames: Tuple[str, ...] = field(default_factory=tuple)

    def covers(self, required: float, tolerance: float = 0.0) -> bool:
        if self.asset_type is AssetType.IMAGE:
            return True
        return self.duration > 0 and self.duration >= required - tolerance


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: Candidate
    score: float


@dataclass(frozen=True, slots=True)
class Selection:
    """The media chosen for one beat.

    ``length`` is the play length of the clip. Stills always play for the
    full beat. A video plays for ``min(beat duration, clip duration)``, so a
    clip accepted within ``coverage_tolerance_sec`` of the beat can leave
    ``length`` up to that tolerance short of it.
    """

    src: str
    start: float
    length: float
    asset_type: AssetType
    candidate_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "src": self.src,
            "start": self.start,
            "length": self.length,
            "assetType": self.asset_type.value,
        }


NO_CANDIDATES = "no_candidates"


@dataclass(frozen=True, slots=True)
class BeatSelection:
    """Outcome of the selection stage for one beat: a clip or an explicit error."""

    index: int
    beat: Beat
    selection: Optional[Selection] = None
    error: Optional[str] = None

    @classmethod
    def no_candidates(cls, index: int, beat: Beat) -> "BeatSelection":
        return cls(index=index, beat=beat, selection=None, error=NO_CANDIDATES)

    @property
    def ok(self) -> bool:
        return self.selection is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.selection is not None:
            return {"clip": self.selection.to_dict()}
        return {"error": self.error or NO_CANDIDATES}
