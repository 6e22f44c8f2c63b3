"""
Application configuration using Pydantic Settings
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Literal, Optional, Tuple, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings

from beatcut.core.exceptions import ConfigurationError

AssetKind = Literal["video", "image"]

DEFAULT_VIDEO_CUE_WORDS: Tuple[str, ...] = (
    "grind",
    "pour",
    "stir",
    "mix",
    "cut",
    "chop",
    "boil",
    "brew",
    "bloom",
    "taste",
    "sip",
    "press",
    "measure",
    "heat",
    "rinse",
    "preheat",
    "swirl",
)


@dataclass(frozen=True, slots=True)
class BeatConfig:
    """Immutable thresholds for the beat stage (detector, builder, normalizer)."""

    min_beat_sec: float = 1.7
    max_beat_sec: float = 3.8
    pause_break_sec: float = 0.6
    split_tolerance_sec: float = 0.15
    boundary_punctuation: str = ".!?;:—-"
    video_cue_words: Tuple[str, ...] = DEFAULT_VIDEO_CUE_WORDS

    def __post_init__(self) -> None:
        if self.min_beat_sec <= 0:
            raise ConfigurationError(
                "min_beat_sec must be positive", config_key="min_beat_sec"
            )
        if self.max_beat_sec <= self.min_beat_sec:
            raise ConfigurationError(
                f"max_beat_sec ({self.max_beat_sec}) must be greater than "
                f"min_beat_sec ({self.min_beat_sec})",
                config_key="max_beat_sec",
            )
        if self.pause_break_sec < 0:
            raise ConfigurationError(
                "pause_break_sec must not be negative", config_key="pause_break_sec"
            )
        if self.split_tolerance_sec < 0:
            raise ConfigurationError(
                "split_tolerance_sec must not be negative",
                config_key="split_tolerance_sec",
            )

    @property
    def split_target_sec(self) -> float:
        """Chunk length used when slicing overlong beats."""
        midpoint = (self.min_beat_sec + self.max_beat_sec) / 2
        return max(self.min_beat_sec, min(self.max_beat_sec, midpoint))

    def with_overrides(
        self,
        *,
        min_beat_sec: Optional[float] = None,
        max_beat_sec: Optional[float] = None,
        pause_break_sec: Optional[float] = None,
    ) -> "BeatConfig":
        changes = {
            k: v
            for k, v in (
                ("min_beat_sec", min_beat_sec),
                ("max_beat_sec", max_beat_sec),
                ("pause_break_sec", pause_break_sec),
            )
            if v is not None
        }
        if not changes:
            return self
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class SelectionConfig:
    """Immutable knobs for per-beat candidate search, scoring and reranking."""

    max_candidates: int = 6
    frames_per_candidate: int = 2
    coverage_tolerance_sec: float = 0.05
    min_short_side_px: int = 720
    search_timeout_sec: float = 10.0
    rerank_enabled: bool = False
    rerank_timeout_sec: float = 15.0
    query_rewrite_enabled: bool = False
    query_rewrite_timeout_sec: float = 1.5
    max_concurrency: int = 3
    default_asset_preference: Optional[AssetKind] = None

    def __post_init__(self) -> None:
        if self.max_candidates < 1:
            raise ConfigurationError(
                "max_candidates must be at least 1", config_key="max_candidates"
            )
        if self.max_concurrency < 1:
            raise ConfigurationError(
                "max_concurrency must be at least 1", config_key="max_concurrency"
            )


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Settings
    api_title: str = "Beatcut API"
    api_description: str = "Transcript beat planning and stock b-roll selection"
    api_version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"

    # Beat Stage
    min_beat_sec: float = 1.7
    max_beat_sec: float = 3.8
    pause_break_sec: float = 0.6
    split_tolerance_sec: float = 0.15
    boundary_punctuation: str = ".!?;:—-"
    video_cue_words: Union[List[str], str] = list(DEFAULT_VIDEO_CUE_WORDS)
    beat_strategy: Literal["heuristic", "llm"] = "heuristic"
    llm_beat_timeout_sec: float = 20.0

    # Candidate Selection
    candidate_provider: Literal["pexels", "pixabay"] = "pexels"
    max_candidates: int = 6
    frames_per_candidate: int = 2
    coverage_tolerance_sec: float = 0.05
    min_short_side_px: int = 720
    search_timeout_sec: float = 10.0
    selection_max_concurrency: int = 3
    default_asset_preference: Optional[AssetKind] = None

    # Model-assisted re-ranking and query rewriting
    smart_pick: bool = False
    smart_pick_timeout_sec: float = 15.0
    smart_query: bool = False
    smart_query_timeout_sec: float = 1.5

    # Provider keys
    pexels_api_key: str = ""
    pixabay_api_key: str = ""
    openai_api_key: str = ""

    # AI Pydantic Settings
    ai_pydantic_model: str = "gpt-4o-mini"
    ai_vision_model: str = ""

    @field_validator("video_cue_words")
    @classmethod
    def parse_video_cue_words(cls, v):
        """Parse cue words from a comma-separated string to a list.

        Example:
            >>> parse_video_cue_words("pour, stir,brew")
            ['pour', 'stir', 'brew']
        """
        if isinstance(v, str):
            return [word.strip().lower() for word in v.split(",") if word.strip()]
        return [str(word).lower() for word in v]

    @field_validator("default_asset_preference", mode="before")
    @classmethod
    def parse_default_asset_preference(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def vision_model(self) -> str:
        """Vision model name; falls back to the text model when unset."""
        return self.ai_vision_model or self.ai_pydantic_model

    def beat_config(self) -> BeatConfig:
        return BeatConfig(
            min_beat_sec=self.min_beat_sec,
            max_beat_sec=self.max_beat_sec,
            pause_break_sec=self.pause_break_sec,
            split_tolerance_sec=self.split_tolerance_sec,
            boundary_punctuation=self.boundary_punctuation,
            video_cue_words=tuple(self.video_cue_words),
        )

    def selection_config(self) -> SelectionConfig:
        return SelectionConfig(
            max_candidates=self.max_candidates,
            frames_per_candidate=self.frames_per_candidate,
            coverage_tolerance_sec=self.coverage_tolerance_sec,
            min_short_side_px=self.min_short_side_px,
            search_timeout_sec=self.search_timeout_sec,
            rerank_enabled=bool(self.smart_pick and self.openai_api_key),
            rerank_timeout_sec=self.smart_pick_timeout_sec,
            query_rewrite_enabled=bool(self.smart_query and self.openai_api_key),
            query_rewrite_timeout_sec=self.smart_query_timeout_sec,
            max_concurrency=self.selection_max_concurrency,
            default_asset_preference=self.default_asset_preference,
        )


# Global settings instance
settings = Settings()
