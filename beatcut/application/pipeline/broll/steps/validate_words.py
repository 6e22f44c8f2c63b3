from __future__ import annotations

from typing import List, Optional, Type

from pydantic import ValidationError

from beatcut.application.pipeline.base import PipelineContext, BaseStep
from beatcut.core.config import BeatConfig
from beatcut.core.exceptions import ConfigurationError, InputError
from beatcut.core.models import Orientation
from beatcut.core.pyd_schemas import PlanBeatsRequest, SelectClipsRequest
from utils.beat_utils import audio_length_of
from utils.scoring_utils import resolve_orientation


class ValidateWordsStep(BaseStep):
    """Validate the request and normalize it into typed artifacts.

    Input:  context.input (plan or select request body)
    Output: words, beat_config, audio_length, target_duration
            (+ beats, orientation, asset_override, exclude_ids when selecting)
    """

    name = "validate_words"

    def __init__(self, base_config: BeatConfig, *, selecting: bool = False) -> None:
        self.base_config = base_config
        self.selecting = selecting

    @property
    def schema(self) -> Type[PlanBeatsRequest]:
        return SelectClipsRequest if self.selecting else PlanBeatsRequest

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        data = context.input or {}
        if not isinstance(data, dict):
            raise InputError("request body must be a JSON object")

        try:
            request = self.schema.model_validate(data)
        except ValidationError as e:
            lines: List[str] = []
            for err in e.errors():
                loc = ".".join(str(p) for p in err.get("loc", []))
                msg = err.get("msg", "invalid input")
                lines.append(f"{loc}: {msg}" if loc else msg)
            raise InputError("\n".join(lines), validation_errors=lines) from e

        overrides = request.config
        try:
            config = self.base_config.with_overrides(
                min_beat_sec=overrides.min_beat_sec if overrides else None,
                max_beat_sec=overrides.max_beat_sec if overrides else None,
                pause_break_sec=overrides.pause_break_sec if overrides else None,
            )
        except ConfigurationError as e:
            raise InputError(f"config: {e.message}") from e

        words = [w.to_word() for w in request.words]
        audio_length: Optional[float] = request.audio_length
        if audio_length is None and words:
            audio_length = audio_length_of(words)

        context.update(
            words=words,
            beat_config=config,
            audio_length=audio_length,
            target_duration=request.target_duration_sec,
        )

        if isinstance(request, SelectClipsRequest):
            if request.beats:
                context.set("beats", [b.to_beat() for b in request.beats])
            context.update(
                orientation=self._orientation_for(request),
                asset_override=request.asset_preference,
                exclude_ids=frozenset(request.exclude_ids),
            )
        context.ensure_run_id()

    @staticmethod
    def _orientation_for(request: SelectClipsRequest) -> Orientation:
        if request.orientation:
            return Orientation(request.orientation)
        outputs = request.outputs
        return resolve_orientation(
            outputs.portrait if outputs else None,
            outputs.landscape if outputs else None,
        )
