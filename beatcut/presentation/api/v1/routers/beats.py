from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from beatcut.application.use_cases.broll_plan import PlanBeatsUseCase, SelectClipsUseCase
from beatcut.core.pyd_schemas import PlanBeatsResponse, SelectClipsResponse
from beatcut.presentation.api.v1.dependencies.beats import (
    get_plan_beats_use_case,
    get_select_clips_use_case,
)

router = APIRouter(prefix="/beats")


@router.post("", response_model=PlanBeatsResponse, response_model_by_alias=True)
async def plan_beats(
    payload: Dict[str, Any] = Body(...),
    use_case: PlanBeatsUseCase = Depends(get_plan_beats_use_case),
):
    """Split a word-timestamped transcript into contiguous beats."""
    return await use_case.execute(payload)


@router.post(
    "/clips",
    response_model=SelectClipsResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def select_clips(
    payload: Dict[str, Any] = Body(...),
    use_case: SelectClipsUseCase = Depends(get_select_clips_use_case),
):
    """Plan beats (unless given) and choose one stock clip per beat."""
    return await use_case.execute(payload)
