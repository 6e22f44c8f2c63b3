from beatcut.application.use_cases.broll_plan import PlanBeatsUseCase, SelectClipsUseCase
from beatcut.infrastructure.adapters.bundles.broll import get_broll_adapter_bundle


def get_plan_beats_use_case() -> PlanBeatsUseCase:
    """Compose the PlanBeatsUseCase at Presentation layer using adapter providers."""
    return PlanBeatsUseCase(get_broll_adapter_bundle())


def get_select_clips_use_case() -> SelectClipsUseCase:
    """Compose the SelectClipsUseCase at Presentation layer using adapter providers."""
    return SelectClipsUseCase(get_broll_adapter_bundle())
