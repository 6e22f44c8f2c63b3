"""
Heuristic candidate scoring.

Every contribution is deterministic, so ranking the same candidate list
twice gives the same order. Ties keep the provider's original order.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Union

from beatcut.core.models import AssetType, Candidate, Orientation, ScoredCandidate

logger = logging.getLogger(__name__)

ORIENTATION_MATCH = 3.0
ORIENTATION_PARTIAL = 1.0
TYPE_PREFERENCE_BONUS = 1.5
MOTION_BONUS = 2.0
SHORT_VIDEO_PENALTY = -2.0
RESOLUTION_BONUS = 0.5
USABLE_SOURCE_BONUS = 1.0


def orientation_of(width: Optional[int], height: Optional[int]) -> Orientation:
    if not width or not height:
        return Orientation.UNKNOWN
    if width > height:
        return Orientation.LANDSCAPE
    if height > width:
        return Orientation.PORTRAIT
    return Orientation.SQUARE


def resolve_orientation(
    portrait: Optional[bool] = None, landscape: Optional[bool] = None
) -> Orientation:
    """Map requested output targets to the orientation to search for.

    Portrait only when portrait alone is requested; otherwise lean landscape.
    """
    if portrait and not landscape:
        return Orientation.PORTRAIT
    return Orientation.LANDSCAPE


def resolve_asset_preference(
    *preferences: Union[AssetType, str, None],
    fallback: AssetType = AssetType.VIDEO,
) -> AssetType:
    """Evaluate a precedence chain of preferences; the first set one wins.

    Typical order: explicit override, inferred beat preference, configured default.
    """
    for pref in preferences:
        if pref is None or pref == "":
            continue
        return AssetType(pref)
    return fallback


def orientation_credit(candidate: Candidate, want: Orientation) -> float:
    if want is Orientation.ANY:
        return ORIENTATION_PARTIAL
    got = orientation_of(candidate.width, candidate.height)
    if got is want:
        return ORIENTATION_MATCH
    if got in (Orientation.SQUARE, Orientation.UNKNOWN):
        return ORIENTATION_PARTIAL
    return 0.0


def score_candidate(
    candidate: Candidate,
    want: Orientation,
    beat_duration: float,
    preferred_type: AssetType,
    *,
    min_short_side: int = 720,
    coverage_tolerance: float = 0.05,
) -> float:
    """Score a candidate for one beat. Pure: no I/O, no state."""
    score = orientation_credit(candidate, want)

    if candidate.asset_type is preferred_type:
        score += TYPE_PREFERENCE_BONUS

    if candidate.asset_type is AssetType.VIDEO:
        if candidate.covers(beat_duration, coverage_tolerance):
            score += MOTION_BONUS
        else:
            score += SHORT_VIDEO_PENALTY

    if candidate.width and candidate.height:
        if min(candidate.width, candidate.height) >= min_short_side:
            score += RESOLUTION_BONUS

    if candidate.src:
        score += USABLE_SOURCE_BONUS
    return score


def rank_candidates(
    candidates: Iterable[Candidate],
    want: Orientation,
    beat_duration: float,
    preferred_type: AssetType,
    *,
    min_short_side: int = 720,
    coverage_tolerance: float = 0.05,
) -> List[ScoredCandidate]:
    """Score and sort candidates, best first; equal scores keep input order."""
    scored = [
        ScoredCandidate(
            candidate=c,
            score=score_candidate(
                c,
                want,
                beat_duration,
                preferred_type,
                min_short_side=min_short_side,
                coverage_tolerance=coverage_tolerance,
            ),
        )
        for c in candidates
    ]
    # sorted() is stable, so reverse=True keeps first-seen order among ties
    return sorted(scored, key=lambda s: s.score, reverse=True)


def exclude_used(
    candidates: Sequence[Candidate], exclude_ids: Iterable[str]
) -> List[Candidate]:
    excluded = set(exclude_ids)
    if not excluded:
        return list(candidates)
    kept = [c for c in candidates if c.id not in excluded]
    if len(kept) != len(candidates):
        logger.debug("Excluded %d previously used candidates", len(candidates) - len(kept))
    return kept
