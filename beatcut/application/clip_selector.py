from __future__ import annotations

import asyncio
import logging
from typing import AbstractSet, List, Optional, Sequence

from beatcut.application.interfaces import (
    ICandidateProvider,
    ICandidateReranker,
    IQueryRewriter,
)
from beatcut.core.config import SelectionConfig
from beatcut.core.exceptions import NoCandidates, ProviderUnavailable
from beatcut.core.models import (
    AssetType,
    Beat,
    Candidate,
    Orientation,
    ScoredCandidate,
    Selection,
)
from utils.scoring_utils import exclude_used, rank_candidates, resolve_asset_preference

logger = logging.getLogger(__name__)


class ClipSelector:
    """Chooses one clip for one beat.

    Search (preferred kind first) → heuristic ranking → optional rerank of
    the top candidates → coverage enforcement. Every collaborator call is
    timeout-bounded and degrades to the heuristic path on failure.
    """

    def __init__(
        self,
        provider: ICandidateProvider,
        reranker: Optional[ICandidateReranker],
        config: SelectionConfig,
        *,
        query_rewriter: Optional[IQueryRewriter] = None,
    ) -> None:
        self.provider = provider
        self.reranker = reranker
        self.config = config
        self.query_rewriter = query_rewriter

    async def select(
        self,
        beat: Beat,
        *,
        index: int,
        orientation: Orientation,
        asset_override: Optional[AssetType] = None,
        exclude_ids: AbstractSet[str] = frozenset(),
    ) -> Selection:
        """Return the clip for ``beat`` or raise ``NoCandidates``."""
        preferred = resolve_asset_preference(
            asset_override,
            beat.asset_preference,
            self.config.default_asset_preference,
        )
        query = await self._build_query(beat, orientation)

        ranked: List[ScoredCandidate] = []
        for kind in (preferred, _other_kind(preferred)):
            found = exclude_used(
                await self._search(query, kind, orientation), exclude_ids
            )
            if found:
                ranked = self._rank(found, orientation, beat.duration, preferred)
                break
        if not ranked:
            raise NoCandidates(beat_index=index)

        chosen = await self._pick(beat, orientation, preferred, ranked)
        chosen = await self._enforce_coverage(
            beat,
            chosen,
            index=index,
            query=query,
            orientation=orientation,
            preferred=preferred,
            exclude_ids=exclude_ids,
        )
        return self._to_selection(beat, chosen)

    async def _build_query(self, beat: Beat, orientation: Orientation) -> str:
        raw = beat.visual_query or beat.text
        if not (self.config.query_rewrite_enabled and self.query_rewriter):
            return raw
        try:
            rewritten = await asyncio.wait_for(
                self.query_rewriter.rewrite(raw, orientation),
                timeout=self.config.query_rewrite_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.info("Query rewrite timed out; using raw text")
            return raw
        except Exception as e:  # noqa: BLE001
            logger.warning("Query rewrite failed, fallback to raw text: %s", e)
            return raw
        return (rewritten or "").strip() or raw

    async def _search(
        self, query: str, kind: AssetType, orientation: Orientation
    ) -> List[Candidate]:
        try:
            try:
                return list(
                    await asyncio.wait_for(
                        self.provider.search(query, kind, orientation),
                        timeout=self.config.search_timeout_sec,
                    )
                    or []
                )
            except asyncio.TimeoutError as e:
                raise ProviderUnavailable(
                    f"{kind.value} search timed out after "
                    f"{self.config.search_timeout_sec}s",
                    provider=getattr(self.provider, "name", None),
                ) from e
        except ProviderUnavailable as e:
            logger.warning("Candidate search unavailable: %s", e.message)
            return []
        except Exception as e:  # noqa: BLE001
            logger.warning("Candidate search failed for '%s': %s", query, e)
            return []

    def _rank(
        self,
        candidates: Sequence[Candidate],
        orientation: Orientation,
        duration: float,
        preferred: AssetType,
    ) -> List[ScoredCandidate]:
        return rank_candidates(
            candidates,
            orientation,
            duration,
            preferred,
            min_short_side=self.config.min_short_side_px,
            coverage_tolerance=self.config.coverage_tolerance_sec,
        )

    async def _pick(
        self,
        beat: Beat,
        orientation: Orientation,
        preferred: AssetType,
        ranked: Sequence[ScoredCandidate],
    ) -> Candidate:
        """Heuristic top choice unless the reranker gives a valid answer."""
        heuristic = ranked[0].candidate
        if not self.config.rerank_enabled or self.reranker is None:
            return heuristic

        subset = [s.candidate for s in ranked[: self.config.max_candidates]]
        try:
            idx = await asyncio.wait_for(
                self.reranker.rerank(beat.text, orientation, preferred, subset),
                timeout=self.config.rerank_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.info("Rerank timed out; keeping heuristic choice")
            return heuristic
        except Exception as e:  # noqa: BLE001
            logger.warning("Rerank failed, keeping heuristic choice: %s", e)
            return heuristic

        if isinstance(idx, bool) or not isinstance(idx, int):
            return heuristic
        if not 0 <= idx < len(subset):
            logger.info("Rerank index %s out of range (0..%d)", idx, len(subset) - 1)
            return heuristic
        return subset[idx]

    async def _enforce_coverage(
        self,
        beat: Beat,
        chosen: Candidate,
        *,
        index: int,
        query: str,
        orientation: Orientation,
        preferred: AssetType,
        exclude_ids: AbstractSet[str],
    ) -> Candidate:
        """Swap a too-short video for the best still from a fresh image search."""
        if chosen.covers(beat.duration, self.config.coverage_tolerance_sec):
            return chosen

        logger.info(
            "Beat %d: video %s (%.2fs) cannot cover %.2fs; searching stills",
            index,
            chosen.id,
            chosen.duration,
            beat.duration,
        )
        stills = [
            c
            for c in exclude_used(
                await self._search(query, AssetType.IMAGE, orientation), exclude_ids
            )
            if c.asset_type is AssetType.IMAGE
        ]
        if not stills:
            raise NoCandidates(
                f"No still can cover beat {index} after rejecting a short video",
                beat_index=index,
            )
        return self._rank(stills, orientation, beat.duration, preferred)[0].candidate

    def _to_selection(self, beat: Beat, chosen: Candidate) -> Selection:
        length = beat.duration
        if chosen.asset_type is AssetType.VIDEO:
            length = min(length, chosen.duration)
        return Selection(
            src=chosen.src,
            start=beat.start,
            length=length,
            asset_type=chosen.asset_type,
            candidate_id=chosen.id,
        )


def _other_kind(kind: AssetType) -> AssetType:
    return AssetType.IMAGE if kind is AssetType.VIDEO else AssetType.VIDEO
