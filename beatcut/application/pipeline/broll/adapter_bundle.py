from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from beatcut.application.interfaces import (
    IBeatGrouper,
    ICandidateProvider,
    ICandidateReranker,
    IQueryRewriter,
)


@dataclass(slots=True)
class BrollPipelineAdapters:
    """Container for the collaborators used by the b-roll pipeline.

    Avoids parameter explosion in builders and centralizes validation.
    """

    candidate_provider: Optional[ICandidateProvider] = None
    reranker: Optional[ICandidateReranker] = None
    query_rewriter: Optional[IQueryRewriter] = None
    beat_grouper: Optional[IBeatGrouper] = None

    def validate_required(self, required: Iterable[str]) -> None:
        missing = [name for name in required if getattr(self, name, None) is None]
        if missing:
            raise ValueError(f"Missing required adapters: {', '.join(missing)}")

    def has_beat_grouper(self) -> bool:
        return self.beat_grouper is not None
