from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .candidate_provider import ICandidateProvider
from .reranker import ICandidateReranker
from .query_rewriter import IQueryRewriter
from .beat_grouper import IBeatGrouper


@runtime_checkable
class IBrollPipelineAdapters(Protocol):
    candidate_provider: ICandidateProvider
    reranker: ICandidateReranker
    query_rewriter: Optional[IQueryRewriter]
    beat_grouper: Optional[IBeatGrouper]
