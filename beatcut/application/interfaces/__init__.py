from .candidate_provider import ICandidateProvider
from .reranker import ICandidateReranker
from .query_rewriter import IQueryRewriter
from .beat_grouper import IBeatGrouper
from .broll_adapters import IBrollPipelineAdapters

__all__ = [
    "ICandidateProvider",
    "ICandidateReranker",
    "IQueryRewriter",
    "IBeatGrouper",
    "IBrollPipelineAdapters",
]
