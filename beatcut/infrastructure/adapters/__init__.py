from .candidate_provider_pexels import PexelsCandidateProvider
from .candidate_provider_pixabay import PixabayCandidateProvider
from .reranker_pydanticai import PydanticAIReranker
from .reranker_null import NullReranker
from .query_rewriter_pydanticai import PydanticAIQueryRewriter
from .beat_grouper_llm import LLMBeatGrouper

__all__ = [
    "PexelsCandidateProvider",
    "PixabayCandidateProvider",
    "PydanticAIReranker",
    "NullReranker",
    "PydanticAIQueryRewriter",
    "LLMBeatGrouper",
]
