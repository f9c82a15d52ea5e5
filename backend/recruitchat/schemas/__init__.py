from recruitchat.schemas.chat import ChatTurn, ChatRequest, ChatResponse, CacheClearedResponse
from recruitchat.schemas.job import JobResponse, JobListResponse
from recruitchat.schemas.embedding import (
    EmbedCandidatesRequest,
    EmbedCandidatesResponse,
    EmbeddingStatsResponse,
    SimilarCandidate,
    SimilarCandidatesResponse,
)

__all__ = [
    "ChatTurn",
    "ChatRequest",
    "ChatResponse",
    "CacheClearedResponse",
    "JobResponse",
    "JobListResponse",
    "EmbedCandidatesRequest",
    "EmbedCandidatesResponse",
    "EmbeddingStatsResponse",
    "SimilarCandidate",
    "SimilarCandidatesResponse",
]
