from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from recruitchat.api.deps import get_semantic_search
from recruitchat.schemas import (
    EmbedCandidatesRequest,
    EmbedCandidatesResponse,
    EmbeddingStatsResponse,
    SimilarCandidate,
    SimilarCandidatesResponse,
)
from recruitchat.services.semantic_search import SemanticSearchService

router = APIRouter()


def _require(service: Optional[SemanticSearchService]) -> SemanticSearchService:
    if service is None:
        raise HTTPException(status_code=503, detail="Semantic search is not configured")
    return service


@router.post("/candidates", response_model=EmbedCandidatesResponse)
async def embed_candidates(
    request: EmbedCandidatesRequest,
    service: Optional[SemanticSearchService] = Depends(get_semantic_search),
):
    summary = await _require(service).embed_all_candidates(request.candidate_ids)
    return EmbedCandidatesResponse(**summary)


@router.get("/stats", response_model=EmbeddingStatsResponse)
async def embedding_stats(
    service: Optional[SemanticSearchService] = Depends(get_semantic_search),
):
    return EmbeddingStatsResponse(**await _require(service).get_embedding_stats())


@router.get("/search", response_model=SimilarCandidatesResponse)
async def search_candidates(
    q: str = Query(..., min_length=2),
    limit: int = Query(10, ge=1, le=50),
    service: Optional[SemanticSearchService] = Depends(get_semantic_search),
):
    results = await _require(service).search_similar_candidates(q, limit=limit)
    return SimilarCandidatesResponse(
        query=q,
        candidates=[SimilarCandidate.model_validate(c) for c in results],
    )
