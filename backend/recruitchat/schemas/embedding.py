from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class EmbedCandidatesRequest(BaseModel):
    # Embed only these candidates; all candidates with resume text when omitted
    candidate_ids: Optional[list[str]] = None


class EmbedCandidatesResponse(BaseModel):
    total: int
    success: int
    failed: int
    total_cost: float


class EmbeddingStatsResponse(BaseModel):
    total_candidates_embedded: int
    total_jobs_embedded: int
    total_tokens_used: int
    total_cost_usd: float
    last_generated: Optional[datetime] = None


class SimilarCandidate(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    location: Optional[str] = None
    skills: Optional[list[str]] = None
    experience: Optional[str] = None
    overall_score: Optional[float] = None
    similarity_score: float


class SimilarCandidatesResponse(BaseModel):
    query: str
    candidates: list[SimilarCandidate]
