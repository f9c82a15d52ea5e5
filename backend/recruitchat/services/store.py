"""
Recruitment Store - read/write access to the relational store

Thin async query layer over the SQLAlchemy models. Every method opens its
own session from the session factory, so independent reads can run
concurrently under ``asyncio.gather`` (an AsyncSession is not safe to share
between concurrent tasks).

Rows are returned as plain dicts: the chat pipeline treats them as
immutable per-request snapshots and serializes them into LLM prompts.

Errors (``SQLAlchemyError``) propagate; callers decide whether a failed
read means "no data" (the retrieval router) or a hard failure.

Query Groups:
    - Counts and aggregates (stats, top jobs, status distribution)
    - Candidate lookups (identifiers, thresholds, status, location, name)
    - Jobs, clients, contacts, status catalog
    - Embedding storage and vector match procedures
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from sqlalchemy import and_, delete, func, inspect, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recruitchat.models import (
    Candidate,
    Client,
    ClientContact,
    EmbeddingGenerationLog,
    Job,
    JobEmbedding,
    JobStatus,
    ResumeEmbedding,
)

logger = logging.getLogger(__name__)

STATUS_COLUMNS = {"status", "interview_result"}
ACTIVE_JOB_STATUSES = ("active", "open")


def row_to_dict(obj: Any) -> Dict[str, Any]:
    """Snapshot an ORM instance as a dict of its column attributes."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def cosine_similarities(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of every row of ``matrix`` against ``vector``.

    Rows (or a query vector) with zero magnitude score 0.0.
    """
    row_norms = np.linalg.norm(matrix, axis=1)
    vector_norm = np.linalg.norm(vector)
    if vector_norm == 0:
        return np.zeros(matrix.shape[0])

    denominators = row_norms * vector_norm
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(denominators > 0, matrix @ vector / denominators, 0.0)
    return scores


class RecruitmentStore:
    """
    Async query facade over jobs, candidates, clients and embeddings.

    Attributes:
        session_factory: ``async_sessionmaker`` producing AsyncSessions
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _all(self, query) -> List[Dict[str, Any]]:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [row_to_dict(obj) for obj in result.scalars().all()]

    async def _scalar(self, query) -> Any:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return result.scalar()

    # ==================== Counts & Aggregates ====================

    async def count(self, model) -> int:
        return await self._scalar(select(func.count()).select_from(model)) or 0

    async def average_candidate_score(self) -> float:
        avg = await self._scalar(
            select(func.avg(Candidate.overall_score)).where(Candidate.overall_score.is_not(None))
        )
        return round(float(avg or 0), 1)

    async def count_candidates_where(self, column: str, value: str) -> int:
        if column not in STATUS_COLUMNS:
            raise ValueError(f"Unknown status column: {column}")
        field = getattr(Candidate, column)
        return await self._scalar(
            select(func.count(Candidate.id)).where(func.lower(field) == value.lower())
        ) or 0

    async def top_jobs_by_applications(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Jobs with the most candidate rows, highest first."""
        query = (
            select(Job.job_id, Job.title, func.count(Candidate.id).label("applications"))
            .join(Candidate, Candidate.job_id == Job.id)
            .group_by(Job.id, Job.job_id, Job.title)
            .order_by(func.count(Candidate.id).desc())
            .limit(limit)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [
                {"job_id": row.job_id, "title": row.title, "applications": row.applications}
                for row in result.all()
            ]

    async def candidate_status_distribution(self) -> List[Dict[str, Any]]:
        query = (
            select(Candidate.status, func.count(Candidate.id).label("count"))
            .group_by(Candidate.status)
            .order_by(func.count(Candidate.id).desc())
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [{"status": row.status or "Unknown", "count": row.count} for row in result.all()]

    # ==================== Candidates ====================

    async def get_candidate(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._all(select(Candidate).where(Candidate.id == candidate_id))
        return rows[0] if rows else None

    async def candidates_by_ids(self, candidate_ids: Sequence[str]) -> List[Dict[str, Any]]:
        if not candidate_ids:
            return []
        return await self._all(select(Candidate).where(Candidate.id.in_(list(candidate_ids))))

    async def top_candidates(self, limit: int) -> List[Dict[str, Any]]:
        """Scored candidates, highest score first."""
        query = (
            select(Candidate)
            .where(Candidate.overall_score.is_not(None))
            .order_by(Candidate.overall_score.desc())
            .limit(limit)
        )
        return await self._all(query)

    async def all_candidates(self, limit: int) -> List[Dict[str, Any]]:
        """All candidates by score, unscored ones last."""
        query = (
            select(Candidate)
            .order_by(Candidate.overall_score.desc().nulls_last(), Candidate.name)
            .limit(limit)
        )
        return await self._all(query)

    async def candidate_sample(self, limit: int) -> List[Dict[str, Any]]:
        """Bounded sample for client-side filtering, best scored first."""
        return await self.all_candidates(limit)

    async def candidates_by_email(self, email: str) -> List[Dict[str, Any]]:
        return await self._all(
            select(Candidate).where(func.lower(Candidate.email) == email.lower())
        )

    async def candidates_by_phone(self, phone: str) -> List[Dict[str, Any]]:
        return await self._all(select(Candidate).where(Candidate.phone.ilike(f"%{phone}%")))

    async def candidates_for_job(self, job_uuid: str, limit: int) -> List[Dict[str, Any]]:
        query = (
            select(Candidate)
            .where(Candidate.job_id == job_uuid)
            .order_by(Candidate.overall_score.desc().nulls_last())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_with_experience(self) -> List[Dict[str, Any]]:
        return await self._all(select(Candidate).where(Candidate.experience.is_not(None)))

    async def candidates_by_score(self, score: float, operator: str, limit: int) -> List[Dict[str, Any]]:
        column = Candidate.overall_score
        condition = column >= score if operator == "gt" else column <= score
        query = (
            select(Candidate)
            .where(column.is_not(None), condition)
            .order_by(column.desc())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_by_salary(self, amount: float, operator: str, limit: int) -> List[Dict[str, Any]]:
        column = Candidate.expected_salary
        condition = column >= amount if operator == "gt" else column <= amount
        query = (
            select(Candidate)
            .where(column.is_not(None), condition)
            .order_by(column.asc())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_by_status(self, column: str, value: str, limit: int) -> List[Dict[str, Any]]:
        """Exact match on ``status`` or ``interview_result``."""
        if column not in STATUS_COLUMNS:
            raise ValueError(f"Unknown status column: {column}")
        field = getattr(Candidate, column)
        query = (
            select(Candidate)
            .where(field == value)
            .order_by(Candidate.overall_score.desc().nulls_last())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_by_location(self, aliases: Sequence[str], limit: int) -> List[Dict[str, Any]]:
        conditions = [Candidate.location.ilike(f"%{alias}%") for alias in aliases]
        query = (
            select(Candidate)
            .where(or_(*conditions))
            .order_by(Candidate.overall_score.desc().nulls_last())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_by_name(self, phrase: str, limit: int) -> List[Dict[str, Any]]:
        return await self._all(
            select(Candidate).where(Candidate.name.ilike(f"%{phrase}%")).limit(limit)
        )

    async def candidates_by_name_keywords(
        self, keywords: Sequence[str], limit: int, match_all: bool = True
    ) -> List[Dict[str, Any]]:
        """Partial name match on every keyword (AND) or any keyword (OR)."""
        if not keywords:
            return []
        conditions = [Candidate.name.ilike(f"%{kw}%") for kw in keywords]
        combined = and_(*conditions) if match_all else or_(*conditions)
        return await self._all(select(Candidate).where(combined).limit(limit))

    async def recent_applications(self, limit: int) -> List[Dict[str, Any]]:
        """Latest applications first; candidates without an applied date are skipped."""
        query = (
            select(Candidate)
            .where(Candidate.applied_date.is_not(None))
            .order_by(Candidate.applied_date.desc())
            .limit(limit)
        )
        return await self._all(query)

    async def candidates_with_resume(self, candidate_ids: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        query = select(Candidate).where(Candidate.resume_text.is_not(None))
        if candidate_ids:
            query = query.where(Candidate.id.in_(list(candidate_ids)))
        return await self._all(query)

    # ==================== Jobs, Clients, Statuses ====================

    async def jobs_by_ids(self, job_ids: Sequence[str]) -> List[Dict[str, Any]]:
        if not job_ids:
            return []
        return await self._all(select(Job).where(Job.id.in_(list(job_ids))))

    async def job_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        rows = await self._all(select(Job).where(func.upper(Job.job_id) == code.upper()))
        return rows[0] if rows else None

    async def jobs(self, active_only: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = select(Job)
        if active_only:
            query = query.where(func.lower(Job.status).in_(ACTIVE_JOB_STATUSES))
        query = query.order_by(Job.posted_date.desc().nulls_last(), Job.created_at.desc())
        if limit:
            query = query.limit(limit)
        return await self._all(query)

    async def jobs_by_title_terms(self, terms: Sequence[str], limit: int) -> List[Dict[str, Any]]:
        if not terms:
            return []
        conditions = [Job.title.ilike(f"%{term}%") for term in terms]
        return await self._all(select(Job).where(or_(*conditions)).limit(limit))

    async def clients(self, active_only: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = select(Client)
        if active_only:
            query = query.where(func.lower(Client.status) == "active")
        query = query.order_by(Client.client_name)
        if limit:
            query = query.limit(limit)
        return await self._all(query)

    async def clients_by_name_terms(self, terms: Sequence[str], limit: int) -> List[Dict[str, Any]]:
        if not terms:
            return []
        conditions = [Client.client_name.ilike(f"%{term}%") for term in terms]
        return await self._all(select(Client).where(or_(*conditions)).limit(limit))

    async def contacts(
        self, client_ids: Optional[Sequence[str]] = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        query = select(ClientContact)
        if client_ids is not None:
            query = query.where(ClientContact.client_id.in_(list(client_ids)))
        query = query.order_by(ClientContact.name)
        if limit:
            query = query.limit(limit)
        return await self._all(query)

    async def job_statuses(self) -> List[Dict[str, Any]]:
        return await self._all(select(JobStatus).order_by(JobStatus.display_order))

    # ==================== Embeddings ====================

    async def _upsert(self, session: AsyncSession, model, key_column, key: str, values: Dict[str, Any]) -> None:
        result = await session.execute(select(model).where(key_column == key))
        existing = result.scalar_one_or_none()
        if existing is None:
            session.add(model(**values))
        else:
            for field, value in values.items():
                setattr(existing, field, value)

    async def upsert_resume_embedding(
        self,
        candidate_id: str,
        chunk_text: str,
        embedding: List[float],
        metadata: Dict[str, Any],
        embedding_type: str = "resume",
    ) -> None:
        values = {
            "candidate_id": candidate_id,
            "embedding_type": embedding_type,
            "chunk_text": chunk_text,
            "embedding": embedding,
            "meta": metadata,
        }
        async with self.session_factory() as session:
            await self._upsert(session, ResumeEmbedding, ResumeEmbedding.candidate_id, candidate_id, values)
            await session.commit()

    async def upsert_job_embedding(
        self, job_id: str, chunk_text: str, embedding: List[float], metadata: Dict[str, Any]
    ) -> None:
        values = {"job_id": job_id, "chunk_text": chunk_text, "embedding": embedding, "meta": metadata}
        async with self.session_factory() as session:
            await self._upsert(session, JobEmbedding, JobEmbedding.job_id, job_id, values)
            await session.commit()

    async def get_resume_embedding(self, candidate_id: str) -> Optional[List[float]]:
        return await self._scalar(
            select(ResumeEmbedding.embedding).where(ResumeEmbedding.candidate_id == candidate_id)
        )

    async def delete_resume_embedding(self, candidate_id: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(ResumeEmbedding).where(ResumeEmbedding.candidate_id == candidate_id)
            )
            await session.commit()
            return result.rowcount or 0

    async def log_embedding_generation(
        self,
        entity_type: str,
        entity_id: str,
        status: str,
        tokens_used: Optional[int] = None,
        cost_usd: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> None:
        async with self.session_factory() as session:
            session.add(EmbeddingGenerationLog(
                entity_type=entity_type,
                entity_id=entity_id,
                status=status,
                tokens_used=tokens_used,
                cost_usd=cost_usd,
                error_message=error_message,
            ))
            await session.commit()

    async def embedding_stats(self) -> Dict[str, Any]:
        completed = EmbeddingGenerationLog.status == "completed"
        async with self.session_factory() as session:
            candidates = await session.execute(select(func.count(ResumeEmbedding.id)))
            jobs = await session.execute(select(func.count(JobEmbedding.id)))
            totals = await session.execute(
                select(
                    func.coalesce(func.sum(EmbeddingGenerationLog.tokens_used), 0),
                    func.coalesce(func.sum(EmbeddingGenerationLog.cost_usd), 0.0),
                    func.max(EmbeddingGenerationLog.created_at),
                ).where(completed)
            )
            tokens, cost, last_generated = totals.one()
        return {
            "total_candidates_embedded": candidates.scalar() or 0,
            "total_jobs_embedded": jobs.scalar() or 0,
            "total_tokens_used": int(tokens or 0),
            "total_cost_usd": float(cost or 0.0),
            "last_generated": last_generated,
        }

    async def _resume_vectors(self):
        async with self.session_factory() as session:
            result = await session.execute(
                select(ResumeEmbedding.candidate_id, ResumeEmbedding.embedding)
            )
            rows = result.all()
        ids = [row.candidate_id for row in rows if row.embedding]
        vectors = [row.embedding for row in rows if row.embedding]
        return ids, vectors

    async def match_candidates(
        self, query_embedding: List[float], match_threshold: float, match_count: int
    ) -> List[Dict[str, Any]]:
        """
        Nearest candidates to a query vector.

        Returns:
            List of {"candidate_id", "similarity"} above the threshold,
            most similar first, at most ``match_count`` entries
        """
        ids, vectors = await self._resume_vectors()
        if not ids:
            return []

        scores = cosine_similarities(np.array(vectors, dtype=float), np.array(query_embedding, dtype=float))
        order = np.argsort(scores)[::-1]

        matches = []
        for idx in order:
            if scores[idx] <= match_threshold:
                break
            matches.append({"candidate_id": ids[idx], "similarity": float(scores[idx])})
            if len(matches) >= match_count:
                break
        return matches

    async def match_candidates_to_job(
        self, job_embedding: List[float], match_threshold: float, match_count: int
    ) -> List[Dict[str, Any]]:
        """
        Candidates nearest to a job-description vector, with profile fields.

        Returns:
            List of {"candidate_id", "name", "email", "overall_score",
            "similarity"} most similar first
        """
        matches = await self.match_candidates(job_embedding, match_threshold, match_count)
        if not matches:
            return []

        candidates = {c["id"]: c for c in await self.candidates_by_ids([m["candidate_id"] for m in matches])}
        results = []
        for match in matches:
            candidate = candidates.get(match["candidate_id"])
            if candidate is None:
                continue
            results.append({
                "candidate_id": match["candidate_id"],
                "name": candidate.get("name"),
                "email": candidate.get("email"),
                "overall_score": candidate.get("overall_score"),
                "similarity": match["similarity"],
            })
        return results
