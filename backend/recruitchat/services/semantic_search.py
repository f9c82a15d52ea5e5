"""
Semantic Search Service - embedding pipeline and vector similarity search

Writes candidate and job-description vectors to the store and answers
"find people like this" questions against them.

Write Path:
    candidate row -> prepare_candidate_text -> embed -> upsert
    resume_embeddings -> audit row in embedding_generation_log

Read Path:
    query text -> embed -> store.match_candidates -> full candidate rows
    with a ``similarity_score`` percentage

Read-path failures (API or store) are logged and return an empty list so
the retrieval router can fall through to keyword strategies.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from recruitchat.config import Settings, get_settings
from recruitchat.services.embeddings import EmbeddingClient, prepare_candidate_text
from recruitchat.services.store import RecruitmentStore

logger = logging.getLogger(__name__)

CHUNK_TEXT_CHARS = 1000


class SemanticSearchService:
    def __init__(
        self,
        store: RecruitmentStore,
        embedder: EmbeddingClient,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.settings = settings or get_settings()

    # ==================== Candidate Embeddings ====================

    async def embed_candidate(self, candidate_id: str) -> bool:
        """
        Embed one candidate and record the outcome in the audit log.

        Returns:
            True on success, False if the candidate is missing or the
            embedding call or the write failed
        """
        try:
            candidate = await self.store.get_candidate(candidate_id)
            if candidate is None:
                raise LookupError(f"Candidate not found: {candidate_id}")

            text = prepare_candidate_text(candidate)
            result = await self.embedder.generate(text)
            if not result.success:
                raise RuntimeError(result.error or "Embedding generation failed")

            await self.store.upsert_resume_embedding(
                candidate_id=candidate_id,
                chunk_text=text[:CHUNK_TEXT_CHARS],
                embedding=result.embedding,
                metadata={
                    "name": candidate.get("name"),
                    "skills": candidate.get("skills"),
                    "experience": candidate.get("experience"),
                    "location": candidate.get("location"),
                    "overall_score": candidate.get("overall_score"),
                },
            )
            await self.store.log_embedding_generation(
                entity_type="candidate",
                entity_id=candidate_id,
                status="completed",
                tokens_used=result.tokens_used,
                cost_usd=result.cost,
            )
            logger.info(f"Embedded candidate: {candidate.get('name')} ({candidate_id})")
            return True

        except (LookupError, RuntimeError, SQLAlchemyError) as e:
            logger.error(f"Failed to embed candidate {candidate_id}: {e}")
            try:
                await self.store.log_embedding_generation(
                    entity_type="candidate",
                    entity_id=candidate_id,
                    status="failed",
                    error_message=str(e),
                )
            except SQLAlchemyError as log_error:
                logger.warning(f"Could not write embedding audit row: {log_error}")
            return False

    async def embed_all_candidates(
        self,
        candidate_ids: Optional[Sequence[str]] = None,
        delay_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Embed every candidate with resume text (or only ``candidate_ids``).

        Calls are sequential with a pause between them for the API rate
        limit.

        Returns:
            {"total", "success", "failed", "total_cost"}
        """
        candidates = await self.store.candidates_with_resume(candidate_ids)
        logger.info(f"Found {len(candidates)} candidates to embed")

        delay = (self.settings.embedding_delay_ms if delay_ms is None else delay_ms) / 1000
        success = failed = 0
        for i, candidate in enumerate(candidates):
            logger.info(f"[{i + 1}/{len(candidates)}] Processing: {candidate.get('name')}")
            if await self.embed_candidate(candidate["id"]):
                success += 1
            else:
                failed += 1
            if i < len(candidates) - 1 and delay > 0:
                await asyncio.sleep(delay)

        stats = await self.store.embedding_stats()
        summary = {
            "total": len(candidates),
            "success": success,
            "failed": failed,
            "total_cost": stats["total_cost_usd"],
        }
        logger.info(
            f"Embedding run complete: {success} ok, {failed} failed, "
            f"total cost ${summary['total_cost']:.4f}"
        )
        return summary

    async def is_candidate_embedded(self, candidate_id: str) -> bool:
        return await self.store.get_resume_embedding(candidate_id) is not None

    async def delete_candidate_embedding(self, candidate_id: str) -> bool:
        return await self.store.delete_resume_embedding(candidate_id) > 0

    async def re_embed_candidate(self, candidate_id: str) -> bool:
        await self.delete_candidate_embedding(candidate_id)
        return await self.embed_candidate(candidate_id)

    async def get_embedding_stats(self) -> Dict[str, Any]:
        return await self.store.embedding_stats()

    # ==================== Similarity Search ====================

    async def _with_scores(self, matches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        candidates = await self.store.candidates_by_ids([m["candidate_id"] for m in matches])
        by_id = {c["id"]: c for c in candidates}
        results = []
        for match in matches:
            candidate = by_id.get(match["candidate_id"])
            if candidate is None:
                continue
            results.append({**candidate, "similarity_score": round(match["similarity"] * 100, 1)})
        return results

    async def search_similar_candidates(
        self,
        query: str,
        limit: int = 10,
        threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Candidates whose profile vectors are closest to a free-text query.

        Returns:
            Candidate rows with ``similarity_score`` (percent), most similar
            first; [] on any failure
        """
        threshold = self.settings.semantic_threshold if threshold is None else threshold
        logger.info(f"Semantic search: {query!r}")

        result = await self.embedder.generate(query)
        if not result.success:
            logger.warning(f"Semantic search skipped, query embedding failed: {result.error}")
            return []

        try:
            matches = await self.store.match_candidates(result.embedding, threshold, limit)
            if not matches:
                logger.info("No similar candidates found")
                return []
            return await self._with_scores(matches)
        except SQLAlchemyError as e:
            logger.warning(f"Semantic search failed: {e}")
            return []

    async def find_similar_candidates(self, candidate_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Nearest neighbours of an already-embedded candidate, excluding itself."""
        try:
            embedding = await self.store.get_resume_embedding(candidate_id)
            if embedding is None:
                logger.info(f"No embedding stored for candidate {candidate_id}")
                return []

            # One extra: the candidate always matches itself
            matches = await self.store.match_candidates(
                embedding, self.settings.semantic_threshold, limit + 1
            )
            matches = [m for m in matches if m["candidate_id"] != candidate_id][:limit]
            if not matches:
                return []
            return await self._with_scores(matches)
        except SQLAlchemyError as e:
            logger.warning(f"Similar-candidate lookup failed: {e}")
            return []

    # ==================== Job Descriptions ====================

    async def embed_job_description(self, job_id: str, jd_text: str) -> bool:
        result = await self.embedder.generate(jd_text)
        if not result.success:
            logger.error(f"Failed to embed job {job_id}: {result.error}")
            return False
        try:
            await self.store.upsert_job_embedding(
                job_id=job_id,
                chunk_text=jd_text[:CHUNK_TEXT_CHARS],
                embedding=result.embedding,
                metadata={"source": "job_description"},
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to store embedding for job {job_id}: {e}")
            return False
        logger.info(f"Embedded job: {job_id}")
        return True

    async def match_candidates_to_jd(
        self,
        jd_text: str,
        limit: int = 20,
        threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Best candidates for a pasted job description.

        Returns:
            [{"candidate_id", "name", "email", "overall_score", "similarity"}]
            most similar first; [] on any failure
        """
        threshold = self.settings.jd_match_threshold if threshold is None else threshold
        result = await self.embedder.generate(jd_text)
        if not result.success:
            logger.warning(f"JD matching skipped, embedding failed: {result.error}")
            return []
        try:
            matches = await self.store.match_candidates_to_job(result.embedding, threshold, limit)
        except SQLAlchemyError as e:
            logger.warning(f"JD matching failed: {e}")
            return []
        logger.info(f"Found {len(matches)} matching candidates for JD")
        return matches
