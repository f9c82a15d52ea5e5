"""
Chat Service - one recruiter message in, one reply out

Pipeline per message:
    1. Pasted job description -> vector match (if embeddings exist) or
       LLM ranking; done
    2. Classify intent; non-recruitment intents get a short LLM reply
    3. Recruitment with no history -> response cache lookup
    4. Live statistics + retrieval routing
    5. Synthesis ("similar to X" results are rendered locally)
    6. Cache store

Generation failures propagate as ``GenerationError``; store failures in
statistics and job listing degrade to empty values.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from recruitchat.config import Settings, get_settings
from recruitchat.models import Candidate, Client, ClientContact, Job, JobStatus
from recruitchat.services.cache import ResponseCache
from recruitchat.services.classifier import QueryType, classify_query
from recruitchat.services.extractors import is_job_description
from recruitchat.services.router import RetrievalRouter
from recruitchat.services.semantic_search import SemanticSearchService
from recruitchat.services.store import RecruitmentStore
from recruitchat.services.synthesizer import (
    AnswerSynthesizer,
    format_jd_matches,
    format_similar_candidates,
)

logger = logging.getLogger(__name__)

RECENT_JOBS_LIMIT = 50

EMPTY_STATS: Dict[str, Any] = {
    "total_jobs": 0,
    "total_candidates": 0,
    "total_clients": 0,
    "total_contacts": 0,
    "total_statuses": 0,
    "average_candidate_score": 0.0,
    "screening": 0,
    "selected": 0,
    "rejected": 0,
    "top_jobs": [],
    "status_distribution": [],
}


@dataclass
class ChatReply:
    text: str
    suggestions: List[str] = field(default_factory=list)
    result_type: Optional[str] = None
    cached: bool = False


class ChatService:
    """
    Orchestrates classification, retrieval, caching and synthesis.

    One instance per process; it owns the response cache.
    """

    def __init__(
        self,
        store: RecruitmentStore,
        router: RetrievalRouter,
        synthesizer: AnswerSynthesizer,
        cache: ResponseCache,
        semantic_search: Optional[SemanticSearchService] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.router = router
        self.synthesizer = synthesizer
        self.cache = cache
        self.semantic_search = semantic_search
        self.settings = settings or get_settings()

    async def send_message(
        self,
        text: str,
        context_id: Optional[str] = None,
        history: Sequence[Any] = (),
    ) -> ChatReply:
        """
        Answer one chat message.

        Args:
            text: The recruiter's message
            context_id: Job the chat window is opened on (informational)
            history: Earlier turns, oldest first

        Returns:
            ChatReply with text, follow-up suggestions, result type and
            whether it came from the cache

        Raises:
            GenerationError: if the chat model call fails
        """
        history = list(history or ())
        logger.info(f"Message (context={context_id}, history={len(history)}): {text[:100]!r}")

        if is_job_description(text):
            return await self._answer_job_description(text)

        classification = classify_query(text)
        logger.info(f"Classified as {classification.type.value} ({classification.confidence})")

        if classification.type != QueryType.RECRUITMENT:
            answer = await self.synthesizer.synthesize(text, classification, history=history)
            return ChatReply(
                text=answer,
                suggestions=self.synthesizer.suggest_follow_ups(classification),
                result_type=classification.type.value,
            )

        # Cached answers never see follow-up context
        cacheable = not history
        if cacheable:
            cached = self.cache.get(text)
            if cached is not None:
                return ChatReply(
                    text=cached,
                    suggestions=self.synthesizer.suggest_follow_ups(classification),
                    cached=True,
                )

        stats = await self.get_stats()
        result = await self.router.route(text, history)

        if result.type == "semantic_search" and result.reference:
            answer = format_similar_candidates(result.data, result.reference.get("name"))
        else:
            answer = await self.synthesizer.synthesize(text, classification, result, stats, history)

        if cacheable:
            self.cache.set(text, answer)

        return ChatReply(
            text=answer,
            suggestions=self.synthesizer.suggest_follow_ups(classification, result),
            result_type=result.type,
        )

    async def _answer_job_description(self, jd_text: str) -> ChatReply:
        logger.info("Job description detected, matching candidates")
        suggestions = ["Top 10 candidates by score", "Show active jobs", "What can you do?"]

        if self.semantic_search is not None and await self._has_embeddings():
            matches = await self.semantic_search.match_candidates_to_jd(jd_text)
            if matches:
                return ChatReply(format_jd_matches(matches), suggestions, "jd_semantic_match")

        answer = await self.synthesizer.rank_candidates_for_job_description(jd_text, self.store)
        return ChatReply(answer, suggestions, "jd_ranking")

    async def _has_embeddings(self) -> bool:
        try:
            stats = await self.semantic_search.get_embedding_stats()
        except SQLAlchemyError as e:
            logger.warning(f"Embedding stats unavailable: {e}")
            return False
        return stats["total_candidates_embedded"] > 0

    async def get_all_jobs(self) -> List[Dict[str, Any]]:
        """The 50 most recently posted jobs; [] if the store is unavailable."""
        try:
            return await self.store.jobs(limit=RECENT_JOBS_LIMIT)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching jobs: {e}")
            return []

    def clear_cache(self) -> int:
        return self.cache.clear()

    async def get_stats(self) -> Dict[str, Any]:
        """
        Live aggregate statistics for prompts and the dashboard.

        All reads are issued together. Any store error yields zeroed stats.
        """
        try:
            (
                total_jobs,
                total_candidates,
                total_clients,
                total_contacts,
                total_statuses,
                average_score,
                screening,
                selected,
                rejected,
                top_jobs,
                distribution,
            ) = await asyncio.gather(
                self.store.count(Job),
                self.store.count(Candidate),
                self.store.count(Client),
                self.store.count(ClientContact),
                self.store.count(JobStatus),
                self.store.average_candidate_score(),
                self.store.count_candidates_where("status", "Screening"),
                self.store.count_candidates_where("interview_result", "Selected"),
                self.store.count_candidates_where("interview_result", "Rejected"),
                self.store.top_jobs_by_applications(),
                self.store.candidate_status_distribution(),
            )
        except SQLAlchemyError as e:
            logger.warning(f"Stats unavailable: {e}")
            return copy.deepcopy(EMPTY_STATS)

        return {
            "total_jobs": total_jobs,
            "total_candidates": total_candidates,
            "total_clients": total_clients,
            "total_contacts": total_contacts,
            "total_statuses": total_statuses,
            "average_candidate_score": average_score,
            "screening": screening,
            "selected": selected,
            "rejected": rejected,
            "top_jobs": top_jobs,
            "status_distribution": distribution,
        }
