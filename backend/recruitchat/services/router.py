"""
Retrieval Router - ordered fallback search for recruitment queries

Maps one recruitment query (plus conversation history and an optional
requested result count) to the first strategy that returns data. Each
strategy is an independent object with ``attempt(ctx)``; the router walks
them in priority order:

    top-N by criterion -> top-N -> all candidates -> follow-up
    -> recent applications -> email -> phone -> job id -> semantic
    -> experience -> score -> salary
    -> skill -> job title -> status -> location
    -> clients -> jobs -> status catalog
    -> broad keyword search -> name search -> no_results

A store error inside a strategy is logged and treated as "no data"; the
chain carries on. Nothing is retried.

Usage:
    router = RetrievalRouter(store, semantic_search)
    result = await router.route("candidates with python")
    result.type  # "candidates_by_skill"
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from recruitchat.config import Settings, get_settings
from recruitchat.middleware.metrics import record_strategy_hit
from recruitchat.services.extractors import (
    ExperienceFilter,
    LOCATION_KEYWORDS,
    extract_email,
    extract_experience,
    extract_job_id,
    extract_job_title,
    extract_location,
    extract_name_from_history,
    extract_name_from_query,
    extract_phone,
    extract_requested_count,
    extract_salary,
    extract_score,
    extract_skill,
    extract_top_n_criteria,
    parse_experience_years,
)
from recruitchat.services.semantic_search import SemanticSearchService
from recruitchat.services.similarity import fuzzy_contains, term_match_ratio
from recruitchat.services.store import RecruitmentStore

logger = logging.getLogger(__name__)

CANDIDATE_TEXT_FIELDS = ("skills", "experience", "resume_text")

FOLLOW_UP_MAX_WORDS = 8
# Words that refer back to the candidate under discussion
FOLLOW_UP_CUES = {
    "applied", "date", "status", "same", "his", "her", "he", "she", "him",
    "their", "them", "they", "this", "that",
}
DATE_CUES = {"applied", "date"}
RECENT_APPLICATIONS_LIMIT = 10

SEMANTIC_PHRASES = (
    "similar to", "same as", "profiles like", "candidates like", "people like",
    "someone like", "expert in", "experts in", "looking for", "experienced in",
    "skilled in", "proficient in", "someone who", "someone with", "knowledge of",
)

JOB_KEYWORDS = {
    "job", "jobs", "position", "positions", "opening", "openings",
    "vacancy", "vacancies", "role", "roles",
}

BROAD_STOP_WORDS = {
    "can", "get", "details", "detail", "of", "about", "show", "find", "the",
    "list", "all", "are", "who", "what", "which", "with", "have", "has",
    "from", "that", "this", "there", "please", "give", "tell", "some", "any",
    "candidate", "candidates", "people", "profiles", "profile", "want",
    "need", "know", "more", "information", "info",
}

NAME_STOP_WORDS = BROAD_STOP_WORDS | {
    "me", "is", "a", "an", "and", "or", "for", "in", "on", "to", "his",
    "her", "their", "i", "we", "you", "named", "called", "name", "person",
    "applicant", "applicants", "resume", "cv", "search", "look", "up",
    "lookup", "check", "does", "do", "how", "where", "when", "was", "were",
}

_WORD_RE = re.compile(r"[a-z0-9+#.']+")
_TOP_RE = re.compile(r"\b(?:top|best|highest[- ]scored?|highest[- ]rated)\b")
_CANDIDATE_NOUN_RE = re.compile(r"\b(?:candidates?|profiles?|people|applicants?|resumes?)\b")
_ALL_CANDIDATES_RE = re.compile(r"\b(?:all|every|entire)\s+(?:the\s+)?(?:candidates|applicants|profiles)\b")
_NAME_TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z.'-]*")


@dataclass(frozen=True)
class StatusRule:
    key: str
    pattern: re.Pattern
    column: str
    value: str


# Dictionary order matters: "not selected" must never read as "selected"
STATUS_RULES: Tuple[StatusRule, ...] = (
    StatusRule("screening", re.compile(r"\b(?:screening|reviewing|in review)\b"), "status", "Screening"),
    StatusRule("selected", re.compile(r"(?<!not )\b(?:selected|hired|accepted|passed)\b"), "interview_result", "Selected"),
    StatusRule("rejected", re.compile(r"\b(?:not selected|rejected|declined|failed)\b"), "interview_result", "Rejected"),
    StatusRule("offered", re.compile(r"\b(?:offered|offers?)\b"), "status", "Offered"),
    StatusRule("interview", re.compile(r"\b(?:interviews?|interviewing|scheduled)\b"), "status", "Interview"),
)


def match_status_rule(text: str) -> Optional[StatusRule]:
    """First status rule whose keywords occur in the (lowercased) text."""
    for rule in STATUS_RULES:
        if rule.pattern.search(text):
            return rule
    return None


@dataclass
class SearchResult:
    """
    Outcome of routing one query.

    ``reference`` holds the anchor candidate for "similar to <name>" results.
    """

    type: str
    data: Any
    strategy: str
    reference: Optional[Dict[str, Any]] = None

    @property
    def is_empty(self) -> bool:
        return self.type == "no_results"


NO_RESULTS = SearchResult("no_results", None, "none")


@dataclass
class RouteContext:
    query: str
    history: Sequence[Any]
    limit: int
    requested_count: Optional[int]
    lower: str = ""
    words: List[str] = field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    job_id: Optional[str] = None
    residual: str = ""

    @classmethod
    def build(
        cls,
        query: str,
        history: Sequence[Any],
        requested_count: Optional[int],
        default_limit: int,
    ) -> "RouteContext":
        query = (query or "").strip()
        lower = " ".join(query.lower().split())
        email = extract_email(query)
        phone = extract_phone(query)
        job_id = extract_job_id(query)

        # Identifiers are stripped before free-text matching
        residual = query
        for token in (email, phone):
            if token:
                residual = residual.replace(token, " ")

        return cls(
            query=query,
            history=history or (),
            limit=requested_count or default_limit,
            requested_count=requested_count,
            lower=lower,
            words=_WORD_RE.findall(lower),
            email=email,
            phone=phone,
            job_id=job_id,
            residual=" ".join(residual.split()),
        )

    @property
    def has_identifier(self) -> bool:
        return bool(self.email or self.phone or self.job_id)

    def has_filter(self) -> bool:
        """True when a skill, title, location or numeric threshold is present."""
        return bool(
            extract_skill(self.query)
            or extract_job_title(self.query)
            or extract_location(self.query)
            or extract_experience(self.query)
            or extract_score(self.query)
            or extract_salary(self.query)
        )

    def has_criteria(self) -> bool:
        """True when any filter beyond "best candidates" is present."""
        return self.has_identifier or self.has_filter() or match_status_rule(self.lower) is not None


def candidate_matches(candidate: Dict[str, Any], term: str) -> bool:
    """Typo-tolerant match of ``term`` against a candidate's free-text fields."""
    return any(fuzzy_contains(candidate.get(f), term) for f in CANDIDATE_TEXT_FIELDS)


def _score_key(candidate: Dict[str, Any]) -> float:
    score = candidate.get("overall_score")
    return score if score is not None else -1.0


# ==================== Strategies ====================

class Strategy:
    """
    One retrieval attempt.

    ``attempt`` returns a SearchResult with data, or None to let the next
    strategy try. Store errors propagate to the router.
    """

    name = "strategy"

    def __init__(self, store: RecruitmentStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def attempt(self, ctx: RouteContext) -> Optional[SearchResult]:
        raise NotImplementedError

    def result(self, result_type: str, data: Any, **kwargs) -> SearchResult:
        return SearchResult(result_type, data, self.name, **kwargs)


class TopNCriteriaStrategy(Strategy):
    name = "top_n_criteria"

    async def attempt(self, ctx):
        parsed = extract_top_n_criteria(ctx.query)
        if not parsed:
            return None
        count, criterion = parsed
        count = count or ctx.limit

        pool = await self.store.top_candidates(self.settings.top_n_pool_size)
        matched = [c for c in pool if candidate_matches(c, criterion)][:count]
        if not matched:
            return None
        logger.info(f"Top {count} by criterion {criterion!r}: {len(matched)} candidates")
        return self.result("top_candidates_by_criteria", matched)


class TopNCandidatesStrategy(Strategy):
    name = "top_n"

    async def attempt(self, ctx):
        if not (_TOP_RE.search(ctx.lower) and _CANDIDATE_NOUN_RE.search(ctx.lower)):
            return None
        if ctx.has_criteria():
            return None

        data = await self.store.top_candidates(ctx.limit)
        return self.result("top_candidates", data) if data else None


class AllCandidatesStrategy(Strategy):
    name = "all_candidates"

    async def attempt(self, ctx):
        if not _ALL_CANDIDATES_RE.search(ctx.lower) or ctx.has_criteria():
            return None
        data = await self.store.all_candidates(ctx.limit)
        return self.result("all_candidates", data) if data else None


class FollowUpStrategy(Strategy):
    name = "follow_up"

    async def attempt(self, ctx):
        if not ctx.history or ctx.has_identifier:
            return None
        if len(ctx.lower.split()) > FOLLOW_UP_MAX_WORDS:
            return None
        if not FOLLOW_UP_CUES.intersection(ctx.words):
            return None
        # "candidates with python skills" is a new search, not a follow-up
        if ctx.has_filter():
            return None

        name = extract_name_from_history(ctx.history)
        if not name:
            return None
        logger.info(f"Follow-up resolved to {name!r}")

        data = await self.store.candidates_by_name(name, 1)
        return self.result("follow_up_candidate", data) if data else None


class RecentApplicationsStrategy(Strategy):
    """Latest applications for date questions nobody in the history answers."""

    name = "recent_applications"

    async def attempt(self, ctx):
        if not DATE_CUES.intersection(ctx.words):
            return None
        if ctx.has_criteria():
            return None
        data = await self.store.recent_applications(ctx.requested_count or RECENT_APPLICATIONS_LIMIT)
        return self.result("recent_applications", data) if data else None


class EmailStrategy(Strategy):
    name = "email"

    async def attempt(self, ctx):
        if not ctx.email:
            return None
        candidates = await self.store.candidates_by_email(ctx.email)
        if not candidates:
            return None

        jobs = await self.store.jobs_by_ids([c["job_id"] for c in candidates if c.get("job_id")])
        job_map = {job["id"]: job for job in jobs}
        data = [{**c, "job_details": job_map.get(c.get("job_id"))} for c in candidates]
        return self.result("candidate_full_details", data)


class PhoneStrategy(Strategy):
    name = "phone"

    async def attempt(self, ctx):
        if not ctx.phone:
            return None
        data = await self.store.candidates_by_phone(ctx.phone)
        return self.result("candidate_full_details", data) if data else None


class JobIdStrategy(Strategy):
    name = "job_id"

    async def attempt(self, ctx):
        if not ctx.job_id:
            return None
        job = await self.store.job_by_code(ctx.job_id)
        if job is None:
            return None
        candidates = await self.store.candidates_for_job(job["id"], ctx.limit)
        return self.result("job_details", {"job": job, "candidates": candidates})


class SemanticStrategy(Strategy):
    name = "semantic"

    def __init__(self, store, settings, semantic_search: Optional[SemanticSearchService] = None):
        super().__init__(store, settings)
        self.semantic_search = semantic_search

    async def attempt(self, ctx):
        if self.semantic_search is None:
            return None
        if not any(phrase in ctx.lower for phrase in SEMANTIC_PHRASES):
            return None

        if "similar to" in ctx.lower or "same as" in ctx.lower:
            found = await self._similar_to_named(ctx)
            if found:
                return found

        data = await self.semantic_search.search_similar_candidates(ctx.query, limit=min(ctx.limit, 10))
        return self.result("semantic_search", data) if data else None

    async def _similar_to_named(self, ctx: RouteContext) -> Optional[SearchResult]:
        name = extract_name_from_query(ctx.query)
        if not name:
            return None
        matches = await self.store.candidates_by_name(name, 1)
        if not matches:
            return None

        reference = matches[0]
        if not await self.semantic_search.is_candidate_embedded(reference["id"]):
            logger.info(f"{name} has no embedding; using free-text semantic search")
            return None

        data = await self.semantic_search.find_similar_candidates(reference["id"])
        if not data:
            return None
        return self.result("semantic_search", data, reference=reference)


class ExperienceStrategy(Strategy):
    name = "experience"

    @staticmethod
    def _passes(years: float, wanted: ExperienceFilter) -> bool:
        return years > wanted.years if wanted.operator == "gt" else years < wanted.years

    async def attempt(self, ctx):
        wanted = extract_experience(ctx.query)
        if not wanted:
            return None

        candidates = await self.store.candidates_with_experience()
        data = []
        for candidate in candidates:
            years = parse_experience_years(candidate.get("experience"))
            if self._passes(years, wanted):
                data.append({**candidate, "experience_years": round(years, 1)})
        data = data[:ctx.limit]
        return self.result("candidates_by_experience", data) if data else None


class ScoreStrategy(Strategy):
    name = "score"

    async def attempt(self, ctx):
        wanted = extract_score(ctx.query)
        if not wanted:
            return None
        data = await self.store.candidates_by_score(wanted.score, wanted.operator, ctx.limit)
        return self.result("candidates_by_score", data) if data else None


class SalaryStrategy(Strategy):
    name = "salary"

    async def attempt(self, ctx):
        wanted = extract_salary(ctx.query)
        if not wanted:
            return None
        data = await self.store.candidates_by_salary(wanted.amount, wanted.operator, ctx.limit)
        return self.result("candidates_by_salary", data) if data else None


class SkillStrategy(Strategy):
    name = "skill"

    async def attempt(self, ctx):
        skill = extract_skill(ctx.query)
        if not skill:
            return None

        sample = await self.store.candidate_sample(self.settings.candidate_sample_size)
        data = [c for c in sample if candidate_matches(c, skill)][:ctx.limit]
        if not data:
            return None
        logger.info(f"Skill {skill!r}: {len(data)} candidates")
        return self.result("candidates_by_skill", data)


class JobTitleStrategy(Strategy):
    name = "job_title"

    async def attempt(self, ctx):
        title = extract_job_title(ctx.query)
        if not title:
            return None

        sample = await self.store.candidate_sample(self.settings.candidate_sample_size)
        candidates = [c for c in sample if candidate_matches(c, title)][:ctx.limit]
        if candidates:
            return self.result("candidates_by_job_title", candidates)

        jobs = await self.store.jobs(limit=self.settings.candidate_sample_size)
        matched = [j for j in jobs if fuzzy_contains(j.get("title"), title)][:ctx.limit]
        return self.result("jobs_by_title", matched) if matched else None


class StatusStrategy(Strategy):
    name = "status"

    async def attempt(self, ctx):
        rule = match_status_rule(ctx.lower)
        if rule is None:
            return None
        logger.info(f"Status filter: {rule.column} = {rule.value!r}")
        data = await self.store.candidates_by_status(rule.column, rule.value, ctx.limit)
        return self.result("candidates_by_status", data) if data else None


class LocationStrategy(Strategy):
    name = "location"

    async def attempt(self, ctx):
        city = extract_location(ctx.query)
        if not city:
            return None
        data = await self.store.candidates_by_location(LOCATION_KEYWORDS[city], ctx.limit)
        return self.result("candidates_by_location", data) if data else None


class ClientStrategy(Strategy):
    name = "client"

    async def attempt(self, ctx):
        if "client" not in ctx.lower:
            return None

        active_only = "active" in ctx.words
        unbounded = "all" in ctx.words or "every" in ctx.words
        limit = None if unbounded else ctx.limit

        clients = await self.store.clients(active_only=active_only, limit=limit)
        if not clients:
            return None
        contacts = await self.store.contacts(client_ids=[c["id"] for c in clients], limit=limit)
        return self.result("clients_and_contacts", {"clients": clients, "contacts": contacts})


class JobSearchStrategy(Strategy):
    name = "jobs"

    async def attempt(self, ctx):
        if not JOB_KEYWORDS.intersection(ctx.words) or "how many" in ctx.lower:
            return None
        active_only = "active" in ctx.words or "open" in ctx.words
        data = await self.store.jobs(active_only=active_only, limit=ctx.limit)
        return self.result("jobs", data) if data else None


class StatusCatalogStrategy(Strategy):
    name = "status_catalog"

    async def attempt(self, ctx):
        if "status" not in ctx.lower:
            return None
        if not {"type", "types", "list", "available", "options"}.intersection(ctx.words):
            return None
        data = await self.store.job_statuses()
        return self.result("job_statuses", data) if data else None


class BroadSearchStrategy(Strategy):
    """
    Catch-all keyword search over candidates, jobs and clients.

    The three reads are independent and run concurrently. A candidate
    survives when at least 70% of the search terms appear in its text, a
    missing word being satisfied by a similar one.
    """

    name = "broad"
    MIN_TERM_LENGTH = 4
    MIN_TERM_RATIO = 0.7

    @classmethod
    def search_terms(cls, text: str) -> List[str]:
        words = _WORD_RE.findall(text.lower())
        return [w for w in words if len(w) >= cls.MIN_TERM_LENGTH and w not in BROAD_STOP_WORDS]

    @staticmethod
    def _candidate_text(candidate: Dict[str, Any]) -> List[Any]:
        return [candidate.get(f) for f in ("name", "location", *CANDIDATE_TEXT_FIELDS)]

    async def attempt(self, ctx):
        terms = self.search_terms(ctx.residual)
        if not terms:
            return None

        sample, jobs, clients = await asyncio.gather(
            self.store.candidate_sample(self.settings.candidate_sample_size),
            self.store.jobs_by_title_terms(terms, 5),
            self.store.clients_by_name_terms(terms, 5),
        )

        candidates = [
            c for c in sample
            if term_match_ratio(self._candidate_text(c), terms) >= self.MIN_TERM_RATIO
        ]
        candidates.sort(key=_score_key, reverse=True)
        candidates = candidates[:ctx.limit]

        if not (candidates or jobs or clients):
            return None
        logger.info(
            f"Broad search {terms}: {len(candidates)} candidates, "
            f"{len(jobs)} jobs, {len(clients)} clients"
        )
        return self.result(
            "combined_keyword_search",
            {"candidates": candidates, "jobs": jobs, "clients": clients},
        )


class NameSearchStrategy(Strategy):
    name = "name"

    @staticmethod
    def name_guess(text: str) -> List[str]:
        tokens = _NAME_TOKEN_RE.findall(text)
        return [t for t in tokens if t.lower() not in NAME_STOP_WORDS]

    async def attempt(self, ctx):
        keywords = self.name_guess(ctx.residual)
        if not keywords:
            return None
        phrase = " ".join(keywords)

        data = await self.store.candidates_by_name(phrase, ctx.limit)
        if not data and len(keywords) > 1:
            data = await self.store.candidates_by_name_keywords(keywords, ctx.limit, match_all=True)
        if not data:
            usable = [kw for kw in keywords if len(kw) > 1]
            data = await self.store.candidates_by_name_keywords(usable, ctx.limit, match_all=False)
        if not data:
            sample = await self.store.candidate_sample(self.settings.candidate_sample_size)
            data = [c for c in sample if candidate_matches(c, phrase)][:ctx.limit]

        return self.result("candidates_by_name", data) if data else None


# ==================== Router ====================

class RetrievalRouter:
    """
    Runs strategies in priority order and returns the first hit.

    Attributes:
        strategies: Ordered tuple of Strategy objects
    """

    def __init__(
        self,
        store: RecruitmentStore,
        semantic_search: Optional[SemanticSearchService] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        s = (store, self.settings)
        self.strategies: Tuple[Strategy, ...] = (
            TopNCriteriaStrategy(*s),
            TopNCandidatesStrategy(*s),
            AllCandidatesStrategy(*s),
            FollowUpStrategy(*s),
            RecentApplicationsStrategy(*s),
            EmailStrategy(*s),
            PhoneStrategy(*s),
            JobIdStrategy(*s),
            SemanticStrategy(*s, semantic_search=semantic_search),
            ExperienceStrategy(*s),
            ScoreStrategy(*s),
            SalaryStrategy(*s),
            SkillStrategy(*s),
            JobTitleStrategy(*s),
            StatusStrategy(*s),
            LocationStrategy(*s),
            ClientStrategy(*s),
            JobSearchStrategy(*s),
            StatusCatalogStrategy(*s),
            BroadSearchStrategy(*s),
            NameSearchStrategy(*s),
        )

    async def route(
        self,
        query: str,
        history: Sequence[Any] = (),
        requested_count: Optional[int] = None,
    ) -> SearchResult:
        """
        Find data for a recruitment query.

        Args:
            query: Raw user message
            history: Prior turns, oldest first (dicts or objects with
                ``role``/``content``)
            requested_count: Result count; parsed from the query when None

        Returns:
            The first non-empty SearchResult, or the ``no_results`` marker
        """
        if requested_count is None:
            requested_count = extract_requested_count(query)
        ctx = RouteContext.build(query, history, requested_count, self.settings.default_result_limit)

        for strategy in self.strategies:
            try:
                result = await strategy.attempt(ctx)
            except SQLAlchemyError as e:
                logger.warning(f"Strategy {strategy.name} failed, trying next: {e}")
                continue
            if result is not None:
                logger.info(f"Query {ctx.query!r} answered by {strategy.name} ({result.type})")
                record_strategy_hit(strategy.name)
                return result

        logger.info(f"No results for {ctx.query!r}")
        record_strategy_hit(NO_RESULTS.strategy)
        return NO_RESULTS
