"""
Answer Synthesizer - turns retrieved rows into a chat reply

Builds a role-tagged prompt (persona, live statistics, recent history,
serialized search results, intent-specific rules) and asks the chat model
for the answer. Two reply types are rendered locally from templates with
no API call: similar-candidate lists and job-description match lists.

Sampling per call site:
    recruitment answer     temperature 0.5, 800 tokens
    greeting / help        temperature 0.7, 300 tokens
    off_topic / unclear    temperature 0.3, 200 tokens
    JD criteria extraction temperature 0.1 (JSON expected)
    JD candidate ranking   temperature 0.5, 1000 tokens
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from recruitchat.config import Settings, get_settings
from recruitchat.services.classifier import QueryClassification, QueryType
from recruitchat.services.extractors import turn_field
from recruitchat.services.llm import ChatCompletionClient, parse_json_response
from recruitchat.services.router import SearchResult, candidate_matches
from recruitchat.services.store import RecruitmentStore

logger = logging.getLogger(__name__)

ASSISTANT_NAME = "RecruitChat"

PERSONA = (
    f"You are {ASSISTANT_NAME}, a world-class AI recruitment assistant. Your purpose "
    "is to provide precise, comprehensive and helpful answers based on the "
    "recruitment data provided."
)

# (temperature, max_tokens) per intent
SAMPLING: Dict[QueryType, Tuple[float, int]] = {
    QueryType.RECRUITMENT: (0.5, 800),
    QueryType.GREETING: (0.7, 300),
    QueryType.HELP: (0.7, 300),
    QueryType.OFF_TOPIC: (0.3, 200),
    QueryType.UNCLEAR: (0.3, 200),
}

CRITERIA_TEMPERATURE = 0.1
CRITERIA_MAX_TOKENS = 300
RANKING_SAMPLING = (0.5, 1000)
JD_POOL_SIZE = 30
SKILLS_PREVIEW = 5

RECRUITMENT_RULES = """**RESPONSE RULES (Strictly Follow):**
1. **Synthesize, Don't Just List:** Interpret the data. If a candidate and a job are related, explain how.
2. **Prioritize Search Results:** The SEARCH RESULTS block is your primary source of truth.
3. **Comprehensive Answers:** For a candidate give name, email, phone, experience, score, status, salary, location and applied date when available.
4. **Acknowledge No Results:** If nothing was found for a specific request, say so clearly.
5. **Be Conversational & Professional.**
6. **Formatting:**
    - Use **bold** for candidate names and key terms.
    - Use bullet points for lists.
    - Format salaries as ₹X.XXL, scores as X/100 and dates as DD-MMM-YYYY.
7. **Be Concise:** Stay under 400 words. With many results, summarize and show the top 5-10."""

INTENT_RULES = {
    QueryType.GREETING: (
        "The user is greeting you. Reply warmly in two or three sentences, introduce "
        "yourself and mention that you can search candidates, jobs and clients."
    ),
    QueryType.HELP: (
        "The user wants to know what you can do. List your capabilities as short "
        "bullet points: search candidates by email, phone, name, skill, location, "
        "status, experience, score or salary; look up jobs by code; list clients "
        "and contacts; find similar candidates; match candidates to a pasted job "
        "description; report pipeline statistics. Give two example questions."
    ),
    QueryType.OFF_TOPIC: (
        "The question is not about recruitment. Politely say you can only help with "
        "recruitment data and suggest one thing the user could ask instead. Two "
        "sentences at most."
    ),
    QueryType.UNCLEAR: (
        "The message is too short or vague to act on. Ask one clarifying question "
        "and offer two example recruitment queries."
    ),
}

SUGGESTIONS = {
    "candidate_full_details": ["What is their interview status?", "Show similar candidates", "Which job did they apply for?"],
    "follow_up_candidate": ["Show similar candidates", "What is their expected salary?", "Top 10 candidates by score"],
    "job_details": ["Who applied for this job?", "Show active jobs", "Top 5 candidates for this role"],
    "jobs": ["Show active jobs", "Top 10 candidates by score", "List all clients"],
    "jobs_by_title": ["Show active jobs", "Who applied for these jobs?", "List all clients"],
    "recent_applications": ["Who's in screening status?", "Top 10 candidates by score", "Show active jobs"],
    "clients_and_contacts": ["Show active clients", "Show open jobs", "How many candidates have applied?"],
    "job_statuses": ["Who's in screening status?", "Which candidates have been selected?", "Show active jobs"],
    "no_results": ["Top 10 candidates by score", "Show all candidates", "What can you do?"],
}
DEFAULT_CANDIDATE_SUGGESTIONS = [
    "Top 10 candidates by score",
    "Which candidates have been selected?",
    "Candidates scoring above 80",
]
CONVERSATION_SUGGESTIONS = {
    QueryType.GREETING: ["Top 10 candidates by score", "How many total jobs are posted?", "What can you do?"],
    QueryType.HELP: ["Find candidate by email", "Candidates in Bangalore", "Who's in screening status?"],
    QueryType.OFF_TOPIC: ["What can you do?", "Top 10 candidates by score"],
    QueryType.UNCLEAR: ["Top 10 candidates by score", "Show active jobs", "What can you do?"],
}


def _format_score(score: Any) -> str:
    return f"{score:.0f}/100" if isinstance(score, (int, float)) else "N/A"


def _skills_preview(skills: Any) -> str:
    if isinstance(skills, (list, tuple)):
        items = [str(s) for s in skills]
    elif skills:
        items = [s.strip() for s in str(skills).split(",") if s.strip()]
    else:
        return "N/A"
    preview = ", ".join(items[:SKILLS_PREVIEW])
    if len(items) > SKILLS_PREVIEW:
        preview += f" (+{len(items) - SKILLS_PREVIEW} more)"
    return preview


def format_similar_candidates(
    candidates: Sequence[Dict[str, Any]],
    reference_name: Optional[str] = None,
) -> str:
    """
    Markdown list of similarity-ranked candidates.

    Each entry shows name, match percentage, score, experience, a skills
    preview, email and location.
    """
    if not candidates:
        return "I couldn't find any candidates with a similar profile."

    if reference_name:
        header = f"Here are candidates with a profile similar to **{reference_name}**:"
    else:
        header = f"I found {len(candidates)} candidates that closely match your search:"

    lines = [header, ""]
    for i, c in enumerate(candidates, start=1):
        match = c.get("similarity_score")
        match_text = f" ({match}% match)" if match is not None else ""
        lines.extend([
            f"{i}. **{c.get('name') or 'Unknown'}**{match_text}",
            f"   - Score: {_format_score(c.get('overall_score'))}",
            f"   - Experience: {c.get('experience') or 'N/A'}",
            f"   - Skills: {_skills_preview(c.get('skills'))}",
            f"   - Email: {c.get('email') or 'N/A'}",
            f"   - Location: {c.get('location') or 'N/A'}",
        ])
    return "\n".join(lines)


def format_jd_matches(matches: Sequence[Dict[str, Any]]) -> str:
    """Markdown list of candidates matched to a job description by vector similarity."""
    if not matches:
        return "I analyzed the job description but found no candidates above the match threshold."

    lines = [
        "I analyzed the job description. These candidates are the closest match:",
        "",
    ]
    for i, m in enumerate(matches, start=1):
        similarity = m.get("similarity") or 0.0
        lines.extend([
            f"{i}. **{m.get('name') or 'Unknown'}** ({similarity * 100:.1f}% match)",
            f"   - Email: {m.get('email') or 'N/A'}",
            f"   - Score: {_format_score(m.get('overall_score'))}",
        ])
    return "\n".join(lines)


def format_stats(stats: Dict[str, Any]) -> str:
    lines = [
        "GENERAL DATABASE STATISTICS:",
        f"- Total Jobs: {stats.get('total_jobs', 0)} | Total Candidates: {stats.get('total_candidates', 0)}"
        f" | Total Clients: {stats.get('total_clients', 0)} | Contacts: {stats.get('total_contacts', 0)}",
        f"- Average Candidate Score: {stats.get('average_candidate_score', 0)}/100",
        f"- Candidate Pipeline: {stats.get('screening', 0)} in Screening, "
        f"{stats.get('selected', 0)} Selected, {stats.get('rejected', 0)} Rejected",
    ]
    top_jobs = stats.get("top_jobs") or []
    if top_jobs:
        ranked = ", ".join(f"{j['title']} ({j['applications']})" for j in top_jobs)
        lines.append(f"- Most Applied Jobs: {ranked}")
    distribution = stats.get("status_distribution") or []
    if distribution:
        lines.append("- Status Distribution: " + ", ".join(f"{d['status']}: {d['count']}" for d in distribution))
    return "\n".join(lines)


def has_data(result: Optional[SearchResult]) -> bool:
    if result is None or result.data is None:
        return False
    if isinstance(result.data, dict):
        return any(value for value in result.data.values())
    return bool(result.data)


class AnswerSynthesizer:
    def __init__(self, llm: ChatCompletionClient, settings: Optional[Settings] = None):
        self.llm = llm
        self.settings = settings or get_settings()

    def _history_block(self, history: Sequence[Any]) -> str:
        recent = list(history or ())[-self.settings.history_window:]
        lines = []
        for turn in recent:
            speaker = "User" if turn_field(turn, "role") == "user" else "Assistant"
            lines.append(f"{speaker}: {turn_field(turn, 'content')}")
        return "\n".join(lines) if lines else "(no earlier messages)"

    def build_messages(
        self,
        query: str,
        classification: QueryClassification,
        search_result: Optional[SearchResult],
        stats: Optional[Dict[str, Any]],
        history: Sequence[Any] = (),
    ) -> List[Dict[str, str]]:
        """
        Assemble the [system, user] prompt for one reply.

        Conversational intents get the persona, history and their own short
        rules; recruitment queries also get statistics and the search
        results (or an explicit "no results" note).
        """
        sections = [PERSONA, "", "CONVERSATION HISTORY:", self._history_block(history), ""]

        if classification.type == QueryType.RECRUITMENT:
            sections.append("CURRENT DATABASE CONTEXT FOR THE USER'S QUERY:")
            sections.append(format_stats(stats or {}))
            if has_data(search_result):
                sections.append(
                    f'\nSEARCH RESULTS (Query: "{query}") (Search Type: {search_result.type}):\n'
                    + json.dumps(search_result.data, indent=2, default=str)
                )
            else:
                sections.append(
                    f'\nNOTE: The targeted database search for "{query}" returned no results. '
                    "Answer from the statistics and conversation history, and say clearly "
                    "that no specific records were found."
                )
            sections.extend([
                "",
                "**YOUR TASK:**",
                f'Answer the user\'s question ("{query}") using the SEARCH RESULTS. If they are '
                "empty, use the GENERAL DATABASE STATISTICS or say you couldn't find specific information.",
                "",
                RECRUITMENT_RULES,
            ])
        else:
            sections.append(INTENT_RULES[classification.type])

        return [
            {"role": "system", "content": "\n".join(sections)},
            {"role": "user", "content": query},
        ]

    async def synthesize(
        self,
        query: str,
        classification: QueryClassification,
        search_result: Optional[SearchResult] = None,
        stats: Optional[Dict[str, Any]] = None,
        history: Sequence[Any] = (),
    ) -> str:
        """
        Generate the reply text.

        Raises:
            GenerationError: when the chat model call fails
        """
        messages = self.build_messages(query, classification, search_result, stats, history)
        temperature, max_tokens = SAMPLING[classification.type]
        completion = await self.llm.complete(messages, temperature, max_tokens, call_site="answer")
        return completion.text

    # ==================== Job Description Ranking ====================

    async def extract_jd_criteria(self, jd_text: str) -> Dict[str, Any]:
        prompt = (
            "Analyze the following job description and extract the key recruitment "
            "criteria: essential skills, years of experience required and location.\n"
            "Return ONLY a valid JSON object with this structure:\n"
            '{"skills": ["skill1", "skill2"], "experience": 5, "location": "City"}\n\n'
            f"Job Description:\n---\n{jd_text}"
        )
        completion = await self.llm.complete(
            [
                {"role": "system", "content": "You extract structured hiring criteria and reply with JSON only."},
                {"role": "user", "content": prompt},
            ],
            temperature=CRITERIA_TEMPERATURE,
            max_tokens=CRITERIA_MAX_TOKENS,
            call_site="criteria",
        )
        criteria = parse_json_response(completion.text)
        logger.info(f"JD criteria extracted: {criteria}")
        return criteria

    async def rank_candidates_for_job_description(self, jd_text: str, store: RecruitmentStore) -> str:
        """
        Rank stored candidates against a pasted job description.

        The model extracts criteria, a pool of up to 30 candidates is drawn
        by the first required skill, and the model ranks the pool.

        Raises:
            MalformedResponseError: if the criteria are not valid JSON
            GenerationError: if either model call fails
        """
        criteria = await self.extract_jd_criteria(jd_text)
        skills = [str(s) for s in criteria.get("skills") or [] if s]

        sample = await store.candidate_sample(self.settings.candidate_sample_size)
        if skills:
            pool = [c for c in sample if candidate_matches(c, skills[0])][:JD_POOL_SIZE]
        else:
            pool = sample[:JD_POOL_SIZE]

        if not pool:
            return (
                "I've analyzed the job description, but I couldn't find any potential "
                "candidates in the database matching the initial criteria."
            )
        logger.info(f"JD ranking pool: {len(pool)} candidates")

        profile_fields = ("name", "email", "phone", "experience", "skills", "overall_score", "location", "status")
        profiles = [{k: c.get(k) for k in profile_fields} for c in pool]
        prompt = (
            "You are an expert HR recruitment specialist. Analyze the job description and "
            "rank the candidates by suitability.\n\n"
            "Give a concise ranking of the top 5 candidates. For each: a suitability score "
            "out of 100 and a 1-2 sentence justification covering key strengths and "
            "weaknesses against the JD. Format the output in Markdown.\n\n"
            f"---\nJOB DESCRIPTION:\n{jd_text}\n---\n"
            f"CANDIDATE PROFILES (JSON):\n{json.dumps(profiles, indent=2, default=str)}"
        )
        temperature, max_tokens = RANKING_SAMPLING
        completion = await self.llm.complete(
            [{"role": "system", "content": PERSONA}, {"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            call_site="ranking",
        )
        return (
            "I have analyzed the job description you provided. Here are the top candidates "
            "from our database that I believe are the best fit:\n\n" + completion.text
        )

    # ==================== Suggestions ====================

    def suggest_follow_ups(
        self,
        classification: QueryClassification,
        search_result: Optional[SearchResult] = None,
    ) -> List[str]:
        """Up to three short prompts the UI can offer as next questions."""
        if classification.type != QueryType.RECRUITMENT:
            return CONVERSATION_SUGGESTIONS[classification.type][:3]
        if search_result is None:
            return DEFAULT_CANDIDATE_SUGGESTIONS[:3]
        return SUGGESTIONS.get(search_result.type, DEFAULT_CANDIDATE_SUGGESTIONS)[:3]
