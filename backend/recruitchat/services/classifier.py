"""
Query Classifier - coarse intent detection for chat messages

Keyword and pattern heuristics, checked in fixed priority order:

    greeting -> help -> recruitment -> unclear -> off_topic

Only recruitment queries reach the retrieval router; the other types get a
short conversational answer. Confidence is a fixed score per branch and is
informational only.
"""

import re
from dataclasses import dataclass
from enum import Enum

from recruitchat.services.extractors import (
    extract_email,
    extract_job_id,
    extract_phone,
)


class QueryType(str, Enum):
    GREETING = "greeting"
    HELP = "help"
    RECRUITMENT = "recruitment"
    UNCLEAR = "unclear"
    OFF_TOPIC = "off_topic"


@dataclass(frozen=True)
class QueryClassification:
    type: QueryType
    confidence: float


GREETINGS = {
    "hi", "hello", "hey", "hii", "hiya", "howdy", "greetings", "yo",
    "good morning", "good afternoon", "good evening", "namaste",
}

HELP_KEYWORDS = {
    "help", "what can you do", "how do i", "how to use", "what do you do",
    "capabilities", "features", "guide", "instructions", "commands",
}

RECRUITMENT_KEYWORDS = {
    "candidate", "candidates", "job", "jobs", "position", "positions",
    "opening", "openings", "vacancy", "vacancies", "role", "roles",
    "resume", "resumes", "cv", "profile", "profiles", "applicant",
    "applicants", "application", "applications", "applied", "hire", "hiring",
    "hired", "recruit", "recruitment", "interview", "interviews",
    "screening", "selected", "rejected", "offered", "offer", "shortlist",
    "shortlisted", "client", "clients", "contact", "contacts", "skill",
    "skills", "experience", "salary", "ctc", "lpa", "score", "status",
    "talent", "developer", "developers", "engineer", "engineers",
    "pipeline", "notice period", "top", "similar",
}

# Topics that are clearly not recruitment even in a two or three word message
OFF_TOPIC_KEYWORDS = {
    "weather", "joke", "jokes", "movie", "movies", "song", "songs", "music",
    "cricket", "football", "sports", "news", "recipe", "cook", "politics",
    "stock", "stocks", "bitcoin", "game", "games", "travel", "holiday",
}

_PROPER_NOUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b")
_WORD_RE = re.compile(r"[a-z0-9+#.']+")

MAX_NAME_QUERY_WORDS = 5
MAX_UNCLEAR_WORDS = 3


def _has_keyword(text: str, words: set, keywords: set) -> bool:
    for keyword in keywords:
        if " " in keyword:
            if keyword in text:
                return True
        elif keyword in words:
            return True
    return False


def classify_query(message: str) -> QueryClassification:
    """
    Classify a chat message.

    Args:
        message: Raw user message

    Returns:
        QueryClassification with type and heuristic confidence

    Examples:
        >>> classify_query("hello").type
        <QueryType.GREETING: 'greeting'>
        >>> classify_query("ok").type
        <QueryType.UNCLEAR: 'unclear'>
    """
    raw = (message or "").strip()
    text = re.sub(r"\s+", " ", raw.lower())
    stripped = text.rstrip("!?.,")
    words = set(_WORD_RE.findall(text))
    word_count = len(text.split())

    # 1. Greeting: exact phrase or phrase prefix ("hi there", "hello!")
    if stripped in GREETINGS or any(
        stripped.startswith(greeting + " ") or stripped.startswith(greeting + ",")
        for greeting in GREETINGS
    ):
        # "hi, show me python candidates" is a recruitment query with a greeting
        if not _has_keyword(text, words, RECRUITMENT_KEYWORDS):
            return QueryClassification(QueryType.GREETING, 1.0)

    # 2. Help
    if _has_keyword(text, words, HELP_KEYWORDS):
        return QueryClassification(QueryType.HELP, 0.9)

    # 3. Recruitment by keyword or identifier
    if (
        _has_keyword(text, words, RECRUITMENT_KEYWORDS)
        or extract_email(raw)
        or extract_phone(raw)
        or extract_job_id(raw)
    ):
        return QueryClassification(QueryType.RECRUITMENT, 0.9)

    # 3b. Recruitment by name: "Priya Sharma", "details of Rahul Verma"
    if word_count <= MAX_NAME_QUERY_WORDS and _PROPER_NOUN_RE.search(raw):
        return QueryClassification(QueryType.RECRUITMENT, 0.7)

    # 4. Too short to tell, unless it names an unrelated topic
    if word_count <= MAX_UNCLEAR_WORDS and not (words & OFF_TOPIC_KEYWORDS):
        return QueryClassification(QueryType.UNCLEAR, 0.5)

    return QueryClassification(QueryType.OFF_TOPIC, 0.8)
