"""
Pattern Extractors - structured signals from free-text recruiter queries

Every extractor takes the raw query (or conversation history), returns an
optional value and never raises. Extractors are independent: several may
fire on the same message and the retrieval router decides which one wins.

Extractors:
    - extract_email / extract_phone / extract_job_id: identifiers
    - extract_experience / extract_salary / extract_score: numeric thresholds
    - extract_skill / extract_job_title / extract_location: vocabulary lookups
    - extract_requested_count / extract_top_n_criteria: result-size requests
    - extract_name_from_query / extract_name_from_history: person names
    - parse_experience_years: "5 years 6 months" -> 5.5
    - is_job_description: long pasted JD detection
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from recruitchat.services.similarity import normalize_text

MIN_REQUESTED_COUNT = 1
MAX_REQUESTED_COUNT = 100
LAKH = 100_000

SKILL_KEYWORDS: List[str] = [
    "javascript", "typescript", "react", "react native", "angular", "vue",
    "node", "node.js", "express", "next.js", "html", "css",
    "python", "django", "flask", "fastapi", "java", "spring boot", "kotlin",
    "swift", "golang", "rust", "c++", "c#", ".net", "php", "ruby",
    "sql", "mysql", "postgresql", "mongodb", "redis",
    "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "devops",
    "machine learning", "deep learning", "data science", "data engineering",
    "nlp", "tensorflow", "pytorch", "pandas", "power bi", "tableau",
    "dialogflow", "playwright", "selenium", "cypress", "servicenow",
    "salesforce", "sap", "figma", "excel",
]

JOB_TITLE_KEYWORDS: List[str] = [
    "software engineer", "software developer", "developer", "engineer",
    "frontend developer", "backend developer", "full stack developer",
    "java developer", "python developer", "react developer",
    "devops engineer", "qa engineer", "test engineer", "automation engineer",
    "data scientist", "data analyst", "data engineer", "business analyst",
    "project manager", "product manager", "scrum master", "architect",
    "solution architect", "ui ux designer", "designer", "consultant",
    "recruiter", "hr executive", "sales executive", "account manager",
    "team lead", "tester",
]

# Canonical city -> aliases recruiters actually type
LOCATION_KEYWORDS: Mapping[str, Sequence[str]] = {
    "bangalore": ("bangalore", "bengaluru", "blr"),
    "chennai": ("chennai", "madras"),
    "hyderabad": ("hyderabad", "hyd"),
    "pune": ("pune",),
    "mumbai": ("mumbai", "bombay"),
    "delhi": ("delhi", "new delhi", "ncr"),
    "noida": ("noida",),
    "gurgaon": ("gurgaon", "gurugram"),
    "kolkata": ("kolkata", "calcutta"),
    "coimbatore": ("coimbatore",),
    "kochi": ("kochi", "cochin"),
    "ahmedabad": ("ahmedabad",),
}

# Capitalized words that start sentences or name things other than people
NAME_STOP_WORDS = {
    "show", "find", "get", "list", "give", "tell", "search", "who", "what",
    "which", "where", "when", "how", "is", "are", "the", "a", "an", "me",
    "all", "top", "best", "candidate", "candidates", "job", "jobs", "client",
    "clients", "status", "email", "phone", "score", "skills", "experience",
    "location", "salary", "similar", "like", "to", "profile", "profiles",
    "details", "about", "hi", "hello", "hey", "please", "thanks", "can", "you",
    "i", "we", "my", "our", "and", "or", "for", "of", "in", "with",
    "selected", "rejected", "screening", "interview", "offered", "applied",
    "name", "summary", "note", "found", "here", "there", "total",
}

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.\w+")
_PHONE_RE = re.compile(r"(\+91)?[\s-]?([6-9]\d{9})\b")
_JOB_ID_RE = re.compile(r"\b([A-Za-z]{2,4})(\d+)\b")
# Letter prefixes that look like job codes but are something else
_JOB_ID_EXCLUDED_PREFIXES = {"top", "ec", "es", "web", "py", "lpa", "yrs", "yr", "gpt", "fy", "ver"}

_EXPERIENCE_RE = re.compile(
    r"(?:(above|more than|over|greater than|>)|(less than|below|under|<))"
    r"\s*(\d+)\s*\+?\s*(?:years?|yrs?)",
    re.IGNORECASE,
)
_SALARY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:lakhs?|lpa|l)\b", re.IGNORECASE)
_SCORE_RE = re.compile(
    r"scor(?:e|es|ed|ing)\s*(?:of\s*)?(above|below|over|under|greater than|less than|more than|>|<)\s*(\d+)",
    re.IGNORECASE,
)
_COUNT_PATTERNS = [
    re.compile(r"\btop\s+(\d+)\b", re.IGNORECASE),
    re.compile(r"\b(?:show|list|give|find|get|first|best)\s+(?:me\s+)?(\d+)\b", re.IGNORECASE),
    re.compile(
        r"\b(\d+)\s+(?:candidates?|profiles?|people|persons?|results?|jobs?|resumes?|applicants?)\b",
        re.IGNORECASE,
    ),
]
_TOP_N_CRITERIA_RE = re.compile(
    r"\btop\s+(\d+)\s+(?:candidates?\s+|profiles?\s+|people\s+|resumes?\s+)?(?:of|for|in|with)\s+(.+)$",
    re.IGNORECASE,
)
_YEARS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|yrs?)", re.IGNORECASE)
_MONTHS_RE = re.compile(r"(\d+)\s*(?:months?|mos?)", re.IGNORECASE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_CAPITALIZED_RUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b")
_SIMILAR_TO_RE = re.compile(
    r"\b(?:similar to|like|same as)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})"
)

JD_MIN_LENGTH = 250
JD_KEYWORDS = ("responsibilities", "requirements", "skills", "experience", "qualifications")


@dataclass(frozen=True)
class ExperienceFilter:
    years: int
    operator: str  # "gt" | "lt"


@dataclass(frozen=True)
class SalaryFilter:
    amount: int
    operator: str


@dataclass(frozen=True)
class ScoreFilter:
    score: int
    operator: str


def extract_email(query: str) -> Optional[str]:
    match = _EMAIL_RE.search(query or "")
    return match.group(0) if match else None


def extract_phone(query: str) -> Optional[str]:
    """Indian mobile number (optional +91), returned as the bare 10 digits."""
    match = _PHONE_RE.search(query or "")
    return match.group(2) if match else None


def extract_job_id(query: str) -> Optional[str]:
    """Job code such as "jd104" or "HRM22", normalized to uppercase."""
    # Email local parts ("john23@...") look like job codes
    text = _EMAIL_RE.sub(" ", query or "")
    for letters, digits in _JOB_ID_RE.findall(text):
        # "html5" and "vue3" are versioned skills
        if letters.lower() in _JOB_ID_EXCLUDED_PREFIXES or letters.lower() in SKILL_KEYWORDS:
            continue
        return f"{letters}{digits}".upper()
    return None


def extract_experience(query: str) -> Optional[ExperienceFilter]:
    match = _EXPERIENCE_RE.search(query or "")
    if not match:
        return None
    operator = "gt" if match.group(1) else "lt"
    return ExperienceFilter(years=int(match.group(3)), operator=operator)


def extract_salary(query: str) -> Optional[SalaryFilter]:
    """"above 10 lpa" -> SalaryFilter(1_000_000, "gt")."""
    match = _SALARY_RE.search(query or "")
    if not match:
        return None
    amount = int(round(float(match.group(1)) * LAKH))
    lowered = query.lower()
    operator = "lt" if "below" in lowered or "under" in lowered else "gt"
    return SalaryFilter(amount=amount, operator=operator)


def extract_score(query: str) -> Optional[ScoreFilter]:
    match = _SCORE_RE.search(query or "")
    if not match:
        return None
    comparator = match.group(1).lower()
    operator = "lt" if comparator in ("below", "under", "less than", "<") else "gt"
    return ScoreFilter(score=int(match.group(2)), operator=operator)


def _longest_vocabulary_match(query: str, vocabulary: Sequence[str]) -> Optional[str]:
    normalized = normalize_text(query)
    best: Optional[str] = None
    for term in vocabulary:
        # Whole words only, with an optional plural ("developers", "data scientists")
        pattern = rf"(?<!\S){re.escape(normalize_text(term))}(?:e?s)?(?!\S)"
        if re.search(pattern, normalized):
            if best is None or len(term) > len(best):
                best = term
    return best


def extract_skill(query: str) -> Optional[str]:
    """Longest skill from SKILL_KEYWORDS present as whole words."""
    return _longest_vocabulary_match(query, SKILL_KEYWORDS)


def extract_job_title(query: str) -> Optional[str]:
    """Longest title from JOB_TITLE_KEYWORDS present as whole words."""
    return _longest_vocabulary_match(query, JOB_TITLE_KEYWORDS)


def extract_location(query: str) -> Optional[str]:
    """Canonical city name for the first alias found in the query."""
    padded = f" {normalize_text(query)} "
    for city, aliases in LOCATION_KEYWORDS.items():
        if any(f" {alias} " in padded for alias in aliases):
            return city
    return None


def _valid_count(value: str) -> Optional[int]:
    count = int(value)
    if MIN_REQUESTED_COUNT <= count <= MAX_REQUESTED_COUNT:
        return count
    return None


def extract_requested_count(query: str) -> Optional[int]:
    """
    Explicit result-count request: "top 10", "15 candidates", "show me 5".

    Returns:
        The count if it lies in [1, 100], otherwise None ("top 500" -> None)
    """
    for pattern in _COUNT_PATTERNS:
        match = pattern.search(query or "")
        if match:
            return _valid_count(match.group(1))
    return None


def extract_top_n_criteria(query: str) -> Optional[Tuple[Optional[int], str]]:
    """
    Parse "top N of/for X" into (N, X).

    N is None when out of range; X has trailing filler words removed.
    Returns None when the phrase is absent or X is empty.
    """
    match = _TOP_N_CRITERIA_RE.search((query or "").strip())
    if not match:
        return None

    criterion = normalize_text(match.group(2))
    criterion = re.sub(
        r"\b(candidates?|profiles?|people|skills?|experience|resumes?)\b", " ", criterion
    )
    criterion = " ".join(criterion.split())
    if not criterion:
        return None

    return _valid_count(match.group(1)), criterion


def parse_experience_years(text: Optional[str]) -> float:
    """
    Convert a free-text duration into years.

    "5 years 6 months" -> 5.5, "18 months" -> 1.5, "" -> 0.0
    """
    if not text:
        return 0.0
    years_match = _YEARS_RE.search(text)
    months_match = _MONTHS_RE.search(text)
    years = float(years_match.group(1)) if years_match else 0.0
    months = int(months_match.group(1)) if months_match else 0
    return years + months / 12


def _looks_like_name(phrase: str) -> bool:
    words = phrase.split()
    if not 1 <= len(words) <= 4:
        return False
    for word in words:
        if not word.isalpha() or not word[0].isupper():
            return False
        if word.lower() in NAME_STOP_WORDS:
            return False
        if normalize_text(word) in SKILL_KEYWORDS or normalize_text(word) in LOCATION_KEYWORDS:
            return False
    return True


def extract_name_from_query(query: str) -> Optional[str]:
    """
    Proper-noun heuristic for person names in the current message.

    "similar to Priya Sharma" and "like Rahul" are tried first; otherwise
    the first run of two or more capitalized words that are not stop words,
    skills or cities is returned.
    """
    if not query:
        return None

    similar = _SIMILAR_TO_RE.search(query)
    if similar:
        words = similar.group(1).split()
        # Drop trailing non-name words ("like Rahul Profile")
        while words and not _looks_like_name(" ".join(words)):
            words = words[:-1]
        if words:
            return " ".join(words)

    for match in _CAPITALIZED_RUN_RE.finditer(query):
        words = [w for w in match.group(0).split() if w.lower() not in NAME_STOP_WORDS]
        phrase = " ".join(words)
        if len(words) >= 2 and _looks_like_name(phrase):
            return phrase
    return None


def turn_field(turn: Any, key: str) -> str:
    if isinstance(turn, Mapping):
        return turn.get(key) or ""
    return getattr(turn, key, "") or ""


def extract_name_from_history(history: Sequence[Any], turns: int = 3) -> Optional[str]:
    """
    Name of the candidate most recently discussed by the assistant.

    Scans the last ``turns`` assistant messages, newest first, for a
    **bold** span that looks like a person name. Turns may be dicts or
    objects with ``role``/``content`` attributes.
    """
    assistant_turns = [t for t in history or () if turn_field(t, "role") == "assistant"]
    for turn in reversed(assistant_turns[-turns:]):
        for span in _BOLD_RE.findall(turn_field(turn, "content")):
            candidate = span.strip().rstrip(":").strip()
            if _looks_like_name(candidate):
                return candidate
    return None


def is_job_description(message: str) -> bool:
    """A pasted job description: long text with typical JD section words."""
    if not message or len(message) <= JD_MIN_LENGTH:
        return False
    lowered = message.lower()
    return any(keyword in lowered for keyword in JD_KEYWORDS)
