"""
Tests for Pattern Extractors

Tests cover:
- Identifier extraction (email, phone, job code)
- Numeric thresholds (experience, salary, score)
- Vocabulary lookups with longest-match precedence
- Requested result counts and "top N of X" parsing
- Name extraction from the query and from conversation history
- Job description detection
"""

import pytest

from recruitchat.services.extractors import (
    ExperienceFilter,
    SalaryFilter,
    ScoreFilter,
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
    is_job_description,
    parse_experience_years,
)


class TestIdentifiers:
    """Test email, phone and job code extraction."""

    @pytest.mark.parametrize("query,expected", [
        ("Find candidate: harsha.6962@gmail.com", "harsha.6962@gmail.com"),
        ("details for priya.sharma@example.com please", "priya.sharma@example.com"),
        ("email a_b-c@mail.co.in and more", "a_b-c@mail.co.in"),
    ])
    def test_extract_email_returns_exact_substring(self, query, expected):
        """Should return exactly the email-shaped substring."""
        assert extract_email(query) == expected

    @pytest.mark.parametrize("query", ["show python candidates", "email me", "at example.com", ""])
    def test_extract_email_none_without_email(self, query):
        assert extract_email(query) is None

    def test_extract_phone_bare_digits(self):
        assert extract_phone("Search phone: 9700226962") == "9700226962"

    def test_extract_phone_strips_country_code(self):
        assert extract_phone("call +91 9876543210") == "9876543210"
        assert extract_phone("call +91-9876543210") == "9876543210"

    def test_extract_phone_rejects_non_mobile(self):
        """Indian mobiles start with 6-9."""
        assert extract_phone("ticket 1234567890") is None

    def test_extract_job_id_uppercases(self):
        assert extract_job_id("who applied to jd104?") == "JD104"

    def test_extract_job_id_ignores_email_local_part(self):
        assert extract_job_id("find john23@example.com") is None

    def test_extract_job_id_skips_excluded_prefixes(self):
        """'top10' is a count, not a job code."""
        assert extract_job_id("top10 candidates") is None

    @pytest.mark.parametrize("query", [
        "candidates with html5",
        "vue3 developers",
        "experience with gpt4",
        "hires planned for fy24",
    ])
    def test_extract_job_id_skips_versions(self, query):
        """Versioned skills and fiscal years are not job codes."""
        assert extract_job_id(query) is None

    def test_extract_job_id_next_to_versioned_skill(self):
        assert extract_job_id("html5 candidates for hrm22") == "HRM22"

    def test_extract_job_id_none(self):
        assert extract_job_id("show all candidates") is None


class TestThresholds:
    """Test numeric filter extraction."""

    @pytest.mark.parametrize("query,expected", [
        ("candidates with more than 5 years", ExperienceFilter(5, "gt")),
        ("experience above 3 yrs", ExperienceFilter(3, "gt")),
        ("less than 2 years experience", ExperienceFilter(2, "lt")),
        ("under 10 years", ExperienceFilter(10, "lt")),
    ])
    def test_extract_experience(self, query, expected):
        assert extract_experience(query) == expected

    def test_extract_experience_needs_comparator(self):
        assert extract_experience("5 years experience") is None

    def test_extract_salary_lakhs(self):
        assert extract_salary("expecting salary below 20L") == SalaryFilter(2_000_000, "lt")

    def test_extract_salary_defaults_to_gt(self):
        assert extract_salary("salary 12.5 lpa") == SalaryFilter(1_250_000, "gt")

    def test_extract_salary_none(self):
        assert extract_salary("salary expectations") is None

    @pytest.mark.parametrize("query,expected", [
        ("score above 80", ScoreFilter(80, "gt")),
        ("Candidates scoring above 80", ScoreFilter(80, "gt")),
        ("score below 50", ScoreFilter(50, "lt")),
        ("score < 40", ScoreFilter(40, "lt")),
    ])
    def test_extract_score(self, query, expected):
        assert extract_score(query) == expected


class TestVocabulary:
    """Test skill, title and location lookups."""

    def test_longest_skill_wins(self):
        """'react native' should beat 'react'."""
        assert extract_skill("any react native developers?") == "react native"

    def test_java_not_inside_javascript(self):
        assert extract_skill("javascript candidates") == "javascript"

    def test_skill_with_punctuation(self):
        assert extract_skill("who knows Node.js?") == "node.js"

    def test_skill_none(self):
        assert extract_skill("who is in screening") is None

    def test_job_title_longest_match(self):
        assert extract_job_title("need a senior python developer") == "python developer"

    @pytest.mark.parametrize("query,expected", [
        ("show me data scientists", "data scientist"),
        ("list all developers", "developer"),
        ("any testers available", "tester"),
        ("need two python developers", "python developer"),
    ])
    def test_job_title_plural(self, query, expected):
        assert extract_job_title(query) == expected

    def test_skill_plural(self):
        assert extract_skill("good with databases and dockers") == "docker"

    def test_plural_needs_whole_word(self):
        """A plural suffix never splits a longer word."""
        assert extract_skill("javascripts") == "javascript"
        assert extract_skill("reactive forms") is None

    def test_location_alias(self):
        assert extract_location("candidates in Bengaluru") == "bangalore"

    def test_location_none(self):
        assert extract_location("candidates in london") is None


class TestCounts:
    """Test requested count parsing."""

    @pytest.mark.parametrize("query,expected", [
        ("Top 10 candidates by score", 10),
        ("show me 5 profiles", 5),
        ("15 candidates with react", 15),
        ("first 3", 3),
    ])
    def test_extract_requested_count(self, query, expected):
        assert extract_requested_count(query) == expected

    @pytest.mark.parametrize("query", ["top 500 candidates", "top 0 candidates", "show candidates"])
    def test_extract_requested_count_out_of_range_or_absent(self, query):
        """Counts outside [1, 100] are ignored."""
        assert extract_requested_count(query) is None

    def test_top_n_criteria(self):
        assert extract_top_n_criteria("top 5 candidates for python") == (5, "python")

    def test_top_n_criteria_strips_filler(self):
        assert extract_top_n_criteria("Top 3 of data science profiles") == (3, "data science")

    def test_top_n_criteria_out_of_range_count(self):
        assert extract_top_n_criteria("top 500 for java") == (None, "java")

    def test_top_n_criteria_absent(self):
        assert extract_top_n_criteria("top 5 candidates") is None


class TestNames:
    """Test person-name heuristics."""

    def test_name_from_similar_to(self):
        assert extract_name_from_query("find candidates similar to Priya Sharma") == "Priya Sharma"

    def test_name_from_capitalized_run(self):
        assert extract_name_from_query("Show Rahul Verma details") == "Rahul Verma"

    def test_name_ignores_vocabulary(self):
        """Capitalized skills and cities are not names."""
        assert extract_name_from_query("Python Bangalore") is None

    def test_name_from_history_latest_assistant_turn(self):
        history = [
            {"role": "user", "content": "priya.sharma@example.com"},
            {"role": "assistant", "content": "**Priya Sharma** is in Screening."},
            {"role": "user", "content": "and rahul?"},
            {"role": "assistant", "content": "**Rahul Verma** was Selected."},
        ]
        assert extract_name_from_history(history) == "Rahul Verma"

    def test_name_from_history_skips_non_name_bold(self):
        history = [
            {"role": "assistant", "content": "**Anita Desai** applied."},
            {"role": "assistant", "content": "**Summary:** 3 candidates found"},
        ]
        assert extract_name_from_history(history) == "Anita Desai"

    def test_name_from_history_empty(self):
        assert extract_name_from_history([]) is None


class TestMisc:
    def test_parse_experience_years(self):
        assert parse_experience_years("5 years 6 months") == pytest.approx(5.5)
        assert parse_experience_years("18 months") == pytest.approx(1.5)
        assert parse_experience_years("") == 0.0
        assert parse_experience_years(None) == 0.0

    def test_is_job_description(self):
        jd = "We are hiring a backend engineer. Responsibilities: " + "build APIs. " * 30
        assert is_job_description(jd)

    def test_short_message_is_not_job_description(self):
        assert not is_job_description("skills of priya")

    def test_long_message_without_keywords_is_not_job_description(self):
        assert not is_job_description("hello " * 60)
