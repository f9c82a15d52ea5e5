"""
Tests for the Answer Synthesizer

Tests cover:
- Prompt assembly per intent
- Sampling parameters per call site
- Local templates (similar candidates, JD matches)
- Job description ranking, including malformed criteria JSON
- Follow-up suggestions
"""

import pytest
from unittest.mock import AsyncMock

from recruitchat.services.classifier import QueryClassification, QueryType
from recruitchat.services.llm import Completion, MalformedResponseError
from recruitchat.services.router import SearchResult
from recruitchat.services.synthesizer import (
    AnswerSynthesizer,
    PERSONA,
    SUGGESTIONS,
    format_jd_matches,
    format_similar_candidates,
    format_stats,
    has_data,
)

RECRUITMENT = QueryClassification(type=QueryType.RECRUITMENT, confidence=0.9)
GREETING = QueryClassification(type=QueryType.GREETING, confidence=1.0)
OFF_TOPIC = QueryClassification(type=QueryType.OFF_TOPIC, confidence=0.8)


@pytest.fixture
def synthesizer(mock_llm, settings):
    return AnswerSynthesizer(mock_llm, settings)


class TestBuildMessages:
    def test_recruitment_prompt_includes_results(self, synthesizer):
        result = SearchResult("candidates_by_skill", [{"name": "Priya Sharma"}], "skill")
        messages = synthesizer.build_messages("python candidates", RECRUITMENT, result, {"total_jobs": 2})

        system = messages[0]["content"]
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[1]["content"] == "python candidates"
        assert system.startswith(PERSONA)
        assert "Search Type: candidates_by_skill" in system
        assert '"name": "Priya Sharma"' in system
        assert "Total Jobs: 2" in system

    def test_recruitment_prompt_without_results(self, synthesizer):
        messages = synthesizer.build_messages("unicorn wranglers", RECRUITMENT, None, {})
        system = messages[0]["content"]

        assert "SEARCH RESULTS (" not in system
        assert "returned no results" in system

    def test_greeting_prompt_has_no_data_sections(self, synthesizer):
        messages = synthesizer.build_messages("hello", GREETING, None, None)
        system = messages[0]["content"]

        assert "greeting" in system
        assert "DATABASE CONTEXT" not in system

    def test_history_window(self, synthesizer):
        """Only the last six turns reach the prompt."""
        history = [{"role": "user", "content": f"message {i}"} for i in range(8)]
        system = synthesizer.build_messages("hello", GREETING, None, None, history)[0]["content"]

        assert "message 1\n" not in system
        assert "User: message 2" in system
        assert "User: message 7" in system

    def test_empty_history_placeholder(self, synthesizer):
        system = synthesizer.build_messages("hello", GREETING, None, None)[0]["content"]
        assert "(no earlier messages)" in system


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_recruitment_sampling(self, synthesizer, mock_llm):
        answer = await synthesizer.synthesize("python candidates", RECRUITMENT, None, {})

        assert answer == "Generated answer"
        args, kwargs = mock_llm.complete.call_args
        assert args[1:] == (0.5, 800)
        assert kwargs["call_site"] == "answer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("classification,sampling", [
        (GREETING, (0.7, 300)),
        (OFF_TOPIC, (0.3, 200)),
    ])
    async def test_conversational_sampling(self, synthesizer, mock_llm, classification, sampling):
        await synthesizer.synthesize("whatever", classification)
        args, _ = mock_llm.complete.call_args
        assert args[1:] == sampling


class TestTemplates:
    def test_similar_candidates_with_reference(self):
        text = format_similar_candidates(
            [{
                "name": "Anita Desai",
                "similarity_score": 81.5,
                "overall_score": 62.0,
                "experience": "8 years",
                "skills": ["Java", "Spring Boot", "Kafka", "SQL", "Docker", "AWS", "Git"],
                "email": "anita.desai@example.com",
                "location": None,
            }],
            reference_name="Priya Sharma",
        )

        assert "similar to **Priya Sharma**" in text
        assert "1. **Anita Desai** (81.5% match)" in text
        assert "Score: 62/100" in text
        assert "Java, Spring Boot, Kafka, SQL, Docker (+2 more)" in text
        assert "Location: N/A" in text

    def test_similar_candidates_free_text_header(self):
        text = format_similar_candidates([{"name": "Priya Sharma"}, {"name": "Rahul Verma"}])
        assert text.startswith("I found 2 candidates")

    def test_similar_candidates_empty(self):
        assert "couldn't find" in format_similar_candidates([])

    def test_jd_matches(self):
        text = format_jd_matches([
            {"name": "Priya Sharma", "email": "priya.sharma@example.com", "overall_score": 85, "similarity": 0.8234},
        ])
        assert "1. **Priya Sharma** (82.3% match)" in text
        assert "Score: 85/100" in text

    def test_jd_matches_empty(self):
        assert "no candidates above the match threshold" in format_jd_matches([])

    def test_format_stats(self):
        text = format_stats({
            "total_jobs": 2,
            "screening": 1,
            "top_jobs": [{"title": "Python Developer", "applications": 2}],
            "status_distribution": [{"status": "Interview", "count": 2}],
        })
        assert "1 in Screening" in text
        assert "Python Developer (2)" in text
        assert "Interview: 2" in text

    def test_has_data(self):
        assert not has_data(None)
        assert not has_data(SearchResult("no_results", None, "none"))
        assert not has_data(SearchResult("combined_keyword_search", {"candidates": [], "jobs": []}, "broad"))
        assert has_data(SearchResult("jobs", [{"job_id": "JD104"}], "jobs"))


class TestJobDescriptionRanking:
    JD = "We are hiring a Python engineer. Requirements: 5 years of Python and AWS."

    @pytest.mark.asyncio
    async def test_ranks_skill_pool(self, synthesizer, mock_llm, store):
        mock_llm.complete = AsyncMock(side_effect=[
            Completion(text='```json\n{"skills": ["Python"], "experience": 5, "location": "Bangalore"}\n```'),
            Completion(text="1. **Priya Sharma** - 90/100"),
        ])

        answer = await synthesizer.rank_candidates_for_job_description(self.JD, store)

        assert answer.startswith("I have analyzed the job description")
        assert "Priya Sharma" in answer
        ranking_call = mock_llm.complete.call_args_list[1]
        prompt = ranking_call.args[0][1]["content"]
        assert "priya.sharma@example.com" in prompt
        assert "anita.desai@example.com" not in prompt
        assert ranking_call.kwargs["temperature"] == 0.5
        assert ranking_call.kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_criteria_extraction_is_low_temperature(self, synthesizer, mock_llm):
        mock_llm.complete = AsyncMock(return_value=Completion(text='{"skills": []}'))
        await synthesizer.extract_jd_criteria(self.JD)
        assert mock_llm.complete.call_args.kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_malformed_criteria_raises(self, synthesizer, mock_llm, store):
        mock_llm.complete = AsyncMock(return_value=Completion(text="Sure! The skills are Python."))

        with pytest.raises(MalformedResponseError):
            await synthesizer.rank_candidates_for_job_description(self.JD, store)

    @pytest.mark.asyncio
    async def test_empty_pool_skips_ranking(self, synthesizer, mock_llm, store):
        mock_llm.complete = AsyncMock(return_value=Completion(text='{"skills": ["Cobol"]}'))

        answer = await synthesizer.rank_candidates_for_job_description(self.JD, store)

        assert "couldn't find any potential candidates" in answer
        assert mock_llm.complete.await_count == 1


class TestSuggestions:
    def test_conversation_suggestions(self, synthesizer):
        assert len(synthesizer.suggest_follow_ups(GREETING)) == 3
        assert synthesizer.suggest_follow_ups(OFF_TOPIC) == ["What can you do?", "Top 10 candidates by score"]

    def test_result_type_suggestions(self, synthesizer):
        result = SearchResult("jobs", [{"job_id": "JD104"}], "jobs")
        assert synthesizer.suggest_follow_ups(RECRUITMENT, result) == SUGGESTIONS["jobs"]

    def test_recent_applications_suggestions(self, synthesizer):
        result = SearchResult("recent_applications", [{"name": "Priya Sharma"}], "recent_applications")
        assert synthesizer.suggest_follow_ups(RECRUITMENT, result)[0] == "Who's in screening status?"

    def test_default_candidate_suggestions(self, synthesizer):
        result = SearchResult("candidates_by_skill", [{"name": "Priya Sharma"}], "skill")
        suggestions = synthesizer.suggest_follow_ups(RECRUITMENT, result)
        assert "Top 10 candidates by score" in suggestions
        assert len(suggestions) <= 3
