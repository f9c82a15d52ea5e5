"""
Tests for Query Classifier

Priority order: greeting -> help -> recruitment -> unclear -> off_topic.
"""

import pytest

from recruitchat.services.classifier import QueryType, classify_query


class TestClassifyQuery:
    def test_greeting(self):
        result = classify_query("hello")
        assert result.type == QueryType.GREETING
        assert result.confidence == 1.0

    @pytest.mark.parametrize("message", ["Hi there!", "good morning", "hey, how are you"])
    def test_greeting_prefix(self, message):
        assert classify_query(message).type == QueryType.GREETING

    def test_greeting_with_recruitment_request_is_recruitment(self):
        assert classify_query("hi, show me python candidates").type == QueryType.RECRUITMENT

    def test_help(self):
        result = classify_query("what can you do?")
        assert result.type == QueryType.HELP
        assert result.confidence == 0.9

    def test_recruitment_by_keyword(self):
        result = classify_query("show me candidates with Python skills")
        assert result.type == QueryType.RECRUITMENT
        assert result.confidence == 0.9

    @pytest.mark.parametrize("message", [
        "priya.sharma@example.com",
        "9876543210",
        "JD104",
    ])
    def test_recruitment_by_identifier(self, message):
        assert classify_query(message).type == QueryType.RECRUITMENT

    def test_recruitment_by_name(self):
        result = classify_query("Priya Sharma")
        assert result.type == QueryType.RECRUITMENT
        assert result.confidence == 0.7

    def test_unclear(self):
        result = classify_query("ok")
        assert result.type == QueryType.UNCLEAR
        assert result.confidence == 0.5

    def test_short_off_topic(self):
        assert classify_query("what's the weather").type == QueryType.OFF_TOPIC

    def test_long_off_topic(self):
        result = classify_query("can you recommend a good restaurant for dinner tonight")
        assert result.type == QueryType.OFF_TOPIC
        assert result.confidence == 0.8

    def test_deterministic(self):
        message = "who's in screening"
        assert classify_query(message) == classify_query(message)
