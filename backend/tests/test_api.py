"""
Tests for the HTTP API

The chat service is replaced through ``app.dependency_overrides`` so no
database or model API is touched.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from recruitchat.api.deps import get_chat_service, get_semantic_search
from recruitchat.main import app
from recruitchat.services.cache import ResponseCache
from recruitchat.services.chat import EMPTY_STATS, ChatReply
from recruitchat.services.llm import GenerationError


@pytest.fixture
def chat_service():
    service = MagicMock()
    service.cache = ResponseCache()
    service.send_message = AsyncMock(return_value=ChatReply(
        text="**Priya Sharma** knows Python.",
        suggestions=["Show similar candidates"],
        result_type="candidates_by_skill",
    ))
    service.clear_cache = MagicMock(return_value=4)
    service.get_all_jobs = AsyncMock(return_value=[{
        "id": "job-1",
        "job_id": "JD104",
        "title": "Python Developer",
        "status": "Active",
        "skills": ["Python"],
        "location": "Bangalore",
        "description": None,
        "client_owner": "Acme Corp",
        "posted_date": datetime(2024, 3, 1),
        "created_at": datetime(2024, 3, 1),
        "updated_at": datetime(2024, 3, 1),
    }])
    service.get_stats = AsyncMock(return_value=dict(EMPTY_STATS, total_jobs=2))
    return service


@pytest.fixture
def semantic_search():
    service = MagicMock()
    service.get_embedding_stats = AsyncMock(return_value={
        "total_candidates_embedded": 3,
        "total_jobs_embedded": 0,
        "total_tokens_used": 30,
        "total_cost_usd": 0.003,
        "last_generated": None,
    })
    service.search_similar_candidates = AsyncMock(return_value=[{
        "id": "cand-1",
        "name": "Priya Sharma",
        "email": "priya.sharma@example.com",
        "skills": ["Python", "AWS"],
        "overall_score": 85.0,
        "similarity_score": 92.4,
        "resume_text": "not part of the response",
    }])
    service.embed_all_candidates = AsyncMock(return_value={
        "total": 2, "success": 2, "failed": 0, "total_cost": 0.0004,
    })
    return service


@pytest.fixture
def client(chat_service, semantic_search):
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_semantic_search] = lambda: semantic_search
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestChatEndpoint:
    def test_send_message(self, client, chat_service):
        response = client.post("/api/chat", json={
            "message": "python candidates",
            "context_id": "job-1",
            "history": [{"role": "user", "content": "hi"}],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == "**Priya Sharma** knows Python."
        assert body["result_type"] == "candidates_by_skill"
        assert body["cached"] is False

        text, context_id, history = chat_service.send_message.call_args.args
        assert (text, context_id) == ("python candidates", "job-1")
        assert history[0].content == "hi"

    def test_empty_message_rejected(self, client):
        assert client.post("/api/chat", json={"message": ""}).status_code == 422

    def test_invalid_role_rejected(self, client):
        response = client.post("/api/chat", json={
            "message": "hi",
            "history": [{"role": "system", "content": "x"}],
        })
        assert response.status_code == 422

    def test_generation_error_maps_to_502(self, client, chat_service):
        chat_service.send_message.side_effect = GenerationError("rate limit reached")

        response = client.post("/api/chat", json={"message": "python candidates"})

        assert response.status_code == 502
        assert response.json()["detail"] == "Sorry, I encountered an error: rate limit reached"

    def test_clear_cache(self, client):
        response = client.delete("/api/chat/cache")

        assert response.status_code == 200
        assert response.json() == {"message": "Cache cleared", "entries_removed": 4}

    def test_cache_stats(self, client, chat_service):
        chat_service.cache.set("q", "a")
        chat_service.cache.get("q")

        stats = client.get("/api/chat/cache/stats").json()
        assert stats["hits"] == 1
        assert stats["entries"] == 1


class TestJobsAndStats:
    def test_list_jobs(self, client):
        body = client.get("/api/jobs").json()

        assert body["total"] == 1
        assert body["jobs"][0]["job_id"] == "JD104"

    def test_stats_include_cache(self, client):
        body = client.get("/api/stats").json()

        assert body["total_jobs"] == 2
        assert body["cache"]["entries"] == 0


class TestEmbeddingEndpoints:
    def test_embedding_stats(self, client):
        body = client.get("/api/embeddings/stats").json()
        assert body["total_candidates_embedded"] == 3

    def test_search(self, client, semantic_search):
        response = client.get("/api/embeddings/search", params={"q": "cloud engineer", "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["candidates"][0]["similarity_score"] == 92.4
        assert "resume_text" not in body["candidates"][0]
        semantic_search.search_similar_candidates.assert_awaited_once_with("cloud engineer", limit=5)

    def test_embed_candidates(self, client, semantic_search):
        response = client.post("/api/embeddings/candidates", json={"candidate_ids": ["cand-1", "cand-2"]})

        assert response.json()["success"] == 2
        semantic_search.embed_all_candidates.assert_awaited_once_with(["cand-1", "cand-2"])

    def test_unconfigured_semantic_search(self, client):
        app.dependency_overrides[get_semantic_search] = lambda: None
        assert client.get("/api/embeddings/stats").status_code == 503


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "chat_cache_hits_total" in response.text
