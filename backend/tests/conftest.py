"""
Shared fixtures: a throwaway SQLite database seeded with a small
recruitment dataset, plus settings that never touch a real API key.
"""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from recruitchat.config import Settings
from recruitchat.database import create_session_factory, init_db
from recruitchat.models import Candidate, Client, ClientContact, Job, JobStatus
from recruitchat.services.llm import Completion
from recruitchat.services.store import RecruitmentStore


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        database_url="sqlite:///:memory:",
        embedding_delay_ms=0,
    )


@pytest.fixture
async def session_factory(tmp_path):
    factory = create_session_factory(f"sqlite:///{tmp_path / 'recruitment.db'}")
    await init_db(factory)
    yield factory
    await factory.kw["bind"].dispose()


@pytest.fixture
async def empty_store(session_factory):
    return RecruitmentStore(session_factory)


def make_jobs():
    return [
        Job(
            id="job-1",
            job_id="JD104",
            title="Python Developer",
            status="Active",
            skills=["Python", "AWS", "Django"],
            location="Bangalore",
            client_owner="Acme Corp",
            posted_date=datetime(2024, 3, 1),
        ),
        Job(
            id="job-2",
            job_id="HRM22",
            title="React Developer",
            status="Closed",
            skills=["React", "JavaScript"],
            location="Chennai",
            client_owner="Globex",
            posted_date=datetime(2024, 2, 1),
        ),
    ]


def make_candidates():
    return [
        Candidate(
            id="cand-1",
            job_id="job-1",
            name="Priya Sharma",
            email="priya.sharma@example.com",
            phone="9876543210",
            status="Screening",
            location="Bangalore",
            skills=["Python", "AWS"],
            experience="5 years 6 months",
            resume_text="Backend engineer building Django services on AWS.",
            overall_score=85.0,
            expected_salary=1_800_000,
            applied_date=datetime(2024, 3, 5),
        ),
        Candidate(
            id="cand-2",
            job_id="job-2",
            name="Rahul Verma",
            email="rahul.verma@example.com",
            phone="9123456780",
            status="Interview",
            interview_result="Selected",
            location="Chennai",
            skills=["React", "JavaScript"],
            experience="3 years",
            resume_text="Frontend developer shipping React and Redux apps.",
            overall_score=78.0,
            expected_salary=1_200_000,
            applied_date=datetime(2024, 2, 10),
        ),
        Candidate(
            id="cand-3",
            job_id="job-1",
            name="Anita Desai",
            email="anita.desai@example.com",
            phone="9988776655",
            status="Interview",
            interview_result="Rejected",
            location="Hyderabad",
            skills=["Java", "Spring Boot"],
            experience="8 years",
            resume_text="Java backend specialist working with microservices.",
            overall_score=62.0,
            expected_salary=2_500_000,
            applied_date=datetime(2024, 3, 2),
        ),
    ]


def make_clients():
    return [
        Client(id="client-1", client_name="Acme Corp", status="active"),
        Client(id="client-2", client_name="Globex", status="inactive"),
        ClientContact(id="contact-1", client_id="client-1", name="Meera Iyer", email="meera@acme.example"),
        ClientContact(id="contact-2", client_id="client-2", name="John Mathew", email="john@globex.example"),
        JobStatus(id=1, name="Active", display_order=1),
        JobStatus(id=2, name="On Hold", display_order=2),
        JobStatus(id=3, name="Closed", display_order=3),
    ]


@pytest.fixture
async def store(session_factory):
    """RecruitmentStore over two jobs, three candidates and two clients."""
    async with session_factory() as session:
        session.add_all(make_jobs() + make_candidates() + make_clients())
        await session.commit()
    return RecruitmentStore(session_factory)


@pytest.fixture
def mock_llm():
    """ChatCompletionClient stand-in that always answers "Generated answer"."""
    llm = AsyncMock()
    llm.complete = AsyncMock(return_value=Completion(text="Generated answer", prompt_tokens=10, completion_tokens=5))
    return llm
