"""
Job Model - SQLAlchemy ORM model for job postings

``id`` is the internal UUID; ``job_id`` is the human-facing code recruiters
type into the chat (e.g. "JD104", "HRM22").
"""

from sqlalchemy import Column, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from recruitchat.database import Base
import uuid


class Job(Base):
    """
    Job posting entity.

    Attributes:
        id: UUID primary key
        job_id: Job code, 2-4 letters followed by digits (unique)
        title: Job title
        status: Posting status (Active, Open, Closed, On Hold)
        skills: JSON list of required skills
        location: Job location
        description: Full job description text
        client_owner: Client company the job belongs to
        posted_date: When the job was published
    """

    __tablename__ = "hr_jobs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String(20), nullable=False, unique=True, index=True)
    title = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="Active", index=True)
    skills = Column(JSON, nullable=False, default=list)
    location = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    client_owner = Column(String(500), nullable=True)
    posted_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
