"""
Candidate Model - SQLAlchemy ORM model for job applicants

One row per application: a person who applied to two jobs appears twice,
each row pointing at its job through ``job_id``.

Status Columns:
    status            pipeline stage (Screening, Interview, Offered, ...)
    interview_result  outcome after interviews (Selected, Rejected)
"""

from sqlalchemy import Column, String, Float, Text, DateTime, JSON
from sqlalchemy.sql import func
from recruitchat.database import Base
import uuid


class Candidate(Base):
    """
    Candidate application with AI resume scoring.

    Attributes:
        id: UUID primary key
        job_id: ``hr_jobs.id`` of the job applied to (nullable)
        name/email/phone: Identity fields (email assumed unique, not enforced)
        status: Pipeline stage (indexed)
        interview_result: Interview outcome (indexed)
        location: Current city
        skills: JSON list of skill names
        experience: Free-text duration, e.g. "5 years 6 months"
        resume_text: Extracted resume text
        overall_score: Resume score 0-100 (nullable)
        expected_salary: Expected CTC in rupees (nullable)
    """

    __tablename__ = "hr_job_candidates"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String, nullable=True, index=True)
    name = Column(String(500), nullable=False)
    email = Column(String(500), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    status = Column(String(50), nullable=True, index=True)
    interview_result = Column(String(50), nullable=True, index=True)
    location = Column(String(500), nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    experience = Column(Text, nullable=True)
    resume_text = Column(Text, nullable=True)
    overall_score = Column(Float, nullable=True)
    expected_salary = Column(Float, nullable=True)
    applied_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
