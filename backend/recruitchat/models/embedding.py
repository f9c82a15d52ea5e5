"""
Embedding Models - vector storage for semantic search

Vectors are stored as JSON arrays (1536 floats for text-embedding-3-small)
and compared in-process with numpy; see ``RecruitmentStore.match_candidates``.

Tables:
    resume_embeddings         one vector per candidate (upsert on candidate_id)
    job_embeddings            one vector per job description (upsert on job_id)
    embedding_generation_log  audit trail with token usage and cost
"""

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, JSON
from sqlalchemy.sql import func
from recruitchat.database import Base
import uuid


class ResumeEmbedding(Base):
    __tablename__ = "resume_embeddings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    candidate_id = Column(String, nullable=False, unique=True, index=True)
    embedding_type = Column(String(20), nullable=False, default="resume")
    chunk_text = Column(Text, nullable=False, default="")
    embedding = Column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class JobEmbedding(Base):
    __tablename__ = "job_embeddings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String, nullable=False, unique=True, index=True)
    chunk_text = Column(Text, nullable=False, default="")
    embedding = Column(JSON, nullable=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, server_default=func.now())


class EmbeddingGenerationLog(Base):
    __tablename__ = "embedding_generation_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(String, nullable=False, index=True)
    status = Column(String(20), nullable=False)
    tokens_used = Column(Integer, nullable=True)
    cost_usd = Column(Float, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
