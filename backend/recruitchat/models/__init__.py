from recruitchat.models.candidate import Candidate
from recruitchat.models.job import Job
from recruitchat.models.client import Client, ClientContact, JobStatus
from recruitchat.models.embedding import ResumeEmbedding, JobEmbedding, EmbeddingGenerationLog

__all__ = [
    "Candidate",
    "Job",
    "Client",
    "ClientContact",
    "JobStatus",
    "ResumeEmbedding",
    "JobEmbedding",
    "EmbeddingGenerationLog",
]
