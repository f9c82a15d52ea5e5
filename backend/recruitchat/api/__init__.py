from fastapi import APIRouter
from recruitchat.api import chat, embeddings, jobs, stats

api_router = APIRouter(prefix="/api")
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(embeddings.router, prefix="/embeddings", tags=["embeddings"])
