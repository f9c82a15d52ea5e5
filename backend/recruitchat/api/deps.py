"""
Shared service instances for the API layer.

The chat service owns the response cache, so it must live for the whole
process: ``get_chat_service`` builds it once and hands the same instance
to every request. Tests swap it out with ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from recruitchat.config import get_settings
from recruitchat.database import async_session
from recruitchat.services.cache import ResponseCache
from recruitchat.services.chat import ChatService
from recruitchat.services.embeddings import EmbeddingClient
from recruitchat.services.llm import ChatCompletionClient
from recruitchat.services.router import RetrievalRouter
from recruitchat.services.semantic_search import SemanticSearchService
from recruitchat.services.store import RecruitmentStore
from recruitchat.services.synthesizer import AnswerSynthesizer

logger = logging.getLogger(__name__)

_chat_service: Optional[ChatService] = None


def build_chat_service(store: RecruitmentStore) -> ChatService:
    settings = get_settings()
    semantic_search = SemanticSearchService(store, EmbeddingClient(settings), settings)
    return ChatService(
        store=store,
        router=RetrievalRouter(store, semantic_search, settings),
        synthesizer=AnswerSynthesizer(ChatCompletionClient(settings), settings),
        cache=ResponseCache(settings.cache_ttl_seconds),
        semantic_search=semantic_search,
        settings=settings,
    )


def get_chat_service() -> ChatService:
    global _chat_service
    if _chat_service is None:
        _chat_service = build_chat_service(RecruitmentStore(async_session))
        logger.info("Created shared ChatService instance")
    return _chat_service


def get_semantic_search() -> SemanticSearchService:
    return get_chat_service().semantic_search
