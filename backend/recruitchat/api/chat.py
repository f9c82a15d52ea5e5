import logging

from fastapi import APIRouter, Depends, HTTPException

from recruitchat.api.deps import get_chat_service
from recruitchat.schemas import CacheClearedResponse, ChatRequest, ChatResponse
from recruitchat.services.chat import ChatService
from recruitchat.services.llm import GenerationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def send_message(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
):
    try:
        reply = await service.send_message(request.message, request.context_id, request.history)
    except GenerationError as e:
        logger.error(f"Chat generation failed: {e.message}")
        raise HTTPException(status_code=502, detail=f"Sorry, I encountered an error: {e.message}")

    return ChatResponse(
        reply=reply.text,
        suggestions=reply.suggestions,
        result_type=reply.result_type,
        cached=reply.cached,
    )


@router.delete("/cache", response_model=CacheClearedResponse)
async def clear_cache(service: ChatService = Depends(get_chat_service)):
    removed = service.clear_cache()
    return CacheClearedResponse(message="Cache cleared", entries_removed=removed)


@router.get("/cache/stats")
async def cache_stats(service: ChatService = Depends(get_chat_service)):
    return service.cache.get_stats()
