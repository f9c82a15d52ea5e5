from fastapi import APIRouter, Depends

from recruitchat.api.deps import get_chat_service
from recruitchat.services.chat import ChatService

router = APIRouter()


@router.get("")
async def get_stats(service: ChatService = Depends(get_chat_service)):
    stats = await service.get_stats()
    stats["cache"] = service.cache.get_stats()
    return stats
