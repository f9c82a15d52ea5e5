from fastapi import APIRouter, Depends

from recruitchat.api.deps import get_chat_service
from recruitchat.schemas import JobListResponse, JobResponse
from recruitchat.services.chat import ChatService

router = APIRouter()


@router.get("", response_model=JobListResponse)
async def list_jobs(service: ChatService = Depends(get_chat_service)):
    jobs = await service.get_all_jobs()
    return JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=len(jobs),
    )
