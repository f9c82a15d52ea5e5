from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class JobResponse(BaseModel):
    id: str
    job_id: str
    title: str
    status: str
    skills: Optional[list[str]] = None
    location: Optional[str] = None
    description: Optional[str] = None
    client_owner: Optional[str] = None
    posted_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
