from pydantic import BaseModel, Field
from typing import Literal, Optional


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=20000)
    # Job the chat window is opened on
    context_id: Optional[str] = None
    history: list[ChatTurn] = []


class ChatResponse(BaseModel):
    reply: str
    suggestions: list[str] = []
    result_type: Optional[str] = None
    cached: bool = False


class CacheClearedResponse(BaseModel):
    message: str
    entries_removed: int
