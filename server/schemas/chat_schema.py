from pydantic import BaseModel
from typing import List, Literal
from datetime import datetime


class ChatMessage(BaseModel):
    id: str
    content: str
    sender: Literal["user", "assistant"]
    timestamp: datetime


class SendMessagePayload(BaseModel):
    content: str


class ChatSessionOut(BaseModel):
    id: str
    messages: List[ChatMessage]
