# school_portal/schemas/message_schemas.py
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    receiver_id: UUID
    subject: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(..., min_length=1)


class MessageReadUpdate(BaseModel):
    read: bool


class MessagesReadUpdate(BaseModel):
    message_ids: List[UUID] = Field(..., min_length=1)
    read: bool = True
