# school_portal/schemas/event_schemas.py
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from ..models.event import EventCategory, EventStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    is_all_day: bool = False
    category: EventCategory = EventCategory.OTHER
    status: EventStatus = EventStatus.UPCOMING
    class_ids: List[UUID] = []


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_all_day: Optional[bool] = None
    category: Optional[EventCategory] = None
    status: Optional[EventStatus] = None
    class_ids: Optional[List[UUID]] = None
