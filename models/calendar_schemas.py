# models/calendar_schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List

EVENT_CATEGORIES = ("work", "personal", "family", "other")

class CalendarEventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")
    time: str = Field("12:00", pattern=r"^\d{2}:\d{2}$", description="HH:MM")
    category: str = Field("work", pattern="^(work|personal|family|other)$")

class CalendarEventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    date: str
    time: str
    category: str
    timestamp: str
    created_at: Optional[str] = None

class CalendarMonthResponse(BaseModel):
    success: bool = True
    year: int
    month: int
    events: List[CalendarEventResponse]
