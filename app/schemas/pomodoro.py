"""Schemas des sessions pomodoro"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List


class SessionType(str, Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


class SessionCreate(BaseModel):
    task_id: Optional[str] = None
    duration: int = Field(gt=0)  # secondes
    type: SessionType


class SessionResponse(BaseModel):
    id: str
    task_id: Optional[str]
    duration: int
    type: str
    started_at: datetime
    completed_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class SessionEnvelope(BaseModel):
    session: SessionResponse


class SessionListResponse(BaseModel):
    sessions: List[SessionResponse]
