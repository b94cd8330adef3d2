"""Pydantic schemas for task request/response validation."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List


class Day(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


DAYS = [d.value for d in Day]


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    day: Day


class TaskUpdate(BaseModel):
    """Mise à jour partielle: seuls les champs envoyés sont appliqués.

    Les clés inconnues (id, created_at, ...) sont refusées au lieu d'être
    transmises au stockage.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    day: Optional[Day] = None
    priority: Optional[int] = Field(default=None, gt=0)
    completed: Optional[bool] = None


class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    day: str
    priority: int
    completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskEnvelope(BaseModel):
    task: TaskResponse


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]


class ReorderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: Day
    task_ids: List[str] = Field(alias="taskIds")


class SuccessResponse(BaseModel):
    success: bool = True
