"""Evénements de changement poussés sur le canal temps réel.

Chaque payload porte un discriminant `type`. Les clients doivent pouvoir
recevoir leurs propres mutations en écho.
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing import Annotated, List, Literal, Union

from app.schemas.task import TaskResponse
from app.schemas.pomodoro import SessionResponse

TASKS_TOPIC = "tasks"
POMODORO_TOPIC = "pomodoro"


class TaskCreatedEvent(BaseModel):
    type: Literal["task_created"] = "task_created"
    task: TaskResponse


class TaskUpdatedEvent(BaseModel):
    type: Literal["task_updated"] = "task_updated"
    task: TaskResponse


class TaskDeletedEvent(BaseModel):
    type: Literal["task_deleted"] = "task_deleted"
    id: str


class TasksReorderedEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tasks_reordered"] = "tasks_reordered"
    day: str
    task_ids: List[str] = Field(alias="taskIds")


class SessionStartedEvent(BaseModel):
    type: Literal["session_started"] = "session_started"
    session: SessionResponse


class SessionCompletedEvent(BaseModel):
    type: Literal["session_completed"] = "session_completed"
    session: SessionResponse


ChangeEvent = Annotated[
    Union[
        TaskCreatedEvent,
        TaskUpdatedEvent,
        TaskDeletedEvent,
        TasksReorderedEvent,
        SessionStartedEvent,
        SessionCompletedEvent,
    ],
    Field(discriminator="type"),
]

change_event_adapter = TypeAdapter(ChangeEvent)


def to_payload(event: BaseModel) -> dict:
    # by_alias pour garder "taskIds" sur le fil
    return event.model_dump(mode="json", by_alias=True)
