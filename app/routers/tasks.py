from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.core.database import get_db
from app.schemas.task import (
    Day,
    TaskCreate,
    TaskUpdate,
    TaskEnvelope,
    TaskResponse,
    TaskListResponse,
    ReorderRequest,
    SuccessResponse,
)
from app.schemas.event import (
    TASKS_TOPIC,
    TaskCreatedEvent,
    TaskUpdatedEvent,
    TaskDeletedEvent,
    TasksReorderedEvent,
    to_payload,
)
from app.services import task_service
from app.services.broadcast_service import BroadcastHub

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


# Mutation d'abord, publication ensuite (en tâche de fond, après la réponse).
# Les événements sont sérialisés ici: le hub ne garde aucune référence aux lignes.

@router.get("", response_model=TaskListResponse)
def list_tasks(
    day: Optional[Day] = Query(None),
    db: Session = Depends(get_db),
):
    if day:
        tasks = task_service.list_tasks_by_day(db, day)
    else:
        tasks = task_service.list_all_tasks(db)
    return {"tasks": [TaskResponse.model_validate(t) for t in tasks]}


@router.post("", response_model=TaskEnvelope)
def create_task(
    task_data: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    task = task_service.create_task(db, task_data.title, task_data.day, task_data.description)
    event = TaskCreatedEvent(task=TaskResponse.model_validate(task))
    background_tasks.add_task(hub.publish, TASKS_TOPIC, to_payload(event))
    return {"task": event.task}


@router.post("/reorder", response_model=SuccessResponse)
def reorder_tasks(
    reorder: ReorderRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    task_service.reorder_day(db, reorder.day, reorder.task_ids)
    event = TasksReorderedEvent(day=reorder.day.value, task_ids=reorder.task_ids)
    background_tasks.add_task(hub.publish, TASKS_TOPIC, to_payload(event))
    return {"success": True}


@router.get("/{task_id}", response_model=TaskEnvelope)
def get_task(task_id: str, db: Session = Depends(get_db)):
    return {"task": TaskResponse.model_validate(task_service.get_task(db, task_id))}


@router.put("/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    changes = task_data.model_dump(exclude_unset=True)
    task = task_service.update_task(db, task_id, changes)
    event = TaskUpdatedEvent(task=TaskResponse.model_validate(task))
    background_tasks.add_task(hub.publish, TASKS_TOPIC, to_payload(event))
    return {"task": event.task}


@router.delete("/{task_id}", response_model=SuccessResponse)
def delete_task(
    task_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    task_service.delete_task(db, task_id)
    background_tasks.add_task(hub.publish, TASKS_TOPIC, to_payload(TaskDeletedEvent(id=task_id)))
    return {"success": True}
