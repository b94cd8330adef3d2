"""Task service

Repository des tâches: seul code qui écrit dans la table `tasks`.
Ne publie rien sur le hub, c'est le rôle des routers (mutation puis publication).
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.core import store
from app.core.errors import NotFoundError, ValidationError
from app.models.pomodoro_session import PomodoroSession
from app.models.task import Task
from app.schemas.task import DAYS

MUTABLE_FIELDS = {"title", "description", "day", "priority", "completed"}

DEFAULT_PRIORITY = 1

# ordre lundi -> dimanche pour list_all_tasks
_day_position = case({day: position for position, day in enumerate(DAYS)}, value=Task.day)


def utcnow() -> datetime:
    # naive UTC, comme le stockent les colonnes DateTime
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_day(day) -> str:
    value = getattr(day, "value", day)
    if value not in DAYS:
        raise ValidationError(f"Invalid day: {value!r}")
    return value


def _check_title(title) -> str:
    if title is None or not str(title).strip():
        raise ValidationError("Title is required")
    return title


def create_task(db: Session, title: str, day, description: str = None) -> Task:
    """Nouvelle tâche en priorité 1 (haut de la liste), created_at == updated_at"""
    now = utcnow()
    task = Task(
        id=str(uuid.uuid4()),
        title=_check_title(title),
        description=description,
        day=_check_day(day),
        priority=DEFAULT_PRIORITY,
        completed=False,
        created_at=now,
        updated_at=now,
    )
    return store.insert(db, task)


def get_task(db: Session, task_id: str) -> Task:
    task = store.get(db, Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


def list_tasks_by_day(db: Session, day) -> List[Task]:
    day = _check_day(day)
    return store.query(
        db, Task,
        filters=[Task.day == day],
        order=[Task.priority.asc(), Task.created_at.asc()],
    )


def list_all_tasks(db: Session) -> List[Task]:
    return store.query(
        db, Task,
        order=[_day_position, Task.priority.asc(), Task.created_at.asc()],
    )


def update_task(db: Session, task_id: str, changes: dict) -> Task:
    """Applique uniquement les champs fournis et rafraîchit updated_at."""
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    fields = dict(changes)
    if "title" in fields:
        _check_title(fields["title"])
    if "day" in fields:
        fields["day"] = _check_day(fields["day"])
    if "completed" in fields and fields["completed"] is None:
        raise ValidationError("completed cannot be null")
    if "priority" in fields:
        priority = fields["priority"]
        if not isinstance(priority, int) or isinstance(priority, bool) or priority < 1:
            raise ValidationError("priority must be a positive integer")

    fields["updated_at"] = utcnow()
    task = store.update(db, Task, task_id, fields)
    if task is None:
        raise NotFoundError("Task not found")
    return task


def delete_task(db: Session, task_id: str) -> None:
    """Suppression définitive. Les sessions qui pointaient dessus gardent leur ligne, task_id = NULL.

    Les priorités restantes du jour ne sont pas renumérotées.
    """
    with store.transaction(db):
        db.query(PomodoroSession).filter(PomodoroSession.task_id == task_id).update(
            {PomodoroSession.task_id: None}, synchronize_session=False
        )
        deleted = store.delete(db, Task, task_id)
    if not deleted:
        raise NotFoundError("Task not found")


def reorder_day(db: Session, day, task_ids: List[str]) -> List[Task]:
    """priority = position (1-based) pour chaque id, en une seule transaction.

    Tous les ids doivent exister et appartenir à `day`, sinon rien n'est écrit.
    Les tâches du jour absentes de la liste gardent leur priorité.
    """
    day = _check_day(day)
    if len(set(task_ids)) != len(task_ids):
        raise ValidationError("Duplicate task ids")
    if not task_ids:
        return list_tasks_by_day(db, day)

    with store.transaction(db):
        by_id = {t.id: t for t in db.query(Task).filter(Task.id.in_(task_ids)).all()}
        missing = [i for i in task_ids if i not in by_id]
        if missing:
            raise ValidationError(f"Unknown task ids: {', '.join(missing)}")
        foreign = [i for i in task_ids if by_id[i].day != day]
        if foreign:
            raise ValidationError(f"Tasks not in {day}: {', '.join(foreign)}")

        now = utcnow()
        for position, task_id in enumerate(task_ids, start=1):
            task = by_id[task_id]
            task.priority = position
            task.updated_at = now

    return list_tasks_by_day(db, day)
