"""Repository des sessions pomodoro"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core import store
from app.core.errors import NotFoundError, ValidationError
from app.models.pomodoro_session import PomodoroSession
from app.models.task import Task
from app.schemas.pomodoro import SessionType
from app.services.task_service import utcnow

SESSION_TYPES = [t.value for t in SessionType]


def create_session(db: Session, session_type, duration: int, task_id: Optional[str] = None) -> PomodoroSession:
    """Démarrage d'un timer: une ligne avec started_at = maintenant, completed_at = NULL"""
    session_type = getattr(session_type, "value", session_type)
    if session_type not in SESSION_TYPES:
        raise ValidationError(f"Invalid session type: {session_type!r}")
    if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
        raise ValidationError("duration must be a positive number of seconds")
    if task_id is not None and store.get(db, Task, task_id) is None:
        raise ValidationError("Unknown task_id")

    session = PomodoroSession(
        id=str(uuid.uuid4()),
        task_id=task_id,
        duration=duration,
        type=session_type,
        started_at=utcnow(),
        completed_at=None,
    )
    return store.insert(db, session)


def get_session(db: Session, session_id: str) -> PomodoroSession:
    session = store.get(db, PomodoroSession, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session


def complete_session(db: Session, session_id: str) -> PomodoroSession:
    # UPDATE conditionnel: completed_at n'est posé qu'une fois même si deux appels se croisent,
    # le second renvoie la ligne telle quelle
    with store.transaction(db):
        db.query(PomodoroSession).filter(
            PomodoroSession.id == session_id,
            PomodoroSession.completed_at.is_(None),
        ).update({PomodoroSession.completed_at: utcnow()}, synchronize_session=False)
    db.expire_all()
    return get_session(db, session_id)


def list_sessions(db: Session, task_id: Optional[str] = None) -> List[PomodoroSession]:
    filters = []
    if task_id:
        filters.append(PomodoroSession.task_id == task_id)
    return store.query(db, PomodoroSession, filters=filters, order=[PomodoroSession.started_at.desc()])
