from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.database import get_db
from app.routers.tasks import get_hub
from app.schemas.pomodoro import SessionCreate, SessionEnvelope, SessionListResponse, SessionResponse
from app.schemas.event import POMODORO_TOPIC, SessionStartedEvent, SessionCompletedEvent, to_payload
from app.services import session_service
from app.services.broadcast_service import BroadcastHub

router = APIRouter(prefix="/api/pomodoro", tags=["pomodoro"])


@router.get("/sessions", response_model=SessionListResponse)
def list_sessions(
    task_id: Optional[str] = Query(None, alias="taskId"),
    db: Session = Depends(get_db),
):
    """Sessions, les plus récentes d'abord, filtrées par tâche si taskId est donné"""
    sessions = session_service.list_sessions(db, task_id)
    return {"sessions": [SessionResponse.model_validate(s) for s in sessions]}


@router.post("/sessions", response_model=SessionEnvelope)
def start_session(
    session_data: SessionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    session = session_service.create_session(
        db, session_data.type, session_data.duration, session_data.task_id
    )
    event = SessionStartedEvent(session=SessionResponse.model_validate(session))
    background_tasks.add_task(hub.publish, POMODORO_TOPIC, to_payload(event))
    return {"session": event.session}


@router.post("/sessions/{session_id}/complete", response_model=SessionEnvelope)
def complete_session(
    session_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    session = session_service.complete_session(db, session_id)
    event = SessionCompletedEvent(session=SessionResponse.model_validate(session))
    background_tasks.add_task(hub.publish, POMODORO_TOPIC, to_payload(event))
    return {"session": event.session}
