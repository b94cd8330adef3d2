"""
Client de synchronisation (référence Python de l'agent côté UI)

- TaskBoard: modèle de lecture par jour, alimenté par les événements du canal temps réel.
  apply() est idempotent: un client reçoit ses propres mutations en écho.
- SyncClient: appels HTTP à l'API (requests). En cas d'échec réseau on recharge
  tout le tableau au lieu de réessayer.
"""

import logging
from typing import Callable, Dict, List, Optional

import requests

from app.core.config import settings
from app.schemas.event import change_event_adapter
from app.schemas.pomodoro import SessionResponse
from app.schemas.task import DAYS, TaskResponse

logger = logging.getLogger(__name__)


class TaskBoard:
    def __init__(self):
        self.tasks: Dict[str, TaskResponse] = {}
        self.sessions: Dict[str, SessionResponse] = {}

    def load(self, tasks: List, sessions: Optional[List] = None) -> None:
        """Remplace tout l'état (chargement initial ou resynchronisation)."""
        self.tasks = {t.id: t for t in (TaskResponse.model_validate(x) for x in tasks)}
        if sessions is not None:
            self.sessions = {s.id: s for s in (SessionResponse.model_validate(x) for x in sessions)}

    def tasks_for(self, day: str) -> List[TaskResponse]:
        return sorted(
            (t for t in self.tasks.values() if t.day == day),
            key=lambda t: (t.priority, t.created_at),
        )

    def by_day(self) -> Dict[str, List[TaskResponse]]:
        return {day: self.tasks_for(day) for day in DAYS}

    def apply(self, event) -> bool:
        """Applique un événement. Retourne False si c'était un no-op (déjà connu)."""
        if isinstance(event, dict):
            event = change_event_adapter.validate_python(event)

        if event.type in ("task_created", "task_updated"):
            return self._merge_task(event.task)
        if event.type == "task_deleted":
            return self.tasks.pop(event.id, None) is not None
        if event.type == "tasks_reordered":
            return self._reorder(event.day, event.task_ids)
        if event.type in ("session_started", "session_completed"):
            return self._merge_session(event.session)
        return False

    def _merge_task(self, task: TaskResponse) -> bool:
        known = self.tasks.get(task.id)
        if known is not None and (known == task or task.updated_at < known.updated_at):
            return False
        self.tasks[task.id] = task
        return True

    def _reorder(self, day: str, task_ids: List[str]) -> bool:
        changed = False
        for position, task_id in enumerate(task_ids, start=1):
            task = self.tasks.get(task_id)
            if task is None or task.day != day or task.priority == position:
                continue
            self.tasks[task_id] = task.model_copy(update={"priority": position})
            changed = True
        return changed

    def _merge_session(self, session: SessionResponse) -> bool:
        known = self.sessions.get(session.id)
        if known is not None:
            if known == session:
                return False
            # une session terminée ne redevient pas en cours
            if known.completed_at is not None and session.completed_at is None:
                return False
        self.sessions[session.id] = session
        return True


class SyncClient:
    def __init__(self, base_url: str = None, timeout: int = None, http: requests.Session = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        response = self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        response.raise_for_status()
        return response.json()

    # ---- tâches ----

    def list_tasks(self, day: Optional[str] = None) -> List[TaskResponse]:
        params = {"day": day} if day else None
        data = self._request("GET", "/api/tasks", params=params)
        return [TaskResponse.model_validate(t) for t in data["tasks"]]

    def create_task(self, title: str, day: str, description: Optional[str] = None) -> TaskResponse:
        body = {"title": title, "day": day}
        if description is not None:
            body["description"] = description
        data = self._request("POST", "/api/tasks", json=body)
        return TaskResponse.model_validate(data["task"])

    def update_task(self, task_id: str, **changes) -> TaskResponse:
        data = self._request("PUT", f"/api/tasks/{task_id}", json=changes)
        return TaskResponse.model_validate(data["task"])

    def delete_task(self, task_id: str) -> bool:
        return self._request("DELETE", f"/api/tasks/{task_id}")["success"]

    def reorder(self, day: str, task_ids: List[str]) -> bool:
        return self._request("POST", "/api/tasks/reorder", json={"day": day, "taskIds": task_ids})["success"]

    # ---- pomodoro (interface recorder de PomodoroTimer) ----

    def start_session(self, session_type, duration: int, task_id: Optional[str] = None) -> str:
        body = {"type": getattr(session_type, "value", session_type), "duration": duration, "task_id": task_id}
        data = self._request("POST", "/api/pomodoro/sessions", json=body)
        return data["session"]["id"]

    def complete_session(self, session_id: str) -> SessionResponse:
        data = self._request("POST", f"/api/pomodoro/sessions/{session_id}/complete")
        return SessionResponse.model_validate(data["session"])

    def list_sessions(self, task_id: Optional[str] = None) -> List[SessionResponse]:
        params = {"taskId": task_id} if task_id else None
        data = self._request("GET", "/api/pomodoro/sessions", params=params)
        return [SessionResponse.model_validate(s) for s in data["sessions"]]

    # ---- resynchronisation ----

    def resync(self, board: TaskBoard) -> None:
        board.load(self.list_tasks(), self.list_sessions())

    def call_or_resync(self, board: TaskBoard, operation: Callable, *args, **kwargs):
        """Exécute un appel API; si le réseau échoue, recharge tout le tableau (pas de retry)."""
        try:
            return operation(*args, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"API call {getattr(operation, '__name__', operation)} failed, resyncing: {e}")
        try:
            self.resync(board)
        except requests.RequestException as e:
            logger.error(f"Resync failed, board may be stale: {e}")
        return None
