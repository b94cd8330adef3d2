"""
Machine à états du timer pomodoro (côté client)

idle -> running -> (paused | expired) -> idle avec le type suivant pré-sélectionné.

Seuls le démarrage et la complétion sont persistés (via un recorder, ex. SyncClient).
La persistance est best-effort: si elle échoue le timer local continue quand même.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from app.core.config import settings
from app.schemas.pomodoro import SessionType

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


def default_durations() -> Dict[SessionType, int]:
    return {
        SessionType.WORK: settings.WORK_DURATION,
        SessionType.SHORT_BREAK: settings.SHORT_BREAK_DURATION,
        SessionType.LONG_BREAK: settings.LONG_BREAK_DURATION,
    }


def next_session_type(current: SessionType, completed_work: int, sessions_until_long_break: int = 4) -> SessionType:
    """
    Type de la session suivante.

    Après un work: long_break si le nombre de work terminés est un multiple
    de sessions_until_long_break, sinon short_break.
    Après une pause: toujours work.
    """
    if current == SessionType.WORK:
        if completed_work > 0 and completed_work % sessions_until_long_break == 0:
            return SessionType.LONG_BREAK
        return SessionType.SHORT_BREAK
    return SessionType.WORK


class PomodoroTimer:
    def __init__(
        self,
        recorder=None,
        durations: Optional[Dict[SessionType, int]] = None,
        sessions_until_long_break: int = None,
        task_id: Optional[str] = None,
    ):
        self.recorder = recorder
        self.durations = durations or default_durations()
        self.sessions_until_long_break = sessions_until_long_break or settings.SESSIONS_UNTIL_LONG_BREAK
        self.task_id = task_id

        self.state = TimerState.IDLE
        self.current_type = SessionType.WORK
        self.time_left = self.durations[self.current_type]
        self.completed_work = 0
        self.session_id: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self) -> None:
        """Démarre une session (crée la ligne) ou reprend une session en pause (même ligne)."""
        if self.state == TimerState.PAUSED:
            self.state = TimerState.RUNNING
            return
        if self.state != TimerState.IDLE:
            return

        self.session_id = None
        if self.recorder is not None:
            try:
                self.session_id = self.recorder.start_session(
                    self.current_type, self.durations[self.current_type], self.task_id
                )
            except Exception as e:
                logger.warning(f"Could not persist session start, running locally: {e}")
        self.state = TimerState.RUNNING

    def tick(self, seconds: int = 1) -> Optional[SessionType]:
        """Décrémente le temps restant. Renvoie le type suivant si la session vient de se terminer."""
        if self.state != TimerState.RUNNING:
            return None
        self.time_left = max(0, self.time_left - seconds)
        if self.time_left == 0:
            self.state = TimerState.EXPIRED
            return self.complete()
        return None

    def pause(self) -> None:
        if self.state == TimerState.RUNNING:
            self.state = TimerState.PAUSED

    def complete(self) -> Optional[SessionType]:
        """Fin naturelle: completed_at côté serveur, puis sélection du type suivant (sans démarrer).

        Sans session en cours (idle) il n'y a rien à terminer: renvoie None.
        """
        if self.state == TimerState.IDLE:
            return None
        if self.session_id is not None and self.recorder is not None:
            try:
                self.recorder.complete_session(self.session_id)
            except Exception as e:
                logger.warning(f"Could not persist session completion: {e}")

        if self.current_type == SessionType.WORK:
            self.completed_work += 1
        next_type = next_session_type(self.current_type, self.completed_work, self.sessions_until_long_break)

        self.current_type = next_type
        self.time_left = self.durations[next_type]
        self.state = TimerState.IDLE
        self.session_id = None
        return next_type

    def reset(self) -> None:
        # la ligne éventuellement créée reste non terminée
        self.state = TimerState.IDLE
        self.time_left = self.durations[self.current_type]
        self.session_id = None

    def switch_type(self, session_type: SessionType) -> bool:
        if self.state == TimerState.RUNNING:
            return False
        self.state = TimerState.IDLE
        self.current_type = SessionType(session_type)
        self.time_left = self.durations[self.current_type]
        self.session_id = None
        return True

    def format_time(self) -> str:
        minutes, seconds = divmod(self.time_left, 60)
        return f"{minutes:02d}:{seconds:02d}"
