"""PomodoroSession model"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from app.core.database import Base


class PomodoroSession(Base):
    __tablename__ = "pomodoro_sessions"

    id = Column(String(36), primary_key=True)
    # référence faible: remise à NULL quand la tâche est supprimée
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)
    duration = Column(Integer, nullable=False)  # secondes
    type = Column(String, nullable=False)  # work, short_break, long_break
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)
