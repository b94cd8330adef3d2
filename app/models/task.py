"""Task model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from app.core.database import Base


class Task(Base):
    __tablename__ = "tasks"
    
    id = Column(String(36), primary_key=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    day = Column(String, nullable=False, index=True)  # monday ... sunday
    priority = Column(Integer, nullable=False, default=1, index=True)  # 1 = en haut de la liste
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
