from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionType(str, Enum):
    STUDY = "study"
    CODING = "coding"
    CYBER = "cyber"


class MilestoneBase(SQLModel):
    phase: str = Field(index=True)
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    target_date: Optional[date] = None
    display_order: int = 0


class RoadmapMilestone(MilestoneBase, table=True):
    __tablename__ = "roadmap_milestones"

    id: str = Field(default_factory=_uuid, primary_key=True, index=True)
    user_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=_utcnow)


class MilestoneRead(MilestoneBase):
    """Detached copy of a milestone row, safe to hold outside a DB session."""
    id: str
    user_id: str
    created_at: datetime


class StudySession(SQLModel, table=True):
    __tablename__ = "study_sessions"

    id: str = Field(default_factory=_uuid, primary_key=True, index=True)
    user_id: str = Field(index=True)
    duration_minutes: int
    session_type: SessionType
    topic: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    session_date: date = Field(index=True)
