"""
Persistence collaborators used by the ordering board and the timer.

Blocking SQLModel work runs in worker threads so the event loop that drives
the timers never waits on the database.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import MilestoneRead, RoadmapMilestone, StudySession
from pomodoro import CompletedWork

logger = logging.getLogger("focusroadmap.store")

SessionFactory = Callable[[], Session]


def fetch_milestones(db: Session, user_id: str) -> list[MilestoneRead]:
    statement = (
        select(RoadmapMilestone)
        .where(RoadmapMilestone.user_id == user_id)
        .order_by(RoadmapMilestone.display_order, RoadmapMilestone.created_at)
    )
    return [MilestoneRead.model_validate(m) for m in db.exec(statement).all()]


class MilestoneStore:
    """Milestone rows of one user. Every call gets its own DB session."""

    def __init__(self, session_factory: SessionFactory, user_id: str):
        self.session_factory = session_factory
        self.user_id = user_id

    async def list(self) -> list[MilestoneRead]:
        return await asyncio.to_thread(self._list)

    async def set_display_order(self, milestone_id: str, display_order: int) -> None:
        await asyncio.to_thread(self._set_display_order, milestone_id, display_order)

    def _list(self) -> list[MilestoneRead]:
        with self.session_factory() as db:
            return fetch_milestones(db, self.user_id)

    def _set_display_order(self, milestone_id: str, display_order: int) -> None:
        with self.session_factory() as db:
            milestone = db.get(RoadmapMilestone, milestone_id)
            if milestone is None or milestone.user_id != self.user_id:
                raise LookupError(f"Milestone {milestone_id} not found")
            milestone.display_order = display_order
            db.add(milestone)
            try:
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise


class SessionLogger:
    """
    Timer sink: stores each completed work interval as a StudySession.

    Called from the event loop (a ticker callback) the insert is handed to the
    default executor and the future is returned; called without a running loop
    it writes inline.
    """

    def __init__(self, session_factory: SessionFactory, user_id: str):
        self.session_factory = session_factory
        self.user_id = user_id

    def __call__(self, work: CompletedWork):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self.write(work)
        return loop.run_in_executor(None, self.write, work)

    def write(self, work: CompletedWork) -> StudySession:
        with self.session_factory() as db:
            row = StudySession(
                user_id=self.user_id,
                duration_minutes=work.duration_minutes,
                session_type=work.session_type,
                topic=work.topic,
                created_at=work.completed_at,
                session_date=date.today(),
            )
            db.add(row)
            try:
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise
            db.refresh(row)
            logger.debug("Stored session %s for user %s", row.id, self.user_id)
            return row
