"""
Study sessions logged by the timer: per-day history and focus stats.
Sessions are written only by completed work intervals, never through this API.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from db import get_session
from deps import require_user_id
from models import SessionType, StudySession

router = APIRouter(prefix="/api", tags=["sessions"])


def format_minutes(total: int) -> str:
    return f"{total // 60}h {total % 60}m"


@router.get("/sessions")
def list_sessions(
    day: Optional[date] = None,
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """Sessions logged on `day` (default today), newest first."""
    statement = (
        select(StudySession)
        .where(StudySession.user_id == uid, StudySession.session_date == (day or date.today()))
        .order_by(StudySession.created_at.desc())
    )
    return db.exec(statement).all()


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """Focus totals for today and all time."""
    sessions = db.exec(select(StudySession).where(StudySession.user_id == uid)).all()
    today = date.today()

    today_sessions = 0
    today_minutes = 0
    by_type = {t.value: 0 for t in SessionType}
    for s in sessions:
        by_type[SessionType(s.session_type).value] += s.duration_minutes
        if s.session_date == today:
            today_sessions += 1
            today_minutes += s.duration_minutes

    total_minutes = sum(by_type.values())
    return {
        "total_sessions": len(sessions),
        "total_minutes": total_minutes,
        "today_sessions": today_sessions,
        "today_minutes": today_minutes,
        "today_display": format_minutes(today_minutes),
        "minutes_by_type": by_type,
    }
