"""
Pomodoro timer controls. The countdown runs server-side, one timer per user.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from deps import get_timers, require_user_id
from models import SessionType
from pomodoro import TimerConfigError, TimerRegistry, TimerSnapshot

router = APIRouter(prefix="/api/timer", tags=["timer"])


class TimerConfigRequest(BaseModel):
    duration_minutes: Optional[int] = None
    session_type: Optional[SessionType] = None
    topic: Optional[str] = Field(default=None, max_length=200)


@router.get("", response_model=TimerSnapshot)
async def get_timer(
    uid: str = Depends(require_user_id),
    timers: TimerRegistry = Depends(get_timers),
):
    return timers.get(uid).snapshot()


@router.put("/config", response_model=TimerSnapshot)
async def configure_timer(
    req: TimerConfigRequest,
    uid: str = Depends(require_user_id),
    timers: TimerRegistry = Depends(get_timers),
):
    """Change duration, session type or topic. Only allowed while idle in the work phase."""
    timer = timers.get(uid)
    if not timer.configurable:
        raise HTTPException(status_code=409, detail="Timer settings are locked while running or on a break")
    try:
        timer.configure(req.duration_minutes, req.session_type, req.topic)
    except TimerConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return timer.snapshot()


@router.post("/{action}", response_model=TimerSnapshot)
async def control_timer(
    action: str,
    uid: str = Depends(require_user_id),
    timers: TimerRegistry = Depends(get_timers),
):
    """start, pause, resume, toggle or reset."""
    timer = timers.get(uid)
    handlers = {
        "start": timer.start,
        "pause": timer.pause,
        "resume": timer.resume,
        "toggle": timer.toggle,
        "reset": timer.reset,
    }
    if action not in handlers:
        raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")
    handlers[action]()
    return timer.snapshot()
