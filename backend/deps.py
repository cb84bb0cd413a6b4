from fastapi import Header, HTTPException, Request

from pomodoro import TimerRegistry


def require_user_id(user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing X-User-Id header")
    return user_id


def get_timers(request: Request) -> TimerRegistry:
    return request.app.state.timers
