"""
Pomodoro countdown: alternating work and break intervals.

The controller is driven by a ticker that calls tick() once per second while
the timer is running. Only one tick schedule exists at a time; pause, reset and
completion cancel it. Each finished work interval is handed to a sink exactly
once, with the configured (nominal) duration.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from pydantic import BaseModel

from models import SessionType

logger = logging.getLogger("focusroadmap.pomodoro")

WORK_PRESETS = (15, 25, 45, 60)
DEFAULT_WORK_MINUTES = 25
BREAK_MINUTES = 5


class Phase(str, Enum):
    WORK = "work"
    BREAK = "break"


class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerConfigError(Exception):
    """Configuration change rejected (timer busy, on a break, or bad value)."""


@dataclass(frozen=True)
class CompletedWork:
    duration_minutes: int
    session_type: SessionType
    topic: Optional[str]
    completed_at: datetime


class TimerSnapshot(BaseModel):
    phase: Phase
    status: TimerStatus
    remaining_seconds: int
    display: str
    progress: float
    elapsed_seconds: int
    duration_minutes: int
    break_minutes: int
    session_type: SessionType
    topic: str
    presets: list[int]
    completed_work: int
    notification: Optional[str] = None


class Ticker(Protocol):
    active: bool

    def start(self, callback: Callable[[], object]) -> None: ...

    def cancel(self) -> None: ...


class AsyncioTicker:
    """Calls back every `interval` seconds from a task on the running loop."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], object]) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(callback))

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, callback: Callable[[], object]) -> None:
        me = asyncio.current_task()
        try:
            while True:
                await asyncio.sleep(self.interval)
                if self._task is not me:
                    return
                callback()
        except asyncio.CancelledError:
            logger.debug("Ticker cancelled")


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


class TimerController:
    def __init__(
        self,
        ticker: Ticker,
        on_work_complete: Optional[Callable[[CompletedWork], object]] = None,
        presets=WORK_PRESETS,
        duration_minutes: int = DEFAULT_WORK_MINUTES,
        break_minutes: int = BREAK_MINUTES,
    ):
        self.ticker = ticker
        self.on_work_complete = on_work_complete
        self.presets = tuple(presets)
        if duration_minutes not in self.presets:
            duration_minutes = self.presets[0]
        self.duration_minutes = duration_minutes
        self.break_minutes = break_minutes
        self.session_type = SessionType.STUDY
        self.topic = ""

        self.phase = Phase.WORK
        self.status = TimerStatus.IDLE
        self.remaining = self._nominal_seconds()
        self.elapsed = 0
        self.completed_work = 0
        self.notification: Optional[str] = None

    def _nominal_seconds(self) -> int:
        minutes = self.break_minutes if self.phase is Phase.BREAK else self.duration_minutes
        return minutes * 60

    # --- configuration ---

    @property
    def configurable(self) -> bool:
        return self.status is TimerStatus.IDLE and self.phase is Phase.WORK

    def configure(self, duration_minutes: Optional[int] = None,
                  session_type: Optional[SessionType] = None,
                  topic: Optional[str] = None) -> None:
        if not self.configurable:
            raise TimerConfigError("Settings can only be changed while the timer is idle and not on a break")
        if duration_minutes is not None:
            if duration_minutes not in self.presets:
                raise TimerConfigError(f"Duration must be one of {list(self.presets)} minutes")
            self.duration_minutes = duration_minutes
            self.remaining = self._nominal_seconds()
        if session_type is not None:
            self.session_type = SessionType(session_type)
        if topic is not None:
            self.topic = topic.strip()

    # --- transitions ---

    def start(self) -> None:
        if self.status is TimerStatus.RUNNING:
            return
        if self.status is TimerStatus.IDLE:
            self.elapsed = 0
        self.notification = None
        self.ticker.cancel()
        self.status = TimerStatus.RUNNING
        self.ticker.start(self.tick)
        logger.debug("Timer running: %s phase, %ds left", self.phase.value, self.remaining)

    def resume(self) -> None:
        if self.status is TimerStatus.PAUSED:
            self.start()

    def pause(self) -> None:
        if self.status is not TimerStatus.RUNNING:
            return
        self.ticker.cancel()
        self.status = TimerStatus.PAUSED

    def toggle(self) -> None:
        if self.status is TimerStatus.RUNNING:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        self.ticker.cancel()
        self.status = TimerStatus.IDLE
        self.remaining = self._nominal_seconds()
        self.elapsed = 0

    def tick(self) -> bool:
        """Advance one second. Returns False when the tick was ignored."""
        if self.status is not TimerStatus.RUNNING:
            return False
        self.remaining -= 1
        self.elapsed += 1
        if self.remaining <= 0:
            self._complete()
        return True

    def _complete(self) -> None:
        self.ticker.cancel()
        self.status = TimerStatus.IDLE
        if self.phase is Phase.WORK:
            self.completed_work += 1
            record = CompletedWork(
                duration_minutes=self.duration_minutes,
                session_type=self.session_type,
                topic=self.topic or None,
                completed_at=datetime.now(timezone.utc),
            )
            self._emit(record)
            self.phase = Phase.BREAK
        else:
            self.phase = Phase.WORK
        self.remaining = self._nominal_seconds()
        self.elapsed = 0

    def _emit(self, record: CompletedWork) -> None:
        if self.on_work_complete is None:
            return
        try:
            result = self.on_work_complete(record)
        except Exception as e:
            self._log_failed(record, e)
            return
        if isinstance(result, asyncio.Future):
            # sink saving in the background; report when it settles
            result.add_done_callback(lambda fut: self._saved(record, fut))
        else:
            logger.info("Logged %d min %s session", record.duration_minutes, record.session_type.value)

    def _saved(self, record: CompletedWork, fut: asyncio.Future) -> None:
        if fut.cancelled():
            return
        err = fut.exception()
        if err is not None:
            self._log_failed(record, err)
        else:
            logger.info("Logged %d min %s session", record.duration_minutes, record.session_type.value)

    def _log_failed(self, record: CompletedWork, err: BaseException) -> None:
        logger.error("Could not log %d min %s session: %s",
                     record.duration_minutes, record.session_type.value, err)
        self.notification = f"Session could not be saved: {err}"

    # --- view ---

    def snapshot(self) -> TimerSnapshot:
        total = self._nominal_seconds()
        return TimerSnapshot(
            phase=self.phase,
            status=self.status,
            remaining_seconds=self.remaining,
            display=format_time(self.remaining),
            progress=round((total - self.remaining) / total * 100, 1) if total else 0.0,
            elapsed_seconds=self.elapsed,
            duration_minutes=self.duration_minutes,
            break_minutes=self.break_minutes,
            session_type=self.session_type,
            topic=self.topic,
            presets=list(self.presets),
            completed_work=self.completed_work,
            notification=self.notification,
        )


class TimerRegistry:
    """
    One timer per user, created on first use.

    Timers whose ticker is stopped and that nobody has looked at for
    `idle_ttl` seconds are dropped on the next lookup.
    """

    def __init__(
        self,
        sink_factory: Callable[[str], Callable[[CompletedWork], object]],
        ticker_factory: Callable[[], Ticker] = AsyncioTicker,
        presets=WORK_PRESETS,
        idle_ttl: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sink_factory = sink_factory
        self.ticker_factory = ticker_factory
        self.presets = tuple(presets)
        self.idle_ttl = idle_ttl
        self.clock = clock
        self.timers: Dict[str, TimerController] = {}
        self.last_seen: Dict[str, float] = {}

    def prune(self) -> int:
        now = self.clock()
        stale = [
            uid for uid, timer in self.timers.items()
            if not timer.ticker.active and now - self.last_seen.get(uid, now) > self.idle_ttl
        ]
        for uid in stale:
            del self.timers[uid]
            self.last_seen.pop(uid, None)
        if stale:
            logger.debug("Dropped %d idle timers", len(stale))
        return len(stale)

    def get(self, user_id: str) -> TimerController:
        self.prune()
        self.last_seen[user_id] = self.clock()
        timer = self.timers.get(user_id)
        if timer is None:
            timer = TimerController(
                ticker=self.ticker_factory(),
                on_work_complete=self.sink_factory(user_id),
                presets=self.presets,
            )
            self.timers[user_id] = timer
        return timer

    def shutdown(self) -> None:
        for timer in self.timers.values():
            timer.ticker.cancel()
        logger.info("Stopped %d timers", len(self.timers))
