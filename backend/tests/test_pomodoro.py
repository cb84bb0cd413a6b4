import asyncio

import pytest

from conftest import ManualTicker
from models import SessionType
from pomodoro import (
    AsyncioTicker,
    Phase,
    TimerConfigError,
    TimerController,
    TimerRegistry,
    TimerStatus,
    format_time,
)


def make_timer(ticker, records, **kwargs):
    kwargs.setdefault("presets", (1, 15, 25, 45, 60))
    return TimerController(ticker, on_work_complete=records.append, **kwargs)


def test_format_time():
    assert format_time(25 * 60) == "25:00"
    assert format_time(61) == "01:01"
    assert format_time(0) == "00:00"


def test_initial_state(ticker):
    timer = TimerController(ticker)
    snap = timer.snapshot()
    assert snap.phase is Phase.WORK
    assert snap.status is TimerStatus.IDLE
    assert snap.remaining_seconds == 25 * 60
    assert snap.display == "25:00"
    assert snap.progress == 0.0
    assert not ticker.active


def test_one_minute_work_interval_logs_one_session(ticker):
    records = []
    timer = make_timer(ticker, records)
    timer.configure(duration_minutes=1, session_type=SessionType.CODING, topic="  parsers ")
    timer.start()

    ticker.fire(60)

    assert len(records) == 1
    assert records[0].duration_minutes == 1
    assert records[0].session_type is SessionType.CODING
    assert records[0].topic == "parsers"
    assert timer.phase is Phase.BREAK
    assert timer.status is TimerStatus.IDLE
    assert timer.remaining == 300
    assert not ticker.active


def test_reset_before_completion_logs_nothing(ticker):
    records = []
    timer = make_timer(ticker, records, duration_minutes=1)
    timer.start()
    ticker.fire(59)
    timer.reset()

    assert records == []
    assert timer.status is TimerStatus.IDLE
    assert timer.phase is Phase.WORK
    assert timer.remaining == 60
    assert not ticker.active


def test_pause_freezes_remaining_time(ticker):
    timer = make_timer(ticker, [], duration_minutes=15)
    timer.start()
    ticker.fire(10)
    timer.pause()
    frozen = timer.remaining

    ticker.fire(5)
    assert timer.tick() is False
    assert timer.remaining == frozen

    timer.resume()
    timer.pause()
    assert timer.remaining == frozen
    assert timer.status is TimerStatus.PAUSED


def test_logged_duration_is_nominal_across_pauses(ticker):
    records = []
    timer = make_timer(ticker, records, duration_minutes=1)
    timer.start()
    ticker.fire(30)
    timer.toggle()
    timer.toggle()
    ticker.fire(30)

    assert [r.duration_minutes for r in records] == [1]
    assert timer.phase is Phase.BREAK


def test_break_completion_returns_to_work(ticker):
    records = []
    timer = make_timer(ticker, records, duration_minutes=1)
    timer.start()
    ticker.fire(60)
    timer.start()
    ticker.fire(300)

    assert len(records) == 1
    assert timer.phase is Phase.WORK
    assert timer.status is TimerStatus.IDLE
    assert timer.remaining == 60


def test_reset_during_break_keeps_break_phase(ticker):
    timer = make_timer(ticker, [], duration_minutes=1)
    timer.start()
    ticker.fire(60)
    timer.start()
    ticker.fire(100)
    timer.reset()

    assert timer.phase is Phase.BREAK
    assert timer.remaining == 300


def test_start_keeps_a_single_schedule(ticker):
    timer = make_timer(ticker, [], duration_minutes=1)
    timer.start()
    timer.start()
    assert ticker.starts == 1

    ticker.fire(3)
    assert timer.remaining == 57


def test_configuration_locked_unless_idle_on_work(ticker):
    timer = make_timer(ticker, [], duration_minutes=1)
    with pytest.raises(TimerConfigError):
        timer.configure(duration_minutes=7)

    timer.start()
    with pytest.raises(TimerConfigError):
        timer.configure(topic="graphs")
    timer.pause()
    with pytest.raises(TimerConfigError):
        timer.configure(session_type=SessionType.CYBER)

    timer.reset()
    timer.configure(duration_minutes=45)
    assert timer.remaining == 45 * 60

    timer.configure(duration_minutes=1)
    timer.start()
    ticker.fire(60)
    assert timer.phase is Phase.BREAK
    with pytest.raises(TimerConfigError):
        timer.configure(duration_minutes=25)


def test_sink_failure_still_moves_to_break(ticker):
    def broken_sink(record):
        raise RuntimeError("database unavailable")

    timer = TimerController(ticker, on_work_complete=broken_sink, presets=(1,), duration_minutes=1)
    timer.start()
    ticker.fire(60)

    assert timer.phase is Phase.BREAK
    assert timer.remaining == 300
    assert "database unavailable" in timer.snapshot().notification

    timer.start()
    assert timer.snapshot().notification is None


def test_registry_keeps_one_timer_per_user(ticker):
    sinks = []
    registry = TimerRegistry(
        sink_factory=lambda uid: sinks.append(uid) or (lambda record: None),
        ticker_factory=lambda: ticker,
    )
    first = registry.get("u1")
    assert registry.get("u1") is first
    assert registry.get("u2") is not first
    assert sinks == ["u1", "u2"]

    first.start()
    registry.shutdown()
    assert not ticker.active


def test_asyncio_ticker_stops_after_cancel():
    async def scenario():
        ticks = []
        ticker = AsyncioTicker(interval=0.01)
        ticker.start(lambda: ticks.append(1))
        await asyncio.sleep(0.055)
        assert ticker.active
        ticker.cancel()
        seen = len(ticks)
        await asyncio.sleep(0.05)
        return seen, len(ticks), ticker.active

    seen, after, active = asyncio.run(scenario())
    assert seen >= 2
    assert after == seen
    assert not active


def test_asyncio_ticker_drives_controller_to_break():
    async def scenario():
        records = []
        timer = TimerController(AsyncioTicker(interval=0.001), on_work_complete=records.append,
                                presets=(1,), duration_minutes=1)
        timer.start()
        for _ in range(500):
            if timer.phase is Phase.BREAK:
                break
            await asyncio.sleep(0.002)
        return timer, records

    timer, records = asyncio.run(scenario())
    assert timer.phase is Phase.BREAK
    assert len(records) == 1
    assert not timer.ticker.active


def test_background_sink_failure_is_reported():
    def failing_write(record):
        raise RuntimeError("disk full")

    async def scenario():
        loop = asyncio.get_running_loop()
        ticker = AsyncioTicker(interval=0.001)
        timer = TimerController(ticker, on_work_complete=lambda r: loop.run_in_executor(None, failing_write, r),
                                presets=(1,), duration_minutes=1)
        timer.start()
        for _ in range(500):
            if timer.notification:
                break
            await asyncio.sleep(0.002)
        return timer

    timer = asyncio.run(scenario())
    assert timer.phase is Phase.BREAK
    assert "disk full" in timer.notification


def test_registry_drops_stopped_timers_after_ttl():
    now = [0.0]
    tickers = []

    def make_ticker():
        tickers.append(ManualTicker())
        return tickers[-1]

    registry = TimerRegistry(
        sink_factory=lambda uid: (lambda record: None),
        ticker_factory=make_ticker,
        idle_ttl=60,
        clock=lambda: now[0],
    )
    idle = registry.get("idle-user")
    busy = registry.get("busy-user")
    busy.start()

    now[0] = 61
    assert registry.prune() == 1
    assert "idle-user" not in registry.timers
    assert registry.get("busy-user") is busy
    assert registry.get("idle-user") is not idle
