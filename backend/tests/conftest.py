import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

from db import get_session, get_session_factory
from deps import get_timers
from main import app
from pomodoro import TimerRegistry
from store import SessionLogger


class ManualTicker:
    """Stands in for AsyncioTicker; tests fire ticks by hand."""

    def __init__(self):
        self.callback = None
        self.starts = 0

    @property
    def active(self):
        return self.callback is not None

    def start(self, callback):
        self.cancel()
        self.callback = callback
        self.starts += 1

    def cancel(self):
        self.callback = None

    def fire(self, times=1):
        for _ in range(times):
            if self.callback is None:
                break
            self.callback()


@pytest.fixture
def engine(tmp_path):
    # file-backed so each session (and worker thread) gets its own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'focus.db'}", connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def timers(engine):
    return TimerRegistry(
        sink_factory=lambda uid: SessionLogger(lambda: Session(engine), uid),
        ticker_factory=ManualTicker,
        presets=(1, 15, 25, 45, 60),
    )


@pytest.fixture
def client(engine, timers):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_session_factory] = lambda: (lambda: Session(engine))
    app.dependency_overrides[get_timers] = lambda: timers
    yield TestClient(app, headers={"X-User-Id": "user-1"})
    app.dependency_overrides.clear()


@pytest.fixture
def ticker():
    return ManualTicker()
