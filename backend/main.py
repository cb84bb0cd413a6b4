"""
Focus Roadmap – Backend API
Start with: uvicorn main:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from db import init_db, session_factory
from logger import setup_logger
from pomodoro import AsyncioTicker, TimerRegistry
from routers import roadmap, sessions, timer
from store import SessionLogger

logger = logging.getLogger("focusroadmap")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger(config.LOG_FILE, config.LOG_LEVEL)
    init_db()
    app.state.timers = TimerRegistry(
        sink_factory=lambda uid: SessionLogger(session_factory, uid),
        ticker_factory=lambda: AsyncioTicker(config.TIMER_TICK_SECONDS),
        presets=config.WORK_PRESETS,
        idle_ttl=config.TIMER_IDLE_TTL_SECONDS,
    )
    logger.info("Focus Roadmap API started")
    yield
    app.state.timers.shutdown()


app = FastAPI(
    title="Focus Roadmap API",
    description="Career roadmap milestones and a pomodoro study timer",
    version="0.1.0",
    lifespan=lifespan,
)

# Allow frontend to call this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(roadmap.router)
app.include_router(timer.router)
app.include_router(sessions.router)


@app.get("/health")
def health():
    """Check that the API is running. Frontend can call this first."""
    return {"status": "ok", "message": "Focus Roadmap API is running"}


@app.get("/")
def root():
    """Root welcome."""
    return {"app": "Focus Roadmap", "docs": "/docs"}
