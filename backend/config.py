"""
Runtime settings, read from the environment (and backend/.env if present).
"""
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///focus.db")

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/focusroadmap.log")

# Seconds between countdown ticks; one tick is one second of timer time.
TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))

WORK_PRESETS = tuple(
    int(p) for p in os.getenv("WORK_PRESETS", "15,25,45,60").split(",") if p.strip()
)

# Stopped timers unused for this long are dropped from memory.
TIMER_IDLE_TTL_SECONDS = float(os.getenv("TIMER_IDLE_TTL_SECONDS", str(24 * 60 * 60)))
