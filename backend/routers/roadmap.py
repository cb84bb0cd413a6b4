"""
Roadmap milestones: CRUD, completion toggle, drag reorder within a phase,
and bulk generation from a goal template.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from db import get_session, get_session_factory
from deps import require_user_id
from models import MilestoneRead, RoadmapMilestone
from ordering import MilestoneBoard, group_by_phase, progress
from store import MilestoneStore, SessionFactory, fetch_milestones
from templates import ROADMAP_TEMPLATES, build_roadmap

logger = logging.getLogger("focusroadmap.roadmap")

router = APIRouter(prefix="/api", tags=["roadmap"])


class CreateMilestoneRequest(BaseModel):
    phase: str = ""
    title: str = Field(default="", max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    target_date: Optional[date] = None


class ReorderRequest(BaseModel):
    active_id: str
    over_id: Optional[str] = None


class GenerateRequest(BaseModel):
    goal: str


def _roadmap_view(milestones: list[MilestoneRead]) -> dict:
    phases = [
        {"phase": phase, "milestones": members, **progress(members)}
        for phase, members in group_by_phase(milestones).items()
    ]
    return {"phases": phases, **progress(milestones)}


def _get_owned(db: Session, milestone_id: str, uid: str) -> RoadmapMilestone:
    statement = select(RoadmapMilestone).where(
        RoadmapMilestone.id == milestone_id, RoadmapMilestone.user_id == uid
    )
    milestone = db.exec(statement).one_or_none()
    if not milestone:
        raise HTTPException(status_code=404, detail="Milestone not found")
    return milestone


@router.get("/milestones")
def list_milestones(
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """All milestones grouped by phase, each group in display order."""
    return _roadmap_view(fetch_milestones(db, uid))


@router.post("/milestones", status_code=201)
def create_milestone(
    req: CreateMilestoneRequest,
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """Add a milestone at the end of its phase."""
    phase, title = req.phase.strip(), req.title.strip()
    if not phase or not title:
        raise HTTPException(status_code=400, detail="Please fill in phase and title")
    siblings = db.exec(
        select(RoadmapMilestone).where(
            RoadmapMilestone.user_id == uid, RoadmapMilestone.phase == phase
        )
    ).all()
    milestone = RoadmapMilestone(
        user_id=uid,
        phase=phase,
        title=title,
        description=(req.description or "").strip() or None,
        target_date=req.target_date,
        display_order=max((m.display_order for m in siblings), default=-1) + 1,
    )
    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    logger.info("User %s added milestone %r to %r", uid, title, phase)
    return milestone


@router.patch("/milestones/{milestone_id}/toggle")
def toggle_milestone(
    milestone_id: str,
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """Flip completion; completing stamps completed_at, un-completing clears it."""
    milestone = _get_owned(db, milestone_id, uid)
    milestone.is_completed = not milestone.is_completed
    milestone.completed_at = datetime.now(timezone.utc) if milestone.is_completed else None
    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    return milestone


@router.delete("/milestones/{milestone_id}", status_code=204)
def delete_milestone(
    milestone_id: str,
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    milestone = _get_owned(db, milestone_id, uid)
    db.delete(milestone)
    db.commit()


@router.post("/milestones/reorder")
async def reorder_milestones(
    req: ReorderRequest,
    sessions: SessionFactory = Depends(get_session_factory),
    uid: str = Depends(require_user_id),
):
    """
    Drop `active_id` onto `over_id` inside the same phase.
    Dropping outside the group or onto itself changes nothing.
    """
    board = MilestoneBoard(MilestoneStore(sessions, uid))
    await board.load()
    if req.over_id is None:
        return {"changed": False, **_roadmap_view(list(board.snapshot()))}
    result = await board.move(req.active_id, req.over_id)
    if not result.ok:
        raise HTTPException(status_code=502, detail=board.notification)
    return {"changed": result.changed, **_roadmap_view(list(board.snapshot()))}


@router.get("/roadmap/goals")
def list_goals():
    return [goal for goal in ROADMAP_TEMPLATES if goal != "default"]


@router.post("/roadmap/generate", status_code=201)
def generate_roadmap(
    req: GenerateRequest,
    db: Session = Depends(get_session),
    uid: str = Depends(require_user_id),
):
    """Replace the user's milestones with the template for `goal`."""
    if not req.goal.strip():
        raise HTTPException(status_code=400, detail="Please choose a goal")
    existing = db.exec(select(RoadmapMilestone).where(RoadmapMilestone.user_id == uid)).all()
    for milestone in existing:
        db.delete(milestone)
    for fields in build_roadmap(req.goal.strip()):
        db.add(RoadmapMilestone(user_id=uid, **fields))
    db.commit()
    logger.info("Generated %r roadmap for user %s (replaced %d milestones)", req.goal, uid, len(existing))
    return _roadmap_view(fetch_milestones(db, uid))
