"""
Manual ordering of roadmap milestones inside their phase group.

A move is applied to the in-memory list first (optimistic update), then every
member of the group gets its new display_order written back. If any of those
writes fails the local list is thrown away and re-fetched from the store.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from models import MilestoneRead

logger = logging.getLogger("focusroadmap.ordering")

SAVE_ORDER_FAILED = "Failed to save new order"


class MilestoneSource(Protocol):
    async def list(self) -> list[MilestoneRead]: ...

    async def set_display_order(self, milestone_id: str, display_order: int) -> None: ...


@dataclass
class ReorderResult:
    changed: bool
    ok: bool = True
    writes: int = 0


def sort_group(items: Iterable[MilestoneRead]) -> list[MilestoneRead]:
    # sorted() is stable, so equal keys keep arrival order
    return sorted(items, key=lambda m: m.display_order)


def group_by_phase(items: Iterable[MilestoneRead]) -> dict[str, list[MilestoneRead]]:
    groups: dict[str, list[MilestoneRead]] = {}
    for m in items:
        groups.setdefault(m.phase, []).append(m)
    return {phase: sort_group(members) for phase, members in groups.items()}


def array_move(items: Sequence, old_index: int, new_index: int) -> list:
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return moved


def reorder_group(
    items: Iterable[MilestoneRead], source_id: str, target_id: str
) -> Optional[list[MilestoneRead]]:
    """
    Move source_id to target_id's slot within source's phase.

    Returns the whole group renumbered 0..n-1, or None when there is nothing
    to do (dropped on itself, unknown ids, or target in another phase).
    """
    if source_id == target_id:
        return None
    items = list(items)
    source = next((m for m in items if m.id == source_id), None)
    if source is None:
        return None
    group = sort_group(m for m in items if m.phase == source.phase)
    ids = [m.id for m in group]
    if target_id not in ids:
        return None
    moved = array_move(group, ids.index(source_id), ids.index(target_id))
    return [m.model_copy(update={"display_order": i}) for i, m in enumerate(moved)]


def progress(items: Sequence[MilestoneRead]) -> dict:
    total = len(items)
    completed = sum(1 for m in items if m.is_completed)
    percent = (completed / total) * 100 if total else 0.0
    return {"completed": completed, "total": total, "percent": round(percent, 1)}


class MilestoneBoard:
    """Owns one user's milestone list and keeps it in step with the store."""

    def __init__(self, store: MilestoneSource):
        self.store = store
        self._items: list[MilestoneRead] = []
        self.notification: Optional[str] = None

    async def load(self) -> None:
        self._items = list(await self.store.list())

    def snapshot(self) -> tuple[MilestoneRead, ...]:
        return tuple(self._items)

    def grouped(self) -> dict[str, list[MilestoneRead]]:
        return group_by_phase(self._items)

    async def move(self, source_id: str, target_id: str) -> ReorderResult:
        reordered = reorder_group(self._items, source_id, target_id)
        if reordered is None:
            return ReorderResult(changed=False)

        by_id = {m.id: m for m in reordered}
        self._items = [by_id.get(m.id, m) for m in self._items]
        self.notification = None

        results = await asyncio.gather(
            *(self.store.set_display_order(m.id, m.display_order) for m in reordered),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for err in failures:
                logger.error("Saving milestone order failed: %s", err)
            self.notification = SAVE_ORDER_FAILED
            await self.load()
            return ReorderResult(changed=True, ok=False, writes=len(reordered))

        logger.info("Reordered %d milestones in phase %r", len(reordered), reordered[0].phase)
        return ReorderResult(changed=True, writes=len(reordered))
