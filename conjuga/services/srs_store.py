"""Persistence of per-cell SRS schedules.

The selection pipeline treats the store as an async key-value store with
indexed queries (due cells, lookup by cell, upsert). SrsStore binds those
operations to one SQLAlchemy session; each save is an idempotent upsert
keyed on (user_id, mood, tense, person).
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from conjuga.models import ScheduleCell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleUpdate:
    """Proposed schedule for one cell after an attempt, plus boost metadata."""
    user_id: str
    mood: str
    tense: str
    person: str
    interval: int
    ease: float
    reps: int
    lapses: int
    leech: bool
    last_answer_correct: bool
    next_due: datetime
    reviewed_at: Optional[datetime] = None
    lemma: Optional[str] = None
    family_clustering_applied: bool = False
    family_mastery: Optional[float] = None
    family_boost_multiplier: Optional[float] = None


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite DateTime columns drop tzinfo; store naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SrsStore:
    """Async facade over a sync Session; queries run in the threadpool one at a time."""

    def __init__(self, db: Session):
        self.db = db
        self._lock = threading.Lock()

    async def _run(self, fn, *args):
        return await run_in_threadpool(self._locked, fn, *args)

    def _locked(self, fn, *args):
        with self._lock:
            return fn(*args)

    async def get_due_items(self, user_id: str, now: datetime) -> list[ScheduleCell]:
        """Cells whose next_due is at or before now, most overdue first."""
        return await self._run(self._due_items, user_id, now)

    async def get_schedule_by_cell(
        self, user_id: str, mood: str, tense: str, person: str
    ) -> Optional[ScheduleCell]:
        return await self._run(self._cell, user_id, mood, tense, person)

    async def get_all_schedules(self, user_id: str) -> list[ScheduleCell]:
        return await self._run(self._all_cells, user_id)

    async def save_schedule(self, update: ScheduleUpdate) -> ScheduleCell:
        """Insert or overwrite the cell described by a ScheduleUpdate."""
        return await self._run(self._upsert, update)

    async def reset_user_schedules(self, user_id: str) -> int:
        """Account reset: the only path that deletes schedule cells."""
        deleted = await self._run(self._delete_user, user_id)
        logger.info(f"Reset {deleted} schedule cells for user {user_id}")
        return deleted

    def _due_items(self, user_id, now):
        return (
            self.db.query(ScheduleCell)
            .filter(
                ScheduleCell.user_id == user_id,
                ScheduleCell.next_due.isnot(None),
                ScheduleCell.next_due <= _naive_utc(now),
            )
            .order_by(ScheduleCell.next_due.asc())
            .all()
        )

    def _cell(self, user_id, mood, tense, person):
        return (
            self.db.query(ScheduleCell)
            .filter(
                ScheduleCell.user_id == user_id,
                ScheduleCell.mood == mood,
                ScheduleCell.tense == tense,
                ScheduleCell.person == person,
            )
            .first()
        )

    def _all_cells(self, user_id):
        return (
            self.db.query(ScheduleCell)
            .filter(ScheduleCell.user_id == user_id)
            .all()
        )

    def _upsert(self, update: ScheduleUpdate) -> ScheduleCell:
        cell = self._cell(update.user_id, update.mood, update.tense, update.person)
        if cell is None:
            cell = ScheduleCell(
                user_id=update.user_id,
                mood=update.mood,
                tense=update.tense,
                person=update.person,
            )
            self.db.add(cell)

        cell.interval = update.interval
        cell.ease = update.ease
        cell.reps = update.reps
        cell.lapses = update.lapses
        cell.leech = update.leech
        cell.last_answer_correct = update.last_answer_correct
        cell.next_due = _naive_utc(update.next_due)
        cell.updated_at = _naive_utc(update.reviewed_at or datetime.now(timezone.utc))
        self.db.commit()
        return cell

    def _delete_user(self, user_id):
        deleted = (
            self.db.query(ScheduleCell)
            .filter(ScheduleCell.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
