"""Record graded attempts against per-cell SRS schedules.

Cells keep SM-2 style fields (interval days, ease 1.3-3.2) so they stay
readable for the mastery model; scheduling itself is delegated to FSRS.
Each attempt maps the cell onto an fsrs Card, reviews it, maps it back,
then runs the family clustering boost before persisting.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fsrs import Scheduler, Card, Rating, State

from conjuga.config import settings
from conjuga.services.family_clustering import apply_family_clustering_boost
from conjuga.services.interaction_logger import log_interaction
from conjuga.services.srs_store import ScheduleUpdate, SrsStore, as_utc

logger = logging.getLogger(__name__)

scheduler = Scheduler()

# FSRS difficulty bounds
DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0


def interval_to_stability(interval_days: float) -> float:
    return max(0.1, interval_days * 0.9)


def ease_to_difficulty(ease: float) -> float:
    """High ease means low difficulty: ease 1.3 -> 10, ease 3.2 -> 1."""
    span = settings.ease_max - settings.ease_min
    normalized = (ease - settings.ease_min) / span
    normalized = max(0.0, min(1.0, normalized))
    return DIFFICULTY_MAX - normalized * (DIFFICULTY_MAX - DIFFICULTY_MIN)


def difficulty_to_ease(difficulty: float) -> float:
    normalized = (DIFFICULTY_MAX - difficulty) / (DIFFICULTY_MAX - DIFFICULTY_MIN)
    ease = settings.ease_min + normalized * (settings.ease_max - settings.ease_min)
    return round(max(settings.ease_min, min(settings.ease_max, ease)), 3)


def attempt_rating(correct: bool, hints_used: int = 0) -> Rating:
    if not correct:
        return Rating.Again
    if hints_used > 0:
        return Rating.Hard
    return Rating.Good


def card_from_cell(cell, now: datetime) -> Card:
    if cell is None or not cell.reps:
        return Card()
    interval = max(1.0, cell.interval or 1)
    return Card(
        state=State.Review,
        stability=interval_to_stability(interval),
        difficulty=ease_to_difficulty(cell.ease if cell.ease is not None else settings.ease_start),
        due=as_utc(cell.next_due) or now,
        last_review=as_utc(cell.updated_at) or now,
    )


def compute_schedule_update(
    cell,
    correct: bool,
    hints_used: int = 0,
    now: Optional[datetime] = None,
    *,
    user_id: Optional[str] = None,
    mood: Optional[str] = None,
    tense: Optional[str] = None,
    person: Optional[str] = None,
    lemma: Optional[str] = None,
) -> ScheduleUpdate:
    """Grade one attempt with FSRS and return the proposed schedule."""
    now = as_utc(now) or datetime.now(timezone.utc)
    card = card_from_cell(cell, now)
    new_card, _ = scheduler.review_card(card, attempt_rating(correct, hints_used), now)

    interval_days = (new_card.due - now).total_seconds() / 86400
    reps = (cell.reps or 0) + 1 if cell is not None else 1
    lapses = (cell.lapses or 0) if cell is not None else 0
    if not correct:
        lapses += 1

    ease = (
        difficulty_to_ease(new_card.difficulty)
        if new_card.difficulty is not None
        else settings.ease_start
    )

    return ScheduleUpdate(
        user_id=user_id if user_id is not None else cell.user_id,
        mood=mood if mood is not None else cell.mood,
        tense=tense if tense is not None else cell.tense,
        person=person if person is not None else cell.person,
        interval=max(1, round(interval_days)),
        ease=ease,
        reps=reps,
        lapses=lapses,
        leech=lapses >= settings.leech_threshold,
        last_answer_correct=correct,
        next_due=new_card.due,
        reviewed_at=now,
        lemma=lemma,
    )


async def record_attempt(
    store: SrsStore,
    user_id: str,
    lemma: str,
    mood: str,
    tense: str,
    person: str,
    correct: bool,
    hints_used: int = 0,
    now: Optional[datetime] = None,
) -> ScheduleUpdate:
    """Schedule, boost and persist one attempt; returns the applied update."""
    cell = await store.get_schedule_by_cell(user_id, mood, tense, person)
    update = compute_schedule_update(
        cell, correct, hints_used, now,
        user_id=user_id, mood=mood, tense=tense, person=person, lemma=lemma,
    )
    update = await apply_family_clustering_boost(store, user_id, lemma, update, update)
    await store.save_schedule(update)

    if update.leech and not (cell is not None and cell.leech):
        logger.info(f"Cell {mood}/{tense}/{person} became a leech for user {user_id}")

    log_interaction(
        event="srs_attempt",
        user_id=user_id,
        lemma=lemma,
        cell=f"{mood}|{tense}|{person}",
        correct=correct,
        hints_used=hints_used or None,
        interval=update.interval,
        ease=update.ease,
        leech=update.leech or None,
        family_boost=update.family_boost_multiplier,
    )
    return update
