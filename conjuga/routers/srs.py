from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.schemas import AttemptIn, AttemptOut, ReviewFilterIn, ScheduleCellOut
from conjuga.services.constraints import (
    ReviewSessionFilter,
    apply_review_session_filter,
    compute_urgency_level,
)
from conjuga.services.srs_service import record_attempt
from conjuga.services.srs_store import SrsStore


router = APIRouter(prefix="/api/srs", tags=["srs"])


def _cell_out(cell, now: datetime) -> ScheduleCellOut:
    out = ScheduleCellOut.model_validate(cell)
    return out.model_copy(update={"urgency": compute_urgency_level(cell.next_due, now)})


@router.get("/due", response_model=list[ScheduleCellOut])
async def due_cells(
    user_id: str = Query(...),
    mood: Optional[str] = Query(None),
    tense: Optional[str] = Query(None),
    person: Optional[str] = Query(None),
    urgency: str = Query("all"),
    limit: Optional[str] = Query(None),
    limit_count: Optional[int] = Query(None, ge=1, le=200),
    review_type: str = Query("due"),
    db: Session = Depends(get_db),
):
    """Due cells for a review session, narrowed by the review filter."""
    try:
        raw = ReviewFilterIn(
            mood=mood, tense=tense, person=person,
            urgency=urgency, limit=limit, limit_count=limit_count,
        )
    except ValidationError as e:
        raise HTTPException(422, f"Invalid review filter: {e.errors()[0]['msg']}")

    now = datetime.now(timezone.utc)
    cells = await SrsStore(db).get_due_items(user_id, now)
    review_filter = ReviewSessionFilter(**raw.model_dump())
    filtered = apply_review_session_filter(cells, review_type, review_filter, now)
    return [_cell_out(c, now) for c in filtered]


@router.get("/cell", response_model=ScheduleCellOut)
async def get_cell(
    user_id: str = Query(...),
    mood: str = Query(...),
    tense: str = Query(...),
    person: str = Query(...),
    db: Session = Depends(get_db),
):
    cell = await SrsStore(db).get_schedule_by_cell(user_id, mood, tense, person)
    if not cell:
        raise HTTPException(404, "Schedule cell not found")
    return _cell_out(cell, datetime.now(timezone.utc))


@router.post("/attempt", response_model=AttemptOut)
async def submit_attempt(body: AttemptIn, db: Session = Depends(get_db)):
    update = await record_attempt(
        SrsStore(db),
        body.user_id,
        body.lemma,
        body.mood,
        body.tense,
        body.person,
        body.correct,
        hints_used=body.hints_used,
    )
    return AttemptOut(
        interval=update.interval,
        ease=update.ease,
        reps=update.reps,
        lapses=update.lapses,
        leech=update.leech,
        next_due=update.next_due,
        family_clustering_applied=update.family_clustering_applied,
        family_mastery=update.family_mastery,
        family_boost_multiplier=update.family_boost_multiplier,
    )


@router.delete("/schedules/{user_id}")
async def reset_schedules(user_id: str, db: Session = Depends(get_db)):
    deleted = await SrsStore(db).reset_user_schedules(user_id)
    return {"user_id": user_id, "deleted": deleted}
