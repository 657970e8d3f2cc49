"""Turn targeting: specific-practice constraints, review filters and urgency tiers.

Everything here is pure (no I/O). Raw PracticeSettings are normalized into
SpecificConstraints and ReviewSessionFilter once per turn so the selector
never re-reads mode-dependent settings.
"""

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from conjuga.config import settings as app_settings
from conjuga.schemas import PracticeSettings

SPECIFIC_PRACTICE_MODES = {"specific", "theme"}

URGENCY_OVERDUE = 4
URGENCY_HIGH = 3
URGENCY_MEDIUM = 2
URGENCY_LOW = 1

HIGH_URGENCY_WINDOW = timedelta(hours=6)
MEDIUM_URGENCY_WINDOW = timedelta(hours=24)

# Pseudo-tenses that stand for a group of concrete tenses
MIXED_TENSES = {
    "impMixed": ("impAff", "impNeg"),
    "nonfiniteMixed": ("ger", "part"),
}


@dataclass(frozen=True)
class SpecificConstraints:
    is_specific: bool = False
    specific_mood: Optional[str] = None
    specific_tense: Optional[str] = None
    specific_person: Optional[str] = None


@dataclass(frozen=True)
class ReviewSessionFilter:
    mood: Optional[str] = None
    tense: Optional[str] = None
    person: Optional[str] = None
    urgency: Union[str, int] = "all"
    limit: Union[str, int, None] = None
    limit_count: Optional[int] = None


def get_review_session_context(settings: PracticeSettings) -> tuple[str, ReviewSessionFilter]:
    """Extract (review_session_type, filter) from settings; 'due' when unset."""
    review_type = settings.review_session_type or "due"
    raw = settings.review_filter
    if raw is None:
        return review_type, ReviewSessionFilter()
    return review_type, ReviewSessionFilter(
        mood=raw.mood,
        tense=raw.tense,
        person=raw.person,
        urgency=raw.urgency,
        limit=raw.limit,
        limit_count=raw.limit_count,
    )


def build_specific_constraints(
    settings: PracticeSettings,
    review_session_type: Optional[str],
    review_session_filter: Optional[ReviewSessionFilter],
) -> SpecificConstraints:
    review_filter = review_session_filter or ReviewSessionFilter()

    is_review_specific = (
        settings.practice_mode == "review"
        and review_session_type == "specific"
        and bool(review_filter.mood)
        and bool(review_filter.tense)
    )
    if is_review_specific:
        return SpecificConstraints(
            is_specific=True,
            specific_mood=review_filter.mood,
            specific_tense=review_filter.tense,
        )

    is_practice_specific = (
        settings.practice_mode in SPECIFIC_PRACTICE_MODES
        and bool(settings.specific_mood)
        and bool(settings.specific_tense)
    )
    if is_practice_specific:
        return SpecificConstraints(
            is_specific=True,
            specific_mood=settings.specific_mood,
            specific_tense=settings.specific_tense,
        )

    # Stale specific_mood/specific_tense in settings must not leak through
    return SpecificConstraints()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_datetime(value) -> Optional[datetime]:
    """Accept datetimes or epoch milliseconds; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def compute_urgency_level(next_due, now) -> int:
    """Coarse 1-4 urgency tier: 4 overdue, 3 due within 6h, 2 within 24h, else 1."""
    due = _to_datetime(next_due)
    current = _to_datetime(now)
    if due is None or current is None:
        return URGENCY_LOW
    if due < current:
        return URGENCY_OVERDUE
    remaining = due - current
    if remaining <= HIGH_URGENCY_WINDOW:
        return URGENCY_HIGH
    if remaining <= MEDIUM_URGENCY_WINDOW:
        return URGENCY_MEDIUM
    return URGENCY_LOW


def _matches_cell(cell, review_filter: ReviewSessionFilter) -> bool:
    if cell is None:
        return False
    if review_filter.mood and cell.mood != review_filter.mood:
        return False
    if review_filter.tense and cell.tense != review_filter.tense:
        return False
    if review_filter.person and cell.person != review_filter.person:
        return False
    return True


def _matches_urgency(level: int, urgency) -> bool:
    if urgency == "urgent":
        return level >= URGENCY_HIGH
    if urgency == "overdue":
        return level == URGENCY_OVERDUE
    if isinstance(urgency, int) and not isinstance(urgency, bool):
        return level == urgency
    return True


def _apply_limit(cells: list, review_filter: ReviewSessionFilter) -> list:
    limit = review_filter.limit
    if limit == "light":
        return cells[: review_filter.limit_count or app_settings.light_review_limit]
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return cells[:limit]
    return cells


def apply_review_session_filter(
    due_cells: list,
    review_session_type: Optional[str],
    review_session_filter: Optional[ReviewSessionFilter],
    now,
) -> list:
    """Narrow due cells by mood/tense/person, then urgency tier, then limit.

    For 'specific' reviews an empty result falls back to the
    mood/tense/person match alone: urgency and limit only refine.
    """
    review_filter = review_session_filter or ReviewSessionFilter()
    cells = list(due_cells or [])

    matched = [c for c in cells if _matches_cell(c, review_filter)]
    filtered = [
        c for c in matched
        if _matches_urgency(compute_urgency_level(c.next_due, now), review_filter.urgency)
    ]
    filtered = _apply_limit(filtered, review_filter)

    if review_session_type == "specific" and not filtered:
        return matched
    return filtered


def select_due_candidate(due_cells, rng: Optional[random.Random] = None):
    """Uniform random pick among non-null due cells, None when there are none."""
    candidates = [c for c in (due_cells or []) if c is not None]
    if not candidates:
        return None
    return (rng or random).choice(candidates)


def filter_due_for_specific(due_cells, constraints: SpecificConstraints) -> list:
    if not constraints.is_specific:
        return list(due_cells or [])

    tenses = MIXED_TENSES.get(constraints.specific_tense, (constraints.specific_tense,))
    return [
        c for c in (due_cells or [])
        if c is not None and c.mood == constraints.specific_mood and c.tense in tenses
    ]
