"""Family clustering: transfer learning between verbs of one irregular family.

Progress on one member of a family (e.g. tener) should partially promote
its morphological relatives (venir, poner...). Mastery is estimated from
the shared cell schedule for (mood, tense, person): the schedule is not
split per lemma, so the cell acts as a proxy for every family that
touches it.

When the best family mastery reaches the boost floor, an attempt's
proposed interval and ease are scaled up:

    transfer   = transfer_coefficient * max_mastery
    multiplier = min(max_boost, 1 + transfer * interval_boost)
    ease       = min(ease_max, ease + transfer * ease_boost)
"""

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Optional

from conjuga.config import settings
from conjuga.services.irregular_families import IRREGULAR_FAMILIES, categorize_verb
from conjuga.services.srs_store import ScheduleUpdate, as_utc

logger = logging.getLogger(__name__)

# Recommendations target families the learner has seen but not mastered
RECOMMENDATION_MIN_MASTERY = 0.3
RECOMMENDATION_MAX_MASTERY = 0.9
LEARNING_MASTERY_FLOOR = 0.1

# Mastery normalizers
INTERVAL_SATURATION_DAYS = 30
REPS_SATURATION = 10
LAPSE_DECAY = 3


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class FamilyMastery:
    family_id: Optional[str]
    mastery: float = 0.0
    verb_count: int = 0
    practice_count: int = 0
    mastered_count: int = 0


def mastery_from_schedule(cell) -> float:
    """Score a schedule cell in [0, 1] from interval, ease, reps, lapses and recency."""
    if cell is None:
        return 0.0

    interval = cell.interval or 0
    ease = cell.ease if cell.ease is not None else settings.ease_start
    reps = cell.reps or 0
    lapses = cell.lapses or 0

    interval_score = min(1.0, interval / INTERVAL_SATURATION_DAYS)
    ease_score = (ease - settings.ease_min) / (settings.ease_max - settings.ease_min)
    reps_score = min(1.0, reps / REPS_SATURATION)

    score = 0.4 * interval_score + 0.3 * ease_score + 0.2 * reps_score + 0.1
    score *= math.exp(-lapses / LAPSE_DECAY)
    if cell.leech:
        score *= 0.5
    # Never-graded cells count as correct
    score *= 1.1 if cell.last_answer_correct is not False else 0.9

    return max(0.0, min(1.0, score))


async def calculate_family_mastery(
    store, user_id: str, family_id: str, mood: str, tense: str, person: str
) -> FamilyMastery:
    family = IRREGULAR_FAMILIES.get(family_id)
    if family is None:
        logger.warning(f"Unknown irregular family: {family_id}")
        return FamilyMastery(family_id=family_id)

    verb_count = len(family.examples)
    if verb_count < settings.family_min_size:
        logger.debug(f"Family {family_id} too small ({verb_count} verbs)")
        return FamilyMastery(family_id=family_id, verb_count=verb_count)

    try:
        cell = await store.get_schedule_by_cell(user_id, mood, tense, person)
    except Exception:
        logger.exception(f"Failed to read schedule for family {family_id} ({mood}/{tense}/{person})")
        return FamilyMastery(family_id=family_id, verb_count=verb_count)

    if cell is None:
        return FamilyMastery(family_id=family_id, verb_count=verb_count)

    mastery = mastery_from_schedule(cell)
    return FamilyMastery(
        family_id=family_id,
        mastery=mastery,
        verb_count=verb_count,
        practice_count=cell.reps or 0,
        mastered_count=verb_count if mastery >= settings.family_mastery_threshold else 0,
    )


async def apply_family_clustering_boost(
    store, user_id: str, lemma: str, cell, schedule_update: ScheduleUpdate
) -> ScheduleUpdate:
    """Return a copy of schedule_update boosted by the lemma's best family mastery.

    Regular verbs and families below the boost floor get the input back
    unchanged. The boosted interval is never shorter than the proposed one.
    """
    families = categorize_verb(lemma)
    if not families:
        return schedule_update

    masteries = await asyncio.gather(*[
        calculate_family_mastery(store, user_id, family_id, cell.mood, cell.tense, cell.person)
        for family_id in families
    ])
    max_mastery = max([m.mastery for m in masteries] + [0.0])

    if max_mastery < settings.family_min_mastery_for_boost:
        logger.debug(f"{lemma}: family mastery {max_mastery:.2f} below boost floor")
        return schedule_update

    transfer = settings.family_transfer_coefficient * max_mastery
    multiplier = min(settings.family_max_boost, 1 + transfer * settings.family_interval_boost)
    base_ease = schedule_update.ease if schedule_update.ease is not None else settings.ease_start

    interval = max(
        schedule_update.interval,
        1,
        round_half_up(schedule_update.interval * multiplier),
    )
    boosted = replace(
        schedule_update,
        interval=interval,
        ease=min(settings.ease_max, base_ease + transfer * settings.family_ease_boost),
        family_clustering_applied=True,
        family_mastery=max_mastery,
        family_boost_multiplier=multiplier,
    )
    # next_due only moves by the days the boost added, so sub-day
    # relearning steps keep their due time
    extra_days = interval - schedule_update.interval
    if extra_days > 0 and schedule_update.next_due is not None:
        boosted = replace(
            boosted, next_due=as_utc(schedule_update.next_due) + timedelta(days=extra_days)
        )

    logger.info(
        f"Family boost for {lemma} ({cell.mood}/{cell.tense}/{cell.person}): "
        f"mastery={max_mastery:.2f}, x{multiplier:.2f}, "
        f"interval {schedule_update.interval}->{interval}"
    )
    return boosted


def _affects_tense(family, tense: str) -> bool:
    return not family.affected_tenses or tense in family.affected_tenses


async def get_intelligent_recommendations(
    store, user_id: str, mood: str, tense: str, person: str, limit: int = 5
) -> list[dict]:
    """Families in the learning sweet spot for this cell, strongest first."""
    recommendations = []
    for family_id, family in IRREGULAR_FAMILIES.items():
        if not _affects_tense(family, tense):
            continue
        fm = await calculate_family_mastery(store, user_id, family_id, mood, tense, person)
        if not (RECOMMENDATION_MIN_MASTERY < fm.mastery < RECOMMENDATION_MAX_MASTERY):
            continue
        paradigmatic = family.paradigmatic_verbs or family.examples
        recommendations.append({
            "family_id": family_id,
            "family_name": family.name,
            "family_pattern": family.pattern,
            "current_mastery": fm.mastery,
            "suggested_verbs": list(paradigmatic[:3]),
            "reasoning": (
                f"You've mastered {fm.mastery * 100:.0f}% of {family.name}. "
                f"These verbs share the pattern: {family.pattern}"
            ),
            "total_verbs": len(family.examples),
        })

    recommendations.sort(key=lambda r: r["current_mastery"], reverse=True)
    return recommendations[:limit]


async def get_family_statistics(
    store, user_id: str, mood: str, tense: str, person: str
) -> dict:
    stats = {
        "total_families": 0,
        "mastered_families": 0,
        "learning_families": 0,
        "new_families": 0,
        "family_details": [],
    }

    for family_id, family in IRREGULAR_FAMILIES.items():
        if not _affects_tense(family, tense):
            continue
        stats["total_families"] += 1

        fm = await calculate_family_mastery(store, user_id, family_id, mood, tense, person)
        if fm.mastery >= settings.family_mastery_threshold:
            stats["mastered_families"] += 1
        elif fm.mastery > LEARNING_MASTERY_FLOOR:
            stats["learning_families"] += 1
        else:
            stats["new_families"] += 1

        stats["family_details"].append({
            "id": family_id,
            "name": family.name,
            "pattern": family.pattern,
            "mastery": fm.mastery,
            "verb_count": len(family.examples),
            "practice_count": fm.practice_count,
            "mastered_count": fm.mastered_count,
        })

    stats["family_details"].sort(key=lambda d: d["mastery"], reverse=True)
    logger.debug(
        f"Family stats for {mood}/{tense}/{person}: "
        f"{stats['mastered_families']} mastered, {stats['learning_families']} learning, "
        f"{stats['new_families']} new of {stats['total_families']}"
    )
    return stats
