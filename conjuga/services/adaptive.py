"""Adaptive recommender: point the learner at their weakest scheduled cell.

The recommendation only names a mood/tense (and optionally a verb); the
selector decides how strictly to honor it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from conjuga.services.family_clustering import mastery_from_schedule

logger = logging.getLogger(__name__)

_A1 = ["indicative|pres"]
_A2 = _A1 + [
    "indicative|pretIndef",
    "indicative|impf",
    "indicative|fut",
    "imperative|impAff",
]
_B1 = _A2 + [
    "indicative|plusc",
    "indicative|pretPerf",
    "indicative|futPerf",
    "subjunctive|subjPres",
    "subjunctive|subjPerf",
    "imperative|impNeg",
    "conditional|cond",
]
_B2 = _B1 + [
    "subjunctive|subjImpf",
    "subjunctive|subjPlusc",
    "conditional|condPerf",
]
_C1 = _B2 + ["nonfinite|ger", "nonfinite|part"]

# mood|tense combinations unlocked at each CEFR level
LEVEL_COMBOS: dict[str, frozenset[str]] = {
    "A1": frozenset(_A1),
    "A2": frozenset(_A2),
    "B1": frozenset(_B1),
    "B2": frozenset(_B2),
    "C1": frozenset(_C1),
    "C2": frozenset(_C1),
}


@dataclass(frozen=True)
class Recommendation:
    mood: str
    tense: str
    verb_id: Optional[str] = None


class WeakestCellRecommender:
    """Recommends the lowest-mastery cell of one user within the level's combos."""

    def __init__(self, store, user_id: Optional[str]):
        self.store = store
        self.user_id = user_id

    async def __call__(self, level: str = "B1") -> Optional[Recommendation]:
        if not self.user_id:
            return None

        cells = await self.store.get_all_schedules(self.user_id)
        allowed = LEVEL_COMBOS.get(level)
        candidates = [
            c for c in cells
            if allowed is None or f"{c.mood}|{c.tense}" in allowed
        ]
        if not candidates:
            return None

        weakest = min(candidates, key=mastery_from_schedule)
        logger.debug(
            f"Weakest cell for {self.user_id}: {weakest.mood}/{weakest.tense}/{weakest.person}"
        )
        return Recommendation(mood=weakest.mood, tense=weakest.tense)
