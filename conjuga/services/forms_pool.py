"""Forms pool resolution with signature-keyed caching.

The pool of eligible forms only changes when a setting that affects
eligibility changes, so it is cached under the catalog's settings
signature. The cache is an explicit object owned by the caller (one per
practice session); stale pools are replaced wholesale, never patched.

Each pool carries a CombinationIndex built in a single pass so that
mood/tense(/person) lookups never rescan the full form list.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from conjuga.schemas import PracticeSettings
from conjuga.services.catalog import Form, FormsCatalog

logger = logging.getLogger(__name__)

_EMPTY: tuple[Form, ...] = ()


def _key(*parts: str) -> str:
    return "|".join(parts)


@dataclass(frozen=True)
class CombinationIndex:
    by_mood_tense: dict[str, tuple[Form, ...]]
    by_mood_tense_person: dict[str, tuple[Form, ...]]
    by_region_mood_tense: dict[str, tuple[Form, ...]]
    by_region_mood_tense_person: dict[str, tuple[Form, ...]]

    def lookup(
        self,
        mood: str,
        tense: str,
        person: Optional[str] = None,
        region: Optional[str] = None,
    ) -> tuple[Form, ...]:
        if region is None:
            if person is None:
                return self.by_mood_tense.get(_key(mood, tense), _EMPTY)
            return self.by_mood_tense_person.get(_key(mood, tense, person), _EMPTY)
        if person is None:
            return self.by_region_mood_tense.get(_key(region, mood, tense), _EMPTY)
        return self.by_region_mood_tense_person.get(_key(region, mood, tense, person), _EMPTY)

    def combinations(self) -> list[str]:
        return list(self.by_mood_tense)


def build_combination_index(forms) -> CombinationIndex:
    """Bucket forms by mood|tense, mood|tense|person and their region-qualified variants."""
    mt: dict[str, list[Form]] = {}
    mtp: dict[str, list[Form]] = {}
    rmt: dict[str, list[Form]] = {}
    rmtp: dict[str, list[Form]] = {}

    for form in forms:
        mt.setdefault(_key(form.mood, form.tense), []).append(form)
        mtp.setdefault(_key(form.mood, form.tense, form.person), []).append(form)
        rmt.setdefault(_key(form.region, form.mood, form.tense), []).append(form)
        rmtp.setdefault(_key(form.region, form.mood, form.tense, form.person), []).append(form)

    return CombinationIndex(
        by_mood_tense={k: tuple(v) for k, v in mt.items()},
        by_mood_tense_person={k: tuple(v) for k, v in mtp.items()},
        by_region_mood_tense={k: tuple(v) for k, v in rmt.items()},
        by_region_mood_tense_person={k: tuple(v) for k, v in rmtp.items()},
    )


@dataclass
class FormsCache:
    signature: Optional[str] = None
    forms: tuple[Form, ...] = ()
    index: Optional[CombinationIndex] = None

    def clear(self) -> None:
        self.signature = None
        self.forms = ()
        self.index = None


@dataclass(frozen=True)
class FormsPool:
    forms: tuple[Form, ...]
    signature: str
    index: CombinationIndex
    reused: bool = False
    duration_ms: float = 0.0


async def resolve_forms_pool(
    settings: PracticeSettings,
    region: str,
    cache: FormsCache,
    catalog: FormsCatalog,
) -> FormsPool:
    """Return the eligible forms pool for (region, settings), reusing the cache when valid.

    On a signature match the cached forms are returned as-is (reused=True)
    and the index is built lazily if the cache was filled without one.
    Otherwise the catalog is awaited and the cache is replaced.
    """
    signature = catalog.get_forms_cache_key(region, settings)

    if cache.forms and cache.signature == signature:
        if cache.index is None:
            cache.index = build_combination_index(cache.forms)
        return FormsPool(
            forms=cache.forms,
            signature=signature,
            index=cache.index,
            reused=True,
            duration_ms=0.0,
        )

    started = time.perf_counter()
    forms = tuple(await catalog.generate_all_forms_for_region(region, settings))
    index = build_combination_index(forms)
    duration_ms = (time.perf_counter() - started) * 1000

    cache.signature = signature
    cache.forms = forms
    cache.index = index

    logger.debug(
        f"Forms pool rebuilt: {len(forms)} forms, "
        f"{len(index.by_mood_tense)} combinations in {duration_ms:.1f}ms"
    )
    return FormsPool(
        forms=forms,
        signature=signature,
        index=index,
        reused=False,
        duration_ms=duration_ms,
    )
