"""Forms catalog: the source of conjugated forms for a region/settings combination.

The production catalog (verb dataset + generators) lives outside this
package. StaticFormsCatalog serves a fixed list of forms and applies the
same eligibility rules, which is enough for the API and for tests.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol

from conjuga.schemas import PracticeSettings
from conjuga.services.irregular_families import categorize_verb, is_irregular

logger = logging.getLogger(__name__)

ALL_REGIONS = "all"

# Persons only present when the learner opts into the matching pronoun system
VOSEO_PERSON = "2s_vos"
VOSOTROS_PERSON = "2p_vosotros"


@dataclass(frozen=True)
class Form:
    lemma: str
    mood: str
    tense: str
    person: str
    region: str
    value: str


class FormsCatalog(Protocol):
    async def generate_all_forms_for_region(
        self, region: str, settings: PracticeSettings
    ) -> list[Form]: ...

    def get_forms_cache_key(self, region: str, settings: PracticeSettings) -> str: ...


def get_forms_cache_key(region: str, settings: PracticeSettings) -> str:
    """Deterministic signature of everything that changes form eligibility."""
    combos = ",".join(sorted(settings.allowed_combos)) if settings.allowed_combos else "*"
    parts = [
        region or "",
        settings.level or "",
        settings.verb_type or "all",
        settings.selected_family or "",
        "vos" if settings.use_voseo else "novos",
        "vosotros" if settings.use_vosotros else "novosotros",
        settings.practice_mode or "",
        settings.specific_mood or "",
        settings.specific_tense or "",
        combos,
    ]
    return "|".join(parts)


def _allows_person(person: str, settings: PracticeSettings) -> bool:
    if person == VOSEO_PERSON and not settings.use_voseo:
        return False
    if person == VOSOTROS_PERSON and not settings.use_vosotros:
        return False
    return True


def is_form_eligible(form: Form, region: str, settings: PracticeSettings) -> bool:
    if form.region not in (region, ALL_REGIONS):
        return False
    if not _allows_person(form.person, settings):
        return False
    if settings.allowed_combos and f"{form.mood}|{form.tense}" not in settings.allowed_combos:
        return False
    if settings.verb_type == "regular" and is_irregular(form.lemma):
        return False
    if settings.verb_type == "irregular" and not is_irregular(form.lemma):
        return False
    if settings.selected_family and settings.selected_family not in categorize_verb(form.lemma):
        return False
    return True


class StaticFormsCatalog:
    """Catalog over a fixed, in-memory list of forms."""

    def __init__(self, forms: Iterable[Form]):
        self._forms = tuple(forms)
        self.generate_calls = 0

    async def generate_all_forms_for_region(
        self, region: str, settings: PracticeSettings
    ) -> list[Form]:
        self.generate_calls += 1
        eligible = [f for f in self._forms if is_form_eligible(f, region, settings)]
        logger.debug(
            f"Catalog produced {len(eligible)}/{len(self._forms)} forms for region={region}"
        )
        return eligible

    def get_forms_cache_key(self, region: str, settings: PracticeSettings) -> str:
        return get_forms_cache_key(region, settings)


def forms_from_rows(rows: Iterable[dict], default_region: Optional[str] = None) -> list[Form]:
    """Build forms from plain dict rows (dataset exports, fixtures)."""
    forms = []
    for row in rows:
        forms.append(Form(
            lemma=row["lemma"],
            mood=row["mood"],
            tense=row["tense"],
            person=row["person"],
            region=row.get("region") or default_region or ALL_REGIONS,
            value=row.get("value", ""),
        ))
    return forms


def load_forms_file(path: Path, default_region: Optional[str] = None) -> list[Form]:
    """Load a JSON array of form rows; a missing file yields no forms."""
    if not path.exists():
        logger.warning(f"Forms file not found: {path}")
        return []
    with open(path) as f:
        rows = json.load(f)
    forms = forms_from_rows(rows, default_region)
    logger.info(f"Loaded {len(forms)} forms from {path}")
    return forms
