"""Default selection strategies plugged into the form selector.

Each one is a plain function so hosts can swap any of them through
SelectionDependencies without touching the others.
"""

import random
from typing import Optional

from conjuga.config import settings as app_settings
from conjuga.services.irregular_families import is_irregular


def _same_item(form, item) -> bool:
    return (
        item is not None
        and form.lemma == getattr(item, "lemma", None)
        and form.mood == getattr(item, "mood", None)
        and form.tense == getattr(item, "tense", None)
        and form.person == getattr(item, "person", None)
    )


def _variety_score(form, recent_lemmas: set, recent_persons: set, recent_cells: set) -> int:
    score = 0
    if form.lemma not in recent_lemmas:
        score += 4
    if form.person not in recent_persons:
        score += 2
    if f"{form.mood}|{form.tense}" not in recent_cells:
        score += 1
    return score


def select_varied_form(
    forms,
    level: Optional[str] = None,
    practice_mode: Optional[str] = None,
    history=None,
    rng: Optional[random.Random] = None,
):
    """Pick a form whose lemma, person and cell were not drilled recently.

    Candidates are scored against the last few history entries; ties
    among the best score are broken at random.
    """
    forms = list(forms or [])
    if not forms:
        return None

    recent = list(history or [])[-app_settings.variety_history_window:]
    recent_lemmas = {getattr(h, "lemma", None) for h in recent}
    recent_persons = {getattr(h, "person", None) for h in recent}
    recent_cells = {f"{getattr(h, 'mood', None)}|{getattr(h, 'tense', None)}" for h in recent}

    scored = [(_variety_score(f, recent_lemmas, recent_persons, recent_cells), f) for f in forms]
    best = max(score for score, _ in scored)
    return (rng or random).choice([f for score, f in scored if score == best])


def choose_next(forms, history=None, current_item=None, settings=None):
    """Generic chooser over the whole pool; never repeats current_item if avoidable."""
    forms = list(forms or [])
    if not forms:
        return None

    candidates = [f for f in forms if not _same_item(f, current_item)] or forms
    return select_varied_form(
        candidates,
        getattr(settings, "level", None),
        getattr(settings, "practice_mode", None),
        history,
    )


def gate_due_items_by_curriculum(cells, settings=None) -> list:
    """Keep due cells whose mood|tense is unlocked in settings.allowed_combos."""
    allowed = getattr(settings, "allowed_combos", None)
    cells = [c for c in (cells or []) if c is not None]
    if not allowed:
        return cells
    allowed = set(allowed)
    return [c for c in cells if f"{c.mood}|{c.tense}" in allowed]


def filter_by_verb_type(forms, verb_type: Optional[str], settings=None) -> list:
    forms = list(forms or [])
    if verb_type == "irregular":
        return [f for f in forms if is_irregular(f.lemma)]
    if verb_type == "regular":
        return [f for f in forms if not is_irregular(f.lemma)]
    return forms
