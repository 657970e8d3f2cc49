"""One practice turn: resolve the forms pool, normalize targeting, select a form."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from conjuga.config import settings as app_settings
from conjuga.schemas import PracticeSettings
from conjuga.services.adaptive import WeakestCellRecommender
from conjuga.services.catalog import FormsCatalog
from conjuga.services.constraints import (
    MIXED_TENSES,
    SpecificConstraints,
    apply_review_session_filter,
    build_specific_constraints,
    filter_due_for_specific,
    get_review_session_context,
    select_due_candidate,
)
from conjuga.services.form_selector import (
    SelectionDependencies,
    SelectionResult,
    select_next_form,
)
from conjuga.services.forms_pool import FormsCache, FormsPool, resolve_forms_pool
from conjuga.services.strategies import (
    choose_next,
    filter_by_verb_type,
    gate_due_items_by_curriculum,
    select_varied_form,
)

logger = logging.getLogger(__name__)

RELAXED_TENSE = "relaxed_tense"
RELAXED_MIXED = "mixed_practice_fallback"


@dataclass
class DrillTurn:
    result: SelectionResult
    pool: FormsPool
    constraints: SpecificConstraints
    relaxation: Optional[str] = None


def default_dependencies(store, user_id: Optional[str]) -> SelectionDependencies:
    return SelectionDependencies(
        get_current_user_id=lambda: user_id,
        get_due_items=store.get_due_items if store is not None else None,
        gate_due_items_by_curriculum=gate_due_items_by_curriculum,
        filter_due_for_specific=filter_due_for_specific,
        filter_by_verb_type=filter_by_verb_type,
        select_varied_form=select_varied_form,
        get_next_recommended_item=(
            WeakestCellRecommender(store, user_id) if store is not None else None
        ),
        choose_next=choose_next,
        apply_review_session_filter=apply_review_session_filter,
        select_due_candidate=select_due_candidate,
    )


def restrict_to_constraints(pool: FormsPool, constraints: SpecificConstraints) -> list:
    """Specific turns only draw from the targeted mood/tense (mixed tenses expanded)."""
    if not constraints.is_specific:
        return list(pool.forms)

    tenses = MIXED_TENSES.get(constraints.specific_tense, (constraints.specific_tense,))
    forms = []
    for tense in tenses:
        forms.extend(pool.index.lookup(constraints.specific_mood, tense))
    return forms


def relax_constraints(
    pool: FormsPool, constraints: SpecificConstraints
) -> tuple[list, SpecificConstraints, Optional[str]]:
    """Widen a specific turn with no forms: same mood any tense, then the full pool."""
    eligible = restrict_to_constraints(pool, constraints)
    if eligible or not constraints.is_specific or not pool.forms:
        return eligible, constraints, None

    same_mood = [f for f in pool.forms if f.mood == constraints.specific_mood]
    if same_mood:
        return same_mood, SpecificConstraints(), RELAXED_TENSE
    return list(pool.forms), SpecificConstraints(), RELAXED_MIXED


async def run_drill_turn(
    settings: PracticeSettings,
    catalog: FormsCatalog,
    cache: FormsCache,
    store=None,
    user_id: Optional[str] = None,
    history=None,
    exclude=None,
    now: Optional[datetime] = None,
    dependencies: Optional[SelectionDependencies] = None,
) -> DrillTurn:
    region = settings.region or app_settings.default_region
    pool = await resolve_forms_pool(settings, region, cache, catalog)

    review_type, review_filter = get_review_session_context(settings)
    constraints = build_specific_constraints(settings, review_type, review_filter)
    eligible, selection_constraints, relaxation = relax_constraints(pool, constraints)

    if relaxation is not None:
        logger.info(
            f"No forms for {constraints.specific_mood}/{constraints.specific_tense} "
            f"in a pool of {len(pool.forms)}, widened to {relaxation} ({len(eligible)} forms)"
        )

    result = await select_next_form(
        eligible,
        settings,
        history=history,
        item_to_exclude=exclude,
        specific_constraints=selection_constraints,
        review_session_type=review_type,
        review_session_filter=review_filter,
        now=now,
        dependencies=dependencies or default_dependencies(store, user_id),
    )
    if relaxation is not None and result.selection_method is not None:
        result.selection_method = f"{relaxation}:{result.selection_method}"
    return DrillTurn(result=result, pool=pool, constraints=constraints, relaxation=relaxation)
