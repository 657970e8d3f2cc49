"""Hierarchical next-form selection.

One call picks exactly one form (or None) by walking an ordered list of
stages until one yields a candidate:

  1. srs_due_with_variety: a due SRS cell, narrowed to matching pool forms
  2. adaptive_recommendation_with_variety: the recommender's mood/tense(/verb)
  3. standard_generator: the generic chooser over the whole pool

Every strategy is injected through SelectionDependencies; missing ones
make their stage a no-op. Only the adaptive stage records errors, which
never abort the walk.
"""

import inspect
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from conjuga.services.catalog import Form
from conjuga.services.constraints import ReviewSessionFilter, SpecificConstraints
from conjuga.services.interaction_logger import log_interaction

logger = logging.getLogger(__name__)

STAGE_SRS_DUE = "srs_due_with_variety"
STAGE_ADAPTIVE = "adaptive_recommendation_with_variety"
STAGE_STANDARD = "standard_generator"

ADAPTIVE_ERROR_STAGE = "adaptive"
DEFAULT_LEVEL = "B1"


@dataclass
class SelectionDependencies:
    get_current_user_id: Optional[Callable[[], Optional[str]]] = None
    get_due_items: Optional[Callable[..., Awaitable[list]]] = None
    gate_due_items_by_curriculum: Optional[Callable] = None
    filter_due_for_specific: Optional[Callable] = None
    filter_by_verb_type: Optional[Callable] = None
    select_varied_form: Optional[Callable] = None
    get_next_recommended_item: Optional[Callable] = None
    choose_next: Optional[Callable] = None
    apply_review_session_filter: Optional[Callable] = None
    select_due_candidate: Optional[Callable] = None


@dataclass
class SelectionResult:
    form: Optional[Form] = None
    selection_method: Optional[str] = None
    errors: list[dict] = field(default_factory=list)


@dataclass
class _Turn:
    eligible_forms: list
    settings: Any
    history: list
    item_to_exclude: Any
    constraints: SpecificConstraints
    review_session_type: Optional[str]
    review_session_filter: Optional[ReviewSessionFilter]
    now: datetime
    deps: SelectionDependencies
    errors: list[dict] = field(default_factory=list)

    @property
    def level(self) -> str:
        return getattr(self.settings, "level", None) or DEFAULT_LEVEL

    @property
    def practice_mode(self) -> Optional[str]:
        return getattr(self.settings, "practice_mode", None)

    @property
    def verb_type(self) -> Optional[str]:
        return getattr(self.settings, "verb_type", None)


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


def _pick_random(forms):
    if not forms:
        return None
    return random.choice(forms)


async def _narrow_by_verb_type(turn: _Turn, forms: list) -> list:
    if turn.deps.filter_by_verb_type and turn.verb_type and turn.verb_type != "all":
        forms = list(await _maybe_await(
            turn.deps.filter_by_verb_type(forms, turn.verb_type, turn.settings)
        ) or [])
    return forms


async def _pick_with_variety(turn: _Turn, forms: list):
    picked = None
    if turn.deps.select_varied_form:
        picked = await _maybe_await(
            turn.deps.select_varied_form(forms, turn.level, turn.practice_mode, turn.history)
        )
    return picked or _pick_random(forms)


async def _srs_due_stage(turn: _Turn):
    deps = turn.deps
    if not deps.get_current_user_id or not deps.get_due_items:
        return None
    user_id = await _maybe_await(deps.get_current_user_id())
    if not user_id:
        return None

    due_cells = list(await _maybe_await(deps.get_due_items(user_id, turn.now)) or [])
    if deps.gate_due_items_by_curriculum:
        due_cells = list(await _maybe_await(
            deps.gate_due_items_by_curriculum(due_cells, turn.settings)
        ) or [])
    if deps.filter_due_for_specific:
        due_cells = list(deps.filter_due_for_specific(due_cells, turn.constraints) or [])
    if turn.practice_mode == "review" and deps.apply_review_session_filter:
        due_cells = list(deps.apply_review_session_filter(
            due_cells, turn.review_session_type, turn.review_session_filter, turn.now
        ) or [])

    if not deps.select_due_candidate:
        return None
    cell = deps.select_due_candidate(due_cells)
    if cell is None:
        return None

    # Person is only pinned when the turn targets a specific cell
    candidates = [
        f for f in turn.eligible_forms
        if f.mood == cell.mood
        and f.tense == cell.tense
        and (not turn.constraints.is_specific or f.person == cell.person)
    ]
    candidates = await _narrow_by_verb_type(turn, candidates)
    if not candidates:
        logger.debug(f"Due cell {cell.mood}/{cell.tense}/{cell.person} has no eligible forms")
        return None
    return await _pick_with_variety(turn, candidates)


def _recommendation_target(recommendation) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Read mood/tense/verb from a dict or object, nested under targetCombination or flat."""
    if isinstance(recommendation, dict):
        target = (
            recommendation.get("target_combination")
            or recommendation.get("targetCombination")
            or recommendation
        )
    else:
        target = (
            getattr(recommendation, "target_combination", None)
            or getattr(recommendation, "targetCombination", None)
            or recommendation
        )

    def read(name, alias=None):
        if isinstance(target, dict):
            value = target.get(name)
            return value if value is not None or alias is None else target.get(alias)
        value = getattr(target, name, None)
        return value if value is not None or alias is None else getattr(target, alias, None)

    return read("mood"), read("tense"), read("verb_id", "verbId")


async def _adaptive_stage(turn: _Turn):
    recommend = turn.deps.get_next_recommended_item
    if not recommend:
        return None
    try:
        recommendation = await _maybe_await(recommend(turn.level))
        if not recommendation:
            return None

        mood, tense, verb_id = _recommendation_target(recommendation)
        if not (mood and tense):
            return None
        candidates = [f for f in turn.eligible_forms if f.mood == mood and f.tense == tense]

        if verb_id:
            same_verb = [f for f in candidates if f.lemma == verb_id]
            if same_verb:
                candidates = same_verb

        candidates = await _narrow_by_verb_type(turn, candidates)
        if not candidates:
            return None
        return await _pick_with_variety(turn, candidates)
    except Exception as e:
        logger.warning(f"Adaptive recommendation failed: {e}")
        turn.errors.append({"stage": ADAPTIVE_ERROR_STAGE, "error": e})
        return None


async def _standard_stage(turn: _Turn):
    if not turn.deps.choose_next or not turn.eligible_forms:
        return None
    return await _maybe_await(
        turn.deps.choose_next(turn.eligible_forms, turn.history, turn.item_to_exclude, turn.settings)
    )


SELECTION_STAGES: list[tuple[str, Callable[[_Turn], Awaitable[Optional[Form]]]]] = [
    (STAGE_SRS_DUE, _srs_due_stage),
    (STAGE_ADAPTIVE, _adaptive_stage),
    (STAGE_STANDARD, _standard_stage),
]


async def select_next_form(
    eligible_forms,
    settings,
    history=None,
    item_to_exclude=None,
    specific_constraints: Optional[SpecificConstraints] = None,
    review_session_type: Optional[str] = None,
    review_session_filter: Optional[ReviewSessionFilter] = None,
    now: Optional[datetime] = None,
    dependencies: Optional[SelectionDependencies] = None,
) -> SelectionResult:
    """Return the next form to drill and the stage that produced it.

    form is None only when every stage came up empty (e.g. an empty pool).
    """
    turn = _Turn(
        eligible_forms=list(eligible_forms or []),
        settings=settings,
        history=list(history or []),
        item_to_exclude=item_to_exclude,
        constraints=specific_constraints or SpecificConstraints(),
        review_session_type=review_session_type,
        review_session_filter=review_session_filter,
        now=now or datetime.now(timezone.utc),
        deps=dependencies or SelectionDependencies(),
    )

    result = SelectionResult(errors=turn.errors)
    for method, stage in SELECTION_STAGES:
        form = await stage(turn)
        if form is not None:
            result.form = form
            result.selection_method = method
            break

    if result.form is None:
        logger.info(f"No form selected from a pool of {len(turn.eligible_forms)}")
    else:
        logger.debug(
            f"Selected {result.form.lemma} {result.form.mood}/{result.form.tense}/"
            f"{result.form.person} via {result.selection_method}"
        )

    user_id = None
    if turn.deps.get_current_user_id:
        user_id = await _maybe_await(turn.deps.get_current_user_id())
    log_interaction(
        event="form_selected",
        user_id=user_id,
        lemma=result.form.lemma if result.form else None,
        cell=(
            f"{result.form.mood}|{result.form.tense}|{result.form.person}"
            if result.form else None
        ),
        selection_method=result.selection_method,
        pool_size=len(turn.eligible_forms),
        error_stages=[e["stage"] for e in result.errors] or None,
    )
    return result
