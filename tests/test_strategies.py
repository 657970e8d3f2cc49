import asyncio
import random
from datetime import datetime, timezone
from types import SimpleNamespace

from conjuga.models import ScheduleCell
from conjuga.schemas import HistoryEntry, PracticeSettings
from conjuga.services.adaptive import LEVEL_COMBOS, Recommendation, WeakestCellRecommender
from conjuga.services.catalog import Form
from conjuga.services.srs_store import SrsStore
from conjuga.services.strategies import (
    choose_next,
    filter_by_verb_type,
    gate_due_items_by_curriculum,
    select_varied_form,
)


def _form(lemma, person="1s", tense="pres"):
    return Form(lemma=lemma, mood="indicative", tense=tense, person=person, region="all", value=lemma)


def _history(lemma, person="1s", tense="pres"):
    return HistoryEntry(lemma=lemma, mood="indicative", tense=tense, person=person)


class TestSelectVariedForm:
    def test_empty(self):
        assert select_varied_form([]) is None
        assert select_varied_form(None) is None

    def test_prefers_unseen_lemma(self):
        forms = [_form("hablar"), _form("tener")]
        history = [_history("hablar")]
        for _ in range(10):
            assert select_varied_form(forms, "B1", "mixed", history).lemma == "tener"

    def test_prefers_unseen_person_for_same_lemma(self):
        forms = [_form("hablar", "1s"), _form("hablar", "3p")]
        history = [_history("hablar", "1s")]
        assert select_varied_form(forms, history=history).person == "3p"

    def test_old_history_is_forgotten(self):
        forms = [_form("hablar"), _form("tener")]
        history = [_history("tener")] + [_history("vivir", "3p", "impf")] * 10
        picks = {select_varied_form(forms, history=history, rng=random.Random(i)).lemma for i in range(30)}
        assert picks == {"hablar", "tener"}


class TestChooseNext:
    def test_avoids_current_item(self):
        forms = [_form("hablar"), _form("tener")]
        for _ in range(10):
            assert choose_next(forms, [], forms[1]) == forms[0]

    def test_empty(self):
        assert choose_next([], [], None) is None


class TestGate:
    def test_gate_by_allowed_combos(self):
        cells = [
            SimpleNamespace(mood="indicative", tense="pres"),
            SimpleNamespace(mood="subjunctive", tense="subjImpf"),
            None,
        ]
        settings = PracticeSettings(allowed_combos=["indicative|pres"])
        assert gate_due_items_by_curriculum(cells, settings) == [cells[0]]

    def test_no_combos_keeps_everything(self):
        cells = [SimpleNamespace(mood="indicative", tense="pres")]
        assert gate_due_items_by_curriculum(cells, PracticeSettings()) == cells


class TestVerbTypeFilter:
    def test_irregular_and_regular(self):
        forms = [_form("hablar"), _form("tener"), _form("buscar"), _form("vivir")]
        assert [f.lemma for f in filter_by_verb_type(forms, "irregular")] == ["tener", "buscar"]
        assert [f.lemma for f in filter_by_verb_type(forms, "regular")] == ["hablar", "vivir"]
        assert filter_by_verb_type(forms, "all") == forms


class TestWeakestCellRecommender:
    def _add(self, db, tense, person, **fields):
        values = dict(interval=20, ease=2.8, reps=8, lapses=0, leech=False,
                      last_answer_correct=True, next_due=datetime(2025, 3, 1))
        values.update(fields)
        db.add(ScheduleCell(user_id="u1", mood="indicative", tense=tense, person=person, **values))
        db.flush()

    def test_recommends_weakest_cell(self, db_session):
        self._add(db_session, "pres", "1s")
        self._add(db_session, "pretIndef", "3s", interval=1, ease=1.5, reps=1, lapses=2)
        rec = asyncio.run(WeakestCellRecommender(SrsStore(db_session), "u1")("B1"))
        assert rec == Recommendation(mood="indicative", tense="pretIndef")

    def test_respects_level(self, db_session):
        self._add(db_session, "pres", "1s")
        self._add(db_session, "pretIndef", "3s", interval=1, ease=1.5, reps=1, lapses=2)
        rec = asyncio.run(WeakestCellRecommender(SrsStore(db_session), "u1")("A1"))
        assert rec.tense == "pres"

    def test_no_schedule(self, db_session):
        assert asyncio.run(WeakestCellRecommender(SrsStore(db_session), "u1")("B1")) is None

    def test_no_user(self, db_session):
        assert asyncio.run(WeakestCellRecommender(SrsStore(db_session), None)("B1")) is None

    def test_levels_are_cumulative(self):
        assert LEVEL_COMBOS["A1"] < LEVEL_COMBOS["A2"] < LEVEL_COMBOS["B1"] < LEVEL_COMBOS["B2"]
