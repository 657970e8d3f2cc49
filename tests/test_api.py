from datetime import datetime, timedelta, timezone

import pytest

from conjuga.main import app
from conjuga.models import ScheduleCell
from conjuga.routers.drill import SessionCaches, get_catalog, get_session_caches
from conjuga.services.catalog import StaticFormsCatalog


@pytest.fixture
def drill_client(client, sample_forms):
    catalog = StaticFormsCatalog(sample_forms)
    caches = SessionCaches(max_sessions=8)
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_session_caches] = lambda: caches
    client.catalog = catalog
    return client


def _add_cell(db, person="1s", tense="pres", due_in=timedelta(hours=-1), user_id="u1", **fields):
    values = dict(interval=15, ease=2.25, reps=5, lapses=0, leech=False, last_answer_correct=True)
    values.update(fields)
    db.add(ScheduleCell(
        user_id=user_id, mood="indicative", tense=tense, person=person,
        next_due=(datetime.now(timezone.utc) + due_in).replace(tzinfo=None),
        **values,
    ))
    db.commit()


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["app"] == "conjuga"


class TestDrillNext:
    def test_anonymous(self, drill_client):
        resp = drill_client.post("/api/drill/next", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["selection_method"] == "standard_generator"
        assert data["form"]["lemma"] in {"hablar", "tener", "pensar", "vivir"}
        assert data["error_stages"] == []

    def test_pool_reused_between_calls(self, drill_client):
        body = {"user_id": "u1", "settings": {"level": "B1"}}
        first = drill_client.post("/api/drill/next", json=body).json()
        second = drill_client.post("/api/drill/next", json=body).json()
        assert first["pool_reused"] is False
        assert second["pool_reused"] is True
        assert drill_client.catalog.generate_calls == 1

    def test_due_cell(self, drill_client, db_session):
        _add_cell(db_session, person="3s", tense="pretIndef")
        resp = drill_client.post("/api/drill/next", json={"user_id": "u1"})
        data = resp.json()
        assert data["selection_method"] == "srs_due_with_variety"
        assert data["form"]["tense"] == "pretIndef"

    def test_exclude_and_history(self, drill_client):
        body = {
            "settings": {"practice_mode": "specific", "specific_mood": "subjunctive",
                         "specific_tense": "subjPres"},
            "history": [{"lemma": "tener", "mood": "subjunctive", "tense": "subjPres", "person": "1s"}],
            "exclude": {"lemma": "tener", "mood": "subjunctive", "tense": "subjPres", "person": "1s"},
        }
        for _ in range(5):
            form = drill_client.post("/api/drill/next", json=body).json()["form"]
            assert (form["lemma"], form["person"]) == ("tener", "3s")

    def test_specific_without_forms_is_relaxed(self, drill_client):
        body = {"settings": {"practice_mode": "specific", "specific_mood": "subjunctive",
                             "specific_tense": "subjPlusc"}}
        data = drill_client.post("/api/drill/next", json=body).json()
        assert data["form"]["mood"] == "subjunctive"
        assert data["relaxation"] == "relaxed_tense"
        assert data["selection_method"].startswith("relaxed_tense:")

    def test_empty_pool(self, drill_client):
        app.dependency_overrides[get_catalog] = lambda: StaticFormsCatalog([])
        data = drill_client.post("/api/drill/next", json={}).json()
        assert data["form"] is None
        assert data["selection_method"] is None
        assert data["relaxation"] is None

    def test_invalid_mode_rejected(self, drill_client):
        resp = drill_client.post("/api/drill/next", json={"settings": {"practice_mode": "bogus"}})
        assert resp.status_code == 422


class TestSessionCaches:
    def test_least_recently_used_evicted(self):
        caches = SessionCaches(max_sessions=2)
        first = caches.get("a")
        caches.get("b")
        assert caches.get("a") is first
        caches.get("c")
        assert len(caches) == 2
        assert "b" not in caches
        assert "a" in caches and "c" in caches

    def test_drill_sessions_bounded(self, drill_client):
        caches = SessionCaches(max_sessions=2)
        app.dependency_overrides[get_session_caches] = lambda: caches
        for user_id in ("u1", "u2", "u3"):
            drill_client.post("/api/drill/next", json={"user_id": user_id})
        assert len(caches) == 2
        assert "u1" not in caches


class TestSrsRoutes:
    def test_due_with_filter(self, client, db_session):
        _add_cell(db_session, person="1s", tense="pres")
        _add_cell(db_session, person="3s", tense="pretIndef")
        _add_cell(db_session, person="1p", tense="pres", due_in=timedelta(days=2))

        resp = client.get("/api/srs/due", params={"user_id": "u1"})
        assert resp.status_code == 200
        assert len(resp.json()) == 2

        resp = client.get("/api/srs/due", params={
            "user_id": "u1", "mood": "indicative", "tense": "pretIndef",
        })
        data = resp.json()
        assert [(c["tense"], c["person"]) for c in data] == [("pretIndef", "3s")]
        assert data[0]["urgency"] == 4

    def test_due_urgency_and_limit(self, client, db_session):
        for person in ("1s", "2s_tu", "3s"):
            _add_cell(db_session, person=person)
        assert len(client.get("/api/srs/due", params={"user_id": "u1", "urgency": "overdue"}).json()) == 3
        assert len(client.get("/api/srs/due", params={"user_id": "u1", "urgency": "2"}).json()) == 0
        assert len(client.get("/api/srs/due", params={"user_id": "u1", "limit": "2"}).json()) == 2
        assert len(client.get("/api/srs/due", params={
            "user_id": "u1", "limit": "light", "limit_count": 1,
        }).json()) == 1

    def test_due_invalid_urgency(self, client):
        resp = client.get("/api/srs/due", params={"user_id": "u1", "urgency": "soon"})
        assert resp.status_code == 422

    def test_attempt_round_trip(self, client):
        body = {"user_id": "u1", "lemma": "hablar", "mood": "indicative",
                "tense": "pres", "person": "1s", "correct": True}
        resp = client.post("/api/srs/attempt", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["reps"] == 1
        assert data["interval"] >= 1
        assert 1.3 <= data["ease"] <= 3.2

        cell = client.get("/api/srs/cell", params={
            "user_id": "u1", "mood": "indicative", "tense": "pres", "person": "1s",
        })
        assert cell.status_code == 200
        assert cell.json()["reps"] == 1

    def test_attempt_negative_hints_rejected(self, client):
        body = {"user_id": "u1", "lemma": "hablar", "mood": "indicative",
                "tense": "pres", "person": "1s", "correct": True, "hints_used": -1}
        assert client.post("/api/srs/attempt", json=body).status_code == 422

    def test_missing_cell_404(self, client):
        resp = client.get("/api/srs/cell", params={
            "user_id": "u1", "mood": "indicative", "tense": "pres", "person": "1s",
        })
        assert resp.status_code == 404

    def test_reset(self, client, db_session):
        _add_cell(db_session)
        resp = client.delete("/api/srs/schedules/u1")
        assert resp.json()["deleted"] == 1
        assert client.get("/api/srs/due", params={"user_id": "u1"}).json() == []


class TestFamilyRoutes:
    def test_stats(self, client, db_session):
        _add_cell(db_session, interval=30, ease=3.2, reps=10)
        resp = client.get("/api/families/stats", params={
            "user_id": "u1", "mood": "indicative", "tense": "pres", "person": "1s",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["mastered_families"] == data["total_families"]
        assert data["family_details"][0]["mastery"] == 1.0

    def test_recommendations(self, client, db_session):
        _add_cell(db_session)
        resp = client.get("/api/families/recommendations", params={
            "user_id": "u1", "mood": "indicative", "tense": "pres", "person": "1s", "limit": 2,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 2
        assert all(0.3 < r["current_mastery"] < 0.9 for r in data)

    def test_stats_requires_cell(self, client):
        resp = client.get("/api/families/stats", params={"user_id": "u1"})
        assert resp.status_code == 422

    def test_verb_families(self, client):
        data = client.get("/api/families/verb/tener").json()
        assert [f["id"] for f in data["families"]] == [
            "G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL",
        ]
        assert client.get("/api/families/verb/hablar").json()["families"] == []

    def test_family_detail(self, client):
        assert client.get("/api/families/G_VERBS").json()["name"] == "Irregular yo (-go)"
        assert client.get("/api/families/NOPE").status_code == 404
