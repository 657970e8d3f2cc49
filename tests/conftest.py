import os
import tempfile

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker

os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="conjuga-logs-"))

from conjuga.database import Base, get_db, init_db
from conjuga.main import app
from conjuga.services.catalog import Form


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_form(lemma="hablar", mood="indicative", tense="pres", person="1s",
              region="all", value=None):
    return Form(
        lemma=lemma,
        mood=mood,
        tense=tense,
        person=person,
        region=region,
        value=value or f"{lemma}-{tense}-{person}",
    )


@pytest.fixture
def sample_forms():
    forms = []
    for lemma in ("hablar", "tener", "pensar", "vivir"):
        for tense in ("pres", "pretIndef"):
            for person in ("1s", "2s_tu", "2s_vos", "3s", "1p", "2p_vosotros", "3p"):
                forms.append(make_form(lemma, "indicative", tense, person))
    for person in ("1s", "3s"):
        forms.append(make_form("tener", "subjunctive", "subjPres", person))
        forms.append(make_form("hablar", "imperative", "impAff", person))
        forms.append(make_form("hablar", "imperative", "impNeg", person))
    return forms
