from collections import OrderedDict
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from conjuga.config import settings
from conjuga.database import get_db
from conjuga.schemas import DrillNextIn, DrillNextOut, FormOut
from conjuga.services.catalog import FormsCatalog, StaticFormsCatalog, load_forms_file
from conjuga.services.drill_pipeline import run_drill_turn
from conjuga.services.forms_pool import FormsCache
from conjuga.services.srs_store import SrsStore

router = APIRouter(prefix="/api/drill", tags=["drill"])

ANONYMOUS_SESSION = "anonymous"


class SessionCaches:
    """One forms cache per learner session, least recently used evicted first."""

    def __init__(self, max_sessions: int):
        self.max_sessions = max_sessions
        self._caches: OrderedDict[str, FormsCache] = OrderedDict()

    def get(self, session_id: str) -> FormsCache:
        cache = self._caches.get(session_id)
        if cache is None:
            cache = self._caches[session_id] = FormsCache()
            while len(self._caches) > self.max_sessions:
                self._caches.popitem(last=False)
        else:
            self._caches.move_to_end(session_id)
        return cache

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._caches

    def __len__(self) -> int:
        return len(self._caches)


_catalog: Optional[StaticFormsCatalog] = None
_session_caches = SessionCaches(settings.max_session_caches)


def get_catalog() -> FormsCatalog:
    global _catalog
    if _catalog is None:
        _catalog = StaticFormsCatalog(load_forms_file(settings.forms_path))
    return _catalog


def get_session_caches() -> SessionCaches:
    return _session_caches


@router.post("/next", response_model=DrillNextOut)
async def next_form(
    body: DrillNextIn,
    db: Session = Depends(get_db),
    catalog: FormsCatalog = Depends(get_catalog),
    caches: SessionCaches = Depends(get_session_caches),
):
    cache = caches.get(body.user_id or ANONYMOUS_SESSION)
    turn = await run_drill_turn(
        body.settings,
        catalog,
        cache,
        store=SrsStore(db),
        user_id=body.user_id,
        history=body.history,
        exclude=body.exclude,
    )
    result = turn.result
    return DrillNextOut(
        form=FormOut.model_validate(result.form) if result.form else None,
        selection_method=result.selection_method,
        error_stages=[e["stage"] for e in result.errors],
        pool_reused=turn.pool.reused,
        relaxation=turn.relaxation,
    )
