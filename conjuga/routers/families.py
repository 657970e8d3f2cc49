from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.schemas import FamilyRecommendationOut, FamilyStatsOut
from conjuga.services.family_clustering import (
    get_family_statistics,
    get_intelligent_recommendations,
)
from conjuga.services.irregular_families import IRREGULAR_FAMILIES, categorize_verb
from conjuga.services.srs_store import SrsStore

router = APIRouter(prefix="/api/families", tags=["families"])


@router.get("/stats", response_model=FamilyStatsOut)
async def family_stats(
    user_id: str = Query(...),
    mood: str = Query(...),
    tense: str = Query(...),
    person: str = Query(...),
    db: Session = Depends(get_db),
):
    return await get_family_statistics(SrsStore(db), user_id, mood, tense, person)


@router.get("/recommendations", response_model=list[FamilyRecommendationOut])
async def family_recommendations(
    user_id: str = Query(...),
    mood: str = Query(...),
    tense: str = Query(...),
    person: str = Query(...),
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
):
    return await get_intelligent_recommendations(
        SrsStore(db), user_id, mood, tense, person, limit=limit
    )


@router.get("/verb/{lemma}")
def verb_families(lemma: str):
    """Irregular families a lemma belongs to (empty for regular verbs)."""
    return {
        "lemma": lemma,
        "families": [
            {"id": fid, "name": IRREGULAR_FAMILIES[fid].name}
            for fid in categorize_verb(lemma)
        ],
    }


@router.get("/{family_id}")
def family_detail(family_id: str):
    family = IRREGULAR_FAMILIES.get(family_id)
    if not family:
        raise HTTPException(404, "Family not found")
    return {
        "id": family.id,
        "name": family.name,
        "pattern": family.pattern,
        "examples": list(family.examples),
        "affected_tenses": list(family.affected_tenses),
        "paradigmatic_verbs": list(family.paradigmatic_verbs),
    }
