from datetime import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field


PracticeMode = Literal["mixed", "specific", "theme", "review"]
VerbType = Literal["all", "regular", "irregular"]
Urgency = Union[Literal["all", "urgent", "overdue"], int]


class ReviewFilterIn(BaseModel):
    mood: Optional[str] = None
    tense: Optional[str] = None
    person: Optional[str] = None
    urgency: Urgency = "all"
    limit: Optional[Union[Literal["light"], int]] = None
    limit_count: Optional[int] = None


class PracticeSettings(BaseModel):
    """Raw learner settings as sent by the UI.

    Mode-dependent fields are optional; they are normalized into
    SpecificConstraints / ReviewSessionFilter before selection starts.
    """
    practice_mode: PracticeMode = "mixed"
    level: str = "B1"
    region: Optional[str] = None
    verb_type: VerbType = "all"
    selected_family: Optional[str] = None
    specific_mood: Optional[str] = None
    specific_tense: Optional[str] = None
    use_voseo: bool = False
    use_vosotros: bool = False
    allowed_combos: Optional[list[str]] = None  # "mood|tense" keys unlocked by the curriculum

    # Review-mode only
    review_session_type: Optional[str] = None  # due/specific/...
    review_filter: Optional[ReviewFilterIn] = None


class FormOut(BaseModel):
    lemma: str
    mood: str
    tense: str
    person: str
    region: str
    value: str
    model_config = {"from_attributes": True}


class HistoryEntry(BaseModel):
    lemma: str
    mood: str
    tense: str
    person: str


class DrillNextIn(BaseModel):
    user_id: Optional[str] = None
    settings: PracticeSettings = Field(default_factory=PracticeSettings)
    history: list[HistoryEntry] = Field(default_factory=list)
    exclude: Optional[HistoryEntry] = None


class DrillNextOut(BaseModel):
    form: Optional[FormOut] = None
    selection_method: Optional[str] = None
    error_stages: list[str] = Field(default_factory=list)
    pool_reused: bool = False
    relaxation: Optional[str] = None


class ScheduleCellOut(BaseModel):
    mood: str
    tense: str
    person: str
    interval: float
    ease: float
    reps: int
    lapses: int
    leech: bool
    last_answer_correct: Optional[bool] = None
    next_due: Optional[datetime] = None
    urgency: int = 1
    model_config = {"from_attributes": True}


class AttemptIn(BaseModel):
    user_id: str
    lemma: str
    mood: str
    tense: str
    person: str
    correct: bool
    hints_used: int = Field(0, ge=0)


class AttemptOut(BaseModel):
    interval: int
    ease: float
    reps: int
    lapses: int
    leech: bool
    next_due: datetime
    family_clustering_applied: bool = False
    family_mastery: Optional[float] = None
    family_boost_multiplier: Optional[float] = None


class FamilyDetailOut(BaseModel):
    id: str
    name: str
    pattern: str
    mastery: float
    verb_count: int
    practice_count: int
    mastered_count: int


class FamilyStatsOut(BaseModel):
    total_families: int
    mastered_families: int
    learning_families: int
    new_families: int
    family_details: list[FamilyDetailOut]


class FamilyRecommendationOut(BaseModel):
    family_id: str
    family_name: str
    family_pattern: str
    current_mastery: float
    suggested_verbs: list[str]
    reasoning: str
    total_verbs: int
