from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, UniqueConstraint
)

from conjuga.database import Base


class ScheduleCell(Base):
    """SRS schedule for one (user, mood, tense, person) cell."""

    __tablename__ = "schedule_cells"
    __table_args__ = (
        UniqueConstraint("user_id", "mood", "tense", "person", name="uq_schedule_cell"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    mood = Column(String(20), nullable=False)        # indicative/subjunctive/imperative/conditional/nonfinite
    tense = Column(String(20), nullable=False)       # pres/pretIndef/impf/subjPres/...
    person = Column(String(10), nullable=False)      # 1s/2s_tu/2s_vos/3s/1p/2p_vosotros/3p
    interval = Column(Float, default=0)              # days
    ease = Column(Float, default=2.5)                # 1.3-3.2
    reps = Column(Integer, default=0)
    lapses = Column(Integer, default=0)
    leech = Column(Boolean, default=False)
    last_answer_correct = Column(Boolean, nullable=True)
    next_due = Column(DateTime, nullable=True, index=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
