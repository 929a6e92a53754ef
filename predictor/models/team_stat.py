from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from ..database import utcnow

# G = win, B = draw, M = loss
FORM_ALPHABET = frozenset("GBM")
FORM_LENGTH = 5


class TeamStat(SQLModel, table=True):
    """Last five results of one side of a match."""
    __tablename__ = "team_stats"
    __table_args__ = (UniqueConstraint("match_id", "team_name", name="unique_match_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="matches.id", index=True)
    team_name: str = Field(max_length=100)
    last_five_form: str = Field(max_length=5)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
