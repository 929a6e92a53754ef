from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..database import utcnow


class Match(SQLModel, table=True):
    __tablename__ = "matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    home_team: str = Field(max_length=100)
    away_team: str = Field(max_length=100)
    match_date: datetime = Field(index=True)  # kickoff, UTC

    week: int = Field(index=True)  # gameweek
    day: str = Field(max_length=50)  # e.g. "Saturday"

    # Actual result (filled by admin); both set or both null
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    is_finished: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def has_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None
