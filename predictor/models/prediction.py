from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from ..database import utcnow

RESULTS = ("home", "draw", "away")


class Prediction(SQLModel, table=True):
    __tablename__ = "predictions"
    __table_args__ = (UniqueConstraint("user_id", "match_id", name="unique_user_match"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    match_id: int = Field(foreign_key="matches.id", index=True)

    # Prediction
    predicted_home_score: int
    predicted_away_score: int
    predicted_result: str  # home, draw, away

    # Points (calculated after match finishes, null until then)
    points_earned: Optional[int] = Field(default=None)
    is_correct_result: bool = Field(default=False)
    is_exact_score: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
