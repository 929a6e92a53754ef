from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..database import utcnow


class UserScore(SQLModel, table=True):
    """Per-user aggregate, maintained by the scoring service only."""
    __tablename__ = "user_scores"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    total_points: int = Field(default=0)
    correct_results: int = Field(default=0)
    correct_scores: int = Field(default=0)
    total_predictions: int = Field(default=0)
    updated_at: datetime = Field(default_factory=utcnow)
