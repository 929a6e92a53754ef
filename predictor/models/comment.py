from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..database import utcnow

MAX_COMMENT_LENGTH = 1000


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    match_id: int = Field(foreign_key="matches.id", index=True)
    content: str = Field(max_length=MAX_COMMENT_LENGTH)
    parent_id: Optional[int] = Field(default=None, foreign_key="comments.id")  # threading, not rendered
    created_at: datetime = Field(default_factory=utcnow, index=True)
