from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..database import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    password_hash: str = Field(max_length=255)
    name: Optional[str] = Field(default=None, max_length=100)
    profile_photo: Optional[str] = Field(default=None, max_length=500)
    is_admin: bool = Field(default=False)  # role: admin or user
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_signed_in: datetime = Field(default_factory=utcnow)

    @property
    def role(self) -> str:
        return "admin" if self.is_admin else "user"
