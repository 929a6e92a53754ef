from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models.user import User
from ..services.comments import create_comment, delete_comment, list_comments

router = APIRouter(prefix="/api", tags=["comments"])


class CommentCreate(BaseModel):
    content: str
    parent_id: Optional[int] = None


@router.get("/matches/{match_id}/comments")
async def get_comments(match_id: int, db: Session = Depends(get_session)):
    return list_comments(db, match_id)


@router.post("/matches/{match_id}/comments")
async def post_comment(
    match_id: int,
    payload: CommentCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return create_comment(db, current_user.id, match_id, payload.content, parent_id=payload.parent_id)


@router.delete("/comments/{comment_id}")
async def remove_comment(
    comment_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    delete_comment(db, comment_id, current_user)
    return {"success": True}
