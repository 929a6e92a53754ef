from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from ..database import fallback_on_unavailable
from ..errors import Forbidden, NotFound, ValidationError
from ..models.comment import MAX_COMMENT_LENGTH, Comment
from ..models.match import Match
from ..models.user import User


def create_comment(
    db: Session,
    user_id: int,
    match_id: int,
    content: str,
    parent_id: Optional[int] = None
) -> Comment:
    content = content.strip()
    if not content:
        raise ValidationError("Comment cannot be empty")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")

    if not db.get(Match, match_id):
        raise NotFound("Match not found")

    comment = Comment(user_id=user_id, match_id=match_id, content=content, parent_id=parent_id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: int, user: User) -> None:
    """Only the author or an admin may delete a comment."""
    comment = db.get(Comment, comment_id)
    if not comment:
        raise NotFound("Comment not found")

    if comment.user_id != user.id and not user.is_admin:
        raise Forbidden("You can only delete your own comments")

    db.delete(comment)
    db.commit()


@fallback_on_unavailable(list)
def list_comments(db: Session, match_id: int) -> List[Dict[str, Any]]:
    """Comments on a match, newest first, with the author's display fields."""
    statement = (
        select(Comment, User.username, User.name, User.profile_photo)
        .join(User, User.id == Comment.user_id)
        .where(Comment.match_id == match_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return [
        {
            **comment.model_dump(),
            "username": username,
            "name": name,
            "profile_photo": profile_photo,
        }
        for comment, username, name, profile_photo in db.exec(statement).all()
    ]
